import logging
from typing import Any

from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from awsmpirun.errors import ArtifactError

logger = logging.getLogger("awsmpirun.aws.s3")


class S3ArtifactStore:
    """ArtifactStore backed by one S3 bucket."""

    def __init__(self, s3_client: Any, bucket: str):
        self.client = s3_client
        self.bucket = bucket

    def upload(self, local_path: str, key: str) -> None:
        try:
            self.client.upload_file(local_path, self.bucket, key)
        except (BotoCoreError, ClientError, S3UploadFailedError) as e:
            raise ArtifactError(f"failed to upload file: {e}") from e
        logger.info(f"Uploaded {local_path} to bucket {self.bucket} as {key}")

    def download(self, key: str, local_path: str) -> None:
        try:
            self.client.download_file(self.bucket, key, local_path)
        except (BotoCoreError, ClientError) as e:
            raise ArtifactError(f"failed to download file: {e}") from e
        logger.info(f"Downloaded {key} to {local_path}")

    def object_uri(self, key: str) -> str:
        return f"s3://{self.bucket}/{key}"
