"""
Custom logging configuration to quiet AWS SDK chatter
"""

import logging
import logging.config
from typing import Any, Dict


class CredentialChatterFilter(logging.Filter):
    """Filter to suppress botocore credential discovery logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Drop "Found credentials in ..." records from botocore.credentials."""
        if record.name == "botocore.credentials":
            if "Found credentials" in record.getMessage():
                return False
        return True


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """Get logging configuration for the CLI.

    Logs go to stderr; stdout is reserved for the leader's program output.
    """
    sdk_level = "INFO" if level == "DEBUG" else "WARNING"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "credential_chatter_filter": {
                "()": CredentialChatterFilter
            }
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
                "filters": ["credential_chatter_filter"]
            }
        },
        "loggers": {
            "awsmpirun": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            },
            "botocore": {
                "handlers": ["default"],
                "level": sdk_level,
                "propagate": False
            },
            "boto3": {
                "handlers": ["default"],
                "level": "WARNING",
                "propagate": False
            },
            "urllib3": {
                "handlers": ["default"],
                "level": "WARNING",
                "propagate": False
            }
        },
        "root": {
            "level": "WARNING",
            "handlers": ["default"]
        }
    }
