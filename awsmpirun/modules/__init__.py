"""
awsmpirun Modules - Black Box Architecture

Each module is a self-contained black box with:
- Clear interface (public API)
- Hidden implementation details
- Single responsibility

Cloud services are reached only through the protocols declared in each
module's interfaces.py; the aws module provides the boto3-backed versions.
"""
