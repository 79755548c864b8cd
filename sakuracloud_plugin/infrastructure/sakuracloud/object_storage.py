import logging
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from sakuracloud_plugin.infrastructure.exceptions import ObjectStorageError

logger = logging.getLogger(__name__)


class ObjectStorageClient:
    """
    S3-compatible client for SakuraCloud object storage.

    Buckets are addressed by path, as virtual-host addressing is not
    available on every endpoint.
    """

    def __init__(self, access_key: str, secret_key: str, config: Optional[Dict[str, Any]] = None):
        """
        Args:
            access_key: Object storage access key ID
            secret_key: Object storage secret access key
            config: OBJECT_STORAGE_CONFIG section of the plugin configuration
        """
        config = config or {}
        self.config = Config(
            region_name=config.get("region_name", "jp-north-1"),
            s3={"addressing_style": "path"},
            retries={"max_attempts": 3, "mode": "standard"},
        )
        self.s3_client = boto3.client(
            "s3",
            endpoint_url=config.get("endpoint_url") or None,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            config=self.config,
        )

    def head_object(self, bucket: str, key: str) -> Optional[Dict[str, Any]]:
        """Return object metadata, or None when the object does not exist."""
        try:
            return self.s3_client.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in ("404", "NoSuchKey", "NotFound"):
                return None
            logger.error(f"Failed to read metadata of {bucket}/{key}: {str(e)}")
            raise ObjectStorageError(f"Failed to read metadata of {bucket}/{key}: {str(e)}")

    def get_object_body(self, bucket: str, key: str) -> bytes:
        try:
            response = self.s3_client.get_object(Bucket=bucket, Key=key)
            return response["Body"].read()
        except ClientError as e:
            logger.error(f"Failed to read {bucket}/{key}: {str(e)}")
            raise ObjectStorageError(f"Failed to read {bucket}/{key}: {str(e)}")
