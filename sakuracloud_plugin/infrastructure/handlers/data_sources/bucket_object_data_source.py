import logging
import os
import re
from typing import Any, Callable, Dict, Optional

from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.domain.resource.schemas import BucketObjectLookupSchema
from sakuracloud_plugin.infrastructure.exceptions import InfrastructureError
from sakuracloud_plugin.infrastructure.handlers.base_handler import DataSourceHandler
from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient
from sakuracloud_plugin.infrastructure.sakuracloud.object_storage import ObjectStorageClient

logger = logging.getLogger(__name__)

ACCESS_KEY_ENV_VARS = ("SACLOUD_OJS_ACCESS_KEY_ID", "AWS_ACCESS_KEY_ID")
SECRET_KEY_ENV_VARS = ("SACLOUD_OJS_SECRET_ACCESS_KEY", "AWS_SECRET_ACCESS_KEY")

# Bodies of other content types are not returned
ALLOWED_CONTENT_TYPES = (re.compile(r"^text/.+"), re.compile(r"^application/json$"))


def first_env(names) -> Optional[str]:
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return None


def is_content_type_allowed(content_type: Optional[str]) -> bool:
    if not content_type:
        return False
    return any(pattern.match(content_type) for pattern in ALLOWED_CONTENT_TYPES)


class BucketObjectDataSource(DataSourceHandler):
    """Object in SakuraCloud's S3-compatible object storage."""

    type_name = "sakuracloud_bucket_object"
    schema = BucketObjectLookupSchema

    def __init__(self, client: SakuraCloudClient, config: Optional[Dict[str, Any]] = None,
                 storage_factory: Callable[..., ObjectStorageClient] = ObjectStorageClient):
        super().__init__(client, config)
        self.storage_factory = storage_factory
        self.storage_config = self.config.get("OBJECT_STORAGE_CONFIG") or {}

    def read(self, data: ResourceData) -> None:
        bucket = data.get("bucket")
        key = data.get("key")
        access_key = data.get("access_key") or first_env(ACCESS_KEY_ENV_VARS)
        secret_key = data.get("secret_key") or first_env(SECRET_KEY_ENV_VARS)
        if not access_key or not secret_key:
            raise self.fail("SakuraCloud BucketObject Read is failed: access_key and secret_key are required")

        try:
            storage = self.storage_factory(access_key, secret_key, self.storage_config)
            head = storage.head_object(bucket, key)
            if head is None:
                raise self.fail(f"SakuraCloud BucketObject Read is failed: {bucket}/{key} not found")

            content_type = head.get("ContentType", "")
            body = ""
            if is_content_type_allowed(content_type):
                body = storage.get_object_body(bucket, key).decode("utf-8", errors="replace")
            else:
                logger.info(f"Ignoring body of object {bucket}/{key} with Content-Type {content_type or '<EMPTY>'!r}")
        except InfrastructureError as e:
            raise self.fail("SakuraCloud BucketObject Read is failed", e)

        last_modified = head.get("LastModified")
        data.set_id(key)
        data.set("content_type", content_type)
        data.set("body", body)
        data.set("etag", str(head.get("ETag", "")).strip('"'))
        data.set("size", int(head.get("ContentLength", 0)))
        data.set("last_modified", last_modified.isoformat() if hasattr(last_modified, "isoformat") else str(last_modified or ""))

        api_host = self.storage_config.get("api_host", "b.sakurastorage.jp")
        cached_host = self.storage_config.get("cached_host", "c.sakurastorage.jp")
        path = key.lstrip("/")
        data.set("http_url", f"http://{bucket}.{api_host}/{path}")
        data.set("https_url", f"https://{bucket}.{api_host}/{path}")
        data.set("http_path_url", f"http://{api_host}/{bucket}/{path}")
        data.set("https_path_url", f"https://{api_host}/{bucket}/{path}")
        data.set("http_cache_url", f"http://{bucket}.{cached_host}/{path}")
        data.set("https_cache_url", f"https://{bucket}.{cached_host}/{path}")
