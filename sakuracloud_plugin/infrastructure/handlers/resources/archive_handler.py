import logging
import os
from typing import Any, Dict, Optional

from sakuracloud_plugin.domain.resource.resource_data import ResourceData
from sakuracloud_plugin.domain.resource.schemas import ArchiveSchema
from sakuracloud_plugin.helpers.utils import expand_path, file_md5
from sakuracloud_plugin.infrastructure.exceptions import InfrastructureError
from sakuracloud_plugin.infrastructure.handlers.base_handler import ResourceHandler
from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient
from sakuracloud_plugin.infrastructure.sakuracloud.exceptions import is_not_found_error
from sakuracloud_plugin.infrastructure.sakuracloud.ftps_client import FTPSUploader
from sakuracloud_plugin.infrastructure.sakuracloud.operations import ArchiveOp

logger = logging.getLogger(__name__)


class ArchiveHandler(ResourceHandler):
    """Archives uploaded from a local file through the archive's FTPS endpoint."""

    type_name = "sakuracloud_archive"
    schema = ArchiveSchema
    importable = True

    def __init__(self, client: SakuraCloudClient, config: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(client, config, **kwargs)
        self.archive_op = ArchiveOp(client)
        self.uploader = FTPSUploader(timeout=client.request_timeout)

    def _archive_path(self, data: ResourceData) -> str:
        source = data.get("archive_file") or ""
        path = expand_path(source)
        if not os.path.exists(path):
            raise self.fail(f"Error opening archive_file ({source}): no such file")
        return path

    def _upload(self, zone: str, archive_id: str, path: str) -> None:
        try:
            server = self.archive_op.open_ftp(zone, archive_id)
        except InfrastructureError as e:
            raise self.fail("Failed to Open FTPS Connection", e)

        try:
            self.uploader.upload(server, path)
        except InfrastructureError as e:
            raise self.fail("Failed to upload SakuraCloud Archive resource", e)

        try:
            self.archive_op.close_ftp(zone, archive_id)
        except InfrastructureError as e:
            raise self.fail("Failed to Close FTPS Connection from Archive resource", e)

    def _content_changed(self, data: ResourceData) -> bool:
        if data.has_change("archive_file"):
            return True
        # hash is computed from the file unless given explicitly
        desired = data.get("hash") or file_md5(self._archive_path(data))
        return desired != data.get_state("hash")

    def create(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        path = self._archive_path(data)

        body = self.common_body(data)
        body["SizeMB"] = data.get("size") * 1024
        try:
            archive = self.archive_op.create(zone, body)
        except InfrastructureError as e:
            raise self.fail("Failed to create SakuraCloud Archive resource", e)

        archive_id = str(archive["ID"])
        logger.info(f"Created archive {archive_id}, uploading {path}")
        self._upload(zone, archive_id, path)

        data.set_id(archive_id)
        self.read(data)

    def read(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        try:
            archive = self.archive_op.read(zone, data.id)
        except InfrastructureError as e:
            if is_not_found_error(e):
                data.set_id("")
                return
            raise self.fail("Couldn't find SakuraCloud Archive resource", e)

        self.set_common_attributes(data, archive)
        data.set("size", int(archive.get("SizeMB", 0)) // 1024)
        if data.get_ok("archive_file")[1]:
            data.set("hash", file_md5(self._archive_path(data)))
        data.set("zone", zone)

    def update(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        try:
            archive = self.archive_op.read(zone, data.id)
        except InfrastructureError as e:
            raise self.fail("Couldn't find SakuraCloud Archive resource", e)

        body: Dict[str, Any] = {}
        if data.has_change("name"):
            body["Name"] = data.get("name")
        if data.has_change("icon_id"):
            body["Icon"] = self.expand_icon(data.get("icon_id"))
        if data.has_change("description"):
            body["Description"] = data.get("description") or ""
        if data.has_change("tags"):
            body["Tags"] = self.expand_tags(data.get("tags"))

        if body:
            try:
                self.archive_op.update(zone, data.id, body)
            except InfrastructureError as e:
                raise self.fail("Error updating SakuraCloud Archive resource", e)

        if self._content_changed(data):
            self._upload(zone, str(archive["ID"]), self._archive_path(data))

        self.read(data)

    def delete(self, data: ResourceData) -> None:
        zone = self.get_zone(data)
        try:
            self.archive_op.read(zone, data.id)
        except InfrastructureError as e:
            raise self.fail("Couldn't find SakuraCloud Archive resource", e)

        try:
            self.archive_op.delete(zone, data.id)
        except InfrastructureError as e:
            raise self.fail("Error deleting SakuraCloud Archive resource", e)
        data.set_id("")
