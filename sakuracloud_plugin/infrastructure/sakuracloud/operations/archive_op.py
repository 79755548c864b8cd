from typing import Any, Dict, Optional

from sakuracloud_plugin.infrastructure.sakuracloud.operations.base import ResourceOp


class ArchiveOp(ResourceOp):
    path = "archive"
    root_key = "Archive"
    list_key = "Archives"

    def open_ftp(self, zone: Optional[str], archive_id: str, change_password: bool = False) -> Dict[str, Any]:
        """
        Open the archive's FTPS upload endpoint.

        Returns:
            Dict with HostName, User and Password
        """
        response = self.client.put(
            self._zone(zone),
            f"{self.path}/{archive_id}/ftp",
            {"ChangePassword": change_password},
        )
        return response.get("FTPServer") or {}

    def close_ftp(self, zone: Optional[str], archive_id: str) -> None:
        self.client.delete(self._zone(zone), f"{self.path}/{archive_id}/ftp")


class CDROMOp(ResourceOp):
    path = "cdrom"
    root_key = "CDROM"
    list_key = "CDROMs"
