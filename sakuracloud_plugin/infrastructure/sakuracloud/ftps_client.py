import logging
import os
from ftplib import FTP_TLS, all_errors
from typing import Any, Dict

from sakuracloud_plugin.infrastructure.exceptions import UploadError

logger = logging.getLogger(__name__)


class FTPSUploader:
    """Upload a local file to the FTPS endpoint opened for an archive."""

    def __init__(self, timeout: float = 300):
        self.timeout = timeout

    def upload(self, server: Dict[str, Any], local_path: str) -> None:
        """
        Args:
            server: FTPServer dict with HostName, User and Password
            local_path: File to upload

        Raises:
            UploadError: If the transfer fails
        """
        host = server.get("HostName") or server.get("IPAddress")
        if not host:
            raise UploadError("FTP server information has no host", details=server)

        remote_name = os.path.basename(local_path)
        logger.info(f"Uploading {local_path} to ftps://{host}/{remote_name}")
        try:
            ftps = FTP_TLS(host, timeout=self.timeout)
            try:
                ftps.login(server.get("User", ""), server.get("Password", ""))
                ftps.prot_p()
                with open(local_path, "rb") as f:
                    ftps.storbinary(f"STOR {remote_name}", f)
            finally:
                ftps.close()
        except all_errors as e:
            logger.error(f"Failed to upload {local_path}: {str(e)}")
            raise UploadError(f"Failed to upload {local_path}: {str(e)}")
        logger.info(f"Uploaded {local_path}")
