# sakuracloud_plugin/infrastructure/sakuracloud/exceptions.py
from typing import Optional

from sakuracloud_plugin.infrastructure.exceptions import InfrastructureError


class SakuraCloudAPIError(InfrastructureError):
    """Error answered by the SakuraCloud API."""

    def __init__(self, status_code: int, error_code: str = "", message: str = "",
                 serial: Optional[str] = None):
        super().__init__(
            f"Error in response: status={status_code} code={error_code!r} message={message!r}",
            details={"serial": serial},
        )
        self.status_code = status_code
        self.error_code = error_code
        self.error_message = message
        self.serial = serial


class ResourceNotFoundError(SakuraCloudAPIError):
    """Raised on HTTP 404."""
    pass


class ConflictError(SakuraCloudAPIError):
    """Raised on HTTP 409, typically when a resource is still in use."""
    pass


class CopyFailedError(InfrastructureError):
    """Raised when an asynchronous copy ends in the failed availability."""

    def __init__(self, resource_id: str, message: Optional[str] = None):
        super().__init__(message or f"resource[{resource_id}] copy failed")
        self.resource_id = resource_id


def is_not_found_error(error: Exception) -> bool:
    """Return True when the error means the remote object does not exist."""
    return isinstance(error, SakuraCloudAPIError) and error.status_code == 404


def is_conflict_error(error: Exception) -> bool:
    return isinstance(error, SakuraCloudAPIError) and error.status_code == 409


def from_response(status_code: int, payload: Optional[dict]) -> SakuraCloudAPIError:
    """Build the exception matching an error response body."""
    payload = payload or {}
    error_code = payload.get("error_code", "")
    message = payload.get("error_msg", "")
    serial = payload.get("serial")
    if status_code == 404:
        return ResourceNotFoundError(status_code, error_code, message, serial)
    if status_code == 409:
        return ConflictError(status_code, error_code, message, serial)
    return SakuraCloudAPIError(status_code, error_code, message, serial)
