from typing import Optional, Any

class InfrastructureError(Exception):
    """Base exception for infrastructure-related errors."""
    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.details = details

class ConnectionError(InfrastructureError):
    """Raised when there's a connection issue."""
    pass

class ResourceProvisioningError(InfrastructureError):
    """Raised when resource provisioning fails."""
    pass

class WaitTimeoutError(InfrastructureError):
    """Raised when a remote resource does not reach the expected state in time."""
    pass

class UploadError(InfrastructureError):
    """Raised when uploading content to the remote service fails."""
    pass

class ObjectStorageError(InfrastructureError):
    """Raised when object storage operations fail."""
    pass
