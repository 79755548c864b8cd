# sakuracloud_plugin/domain/core/exceptions.py
from typing import Any, Optional, List

class DomainException(Exception):
    """Base exception for all domain-specific errors."""
    pass

class ValidationError(DomainException):
    """Raised when domain validation fails."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.details = details

class ConfigurationError(DomainException):
    """Raised when there's an issue with configuration."""
    def __init__(self, message: str, missing_fields: Optional[List[str]] = None):
        super().__init__(message)
        self.missing_fields = missing_fields or []

class UnknownResourceTypeError(DomainException):
    """Raised when the host asks for a type this plugin does not provide."""
    def __init__(self, resource_type: str):
        super().__init__(f"Unknown resource type: {resource_type}")
        self.resource_type = resource_type

class OperationNotSupportedError(DomainException):
    """Raised when a resource type does not implement the requested operation."""
    def __init__(self, resource_type: str, operation: str):
        super().__init__(f"{resource_type} does not support {operation}")
        self.resource_type = resource_type
        self.operation = operation

class ResourceOperationError(DomainException):
    """Raised when a CRUD operation fails; the message is shown to the host."""
    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause
