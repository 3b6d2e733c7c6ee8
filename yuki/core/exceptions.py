"""
Custom exceptions for the application
"""

PROVIDER_ERROR_KINDS = ("auth", "network", "rate_limit", "malformed_response")


class BaseAppException(Exception):
    """Base application exception"""
    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class NotFoundError(BaseAppException):
    """Raised when a resource is not found"""
    pass


class ValidationError(BaseAppException):
    """Raised when validation fails"""
    def __init__(self, message: str, details: str = None, error_code: str = None):
        super().__init__(message, details)
        self.error_code = error_code


class UnsupportedFileError(ValidationError):
    """Raised when an uploaded file type cannot be ingested"""
    def __init__(self, extension: str):
        super().__init__(f"Unsupported file type: {extension}", error_code="unsupported_file")
        self.extension = extension


class ReferentialError(BaseAppException):
    """Raised when a write would break a reference-data invariant"""
    pass


class DuplicateError(BaseAppException):
    """Raised when a document with the same content hash was already ingested"""
    def __init__(self, message: str, existing_id: str = None):
        super().__init__(message)
        self.existing_id = existing_id


class ProviderError(BaseAppException):
    """Raised when the language model provider call fails"""
    def __init__(self, message: str, kind: str = "network", details: str = None):
        if kind not in PROVIDER_ERROR_KINDS:
            raise ValueError(f"Unknown provider error kind: {kind}")
        super().__init__(message, details)
        self.kind = kind

    def __str__(self):
        return f"{self.kind}: {self.message}"


class ProcessingCancelled(BaseAppException):
    """Raised when an upload is cancelled before its results are persisted"""
    pass


class DatabaseError(BaseAppException):
    """Raised when database operations fail"""
    pass
