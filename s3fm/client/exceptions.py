# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Exceptions raised by the object-store client.

Every failure coming out of the store is reported as a StoreError subclass
carrying a stable error code, so callers can branch on the kind of failure
without inspecting botocore responses.
"""

class StoreError(Exception):
    """Base exception for object-store client errors."""
    def __init__(self, message: str, code: str = "ERR_UNKNOWN"):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")

class AuthenticationError(StoreError):
    """Authentication failed."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_AUTH")

class BucketError(StoreError):
    """Bucket operation failed."""
    def __init__(self, message: str, operation: str = None):
        code = "ERR_BUCKET"
        if operation:
            code = f"ERR_BUCKET_{operation.upper()}"
        super().__init__(message, code=code)

class ObjectError(StoreError):
    """Object operation failed."""
    def __init__(self, message: str, operation: str = None, not_found: bool = False):
        code = "ERR_OBJECT"
        if operation:
            code = f"ERR_OBJECT_{operation.upper()}"
        if not_found:
            code = f"{code}_NOT_FOUND"
        self.not_found = not_found
        super().__init__(message, code=code)

class ConfigurationError(StoreError):
    """Configuration or credential error."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_CONFIG")
