"""
Domain errors for LearnBridge.

Services raise these instead of HTTPException; main.py maps each one to the
JSON envelope {success: false, message, error?} with its status_code.

Usage:
    from learnbridge.errors import NotFoundError, ConflictError

    if resource is None:
        raise NotFoundError("Resource")
    if resource.status != "pending":
        raise ConflictError("Resource has already been reviewed")
"""
from typing import Any


class LearnBridgeError(Exception):
    """Base exception for all LearnBridge errors"""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, error: Any = None):
        self.message = message
        self.error = error
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": False, "message": self.message, "code": self.code}
        if self.error is not None:
            body["error"] = self.error
        return body


class ValidationError(LearnBridgeError):
    """Missing or malformed input"""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None, error: Any = None):
        super().__init__(message, error=error)
        self.field = field


class AuthenticationError(LearnBridgeError):
    """Missing, invalid or expired credentials"""

    status_code = 401
    code = "AUTH_FAILED"

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)


class AuthorizationError(LearnBridgeError):
    """Authenticated but not allowed"""

    status_code = 403
    code = "NOT_AUTHORIZED"

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class NotFoundError(LearnBridgeError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource_type: str, message: str | None = None):
        super().__init__(message or f"{resource_type} not found")
        self.resource_type = resource_type
        self.code = f"{resource_type.upper()}_NOT_FOUND"


class ConflictError(LearnBridgeError):
    """Duplicate entity, already-reviewed resource, or a module still in use"""

    status_code = 409
    code = "CONFLICT"


class StorageError(LearnBridgeError):
    """Database or filesystem failure"""

    status_code = 500
    code = "STORAGE_ERROR"
