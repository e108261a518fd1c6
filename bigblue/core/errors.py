"""
Error hierarchy - typed exceptions raised by the service layer.

Routes let these propagate; the global handler in bigblue.api.error_handlers
turns them into {"success": false, "error": ...} responses.
"""


class BigBlueError(Exception):
    """Base exception for all BigBlue domain errors."""

    def __init__(self, message: str, code: str = "ERROR", http_status: int = 500):
        super().__init__(message)
        self.message = message
        self.code = code
        self.http_status = http_status

    def to_response(self) -> dict:
        return {"success": False, "error": self.message, "code": self.code}


class ValidationFailed(BigBlueError):
    def __init__(self, message: str):
        super().__init__(message, "VALIDATION_ERROR", 400)


class ConflictError(BigBlueError):
    # Duplicates are reported as 400 to match the client's expectations
    def __init__(self, message: str):
        super().__init__(message, "CONFLICT", 400)


class AuthenticationError(BigBlueError):
    def __init__(self, message: str = "Not authorized to access this route"):
        super().__init__(message, "UNAUTHORIZED", 401)


class PermissionDenied(BigBlueError):
    def __init__(self, message: str = "Not allowed"):
        super().__init__(message, "FORBIDDEN", 403)


class NotFoundError(BigBlueError):
    def __init__(self, entity: str):
        super().__init__(f"{entity} not found", "NOT_FOUND", 404)
        self.entity = entity
