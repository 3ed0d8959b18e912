# 领域错误体系 (Domain Error Taxonomy)
# 服务层只抛出这些异常；main.py 中的 handler 负责映射为 HTTP 响应
from typing import Any, Dict, Optional


class AppError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500
    retryable = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"code": self.code, "message": self.message, "retryable": self.retryable}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource} with identifier '{identifier}' not found",
            {"resource": resource, "identifier": str(identifier)},
        )
        self.resource = resource
        self.identifier = identifier


class AlreadyExistsError(AppError):
    code = "ALREADY_EXISTS"
    status_code = 409


class UnauthorizedError(AppError):
    """The row exists but belongs to another owner."""
    code = "UNAUTHORIZED"
    status_code = 403


class AuthenticationError(AppError):
    code = "AUTHENTICATION_FAILED"
    status_code = 401


class UpstreamUnavailableError(AppError):
    code = "UPSTREAM_UNAVAILABLE"
    status_code = 503
    retryable = True

    def __init__(self, service: str, message: str):
        super().__init__(f"{service}: {message}", {"service": service})
        self.service = service


class DatabaseError(AppError):
    code = "DATABASE_ERROR"
    status_code = 500
