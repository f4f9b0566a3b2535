"""领域层业务异常定义，供领域、应用与基础设施层使用。

核心（core）层仅负责全局映射与异常处理，领域层不反向依赖核心层。
The five concrete failures below are the typed errors every topic
controller surfaces to HTTP callers and socket clients alike.
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)

    def to_payload(self) -> dict:
        """Structured error shape shared by HTTP responses and socket frames."""
        payload = {
            "code": int(self.code),
            "type": self.error_type,
            "message": self.message,
        }
        if self.field:
            payload["field"] = self.field
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(BusinessException):
    """Malformed or empty input."""

    def __init__(self, message: str, *, field: str | None = None, details: dict | None = None):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="ValidationError",
            details=details,
            field=field,
        )


class AuthorizationError(BusinessException):
    def __init__(self, required_role: str = "organizer"):
        super().__init__(
            code=BusinessCode.FORBIDDEN,
            message=f"{required_role.capitalize()} role required",
            error_type="AuthorizationError",
            details={"required_role": required_role},
        )


class NotFoundError(BusinessException):
    def __init__(self, resource: str, resource_id: Optional[int] = None):
        details = {"resource": resource}
        if resource_id is not None:
            details["id"] = resource_id
        super().__init__(
            code=BusinessCode.NOT_FOUND,
            message=f"{resource.capitalize()} not found",
            error_type="NotFoundError",
            details=details,
        )


class ConflictError(BusinessException):
    """Uniqueness violation; ``details`` carries the prior state when known."""

    def __init__(self, message: str, *, details: dict | None = None):
        super().__init__(
            code=BusinessCode.CONFLICT,
            message=message,
            error_type="ConflictError",
            details=details,
        )


class StateError(BusinessException):
    def __init__(self, message: str, *, details: dict | None = None):
        super().__init__(
            code=BusinessCode.STATE_ERROR,
            message=message,
            error_type="StateError",
            details=details,
        )


__all__ = [
    "BusinessException",
    "ValidationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "StateError",
]
