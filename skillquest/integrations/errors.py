"""
Error taxonomy for platform API calls.

Every failure the contract layer surfaces is a ContractError subclass, so
presentation code can catch one type while alerting can still tell the kinds
apart (a SchemaMismatchError means client and server drifted apart, which is
never a user mistake).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class ContractError(Exception):
    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        operation: Optional[str] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.operation = operation
        self.payload = payload

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "status": self.status,
            "operation": self.operation,
        }


class TransportError(ContractError):
    """The request could not be sent or no response came back."""


class SchemaMismatchError(ContractError):
    """A response arrived but does not match the schema declared for its status."""

    def __init__(self, message: str, *, errors: Optional[List[Dict[str, Any]]] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.errors = errors or []


class HttpStatusError(ContractError):
    """Non-2xx status without a more specific meaning."""


class NotFoundError(HttpStatusError):
    pass


class TargetNotFoundError(NotFoundError):
    """404 from a mutation: the request was well-formed but the referenced id does not exist."""


class UnauthenticatedError(HttpStatusError):
    pass


class ForbiddenError(HttpStatusError):
    def __init__(self, message: str, *, requires_upgrade: bool = False, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.requires_upgrade = requires_upgrade


class QueryAbandonedError(ContractError):
    """The fetch this caller joined was cancelled before it produced a value."""


class MissingPathParameterError(ContractError, ValueError):
    """Strict URL building found placeholders with no value."""

    def __init__(self, template: str, missing: List[str]) -> None:
        super().__init__(f"Missing path parameter(s) {', '.join(missing)} for '{template}'")
        self.template = template
        self.missing = missing


class RequestValidationFailed(HttpStatusError):
    def __init__(self, message: str, *, field: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["field"] = self.field
        return data


__all__ = [
    "ContractError",
    "ForbiddenError",
    "HttpStatusError",
    "MissingPathParameterError",
    "NotFoundError",
    "QueryAbandonedError",
    "RequestValidationFailed",
    "SchemaMismatchError",
    "TargetNotFoundError",
    "TransportError",
    "UnauthenticatedError",
]
