"""
Request/response validation against operation descriptors.

- Successful bodies are validated against the descriptor's 200 schema.
- Statuses the descriptor declares as empty (`empty_on`) resolve to None.
- Every other status becomes a typed ContractError. When the descriptor
  declares a schema for that error status, the body must match it too.

Anything that fails validation is a SchemaMismatchError: the payload is never
coerced or passed through half-parsed.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, TypeAdapter, ValidationError

from skillquest.integrations.contracts.routes import OperationDescriptor
from skillquest.integrations.errors import (
    ContractError,
    ForbiddenError,
    HttpStatusError,
    NotFoundError,
    RequestValidationFailed,
    SchemaMismatchError,
    TargetNotFoundError,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def _adapter(schema: Any) -> TypeAdapter:
    return TypeAdapter(schema)


def parse_response(descriptor: OperationDescriptor, status: int, content: bytes) -> Any:
    if status in descriptor.empty_on:
        logger.debug("%s: status %s resolves to empty result", descriptor.name, status)
        return None

    if 200 <= status < 300:
        schema = descriptor.schema_for(status) or descriptor.success_schema
        return _validate(descriptor, status, schema, content)

    raise error_for_status(descriptor, status, content)


def error_for_status(descriptor: OperationDescriptor, status: int, content: bytes) -> ContractError:
    body = _decode_body(content)
    schema = descriptor.schema_for(status)
    if schema is not None:
        validated = _validate(descriptor, status, schema, content)
        message = validated.message
    else:
        message = str(_first_non_empty(body, "message", "error", default=f"Request failed with status {status}"))

    kwargs: Dict[str, Any] = {"status": status, "operation": descriptor.name, "payload": body}
    if status == 404:
        error_type = TargetNotFoundError if descriptor.is_mutation else NotFoundError
        return error_type(message, **kwargs)
    if status == 401:
        return UnauthenticatedError(message, **kwargs)
    if status == 403:
        return ForbiddenError(message, requires_upgrade=bool(body.get("requiresUpgrade")), **kwargs)
    if status in (400, 422):
        return RequestValidationFailed(message, field=body.get("field"), **kwargs)
    return HttpStatusError(message, **kwargs)


def validate_request_body(descriptor: OperationDescriptor, body: Any) -> Optional[Dict[str, Any]]:
    """Validate a mutation's input and return its wire form (camelCase keys)."""
    schema = descriptor.input_schema
    if schema is None:
        return body
    if body is None:
        body = {}
    model = _build_model(descriptor, schema, body)
    return model.model_dump(mode="json", by_alias=True)


def validate_query(descriptor: OperationDescriptor, query: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Normalise query parameters; declared fields come out in declaration order."""
    if not query:
        return {}
    schema = descriptor.query_schema
    if schema is None:
        return dict(query)
    model = _build_model(descriptor, schema, dict(query))
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def _validate(descriptor: OperationDescriptor, status: int, schema: Any, content: bytes) -> Any:
    try:
        return _adapter(schema).validate_json(content or b"")
    except ValidationError as exc:
        logger.error("Schema mismatch for %s (HTTP %s): %s", descriptor.name, status, exc)
        raise SchemaMismatchError(
            f"Response for {descriptor.name} (HTTP {status}) does not match its contract",
            errors=exc.errors(include_url=False),
            status=status,
            operation=descriptor.name,
            payload=_decode_body(content),
        ) from exc


def _build_model(descriptor: OperationDescriptor, schema: Any, payload: Any) -> BaseModel:
    if isinstance(payload, schema):
        return payload
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        raise RequestValidationFailed(
            f"Invalid input for {descriptor.name}: {first.get('msg', 'invalid value')}",
            field=field,
            operation=descriptor.name,
            payload=payload,
        ) from exc


def _decode_body(content: bytes) -> Dict[str, Any]:
    if not content:
        return {}
    try:
        data = json.loads(content)
    except (TypeError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def _first_non_empty(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return default
