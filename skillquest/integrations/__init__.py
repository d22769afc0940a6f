"""
Integrations layer.
This package contains all code used to talk to the SkillQuest platform API.

Key rule:
- Callers MUST NOT build URLs or parse responses by hand.
- Every call goes through an OperationDescriptor from `API` and a PlatformClient.
- We use the IN-PROCESS client during development and tests and swap to the
  REAL_HTTP client when a deployed API is available.

Switching implementations:
- The selection of in-process vs real clients happens in ONE place
  (integrations/clients/__init__.py: create_platform_client).
"""

from .contracts.interfaces import ContractModel, PlatformClient
from .contracts.routes import API, ApiTable, HttpMethod, OperationDescriptor, describe
from .contracts.urls import build_url, unresolved_placeholders, with_query
from .errors import (
    ContractError,
    ForbiddenError,
    HttpStatusError,
    MissingPathParameterError,
    NotFoundError,
    QueryAbandonedError,
    RequestValidationFailed,
    SchemaMismatchError,
    TargetNotFoundError,
    TransportError,
    UnauthenticatedError,
)

__all__ = [
    # contracts
    "API", "ApiTable", "ContractModel", "HttpMethod", "OperationDescriptor",
    "PlatformClient", "describe",
    # urls
    "build_url", "unresolved_placeholders", "with_query",
    # errors
    "ContractError", "ForbiddenError", "HttpStatusError", "MissingPathParameterError",
    "NotFoundError", "QueryAbandonedError", "RequestValidationFailed", "SchemaMismatchError",
    "TargetNotFoundError", "TransportError", "UnauthenticatedError",
]
