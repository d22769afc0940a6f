"""
Route descriptor table.

Single source of truth for every client/server operation: HTTP method, path
template, input schema and one response schema per expected status.

Rules:
- Clients and the reference server MUST NOT hardcode URLs or response shapes;
  everything goes through a descriptor from `API`.
- Which cached reads a mutation makes stale is declared here (`invalidates`),
  not decided at call sites.
- Descriptors are built once at import time and never mutated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel

from .interfaces import (
    AnswerCreate,
    Badge,
    Certificate,
    CertificateIssueRequest,
    ChallengeSubmission,
    ChallengeSubmitRequest,
    DailyProblem,
    Discussion,
    DiscussionCreate,
    DiscussionDetail,
    DiscussionWithAuthor,
    EarnedBadge,
    ForbiddenErrorBody,
    Hackathon,
    HealthStatus,
    InternalErrorBody,
    LeaderboardEntry,
    Lesson,
    LessonCompletion,
    MonthlyChallenge,
    NotFoundErrorBody,
    Problem,
    ProblemFilter,
    Project,
    ProjectCreate,
    ProjectUpdate,
    SubmitCodeRequest,
    SubmitResult,
    SuccessFlag,
    Tutorial,
    TutorialDetail,
    UserProfile,
    UserProgress,
    ValidationErrorBody,
    VoteRequest,
    VoteResult,
)
from .urls import placeholders

logger = logging.getLogger(__name__)


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


ERROR_SCHEMAS: Mapping[int, Any] = MappingProxyType({
    400: ValidationErrorBody,
    401: InternalErrorBody,
    403: ForbiddenErrorBody,
    404: NotFoundErrorBody,
    500: InternalErrorBody,
})


@dataclass(frozen=True, eq=False)
class OperationDescriptor:
    name: str
    method: HttpMethod
    path_template: str
    responses: Mapping[int, Any]
    input_schema: Optional[Type[BaseModel]] = None
    query_schema: Optional[Type[BaseModel]] = None
    empty_on: FrozenSet[int] = frozenset()
    invalidates: Tuple[str, ...] = ()
    requires_auth: bool = False
    club_only: bool = False
    description: str = ""
    placeholders: Tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "placeholders", tuple(placeholders(self.path_template)))
        object.__setattr__(self, "responses", MappingProxyType(dict(self.responses)))

    @property
    def is_mutation(self) -> bool:
        return self.method is not HttpMethod.GET

    @property
    def is_soft_auth(self) -> bool:
        return 401 in self.empty_on

    def schema_for(self, status: int) -> Any:
        return self.responses.get(status)

    @property
    def success_schema(self) -> Any:
        return self.responses[200]


class ApiTable:
    """Immutable registry of descriptors keyed by logical operation name."""

    def __init__(self, descriptors: List[OperationDescriptor]) -> None:
        table: Dict[str, OperationDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in table:
                raise ValueError(f"Duplicate operation name: {descriptor.name}")
            table[descriptor.name] = descriptor
        self._table = MappingProxyType(table)

    def get(self, name: str) -> OperationDescriptor:
        try:
            return self._table[name]
        except KeyError:
            raise KeyError(f"Unknown operation: {name}") from None

    def __getitem__(self, name: str) -> OperationDescriptor:
        return self.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._table

    def __iter__(self) -> Iterator[OperationDescriptor]:
        return iter(self._table.values())

    def __len__(self) -> int:
        return len(self._table)

    def names(self) -> List[str]:
        return list(self._table)

    def reads(self) -> List[OperationDescriptor]:
        return [d for d in self if not d.is_mutation]

    def mutations(self) -> List[OperationDescriptor]:
        return [d for d in self if d.is_mutation]

    def validate(self) -> List[str]:
        """
        Return a list of table errors.
        Empty list means every `invalidates` entry names a known read and every
        descriptor declares a 200 schema.
        """
        errors: List[str] = []
        for descriptor in self:
            if 200 not in descriptor.responses:
                errors.append(f"{descriptor.name}: no 200 response schema")
            for target in descriptor.invalidates:
                if target not in self._table:
                    errors.append(f"{descriptor.name}: invalidates unknown operation '{target}'")
                elif self._table[target].is_mutation:
                    errors.append(f"{descriptor.name}: invalidates mutation '{target}'")
        return errors


def _read(name: str, path: str, schema: Any, **kwargs: Any) -> OperationDescriptor:
    responses = {200: schema}
    for status in kwargs.pop("errors", ()):
        responses[status] = ERROR_SCHEMAS[status]
    return OperationDescriptor(name=name, method=HttpMethod.GET, path_template=path, responses=responses, **kwargs)


def _write(name: str, path: str, schema: Any, method: HttpMethod = HttpMethod.POST, **kwargs: Any) -> OperationDescriptor:
    responses = {200: schema, 400: ValidationErrorBody, 401: InternalErrorBody}
    for status in kwargs.pop("errors", ()):
        responses[status] = ERROR_SCHEMAS[status]
    return OperationDescriptor(
        name=name,
        method=method,
        path_template=path,
        responses=responses,
        requires_auth=kwargs.pop("requires_auth", True),
        **kwargs,
    )


# ---------------------------------------------------------------------------
# The table
# ---------------------------------------------------------------------------

API = ApiTable([
    # -- Problems --
    _read(
        "problems.list", "/api/problems", List[Problem],
        query_schema=ProblemFilter,
        description="Problem catalog with optional category/difficulty/search filters.",
    ),
    _read(
        "problems.daily", "/api/problems/daily", DailyProblem,
        errors=(404,), empty_on=frozenset({404}),
        description="Today's featured problem with its bonus XP.",
    ),
    _read(
        "problems.get", "/api/problems/:slug", Problem,
        errors=(404,), empty_on=frozenset({404}),
    ),
    _write(
        "problems.submit", "/api/problems/:id/submit", SubmitResult,
        input_schema=SubmitCodeRequest,
        errors=(404,),
        invalidates=("user.stats", "problems.list", "problems.get", "leaderboard.list", "user.profile"),
        description="Grade a solution. A first passing submission awards XP.",
    ),
    # -- Tutorials --
    _read("tutorials.list", "/api/tutorials", List[Tutorial]),
    _read(
        "tutorials.get", "/api/tutorials/:slug", TutorialDetail,
        errors=(404,), empty_on=frozenset({404}),
    ),
    _read(
        "tutorials.lesson", "/api/tutorials/:tutorialSlug/lessons/:lessonSlug", Lesson,
        errors=(404,), empty_on=frozenset({404}),
    ),
    _write(
        "tutorials.completeLesson", "/api/lessons/:id/complete", LessonCompletion,
        errors=(404,),
        invalidates=("user.stats", "tutorials.get", "leaderboard.list", "user.profile"),
    ),
    # -- Discussions --
    _read("discussions.list", "/api/discussions", List[DiscussionWithAuthor]),
    _read(
        "discussions.get", "/api/discussions/:id", DiscussionDetail,
        errors=(404,), empty_on=frozenset({404}),
    ),
    _write(
        "discussions.create", "/api/discussions", Discussion,
        input_schema=DiscussionCreate,
        invalidates=("discussions.list",),
    ),
    _write(
        "discussions.answer", "/api/discussions/:id/answers", SuccessFlag,
        input_schema=AnswerCreate,
        errors=(404,),
        invalidates=("discussions.get", "discussions.list"),
    ),
    _write(
        "discussions.vote", "/api/discussions/:id/vote", VoteResult,
        input_schema=VoteRequest,
        errors=(404,),
        invalidates=("discussions.get", "discussions.list"),
    ),
    # -- Leaderboard & badges --
    _read("leaderboard.list", "/api/leaderboard", List[LeaderboardEntry]),
    _read("badges.list", "/api/badges", List[Badge]),
    _read(
        "badges.userBadges", "/api/user/badges", List[EarnedBadge],
        errors=(401,), requires_auth=True,
    ),
    # -- Hackathons --
    _read("hackathons.list", "/api/hackathons", List[Hackathon]),
    # -- User --
    _read(
        "user.stats", "/api/user/stats", UserProgress,
        errors=(401,), empty_on=frozenset({401}), requires_auth=True,
        description="Current user's progress. Anonymous callers get None.",
    ),
    _read(
        "user.profile", "/api/user/profile/:userId", UserProfile,
        errors=(404,), empty_on=frozenset({404}),
    ),
    # -- Club membership (certificates, monthly challenges) --
    _read(
        "certificates.list", "/api/certificates", List[Certificate],
        errors=(401, 403), requires_auth=True, club_only=True,
    ),
    _write(
        "certificates.issue", "/api/certificates", Certificate,
        input_schema=CertificateIssueRequest,
        errors=(403,), club_only=True,
        invalidates=("certificates.list",),
    ),
    _read("challenges.list", "/api/challenges", List[MonthlyChallenge]),
    _read(
        "challenges.get", "/api/challenges/:id", MonthlyChallenge,
        errors=(404,), empty_on=frozenset({404}),
    ),
    _write(
        "challenges.submit", "/api/challenges/:id/submit", ChallengeSubmission,
        input_schema=ChallengeSubmitRequest,
        errors=(403, 404), club_only=True,
        invalidates=("challenges.submissions",),
    ),
    _read(
        "challenges.submissions", "/api/challenges/:id/submissions", List[ChallengeSubmission],
        errors=(401,), requires_auth=True,
    ),
    # -- Portfolio (club members; owners edit their own projects) --
    _read(
        "portfolio.list", "/api/portfolio", List[Project],
        errors=(401, 403), requires_auth=True, club_only=True,
        description="The current member's portfolio projects.",
    ),
    _write(
        "portfolio.create", "/api/portfolio", Project,
        input_schema=ProjectCreate,
        errors=(403,), club_only=True,
        invalidates=("portfolio.list",),
    ),
    _write(
        "portfolio.update", "/api/portfolio/:id", Project,
        method=HttpMethod.PATCH,
        input_schema=ProjectUpdate,
        errors=(403, 404), club_only=True,
        invalidates=("portfolio.list",),
        description="Partial update. 403 when the caller does not own the project.",
    ),
    _write(
        "portfolio.delete", "/api/portfolio/:id", SuccessFlag,
        method=HttpMethod.DELETE,
        errors=(403, 404), club_only=True,
        invalidates=("portfolio.list",),
    ),
    # -- Ops --
    _read("health.check", "/api/health", HealthStatus),
])


def describe(name: str) -> OperationDescriptor:
    return API.get(name)


_table_errors = API.validate()
if _table_errors:
    raise RuntimeError("Invalid route table: " + "; ".join(_table_errors))
logger.debug("Route table loaded with %d operations", len(API))
