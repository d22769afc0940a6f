"""
Wire models for the SkillQuest platform API.

Every response shape the platform returns is declared here as an explicit,
closed pydantic model. Field names are snake_case in Python and camelCase on
the wire (the alias generator handles the mapping both ways).

Validation rules shared by all models:
- required fields must be present
- primitive types are checked strictly (a string is never coerced to an int)
- unknown extra fields are dropped, never passed through

The abstract `PlatformClient` at the bottom is the interface both the real
HTTP client and the in-process mock client implement.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from .routes import OperationDescriptor


class ContractModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
        extra="ignore",
    )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Error bodies
# ---------------------------------------------------------------------------

class ValidationErrorBody(ContractModel):
    message: str
    field: Optional[str] = None


class NotFoundErrorBody(ContractModel):
    message: str


class InternalErrorBody(ContractModel):
    message: str


class ForbiddenErrorBody(ContractModel):
    message: str
    requires_upgrade: bool = False


# ---------------------------------------------------------------------------
# Problems ("quests")
# ---------------------------------------------------------------------------

class TestCase(ContractModel):
    __test__ = False  # not a pytest class

    input: str
    expected: str


class Problem(ContractModel):
    id: int
    slug: str
    title: str
    description: str
    difficulty: str                      # Easy / Medium / Hard
    category: str
    language: str
    starter_code: str
    solution: Optional[str] = None
    hints: Optional[List[str]] = None
    test_cases: List[TestCase]
    xp_reward: int
    order: int
    is_solved: Optional[bool] = None


class DailyProblem(Problem):
    bonus_xp: int


class ProblemFilter(ContractModel):
    """Query parameters accepted by the problem list."""

    category: Optional[str] = None
    difficulty: Optional[str] = None
    search: Optional[str] = None


class SubmitCodeRequest(ContractModel):
    code: str
    language: str


class SubmitResult(ContractModel):
    success: bool
    output: str
    passed: bool
    xp_earned: Optional[int] = None
    next_problem_slug: Optional[str] = None


# ---------------------------------------------------------------------------
# Tutorials & lessons
# ---------------------------------------------------------------------------

class Tutorial(ContractModel):
    id: int
    slug: str
    title: str
    description: str
    category: str
    difficulty: str
    image_url: Optional[str] = None
    order: int
    lessons_count: Optional[int] = None
    xp_reward: Optional[int] = None


class Lesson(ContractModel):
    id: int
    tutorial_id: int
    slug: str
    title: str
    content: str                         # markdown
    code_example: Optional[str] = None
    language: Optional[str] = None
    order: int
    xp_reward: Optional[int] = None


class TutorialDetail(Tutorial):
    lessons: List[Lesson]


class LessonCompletion(ContractModel):
    success: bool
    xp_earned: int


# ---------------------------------------------------------------------------
# Discussions
# ---------------------------------------------------------------------------

class Discussion(ContractModel):
    id: int
    user_id: str
    title: str
    content: str
    tags: Optional[List[str]] = None
    views: Optional[int] = None
    upvotes: Optional[int] = None
    answers_count: Optional[int] = None
    is_solved: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DiscussionWithAuthor(Discussion):
    author_name: str


class Answer(ContractModel):
    id: int
    discussion_id: int
    user_id: str
    content: str
    upvotes: Optional[int] = None
    is_accepted: Optional[bool] = None
    created_at: Optional[datetime] = None
    author_name: str


class DiscussionDetail(DiscussionWithAuthor):
    answers: List[Answer]


class DiscussionCreate(ContractModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    tags: Optional[List[str]] = None


class AnswerCreate(ContractModel):
    content: str = Field(min_length=1)


class VoteRequest(ContractModel):
    value: int = Field(ge=-1, le=1)


class SuccessFlag(ContractModel):
    success: bool


class VoteResult(ContractModel):
    success: bool
    new_count: int


# ---------------------------------------------------------------------------
# Leaderboard, badges, users
# ---------------------------------------------------------------------------

class LeaderboardEntry(ContractModel):
    rank: int
    user_id: str
    username: str
    xp: int
    level: int
    solved_count: int
    badge_count: int


class Badge(ContractModel):
    id: int
    slug: str
    name: str
    description: str
    icon: str
    color: str
    xp_required: Optional[int] = None
    problems_required: Optional[int] = None
    category: str                        # achievement / skill / streak


class EarnedBadge(Badge):
    earned_at: datetime


class UserProgress(ContractModel):
    user_id: str
    level: int
    xp: int
    streak: int
    last_active: Optional[datetime] = None
    solved_count: int


class UserProfile(ContractModel):
    user_id: str
    username: str
    xp: int
    level: int
    solved_count: int
    streak: int
    badges: List[EarnedBadge]
    joined_at: Optional[str] = None


# ---------------------------------------------------------------------------
# Hackathons & monthly challenges
# ---------------------------------------------------------------------------

class Hackathon(ContractModel):
    id: int
    title: str
    description: str
    url: str
    start_date: datetime
    end_date: datetime
    platform: str                        # Devpost, Hack2Skill, ...
    image_url: Optional[str] = None
    tags: Optional[List[str]] = None


class MonthlyChallenge(ContractModel):
    id: int
    title: str
    description: str
    month: str                           # YYYY-MM
    prize: Optional[str] = None
    prize_amount: Optional[int] = None
    rules: Optional[str] = None
    image_url: Optional[str] = None
    is_club_only: Optional[bool] = None
    is_active: Optional[bool] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ChallengeSubmitRequest(ContractModel):
    submission_url: str = Field(min_length=1)
    description: Optional[str] = None
    project_id: Optional[int] = None


class ChallengeSubmission(ContractModel):
    id: int
    user_id: str
    challenge_id: int
    project_id: Optional[int] = None
    submission_url: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None         # submitted / reviewed / winner / honorable_mention
    rank: Optional[int] = None
    created_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Certificates
# ---------------------------------------------------------------------------

class CertificateIssueRequest(ContractModel):
    tutorial_id: int
    tutorial_title: str = Field(min_length=1)


class Certificate(ContractModel):
    id: int
    user_id: str
    tutorial_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    issued_at: Optional[datetime] = None
    certificate_url: Optional[str] = None
    certificate_type: str = "course"     # course / challenge / achievement


# ---------------------------------------------------------------------------
# Portfolio
# ---------------------------------------------------------------------------

class Project(ContractModel):
    id: int
    user_id: str
    title: str
    description: str
    tech_stack: List[str] = Field(default_factory=list)
    live_url: Optional[str] = None
    repo_url: Optional[str] = None
    image_url: Optional[str] = None
    is_public: bool = True
    likes: int = 0
    views: int = 0
    featured: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProjectCreate(ContractModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    tech_stack: Optional[List[str]] = None
    live_url: Optional[str] = None
    repo_url: Optional[str] = None
    image_url: Optional[str] = None


class ProjectUpdate(ContractModel):
    """Partial update: only the fields present in the request are changed."""

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    tech_stack: Optional[List[str]] = None
    live_url: Optional[str] = None
    repo_url: Optional[str] = None
    image_url: Optional[str] = None
    is_public: Optional[bool] = None


class HealthStatus(ContractModel):
    status: str
    timestamp: datetime


# ---------------------------------------------------------------------------
# Abstract client interface
# ---------------------------------------------------------------------------

class PlatformClient(ABC):
    """Every platform API client (real or in-process) must implement this interface."""

    @abstractmethod
    async def execute(
        self,
        descriptor: "OperationDescriptor",
        *,
        params: Optional[Mapping[str, Any]] = None,
        query: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        """Issue one operation and return its validated payload (or None for declared-empty statuses)."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release the underlying connection pool."""

    async def __aenter__(self) -> "PlatformClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
