"""
Reference API endpoints.

Every path and method comes from the route descriptor table, so a route here
cannot drift from what the clients build. Path parameters arrive as strings
and are parsed here: a malformed id is a 404, the same as a missing record.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from skillquest.database.storage import InMemoryStorage
from skillquest.grading import Grader
from skillquest.integrations.contracts.interfaces import (
    AnswerCreate,
    CertificateIssueRequest,
    ChallengeSubmitRequest,
    ContractModel,
    DiscussionCreate,
    DiscussionDetail,
    DiscussionWithAuthor,
    HealthStatus,
    LessonCompletion,
    ProjectCreate,
    ProjectUpdate,
    SubmitCodeRequest,
    SubmitResult,
    SuccessFlag,
    VoteRequest,
    VoteResult,
)
from skillquest.integrations.contracts.routes import API
from skillquest.integrations.contracts.urls import to_route_path
from skillquest.utils.config_loader import ServerConfig

from .dependencies import (
    get_grader,
    get_server_config,
    get_storage,
    optional_user,
    require_club_member,
    require_user,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _route(name: str):
    descriptor = API.get(name)
    return router.api_route(
        to_route_path(descriptor.path_template),
        methods=[descriptor.method.value],
        name=name,
        summary=descriptor.description or None,
    )


def _wire(value: Any) -> Any:
    if isinstance(value, ContractModel):
        return value.to_wire()
    if isinstance(value, list):
        return [_wire(item) for item in value]
    return value


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


def _parse_id(raw: str, what: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise _not_found(what) from None


# ============================================================================
# PROBLEMS
# ============================================================================

@_route("problems.list")
async def list_problems(
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    search: Optional[str] = None,
    user_id: Optional[str] = Depends(optional_user),
    storage: InMemoryStorage = Depends(get_storage),
):
    problems = storage.get_all_problems(category, difficulty, search)
    if user_id:
        problems = [p.model_copy(update={"is_solved": storage.has_solved(user_id, p.id)}) for p in problems]
    return _wire(problems)


# Registered before problems.get so "daily" is not captured as a slug
@_route("problems.daily")
async def get_daily_problem(storage: InMemoryStorage = Depends(get_storage)):
    daily = storage.get_daily_challenge()
    if daily is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No daily challenge")
    return _wire(daily)


@_route("problems.get")
async def get_problem(
    slug: str,
    user_id: Optional[str] = Depends(optional_user),
    storage: InMemoryStorage = Depends(get_storage),
):
    problem = storage.get_problem_by_slug(slug)
    if problem is None:
        raise _not_found("Problem")
    if user_id:
        problem = problem.model_copy(update={"is_solved": storage.has_solved(user_id, problem.id)})
    return _wire(problem)


@_route("problems.submit")
async def submit_problem(
    id: str,
    payload: SubmitCodeRequest,
    user_id: str = Depends(require_user),
    storage: InMemoryStorage = Depends(get_storage),
    grader: Grader = Depends(get_grader),
):
    problem = storage.get_problem_by_id(_parse_id(id, "Problem"))
    if problem is None:
        raise _not_found("Problem")

    already_solved = storage.has_solved(user_id, problem.id)
    graded = await grader.grade(problem, payload.code, payload.language)
    storage.create_submission(user_id, problem.id, payload.code, "Passed" if graded.passed else "Failed")

    xp_earned = 0
    next_slug = None
    if graded.passed:
        if not already_solved:
            xp_earned = problem.xp_reward
            storage.update_user_progress(user_id, xp_earned, solved=True)
        next_problem = storage.get_next_problem(problem)
        next_slug = next_problem.slug if next_problem else None

    logger.info("Submission user=%s problem=%s passed=%s xp=%d", user_id, problem.slug, graded.passed, xp_earned)
    result = SubmitResult(
        success=True,
        output=graded.output,
        passed=graded.passed,
        xp_earned=xp_earned,
        next_problem_slug=next_slug,
    )
    return _wire(result)


# ============================================================================
# TUTORIALS & LESSONS
# ============================================================================

@_route("tutorials.list")
async def list_tutorials(storage: InMemoryStorage = Depends(get_storage)):
    return _wire(storage.get_all_tutorials())


@_route("tutorials.get")
async def get_tutorial(slug: str, storage: InMemoryStorage = Depends(get_storage)):
    tutorial = storage.get_tutorial_by_slug(slug)
    if tutorial is None:
        raise _not_found("Tutorial")
    return _wire(tutorial)


@_route("tutorials.lesson")
async def get_lesson(tutorialSlug: str, lessonSlug: str, storage: InMemoryStorage = Depends(get_storage)):
    lesson = storage.get_lesson_by_slug(tutorialSlug, lessonSlug)
    if lesson is None:
        raise _not_found("Lesson")
    return _wire(lesson)


@_route("tutorials.completeLesson")
async def complete_lesson(
    id: str,
    user_id: str = Depends(require_user),
    storage: InMemoryStorage = Depends(get_storage),
):
    lesson_id = _parse_id(id, "Lesson")
    if storage.get_lesson_by_id(lesson_id) is None:
        raise _not_found("Lesson")
    xp_earned = storage.complete_lesson(user_id, lesson_id)
    return _wire(LessonCompletion(success=True, xp_earned=xp_earned))


# ============================================================================
# DISCUSSIONS
# ============================================================================

@_route("discussions.list")
async def list_discussions(storage: InMemoryStorage = Depends(get_storage)):
    return _wire([
        DiscussionWithAuthor(**dict(d), author_name=storage.display_name(d.user_id))
        for d in storage.get_all_discussions()
    ])


@_route("discussions.get")
async def get_discussion(id: str, storage: InMemoryStorage = Depends(get_storage)):
    discussion = storage.get_discussion_by_id(_parse_id(id, "Discussion"))
    if discussion is None:
        raise _not_found("Discussion")
    detail = DiscussionDetail(
        **dict(discussion),
        author_name=storage.display_name(discussion.user_id),
        answers=storage.get_answers_for_discussion(discussion.id),
    )
    return _wire(detail)


@_route("discussions.create")
async def create_discussion(
    payload: DiscussionCreate,
    user_id: str = Depends(require_user),
    storage: InMemoryStorage = Depends(get_storage),
):
    return _wire(storage.create_discussion(user_id, payload))


@_route("discussions.answer")
async def answer_discussion(
    id: str,
    payload: AnswerCreate,
    user_id: str = Depends(require_user),
    storage: InMemoryStorage = Depends(get_storage),
):
    discussion_id = _parse_id(id, "Discussion")
    if storage.get_discussion_by_id(discussion_id, count_view=False) is None:
        raise _not_found("Discussion")
    storage.create_answer(user_id, discussion_id, payload.content)
    return _wire(SuccessFlag(success=True))


@_route("discussions.vote")
async def vote_discussion(
    id: str,
    payload: VoteRequest,
    user_id: str = Depends(require_user),
    storage: InMemoryStorage = Depends(get_storage),
):
    discussion_id = _parse_id(id, "Discussion")
    if storage.get_discussion_by_id(discussion_id, count_view=False) is None:
        raise _not_found("Discussion")
    new_count = storage.vote_discussion(user_id, discussion_id, payload.value)
    return _wire(VoteResult(success=True, new_count=new_count))


# ============================================================================
# LEADERBOARD, BADGES, HACKATHONS
# ============================================================================

@_route("leaderboard.list")
async def get_leaderboard(
    storage: InMemoryStorage = Depends(get_storage),
    config: ServerConfig = Depends(get_server_config),
):
    return _wire(storage.get_leaderboard(config.leaderboard_limit))


@_route("badges.list")
async def list_badges(storage: InMemoryStorage = Depends(get_storage)):
    return _wire(storage.get_all_badges())


@_route("badges.userBadges")
async def list_user_badges(
    user_id: str = Depends(require_user),
    storage: InMemoryStorage = Depends(get_storage),
):
    return _wire(storage.get_user_badges(user_id))


@_route("hackathons.list")
async def list_hackathons(storage: InMemoryStorage = Depends(get_storage)):
    return _wire(storage.get_all_hackathons())


# ============================================================================
# USER
# ============================================================================

@_route("user.stats")
async def get_user_stats(
    user_id: str = Depends(require_user),
    storage: InMemoryStorage = Depends(get_storage),
):
    progress = storage.get_user_progress(user_id) or storage.initialize_user_progress(user_id)
    return _wire(progress)


@_route("user.profile")
async def get_user_profile(userId: str, storage: InMemoryStorage = Depends(get_storage)):
    profile = storage.get_user_profile(userId)
    if profile is None:
        raise _not_found("User")
    return _wire(profile)


# ============================================================================
# CLUB MEMBERSHIP: CERTIFICATES & MONTHLY CHALLENGES
# ============================================================================

@_route("certificates.list")
async def list_certificates(
    user_id: str = Depends(require_club_member),
    storage: InMemoryStorage = Depends(get_storage),
):
    return _wire(storage.get_user_certificates(user_id))


@_route("certificates.issue")
async def issue_certificate(
    payload: CertificateIssueRequest,
    user_id: str = Depends(require_club_member),
    storage: InMemoryStorage = Depends(get_storage),
):
    if any(c.tutorial_id == payload.tutorial_id for c in storage.get_user_certificates(user_id)):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Certificate already issued for this course", "field": "tutorialId"},
        )
    certificate = storage.create_certificate(user_id, payload.tutorial_id, f"{payload.tutorial_title} Certificate")
    logger.info("Issued certificate %s to user=%s", certificate.id, user_id)
    return _wire(certificate)


@_route("challenges.list")
async def list_challenges(storage: InMemoryStorage = Depends(get_storage)):
    return _wire(storage.get_all_monthly_challenges())


@_route("challenges.get")
async def get_challenge(id: str, storage: InMemoryStorage = Depends(get_storage)):
    challenge = storage.get_monthly_challenge_by_id(_parse_id(id, "Challenge"))
    if challenge is None:
        raise _not_found("Challenge")
    return _wire(challenge)


@_route("challenges.submit")
async def submit_challenge(
    id: str,
    payload: ChallengeSubmitRequest,
    user_id: str = Depends(require_club_member),
    storage: InMemoryStorage = Depends(get_storage),
):
    challenge = storage.get_monthly_challenge_by_id(_parse_id(id, "Challenge"))
    if challenge is None:
        raise _not_found("Challenge")
    if challenge.end_date is not None and datetime.now(timezone.utc) > challenge.end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Challenge submission period has ended",
        )
    submission = storage.create_challenge_submission(
        user_id,
        challenge.id,
        payload.submission_url,
        description=payload.description,
        project_id=payload.project_id,
    )
    return _wire(submission)


@_route("challenges.submissions")
async def list_challenge_submissions(
    id: str,
    user_id: str = Depends(require_user),
    storage: InMemoryStorage = Depends(get_storage),
):
    challenge_id = _parse_id(id, "Challenge")
    return _wire(storage.get_user_challenge_submissions(user_id, challenge_id))


# ============================================================================
# PORTFOLIO
# ============================================================================

def _owned_project(storage: InMemoryStorage, raw_id: str, user_id: str, action: str):
    project = storage.get_project_by_id(_parse_id(raw_id, "Project"))
    if project is None:
        raise _not_found("Project")
    if project.user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Not authorized to {action} this project",
        )
    return project


@_route("portfolio.list")
async def list_projects(
    user_id: str = Depends(require_club_member),
    storage: InMemoryStorage = Depends(get_storage),
):
    return _wire(storage.get_user_projects(user_id))


@_route("portfolio.create")
async def create_project(
    payload: ProjectCreate,
    user_id: str = Depends(require_club_member),
    storage: InMemoryStorage = Depends(get_storage),
):
    project = storage.create_project(user_id, payload)
    logger.info("User %s created portfolio project %s", user_id, project.id)
    return _wire(project)


@_route("portfolio.update")
async def update_project(
    id: str,
    payload: ProjectUpdate,
    user_id: str = Depends(require_club_member),
    storage: InMemoryStorage = Depends(get_storage),
):
    project = _owned_project(storage, id, user_id, "edit")
    return _wire(storage.update_project(project.id, payload))


@_route("portfolio.delete")
async def delete_project(
    id: str,
    user_id: str = Depends(require_club_member),
    storage: InMemoryStorage = Depends(get_storage),
):
    project = _owned_project(storage, id, user_id, "delete")
    storage.delete_project(project.id)
    return _wire(SuccessFlag(success=True))


# ============================================================================
# HEALTH
# ============================================================================

@_route("health.check")
async def health_check() -> Dict[str, Any]:
    return _wire(HealthStatus(status="ok", timestamp=datetime.now(timezone.utc)))


def registered_operations() -> List[str]:
    """Operation names this router serves, in registration order."""
    return [route.name for route in router.routes]
