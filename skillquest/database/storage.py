"""
Lightweight in-memory storage for the reference API server.

This provides the subset of the platform's data access layer that the
routes in skillquest/api/main.py need, so the API (and the in-process client
built on it) can run without a database. It is NOT intended for production
use. Records are the wire contract models themselves.
"""

from __future__ import annotations

import itertools
import secrets
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from skillquest.integrations.contracts.interfaces import (
    Answer,
    Badge,
    Certificate,
    ChallengeSubmission,
    DailyProblem,
    Discussion,
    DiscussionCreate,
    EarnedBadge,
    Hackathon,
    LeaderboardEntry,
    Lesson,
    MonthlyChallenge,
    Problem,
    Project,
    ProjectCreate,
    ProjectUpdate,
    TestCase,
    Tutorial,
    TutorialDetail,
    UserProfile,
    UserProgress,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class User:
    id: str
    username: Optional[str] = None
    membership_status: Optional[str] = None     # active / cancelled / ...
    membership_tier: Optional[str] = None       # club_monthly / club_yearly
    membership_expires_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=_now)


@dataclass
class Submission:
    id: int
    user_id: str
    problem_id: int
    code: str
    status: str                                 # Passed / Failed
    created_at: datetime = field(default_factory=_now)


class InMemoryStorage:
    """
    In-memory stand-in for the platform database.

    Methods are intentionally simple and only support what the API routes
    require.
    """

    def __init__(self, *, xp_per_level: int = 500, default_daily_bonus_xp: int = 50) -> None:
        self.xp_per_level = xp_per_level
        self.default_daily_bonus_xp = default_daily_bonus_xp
        self._ids = itertools.count(1000)

        self._users: Dict[str, User] = {}
        self._sessions: Dict[str, str] = {}
        self._problems: Dict[int, Problem] = {}
        self._daily: Dict[date, Tuple[int, int]] = {}
        self._submissions: List[Submission] = []
        self._progress: Dict[str, UserProgress] = {}
        self._tutorials: Dict[int, Tutorial] = {}
        self._lessons: Dict[int, Lesson] = {}
        self._completed_lessons: Dict[Tuple[str, int], datetime] = {}
        self._discussions: Dict[int, Discussion] = {}
        self._answers: Dict[int, Answer] = {}
        self._votes: Dict[Tuple[str, str, int], int] = {}
        self._badges: Dict[int, Badge] = {}
        self._user_badges: Dict[Tuple[str, int], datetime] = {}
        self._hackathons: Dict[int, Hackathon] = {}
        self._certificates: Dict[int, Certificate] = {}
        self._challenges: Dict[int, MonthlyChallenge] = {}
        self._challenge_submissions: Dict[int, ChallengeSubmission] = {}
        self._projects: Dict[int, Project] = {}

    def _next_id(self) -> int:
        return next(self._ids)

    # ------------------------------------------------------------------ #
    # Users & sessions
    # ------------------------------------------------------------------ #
    def get_or_create_user(self, user_id: str, username: Optional[str] = None) -> User:
        user = self._users.get(user_id)
        if user is None:
            user = User(id=user_id, username=username)
            self._users[user_id] = user
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def create_session(self, user_id: str) -> str:
        self.get_or_create_user(user_id)
        token = secrets.token_urlsafe(16)
        self._sessions[token] = user_id
        return token

    def user_for_session(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        return self._sessions.get(token)

    def end_session(self, token: str) -> None:
        self._sessions.pop(token, None)

    def set_membership(
        self,
        user_id: str,
        tier: Optional[str],
        status: str = "active",
        expires_at: Optional[datetime] = None,
    ) -> User:
        user = self.get_or_create_user(user_id)
        user.membership_tier = tier
        user.membership_status = status
        user.membership_expires_at = expires_at
        return user

    # ------------------------------------------------------------------ #
    # Problems & submissions
    # ------------------------------------------------------------------ #
    def add_problem(self, problem: Problem) -> Problem:
        self._problems[problem.id] = problem
        return problem

    def get_all_problems(
        self,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Problem]:
        result = list(self._problems.values())
        if category and category != "all":
            result = [p for p in result if p.category == category]
        if difficulty and difficulty != "all":
            result = [p for p in result if p.difficulty == difficulty]
        if search:
            needle = search.lower()
            result = [p for p in result if needle in p.title.lower() or needle in p.description.lower()]
        return sorted(result, key=lambda p: p.order)

    def get_problem_by_slug(self, slug: str) -> Optional[Problem]:
        return next((p for p in self._problems.values() if p.slug == slug), None)

    def get_problem_by_id(self, problem_id: int) -> Optional[Problem]:
        return self._problems.get(problem_id)

    def get_next_problem(self, problem: Problem) -> Optional[Problem]:
        later = [p for p in self._problems.values() if p.order > problem.order]
        return min(later, key=lambda p: p.order) if later else None

    def set_daily_challenge(self, problem_id: int, on: date, bonus_xp: Optional[int] = None) -> None:
        self._daily[on] = (problem_id, bonus_xp if bonus_xp is not None else self.default_daily_bonus_xp)

    def get_daily_challenge(self, today: Optional[date] = None) -> Optional[DailyProblem]:
        today = today or _now().date()
        scheduled = self._daily.get(today)
        if scheduled:
            problem = self.get_problem_by_id(scheduled[0])
            if problem:
                return DailyProblem(**dict(problem), bonus_xp=scheduled[1])

        # Fallback: first problem in catalog order
        problems = self.get_all_problems()
        if problems:
            return DailyProblem(**dict(problems[0]), bonus_xp=self.default_daily_bonus_xp)
        return None

    def create_submission(self, user_id: str, problem_id: int, code: str, status: str) -> Submission:
        submission = Submission(id=self._next_id(), user_id=user_id, problem_id=problem_id, code=code, status=status)
        self._submissions.append(submission)
        return submission

    def get_user_submissions(self, user_id: str, problem_id: int) -> List[Submission]:
        subs = [s for s in self._submissions if s.user_id == user_id and s.problem_id == problem_id]
        return sorted(subs, key=lambda s: s.created_at, reverse=True)

    def has_solved(self, user_id: str, problem_id: int) -> bool:
        return any(s.status == "Passed" for s in self.get_user_submissions(user_id, problem_id))

    # ------------------------------------------------------------------ #
    # Progress, leaderboard & badges
    # ------------------------------------------------------------------ #
    def get_user_progress(self, user_id: str) -> Optional[UserProgress]:
        return self._progress.get(user_id)

    def initialize_user_progress(self, user_id: str) -> UserProgress:
        existing = self._progress.get(user_id)
        if existing:
            return existing
        self.get_or_create_user(user_id)
        progress = UserProgress(user_id=user_id, level=1, xp=0, streak=1, last_active=_now(), solved_count=0)
        self._progress[user_id] = progress
        return progress

    def update_user_progress(self, user_id: str, xp_gain: int, *, solved: bool = False) -> UserProgress:
        current = self.initialize_user_progress(user_id)
        new_xp = current.xp + xp_gain
        last_active = current.last_active or _now()
        streak = current.streak
        today = _now().date()
        if last_active.date() == today - timedelta(days=1):
            streak += 1
        elif last_active.date() < today - timedelta(days=1):
            streak = 1

        updated = current.model_copy(update={
            "xp": new_xp,
            "level": new_xp // self.xp_per_level + 1,
            "streak": streak,
            "last_active": _now(),
            "solved_count": current.solved_count + (1 if solved else 0),
        })
        self._progress[user_id] = updated
        self.award_earned_badges(user_id)
        return updated

    def get_leaderboard(self, limit: int = 50) -> List[LeaderboardEntry]:
        ranked = sorted(self._progress.values(), key=lambda p: p.xp, reverse=True)[:limit]
        return [
            LeaderboardEntry(
                rank=index + 1,
                user_id=p.user_id,
                username=self.display_name(p.user_id, prefix="Coder"),
                xp=p.xp,
                level=p.level,
                solved_count=p.solved_count,
                badge_count=len(self.get_user_badges(p.user_id)),
            )
            for index, p in enumerate(ranked)
        ]

    def display_name(self, user_id: str, prefix: str = "User") -> str:
        user = self._users.get(user_id)
        if user is not None and user.username:
            return user.username
        return f"{prefix}{user_id[-4:]}"

    def add_badge(self, badge: Badge) -> Badge:
        self._badges[badge.id] = badge
        return badge

    def get_all_badges(self) -> List[Badge]:
        return list(self._badges.values())

    def get_user_badges(self, user_id: str) -> List[EarnedBadge]:
        return [
            EarnedBadge(**dict(self._badges[badge_id]), earned_at=earned_at)
            for (owner, badge_id), earned_at in self._user_badges.items()
            if owner == user_id and badge_id in self._badges
        ]

    def award_badge(self, user_id: str, badge_id: int) -> bool:
        key = (user_id, badge_id)
        if key in self._user_badges or badge_id not in self._badges:
            return False
        self._user_badges[key] = _now()
        return True

    def award_earned_badges(self, user_id: str) -> List[int]:
        progress = self._progress.get(user_id)
        if progress is None:
            return []
        awarded: List[int] = []
        for badge in self._badges.values():
            by_xp = badge.xp_required is not None and progress.xp >= badge.xp_required
            by_solved = badge.problems_required is not None and progress.solved_count >= badge.problems_required
            if (by_xp or by_solved) and self.award_badge(user_id, badge.id):
                awarded.append(badge.id)
        return awarded

    def get_user_profile(self, user_id: str) -> Optional[UserProfile]:
        user = self._users.get(user_id)
        progress = self._progress.get(user_id)
        if user is None and progress is None:
            return None
        progress = progress or self.initialize_user_progress(user_id)
        user = user or self.get_or_create_user(user_id)
        return UserProfile(
            user_id=user_id,
            username=self.display_name(user_id, prefix="Coder"),
            xp=progress.xp,
            level=progress.level,
            solved_count=progress.solved_count,
            streak=progress.streak,
            badges=self.get_user_badges(user_id),
            joined_at=user.created_at.isoformat(),
        )

    # ------------------------------------------------------------------ #
    # Tutorials & lessons
    # ------------------------------------------------------------------ #
    def add_tutorial(self, tutorial: Tutorial, lessons: List[Lesson]) -> TutorialDetail:
        self._tutorials[tutorial.id] = tutorial.model_copy(update={"lessons_count": len(lessons)})
        for lesson in lessons:
            self._lessons[lesson.id] = lesson
        return self.get_tutorial_by_slug(tutorial.slug)

    def get_all_tutorials(self) -> List[Tutorial]:
        return sorted(self._tutorials.values(), key=lambda t: t.order)

    def get_tutorial_by_slug(self, slug: str) -> Optional[TutorialDetail]:
        tutorial = next((t for t in self._tutorials.values() if t.slug == slug), None)
        if tutorial is None:
            return None
        lessons = sorted(
            (lesson for lesson in self._lessons.values() if lesson.tutorial_id == tutorial.id),
            key=lambda lesson: lesson.order,
        )
        return TutorialDetail(**dict(tutorial), lessons=lessons)

    def get_lesson_by_slug(self, tutorial_slug: str, lesson_slug: str) -> Optional[Lesson]:
        tutorial = self.get_tutorial_by_slug(tutorial_slug)
        if tutorial is None:
            return None
        return next((lesson for lesson in tutorial.lessons if lesson.slug == lesson_slug), None)

    def get_lesson_by_id(self, lesson_id: int) -> Optional[Lesson]:
        return self._lessons.get(lesson_id)

    def complete_lesson(self, user_id: str, lesson_id: int) -> int:
        """Mark a lesson complete and return the XP earned (0 when already completed)."""
        lesson = self._lessons.get(lesson_id)
        if lesson is None or (user_id, lesson_id) in self._completed_lessons:
            return 0
        self._completed_lessons[(user_id, lesson_id)] = _now()
        xp_earned = lesson.xp_reward if lesson.xp_reward is not None else 50
        self.update_user_progress(user_id, xp_earned)
        return xp_earned

    # ------------------------------------------------------------------ #
    # Discussions
    # ------------------------------------------------------------------ #
    def get_all_discussions(self) -> List[Discussion]:
        return sorted(self._discussions.values(), key=lambda d: d.created_at or _now(), reverse=True)

    def get_discussion_by_id(self, discussion_id: int, *, count_view: bool = True) -> Optional[Discussion]:
        discussion = self._discussions.get(discussion_id)
        if discussion is not None and count_view:
            discussion = discussion.model_copy(update={"views": (discussion.views or 0) + 1})
            self._discussions[discussion_id] = discussion
        return discussion

    def create_discussion(self, user_id: str, data: DiscussionCreate) -> Discussion:
        now = _now()
        discussion = Discussion(
            id=self._next_id(),
            user_id=user_id,
            title=data.title,
            content=data.content,
            tags=data.tags or [],
            views=0,
            upvotes=0,
            answers_count=0,
            is_solved=False,
            created_at=now,
            updated_at=now,
        )
        self._discussions[discussion.id] = discussion
        return discussion

    def create_answer(self, user_id: str, discussion_id: int, content: str) -> Answer:
        answer = Answer(
            id=self._next_id(),
            discussion_id=discussion_id,
            user_id=user_id,
            content=content,
            upvotes=0,
            is_accepted=False,
            created_at=_now(),
            author_name=self.display_name(user_id),
        )
        self._answers[answer.id] = answer
        discussion = self._discussions[discussion_id]
        self._discussions[discussion_id] = discussion.model_copy(
            update={"answers_count": (discussion.answers_count or 0) + 1, "updated_at": _now()}
        )
        return answer

    def get_answers_for_discussion(self, discussion_id: int) -> List[Answer]:
        answers = [a for a in self._answers.values() if a.discussion_id == discussion_id]
        return sorted(answers, key=lambda a: (-(a.upvotes or 0), a.created_at or _now()))

    def vote_discussion(self, user_id: str, discussion_id: int, value: int) -> int:
        """Record (or replace) a user's vote and return the discussion's new total."""
        self._votes[(user_id, "discussion", discussion_id)] = value
        total = sum(v for (_, kind, target), v in self._votes.items() if kind == "discussion" and target == discussion_id)
        discussion = self._discussions[discussion_id]
        self._discussions[discussion_id] = discussion.model_copy(update={"upvotes": total})
        return total

    # ------------------------------------------------------------------ #
    # Hackathons
    # ------------------------------------------------------------------ #
    def add_hackathon(self, hackathon: Hackathon) -> Hackathon:
        self._hackathons[hackathon.id] = hackathon
        return hackathon

    def get_all_hackathons(self) -> List[Hackathon]:
        return sorted(self._hackathons.values(), key=lambda h: h.start_date)

    # ------------------------------------------------------------------ #
    # Certificates
    # ------------------------------------------------------------------ #
    def get_user_certificates(self, user_id: str) -> List[Certificate]:
        return [c for c in self._certificates.values() if c.user_id == user_id]

    def create_certificate(self, user_id: str, tutorial_id: int, title: str) -> Certificate:
        certificate = Certificate(
            id=self._next_id(),
            user_id=user_id,
            tutorial_id=tutorial_id,
            title=title,
            issued_at=_now(),
            certificate_type="course",
        )
        self._certificates[certificate.id] = certificate
        return certificate

    # ------------------------------------------------------------------ #
    # Monthly challenges
    # ------------------------------------------------------------------ #
    def add_challenge(self, challenge: MonthlyChallenge) -> MonthlyChallenge:
        self._challenges[challenge.id] = challenge
        return challenge

    def get_all_monthly_challenges(self) -> List[MonthlyChallenge]:
        return sorted(self._challenges.values(), key=lambda c: c.month, reverse=True)

    def get_monthly_challenge_by_id(self, challenge_id: int) -> Optional[MonthlyChallenge]:
        return self._challenges.get(challenge_id)

    def create_challenge_submission(
        self,
        user_id: str,
        challenge_id: int,
        submission_url: str,
        description: Optional[str] = None,
        project_id: Optional[int] = None,
    ) -> ChallengeSubmission:
        submission = ChallengeSubmission(
            id=self._next_id(),
            user_id=user_id,
            challenge_id=challenge_id,
            project_id=project_id,
            submission_url=submission_url,
            description=description,
            status="submitted",
            created_at=_now(),
        )
        self._challenge_submissions[submission.id] = submission
        return submission

    def get_user_challenge_submissions(self, user_id: str, challenge_id: int) -> List[ChallengeSubmission]:
        return [
            s for s in self._challenge_submissions.values()
            if s.user_id == user_id and s.challenge_id == challenge_id
        ]

    # ------------------------------------------------------------------ #
    # Portfolio projects
    # ------------------------------------------------------------------ #
    def get_user_projects(self, user_id: str) -> List[Project]:
        projects = [p for p in self._projects.values() if p.user_id == user_id]
        return sorted(projects, key=lambda p: p.id, reverse=True)

    def get_project_by_id(self, project_id: int) -> Optional[Project]:
        return self._projects.get(project_id)

    def create_project(self, user_id: str, data: ProjectCreate) -> Project:
        now = _now()
        project = Project(
            id=self._next_id(),
            user_id=user_id,
            title=data.title,
            description=data.description,
            tech_stack=list(data.tech_stack or []),
            live_url=data.live_url or None,
            repo_url=data.repo_url or None,
            image_url=data.image_url or None,
            is_public=True,
            created_at=now,
            updated_at=now,
        )
        self._projects[project.id] = project
        return project

    def update_project(self, project_id: int, changes: ProjectUpdate) -> Optional[Project]:
        """Apply the non-null fields of `changes`; returns None for an unknown id."""
        project = self._projects.get(project_id)
        if project is None:
            return None
        fields = dict(project)
        fields.update({name: value for name, value in changes if value is not None})
        fields["updated_at"] = _now()
        updated = Project(**fields)
        self._projects[project_id] = updated
        return updated

    def delete_project(self, project_id: int) -> bool:
        return self._projects.pop(project_id, None) is not None


def seed_demo_data(storage: InMemoryStorage) -> InMemoryStorage:
    """Load a small catalog so a fresh server has something to serve."""
    problems = [
        Problem(
            id=1, slug="hello-world", title="Hello, World!", order=1,
            description="Print 'Hello, World!' to the console.",
            difficulty="Easy", category="Python", language="python",
            starter_code="# Print Hello, World!\n",
            solution="print('Hello, World!')",
            hints=["Use the print function."],
            test_cases=[TestCase(input="", expected="Hello, World!")],
            xp_reward=10,
        ),
        Problem(
            id=2, slug="sum-two-numbers", title="Sum Two Numbers", order=2,
            description="Return the sum of a and b using a loop-free expression.",
            difficulty="Easy", category="Python", language="python",
            starter_code="def solve(a, b):\n    pass\n",
            solution="def solve(a, b):\n    return a + b\n",
            hints=["The + operator adds numbers."],
            test_cases=[TestCase(input="1 2", expected="3"), TestCase(input="-1 1", expected="0")],
            xp_reward=10,
        ),
        Problem(
            id=3, slug="sum-loop", title="Sum with a Loop", order=3,
            description="Add every number in a list with a for loop.",
            difficulty="Easy", category="Python", language="python",
            starter_code="def solve(nums):\n    total = 0\n    return total\n",
            test_cases=[TestCase(input="[1, 2, 3]", expected="6")],
            xp_reward=15,
        ),
        Problem(
            id=4, slug="reverse-string", title="Reverse a String", order=4,
            description="Return the input string reversed.",
            difficulty="Medium", category="JavaScript", language="javascript",
            starter_code="function solve(s) {\n}\n",
            test_cases=[TestCase(input="abc", expected="cba")],
            xp_reward=20,
        ),
        Problem(
            id=5, slug="two-sum", title="Two Sum", order=5,
            description="Find the indices of the two numbers that add up to target.",
            difficulty="Hard", category="Algorithms", language="python",
            starter_code="def solve(nums, target):\n    pass\n",
            test_cases=[TestCase(input="[2, 7, 11, 15] 9", expected="[0, 1]")],
            xp_reward=50,
        ),
    ]
    for problem in problems:
        storage.add_problem(problem)

    storage.add_tutorial(
        Tutorial(
            id=1, slug="python-basics", title="Python Basics", order=1,
            description="Variables, printing and control flow.",
            category="Python", difficulty="Beginner", xp_reward=500,
        ),
        [
            Lesson(id=1, tutorial_id=1, slug="variables", title="Variables", order=1,
                   content="# Variables\nA variable names a value.", code_example="x = 5", language="python", xp_reward=50),
            Lesson(id=2, tutorial_id=1, slug="loops", title="Loops", order=2,
                   content="# Loops\n`for` repeats a block.", code_example="for i in range(3):\n    print(i)",
                   language="python", xp_reward=50),
        ],
    )
    storage.add_tutorial(
        Tutorial(
            id=2, slug="html-intro", title="Intro to HTML", order=2,
            description="Tags, attributes and page structure.",
            category="HTML", difficulty="Beginner", xp_reward=500,
        ),
        [
            Lesson(id=3, tutorial_id=2, slug="tags", title="Tags", order=1,
                   content="# Tags\nElements are written with tags.", language="html", xp_reward=50),
        ],
    )

    for badge in (
        Badge(id=1, slug="first-steps", name="First Steps", description="Solve your first problem.",
              icon="Footprints", color="text-green-500", problems_required=1, category="achievement"),
        Badge(id=2, slug="xp-100", name="Century", description="Earn 100 XP.",
              icon="Zap", color="text-yellow-500", xp_required=100, category="achievement"),
        Badge(id=3, slug="streak-7", name="On Fire", description="Keep a 7 day streak.",
              icon="Flame", color="text-orange-500", category="streak"),
    ):
        storage.add_badge(badge)

    now = _now()
    storage.add_hackathon(Hackathon(
        id=1, title="Global AI Sprint", description="Build an AI tool in 48 hours.",
        url="https://devpost.com", platform="Devpost",
        start_date=now + timedelta(days=7), end_date=now + timedelta(days=9), tags=["AI", "Python"],
    ))
    storage.add_hackathon(Hackathon(
        id=2, title="Web for Good", description="Ship a site for a local nonprofit.",
        url="https://hack2skill.com", platform="Hack2Skill",
        start_date=now + timedelta(days=21), end_date=now + timedelta(days=23), tags=["Web"],
    ))

    storage.add_challenge(MonthlyChallenge(
        id=1, title="Build a CLI Game", description="Ship a playable terminal game.",
        month=now.strftime("%Y-%m"), prize="Club hoodie", is_club_only=False, is_active=True,
        start_date=now - timedelta(days=1), end_date=now + timedelta(days=30), created_at=now,
    ))

    storage.set_daily_challenge(problem_id=2, on=now.date())
    return storage
