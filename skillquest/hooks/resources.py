"""
Per-resource hooks for the SkillQuest platform API.

Cache keys are `(path_template, *params that vary the result)`. List reads
with filters always carry every filter slot (None when unused) so two calls
with the same filters share one entry.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from skillquest.database.query_cache import QueryCache
from skillquest.integrations.contracts.interfaces import PlatformClient
from skillquest.integrations.contracts.routes import API, ApiTable

from .query import Mutation, Query


class PlatformHooks:
    def __init__(self, client: PlatformClient, cache: Optional[QueryCache] = None, *, table: ApiTable = API) -> None:
        self.client = client
        self.cache = cache if cache is not None else QueryCache()
        self.table = table

    def query(
        self,
        name: str,
        *key_params: Any,
        params: Optional[Dict[str, Any]] = None,
        query: Optional[Dict[str, Any]] = None,
        enabled: bool = True,
    ) -> Query:
        descriptor = self.table.get(name)
        if descriptor.is_mutation:
            raise ValueError(f"{name} is a mutation; use mutation()")

        async def fetcher() -> Any:
            return await self.client.execute(descriptor, params=params, query=query)

        return Query(self.cache, (descriptor.path_template, *key_params), fetcher, enabled=enabled)

    def mutation(self, name: str, **kwargs: Any) -> Mutation:
        return Mutation(self.client, self.cache, self.table.get(name), table=self.table, **kwargs)

    # -- Problems --

    def problems(self, category: Optional[str] = None, difficulty: Optional[str] = None, search: Optional[str] = None) -> Query:
        filters = {"category": category, "difficulty": difficulty, "search": search}
        return self.query("problems.list", category, difficulty, search, query=filters)

    def problem(self, slug: str) -> Query:
        return self.query("problems.get", slug, params={"slug": slug}, enabled=bool(slug))

    def daily_problem(self) -> Query:
        return self.query("problems.daily")

    def submit_code(self) -> Mutation:
        """Variables: id, code, language."""
        return self.mutation("problems.submit")

    # -- Tutorials --

    def tutorials(self) -> Query:
        return self.query("tutorials.list")

    def tutorial(self, slug: str) -> Query:
        return self.query("tutorials.get", slug, params={"slug": slug}, enabled=bool(slug))

    def lesson(self, tutorial_slug: str, lesson_slug: str) -> Query:
        return self.query(
            "tutorials.lesson",
            tutorial_slug,
            lesson_slug,
            params={"tutorialSlug": tutorial_slug, "lessonSlug": lesson_slug},
            enabled=bool(tutorial_slug and lesson_slug),
        )

    def complete_lesson(self) -> Mutation:
        """Variables: id."""
        return self.mutation("tutorials.completeLesson")

    # -- Discussions --

    def discussions(self) -> Query:
        return self.query("discussions.list")

    def discussion(self, discussion_id: int) -> Query:
        return self.query("discussions.get", discussion_id, params={"id": discussion_id})

    def create_discussion(self) -> Mutation:
        """Variables: title, content, tags."""
        return self.mutation("discussions.create")

    def answer_discussion(self) -> Mutation:
        """Variables: id, content."""
        return self.mutation("discussions.answer")

    def vote_discussion(self) -> Mutation:
        """Variables: id, value (-1 or 1)."""
        return self.mutation("discussions.vote")

    # -- Leaderboard, badges, hackathons --

    def leaderboard(self) -> Query:
        return self.query("leaderboard.list")

    def badges(self) -> Query:
        return self.query("badges.list")

    def user_badges(self) -> Query:
        return self.query("badges.userBadges")

    def hackathons(self) -> Query:
        return self.query("hackathons.list")

    # -- User --

    def user_stats(self) -> Query:
        return self.query("user.stats")

    def user_profile(self, user_id: str) -> Query:
        return self.query("user.profile", user_id, params={"userId": user_id}, enabled=bool(user_id))

    # -- Club membership --

    def certificates(self) -> Query:
        return self.query("certificates.list")

    def issue_certificate(self) -> Mutation:
        """Variables: tutorialId, tutorialTitle."""
        return self.mutation("certificates.issue")

    def challenges(self) -> Query:
        return self.query("challenges.list")

    def challenge(self, challenge_id: int) -> Query:
        return self.query("challenges.get", challenge_id, params={"id": challenge_id})

    def challenge_submissions(self, challenge_id: int) -> Query:
        return self.query("challenges.submissions", challenge_id, params={"id": challenge_id})

    def submit_challenge(self) -> Mutation:
        """Variables: id, submissionUrl, description."""
        return self.mutation("challenges.submit")

    # -- Portfolio --

    def portfolio(self) -> Query:
        return self.query("portfolio.list")

    def create_project(self) -> Mutation:
        """Variables: title, description, techStack, liveUrl, repoUrl, imageUrl."""
        return self.mutation("portfolio.create")

    def update_project(self) -> Mutation:
        """Variables: id plus any of the create fields and isPublic."""
        return self.mutation("portfolio.update")

    def delete_project(self) -> Mutation:
        return self.mutation("portfolio.delete")

    # -- Lifecycle --

    async def aclose(self) -> None:
        self.cache.clear()
        await self.client.aclose()
