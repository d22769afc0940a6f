from datetime import datetime, timedelta, timezone

from skillquest.database.storage import InMemoryStorage
from skillquest.integrations.contracts.interfaces import DiscussionCreate, ProjectCreate, ProjectUpdate


def test_progress_starts_at_level_one(storage):
    progress = storage.initialize_user_progress("user-1")
    assert (progress.level, progress.xp, progress.streak, progress.solved_count) == (1, 0, 1, 0)
    assert storage.initialize_user_progress("user-1") is progress


def test_level_is_derived_from_xp(storage):
    assert storage.update_user_progress("user-1", 499).level == 1
    assert storage.update_user_progress("user-1", 1).level == 2
    assert storage.update_user_progress("user-1", 1000).level == 4


def test_xp_per_level_is_configurable():
    storage = InMemoryStorage(xp_per_level=100)
    assert storage.update_user_progress("user-1", 250).level == 3


def test_only_problem_solves_count_as_solved(storage):
    storage.update_user_progress("user-1", 10, solved=True)
    progress = storage.update_user_progress("user-1", 50)
    assert progress.solved_count == 1


def test_streak_continues_from_yesterday(storage):
    progress = storage.initialize_user_progress("user-1")
    yesterday = datetime.now(timezone.utc) - timedelta(days=1)
    storage._progress["user-1"] = progress.model_copy(update={"last_active": yesterday})

    assert storage.update_user_progress("user-1", 10).streak == 2


def test_streak_resets_after_a_gap(storage):
    progress = storage.initialize_user_progress("user-1")
    storage._progress["user-1"] = progress.model_copy(
        update={"last_active": datetime.now(timezone.utc) - timedelta(days=5), "streak": 9}
    )

    assert storage.update_user_progress("user-1", 10).streak == 1


def test_lesson_xp_awarded_once(storage):
    assert storage.complete_lesson("user-1", 1) == 50
    assert storage.complete_lesson("user-1", 1) == 0
    assert storage.complete_lesson("user-1", 999) == 0
    assert storage.get_user_progress("user-1").xp == 50


def test_badges_are_awarded_on_thresholds(storage):
    storage.update_user_progress("user-1", 100, solved=True)
    slugs = {badge.slug for badge in storage.get_user_badges("user-1")}
    assert slugs == {"first-steps", "xp-100"}

    storage.update_user_progress("user-1", 100, solved=True)
    assert len(storage.get_user_badges("user-1")) == 2


def test_vote_replaces_previous_vote(storage):
    discussion = storage.create_discussion("user-1", DiscussionCreate(title="T", content="C"))
    assert storage.vote_discussion("user-1", discussion.id, 1) == 1
    assert storage.vote_discussion("user-2", discussion.id, 1) == 2
    assert storage.vote_discussion("user-1", discussion.id, -1) == 0
    assert storage.get_discussion_by_id(discussion.id, count_view=False).upvotes == 0


def test_answers_increment_count(storage):
    discussion = storage.create_discussion("user-1", DiscussionCreate(title="T", content="C"))
    storage.create_answer("user-0002", discussion.id, "A1")
    storage.create_answer("user-0003", discussion.id, "A2")

    assert storage.get_discussion_by_id(discussion.id, count_view=False).answers_count == 2
    assert [a.author_name for a in storage.get_answers_for_discussion(discussion.id)] == ["User0002", "User0003"]


def test_sessions(storage):
    token = storage.create_session("user-1")
    assert storage.user_for_session(token) == "user-1"
    assert storage.user_for_session("bogus") is None
    assert storage.user_for_session(None) is None

    storage.end_session(token)
    assert storage.user_for_session(token) is None


def test_tutorial_detail_lists_lessons_in_order(storage):
    tutorial = storage.get_tutorial_by_slug("python-basics")
    assert tutorial.lessons_count == 2
    assert [lesson.slug for lesson in tutorial.lessons] == ["variables", "loops"]
    assert storage.get_lesson_by_slug("html-intro", "loops") is None


def test_project_update_keeps_fields_left_null(storage):
    project = storage.create_project("user-1", ProjectCreate(title="Blog", description="Static site", live_url=""))
    assert project.live_url is None
    assert project.tech_stack == []

    updated = storage.update_project(project.id, ProjectUpdate(repo_url="https://github.com/me/blog", is_public=False))

    assert (updated.title, updated.description) == ("Blog", "Static site")
    assert updated.repo_url == "https://github.com/me/blog"
    assert updated.is_public is False
    assert updated.updated_at >= project.updated_at
    assert storage.update_project(999, ProjectUpdate(title="x")) is None
    assert storage.delete_project(project.id) is True
    assert storage.delete_project(project.id) is False
