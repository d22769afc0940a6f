import pytest

from skillquest.integrations.contracts.urls import (
    build_url,
    placeholders,
    to_route_path,
    unresolved_placeholders,
    with_query,
)
from skillquest.integrations.errors import ContractError, MissingPathParameterError


def test_build_url_substitutes_every_placeholder():
    url = build_url(
        "/api/tutorials/:tutorialSlug/lessons/:lessonSlug",
        {"tutorialSlug": "python-basics", "lessonSlug": "loops"},
    )
    assert url == "/api/tutorials/python-basics/lessons/loops"
    assert unresolved_placeholders(url) == []


def test_build_url_without_params_returns_template():
    assert build_url("/api/problems") == "/api/problems"
    assert build_url("/api/problems/:slug") == "/api/problems/:slug"


def test_unknown_params_are_ignored():
    assert build_url("/api/problems/:slug", {"slug": "two-sum", "page": 2}) == "/api/problems/two-sum"


def test_missing_param_stays_literal():
    url = build_url("/api/problems/:id/submit", {})
    assert url == "/api/problems/:id/submit"
    assert unresolved_placeholders(url) == ["id"]


def test_placeholder_is_matched_as_a_whole_token():
    template = "/api/things/:id/:idOther"
    assert build_url(template, {"id": 1}) == "/api/things/1/:idOther"
    assert build_url(template, {"idOther": 2, "id": 1}) == "/api/things/1/2"


def test_only_first_occurrence_is_replaced():
    assert build_url("/a/:id/b/:id", {"id": 7}) == "/a/7/b/:id"


def test_values_are_percent_encoded_as_one_segment():
    assert build_url("/api/problems/:slug", {"slug": "a?b"}) == "/api/problems/a%3Fb"
    assert build_url("/x/:slug", {"slug": "a/b#c d"}) == "/x/a%2Fb%23c%20d"
    assert build_url("/x/:slug", {"slug": r"a\1"}) == "/x/a%5C1"
    assert build_url("/x/:id", {"id": 42}) == "/x/42"
    assert build_url("/x/:slug", {"slug": "two-sum_2.py~"}) == "/x/two-sum_2.py~"


def test_inserted_values_are_not_rescanned_for_placeholders():
    template = "/x/:id/:idOther"
    assert build_url(template, {"id": ":idOther", "idOther": 2}) == "/x/%3AidOther/2"
    assert build_url("/x/:a/:b", {"a": ":b"}) == "/x/%3Ab/:b"
    assert unresolved_placeholders(build_url("/x/:a/:b", {"a": ":b"})) == ["b"]


def test_strict_mode_raises_on_unresolved():
    with pytest.raises(MissingPathParameterError) as info:
        build_url("/api/tutorials/:tutorialSlug/lessons/:lessonSlug", {"tutorialSlug": "x"}, strict=True)

    assert info.value.missing == ["lessonSlug"]
    assert isinstance(info.value, ValueError)
    assert isinstance(info.value, ContractError)


def test_placeholders_in_order():
    assert placeholders("/api/challenges/:id/submissions") == ["id"]
    assert placeholders("/api/tutorials/:tutorialSlug/lessons/:lessonSlug") == ["tutorialSlug", "lessonSlug"]


def test_unresolved_placeholders_ignores_query_string():
    assert unresolved_placeholders("/api/problems?search=:x") == []


def test_with_query_skips_empty_values_and_keeps_order():
    url = with_query("/api/problems", {"category": "Python", "difficulty": None, "search": "", "page": 2})
    assert url == "/api/problems?category=Python&page=2"


def test_with_query_encodes_values_and_booleans():
    assert with_query("/api/problems", {"search": "two sum", "solved": True}) == "/api/problems?search=two+sum&solved=true"
    assert with_query("/api/problems?x=1", {"y": 2}) == "/api/problems?x=1&y=2"
    assert with_query("/api/problems", {}) == "/api/problems"


def test_to_route_path():
    assert to_route_path("/api/problems/:id/submit") == "/api/problems/{id}/submit"
    assert to_route_path("/api/user/profile/:userId") == "/api/user/profile/{userId}"
