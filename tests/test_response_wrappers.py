import json

import pytest

from skillquest.integrations.contracts.interfaces import NotFoundErrorBody, Problem
from skillquest.integrations.contracts.routes import API, HttpMethod, OperationDescriptor
from skillquest.integrations.errors import (
    ForbiddenError,
    HttpStatusError,
    NotFoundError,
    RequestValidationFailed,
    SchemaMismatchError,
    TargetNotFoundError,
    UnauthenticatedError,
)
from skillquest.integrations.policy.response_wrappers import (
    parse_response,
    validate_query,
    validate_request_body,
)


def _problem(**overrides):
    body = {
        "id": 1,
        "slug": "hello-world",
        "title": "Hello, World!",
        "description": "Print it.",
        "difficulty": "Easy",
        "category": "Python",
        "language": "python",
        "starterCode": "",
        "testCases": [{"input": "", "expected": "Hello, World!"}],
        "xpReward": 10,
        "order": 1,
    }
    body.update(overrides)
    return body


def _bytes(data):
    return json.dumps(data).encode("utf-8")


def test_valid_list_is_parsed_into_models():
    problems = parse_response(API["problems.list"], 200, _bytes([_problem()]))

    assert len(problems) == 1
    assert isinstance(problems[0], Problem)
    assert problems[0].xp_reward == 10
    assert problems[0].test_cases[0].expected == "Hello, World!"


def test_unknown_fields_are_dropped():
    problem = parse_response(API["problems.get"], 200, _bytes(_problem(internalNote="x")))
    assert "internalNote" not in problem.to_wire()


def test_missing_required_field_is_schema_mismatch():
    body = _problem()
    del body["xpReward"]

    with pytest.raises(SchemaMismatchError) as info:
        parse_response(API["problems.list"], 200, _bytes([body]))

    assert info.value.operation == "problems.list"
    assert info.value.status == 200
    assert any("xpReward" in [str(p) for p in err["loc"]] for err in info.value.errors)


def test_wrong_type_is_not_coerced():
    with pytest.raises(SchemaMismatchError):
        parse_response(API["problems.get"], 200, _bytes(_problem(xpReward="10")))


def test_empty_statuses_resolve_to_none():
    assert parse_response(API["user.stats"], 401, _bytes({"message": "Authentication required"})) is None
    assert parse_response(API["problems.get"], 404, _bytes({"message": "Problem not found"})) is None


def test_404_on_mutation_is_target_not_found():
    with pytest.raises(TargetNotFoundError) as info:
        parse_response(API["problems.submit"], 404, _bytes({"message": "Problem not found"}))
    assert info.value.message == "Problem not found"


def test_404_on_read_without_empty_status_is_not_found():
    descriptor = OperationDescriptor(
        name="test.read",
        method=HttpMethod.GET,
        path_template="/api/test/:id",
        responses={200: Problem, 404: NotFoundErrorBody},
    )
    with pytest.raises(NotFoundError) as info:
        parse_response(descriptor, 404, _bytes({"message": "gone"}))
    assert not isinstance(info.value, TargetNotFoundError)


def test_error_body_must_match_declared_schema():
    with pytest.raises(SchemaMismatchError):
        parse_response(API["problems.submit"], 404, _bytes({"detail": "Problem not found"}))


def test_401_and_403_mapping():
    with pytest.raises(UnauthenticatedError):
        parse_response(API["badges.userBadges"], 401, _bytes({"message": "Authentication required"}))

    with pytest.raises(ForbiddenError) as info:
        parse_response(
            API["certificates.list"],
            403,
            _bytes({"message": "Club membership required", "requiresUpgrade": True}),
        )
    assert info.value.requires_upgrade is True
    assert info.value.status == 403


def test_400_carries_field():
    with pytest.raises(RequestValidationFailed) as info:
        parse_response(
            API["certificates.issue"],
            400,
            _bytes({"message": "Certificate already issued for this course", "field": "tutorialId"}),
        )
    assert info.value.field == "tutorialId"
    assert info.value.to_dict()["field"] == "tutorialId"


def test_undeclared_status_uses_message_or_error_key():
    with pytest.raises(HttpStatusError) as info:
        parse_response(API["problems.list"], 500, _bytes({"error": "boom"}))
    assert info.value.message == "boom"

    with pytest.raises(HttpStatusError) as info:
        parse_response(API["problems.list"], 502, b"")
    assert info.value.message == "Request failed with status 502"


def test_request_body_is_validated_before_sending():
    with pytest.raises(RequestValidationFailed) as info:
        validate_request_body(API["problems.submit"], {"code": "print(1)"})
    assert info.value.field == "language"
    assert info.value.operation == "problems.submit"


def test_request_body_is_sent_in_camel_case():
    payload = validate_request_body(API["certificates.issue"], {"tutorial_id": 1, "tutorial_title": "Python Basics"})
    assert payload == {"tutorialId": 1, "tutorialTitle": "Python Basics"}


def test_request_body_rejects_out_of_range_vote():
    with pytest.raises(RequestValidationFailed) as info:
        validate_request_body(API["discussions.vote"], {"value": 2})
    assert info.value.field == "value"


def test_query_drops_none_filters():
    query = validate_query(API["problems.list"], {"search": "sum", "category": "Python", "difficulty": None})
    assert query == {"category": "Python", "search": "sum"}
    assert validate_query(API["problems.list"], None) == {}
