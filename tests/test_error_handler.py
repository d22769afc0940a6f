import logging

from skillquest.error_handler import ErrorHandler


def test_response_body_hides_details():
    body = ErrorHandler().to_response_body(ValueError("secret detail"))
    assert set(body) == {"message"}
    assert "internal error" in body["message"].lower()
    assert "secret" not in body["message"]


def test_details_and_request_context_are_logged(caplog):
    with caplog.at_level(logging.ERROR, logger="skillquest.error_handler"):
        ErrorHandler(message="Try later").to_response_body(
            RuntimeError("sandbox down"), {"method": "POST", "path": "/api/problems/1/submit"}
        )

    record = caplog.records[-1]
    assert record.getMessage() == "Unhandled RuntimeError on POST /api/problems/1/submit: sandbox down"
    assert record.exc_info[0] is RuntimeError
