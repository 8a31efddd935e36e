import logging
import pytest
from fastapi import HTTPException

from app.services.journey_errors import PriceUnavailableError, StepOutOfRangeError
from app.utils.errors import error_response, journey_error_response


def test_error_response_logs(caplog):
    caplog.set_level(logging.ERROR, logger="app.utils.errors")
    with pytest.raises(HTTPException):
        raise error_response("Invalid", {"field": "bad"})
    assert any(
        "Invalid" in r.getMessage() and "'field': 'bad'" in r.getMessage()
        for r in caplog.records
    )


def test_journey_error_response_uses_error_field():
    exc = journey_error_response(StepOutOfRangeError("too far"))
    assert exc.status_code == 409
    assert exc.detail == {
        "message": "too far",
        "field_errors": {"step_index": "StepOutOfRangeError"},
    }


def test_journey_error_field_override():
    exc = journey_error_response(PriceUnavailableError("pick a hospital", field="hospital"), 422)
    assert exc.status_code == 422
    assert exc.detail["field_errors"] == {"hospital": "PriceUnavailableError"}
