import logging

import pytest
from pydantic import ValidationError

from rentals.config.logging import CustomJsonFormatter, build_logging_config
from rentals.config.settings import Settings
from rentals.core.exceptions import DuplicateReviewError


def test_cors_origins_accept_comma_separated_string():
    settings = Settings(CORS_ORIGINS="https://a.example, https://b.example")
    assert settings.CORS_ORIGINS == ["https://a.example", "https://b.example"]


def test_unknown_geocoding_provider_is_rejected():
    with pytest.raises(ValidationError):
        Settings(GEOCODING_PROVIDER="mapquest")


def test_worker_count_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(SEARCH_MAX_WORKERS=0)


def test_file_handlers_only_when_requested():
    assert set(build_logging_config(log_to_file=False)["handlers"]) == {"console"}
    assert {"file", "error_file", "json_file"} <= set(build_logging_config(log_to_file=True)["handlers"])


def test_json_formatter_adds_service_fields():
    formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(logger)s %(message)s")
    record = logging.LogRecord("rentals.search", logging.INFO, __file__, 1, "Search completed", None, None)
    record.request_id = "req-1"

    output = formatter.format(record)

    assert '"level": "INFO"' in output
    assert '"request_id": "req-1"' in output


def test_error_payload_shape():
    payload = DuplicateReviewError("booking-1").to_dict()["error"]

    assert payload["type"] == "DuplicateReviewError"
    assert payload["details"]["booking_id"] == "booking-1"
    assert payload["details"]["field_errors"] == {"booking_id": ["already reviewed"]}
