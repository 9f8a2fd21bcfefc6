"""Tests for settings, exceptions and envelope rendering."""

import json
import logging
from collections.abc import Iterator

import pytest
from pydantic import ValidationError as PydanticValidationError

from rcgateway.api.responses import envelope_response, envelope_status_code
from rcgateway.config import Settings
from rcgateway.core.database import _mask_password
from rcgateway.core.exceptions import (
    MissingAuthorizationError,
    RCDetailsNotFoundError,
    ValidationError,
)
from rcgateway.core.logging import (
    OWNER_FIELDS,
    REDACTED,
    configure_logging,
    get_logger,
    redact_owner_data,
)

# =============================================================================
# Settings Tests
# =============================================================================


class TestSettings:
    """Tests for Settings."""

    def test_rc_details_url_joins_cleanly(self) -> None:
        settings = Settings(
            rc_api_base_url="https://rc.example.test/api/v1/",
            rc_details_path="/rc/rc_verify",
        )

        assert settings.rc_details_url == "https://rc.example.test/api/v1/rc/rc_verify"

    def test_table_name_must_be_identifier(self) -> None:
        with pytest.raises(PydanticValidationError):
            Settings(rc_db_table="rc_details; DROP TABLE users")

    def test_production_uses_json_logs(self) -> None:
        settings = Settings(app_env="production", log_format="console")  # type: ignore[arg-type]

        assert settings.use_json_logs is True

    def test_mask_password(self) -> None:
        masked = _mask_password("postgresql+asyncpg://rc:secret@db:5432/rc")

        assert masked == "postgresql+asyncpg://rc:****@db:5432/rc"


# =============================================================================
# Exception Tests
# =============================================================================


class TestExceptions:
    """Tests for the failure envelope produced by exceptions."""

    def test_missing_authorization_envelope(self) -> None:
        envelope = MissingAuthorizationError().to_dict(request_id="req-1")

        assert envelope == {
            "status": False,
            "statuscode": 401,
            "message": "Missing Authorization header",
            "error": {"code": "MISSING_AUTHORIZATION", "request_id": "req-1"},
        }

    def test_not_found_includes_rc_number(self) -> None:
        exc = RCDetailsNotFoundError(rc_number="MH12AB1234")

        assert exc.status_code == 404
        assert "MH12AB1234" in exc.message
        assert exc.to_dict()["error"]["details"] == {"rc_number": "MH12AB1234"}

    def test_validation_error_field(self) -> None:
        exc = ValidationError("bad input", field="id_number")

        assert exc.to_dict()["error"]["details"] == {"field": "id_number"}


# =============================================================================
# Envelope Status Tests
# =============================================================================


class TestEnvelopeStatusCode:
    """Tests for mapping envelopes to HTTP status codes."""

    @pytest.mark.parametrize(
        ("statuscode", "expected"),
        [
            (404, 404),
            (401, 401),
            (503, 503),
            (None, 502),
            (200, 502),
            (999, 502),
            ("404", 502),
        ],
    )
    def test_failure_codes(self, statuscode: object, expected: int) -> None:
        envelope = {"status": False, "statuscode": statuscode, "message": "x"}

        assert envelope_status_code(envelope) == expected

    def test_success_is_ok(self) -> None:
        envelope = {"status": True, "statuscode": 201, "message": "x"}

        assert envelope_status_code(envelope) == 200

    def test_response_body_is_unchanged(self) -> None:
        envelope = {"status": True, "data": {"cubic_capacity": 1197}, "extra": [1]}

        response = envelope_response(envelope)

        assert response.status_code == 200
        assert json.loads(response.body) == envelope


# =============================================================================
# Logging Tests
# =============================================================================


class TestRedactOwnerData:
    """Tests for the owner data redaction processor."""

    def test_masks_top_level_owner_fields(self) -> None:
        event = redact_owner_data(
            None,
            "info",
            {"event": "rc_cached", "rc_number": "MH12AB1234", "owner_name": "RAHUL"},
        )

        assert event["owner_name"] == REDACTED
        assert event["rc_number"] == "MH12AB1234"

    def test_masks_nested_owner_fields(self) -> None:
        event = redact_owner_data(
            None,
            "info",
            {
                "event": "rc_upstream_response",
                "data": {"mobile_number": "9876543210", "color": "WHITE"},
                "records": [{"father_name": "SURESH", "present_address": ""}],
            },
        )

        assert event["data"] == {"mobile_number": REDACTED, "color": "WHITE"}
        assert event["records"] == [{"father_name": REDACTED, "present_address": ""}]

    def test_owner_fields_cover_addresses(self) -> None:
        assert {"present_address", "permanent_address"} <= OWNER_FIELDS


class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self) -> Iterator[None]:
        root_logger = logging.getLogger()
        handlers, level = root_logger.handlers[:], root_logger.level
        yield
        root_logger.handlers[:] = handlers
        root_logger.setLevel(level)

    @pytest.mark.parametrize("log_format", ["json", "console"])
    def test_installs_single_root_handler(self, log_format: str) -> None:
        settings = Settings(
            log_format=log_format,  # type: ignore[arg-type]
            log_level="WARNING",  # type: ignore[arg-type]
        )

        configure_logging(settings)
        configure_logging(settings)

        root_logger = logging.getLogger()
        assert len(root_logger.handlers) == 1
        assert root_logger.level == logging.WARNING

    def test_json_output_is_redacted(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(Settings(log_format="json"))  # type: ignore[arg-type]

        get_logger("rcgateway.test").warning(
            "rc_cached", rc_number="MH12AB1234", owner_name="RAHUL SHARMA"
        )

        out = capsys.readouterr().out
        entries = [
            json.loads(line) for line in out.splitlines() if line.startswith("{")
        ]
        entry = next(e for e in entries if e["event"] == "rc_cached")
        assert entry["owner_name"] == REDACTED
        assert entry["rc_number"] == "MH12AB1234"
        assert entry["service"] == "rcgateway"
        assert "RAHUL SHARMA" not in out
