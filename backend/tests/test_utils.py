"""Tests for logging, token validation and time helpers"""
import json
import logging
import jwt
import pytest
from datetime import datetime, timezone

from formflow.domain.enums import UserRole
from formflow.domain.errors import AuthenticationError
from formflow.utils.jwt import JWTValidator
from formflow.utils.logger import JsonFormatter, set_correlation_id
from formflow.utils.time import format_iso, parse_iso, sunday_based_weekday

SECRET = "unit-test-secret-with-enough-length"


class TestJsonFormatter:

    def _record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord("formflow.test", logging.INFO, __file__, 1, "Issued folio %s", (3,), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_promotes_workflow_fields(self):
        set_correlation_id("COR-1")
        line = json.loads(JsonFormatter().format(self._record(template_id=7, folio_number=3, unrelated="x")))

        assert line["message"] == "Issued folio 3"
        assert line["correlation_id"] == "COR-1"
        assert line["template_id"] == 7
        assert line["folio_number"] == 3
        assert "unrelated" not in line
        assert line["timestamp"].endswith("Z")


class TestJWTValidator:

    def test_actor_from_claims(self):
        token = jwt.encode({"sub": "u-9", "role": "calidad", "department": "calidad", "name": "Ana"}, SECRET, algorithm="HS256")

        actor = JWTValidator(secret=SECRET).get_actor_context(f"Bearer {token}")

        assert actor.id == "u-9"
        assert actor.role == UserRole.QUALITY
        assert actor.department == "calidad"
        assert actor.display_name == "Ana"

    def test_missing_subject(self):
        token = jwt.encode({"role": "admin"}, SECRET, algorithm="HS256")
        with pytest.raises(AuthenticationError):
            JWTValidator(secret=SECRET).get_actor_context(token)

    def test_expired(self):
        token = jwt.encode({"sub": "u-1", "role": "admin", "exp": 1}, SECRET, algorithm="HS256")
        with pytest.raises(AuthenticationError, match="expired"):
            JWTValidator(secret=SECRET).validate_token(token)


class TestTimeHelpers:

    def test_sunday_is_zero(self):
        assert sunday_based_weekday(datetime(2026, 3, 1)) == 0
        assert sunday_based_weekday(datetime(2026, 3, 7)) == 6

    def test_iso_round_trip_keeps_instant(self):
        instant = parse_iso("2026-03-02T10:00:00-06:00")
        assert format_iso(instant.astimezone(timezone.utc)) == "2026-03-02T16:00:00Z"
        assert parse_iso("2026-03-02T16:00:00").tzinfo is not None
