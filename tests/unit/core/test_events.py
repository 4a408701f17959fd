"""Tests for the audit event emitter."""

import logging
import pytest
from uuid import uuid4
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from procurement.core.events import EntityTypes, EventActions, log_event, redact_sensitive
from procurement.db.models import Event


class TestRedaction:
    def test_sensitive_keys_redacted(self):
        data = {"token": "abc", "nested": {"password": "x", "ok": 1}, "items": [{"secret": "s"}]}

        assert redact_sensitive(data) == {
            "token": "[REDACTED]",
            "nested": {"password": "[REDACTED]", "ok": 1},
            "items": [{"secret": "[REDACTED]"}],
        }

    def test_prefix_key_is_kept(self):
        assert redact_sensitive({"token_prefix": "abcdef12..."}) == {"token_prefix": "abcdef12..."}


@pytest.mark.db
class TestLogEvent:
    def test_writes_event(self, db_session):
        entity_id = uuid4()
        actor = uuid4()

        event = log_event(
            db_session,
            EntityTypes.TENDER,
            entity_id,
            EventActions.CREATED,
            {"code": "LIC-1", "budget": Decimal("10.50"), "deadline": datetime(2025, 5, 1), "ref": entity_id},
            actor_id=actor,
        )

        assert event is not None
        stored = db_session.query(Event).filter(Event.entity_id == entity_id).one()
        assert stored.action == "created"
        assert stored.user_id == actor
        assert stored.payload == {
            "code": "LIC-1",
            "budget": "10.50",
            "deadline": "2025-05-01T00:00:00",
            "ref": str(entity_id),
        }

    def test_full_token_never_stored(self, db_session):
        entity_id = uuid4()
        log_event(db_session, EntityTypes.APPROVAL, entity_id, EventActions.CREATED, {"token": "f" * 64})

        stored = db_session.query(Event).filter(Event.entity_id == entity_id).one()
        assert stored.payload["token"] == "[REDACTED]"

    def test_failure_is_swallowed(self, caplog):
        db = MagicMock()
        db.begin_nested.side_effect = OperationalError("INSERT INTO events", {}, Exception("db down"))

        with caplog.at_level(logging.WARNING, logger="procurement.core.events"):
            result = log_event(db, EntityTypes.APPROVAL, uuid4(), EventActions.APPROVED, {})

        assert result is None
        assert "Audit logging error" in caplog.text
