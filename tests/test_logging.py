"""Tests for logging setup and structured output."""

import json
import logging
import sys

import pytest
from solders.keypair import Keypair

from scilla.errors import NotAuthorizedError
from scilla.lifecycle.common import require_authority
from scilla.logging import JsonFormatter, get_logger, setup_logging


def _record(msg: str, extra: dict | None = None, exc_info=None) -> logging.LogRecord:
    record = logging.LogRecord("scilla.rpc", logging.INFO, __file__, 1, msg, (), exc_info)
    if extra is not None:
        record.extra = extra
    return record


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_base_fields(self):
        """Should emit timestamp, level, logger and message."""
        data = json.loads(JsonFormatter().format(_record("Sent transaction")))
        assert data["level"] == "INFO"
        assert data["logger"] == "scilla.rpc"
        assert data["message"] == "Sent transaction"
        assert "timestamp" in data
        assert "exception" not in data

    def test_merges_extra(self):
        """Should merge structured fields into the top level."""
        signature = "5" * 88
        data = json.loads(JsonFormatter().format(_record("Sent", {"signature": signature, "commitment": "finalized"})))
        assert data["signature"] == signature
        assert data["commitment"] == "finalized"

    def test_stringifies_key_types(self):
        """Should fall back to str() for values JSON cannot encode."""
        pubkey = Keypair().pubkey()
        data = json.loads(JsonFormatter().format(_record("Rejected", {"pubkey": pubkey})))
        assert data["pubkey"] == str(pubkey)

    def test_includes_exception(self):
        """Should include the formatted traceback."""
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record("failed", exc_info=sys.exc_info())
        data = json.loads(JsonFormatter().format(record))
        assert "ValueError: boom" in data["exception"]


class TestSetupLogging:
    """Tests for setup_logging and get_logger."""

    def test_json_handler(self):
        """Should install a single JSON handler on the scilla logger."""
        logger = setup_logging(level=logging.DEBUG, json_format=True)
        setup_logging(level=logging.DEBUG, json_format=True)
        assert logger.name == "scilla"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)

    def test_child_loggers(self):
        """Should prefix child logger names."""
        assert get_logger("lifecycle").name == "scilla.lifecycle"
        assert get_logger().name == "scilla"


class TestRejectionLogging:
    """Tests for the structured record written when a validator rejects."""

    def test_rejection_fields(self, caplog):
        """Should record the rejection type and the offending key."""
        caller, owner = Keypair().pubkey(), Keypair().pubkey()
        caplog.set_level(logging.INFO, logger="scilla")

        with pytest.raises(NotAuthorizedError):
            require_authority("withdraw", caller, [owner, None])

        (record,) = [r for r in caplog.records if r.name == "scilla.lifecycle"]
        assert record.extra == {"rejection": "NotAuthorizedError", "pubkey": str(caller)}
        data = json.loads(JsonFormatter().format(record))
        assert data["rejection"] == "NotAuthorizedError"
        assert data["pubkey"] == str(caller)
