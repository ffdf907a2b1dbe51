"""
Unit tests for the JSON-lines wire format.
"""

import json
from datetime import datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from cdc.binlog_snapshot.snapshot.events import LogPosition, LogPositionEvent, SelectEvent
from cdc.binlog_snapshot.wire import (
    LogPositionRecord,
    SelectRecord,
    decode_event,
    encode_event,
    to_record,
)


class TestEncodeEvent:
    def test_log_position_line(self):
        line = encode_event(LogPositionEvent(LogPosition("mysql-bin.000003", 154)))
        assert json.loads(line) == {
            "type": "log_position",
            "file": "mysql-bin.000003",
            "offset": 154,
        }

    def test_select_line(self):
        event = SelectEvent("shop", "orders", ((1, "new"), (2, None)))

        data = json.loads(encode_event(event))

        assert data == {
            "type": "select",
            "db": "shop",
            "table": "orders",
            "rows": [[1, "new"], [2, None]],
        }

    def test_single_line(self):
        event = SelectEvent("shop", "orders", ((1, "multi\nline"),))
        assert "\n" not in encode_event(event)

    def test_driver_values(self):
        """Decimals, datetimes and bytes render as JSON strings."""
        event = SelectEvent(
            "shop",
            "orders",
            ((Decimal("19.90"), datetime(2024, 3, 1, 12, 30), b"\x00\x01"),),
        )

        row = json.loads(encode_event(event))["rows"][0]

        assert row == ["19.90", "2024-03-01T12:30:00", "AAE="]

    def test_matches_event_dict(self):
        event = LogPositionEvent(LogPosition("mysql-bin.000001", 4))
        assert json.loads(encode_event(event)) == event.to_dict()


class TestDecodeEvent:
    def test_log_position(self):
        event = decode_event('{"type": "log_position", "file": "mysql-bin.000003", "offset": 154}')
        assert event == LogPositionEvent(LogPosition("mysql-bin.000003", 154))

    def test_select(self):
        event = decode_event(b'{"type": "select", "db": "shop", "table": "orders", "rows": [[1, "a"]]}')
        assert event == SelectEvent("shop", "orders", ((1, "a"),))

    def test_unknown_type(self):
        with pytest.raises(ValidationError):
            decode_event('{"type": "delete", "db": "shop"}')

    def test_negative_offset(self):
        with pytest.raises(ValidationError):
            decode_event('{"type": "log_position", "file": "f", "offset": -1}')


def test_to_record_types():
    assert isinstance(to_record(SelectEvent("a", "b", ())), SelectRecord)
    assert isinstance(to_record(LogPositionEvent(LogPosition("f", 4))), LogPositionRecord)
