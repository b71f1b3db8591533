from datetime import datetime, timezone

from validation import (
    clean_title,
    coerce_text,
    parse_datetime,
    parse_timestamp_ms,
    validate_meeting_payload,
    validate_panels,
)


def test_parse_timestamp_ms():
    assert parse_timestamp_ms("2024-01-01T00:00:00Z") == 1704067200000
    assert parse_timestamp_ms("2024-01-01T01:00:00+01:00") == 1704067200000
    assert parse_timestamp_ms("2024-01-01T00:00:00") == 1704067200000
    assert parse_timestamp_ms(1704067200000) == 1704067200000


def test_parse_timestamp_ms_defaults_to_zero():
    for value in (None, "", "   ", "garbage", True, [], {}):
        assert parse_timestamp_ms(value) == 0


def test_parse_datetime_is_aware():
    dt = parse_datetime("2024-05-01T10:00:00Z")
    assert dt == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
    assert parse_datetime("nope") is None


def test_coerce_text():
    assert coerce_text("  hi ") == "hi"
    assert coerce_text("   ") is None
    assert coerce_text(5) is None
    assert coerce_text(None) is None


def test_clean_title():
    assert clean_title("Weekly Sync: Q3/Plans!") == "Weekly Sync Q3Plans"
    assert clean_title("  lots   of   space ") == "lots of space"
    assert clean_title("!!!") == "Untitled Meeting"
    assert clean_title(None) == "Untitled Meeting"
    assert len(clean_title("a" * 500)) == 200


def test_validate_panels():
    assert validate_panels(None) == (True, None)
    assert validate_panels([{"original_content": "<p/>"}]) == (True, None)
    assert validate_panels({"a": 1})[0] is False
    assert validate_panels(["x"])[0] is False
    assert validate_panels([{"original_content": 3}])[0] is False


def test_validate_meeting_payload():
    good = {"id": "1", "title": "t", "created_at": "2024-05-01T10:00:00Z"}
    assert validate_meeting_payload(good) == (True, None)
    assert validate_meeting_payload([]) == (False, "Payload must be a JSON object")
    assert validate_meeting_payload({**good, "title": ""}) == (False, "Empty required field: title")
    assert validate_meeting_payload({**good, "attendees": "Ada"})[0] is False
