#!/usr/bin/env python3
"""
Input validation and coercion for the Granola sync server
"""

import re
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or epoch milliseconds into an aware datetime.

    Naive values are taken as UTC. Returns None for anything unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value.strip():
        return None
    s = value.strip()
    # fromisoformat() only learned "Z" in 3.11
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt

def parse_timestamp_ms(value: Any) -> int:
    """Millisecond timestamp for a segment boundary, 0 when absent or invalid."""
    dt = parse_datetime(value)
    if dt is None:
        return 0
    return int(round(dt.timestamp() * 1000))

def coerce_text(value: Any) -> Optional[str]:
    """Trimmed segment text, or None when the value is not usable text."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text or None

def clean_title(title: Optional[str]) -> str:
    """Strip a meeting title down to word characters, spaces and hyphens."""
    if not title:
        return "Untitled Meeting"
    cleaned = re.sub(r"[^\w\s-]", "", title)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()

    # Limit length
    if len(cleaned) > 200:
        cleaned = cleaned[:200].rstrip()

    return cleaned or "Untitled Meeting"

def validate_panels(panels: Any) -> Tuple[bool, Optional[str]]:
    """Validate a list of panel dicts as sent by the API."""
    if panels is None:
        return True, None
    if not isinstance(panels, list):
        return False, "panels must be a list"
    for idx, panel in enumerate(panels):
        if not isinstance(panel, dict):
            return False, f"panel {idx} must be an object"
        content = panel.get("original_content")
        if content is not None and not isinstance(content, str):
            return False, f"panel {idx}: original_content must be a string"
    return True, None

def validate_meeting_payload(payload: Any) -> Tuple[bool, Optional[str]]:
    """Validate a pushed meeting payload."""
    if not isinstance(payload, dict):
        return False, "Payload must be a JSON object"

    required_fields = ["id", "title", "created_at"]
    for field in required_fields:
        if field not in payload:
            return False, f"Missing required field: {field}"

        if not payload[field]:
            return False, f"Empty required field: {field}"

    if parse_datetime(payload["created_at"]) is None:
        return False, "Invalid created_at. Expected an ISO-8601 timestamp"

    if "attendees" in payload and payload["attendees"] is not None:
        attendees = payload["attendees"]
        if not isinstance(attendees, list) or not all(isinstance(a, (str, dict)) for a in attendees):
            return False, "attendees must be a list of names or objects"

    ok, error = validate_panels(payload.get("panels"))
    if not ok:
        return False, error

    return True, None
