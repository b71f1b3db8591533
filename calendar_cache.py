#!/usr/bin/env python3
"""
Calendar events from the Granola desktop cache

The cache file is JSON whose "cache" key holds another JSON document;
calendar events live under state.events.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from meeting_note import MeetingData, attendee_names
from validation import parse_datetime

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MIN = 60

def extract_events_from_cache(cache_text: str) -> List[dict]:
    """All ``calendar#event`` entries in the cache, or [] when it can't be read."""
    try:
        cache_data = json.loads(cache_text)
        if not isinstance(cache_data, dict) or not cache_data.get("cache"):
            logger.warning('"cache" key not found in cache file; no future events will be processed')
            return []

        inner = cache_data["cache"]
        inner_data = json.loads(inner) if isinstance(inner, str) else inner
        events = ((inner_data or {}).get("state") or {}).get("events")
        if isinstance(events, list):
            return [e for e in events if isinstance(e, dict) and e.get("kind") == "calendar#event"]

        logger.warning('Could not find "state.events" array in cache; no future events will be processed')
        return []
    except (json.JSONDecodeError, TypeError, AttributeError) as e:
        logger.error("Error parsing cache", extra={"error": str(e)})
        return []

def load_cache_events(cache_path: Path) -> List[dict]:
    try:
        text = cache_path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error("Cache file not readable", extra={"path": str(cache_path), "error": str(e)})
        return []
    return extract_events_from_cache(text)

def future_events(events: List[dict], now: Optional[datetime] = None) -> List[dict]:
    """Events starting after ``now`` that were not cancelled."""
    now = now or datetime.now(timezone.utc)
    out = []
    for e in events:
        start = parse_datetime((e.get("start") or {}).get("dateTime"))
        if start is None or start <= now:
            continue
        if e.get("status") == "cancelled":
            continue
        out.append(e)
    return out

def _video_link(event: dict) -> str:
    entry_points = (event.get("conferenceData") or {}).get("entryPoints") or []
    for ep in entry_points:
        if isinstance(ep, dict) and ep.get("entryPointType") == "video":
            return ep.get("uri") or ""
    return ""

def event_to_meeting(event: dict) -> Optional[MeetingData]:
    """Scheduled meeting stub for a calendar event; None without a start time."""
    start = parse_datetime((event.get("start") or {}).get("dateTime"))
    if start is None:
        return None
    end = parse_datetime((event.get("end") or {}).get("dateTime"))
    duration = round((end - start).total_seconds() / 60) if end else DEFAULT_DURATION_MIN

    return MeetingData(
        id=str(event.get("id") or ""),
        title=event.get("summary") or "Untitled Meeting",
        start_time=start,
        end_time=end,
        attendees=attendee_names(event.get("attendees")),
        organizer=(event.get("organizer") or {}).get("email") or "",
        location=event.get("location") or "",
        status="scheduled",
        meeting_url=_video_link(event),
        duration_min=duration,
    )
