#!/usr/bin/env python3
"""
Meeting note rendering and writing for the Obsidian vault
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Literal, Optional

from validation import clean_title

logger = logging.getLogger(__name__)

MeetingStatus = Literal["filed", "scheduled"]

@dataclass
class MeetingData:
    id: str
    title: str
    start_time: datetime
    end_time: Optional[datetime] = None
    attendees: List[str] = field(default_factory=list)
    organizer: str = ""
    location: str = ""
    status: MeetingStatus = "filed"
    transcript: str = ""
    summary: str = ""
    meeting_url: str = ""
    duration_min: Optional[int] = None

def attendee_names(raw: Optional[list]) -> List[str]:
    """Names from API attendee objects (name, then email, then "Unknown")."""
    names: List[str] = []
    for a in raw or []:
        if isinstance(a, str):
            name = a.strip()
        elif isinstance(a, dict):
            name = a.get("name") or a.get("displayName") or a.get("email") or "Unknown"
        else:
            continue
        if name:
            names.append(str(name))
    return names

def note_relative_path(data: MeetingData) -> Path:
    """<year>/<MM-Month>/<YYYY-MM-DD HH-MM> <title> -- <shortid>.md"""
    dt = data.start_time
    month_folder = f"{dt.month:02d}-{dt.strftime('%B')}"
    date_str = dt.strftime("%Y-%m-%d %H-%M")
    filename = f"{date_str} {clean_title(data.title)} -- {data.id[:8]}.md"
    return Path(f"{dt.year:04d}") / month_folder / filename

def _yaml_list(key: str, values: List[str]) -> List[str]:
    if not values:
        return [f"{key}: []"]
    return [f"{key}:"] + [f"  - {json.dumps(v, ensure_ascii=False)}" for v in values]

def build_frontmatter(data: MeetingData) -> List[str]:
    duration = data.duration_min
    if duration is None:
        duration = 0
    yaml_lines = [
        "---",
        f"title: {json.dumps(data.title, ensure_ascii=False)}",
        f"date: {data.start_time.strftime('%Y-%m-%d')}",
        *_yaml_list("attendees", data.attendees),
        f"organizer: {json.dumps(data.organizer, ensure_ascii=False)}",
        f"location: {json.dumps(data.location, ensure_ascii=False)}",
        f"start_time: {data.start_time.isoformat()}",
        f"end_time: {json.dumps(data.end_time.isoformat() if data.end_time else '')}",
        f"duration_min: {duration}",
        "area: ''",
        "source: granola",
        f"status: {data.status}",
        "privacy: internal",
        f"calendar_event_id: {json.dumps(data.id)}",
        f"meeting_url: {json.dumps(data.meeting_url)}",
        "---",
    ]
    return yaml_lines

def render_body(data: MeetingData) -> str:
    if data.status == "filed" and (data.transcript or data.summary):
        return (
            f"# {data.title}\n\n"
            f"## Summary\n{data.summary.strip()}\n\n"
            f"## Transcript\n{data.transcript}"
        )
    return (
        f"# {data.title}\n\n"
        "## Agenda\n\n"
        "## Notes\n\n"
        "## Action Items\n"
    )

def render_meeting_note(data: MeetingData) -> str:
    """Front matter + body, newline terminated."""
    body = render_body(data)
    return "\n".join(build_frontmatter(data)) + "\n" + body.rstrip("\n") + "\n"

def write_meeting_note(vault_root: Path, data: MeetingData) -> Optional[Path]:
    """Write the note unless it already exists. Returns the path written, else None."""
    path = vault_root / note_relative_path(data)
    if path.exists():
        logger.info("Note already exists, skipping", extra={"path": str(path)})
        return None
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_meeting_note(data), encoding="utf-8")
    return path
