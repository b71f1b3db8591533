#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Granola → Obsidian sync server
- /transcript reconciles raw two-channel transcript segments into Me/Them Markdown
- /panels turns AI summary panels into "### Section" Markdown
- /meeting composes a full meeting note and optionally files it in the vault
- /calendar/scheduled writes agenda stubs for upcoming events from the desktop cache
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, request, Response

from config import config
from validation import parse_datetime, validate_meeting_payload, validate_panels
from logging_config import (
    setup_logging, log_payload_received, log_transcript_processed,
    log_panels_processed, log_meeting_written
)
from transcript_processor import process_transcript
from panel_processor import extract_sections, render_sections, template_priority
from meeting_note import MeetingData, attendee_names, render_meeting_note, write_meeting_note
from calendar_cache import (
    extract_events_from_cache, load_cache_events, future_events, event_to_meeting
)

# --------------- Flask ---------------
app = Flask(__name__)

setup_logging(log_level=config.log_level)
logger = logging.getLogger(__name__)

def ok_json(payload: dict, status: int = 200) -> Response:
    return Response(json.dumps(payload, ensure_ascii=False), status=status, mimetype="application/json")

def err_json(message: str, status: int = 400, extra: dict | None = None) -> Response:
    body = {"ok": False, "error": message}
    if extra:
        body.update(extra)
    return ok_json(body, status=status)

def _read_json() -> dict:
    raw = request.get_data(cache=True)
    log_payload_received(request.path, len(raw))
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}

# ---------- Rendering helpers ----------
def render_transcript(raw, meeting_id: Optional[str] = None) -> str:
    markdown = process_transcript(
        raw,
        time_window_ms=config.dedup_window_ms,
        similarity_threshold=config.similarity_threshold,
    )
    log_transcript_processed(meeting_id, len(markdown))
    return markdown

def render_panels(panels, priority_template: Optional[str] = None, meeting_id: Optional[str] = None):
    slug = config.priority_template if priority_template is None else priority_template
    order_key = template_priority(slug) if slug else None
    sections = extract_sections(panels, order_key=order_key)
    log_panels_processed(meeting_id, len(panels or []), len(sections), slug or None)
    return render_sections(sections), sections

def _vault_error() -> Optional[Response]:
    if not config.vault_configured:
        return err_json(
            "Vault path is not configured. Set OBSIDIAN_VAULT_MEETINGS_PATH.",
            status=500,
        )
    if not config.vault_path.exists():
        return err_json("Vault path does not exist", status=500, extra={"path": str(config.vault_path)})
    return None

# ---------- Routes ----------
@app.get("/health")
def health():
    return ok_json({
        "ok": True,
        "service": "granola-sync",
        "vault_path": str(config.vault_path),
        "vault_exists": config.vault_path.exists(),
        "cache_exists": config.cache_path.exists(),
        "version": "1.0.0"
    })

@app.get("/config")
def show_config():
    return ok_json({
        "vault_path": str(config.vault_path),
        "cache_path": str(config.cache_path),
        "host": config.host,
        "port": config.port,
        "dedup_window_ms": config.dedup_window_ms,
        "similarity_threshold": config.similarity_threshold,
        "priority_template": config.priority_template,
    })

@app.post("/transcript")
def transcript():
    """Body: {"transcript": <string | segment list | {segments: [...]}>, "meeting_id": optional}"""
    data = _read_json()
    if "transcript" not in data:
        return err_json("Need transcript")
    markdown = render_transcript(data["transcript"], data.get("meeting_id"))
    return ok_json({"ok": True, "markdown": markdown})

@app.post("/panels")
def panels():
    """Body: {"panels": [{original_content, template_slug}, ...], "priority_template": optional}"""
    data = _read_json()
    ok, error = validate_panels(data.get("panels"))
    if not ok:
        return err_json(error)
    priority = data.get("priority_template")
    if priority is not None and not isinstance(priority, str):
        return err_json("priority_template must be a string")

    markdown, sections = render_panels(data.get("panels"), priority, data.get("meeting_id"))
    return ok_json({
        "ok": True,
        "markdown": markdown,
        "sections": [s.title for s in sections],
    })

@app.post("/meeting")
def meeting():
    """
    Body: {
      "id": "<document id>", "title": "...", "created_at": "<ISO-8601>",
      "attendees": [...], "organizer": "...",
      "transcript": <raw transcript>, "panels": [...],
      "write": true   # optional, file the note in the vault
    }
    """
    data = _read_json()
    ok, error = validate_meeting_payload(data)
    if not ok:
        return err_json(error)

    meeting_id = str(data["id"])
    try:
        transcript_md = render_transcript(data.get("transcript"), meeting_id)
        summary_md, _ = render_panels(data.get("panels"), data.get("priority_template"), meeting_id)
        meeting_data = MeetingData(
            id=meeting_id,
            title=str(data["title"]),
            start_time=parse_datetime(data["created_at"]),
            attendees=attendee_names(data.get("attendees")),
            organizer=str(data.get("organizer") or ""),
            status="filed",
            transcript=transcript_md,
            summary=summary_md,
        )
        note = render_meeting_note(meeting_data)
    except Exception as e:
        logger.exception("Failed to render meeting", extra={"meeting_id": meeting_id})
        return err_json("Failed to render meeting", status=500, extra={"detail": str(e)})

    if not data.get("write"):
        return ok_json({"ok": True, "markdown": note})

    vault_err = _vault_error()
    if vault_err is not None:
        return vault_err

    try:
        path = write_meeting_note(config.vault_path, meeting_data)
    except OSError as e:
        log_meeting_written(meeting_id, "filed", False, error=str(e))
        return err_json("Failed to write meeting note", status=500, extra={"detail": str(e)})

    log_meeting_written(meeting_id, "filed", path is not None, path=str(path) if path else None)
    return ok_json({
        "ok": True,
        "written": path is not None,
        "path": str(path) if path else None,
        "markdown": note,
    })

@app.post("/calendar/scheduled")
def calendar_scheduled():
    """Body: {"cache": "<cache file text>" (optional), "now": "<ISO-8601>" (optional)}"""
    data = _read_json()

    now = None
    if data.get("now") is not None:
        now = parse_datetime(data["now"])
        if now is None:
            return err_json("Invalid now. Expected an ISO-8601 timestamp")

    vault_err = _vault_error()
    if vault_err is not None:
        return vault_err

    cache_text = data.get("cache")
    if cache_text is not None and not isinstance(cache_text, str):
        return err_json("cache must be the cache file contents as a string")
    events = extract_events_from_cache(cache_text) if cache_text is not None else load_cache_events(config.cache_path)
    upcoming = future_events(events, now)

    written = []
    for event in upcoming:
        meeting_data = event_to_meeting(event)
        if meeting_data is None:
            continue
        try:
            path = write_meeting_note(config.vault_path, meeting_data)
        except OSError as e:
            log_meeting_written(meeting_data.id, "scheduled", False, error=str(e))
            continue
        log_meeting_written(meeting_data.id, "scheduled", path is not None, path=str(path) if path else None)
        if path is not None:
            written.append(str(path))

    return ok_json({
        "ok": True,
        "events": len(events),
        "future_events": len(upcoming),
        "written": written,
    })

# ---------- Main ----------
if __name__ == "__main__":
    if not config.vault_configured:
        error_msg = (
            "❌ Configuration Error: the Obsidian vault path is not configured!\n\n"
            "Set the OBSIDIAN_VAULT_MEETINGS_PATH environment variable.\n"
            "See README.md for configuration instructions."
        )
        print(error_msg, file=sys.stderr)
        sys.exit(1)

    logger.info("Starting Granola sync server", extra={
        "host": config.host,
        "port": config.port,
        "vault_path": str(config.vault_path),
        "started_at": datetime.now(timezone.utc).isoformat()
    })
    config.vault_path.mkdir(parents=True, exist_ok=True)
    app.run(host=config.host, port=config.port)
