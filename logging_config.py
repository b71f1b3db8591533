#!/usr/bin/env python3
"""
Structured logging configuration for the Granola sync server
"""

import logging
import json
from datetime import datetime
from typing import Optional
from pathlib import Path

_STANDARD_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName', 'taskName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info',
}

class StructuredFormatter(logging.Formatter):
    """JSON formatter; anything passed via ``extra=`` lands under ``data``."""

    def format(self, record: logging.LogRecord) -> str:
        structured_data = {
            key: value for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS
        }

        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if structured_data:
            log_entry['data'] = structured_data

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)

def setup_logging(log_level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Install the structured formatter on the root logger."""

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Clear existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(StructuredFormatter())
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

def log_payload_received(endpoint: str, payload_size: int) -> None:
    """Log reception of a pushed payload."""
    logger = logging.getLogger(__name__)
    logger.info(
        "Payload received",
        extra={
            "endpoint": endpoint,
            "payload_size": payload_size
        }
    )

def log_transcript_processed(
    meeting_id: Optional[str],
    output_chars: int
) -> None:
    """Log the rendered transcript size; dedup counts are logged at DEBUG by the processor."""
    logger = logging.getLogger(__name__)
    logger.info(
        "Transcript processed",
        extra={
            "meeting_id": meeting_id,
            "output_chars": output_chars
        }
    )

def log_panels_processed(
    meeting_id: Optional[str],
    panel_count: int,
    section_count: int,
    priority_template: Optional[str] = None
) -> None:
    """Log panel extraction results."""
    logger = logging.getLogger(__name__)
    logger.info(
        "Panels processed",
        extra={
            "meeting_id": meeting_id,
            "panel_count": panel_count,
            "section_count": section_count,
            "priority_template": priority_template
        }
    )

def log_meeting_written(
    meeting_id: str,
    status: str,
    written: bool,
    path: Optional[str] = None,
    error: Optional[str] = None
) -> None:
    """Log the outcome of writing a meeting note."""
    logger = logging.getLogger(__name__)
    logger.info(
        "Meeting note written" if written else "Meeting note skipped",
        extra={
            "meeting_id": meeting_id,
            "status": status,
            "written": written,
            "path": path,
            "error": error
        }
    )
