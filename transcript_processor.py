#!/usr/bin/env python3
"""
Transcript processing for Granola → Obsidian sync

Turns raw Granola transcript segments into readable Markdown:
- labels speakers from the capture source (Me/Them)
- removes near-duplicate captions emitted by both audio channels
- groups consecutive same-speaker text
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence

from config import SPEAKER_LABELS, UNKNOWN_SPEAKER
from validation import coerce_text, parse_timestamp_ms

logger = logging.getLogger(__name__)

DEFAULT_TIME_WINDOW_MS = 4500
DEFAULT_SIMILARITY_THRESHOLD = 0.68
CONTAINMENT_BONUS = 0.2

@dataclass(frozen=True)
class ProcessedSegment:
    text: str
    speaker: str
    start_time_ms: int
    end_time_ms: int
    source: str

@dataclass(frozen=True)
class DecodedTranscript:
    """Result of decoding a raw transcript payload.

    ``passthrough`` is set when the payload carries no segments and should be
    emitted verbatim; otherwise ``segments`` holds the time-sorted segments.
    """
    passthrough: Optional[str] = None
    segments: List[ProcessedSegment] = field(default_factory=list)

def _find_segment_list(raw: Any) -> Optional[list]:
    if isinstance(raw, list):
        return raw
    if isinstance(raw, Mapping):
        segments = raw.get("segments")
        if isinstance(segments, list):
            return segments
        nested = raw.get("transcript")
        if isinstance(nested, Mapping) and isinstance(nested.get("segments"), list):
            return nested["segments"]
    return None

def to_processed_segment(segment: Mapping[str, Any]) -> Optional[ProcessedSegment]:
    """Normalize one raw segment; None when it has no usable text."""
    text = coerce_text(segment.get("text"))
    if text is None:
        return None
    source = segment.get("source")
    source = source if isinstance(source, str) else ""
    return ProcessedSegment(
        text=text,
        speaker=SPEAKER_LABELS.get(source, UNKNOWN_SPEAKER),
        start_time_ms=parse_timestamp_ms(segment.get("start_timestamp")),
        end_time_ms=parse_timestamp_ms(segment.get("end_timestamp")),
        source=source,
    )

def decode_transcript(raw: Any) -> DecodedTranscript:
    """Inspect the payload shape once and return a canonical form.

    Accepts a formatted string, a list of segments, or an object carrying
    ``segments`` or ``transcript.segments``.
    """
    if isinstance(raw, str):
        return DecodedTranscript(passthrough=raw)

    segments = _find_segment_list(raw)
    if not segments:
        fallback = raw.get("transcript") if isinstance(raw, Mapping) else None
        return DecodedTranscript(passthrough=fallback if isinstance(fallback, str) else "")

    processed = []
    for seg in segments:
        if not isinstance(seg, Mapping):
            continue
        ps = to_processed_segment(seg)
        if ps is not None:
            processed.append(ps)
    # sorted() is stable, so equal start times keep payload order
    processed = sorted(processed, key=lambda s: s.start_time_ms)
    return DecodedTranscript(segments=processed)

def longest_common_subsequence(s1: str, s2: str) -> int:
    """Character-level LCS length (two-row DP table)."""
    if not s1 or not s2:
        return 0
    prev = [0] * (len(s2) + 1)
    for ch1 in s1:
        cur = [0] * (len(s2) + 1)
        for j, ch2 in enumerate(s2, start=1):
            if ch1 == ch2:
                cur[j] = prev[j - 1] + 1
            else:
                cur[j] = max(prev[j], cur[j - 1])
        prev = cur
    return prev[-1]

def calculate_similarity(text1: str, text2: str) -> float:
    """Case-insensitive lexical similarity; containment scores above plain LCS."""
    s1 = (text1 or "").lower()
    s2 = (text2 or "").lower()

    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    min_len = min(len(s1), len(s2))
    max_len = max(len(s1), len(s2))
    if s1 in s2 or s2 in s1:
        return min_len / max_len + CONTAINMENT_BONUS

    return longest_common_subsequence(s1, s2) / max_len

def deduplicate_segments(
    segments: Sequence[ProcessedSegment],
    time_window_ms: int = DEFAULT_TIME_WINDOW_MS,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> List[ProcessedSegment]:
    """Drop near-duplicate captions inside a sliding time window.

    Segments must already be sorted by start time. Within a conflict the
    microphone copy beats the system copy; otherwise the longer text wins and
    ties keep the earlier segment.
    """
    if not segments:
        return []

    to_remove: set[int] = set()

    for i, segment in enumerate(segments):
        if i in to_remove:
            continue
        window_end = segment.start_time_ms + time_window_ms

        for j in range(i + 1, len(segments)):
            other = segments[j]
            if other.start_time_ms > window_end:
                break
            if j in to_remove:
                continue

            similarity = calculate_similarity(segment.text, other.text)
            if similarity < similarity_threshold:
                continue

            if segment.source == "microphone" and other.source == "system":
                loser = j
            elif segment.source == "system" and other.source == "microphone":
                loser = i
            elif len(segment.text) >= len(other.text):
                loser = j
            else:
                loser = i

            to_remove.add(loser)
            logger.debug(
                "Dropped duplicate segment",
                extra={
                    "kept": (j if loser == i else i),
                    "dropped": loser,
                    "similarity": round(similarity, 3),
                },
            )
            if loser == i:
                break

    return [s for idx, s in enumerate(segments) if idx not in to_remove]

def format_transcript(segments: Sequence[ProcessedSegment]) -> str:
    """Render "Speaker:\\ntext\\n" blocks, merging consecutive same-speaker text."""
    if not segments:
        return ""

    lines: List[str] = []
    current_speaker: Optional[str] = None
    buf: List[str] = []

    for segment in segments:
        if current_speaker is not None and segment.speaker != current_speaker:
            lines.extend([f"{current_speaker}:", " ".join(buf).strip(), ""])
            buf = []
        current_speaker = segment.speaker
        buf.append(segment.text)

    if current_speaker is not None and buf:
        lines.extend([f"{current_speaker}:", " ".join(buf).strip(), ""])

    return "\n".join(lines)

def process_transcript(
    raw: Any,
    *,
    time_window_ms: int = DEFAULT_TIME_WINDOW_MS,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> str:
    """Raw transcript payload → speaker-labelled Markdown."""
    decoded = decode_transcript(raw)
    if decoded.passthrough is not None:
        return decoded.passthrough

    kept = deduplicate_segments(decoded.segments, time_window_ms, similarity_threshold)
    logger.debug(
        "Transcript deduplicated",
        extra={
            "segments_in": len(decoded.segments),
            "segments_kept": len(kept),
            "duplicates_removed": len(decoded.segments) - len(kept),
        },
    )
    return format_transcript(kept)
