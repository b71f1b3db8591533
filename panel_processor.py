#!/usr/bin/env python3
"""
Panel processing for Granola → Obsidian sync

Splits each AI summary panel at its <h3> headings and renders every section
to Markdown, so the summary can be embedded in a meeting note.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString
from markdownify import ATX, MarkdownConverter

logger = logging.getLogger(__name__)

SECTION_TAG = "h3"

@dataclass
class Panel:
    html_content: str
    template_slug: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Panel":
        content = data.get("original_content")
        slug = data.get("template_slug")
        return cls(
            html_content=content if isinstance(content, str) else "",
            template_slug=slug if isinstance(slug, str) else "",
        )

@dataclass
class PanelSection:
    title: str
    content: str  # Markdown

PanelLike = Union[Panel, dict]

class PanelMarkdownConverter(MarkdownConverter):
    """markdownify converter with list and checklist rules for summary panels."""

    def convert_li(self, el, text, parent_tags=None):
        # Only a checkbox owned by this item, not one from a nested list
        checkbox = next(
            (box for box in el.find_all("input", attrs={"type": "checkbox"}) if box.find_parent("li") is el),
            None,
        )
        if checkbox is not None:
            mark = "x" if checkbox.has_attr("checked") else " "
            item_text = " ".join(el.get_text(" ").split())
            return f"- [{mark}] {item_text}\n"

        text = (text or "").strip()
        parent = el.parent
        if parent is not None and parent.name == "ol":
            try:
                start = int(parent.get("start", 1))
            except (TypeError, ValueError):
                start = 1
            items = parent.find_all("li", recursive=False)
            position = next((i for i, li in enumerate(items) if li is el), 0)
            prefix = f"{start + position}. "
            return prefix + text.replace("\n", "\n" + " " * len(prefix)) + "\n"

        return "- " + text.replace("\n", "\n  ") + "\n"

    def convert_input(self, el, text, parent_tags=None):
        # Checkboxes only mean something inside a list item
        return ""

class MarkdownifyBackend:
    """HTML capability used by the extractor: BeautifulSoup + markdownify."""

    default_options = {
        "heading_style": ATX,
        "bullets": "-",
        "code_language": "",
    }

    def __init__(self, **options: Any) -> None:
        self.converter = PanelMarkdownConverter(**{**self.default_options, **options})

    def parse(self, html: str) -> BeautifulSoup:
        return BeautifulSoup(html or "", "html.parser")

    def query_by_tag(self, tree: BeautifulSoup, tag: str) -> List[Tag]:
        return tree.find_all(tag)

    def text_of(self, node: Tag) -> str:
        return node.get_text()

    def markup_until(self, node: Tag, stop_tag: str) -> str:
        """Raw markup of the siblings after ``node`` up to the next ``stop_tag``."""
        parts = []
        for sibling in node.next_siblings:
            if isinstance(sibling, Tag) and sibling.name == stop_tag:
                break
            if isinstance(sibling, PreformattedString):
                # comments, doctypes, processing instructions
                continue
            if isinstance(sibling, NavigableString):
                parts.append(str(sibling))
            else:
                parts.append(sibling.decode())
        return "".join(parts)

    def render(self, html: str) -> str:
        return self.converter.convert(html)

_default_backend: Optional[MarkdownifyBackend] = None

def default_backend() -> MarkdownifyBackend:
    global _default_backend
    if _default_backend is None:
        _default_backend = MarkdownifyBackend()
    return _default_backend

def template_priority(slug: str) -> Callable[[Panel], int]:
    """Sort key placing panels of ``slug`` first, everything else in API order."""
    def key(panel: Panel) -> int:
        return 0 if slug and panel.template_slug == slug else 1
    return key

def extract_sections_from_panel(panel: Panel, backend=None) -> List[PanelSection]:
    """H3-delimited sections of one panel, in heading order."""
    backend = backend or default_backend()
    sections: List[PanelSection] = []
    if not panel.html_content:
        return sections

    tree = backend.parse(panel.html_content)
    for heading in backend.query_by_tag(tree, SECTION_TAG):
        title = backend.text_of(heading).strip()
        content_html = backend.markup_until(heading, SECTION_TAG)
        content_md = backend.render(content_html).strip() if content_html else ""

        # Only keep sections that have both a title and some content
        if title and content_md:
            sections.append(PanelSection(title=title, content=content_md))

    return sections

def extract_sections(
    panels: Optional[Iterable[PanelLike]],
    *,
    order_key: Optional[Callable[[Panel], Any]] = None,
    backend=None,
) -> List[PanelSection]:
    """Flatten the sections of all panels, preserving panel order."""
    if not panels:
        return []
    normalized = [p if isinstance(p, Panel) else Panel.from_dict(p) for p in panels if isinstance(p, (Panel, dict))]
    if order_key is not None:
        normalized = sorted(normalized, key=order_key)

    sections: List[PanelSection] = []
    for panel in normalized:
        found = extract_sections_from_panel(panel, backend)
        logger.debug(
            "Extracted panel sections",
            extra={"template_slug": panel.template_slug, "section_count": len(found)},
        )
        sections.extend(found)
    return sections

CHECKBOX_ESCAPES = (("\\[ \\]", "[ ]"), ("\\[x\\]", "[x]"))
BULLET_PADDING_RE = re.compile(r"^(\s*)- {2,}", re.MULTILINE)
CHECKBOX_PADDING_RE = re.compile(r"^(\s*- \[[ x]\]) {2,}", re.MULTILINE)

def normalize_checklists(markdown: str) -> str:
    """Undo escaped checkbox brackets and extra padding after list markers."""
    for escaped, plain in CHECKBOX_ESCAPES:
        markdown = markdown.replace(escaped, plain)
    markdown = BULLET_PADDING_RE.sub(r"\1- ", markdown)
    markdown = CHECKBOX_PADDING_RE.sub(r"\1 ", markdown)
    return markdown

def render_sections(sections: Sequence[PanelSection]) -> str:
    markdown = "\n\n".join(f"### {s.title}\n{s.content}" for s in sections)
    return normalize_checklists(markdown)

def process_panels(
    panels: Optional[Iterable[PanelLike]],
    *,
    order_key: Optional[Callable[[Panel], Any]] = None,
    backend=None,
) -> str:
    """Panels → one Markdown string of "### Title" sections."""
    return render_sections(extract_sections(panels, order_key=order_key, backend=backend))
