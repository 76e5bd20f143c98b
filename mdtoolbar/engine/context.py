"""Regex based detection of the markdown constructs around a cursor or selection."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .ranges import Span, clamp_range, line_bounds, overlaps

logger = logging.getLogger(__name__)

_DETAILED_LOGGING = os.getenv("MDTOOLBAR_DETAILED_LOGGING", "0") not in ("0", "false", "False", "", None)

# Inline constructs never cross a line break.
BOLD_PATTERN = re.compile(r"\*\*(?P<inner>.*?)\*\*")
# Single * that is not half of a ** pair and hugs its text ("* item" is a bullet),
# or a single _ at word boundaries
ITALIC_PATTERN = re.compile(
    r"(?<!\*)\*(?![\s*])(?P<star>[^*\n]+)(?<!\s)\*(?!\*)"
    r"|(?<!\w)_(?!_)(?P<under>[^_\n]+)_(?!\w)"
)
STRIKETHROUGH_PATTERN = re.compile(r"~~(?P<inner>.*?)~~")
CODE_PATTERN = re.compile(r"`(?P<inner>[^`\n]+)`")
MATH_INLINE_PATTERN = re.compile(r"(?<!\$)\$(?!\$)(?P<inner>[^$\n]+)\$(?!\$)")
# Images (![alt](src)) are not links
LINK_PATTERN = re.compile(r"(?<!!)\[(?P<text>[^\]\n]+)\]\((?P<url>[^)\n]+)\)")

# List markers, checked against a single (trimmed) line
TASK_MARKER_PATTERN = re.compile(r"^(?P<indent>\s*)(?P<bullet>[-*+])\s+\[(?P<state>[ xX])\](?:\s+|$)")
BULLET_MARKER_PATTERN = re.compile(r"^(?P<indent>\s*)(?P<bullet>[-*+])\s")
NUMBERED_MARKER_PATTERN = re.compile(r"^(?P<indent>\s*)(?P<number>\d+)\.\s")

FENCE_PATTERN = re.compile(r"```")
HEADER_LINE_PATTERN = re.compile(r"^#{1,6}\s", re.MULTILINE)
TABLE_LINE_PATTERN = re.compile(r"^\|.*\|$", re.MULTILINE)
TASK_LINE_PATTERN = re.compile(r"^\s*[-*+]\s+\[[ xX]\]", re.MULTILINE)
IMAGE_PATTERN = re.compile(r"!\[[^\]\n]*\]\([^)\n]*\)")


class MarkerKind(str, Enum):
    BULLET = "bullet"
    NUMBERED = "numbered"
    TASK_CHECKED = "task-checked"
    TASK_UNCHECKED = "task-unchecked"
    NONE = "none"

    @property
    def is_task(self) -> bool:
        return self in (MarkerKind.TASK_CHECKED, MarkerKind.TASK_UNCHECKED)

    @property
    def family(self) -> str:
        """Checked and unchecked tasks belong to the same ``task`` family."""
        return "task" if self.is_task else self.value


@dataclass(frozen=True)
class LinkSpan:
    span: Span
    text: str
    url: str


@dataclass(frozen=True)
class MarkdownContext:
    """Constructs found around a query range; ``None`` means not formatted."""

    bold: Optional[Span] = None
    italic: Optional[Span] = None
    strikethrough: Optional[Span] = None
    code: Optional[Span] = None
    link: Optional[LinkSpan] = None
    list_marker: MarkerKind = MarkerKind.NONE

    @property
    def is_bold(self) -> bool:
        return self.bold is not None

    @property
    def is_italic(self) -> bool:
        return self.italic is not None

    @property
    def is_strikethrough(self) -> bool:
        return self.strikethrough is not None

    @property
    def is_code(self) -> bool:
        return self.code is not None

    @property
    def is_link(self) -> bool:
        return self.link is not None

    @property
    def is_list(self) -> bool:
        return self.list_marker is not MarkerKind.NONE

    @property
    def is_task(self) -> bool:
        return self.list_marker.is_task

    @property
    def link_text(self) -> Optional[str]:
        return self.link.text if self.link else None

    @property
    def link_url(self) -> Optional[str]:
        return self.link.url if self.link else None


@dataclass(frozen=True)
class LineMarker:
    """A single line split into indentation, list marker and content."""

    kind: MarkerKind
    indent: str
    marker: str
    content: str


@dataclass(frozen=True)
class LineInfo:
    text: str
    start: int
    end: int


@dataclass(frozen=True)
class DocumentInfo:
    word_count: int
    char_count: int
    line_count: int
    has_headers: bool
    has_tables: bool
    has_task_lists: bool
    has_code_blocks: bool
    has_links: bool
    has_images: bool
    in_code_block: bool
    in_table: bool
    in_task_list: bool
    in_list: bool
    current_line: int


def first_overlapping(pattern: re.Pattern[str], text: str, start: int, end: int) -> Optional[re.Match[str]]:
    """Return the first left-to-right match of ``pattern`` overlapping the range.

    Scanning stops at that match even if a later (or nested) one would fit the
    range better.
    """
    for match in pattern.finditer(text):
        if match.start() >= end:
            break
        if overlaps(start, end, match.start(), match.end()):
            return match
    return None


def _span_of(match: Optional[re.Match[str]]) -> Optional[Span]:
    if match is None:
        return None
    return Span(match.start(), match.end())


def detect_bold(text: str, start: int, end: int) -> Optional[Span]:
    return _span_of(first_overlapping(BOLD_PATTERN, text, start, end))


def detect_italic(text: str, start: int, end: int) -> Optional[Span]:
    return _span_of(first_overlapping(ITALIC_PATTERN, text, start, end))


def detect_strikethrough(text: str, start: int, end: int) -> Optional[Span]:
    return _span_of(first_overlapping(STRIKETHROUGH_PATTERN, text, start, end))


def detect_code(text: str, start: int, end: int) -> Optional[Span]:
    return _span_of(first_overlapping(CODE_PATTERN, text, start, end))


def detect_link(text: str, start: int, end: int) -> Optional[LinkSpan]:
    match = first_overlapping(LINK_PATTERN, text, start, end)
    if match is None:
        return None
    return LinkSpan(Span(match.start(), match.end()), match.group("text"), match.group("url"))


def classify_line(line: str) -> LineMarker:
    """Split a line into its list marker and content.

    Task markers are tried first because ``- [ ] x`` is also a bullet line.
    """
    match = TASK_MARKER_PATTERN.match(line)
    if match:
        kind = MarkerKind.TASK_UNCHECKED if match.group("state") == " " else MarkerKind.TASK_CHECKED
        return LineMarker(kind, match.group("indent"), line[len(match.group("indent")) : match.end()], line[match.end() :])
    match = BULLET_MARKER_PATTERN.match(line)
    if match:
        return LineMarker(MarkerKind.BULLET, match.group("indent"), line[len(match.group("indent")) : match.end()], line[match.end() :])
    match = NUMBERED_MARKER_PATTERN.match(line)
    if match:
        return LineMarker(MarkerKind.NUMBERED, match.group("indent"), line[len(match.group("indent")) : match.end()], line[match.end() :])
    stripped = line.lstrip()
    return LineMarker(MarkerKind.NONE, line[: len(line) - len(stripped)], "", stripped)


def detect_list_marker(text: str, position: int) -> MarkerKind:
    """Marker kind of the line containing ``position`` (surrounding whitespace ignored)."""
    bounds = line_bounds(text, position)
    return classify_line(text[bounds.start : bounds.end].strip()).kind


def detect_context(text: str, start: int, end: Optional[int] = None) -> MarkdownContext:
    """Detect every construct overlapping ``[start, end)``.

    ``end`` defaults to ``start`` (a caret). Offsets outside the text are
    clamped; this function never raises for any input string.
    """
    span = clamp_range(text, start, end)
    context = MarkdownContext(
        bold=detect_bold(text, span.start, span.end),
        italic=detect_italic(text, span.start, span.end),
        strikethrough=detect_strikethrough(text, span.start, span.end),
        code=detect_code(text, span.start, span.end),
        link=detect_link(text, span.start, span.end),
        list_marker=detect_list_marker(text, span.start),
    )
    if _DETAILED_LOGGING:
        logger.debug("Context at %s-%s: %s", span.start, span.end, context)
    return context


def get_line_at(text: str, position: int) -> LineInfo:
    """Return the line containing ``position``; positions past the end map to the last line."""
    bounds = line_bounds(text, position)
    return LineInfo(text[bounds.start : bounds.end], bounds.start, bounds.end)


def is_in_code_block(text: str, position: int) -> bool:
    """True when an odd number of ``` fences precede ``position``."""
    before = text[: max(0, min(position, len(text)))]
    return len(FENCE_PATTERN.findall(before)) % 2 == 1


def detect_document_context(text: str, position: int = 0) -> DocumentInfo:
    """Summarise document features and the kind of line under ``position``."""
    position = max(0, min(position, len(text)))
    lines = text.split("\n")
    current_line = text.count("\n", 0, position)
    line_text = lines[current_line] if current_line < len(lines) else ""
    return DocumentInfo(
        word_count=len(text.split()),
        char_count=len(text),
        line_count=len(lines),
        has_headers=bool(HEADER_LINE_PATTERN.search(text)),
        has_tables=bool(TABLE_LINE_PATTERN.search(text)),
        has_task_lists=bool(TASK_LINE_PATTERN.search(text)),
        has_code_blocks="```" in text,
        has_links=bool(LINK_PATTERN.search(text)),
        has_images=bool(IMAGE_PATTERN.search(text)),
        in_code_block=is_in_code_block(text, position),
        in_table=bool(TABLE_LINE_PATTERN.match(line_text.strip())),
        in_task_list=bool(TASK_LINE_PATTERN.match(line_text)),
        in_list=classify_line(line_text).kind is not MarkerKind.NONE,
        current_line=current_line,
    )
