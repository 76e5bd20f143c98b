"""ATX heading levels, outline extraction and table-of-contents generation."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from .ranges import clamp_range, line_bounds
from .results import DEFAULT_OPTIONS, FormattingOptions, FormattingResult, replace_span, unchanged

logger = logging.getLogger(__name__)

MAX_LEVEL = 6

# "#tag" is not a heading; the hashes must be followed by whitespace or end the line.
HEADING_PREFIX_PATTERN = re.compile(r"^\s*(?P<hashes>#{1,6})(?=\s|$)\s*")
HEADING_LINE_PATTERN = re.compile(r"^(?P<hashes>#{1,6})\s+(?P<title>.+)$")
FENCE_LINE_PATTERN = re.compile(r"^\s*```")

_NON_WORD = re.compile(r"[^\w\s-]")
_SPACES = re.compile(r"\s+")


@dataclass(frozen=True)
class Heading:
    level: int
    title: str
    line: int
    offset: int

    @property
    def slug(self) -> str:
        return heading_slug(self.title)


def heading_slug(text: str) -> str:
    """Return a stable anchor slug for a heading title."""
    cleaned = _NON_WORD.sub("", (text or "").strip().lower())
    slug = _SPACES.sub("-", cleaned).strip("-")
    return slug or "heading"


def _check_level(level: int) -> None:
    if not isinstance(level, int) or not 1 <= level <= MAX_LEVEL:
        raise ValueError(f"Heading level must be between 1 and {MAX_LEVEL}, got {level!r}")


def heading_level(line: str) -> int:
    """Level of an ATX heading line, 0 when the line is not a heading."""
    match = HEADING_PREFIX_PATTERN.match(line)
    return len(match.group("hashes")) if match else 0


def _relevel(text: str, start: int, end: int, choose) -> FormattingResult:
    """Rewrite the heading marker of the line containing ``start``.

    ``choose`` maps the current level (0 for none) to the new one; returning
    the current level leaves the text alone.
    """
    query = clamp_range(text, start, end)
    bounds = line_bounds(text, query.start)
    line = text[bounds.start : bounds.end]
    match = HEADING_PREFIX_PATTERN.match(line)
    current = len(match.group("hashes")) if match else 0
    target = choose(current)
    if target == current:
        return unchanged(text, query.start, query.end)

    if match:
        old_prefix = match.end()
        content = line[old_prefix:]
    else:
        content = line.strip()
        old_prefix = len(line) - len(line.lstrip())
    new_prefix = f"{'#' * target} " if target else ""
    new_line = new_prefix + content
    logger.debug("Heading level %s -> %s at offset %s", current, target, bounds.start)

    def move(offset: int) -> int:
        if offset > bounds.end:
            return offset + len(new_line) - len(line)
        column = offset - bounds.start
        if column <= old_prefix:
            return bounds.start + len(new_prefix)
        return bounds.start + min(len(new_prefix) + column - old_prefix, len(new_line))

    return replace_span(text, bounds.start, bounds.end, new_line, move(query.start), move(query.end))


def set_heading(text: str, start: int, end: int, level: int) -> FormattingResult:
    """Make the current line a heading of ``level``; the same level removes it."""
    _check_level(level)
    return _relevel(text, start, end, lambda current: 0 if current == level else level)


def cycle_heading(text: str, start: int, end: int) -> FormattingResult:
    """Step none -> H1 -> ... -> H6 -> none."""
    return _relevel(text, start, end, lambda current: 0 if current == MAX_LEVEL else current + 1)


def promote_heading(text: str, start: int, end: int) -> FormattingResult:
    """One level bigger (fewer hashes); H1 and plain lines are left alone."""
    return _relevel(text, start, end, lambda current: current - 1 if current > 1 else current)


def demote_heading(text: str, start: int, end: int) -> FormattingResult:
    """One level smaller (more hashes); H6 and plain lines are left alone."""
    return _relevel(text, start, end, lambda current: current + 1 if 0 < current < MAX_LEVEL else current)


def list_headings(text: str) -> list[Heading]:
    """Collect the ATX headings of a document, skipping fenced code."""
    headings: list[Heading] = []
    in_fence = False
    offset = 0
    for index, line in enumerate(text.split("\n")):
        if FENCE_LINE_PATTERN.match(line):
            in_fence = not in_fence
        elif not in_fence:
            match = HEADING_LINE_PATTERN.match(line)
            if match and match.group("title").strip():
                headings.append(Heading(len(match.group("hashes")), match.group("title").strip(), index, offset))
        offset += len(line) + 1
    return headings


def generate_toc(
    text: str,
    start: int,
    end: int,
    options: Optional[FormattingOptions] = None,
    max_level: int = MAX_LEVEL,
) -> FormattingResult:
    """Insert a nested link list of the document headings at ``start``.

    Headings deeper than ``max_level`` and a previous table of contents
    heading are left out. Repeated titles get ``-1``, ``-2`` ... anchors.
    """
    _check_level(max_level)
    options = options or DEFAULT_OPTIONS
    query = clamp_range(text, start, end)
    headings = [
        heading
        for heading in list_headings(text)
        if heading.level <= max_level and heading.title != options.toc_title
    ]
    if not headings:
        logger.info("No headings found; table of contents not generated")
        return unchanged(text, query.start, query.end)

    seen: dict[str, int] = {}
    lines = [f"## {options.toc_title}", ""]
    for heading in headings:
        slug = heading.slug
        count = seen.get(slug, 0)
        seen[slug] = count + 1
        anchor = f"{slug}-{count}" if count else slug
        indent = "  " * (heading.level - 1)
        lines.append(f"{indent}{options.bullet_marker} [{heading.title}](#{anchor})")
    block = "\n".join(lines) + "\n\n"
    caret = query.start + len(block)
    return replace_span(text, query.start, query.start, block, caret, caret)
