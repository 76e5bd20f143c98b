"""Line oriented list and task toggling."""
from __future__ import annotations

import logging
import os
from typing import Optional

from .context import TASK_MARKER_PATTERN, LineMarker, MarkerKind, classify_line
from .ranges import Span, clamp_range, line_bounds, spanned_lines
from .results import DEFAULT_OPTIONS, FormattingOptions, FormattingResult, replace_span, unchanged

logger = logging.getLogger(__name__)

_DETAILED_LOGGING = os.getenv("MDTOOLBAR_DETAILED_LOGGING", "0") not in ("0", "false", "False", "", None)

LIST_TYPES = ("bullet", "numbered", "task")


def _region(text: str, start: int, end: int) -> tuple[Span, Span, list[str]]:
    query = clamp_range(text, start, end)
    region = spanned_lines(text, query.start, query.end)
    return query, region, text[region.start : region.end].split("\n")


def _apply(text: str, query: Span, region: Span, old_lines: list[str], new_lines: list[str]) -> FormattingResult:
    replacement = "\n".join(new_lines)
    if replacement == text[region.start : region.end]:
        return unchanged(text, query.start, query.end)
    if query.is_empty and len(old_lines) == 1:
        # Keep a lone caret on the same character of the line.
        delta = len(new_lines[0]) - len(old_lines[0])
        caret = min(max(query.start + delta, region.start), region.start + len(new_lines[0]))
        return replace_span(text, region.start, region.end, replacement, caret, caret)
    return replace_span(text, region.start, region.end, replacement, region.start, region.start + len(replacement))


def _is_blank(line: str) -> bool:
    return not line.strip()


def _unmarked(marker: LineMarker) -> str:
    return f"{marker.indent}{marker.content}"


def _bullet(marker: LineMarker, options: FormattingOptions) -> str:
    return f"{marker.indent}{options.bullet_marker} {marker.content}"


def _task(marker: LineMarker, options: FormattingOptions) -> str:
    state = "x" if marker.kind is MarkerKind.TASK_CHECKED else " "
    return f"{marker.indent}{options.bullet_marker} [{state}] {marker.content}"


def format_list(
    text: str,
    start: int,
    end: int,
    requested_type: str = "bullet",
    options: Optional[FormattingOptions] = None,
) -> FormattingResult:
    """Toggle list markers on every line touched by the range.

    All marked lines of one family lose their markers; marked lines of mixed
    families are flattened to bullets; anything else gets ``requested_type``
    markers. Blank lines inside a multi-line range are left alone.
    """
    if requested_type not in LIST_TYPES:
        raise ValueError(f"Unknown list type: {requested_type!r}")
    if requested_type == "task":
        return format_task(text, start, end, options=options)
    options = options or DEFAULT_OPTIONS
    query, region, lines = _region(text, start, end)
    markers = [classify_line(line) for line in lines]
    considered = [m for m, line in zip(markers, lines) if not _is_blank(line)]

    if considered and all(m.kind is not MarkerKind.NONE for m in considered):
        families = {m.kind.family for m in considered}
        if len(families) == 1:
            if _DETAILED_LOGGING:
                logger.debug("List toggle off (%s) over %d lines", families.pop(), len(lines))
            new_lines = [line if _is_blank(line) else _unmarked(m) for m, line in zip(markers, lines)]
        else:
            if _DETAILED_LOGGING:
                logger.debug("Normalizing mixed list markers %s to bullets", sorted(families))
            new_lines = [line if _is_blank(line) else _bullet(m, options) for m, line in zip(markers, lines)]
        return _apply(text, query, region, lines, new_lines)

    new_lines = []
    number = 0
    single_line = len(lines) == 1
    for marker, line in zip(markers, lines):
        if _is_blank(line) and not single_line:
            new_lines.append(line)
            continue
        if requested_type == "numbered":
            number += 1
            new_lines.append(f"{marker.indent}{number}. {marker.content}")
        elif marker.kind is MarkerKind.BULLET:
            new_lines.append(line)
        else:
            new_lines.append(_bullet(marker, options))
    if _DETAILED_LOGGING:
        logger.debug("Adding %s markers over %d lines", requested_type, len(lines))
    return _apply(text, query, region, lines, new_lines)


def format_task(
    text: str,
    start: int,
    end: int,
    options: Optional[FormattingOptions] = None,
) -> FormattingResult:
    """Toggle task markers; checked and unchecked tasks count as one kind."""
    options = options or DEFAULT_OPTIONS
    query, region, lines = _region(text, start, end)
    markers = [classify_line(line) for line in lines]
    considered = [m for m, line in zip(markers, lines) if not _is_blank(line)]
    single_line = len(lines) == 1

    if considered and all(m.kind.is_task for m in considered):
        new_lines = [line if _is_blank(line) else _unmarked(m) for m, line in zip(markers, lines)]
    else:
        new_lines = []
        for marker, line in zip(markers, lines):
            if _is_blank(line) and not single_line:
                new_lines.append(line)
            elif marker.kind.is_task:
                new_lines.append(line)
            else:
                new_lines.append(_task(marker, options))
    return _apply(text, query, region, lines, new_lines)


def toggle_task_state(text: str, position: int) -> FormattingResult:
    """Check or uncheck the task on the line containing ``position``."""
    query = clamp_range(text, position)
    bounds = line_bounds(text, query.start)
    match = TASK_MARKER_PATTERN.match(text[bounds.start : bounds.end])
    if not match:
        return unchanged(text, query.start, query.end)
    state_at = bounds.start + match.start("state")
    new_state = " " if match.group("state").lower() == "x" else "x"
    return replace_span(text, state_at, state_at + 1, new_state, query.start, query.end)


def toggle_bullet_line(line: str, options: Optional[FormattingOptions] = None) -> str:
    """Single line bullet toggle; other list markers are replaced."""
    options = options or DEFAULT_OPTIONS
    marker = classify_line(line)
    if marker.kind is MarkerKind.BULLET:
        return _unmarked(marker)
    return _bullet(marker, options)


def toggle_task_line(line: str, options: Optional[FormattingOptions] = None) -> str:
    """Single line task toggle; a plain bullet is upgraded to an open task."""
    options = options or DEFAULT_OPTIONS
    marker = classify_line(line)
    if marker.kind.is_task:
        return _unmarked(marker)
    return _task(marker, options)
