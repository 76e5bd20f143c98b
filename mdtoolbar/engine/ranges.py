"""Offset and range helpers shared by the detectors and formatters."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Span:
    """Half-open ``[start, end)`` range of character offsets."""

    start: int
    end: int

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def __len__(self) -> int:
        return self.end - self.start


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Return True when two half-open intervals intersect.

    Touching endpoints do not count, so a caret at either edge of a span is
    outside of it.
    """
    return a_start < b_end and a_end > b_start


def clamp_offset(text: str, offset: int) -> int:
    return max(0, min(int(offset), len(text)))


def clamp_range(text: str, start: int, end: int | None = None) -> Span:
    """Clamp a range into ``[0, len(text)]`` and order its endpoints."""
    start = clamp_offset(text, start)
    end = start if end is None else clamp_offset(text, end)
    if end < start:
        start, end = end, start
    return Span(start, end)


def line_bounds(text: str, offset: int) -> Span:
    """Return the span of the line containing ``offset`` (newline excluded)."""
    offset = clamp_offset(text, offset)
    line_start = text.rfind("\n", 0, offset) + 1
    line_end = text.find("\n", offset)
    if line_end == -1:
        line_end = len(text)
    return Span(line_start, line_end)


def spanned_lines(text: str, start: int, end: int) -> Span:
    """Return the span of every full line touched by ``[start, end]``.

    A non-empty range that stops at column 0 of a later line does not pull
    that line in; editors report such selections after a triple-click.
    """
    span = clamp_range(text, start, end)
    last = span.end
    if last > span.start and text[last - 1] == "\n":
        last -= 1
    first_line = line_bounds(text, span.start)
    last_line = line_bounds(text, max(last, span.start))
    return Span(first_line.start, last_line.end)
