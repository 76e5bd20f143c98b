"""Block level helpers: quotes, rules, fences, math, footnotes and images."""
from __future__ import annotations

import re
from typing import Optional

from .formatter import create_image
from .ranges import clamp_range, spanned_lines
from .results import DEFAULT_OPTIONS, FormattingOptions, FormattingResult, replace_span, unchanged

QUOTE_PREFIX_PATTERN = re.compile(r"^(?P<indent>\s*)>[ ]?")
FOOTNOTE_REF_PATTERN = re.compile(r"\[\^(\d+)\]")


def toggle_blockquote(text: str, start: int, end: int) -> FormattingResult:
    """Quote every spanned line, or unquote them when all are already quoted."""
    query = clamp_range(text, start, end)
    region = spanned_lines(text, query.start, query.end)
    lines = text[region.start : region.end].split("\n")
    content_lines = [line for line in lines if line.strip()]
    quoted = bool(content_lines) and all(QUOTE_PREFIX_PATTERN.match(line) for line in content_lines)

    if quoted:
        new_lines = [QUOTE_PREFIX_PATTERN.sub(r"\g<indent>", line, count=1) for line in lines]
    elif len(lines) == 1:
        new_lines = [f"> {lines[0]}"]
    else:
        new_lines = [f"> {line}" if line.strip() else ">" for line in lines]

    replacement = "\n".join(new_lines)
    if query.is_empty and len(lines) == 1:
        caret = min(max(query.start + len(replacement) - len(lines[0]), region.start), region.start + len(replacement))
        return replace_span(text, region.start, region.end, replacement, caret, caret)
    return replace_span(text, region.start, region.end, replacement, region.start, region.start + len(replacement))


def insert_horizontal_rule(text: str, start: int, end: int) -> FormattingResult:
    query = clamp_range(text, start, end)
    rule = "\n---\n"
    caret = query.start + len(rule)
    return replace_span(text, query.start, query.end, rule, caret, caret)


def insert_code_block(
    text: str,
    start: int,
    end: int,
    language: Optional[str] = None,
    options: Optional[FormattingOptions] = None,
) -> FormattingResult:
    """Wrap the selection in a fenced block, or open an empty one at the caret."""
    options = options or DEFAULT_OPTIONS
    query = clamp_range(text, start, end)
    fence = f"```{language if language is not None else options.code_block_language}\n"
    selected = text[query.start : query.end]
    body_start = query.start + len(fence)
    if not selected:
        return replace_span(text, query.start, query.end, f"{fence}\n```", body_start, body_start)
    return replace_span(
        text, query.start, query.end, f"{fence}{selected}\n```", body_start, body_start + len(selected)
    )


def insert_math_block(text: str, start: int, end: int) -> FormattingResult:
    query = clamp_range(text, start, end)
    selected = text[query.start : query.end]
    body_start = query.start + len("\n$$\n")
    return replace_span(
        text,
        query.start,
        query.end,
        f"\n$$\n{selected}\n$$\n",
        body_start,
        body_start + len(selected),
    )


def insert_line_break(text: str, start: int, end: int) -> FormattingResult:
    query = clamp_range(text, start, end)
    caret = query.start + 3
    return replace_span(text, query.start, query.end, "  \n", caret, caret)


def next_footnote_number(text: str) -> int:
    numbers = [int(value) for value in FOOTNOTE_REF_PATTERN.findall(text)]
    return max(numbers, default=0) + 1


def insert_footnote(text: str, start: int, end: int) -> FormattingResult:
    """Put the next free ``[^n]`` at the selection and its definition at the end.

    The caret lands after the definition marker so the note can be typed.
    """
    query = clamp_range(text, start, end)
    number = next_footnote_number(text)
    reference = f"[^{number}]"
    body = (text[: query.start] + reference + text[query.end :]).rstrip("\n")
    updated = f"{body}\n\n{reference}: "
    return FormattingResult(updated, len(updated), len(updated), original=text)


def insert_image(
    text: str,
    start: int,
    end: int,
    url: str,
    alt_text: Optional[str] = None,
    options: Optional[FormattingOptions] = None,
) -> FormattingResult:
    """Insert ``![alt](url)``; the selection, if any, becomes the alt text."""
    options = options or DEFAULT_OPTIONS
    query = clamp_range(text, start, end)
    if not url:
        return unchanged(text, query.start, query.end)
    alt = alt_text or text[query.start : query.end] or options.image_placeholder_alt
    return replace_span(
        text,
        query.start,
        query.end,
        create_image(alt, url),
        query.start + 2,
        query.start + 2 + len(alt),
    )
