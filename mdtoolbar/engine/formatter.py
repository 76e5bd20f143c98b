"""Smart toggles for inline markdown: bold, italic, strikethrough, code and links.

Every function takes the whole buffer plus a selection and returns a
``FormattingResult`` holding the whole new buffer; nothing here touches an
editor. The toggle decision for the delimited constructs is, in order:

1. caret with no span around it: insert an empty delimiter pair (or drop an
   empty pair the caret already sits in);
2. selection equal to the span: unwrap it;
3. selection strictly inside the span: unwrap the whole span;
4. selection partly outside the span: merge both into one wrapped run;
5. plain selection: wrap it.
"""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional
from urllib.parse import urlsplit

from .context import (
    BOLD_PATTERN,
    CODE_PATTERN,
    ITALIC_PATTERN,
    MATH_INLINE_PATTERN,
    STRIKETHROUGH_PATTERN,
    MarkdownContext,
    detect_bold,
    detect_link,
    first_overlapping,
)
from .ranges import Span, clamp_range, line_bounds
from .results import DEFAULT_OPTIONS, FormattingOptions, FormattingResult, replace_span, unchanged

logger = logging.getLogger(__name__)

_DETAILED_LOGGING = os.getenv("MDTOOLBAR_DETAILED_LOGGING", "0") not in ("0", "false", "False", "", None)

_STAR_ITALIC_DELIMITER = re.compile(r"(?<!\*)\*(?!\*)")
_UNDERSCORE_ITALIC_DELIMITER = re.compile(r"(?<!\w)_|_(?!\w)")
_SCHEME_URL = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")
_RELATIVE_URL = re.compile(r"^(?:/|#|\.|[A-Za-z0-9])")


class Construct(str, Enum):
    BOLD = "bold"
    ITALIC = "italic"
    STRIKETHROUGH = "strikethrough"
    CODE = "code"
    MATH = "math"


@dataclass(frozen=True)
class InlineStyle:
    """Delimiter and patterns that describe one inline construct."""

    construct: Construct
    delimiter: str
    pattern: re.Pattern[str]
    strip_pattern: re.Pattern[str]


BOLD = InlineStyle(Construct.BOLD, "**", BOLD_PATTERN, re.compile(r"\*\*"))
STRIKETHROUGH = InlineStyle(Construct.STRIKETHROUGH, "~~", STRIKETHROUGH_PATTERN, re.compile(r"~~"))
CODE = InlineStyle(Construct.CODE, "`", CODE_PATTERN, re.compile(r"`"))
ITALIC_STAR = InlineStyle(Construct.ITALIC, "*", ITALIC_PATTERN, _STAR_ITALIC_DELIMITER)
ITALIC_UNDERSCORE = InlineStyle(Construct.ITALIC, "_", ITALIC_PATTERN, _UNDERSCORE_ITALIC_DELIMITER)
MATH = InlineStyle(Construct.MATH, "$", MATH_INLINE_PATTERN, re.compile(r"(?<!\$)\$(?!\$)"))


def _italic_style(marker: str) -> InlineStyle:
    return ITALIC_UNDERSCORE if marker == "_" else ITALIC_STAR


def _is_empty_pair(text: str, position: int, delimiter: str) -> bool:
    """True when ``position`` sits between an isolated empty delimiter pair."""
    size = len(delimiter)
    if position - size < 0:
        return False
    if text[position - size : position] != delimiter or text[position : position + size] != delimiter:
        return False
    before = text[position - size - 1] if position - size > 0 else ""
    after = text[position + size] if position + size < len(text) else ""
    return before != delimiter[0] and after != delimiter[-1]


def _trace(style: InlineStyle, case: str, query: Span, found: Optional[Span]) -> None:
    if _DETAILED_LOGGING:
        logger.debug("%s toggle: %s (query=%s, span=%s)", style.construct.value, case, query, found)


def toggle_inline(
    text: str,
    start: int,
    end: int,
    style: InlineStyle,
    found: Optional[Span],
) -> FormattingResult:
    """Apply the five-way toggle decision for one construct.

    ``found`` is the first span of the construct overlapping the query (see
    ``detect_context``); ``style.delimiter`` is what gets inserted when
    wrapping. Existing spans are re-wrapped with their own delimiter so an
    ``_italic_`` run stays underscored. Ranges crossing a line break are
    left alone.
    """
    query = clamp_range(text, start, end)
    start, end = query.start, query.end
    size = len(style.delimiter)

    if "\n" in text[start:end]:
        _trace(style, "skip multi-line range", query, found)
        return unchanged(text, start, end)

    if found is None and start == end:
        if _is_empty_pair(text, start, style.delimiter):
            _trace(style, "drop empty pair", query, found)
            return replace_span(text, start - size, start + size, "", start - size, start - size)
        _trace(style, "insert empty pair", query, found)
        return replace_span(text, start, end, style.delimiter * 2, start + size, start + size)

    if found is not None:
        open_delimiter = text[found.start : found.start + size]
        inner = text[found.start + size : found.end - size]
        inner_end = found.start + len(inner)

        if start == found.start and end == found.end:
            _trace(style, "remove (full span)", query, found)
            return replace_span(text, found.start, found.end, inner, found.start, inner_end)

        if found.start < start and end < found.end:
            _trace(style, "remove (inside span)", query, found)
            new_start = min(max(start - size, found.start), inner_end)
            new_end = min(max(end - size, found.start), inner_end)
            return replace_span(text, found.start, found.end, inner, new_start, new_end)

        union_start = min(start, found.start)
        union_end = max(end, found.end)
        merged = style.strip_pattern.sub("", text[union_start:union_end])
        _trace(style, "merge partial overlap", query, found)
        return replace_span(
            text,
            union_start,
            union_end,
            f"{open_delimiter}{merged}{open_delimiter}",
            union_start + size,
            union_start + size + len(merged),
        )

    selected = text[start:end]
    _trace(style, "wrap selection", query, found)
    return replace_span(
        text,
        start,
        end,
        f"{style.delimiter}{selected}{style.delimiter}",
        start + size,
        start + size + len(selected),
    )


def _detected(style: InlineStyle, text: str, query: Span) -> Optional[Span]:
    match = first_overlapping(style.pattern, text, query.start, query.end)
    return Span(match.start(), match.end()) if match else None


def _reads_back_as_italic(result: FormattingResult, style: InlineStyle) -> bool:
    """True when the freshly wrapped run is detected as exactly one italic span."""
    size = len(style.delimiter)
    wrapped = Span(result.selection_start - size, result.selection_end + size)
    return _detected(style, result.text, Span(result.selection_start, result.selection_end)) == wrapped


def format_bold(
    text: str,
    start: int,
    end: int,
    context: Optional[MarkdownContext] = None,
    options: Optional[FormattingOptions] = None,
) -> FormattingResult:
    query = clamp_range(text, start, end)
    found = context.bold if context is not None else _detected(BOLD, text, query)
    return toggle_inline(text, query.start, query.end, BOLD, found)


def format_italic(
    text: str,
    start: int,
    end: int,
    context: Optional[MarkdownContext] = None,
    options: Optional[FormattingOptions] = None,
) -> FormattingResult:
    """Toggle italics, switching between ``*`` and ``_`` where one would misparse.

    On a line that already holds ``**`` an empty ``**`` pair would pair up
    with bold delimiters, so the caret gets ``__`` there. A wrapped selection
    uses the preferred marker unless only the other one reads back as a
    single italic run (``**_x_**``).
    """
    options = options or DEFAULT_OPTIONS
    query = clamp_range(text, start, end)
    found = context.italic if context is not None else _detected(ITALIC_STAR, text, query)
    if found is not None:
        return toggle_inline(text, query.start, query.end, _italic_style(text[found.start]), found)

    preferred = _italic_style(options.italic_marker)
    other = ITALIC_STAR if preferred is ITALIC_UNDERSCORE else ITALIC_UNDERSCORE
    if query.is_empty:
        # "**" around a caret inside bold is bold syntax, not an empty italic pair.
        bold = context.bold if context is not None else detect_bold(text, query.start, query.end)
        if bold is None and _is_empty_pair(text, query.start, ITALIC_STAR.delimiter):
            return toggle_inline(text, query.start, query.end, ITALIC_STAR, None)
        line = line_bounds(text, query.start)
        style = ITALIC_UNDERSCORE if "**" in text[line.start : line.end] else preferred
        return toggle_inline(text, query.start, query.end, style, None)

    result = toggle_inline(text, query.start, query.end, preferred, None)
    if result.changed and not _reads_back_as_italic(result, preferred):
        fallback = toggle_inline(text, query.start, query.end, other, None)
        if _reads_back_as_italic(fallback, other):
            _trace(other, "marker swapped", query, None)
            return fallback
    return result


def format_strikethrough(
    text: str,
    start: int,
    end: int,
    context: Optional[MarkdownContext] = None,
    options: Optional[FormattingOptions] = None,
) -> FormattingResult:
    query = clamp_range(text, start, end)
    found = context.strikethrough if context is not None else _detected(STRIKETHROUGH, text, query)
    return toggle_inline(text, query.start, query.end, STRIKETHROUGH, found)


def format_code(
    text: str,
    start: int,
    end: int,
    context: Optional[MarkdownContext] = None,
    options: Optional[FormattingOptions] = None,
) -> FormattingResult:
    query = clamp_range(text, start, end)
    found = context.code if context is not None else _detected(CODE, text, query)
    return toggle_inline(text, query.start, query.end, CODE, found)


def toggle_inline_math(
    text: str,
    start: int,
    end: int,
    context: Optional[MarkdownContext] = None,
    options: Optional[FormattingOptions] = None,
) -> FormattingResult:
    """Toggle ``$...$`` inline math; ``$$`` display fences are left alone."""
    query = clamp_range(text, start, end)
    return toggle_inline(text, query.start, query.end, MATH, _detected(MATH, text, query))


_FORMATTERS: dict[Construct, Callable[..., FormattingResult]] = {
    Construct.BOLD: format_bold,
    Construct.ITALIC: format_italic,
    Construct.STRIKETHROUGH: format_strikethrough,
    Construct.CODE: format_code,
    Construct.MATH: toggle_inline_math,
}


def format_inline(
    text: str,
    start: int,
    end: int,
    construct: Construct | str,
    context: Optional[MarkdownContext] = None,
    options: Optional[FormattingOptions] = None,
) -> FormattingResult:
    """Dispatch to the toggle for ``construct`` (``"bold"``, ``"italic"``, ...)."""
    try:
        kind = Construct(construct)
    except ValueError:
        raise ValueError(f"Unknown inline construct: {construct!r}") from None
    return _FORMATTERS[kind](text, start, end, context=context, options=options)


def create_link(text: str, url: str) -> str:
    return f"[{text}]({url})"


def create_image(alt_text: str, url: str) -> str:
    return f"![{alt_text}]({url})"


def is_valid_url(url: str) -> bool:
    """Cheap syntactic check for link targets; never touches the network.

    Absolute URLs need a scheme followed by something; relative paths,
    anchors and bare references (``page.html#top``) are accepted too.
    """
    candidate = (url or "").strip()
    if not candidate:
        return False
    if _SCHEME_URL.match(candidate):
        parts = urlsplit(candidate)
        return bool(parts.netloc or parts.path)
    return bool(_RELATIVE_URL.match(candidate))


def format_link(
    text: str,
    start: int,
    end: int,
    url: Optional[str] = None,
    link_text: Optional[str] = None,
    context: Optional[MarkdownContext] = None,
    options: Optional[FormattingOptions] = None,
) -> FormattingResult:
    """Unwrap an overlapping link or build a new one around the selection.

    Unwrapping keeps the display text and hands the old target back through
    ``extracted_url`` so the host can offer to edit it. When nothing is
    selected ``link_text`` (or the placeholder) becomes the display text.
    """
    options = options or DEFAULT_OPTIONS
    query = clamp_range(text, start, end)
    existing = context.link if context is not None else detect_link(text, query.start, query.end)

    if existing is not None:
        return replace_span(
            text,
            existing.span.start,
            existing.span.end,
            existing.text,
            existing.span.start,
            existing.span.start + len(existing.text),
            extracted_url=existing.url,
        )

    target = url or options.link_placeholder_url
    if query.is_empty:
        display = link_text or options.link_placeholder_text
    else:
        display = text[query.start : query.end]
    return replace_span(
        text,
        query.start,
        query.end,
        create_link(display, target),
        query.start + 1,
        query.start + 1 + len(display),
    )


def edit_link(
    text: str,
    start: int,
    end: int,
    link_text: str,
    url: str,
    context: Optional[MarkdownContext] = None,
) -> FormattingResult:
    """Rewrite the link overlapping the range in place, or insert a new one."""
    query = clamp_range(text, start, end)
    existing = context.link if context is not None else detect_link(text, query.start, query.end)
    target = existing.span if existing is not None else query
    return replace_span(
        text,
        target.start,
        target.end,
        create_link(link_text, url),
        target.start + 1,
        target.start + 1 + len(link_text),
    )
