from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

ITALIC_MARKERS = ("*", "_")
BULLET_MARKERS = ("-", "*", "+")


@dataclass(frozen=True)
class FormattingResult:
    """Whole replacement buffer plus the selection to restore afterwards.

    ``selection_start``/``selection_end`` are offsets into ``text`` (the new
    buffer). ``extracted_url`` is only set when a link was unwrapped.
    """

    text: str
    selection_start: int
    selection_end: int
    extracted_url: Optional[str] = None
    original: Optional[str] = field(default=None, repr=False, compare=False)

    @property
    def changed(self) -> bool:
        return self.original is None or self.original != self.text


@dataclass(frozen=True)
class FormattingOptions:
    """User preferences that shape inserted markup."""

    italic_marker: str = "*"
    bullet_marker: str = "-"
    link_placeholder_text: str = "link text"
    link_placeholder_url: str = "url"
    image_placeholder_alt: str = "image"
    code_block_language: str = ""
    toc_title: str = "Table of Contents"

    def __post_init__(self) -> None:
        if self.italic_marker not in ITALIC_MARKERS:
            raise ValueError(f"Unsupported italic marker: {self.italic_marker!r}")
        if self.bullet_marker not in BULLET_MARKERS:
            raise ValueError(f"Unsupported bullet marker: {self.bullet_marker!r}")


DEFAULT_OPTIONS = FormattingOptions()


def replace_span(
    text: str,
    start: int,
    end: int,
    replacement: str,
    selection_start: int,
    selection_end: int,
    extracted_url: Optional[str] = None,
) -> FormattingResult:
    """Swap ``text[start:end]`` for ``replacement`` and package the result."""
    return FormattingResult(
        text=text[:start] + replacement + text[end:],
        selection_start=selection_start,
        selection_end=selection_end,
        extracted_url=extracted_url,
        original=text,
    )


def unchanged(text: str, start: int, end: int) -> FormattingResult:
    return FormattingResult(text=text, selection_start=start, selection_end=end, original=text)
