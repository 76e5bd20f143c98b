import pytest

from mdtoolbar.engine.context import detect_context
from mdtoolbar.engine.formatter import (
    format_bold,
    format_code,
    format_inline,
    format_italic,
    format_strikethrough,
    toggle_inline_math,
)
from mdtoolbar.engine.lists import format_list
from mdtoolbar.engine.ranges import Span
from mdtoolbar.engine.results import FormattingOptions


def test_partial_overlap_merges_into_one_span():
    result = format_bold("**hello** world", 5, 15)
    assert result.text == "**hello world**"
    assert (result.selection_start, result.selection_end) == (2, 13)


def test_partial_overlap_from_the_left():
    result = format_bold("hello **world**", 0, 9)
    assert result.text == "**hello world**"
    assert (result.selection_start, result.selection_end) == (2, 13)


def test_full_span_selection_unwraps():
    result = format_bold("**hello**", 0, 9)
    assert result.text == "hello"
    assert (result.selection_start, result.selection_end) == (0, 5)


def test_caret_inside_span_unwraps():
    result = format_bold("**hello**", 4, 4)
    assert result.text == "hello"
    assert (result.selection_start, result.selection_end) == (2, 2)


def test_precomputed_context_gives_same_result():
    text = "**hello**"
    context = detect_context(text, 4, 4)
    assert format_bold(text, 4, 4, context=context) == format_bold(text, 4, 4)


def test_plain_selection_wraps():
    result = format_bold("hello world", 0, 5)
    assert result.text == "**hello** world"
    assert (result.selection_start, result.selection_end) == (2, 7)
    assert result.changed


def test_wrap_then_unwrap_restores_text_and_selection():
    wrapped = format_bold("hello world", 0, 5)
    restored = format_bold(wrapped.text, wrapped.selection_start, wrapped.selection_end)
    assert restored.text == "hello world"
    assert (restored.selection_start, restored.selection_end) == (0, 5)


def test_caret_without_span_inserts_pair_and_toggles_back():
    inserted = format_bold("ab", 1, 1)
    assert inserted.text == "a****b"
    assert inserted.selection_start == inserted.selection_end == 3
    removed = format_bold(inserted.text, 3, 3)
    assert removed.text == "ab"
    assert removed.selection_start == 1


def test_italic_caret_pair_toggles_back():
    inserted = format_italic("ab", 1, 1)
    assert inserted.text == "a**b"
    assert inserted.selection_start == 2
    removed = format_italic(inserted.text, 2, 2)
    assert removed.text == "ab"
    assert removed.selection_start == 1


def test_italic_marker_preference():
    result = format_italic("hello", 0, 5, options=FormattingOptions(italic_marker="_"))
    assert result.text == "_hello_"
    assert (result.selection_start, result.selection_end) == (1, 6)


def test_underscore_italic_unwraps_with_its_own_delimiter():
    assert format_italic("_hello_", 0, 7).text == "hello"


def test_italic_inside_bold_uses_underscores_and_toggles_back():
    result = format_italic("**bold**", 2, 6)
    assert result.text == "**_bold_**"
    assert (result.selection_start, result.selection_end) == (3, 7)
    assert detect_context(result.text, 4).italic == Span(2, 8)
    again = format_italic(result.text, result.selection_start, result.selection_end)
    assert again.text == "**bold**"
    assert (again.selection_start, again.selection_end) == (2, 6)


def test_italic_caret_inside_bold_keeps_bold_intact():
    inserted = format_italic("**hello**", 4, 4)
    assert inserted.text == "**he__llo**"
    assert inserted.selection_start == inserted.selection_end == 5
    assert detect_context(inserted.text, 5).bold == Span(0, 11)
    removed = format_italic(inserted.text, 5, 5)
    assert removed.text == "**hello**"
    assert removed.selection_start == 4


def test_italic_caret_next_to_later_bold_uses_underscores():
    inserted = format_italic("hello **world**", 2, 2)
    assert inserted.text == "he__llo **world**"
    assert format_italic(inserted.text, 3, 3).text == "hello **world**"


def test_star_bullet_is_not_an_italic_opener():
    text = "* item and *x*"
    caret = format_italic(text, 3, 3)
    assert caret.text == "* i**tem and *x*"
    assert format_italic(caret.text, caret.selection_start, caret.selection_end).text == text
    assert format_italic(text, 12, 13).text == "* item and x"


@pytest.mark.parametrize(
    "text, start, end",
    [
        ("hello world", 0, 5),
        ("hello world", 6, 11),
        ("**bold** tail", 2, 6),
        ("**bold** tail", 0, 8),
        ("say **hello** now", 7, 9),
        ("* item here", 2, 6),
        ("- list *x* item", 11, 15),
        ("ab", 1, 1),
        ("**hello**", 4, 4),
        ("x **a** y", 1, 1),
    ],
)
def test_italic_toggles_twice_back_to_the_original(text, start, end):
    first = format_italic(text, start, end)
    second = format_italic(first.text, first.selection_start, first.selection_end)
    assert second.text == text
    assert first.text.count("**") == text.count("**")


@pytest.mark.parametrize("construct", ["bold", "italic", "strikethrough", "code", "math"])
def test_range_across_lines_is_left_alone(construct):
    result = format_inline("a\nb", 0, 3, construct)
    assert result.text == "a\nb"
    assert not result.changed
    again = format_inline(result.text, result.selection_start, result.selection_end, construct)
    assert again.text == "a\nb"


def test_strikethrough_caret_inside_unwraps():
    result = format_strikethrough("a ~~b~~ c", 4, 5)
    assert result.text == "a b c"
    assert (result.selection_start, result.selection_end) == (2, 3)


def test_code_wrap_and_merge():
    assert format_code("x = 1", 0, 5).text == "`x = 1`"
    merged = format_code("`ab` cd", 2, 7)
    assert merged.text == "`ab cd`"
    assert (merged.selection_start, merged.selection_end) == (1, 6)


def test_inline_math():
    wrapped = toggle_inline_math("E=mc^2", 0, 6)
    assert wrapped.text == "$E=mc^2$"
    assert toggle_inline_math("$x$", 1, 2).text == "x"


def test_display_math_fence_is_not_inline_math():
    assert toggle_inline_math("$$\nx\n$$", 3, 4).text == "$$\n$x$\n$$"


def test_edit_is_local_to_the_touched_construct():
    result = format_bold("keep this **and** that", 5, 9)
    assert result.text == "keep **this** **and** that"


@pytest.mark.parametrize("construct", ["bold", "italic", "strikethrough", "code", "math"])
def test_out_of_range_offsets_are_clamped(construct):
    result = format_inline("hello", -5, 10**9, construct)
    assert 0 <= result.selection_start <= result.selection_end <= len(result.text)
    assert "hello" in result.text


@pytest.mark.parametrize(
    "construct, delimiter",
    [("bold", "**"), ("strikethrough", "~~"), ("code", "`")],
)
def test_wrapping_keeps_delimiters_balanced(construct, delimiter):
    result = format_inline("one two three", 4, 7, construct)
    assert result.text.count(delimiter) == 2
    again = format_inline(result.text, result.selection_start, result.selection_end, construct)
    assert again.text.count(delimiter) == 0


def test_unknown_construct_raises():
    with pytest.raises(ValueError):
        format_inline("x", 0, 1, "underline")


@pytest.mark.parametrize(
    "func, text, start, end, touched",
    [
        (format_bold, "keep **this** and that", 7, 11, (5, 13)),
        (format_italic, "one two three", 4, 7, (4, 7)),
        (format_italic, "x **bold** y", 4, 8, (2, 10)),
        (format_strikethrough, "a ~~b~~ c", 4, 5, (2, 7)),
        (format_code, "x `y` z", 0, 1, (0, 1)),
        (format_list, "a\n- b\nc", 2, 5, (2, 5)),
    ],
)
def test_text_outside_the_touched_span_is_unchanged(func, text, start, end, touched):
    result = func(text, start, end)
    assert result.changed
    assert result.text.startswith(text[: touched[0]])
    assert result.text.endswith(text[touched[1] :])
