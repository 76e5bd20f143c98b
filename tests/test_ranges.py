import pytest

from mdtoolbar.engine.ranges import Span, clamp_range, line_bounds, overlaps, spanned_lines


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ((0, 5), (5, 10), False),
        ((0, 6), (5, 10), True),
        ((3, 3), (0, 5), True),
        ((0, 0), (0, 5), False),
        ((5, 5), (0, 5), False),
        ((2, 8), (3, 4), True),
    ],
)
def test_overlaps_is_half_open(a, b, expected):
    assert overlaps(*a, *b) is expected


def test_clamp_range_orders_and_clamps():
    assert clamp_range("hello", -5, 99) == Span(0, 5)
    assert clamp_range("hello", 4, 1) == Span(1, 4)
    assert clamp_range("abc", 2) == Span(2, 2)
    assert clamp_range("", 3, 7) == Span(0, 0)


def test_span_helpers():
    span = Span(2, 6)
    assert len(span) == 4
    assert not span.is_empty
    assert Span(3, 3).is_empty


def test_line_bounds():
    text = "ab\ncd\nef"
    assert line_bounds(text, 4) == Span(3, 5)
    assert line_bounds(text, 3) == Span(3, 5)
    assert line_bounds(text, 2) == Span(0, 2)
    assert line_bounds(text, 100) == Span(6, 8)


def test_spanned_lines_covers_touched_lines():
    text = "ab\ncd\nef"
    assert spanned_lines(text, 1, 4) == Span(0, 5)
    assert spanned_lines(text, 4, 4) == Span(3, 5)


def test_spanned_lines_ignores_line_after_trailing_newline():
    assert spanned_lines("ab\ncd\nef", 0, 3) == Span(0, 2)
