import pytest

from mdtoolbar.engine.formatter import create_image, create_link, edit_link, format_link, is_valid_url
from mdtoolbar.engine.results import FormattingOptions


def test_unwrap_link_returns_extracted_url():
    result = format_link("[GitHub](https://github.com) is great", 1, 1)
    assert result.text == "GitHub is great"
    assert (result.selection_start, result.selection_end) == (0, 6)
    assert result.extracted_url == "https://github.com"


def test_wrap_selection_in_link():
    result = format_link("see docs", 4, 8, url="https://x.io")
    assert result.text == "see [docs](https://x.io)"
    assert (result.selection_start, result.selection_end) == (5, 9)
    assert result.extracted_url is None


def test_wrap_then_unwrap_round_trip():
    wrapped = format_link("see docs", 4, 8, url="https://x.io")
    restored = format_link(wrapped.text, wrapped.selection_start, wrapped.selection_end)
    assert restored.text == "see docs"
    assert (restored.selection_start, restored.selection_end) == (4, 8)
    assert restored.extracted_url == "https://x.io"


def test_empty_selection_inserts_placeholder_link():
    result = format_link("", 0, 0)
    assert result.text == "[link text](url)"
    assert (result.selection_start, result.selection_end) == (1, 10)


def test_empty_selection_uses_given_text_and_options():
    assert format_link("ab", 1, 1, url="u", link_text="here").text == "a[here](u)b"
    options = FormattingOptions(link_placeholder_text="title", link_placeholder_url="https://")
    assert format_link("", 0, 0, options=options).text == "[title](https://)"


def test_edit_link_rewrites_in_place():
    result = edit_link("Read [old](http://a.com) now", 6, 6, "new", "http://b.com")
    assert result.text == "Read [new](http://b.com) now"
    assert (result.selection_start, result.selection_end) == (6, 9)


def test_edit_link_without_existing_link_inserts():
    assert edit_link("go ", 3, 3, "site", "https://s.io").text == "go [site](https://s.io)"


def test_create_helpers():
    assert create_link("a", "b") == "[a](b)"
    assert create_image("alt", "p.png") == "![alt](p.png)"


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://example.com", True),
        ("mailto:someone@example.com", True),
        ("docs/page.md", True),
        ("#section", True),
        ("./img.png", True),
        ("", False),
        ("   ", False),
        ("http://", False),
        ("://bad", False),
    ],
)
def test_is_valid_url(url, expected):
    assert is_valid_url(url) is expected
