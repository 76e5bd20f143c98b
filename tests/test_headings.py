import pytest

from mdtoolbar.engine.headings import (
    Heading,
    cycle_heading,
    demote_heading,
    generate_toc,
    heading_level,
    heading_slug,
    list_headings,
    promote_heading,
    set_heading,
)


def test_set_heading_adds_marker_and_moves_caret():
    result = set_heading("Title", 0, 0, 2)
    assert result.text == "## Title"
    assert result.selection_start == 3


def test_set_heading_same_level_removes_it():
    result = set_heading("## Title", 5, 5, 2)
    assert result.text == "Title"
    assert result.selection_start == 2


def test_set_heading_replaces_other_level():
    assert set_heading("# Title", 0, 0, 3).text == "### Title"


def test_set_heading_only_touches_current_line():
    result = set_heading("a\nb", 2, 2, 1)
    assert result.text == "a\n# b"
    assert result.selection_start == 4


@pytest.mark.parametrize("level", [0, 7, -1])
def test_set_heading_rejects_bad_level(level):
    with pytest.raises(ValueError):
        set_heading("x", 0, 0, level)


@pytest.mark.parametrize(
    "line, expected",
    [("x", "# x"), ("## x", "### x"), ("###### x", "x"), ("#tag", "# #tag")],
)
def test_cycle_heading(line, expected):
    assert cycle_heading(line, 0, 0).text == expected


def test_promote_and_demote():
    assert promote_heading("## x", 0, 0).text == "# x"
    assert demote_heading("# x", 0, 0).text == "## x"
    assert not promote_heading("# x", 0, 0).changed
    assert not promote_heading("x", 0, 0).changed
    assert not demote_heading("###### x", 0, 0).changed
    assert not demote_heading("x", 0, 0).changed


def test_heading_level():
    assert heading_level("### three") == 3
    assert heading_level("#tag") == 0
    assert heading_level("plain") == 0


def test_list_headings_skips_fenced_code():
    assert list_headings("# A\n```\n# not\n```\n## B") == [
        Heading(1, "A", 0, 0),
        Heading(2, "B", 4, 18),
    ]


@pytest.mark.parametrize(
    "title, slug",
    [("Hello, World!", "hello-world"), ("API v2.0", "api-v20"), ("  ", "heading")],
)
def test_heading_slug(title, slug):
    assert heading_slug(title) == slug


def test_generate_toc():
    text = "# Intro\n## Setup Guide\n"
    result = generate_toc(text, 0, 0)
    block = "## Table of Contents\n\n- [Intro](#intro)\n  - [Setup Guide](#setup-guide)\n\n"
    assert result.text == block + text
    assert result.selection_start == len(block)


def test_generate_toc_disambiguates_repeated_titles():
    result = generate_toc("# A\n# A", 0, 0)
    assert "- [A](#a)\n- [A](#a-1)" in result.text


def test_generate_toc_skips_previous_toc_and_deep_levels():
    text = "## Table of Contents\n\n# One\n## Two"
    result = generate_toc(text, len(text), len(text), max_level=1)
    added = result.text[len(text):]
    assert "[One](#one)" in added
    assert "Two" not in added
    assert "[Table of Contents]" not in added


def test_generate_toc_without_headings_is_noop():
    assert not generate_toc("no headings", 0, 0).changed
    with pytest.raises(ValueError):
        generate_toc("# a", 0, 0, max_level=0)
