import json
import logging

import pytest

from mdtoolbar.app import config
from mdtoolbar.engine.results import DEFAULT_OPTIONS, FormattingOptions


def test_missing_file_gives_defaults(config_file):
    assert not config_file.exists()
    assert config.load_formatting_options() == DEFAULT_OPTIONS
    assert config.load_enabled_buttons() == ["bold", "italic", "code", "link", "list"]
    assert config.load_last_file() is None


def test_formatting_options_round_trip(config_file):
    options = FormattingOptions(italic_marker="_", bullet_marker="*", code_block_language="python")
    config.save_formatting_options(options)
    assert config.load_formatting_options() == options
    payload = json.loads(config_file.read_text(encoding="utf-8"))
    assert payload["formatting"]["italic_marker"] == "_"


def test_invalid_option_values_fall_back(config_file, caplog):
    config_file.write_text(
        json.dumps({"formatting": {"italic_marker": "+", "bullet_marker": "*", "unknown": 1}}),
        encoding="utf-8",
    )
    with caplog.at_level(logging.WARNING, logger="mdtoolbar.app.config"):
        options = config.load_formatting_options()
    assert options.italic_marker == "*"
    assert options.bullet_marker == "*"
    assert "italic_marker" in caplog.text


def test_malformed_json_gives_defaults(config_file):
    config_file.write_text("{not json", encoding="utf-8")
    assert config.load_formatting_options() == DEFAULT_OPTIONS


def test_enabled_buttons_round_trip(config_file):
    config.save_enabled_buttons(["toc", "bold", "bold"])
    assert config.load_enabled_buttons() == ["toc", "bold"]


def test_unknown_buttons_are_dropped_on_load(config_file):
    config_file.write_text(json.dumps({"toolbar_buttons": ["bold", "sparkle"]}), encoding="utf-8")
    assert config.load_enabled_buttons() == ["bold"]


def test_unknown_buttons_are_rejected_on_save(config_file):
    with pytest.raises(ValueError):
        config.save_enabled_buttons(["bold", "sparkle"])


def test_updates_merge_into_existing_payload(config_file):
    config.save_enabled_buttons(["bold"])
    config.save_formatting_options(DEFAULT_OPTIONS)
    config.save_last_file("/tmp/notes.md")
    payload = json.loads(config_file.read_text(encoding="utf-8"))
    assert set(payload) == {"toolbar_buttons", "formatting", "last_file"}


def test_font_size(config_file):
    assert config.load_default_markdown_font_size() == 12
    config.save_default_markdown_font_size(3)
    assert config.load_default_markdown_font_size() == 6
    config.save_default_markdown_font_size("abc")
    assert config.load_default_markdown_font_size() == 12
