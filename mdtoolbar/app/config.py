from __future__ import annotations

import json
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Optional, Sequence

from mdtoolbar.engine.results import DEFAULT_OPTIONS, FormattingOptions

logger = logging.getLogger(__name__)

GLOBAL_CONFIG = Path.home() / ".mdtoolbar_config.json"

# Toolbar buttons the editor window knows how to build, in display order.
TOOLBAR_BUTTONS = (
    "bold",
    "italic",
    "strikethrough",
    "code",
    "math",
    "link",
    "image",
    "list",
    "numbered",
    "task",
    "quote",
    "heading",
    "code_block",
    "rule",
    "footnote",
    "toc",
)
DEFAULT_BUTTONS = ("bold", "italic", "code", "link", "list")


def init_settings() -> None:
    GLOBAL_CONFIG.parent.mkdir(parents=True, exist_ok=True)


def _read_global_config() -> dict:
    """Return the parsed global config, or an empty dict on error/missing."""
    if not GLOBAL_CONFIG.exists():
        return {}
    try:
        payload = json.loads(GLOBAL_CONFIG.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        logger.warning("Ignoring unreadable config file %s", GLOBAL_CONFIG)
        return {}
    return payload if isinstance(payload, dict) else {}


def _update_global_config(updates: dict) -> None:
    """Merge updates into global config file."""
    existing = _read_global_config()
    existing.update(updates)
    init_settings()
    GLOBAL_CONFIG.write_text(json.dumps(existing, indent=2), encoding="utf-8")


def load_formatting_options() -> FormattingOptions:
    """Return the saved formatting preferences merged with defaults.

    Unknown keys are dropped; a value the engine rejects (for example an
    italic marker other than ``*`` or ``_``) falls back to its default.
    """
    payload = _read_global_config().get("formatting", {})
    if not isinstance(payload, dict):
        return DEFAULT_OPTIONS
    values = asdict(DEFAULT_OPTIONS)
    for field_info in fields(FormattingOptions):
        candidate = payload.get(field_info.name)
        if not isinstance(candidate, str):
            continue
        trial = dict(values, **{field_info.name: candidate})
        try:
            FormattingOptions(**trial)
        except ValueError:
            logger.warning("Ignoring invalid %s %r in %s", field_info.name, candidate, GLOBAL_CONFIG)
            continue
        values = trial
    return FormattingOptions(**values)


def save_formatting_options(options: FormattingOptions) -> None:
    """Persist formatting preferences."""
    _update_global_config({"formatting": asdict(options)})


def load_enabled_buttons() -> list[str]:
    """Return the toolbar buttons to show (default: bold, italic, code, link, list)."""
    buttons = _read_global_config().get("toolbar_buttons")
    if not isinstance(buttons, list):
        return list(DEFAULT_BUTTONS)
    result: list[str] = []
    for name in buttons:
        if name in TOOLBAR_BUTTONS and name not in result:
            result.append(name)
        else:
            logger.warning("Ignoring unknown or repeated toolbar button %r", name)
    return result


def save_enabled_buttons(buttons: Sequence[str]) -> None:
    """Persist the toolbar buttons; unknown names are rejected."""
    unknown = [name for name in buttons if name not in TOOLBAR_BUTTONS]
    if unknown:
        raise ValueError(f"Unknown toolbar buttons: {', '.join(map(str, unknown))}")
    _update_global_config({"toolbar_buttons": list(dict.fromkeys(buttons))})


def load_default_markdown_font_size(default: int = 12) -> int:
    """Return preferred Markdown editor font size."""
    payload = _read_global_config()
    size = payload.get("default_markdown_font_size")
    try:
        return max(6, int(size))
    except (TypeError, ValueError):
        return max(6, int(default))


def save_default_markdown_font_size(size: int) -> None:
    """Persist preferred Markdown editor font size."""
    try:
        value = max(6, int(size))
    except (TypeError, ValueError):
        value = 12
    _update_global_config({"default_markdown_font_size": value})


def load_last_file() -> Optional[str]:
    """Load the last opened file path. Returns None if no file was previously opened."""
    last = _read_global_config().get("last_file")
    return last if isinstance(last, str) and last else None


def save_last_file(path: str) -> None:
    _update_global_config({"last_file": str(Path(path))})
