from __future__ import annotations

import argparse
import dataclasses
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from PySide6.QtCore import QtMsgType, qInstallMessageHandler
from PySide6.QtWidgets import QApplication

from mdtoolbar.app import config
from mdtoolbar.app.ui.main_window import MainWindow
from mdtoolbar.engine.results import BULLET_MARKERS, ITALIC_MARKERS, FormattingOptions

logger = logging.getLogger(__name__)


# ============================================================================
# DEBUG CONFIGURATION - Environment Variables
# ============================================================================
# MDTOOLBAR_DEBUG            - DEBUG level logging for the whole app (same as --debug)
# MDTOOLBAR_DETAILED_LOGGING - per-call tracing inside the formatting engine
#
# Examples:
#   MDTOOLBAR_DEBUG=1 mdtoolbar notes.md
#   MDTOOLBAR_DETAILED_LOGGING=1 mdtoolbar --debug notes.md
# ============================================================================

def _debug_enabled(var_name: str) -> bool:
    """Check if a debug flag is enabled."""
    return os.getenv(var_name, "0") not in ("0", "false", "False", "", None)


def _qt_message_handler(mode: QtMsgType, context, message: str) -> None:
    """Route Qt messages through logging, dropping known harmless ones."""
    if "QTextCursor::setPosition" in message:
        return
    if "Accessible invalid" in message or "Could not find accessible on path" in message:
        return
    if mode == QtMsgType.QtDebugMsg:
        logger.debug("Qt: %s", message)
    elif mode == QtMsgType.QtWarningMsg:
        logger.warning("Qt: %s", message)
    else:
        logger.error("Qt: %s", message)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="mdtoolbar", description="Markdown editor with a context-aware formatting toolbar.")
    parser.add_argument("path", nargs="?", help="Markdown file to open at startup.")
    parser.add_argument("--italic-marker", choices=ITALIC_MARKERS, help="Delimiter used when adding italics.")
    parser.add_argument("--bullet-marker", choices=BULLET_MARKERS, help="Marker used when adding bullet and task lines.")
    parser.add_argument("--last", action="store_true", help="Reopen the last file when no path is given.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return parser.parse_args(list(argv))


def build_options(args: argparse.Namespace) -> FormattingOptions:
    """Saved preferences with command line overrides applied."""
    options = config.load_formatting_options()
    overrides = {}
    if args.italic_marker:
        overrides["italic_marker"] = args.italic_marker
    if args.bullet_marker:
        overrides["bullet_marker"] = args.bullet_marker
    return dataclasses.replace(options, **overrides) if overrides else options


def _document_path(args: argparse.Namespace) -> Optional[Path]:
    if args.path:
        return Path(args.path).expanduser()
    if args.last:
        last = config.load_last_file()
        return Path(last) if last else None
    return None


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    debug = args.debug or _debug_enabled("MDTOOLBAR_DEBUG")
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config.init_settings()
    options = build_options(args)

    path = _document_path(args)
    text: Optional[str] = None
    if path is not None:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            print(f"mdtoolbar: cannot open {path}: {exc}", file=sys.stderr)
            return 1

    qInstallMessageHandler(_qt_message_handler)
    qt_app = QApplication.instance() or QApplication(sys.argv)
    window = MainWindow(options=options)
    if path is not None and text is not None:
        window.load_document(path, text)
    window.show()
    logger.debug("Entering Qt event loop")
    return qt_app.exec()


if __name__ == "__main__":  # pragma: no cover - manual entry point
    sys.exit(main())
