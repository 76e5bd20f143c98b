from __future__ import annotations

import logging
import os
from typing import Callable, Optional

from PySide6.QtCore import Qt, QTimer, Signal
from PySide6.QtGui import QTextCursor
from PySide6.QtWidgets import QDialog, QTextEdit

from mdtoolbar.app import config
from mdtoolbar.engine import blocks, headings, lists
from mdtoolbar.engine.context import MarkdownContext, detect_context
from mdtoolbar.engine.formatter import Construct, edit_link, format_inline, format_link, is_valid_url
from mdtoolbar.engine.results import FormattingOptions, FormattingResult

from .edit_link_dialog import EditLinkDialog

logger = logging.getLogger(__name__)

_DETAILED_LOGGING = os.getenv("MDTOOLBAR_DETAILED_LOGGING", "0") not in ("0", "false", "False", "", None)


def _utf16_length(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def utf16_to_offset(text: str, position: int) -> int:
    """Convert a Qt cursor position (UTF-16 units) into a ``str`` index."""
    if _utf16_length(text) == len(text):
        return max(0, min(position, len(text)))
    units = 0
    for index, char in enumerate(text):
        if units >= position:
            return index
        units += 2 if ord(char) > 0xFFFF else 1
    return len(text)


def offset_to_utf16(text: str, offset: int) -> int:
    """Convert a ``str`` index into a Qt cursor position."""
    offset = max(0, min(offset, len(text)))
    return _utf16_length(text[:offset])


def _changed_region(old: str, new: str) -> tuple[int, int, int]:
    """Return ``(start, old_end, new_end)`` of the part that differs."""
    limit = min(len(old), len(new))
    start = 0
    while start < limit and old[start] == new[start]:
        start += 1
    old_end, new_end = len(old), len(new)
    while old_end > start and new_end > start and old[old_end - 1] == new[new_end - 1]:
        old_end -= 1
        new_end -= 1
    return start, old_end, new_end


class MarkdownEditor(QTextEdit):
    """Plain-text markdown editor whose toolbar actions go through the formatting engine.

    Every action reads the whole buffer plus the selection, lets the engine
    compute a ``FormattingResult`` and applies only the changed region in a
    single edit block, so one undo reverts one toolbar click.
    """

    contextChanged = Signal(object)  # MarkdownContext at the cursor
    linkExtracted = Signal(str)  # URL of a link that was just unwrapped
    formattingApplied = Signal(str)  # name of the action that changed the text

    def __init__(self, parent=None, options: Optional[FormattingOptions] = None) -> None:
        super().__init__(parent)
        self._options = options if options is not None else config.load_formatting_options()
        self._link_dialog_factory: Callable[..., QDialog] = EditLinkDialog
        self.setAcceptRichText(False)
        self.setPlaceholderText("Open a Markdown file to begin editing…")
        self.setTabStopDistance(4 * self.fontMetrics().horizontalAdvance(" "))
        self.setLineWrapMode(QTextEdit.LineWrapMode.WidgetWidth)
        self._context_timer = QTimer(self)
        self._context_timer.setInterval(120)
        self._context_timer.setSingleShot(True)
        self._context_timer.timeout.connect(self._emit_context)
        self.cursorPositionChanged.connect(self._context_timer.start)
        self.textChanged.connect(self._context_timer.start)

    @property
    def options(self) -> FormattingOptions:
        return self._options

    def set_options(self, options: FormattingOptions) -> None:
        self._options = options

    def _status_message(self, msg: str, duration: int = 2000) -> None:
        window = self.window()
        if window is not None and hasattr(window, "statusBar"):
            window.statusBar().showMessage(msg, duration)

    # --- engine plumbing -------------------------------------------------

    def selection_offsets(self) -> tuple[str, int, int]:
        """Return ``(text, start, end)`` with the selection as ``str`` indices."""
        text = self.toPlainText()
        cursor = self.textCursor()
        start = utf16_to_offset(text, cursor.selectionStart())
        end = utf16_to_offset(text, cursor.selectionEnd())
        return text, start, end

    def set_selection_offsets(self, start: int, end: Optional[int] = None) -> None:
        text = self.toPlainText()
        end = start if end is None else end
        cursor = self.textCursor()
        cursor.setPosition(offset_to_utf16(text, start))
        cursor.setPosition(offset_to_utf16(text, end), QTextCursor.KeepAnchor)
        self.setTextCursor(cursor)

    def apply_result(self, result: FormattingResult, action: str = "") -> bool:
        """Apply ``result`` as one undoable edit and restore its selection.

        Returns False (and leaves the undo stack alone) when nothing changed.
        """
        old = self.toPlainText()
        if result.text == old:
            self.set_selection_offsets(result.selection_start, result.selection_end)
            return False
        start, old_end, new_end = _changed_region(old, result.text)
        cursor = self.textCursor()
        cursor.beginEditBlock()
        cursor.setPosition(offset_to_utf16(old, start))
        cursor.setPosition(offset_to_utf16(old, old_end), QTextCursor.KeepAnchor)
        cursor.insertText(result.text[start:new_end])
        cursor.endEditBlock()
        self.set_selection_offsets(result.selection_start, result.selection_end)
        if _DETAILED_LOGGING:
            logger.debug("Applied %s: replaced %s-%s with %d chars", action or "edit", start, old_end, new_end - start)
        self.formattingApplied.emit(action)
        return True

    def _run(self, action: str, operation: Callable[..., FormattingResult], *args, **kwargs) -> FormattingResult:
        text, start, end = self.selection_offsets()
        result = operation(text, start, end, *args, **kwargs)
        self.apply_result(result, action)
        return result

    def context_at_cursor(self) -> MarkdownContext:
        text, start, end = self.selection_offsets()
        return detect_context(text, start, end)

    def _emit_context(self) -> None:
        self.contextChanged.emit(self.context_at_cursor())

    # --- inline toggles --------------------------------------------------

    def toggle_inline(self, construct: Construct | str) -> FormattingResult:
        return self._run(Construct(construct).value, format_inline, construct, options=self._options)

    def toggle_bold(self) -> FormattingResult:
        return self.toggle_inline(Construct.BOLD)

    def toggle_italic(self) -> FormattingResult:
        return self.toggle_inline(Construct.ITALIC)

    def toggle_strikethrough(self) -> FormattingResult:
        return self.toggle_inline(Construct.STRIKETHROUGH)

    def toggle_code(self) -> FormattingResult:
        return self.toggle_inline(Construct.CODE)

    def toggle_math(self) -> FormattingResult:
        return self.toggle_inline(Construct.MATH)

    # --- links and images ------------------------------------------------

    def toggle_link(self, url: Optional[str] = None) -> FormattingResult:
        """Unwrap the link at the cursor or wrap the selection in a new one."""
        result = self._run("link", format_link, url=url, options=self._options)
        if result.extracted_url:
            self.linkExtracted.emit(result.extracted_url)
        return result

    def link_at_cursor(self) -> Optional[tuple[str, str]]:
        """Return ``(text, url)`` of the link under the cursor, if any."""
        context = self.context_at_cursor()
        if context.link is None:
            return None
        return context.link.text, context.link.url

    def insert_link(self, url: str, link_text: Optional[str] = None) -> Optional[FormattingResult]:
        if not is_valid_url(url):
            self._status_message(f"Not a valid link target: {url}")
            return None
        text, start, end = self.selection_offsets()
        display = link_text or text[start:end] or self._options.link_placeholder_text
        return self._run("link", edit_link, display, url.strip())

    def edit_link_at_cursor(self) -> bool:
        """Open the link dialog for the link under the cursor (or a new one)."""
        existing = self.link_at_cursor()
        if existing:
            link_text, link_to = existing
        else:
            text, start, end = self.selection_offsets()
            link_text, link_to = text[start:end], ""
        dialog = self._link_dialog_factory(link_to, link_text, self)
        if dialog.exec() != QDialog.Accepted:
            return False
        return self.insert_link(dialog.link_to(), dialog.link_text()) is not None

    def insert_image(self, url: str, alt_text: Optional[str] = None) -> FormattingResult:
        return self._run("image", blocks.insert_image, url, alt_text=alt_text, options=self._options)

    # --- lists, headings and blocks --------------------------------------

    def toggle_list(self, list_type: str = "bullet") -> FormattingResult:
        return self._run(f"{list_type} list", lists.format_list, list_type, options=self._options)

    def toggle_bullet_list(self) -> FormattingResult:
        return self.toggle_list("bullet")

    def toggle_numbered_list(self) -> FormattingResult:
        return self.toggle_list("numbered")

    def toggle_task_list(self) -> FormattingResult:
        return self.toggle_list("task")

    def toggle_task_state(self) -> FormattingResult:
        text, start, _end = self.selection_offsets()
        result = lists.toggle_task_state(text, start)
        self.apply_result(result, "task state")
        return result

    def set_heading(self, level: int) -> FormattingResult:
        return self._run(f"heading {level}", headings.set_heading, level)

    def cycle_heading(self) -> FormattingResult:
        return self._run("heading", headings.cycle_heading)

    def promote_heading(self) -> FormattingResult:
        return self._run("promote heading", headings.promote_heading)

    def demote_heading(self) -> FormattingResult:
        return self._run("demote heading", headings.demote_heading)

    def insert_toc(self) -> FormattingResult:
        result = self._run("table of contents", headings.generate_toc, options=self._options)
        if not result.changed:
            self._status_message("No headings found in document")
        return result

    def toggle_blockquote(self) -> FormattingResult:
        return self._run("quote", blocks.toggle_blockquote)

    def insert_horizontal_rule(self) -> FormattingResult:
        return self._run("rule", blocks.insert_horizontal_rule)

    def insert_code_block(self, language: Optional[str] = None) -> FormattingResult:
        return self._run("code block", blocks.insert_code_block, language, options=self._options)

    def insert_math_block(self) -> FormattingResult:
        return self._run("math block", blocks.insert_math_block)

    def insert_footnote(self) -> FormattingResult:
        return self._run("footnote", blocks.insert_footnote)

    def insert_line_break(self) -> FormattingResult:
        return self._run("line break", blocks.insert_line_break)

    # --- keyboard --------------------------------------------------------

    def keyPressEvent(self, event):  # type: ignore[override]
        modifiers = event.modifiers() & ~Qt.KeypadModifier
        key = event.key()
        if modifiers == Qt.ControlModifier:
            shortcuts = (
                (Qt.Key_B, self.toggle_bold),
                (Qt.Key_I, self.toggle_italic),
                (Qt.Key_K, self.toggle_strikethrough),
                (Qt.Key_QuoteLeft, self.toggle_code),
                (Qt.Key_L, self.toggle_bullet_list),
                (Qt.Key_T, self.toggle_task_list),
                (Qt.Key_H, self.cycle_heading),
                (Qt.Key_Q, self.toggle_blockquote),
                (Qt.Key_E, self.edit_link_at_cursor),
                (Qt.Key_Return, self.toggle_task_state),
                (Qt.Key_Enter, self.toggle_task_state),
            )
            for shortcut, handler in shortcuts:
                if key == shortcut:
                    handler()
                    event.accept()
                    return
        if modifiers == (Qt.ControlModifier | Qt.ShiftModifier) and key == Qt.Key_L:
            self.toggle_numbered_list()
            event.accept()
            return
        super().keyPressEvent(event)
