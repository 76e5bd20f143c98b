from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import QFileDialog, QMainWindow, QMessageBox, QToolBar

from mdtoolbar.app import config
from mdtoolbar.engine.context import MarkdownContext
from mdtoolbar.engine.results import FormattingOptions

from .markdown_editor import MarkdownEditor

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Single document window: the editor plus a formatting toolbar."""

    def __init__(
        self,
        options: Optional[FormattingOptions] = None,
        buttons: Optional[Sequence[str]] = None,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Markdown Toolbar")
        self.resize(900, 700)
        self._path: Optional[Path] = None
        self.editor = MarkdownEditor(self, options=options)
        font = self.editor.font()
        font.setPointSize(config.load_default_markdown_font_size())
        self.editor.setFont(font)
        self.setCentralWidget(self.editor)
        self.toolbar = QToolBar("Formatting", self)
        self.toolbar.setObjectName("formattingToolbar")
        self.addToolBar(self.toolbar)
        self.toolbar_actions: dict[str, QAction] = {}
        self._build_toolbar(buttons if buttons is not None else config.load_enabled_buttons())
        self._build_menus()
        self.editor.contextChanged.connect(self._sync_toolbar_state)
        self.editor.linkExtracted.connect(
            lambda url: self.statusBar().showMessage(f"Link removed: {url}", 3000)
        )
        self.statusBar()

    def _button_specs(self) -> dict[str, tuple[str, Callable[[], object], bool]]:
        """Toolbar button name -> (label, handler, checkable)."""
        editor = self.editor
        return {
            "bold": ("B", editor.toggle_bold, True),
            "italic": ("I", editor.toggle_italic, True),
            "strikethrough": ("S", editor.toggle_strikethrough, True),
            "code": ("</>", editor.toggle_code, True),
            "math": ("$", editor.toggle_math, False),
            "link": ("Link", editor.toggle_link, True),
            "image": ("Image", self._insert_image, False),
            "list": ("List", editor.toggle_bullet_list, True),
            "numbered": ("1.", editor.toggle_numbered_list, False),
            "task": ("Task", editor.toggle_task_list, True),
            "quote": ("Quote", editor.toggle_blockquote, False),
            "heading": ("H", editor.cycle_heading, False),
            "code_block": ("```", editor.insert_code_block, False),
            "rule": ("---", editor.insert_horizontal_rule, False),
            "footnote": ("Note", editor.insert_footnote, False),
            "toc": ("TOC", editor.insert_toc, False),
        }

    def _build_toolbar(self, buttons: Sequence[str]) -> None:
        specs = self._button_specs()
        for name in buttons:
            spec = specs.get(name)
            if spec is None:
                logger.warning("No toolbar button named %r", name)
                continue
            label, handler, checkable = spec
            action = QAction(label, self)
            action.setObjectName(f"action_{name}")
            action.setToolTip(name.replace("_", " ").title())
            action.setCheckable(checkable)
            action.triggered.connect(lambda _checked=False, h=handler: h())
            self.toolbar.addAction(action)
            self.toolbar_actions[name] = action

    def _build_menus(self) -> None:
        file_menu = self.menuBar().addMenu("File")
        open_action = QAction("Open…", self)
        open_action.setShortcut(QKeySequence.Open)
        open_action.triggered.connect(self._choose_file)
        file_menu.addAction(open_action)
        save_action = QAction("Save", self)
        save_action.setShortcut(QKeySequence.Save)
        save_action.triggered.connect(self.save_file)
        file_menu.addAction(save_action)

    def _sync_toolbar_state(self, context: MarkdownContext) -> None:
        states = {
            "bold": context.is_bold,
            "italic": context.is_italic,
            "strikethrough": context.is_strikethrough,
            "code": context.is_code,
            "link": context.is_link,
            "list": context.is_list and not context.is_task,
            "task": context.is_task,
        }
        for name, active in states.items():
            action = self.toolbar_actions.get(name)
            if action is not None:
                action.setChecked(active)

    def _insert_image(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Insert Image", "", "Images (*.png *.jpg *.jpeg *.gif *.svg)")
        if path:
            self.editor.insert_image(Path(path).as_posix())

    def _choose_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Open Markdown", "", "Markdown (*.md *.markdown *.txt)")
        if path:
            try:
                self.open_file(Path(path))
            except OSError as exc:
                QMessageBox.warning(self, "Open Failed", f"Could not open {path}:\n{exc}")

    @property
    def current_path(self) -> Optional[Path]:
        return self._path

    def open_file(self, path: Path) -> None:
        """Load ``path`` into the editor; OSError propagates to the caller."""
        self.load_document(path, path.read_text(encoding="utf-8"))

    def load_document(self, path: Path, text: str) -> None:
        self.editor.setPlainText(text)
        self._path = path
        self.setWindowTitle(f"{path.name} - Markdown Toolbar")
        config.save_last_file(str(path))
        logger.info("Opened %s", path)

    def save_file(self) -> bool:
        if self._path is None:
            chosen, _ = QFileDialog.getSaveFileName(self, "Save Markdown", "", "Markdown (*.md)")
            if not chosen:
                return False
            self._path = Path(chosen)
        try:
            self._path.write_text(self.editor.toPlainText(), encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to save %s: %s", self._path, exc)
            QMessageBox.warning(self, "Save Failed", f"Could not save {self._path}:\n{exc}")
            return False
        self.statusBar().showMessage(f"Saved {self._path.name}", 2000)
        return True
