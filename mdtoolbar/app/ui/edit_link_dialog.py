from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QLabel,
    QLineEdit,
    QVBoxLayout,
)

from mdtoolbar.engine.formatter import is_valid_url


def _single_line(text: str) -> str:
    # Qt hands paragraph separators back from pasted text
    return text.replace("\u2029", " ").replace("\n", " ").replace("\r", " ").strip()


class EditLinkDialog(QDialog):
    """Dialog to edit a markdown link with separate display text and target.

    OK stays disabled while the target does not look like a URL or path.
    """

    def __init__(self, link_to: str = "", link_text: str = "", parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Edit Link")
        self.resize(460, 140)
        self.setModal(True)
        self.setWindowModality(Qt.ApplicationModal)

        # Display text follows the target until the user types their own
        self._link_name_manually_edited = bool(link_text)

        layout = QVBoxLayout(self)
        form = QFormLayout()

        self.url_edit = QLineEdit(link_to)
        self.url_edit.setPlaceholderText("https://example.com or relative/path.md")
        self.url_edit.textChanged.connect(self._on_url_changed)
        form.addRow("Link to:", self.url_edit)

        self.text_edit = QLineEdit(link_text or link_to)
        self.text_edit.setPlaceholderText("Display text (defaults to link target)")
        self.text_edit.textEdited.connect(self._on_link_name_changed)
        form.addRow("Link Name:", self.text_edit)
        layout.addLayout(form)

        self.hint_label = QLabel("")
        self.hint_label.setStyleSheet("color: #c0392b;")
        layout.addWidget(self.hint_label)

        self.buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        self.buttons.accepted.connect(self.accept)
        self.buttons.rejected.connect(self.reject)
        layout.addWidget(self.buttons)

        self._validate()

    def _on_url_changed(self, text: str) -> None:
        if not self._link_name_manually_edited:
            self.text_edit.setText(text)
        self._validate()

    def _on_link_name_changed(self, _text: str) -> None:
        self._link_name_manually_edited = True

    def _validate(self) -> bool:
        valid = is_valid_url(self.link_to())
        self.buttons.button(QDialogButtonBox.Ok).setEnabled(valid)
        self.hint_label.setText("" if valid or not self.url_edit.text() else "Not a valid URL or path")
        return valid

    def link_to(self) -> str:
        return _single_line(self.url_edit.text())

    def link_text(self) -> str:
        return _single_line(self.text_edit.text()) or self.link_to()
