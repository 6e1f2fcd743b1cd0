"""Resolve dialog — lets the user pick platform and emulator for a file."""

from __future__ import annotations

import os
import sys

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QApplication, QWidget
from qfluentwidgets import BodyLabel, CaptionLabel, ComboBox, MessageBoxBase, SubtitleLabel

from rominstaller.core.resolve import ResolveChoices
from rominstaller.i18n import t
from rominstaller.models.install_plan import InstallPlan


class ResolveDialog(MessageBoxBase):
    """Two combo boxes driven by :class:`ResolveChoices`."""

    def __init__(self, plan: InstallPlan, choices: ResolveChoices, parent=None) -> None:
        super().__init__(parent)
        self._plan = plan
        self._choices = choices
        self._init_content()

    @property
    def selection(self) -> tuple[str, str]:
        """``(group, emulator_id)`` as chosen by the user."""
        return self._choices.selected_group, self._choices.selected_emulator

    def _init_content(self) -> None:
        self.titleLabel = SubtitleLabel(t("resolve.title"), self)
        self.viewLayout.addWidget(self.titleLabel)

        self.viewLayout.addWidget(BodyLabel(
            t("resolve.file", name=os.path.basename(self._plan.source_path)),
            self,
        ))

        if self._plan.notes:
            notes = CaptionLabel("\n".join(self._plan.notes), self)
            notes.setWordWrap(True)
            notes.setToolTip(t("resolve.notes"))
            self.viewLayout.addWidget(notes)

        self.viewLayout.addWidget(BodyLabel(t("resolve.group"), self))
        self._group_combo = ComboBox(self)
        for group in self._choices.group_options:
            self._group_combo.addItem(group, userData=group)
        self.viewLayout.addWidget(self._group_combo)

        self.viewLayout.addWidget(BodyLabel(t("resolve.emulator"), self))
        self._emu_combo = ComboBox(self)
        self.viewLayout.addWidget(self._emu_combo)

        if self._choices.selected_group in self._choices.group_options:
            self._group_combo.setCurrentIndex(
                self._choices.group_options.index(self._choices.selected_group)
            )
        self._fill_emulators()
        self._group_combo.currentIndexChanged.connect(self._on_group_changed)
        self._emu_combo.currentIndexChanged.connect(self._on_emulator_changed)

        self.yesButton.setText(t("common.confirm"))
        self.cancelButton.setText(t("common.cancel"))
        self.widget.setMinimumWidth(420)

    def _fill_emulators(self) -> None:
        self._emu_combo.blockSignals(True)
        self._emu_combo.clear()
        for option in self._choices.emulator_options:
            self._emu_combo.addItem(option.label, userData=option.id)
        ids = [o.id for o in self._choices.emulator_options]
        if self._choices.selected_emulator in ids:
            self._emu_combo.setCurrentIndex(ids.index(self._choices.selected_emulator))
        self._emu_combo.setEnabled(bool(ids))
        if not ids:
            self._emu_combo.setPlaceholderText(t("resolve.no_emulator"))
        self._emu_combo.blockSignals(False)
        self.yesButton.setEnabled(self._choices.complete)

    def _on_group_changed(self, index: int) -> None:
        if index < 0:
            return
        self._choices.select_group(self._group_combo.itemData(index))
        self._fill_emulators()

    def _on_emulator_changed(self, index: int) -> None:
        if index < 0:
            return
        self._choices.select_emulator(self._emu_combo.itemData(index))
        self.yesButton.setEnabled(self._choices.complete)

    def _validate(self) -> bool:
        return self._choices.complete


def run_resolve_dialog(plan: InstallPlan, choices: ResolveChoices) -> tuple[str, str] | None:
    """Show the dialog modally; ``None`` when the user cancels."""
    app = QApplication.instance() or QApplication(sys.argv[:1])

    # MessageBoxBase draws over its parent window
    host = QWidget()
    host.setWindowTitle(t("resolve.title"))
    host.setWindowFlag(Qt.WindowType.WindowStaysOnTopHint, True)
    host.resize(560, 400)
    host.show()

    dialog = ResolveDialog(plan, choices, parent=host)
    accepted = bool(dialog.exec())
    selection = dialog.selection
    host.close()
    app.processEvents()
    return selection if accepted else None
