"""Settings dialog: thresholds, default reminder and the status indicator toggle."""

from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QSpinBox,
    QVBoxLayout,
)
from rt.core.settings import DANGER_MAX, GOAL_MAX, GOAL_MIN, REMINDER_CHOICES


# Values are read back by MainWindow after the dialog is accepted, the same way for every field.
class SettingsDialog(QDialog):

    def __init__(self, parent, cfg):
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setModal(True)

        self.chosen_goal = cfg["goal"]
        self.chosen_danger = cfg["danger"]
        self.chosen_reminder = cfg["reminder"]
        self.chosen_show_goal_status = cfg["show_goal_status"]

        outer = QVBoxLayout(self)
        form = QFormLayout()

        # Thresholds are edited in minutes, stored in seconds
        self._goal = QSpinBox()
        self._goal.setRange(int(GOAL_MIN // 60), int(GOAL_MAX // 60))
        self._goal.setSuffix(" min")
        self._goal.setValue(int(self.chosen_goal // 60))
        self._goal.valueChanged.connect(self._on_goal_changed)
        form.addRow("Daily goal", self._goal)

        self._danger = QSpinBox()
        self._danger.setRange(self._goal.value(), int(DANGER_MAX // 60))
        self._danger.setSuffix(" min")
        self._danger.setValue(int(self.chosen_danger // 60))
        form.addRow("Danger limit", self._danger)

        self._reminder = QComboBox()
        for minutes in REMINDER_CHOICES:
            self._reminder.addItem(f"{minutes} minutes", minutes)
        self._reminder.setCurrentIndex(REMINDER_CHOICES.index(self.chosen_reminder))
        form.addRow("Default reminder", self._reminder)

        self._show_status = QCheckBox("Show goal status")
        self._show_status.setChecked(self.chosen_show_goal_status)
        form.addRow(self._show_status)

        outer.addLayout(form)

        buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self._apply)
        buttons.rejected.connect(self.reject)
        outer.addWidget(buttons)

    # Danger can never go below the goal
    def _on_goal_changed(self, value):
        self._danger.setMinimum(value)

    def _apply(self):
        self.chosen_goal = self._goal.value() * 60
        self.chosen_danger = self._danger.value() * 60
        self.chosen_reminder = self._reminder.currentData()
        self.chosen_show_goal_status = self._show_status.isChecked()
        self.accept()
