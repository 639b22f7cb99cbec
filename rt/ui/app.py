import sys
from PySide6.QtCore import Qt
from PySide6.QtGui import QFont
from PySide6.QtWidgets import (
    QApplication,
    QDialog,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)
from rt.common.logger import log
from rt.core.coordinator import TimerCoordinator
from rt.core.status import GoalStatus, StatusFileSink
from rt.ui.dialogs import SettingsDialog
from rt.ui.tray import TrayNotifier
from rt.util import format_description, format_simplified, format_time

_STATUS_COLORS = {
    GoalStatus.ON_TRACK: "#2e9e44",
    GoalStatus.WARNING: "#d9a400",
    GoalStatus.OVER_LIMIT: "#d12f2f",
}
_STATUS_TEXT = {
    GoalStatus.ON_TRACK: "On track",
    GoalStatus.WARNING: "Warning",
    GoalStatus.OVER_LIMIT: "Over limit",
}


# ---------------------------------------------------------------------------
# Main window
# ---------------------------------------------------------------------------

# Thin shell over TimerCoordinator: one toggle, the live figure, the reminder countdown and today's sessions.
class MainWindow(QMainWindow):

    def __init__(self, coordinator):
        super().__init__()
        self.setWindowTitle("Retainer Tracker")
        self.coordinator = coordinator

        central = QWidget()
        self.setCentralWidget(central)
        lay = QVBoxLayout(central)

        self._progress_lbl = QLabel()
        self._progress_lbl.setFont(QFont("Calibri", 32))
        self._progress_lbl.setAlignment(Qt.AlignCenter)
        lay.addWidget(self._progress_lbl)

        self._status_lbl = QLabel()
        self._status_lbl.setAlignment(Qt.AlignCenter)
        lay.addWidget(self._status_lbl)

        self._toggle_btn = QPushButton()
        self._toggle_btn.setFont(QFont("Calibri", 14))
        self._toggle_btn.clicked.connect(self._on_toggle)
        lay.addWidget(self._toggle_btn)

        self._reminder_lbl = QLabel()
        self._reminder_lbl.setAlignment(Qt.AlignCenter)
        lay.addWidget(self._reminder_lbl)

        self._streak_lbl = QLabel()
        self._streak_lbl.setAlignment(Qt.AlignCenter)
        lay.addWidget(self._streak_lbl)

        self._sessions_list = QListWidget()
        lay.addWidget(self._sessions_list, 1)

        btn_row = QHBoxLayout()
        undo_btn = QPushButton("Undo last")
        undo_btn.clicked.connect(self._on_undo)
        btn_row.addWidget(undo_btn)
        clear_btn = QPushButton("Delete today")
        clear_btn.clicked.connect(self._on_delete_today)
        btn_row.addWidget(clear_btn)
        btn_row.addStretch()
        cfg_btn = QPushButton("Settings")
        cfg_btn.clicked.connect(self._on_config)
        btn_row.addWidget(cfg_btn)
        lay.addLayout(btn_row)

        coordinator.progress_changed.connect(self._update_progress)
        coordinator.running_changed.connect(self._update_toggle)
        coordinator.reminder_changed.connect(self._update_reminder)
        coordinator.sessions_changed.connect(self._rebuild_sessions)

        app = QApplication.instance()
        if app is not None:
            app.applicationStateChanged.connect(self._on_app_state)

        self._update_progress(coordinator.current_progress)
        self._update_toggle(coordinator.is_running)
        self._update_reminder(coordinator.reminder_countdown)
        self._rebuild_sessions()

    # ------------------------------------------------------------------ #
    #  Button handlers                                                     #
    # ------------------------------------------------------------------ #

    def _on_toggle(self):
        self.coordinator.toggle()

    def _on_undo(self):
        self.coordinator.undo_last_session()

    def _on_delete_today(self):
        if QMessageBox.question(self, "Confirm", "Delete all of today's sessions?") == QMessageBox.Yes:
            self.coordinator.delete_all_today_sessions()

    def _on_config(self):
        cfg = {
            "goal": self.coordinator.goal,
            "danger": self.coordinator.danger,
            "reminder": self.coordinator.selected_reminder,
            "show_goal_status": self.coordinator.show_goal_status,
        }
        dlg = SettingsDialog(self, cfg)
        if dlg.exec() == QDialog.Accepted:
            self.coordinator.set_thresholds(dlg.chosen_goal, dlg.chosen_danger)
            self.coordinator.selected_reminder = dlg.chosen_reminder
            self.coordinator.show_goal_status = dlg.chosen_show_goal_status
            self._update_progress(self.coordinator.current_progress)
            self._rebuild_sessions()

    def _on_app_state(self, state):
        if state == Qt.ApplicationActive:
            self.coordinator.app_did_become_active()
        elif state in (Qt.ApplicationHidden, Qt.ApplicationSuspended):
            self.coordinator.app_will_become_inactive()

    # ------------------------------------------------------------------ #
    #  Display helpers                                                     #
    # ------------------------------------------------------------------ #

    def _update_progress(self, progress):
        status = self.coordinator.goal_status
        self._progress_lbl.setText(format_time(progress))
        self._progress_lbl.setStyleSheet(f"color: {_STATUS_COLORS[status]};")
        self._status_lbl.setVisible(self.coordinator.show_goal_status)
        self._status_lbl.setText(f"{_STATUS_TEXT[status]} (goal {format_description(self.coordinator.goal)})")

    def _update_toggle(self, running):
        self._toggle_btn.setText("Retainer in" if running else "Retainer out")

    def _update_reminder(self, remaining):
        self._reminder_lbl.setText(f"Reminder in {format_time(remaining)}" if remaining > 0 else "")

    def _rebuild_sessions(self):
        self._sessions_list.clear()
        for session in self.coordinator.today_sessions:
            self._sessions_list.addItem(
                f"{session.start:%H:%M} - {session.end:%H:%M}   {format_simplified(session.duration)}")
        streaks = self.coordinator.streak_stats()
        self._streak_lbl.setText(
            f"Streak {streaks.current_streak} · Best {streaks.best_streak} · "
            f"{streaks.days_met_goal_last_7_days}/7 days")

    # ------------------------------------------------------------------ #
    #  Window close                                                        #
    # ------------------------------------------------------------------ #

    def closeEvent(self, event):
        self.coordinator.shutdown()
        event.accept()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    app = QApplication(sys.argv)
    notifier = TrayNotifier()
    notifier.request_permission()
    coordinator = TimerCoordinator(notifier=notifier, status_sink=StatusFileSink())
    window = MainWindow(coordinator)
    window.show()
    log.info("Main window shown")
    sys.exit(app.exec())
