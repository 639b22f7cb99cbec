from PySide6.QtCore import QObject, QTimer
from PySide6.QtWidgets import QApplication, QStyle, QSystemTrayIcon
from rt.common.logger import log
from rt.core.signals import REMINDER_ID

REMINDER_TITLE = "Retainer Reminder"
REMINDER_BODY = "Time to put your retainer back on!"


# Local one-shot reminder shown as a tray balloon. Only one reminder (REMINDER_ID) can be pending at a time.
class TrayNotifier(QObject):

    def __init__(self, parent=None):
        super().__init__(parent)
        self._tray = QSystemTrayIcon(self)
        app = QApplication.instance()
        if app is not None:
            self._tray.setIcon(app.style().standardIcon(QStyle.SP_MessageBoxInformation))
        self._tray.setToolTip("Retainer Tracker")

        self._pending = QTimer(self)
        self._pending.setSingleShot(True)
        self._pending.timeout.connect(self._fire)

    def request_permission(self):
        available = QSystemTrayIcon.isSystemTrayAvailable()
        if available:
            self._tray.show()
        else:
            log.warning("System tray is not available, reminders will only be logged")
        return available

    def schedule(self, seconds):
        self.cancel()
        if seconds <= 0:
            return
        self._pending.start(int(seconds * 1000))
        log.info(f"Scheduled reminder '{REMINDER_ID}' in {seconds}s")

    def cancel(self):
        if self._pending.isActive():
            self._pending.stop()
            log.debug(f"Cancelled pending reminder '{REMINDER_ID}'")

    def _fire(self):
        log.info(f"Reminder '{REMINDER_ID}' fired")
        if self._tray.isVisible():
            self._tray.showMessage(REMINDER_TITLE, REMINDER_BODY, QSystemTrayIcon.Information)
