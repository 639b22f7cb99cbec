from typing import Protocol
from rt.common.logger import log

# Fixed identifier for the one-shot reminder. Scheduling a new one always replaces the pending one.
REMINDER_ID = "retainerReminder"


# Delivers the "put your retainer back in" reminder.
class Notifier(Protocol):
    def request_permission(self) -> bool: ...
    def schedule(self, seconds: int) -> None: ...
    def cancel(self) -> None: ...


# Receives a read-only copy of the timer status whenever the snapshot changes (companion display).
class StatusSink(Protocol):
    def push(self, status) -> None: ...


# Used when nothing is wired up, e.g. headless runs.
class NullNotifier:

    def request_permission(self):
        return False

    def schedule(self, seconds):
        log.debug(f"No notifier configured, dropping reminder '{REMINDER_ID}' in {seconds}s")

    def cancel(self):
        pass


class NullStatusSink:

    def push(self, status):
        pass
