import time
from datetime import datetime


# Two time sources: aware local wall-clock for persistence and day math, monotonic seconds for measuring
# elapsed time (immune to NTP jumps, timezone and manual clock changes).
class SystemClock:

    def now(self) -> datetime:
        return datetime.now().astimezone()

    def uptime(self) -> float:
        return time.monotonic()
