import json
import os
import tempfile
from datetime import datetime, time, timedelta, timezone
from pathlib import Path

# Dates in the timer snapshot are stored as float seconds since this instant.
REFERENCE_DATE = datetime(2001, 1, 1, tzinfo=timezone.utc)


# Midnight at the start of the given datetime's calendar day.
def start_of_day(dt: datetime) -> datetime:
    midnight = datetime.combine(dt.date(), time())
    if dt.tzinfo is None:
        return midnight
    # astimezone() pins the offset in effect at dt, which is wrong for midnight on a DST change day.
    # Ask the system zone again for local times; other zones keep their own tzinfo.
    if isinstance(dt.tzinfo, timezone) and dt.utcoffset() == dt.astimezone().utcoffset():
        return midnight.astimezone()
    return midnight.replace(tzinfo=dt.tzinfo)

def to_reference_seconds(dt: datetime) -> float:
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return (dt - REFERENCE_DATE).total_seconds()

# Inverse of to_reference_seconds. The result is expressed in local time.
def from_reference_seconds(seconds: float) -> datetime:
    return (REFERENCE_DATE + timedelta(seconds=float(seconds))).astimezone()


#region === Formatting ===

def format_time(seconds):
    """Format elapsed seconds as HH:MM:SS, or MM:SS under an hour. Negative values clamp to zero."""
    seconds = max(0, int(seconds))
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    if h > 0:
        return f"{h:02d}:{m:02d}:{s:02d}"
    return f"{m:02d}:{s:02d}"

def format_simplified(seconds):
    """HH:MM once there are hours, MM:SS below that."""
    seconds = max(0, int(seconds))
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    if h > 0:
        return f"{h:02d}:{m:02d}"
    return f"{m:02d}:{s:02d}"

def format_description(seconds):
    seconds = max(0, int(seconds))
    h, rem = divmod(seconds, 3600)
    m = rem // 60
    minute_text = "minute" if m == 1 else "minutes"
    if h > 0:
        hour_text = "hour" if h == 1 else "hours"
        return f"{h} {hour_text} {m} {minute_text}"
    return f"{m} {minute_text}"

#endregion === Formatting ===


# Writes data as JSON next to the target and swaps it in with os.replace, so readers never see a half-written file.
def atomic_write_json(path, data):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(mode="w", encoding="utf-8", delete=False,
                                      dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with tmp:
            json.dump(data, tmp, indent=2)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except BaseException:
        try:
            os.remove(tmp.name)
        except OSError:
            pass
        raise
