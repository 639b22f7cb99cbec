"""Persisted list of completed off-intervals."""

import json
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from pathlib import Path
from rt.common.logger import log
from rt.common.setup import PATHS
from rt.util import atomic_write_json

SESSIONS_PATH = PATHS.current / "sessions.json"


class InvalidSessionError(ValueError):
    """Raised when a session would end before it starts."""


@dataclass(frozen=True)
class Session:
    start: datetime
    end: datetime
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def duration(self):
        return (self.end - self.start).total_seconds()

    @property
    def day(self) -> date:
        return self.start.date()

    def to_dict(self):
        return {"id": self.id, "start": self.start.isoformat(), "end": self.end.isoformat()}

    @classmethod
    def from_dict(cls, raw):
        start = _aware(datetime.fromisoformat(raw["start"]))
        end = _aware(datetime.fromisoformat(raw["end"]))
        _validate(start, end)
        return cls(id=str(raw["id"]), start=start, end=end)


# Naive timestamps are taken to be local time.
def _aware(dt):
    return dt if dt.tzinfo is not None else dt.astimezone()


def _validate(start, end):
    if end < start:
        raise InvalidSessionError(f"Session end {end.isoformat()} is before its start {start.isoformat()}")


class SessionStore:
    """CRUD over the session list.

    The in-memory cache is never patched in place. Every mutation reads the
    file, changes it, writes it back and then reloads the cache from disk, so
    the cache can't drift from what's stored.
    """

    def __init__(self, path=None):
        self.path = Path(path) if path is not None else SESSIONS_PATH
        self._sessions = []
        self.reload()

    # All sessions, oldest first.
    @property
    def sessions(self):
        return list(self._sessions)

    def today(self, day: date):
        """Sessions that started on ``day``, newest first."""
        return sorted((s for s in self._sessions if s.day == day), key=lambda s: s.start, reverse=True)

    #region === Mutations ===

    def add(self, start, end):
        _validate(start, end)
        session = Session(start=start, end=end)
        stored = self._fetch()
        stored.append(session)
        self._commit(stored)
        log.info(f"Added session {session.id} ({session.duration:.0f}s) starting {start.isoformat()}")
        return session

    def update(self, session, new_start, new_end):
        _validate(new_start, new_end)
        updated = replace(session, start=new_start, end=new_end)
        stored = [updated if s.id == session.id else s for s in self._fetch()]
        self._commit(stored)
        log.info(f"Updated session {session.id} to {new_start.isoformat()} - {new_end.isoformat()}")
        return updated

    def delete(self, session):
        stored = [s for s in self._fetch() if s.id != session.id]
        self._commit(stored)
        log.info(f"Deleted session {session.id}")

    def delete_all(self, predicate):
        stored = self._fetch()
        keep = [s for s in stored if not predicate(s)]
        removed = len(stored) - len(keep)
        if removed:
            self._commit(keep)
        log.info(f"Deleted {removed} sessions in bulk")
        return removed

    # Removes the session with the latest start, which is not necessarily the last one written.
    def undo_last(self):
        stored = self._fetch()
        if not stored:
            return None
        last = max(stored, key=lambda s: s.start)
        self._commit([s for s in stored if s.id != last.id])
        log.info(f"Undid session {last.id} starting {last.start.isoformat()}")
        return last

    #endregion === Mutations ===

    #region === Storage ===

    def reload(self):
        self._sessions = self._fetch()

    # Reads the stored list. A missing or unreadable file is an empty list, and malformed records are skipped.
    def _fetch(self):
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError):
            log.warning(f"Could not read sessions from '{self.path}', treating as empty.", exc_info=True)
            return []
        if not isinstance(raw, list):
            log.warning(f"Sessions file '{self.path}' does not hold a list, treating as empty.")
            return []

        sessions = []
        skipped = 0
        for entry in raw:
            try:
                sessions.append(Session.from_dict(entry))
            except (KeyError, TypeError, ValueError):
                skipped += 1
        if skipped:
            log.warning(f"Skipped {skipped} malformed session records in '{self.path}'")
        sessions.sort(key=lambda s: s.start)
        return sessions

    def _commit(self, sessions):
        ordered = sorted(sessions, key=lambda s: s.start)
        try:
            atomic_write_json(self.path, [s.to_dict() for s in ordered])
        except OSError:
            log.warning(f"Failed to write sessions to '{self.path}'", exc_info=True)
        self.reload()

    #endregion === Storage ===
