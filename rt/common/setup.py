import os
from pathlib import Path
from dataclasses import dataclass

# Lil helper function to create missing directories if missing, and optionally error out when a path
# doesn't exist.
def ensure_directory(path: Path,must_exist=False):
    if must_exist:
        if not path.exists():
            raise FileNotFoundError(f"Required directory is missing: {path}")
        if not path.is_dir():
            raise NotADirectoryError(f"Expected a directory, got a file: {path}")
    else:
        path.mkdir(parents=True,exist_ok=True)
    return path

# Picks the per-user data folder. RT_DATA_DIR always wins, then APPDATA on Windows, then the XDG-ish default.
def _resolve_data_dir() -> Path:
    override = os.getenv("RT_DATA_DIR")
    if override:
        return Path(override)
    appdata = os.getenv("APPDATA")
    if appdata:
        return Path(appdata) / "RetainerTracker"
    xdg = os.getenv("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / "retainer-tracker"
    return Path.home() / ".local" / "share" / "retainer-tracker"

# Dataclass for accessing paths across program.
@dataclass(frozen=False)
class ProjectPaths:

    data: Path
    logs: Path
    current: Path

    @staticmethod
    def build():
        data = ensure_directory(_resolve_data_dir())
        logs = ensure_directory(data / "logs")
        # Everything the running app reads and writes (snapshot, sessions, settings, status)
        current = ensure_directory(data / "current")
        return ProjectPaths(
            data = data,
            logs = logs,
            current = current,
        )
PATHS = ProjectPaths.build()
