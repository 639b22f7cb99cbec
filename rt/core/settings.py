import json
from pathlib import Path
from rt.common.logger import log
from rt.common.setup import PATHS
from rt.util import atomic_write_json

SETTINGS_PATH = PATHS.current / "settings.json"

# Minute values offered for the default reminder. 0 means no reminder.
REMINDER_CHOICES = (0, 15, 20, 30, 60)

GOAL_MIN = 60.0
GOAL_MAX = 7200.0
DANGER_MAX = 14400.0

_SETTINGS_DEFAULTS = {
    "default_reminder_minutes": 0,
    "show_goal_status": False,
}

# Validators per key; a value failing its check gets defaulted on load.
_SETTINGS_CHECKS = {
    "default_reminder_minutes": lambda v: isinstance(v, int) and not isinstance(v, bool) and v in REMINDER_CHOICES,
    "show_goal_status": lambda v: isinstance(v, bool),
}


def build_default_settings():
    return dict(_SETTINGS_DEFAULTS)

# Pulls goal into [GOAL_MIN, GOAL_MAX] and danger into [goal, DANGER_MAX].
def clamp_thresholds(goal, danger):
    goal = min(max(float(goal), GOAL_MIN), GOAL_MAX)
    danger = min(max(float(danger), goal), DANGER_MAX)
    return goal, danger


class SettingsStore:

    def __init__(self, path=None):
        self.path = Path(path) if path is not None else SETTINGS_PATH

    def load(self):
        if not self.path.exists():
            log.info(f"No settings file at '{self.path}', using defaults.")
            return build_default_settings()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                settings = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError):
            log.warning(f"Ran into an error while loading '{self.path}', using default settings.", exc_info=True)
            return build_default_settings()
        if not isinstance(settings, dict):
            log.warning(f"Settings file '{self.path}' is not an object, using default settings.")
            return build_default_settings()

        defaulted_values = set()
        for key, default in _SETTINGS_DEFAULTS.items():
            if key not in settings or not _SETTINGS_CHECKS[key](settings[key]):
                defaulted_values.add(key)
                settings[key] = default
        if defaulted_values:
            log.warning(f"Loaded settings from '{self.path}', but with missing values that were defaulted: "
                        f"{', '.join(sorted(defaulted_values))}")
        return settings

    def save(self, settings):
        try:
            atomic_write_json(self.path, settings)
        except (OSError, TypeError, ValueError):
            log.warning(f"Failed to save settings to '{self.path}'", exc_info=True)
            return False
        log.info(f"Saved settings to '{self.path}'")
        return True
