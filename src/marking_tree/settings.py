import os
import threading


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ["true", "1", "yes", "on"]


def _int(name: str, default: int) -> int:
    return int(os.environ.get(name, default))


class MarkingSettings:
    _instance = None
    _lock = threading.Lock()

    def __init__(self):
        self.DEBUG_MODE = os.environ.get("DEBUG_MODE", "development")

        # Security: Force disable debug info in API responses (overrides DEBUG_MODE)
        self.DISABLE_API_DEBUG_INFO = _flag("DISABLE_API_DEBUG_INFO", "false")

        # Enrolment plugins whose enrolments count as valid
        plugins = os.environ.get("MARKING_ENROL_PLUGINS_ENABLED", "manual,self,cohort")
        self.ENROL_PLUGINS_ENABLED = [p.strip() for p in plugins.split(",") if p.strip()]

        # Site defaults used when neither activity nor course has a setting
        self.SITE_DEFAULT_DISPLAY = _int("MARKING_SITE_DEFAULT_DISPLAY", 1)
        self.SITE_DEFAULT_GROUPS_DISPLAY = _int("MARKING_SITE_DEFAULT_GROUPS_DISPLAY", 0)
        self.DEFAULT_GROUP_VISIBILITY = _int("MARKING_DEFAULT_GROUP_VISIBILITY", 1)
        self.NO_GROUP_DEFAULT = _int("MARKING_NO_GROUP_DEFAULT", 1)

        # Labels for the synthetic node holding students outside any visible group
        self.NOT_IN_GROUP_NAME = os.environ.get("MARKING_NOT_IN_GROUP_NAME", "Not in a group")
        self.NOT_IN_GROUP_DESCRIPTION = os.environ.get(
            "MARKING_NOT_IN_GROUP_DESCRIPTION",
            "Students who are not in any visible group",
        )

        self.SUMMARY_LENGTH = _int("MARKING_SUMMARY_LENGTH", 100)

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(MarkingSettings, cls).__new__(cls)
        return cls._instance

settings = MarkingSettings()
