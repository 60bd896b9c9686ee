from __future__ import annotations

from enum import Enum, StrEnum


class ProviderEnum(StrEnum):
    DATAGOLF = "datagolf"
    ESPN = "espn"
    OWGR = "owgr"
    PGATOUR = "pgatour"
    NFLVERSE = "nflverse"
    OPEN_METEO = "open_meteo"


class SportEnum(StrEnum):
    GOLF = "golf"
    NFL = "nfl"


class EventStatusEnum(str, Enum):
    UPCOMING = "UPCOMING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class PerformanceStatusEnum(str, Enum):
    ACTIVE = "ACTIVE"
    CUT = "CUT"
    WD = "WD"
    DQ = "DQ"


class DfsPlatformEnum(str, Enum):
    DRAFTKINGS = "DRAFTKINGS"
    FANDUEL = "FANDUEL"


class StepStatusEnum(str, Enum):
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
