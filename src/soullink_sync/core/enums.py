"""Enums for the SoulLink sync core."""

from enum import Enum


class ResetMode(str, Enum):
    """How much of a tracker a reset wipes."""

    FULL = "full"
    CURRENT = "current"
    LEGENDARY_ONLY = "legendaryOnly"


class ChangeOrigin(str, Enum):
    """Where a document change came from."""

    LOCAL = "local"
    REMOTE = "remote"
    SESSION = "session"  # Session switch or readiness change, no new content


class SyncStatus(str, Enum):
    """Write-side replication state exposed to the UI layer."""

    IDLE = "idle"
    PENDING = "pending"
    SYNCING = "syncing"
    ERROR = "error"


class PairLocation(str, Enum):
    """Sections of the tracker that hold linked pairs."""

    TEAM = "team"
    BOX = "box"
    GRAVEYARD = "graveyard"


class TrackerFlag(str, Enum):
    """Boolean toggles stored on the tracker document."""

    LEGENDARY_TRACKER = "legendary_tracker_enabled"
    RIVAL_CENSOR = "rival_censor_enabled"
    HARDCORE_MODE = "hardcore_mode_enabled"


class PlayerStat(str, Enum):
    """Per-player counters in the tracker stats."""

    TOP4_ITEMS = "top4_items"
    DEATHS = "deaths"
    SUM_DEATHS = "sum_deaths"


class RivalGender(str, Enum):
    """Gender choice for rivals that depend on the player character."""

    MALE = "male"
    FEMALE = "female"


class MilestoneCategory(str, Enum):
    """Milestone categories used for weighted progress."""

    GYM = "gym"
    ELITE4_CHAMP = "elite4_champ"
    RIVAL = "rival"
