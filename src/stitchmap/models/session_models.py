"""Value types for work session navigation and progress."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Mapping, Optional


class SessionStatus(Enum):
    """Lifecycle status of a work session."""
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass(frozen=True, order=True)
class Position:
    """Five-level position of the current stitch, all fields zero-based.

    Field order is the canonical stitch ordering: comparing two positions
    compares them lexicographically from the group index down to the stitch.
    """
    group_index: int = 0
    group_repeat: int = 0
    entry_index: int = 0
    entry_repeat: int = 0
    stitch_ordinal: int = 0

    @classmethod
    def zero(cls) -> "Position":
        return cls()

    def is_zero(self) -> bool:
        return self == Position.zero()


@dataclass(frozen=True)
class SessionState:
    """Navigation-relevant state of a work session."""
    position: Position
    status: SessionStatus
    completed_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.status is SessionStatus.COMPLETED


@dataclass(frozen=True)
class StitchInfo:
    """Display names of a stitch."""
    abbreviation: str
    name: str = ""


# Stitch id -> display names
StitchLookup = Mapping[int, StitchInfo]


class DisplayKind(Enum):
    """What a stitch display slot holds."""
    STITCH = "stitch"  # A resolved stitch
    UNRESOLVED = "unresolved"  # A stitch whose id is missing from the lookup
    NONE = "none"  # No stitch here (before the first stitch)
    END = "end"  # Past the last stitch of the pattern


@dataclass(frozen=True)
class StitchDisplay:
    """Renderable text for the current, previous or next stitch."""
    kind: DisplayKind
    abbreviation: str = ""
    name: str = ""

    @classmethod
    def of(cls, info: StitchInfo) -> "StitchDisplay":
        return cls(DisplayKind.STITCH, info.abbreviation, info.name)

    @classmethod
    def unresolved(cls) -> "StitchDisplay":
        return cls(DisplayKind.UNRESOLVED)

    @classmethod
    def none(cls) -> "StitchDisplay":
        return cls(DisplayKind.NONE)

    @classmethod
    def end(cls, marker: str) -> "StitchDisplay":
        return cls(DisplayKind.END, marker)

    @property
    def text(self) -> str:
        return self.abbreviation


class GroupStatus(Enum):
    """Progress status of one instruction group."""
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


@dataclass
class GroupProgress:
    """Progress through an individual instruction group."""
    label: str
    repeat_count: int
    current_repeat: int  # 1-based, 0 unless the group is in progress
    status: GroupStatus
    completed_in_group: int
    total_in_group: int


@dataclass
class ProgressReport:
    """Derived progress of a session through its pattern. Never persisted."""
    status: SessionStatus
    completed_stitches: int
    total_stitches: int
    percentage: float
    group_label: str
    group_repeat_info: str  # e.g. "repeat 2 of 4", empty for single-repeat groups
    current: StitchDisplay
    previous: StitchDisplay
    next: StitchDisplay
    groups: List[GroupProgress] = field(default_factory=list)

    @property
    def is_completed(self) -> bool:
        return self.status is SessionStatus.COMPLETED
