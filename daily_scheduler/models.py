"""
Data models for the daily scheduler.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import List, Optional, Dict, Any, Iterable, Set
import pandas as pd

from .utils import minutes_to_label


class Category(Enum):
    """Fairness categories."""
    SPORT = "sport"
    SPECIAL = "special"
    GENERAL = "general"


class BlockKind:
    """Known block kinds. Any other kind is filled by the generic slot pass."""
    SLOT = "slot"
    SMART = "smart"
    LEAGUE = "league"
    SPECIALTY = "specialty"
    PINNED = "pinned"
    SPLIT = "split"


class Sharability:
    """Sharability policy types."""
    EXCLUSIVE = "exclusive"
    LIMITED = "limited"
    ALL = "all"


@dataclass
class TimeSlot:
    """One fixed-width slot of the unified time grid."""
    index: int
    start_min: int
    end_min: int
    start: datetime
    end: datetime

    @property
    def label(self) -> str:
        """Human readable range, e.g. "9:00 AM - 9:30 AM"."""
        return f"{minutes_to_label(self.start_min)} - {minutes_to_label(self.end_min)}"


@dataclass
class SmartData:
    """Pairing data of a smart tile."""
    main1: str
    main2: str
    fallback_for: Optional[str] = None
    fallback_activity: Optional[str] = None


@dataclass
class Block:
    """An expanded skeleton event for one division."""
    division: str
    start_min: int
    end_min: int
    kind: str
    event: str
    slots: List[int] = field(default_factory=list)
    smart_data: Optional[SmartData] = None
    bunks: Optional[List[str]] = None

    def narrowed(self, slot_indices: List[int]) -> "Block":
        """Copy of this block covering only the given slot indices."""
        return replace(self, slots=list(slot_indices))


@dataclass
class TimeRule:
    """A daily availability window in minutes."""
    type: str
    start_min: int
    end_min: int


@dataclass
class SharingRule:
    """How many simultaneous bookings a resource tolerates per slot."""
    type: str = Sharability.EXCLUSIVE
    max: Optional[int] = None


@dataclass
class ActivityProps:
    """Per-resource configuration, patched by daily overrides."""
    name: str
    available: bool = True
    capacity: int = 1
    sharable: SharingRule = field(default_factory=SharingRule)
    time_rules: List[TimeRule] = field(default_factory=list)
    disabled_sports: Set[str] = field(default_factory=set)

    def occupancy_limit(self) -> int:
        """Maximum occupancy per slot under the sharability policy."""
        if self.sharable.type == Sharability.EXCLUSIVE:
            return 1
        if self.sharable.type == Sharability.LIMITED:
            return self.sharable.max if self.sharable.max is not None else self.capacity
        return self.capacity


@dataclass
class ScheduleEntry:
    """What a bunk does during one slot."""
    resource: str
    sport: Optional[str] = None
    continuation: bool = False
    fixed: bool = False
    h2h: bool = False
    activity: Optional[str] = None
    placeholder: bool = False

    @property
    def display(self) -> str:
        """Label for reports."""
        if self.sport and self.sport != self.resource:
            return f"{self.sport} @ {self.resource}"
        return self.activity or self.resource


class ScheduleStore:
    """Per-bunk schedules. Cells are write-once."""

    def __init__(self, bunks: Iterable[str], length: int):
        self.length = length
        self._rows: Dict[str, List[Optional[ScheduleEntry]]] = {
            bunk: [None] * length for bunk in bunks
        }

    def __contains__(self, bunk: str) -> bool:
        return bunk in self._rows

    @property
    def bunks(self) -> List[str]:
        return list(self._rows.keys())

    def row(self, bunk: str) -> List[Optional[ScheduleEntry]]:
        """Read-only view of a bunk's schedule."""
        return list(self._rows[bunk])

    def get(self, bunk: str, slot_index: int) -> Optional[ScheduleEntry]:
        row = self._rows.get(bunk)
        if row is None or not 0 <= slot_index < self.length:
            return None
        return row[slot_index]

    def is_open(self, bunk: str, slot_index: int) -> bool:
        row = self._rows.get(bunk)
        if row is None or not 0 <= slot_index < self.length:
            return False
        return row[slot_index] is None

    def open_slots(self, bunk: str, slot_indices: Iterable[int]) -> List[int]:
        """The subset of slot indices still empty for this bunk."""
        return [idx for idx in slot_indices if self.is_open(bunk, idx)]

    def reserve_if_absent(self, bunk: str, slot_index: int, entry: ScheduleEntry) -> bool:
        """Write the entry only if the cell is empty. Returns True if written."""
        if not self.is_open(bunk, slot_index):
            return False
        self._rows[bunk][slot_index] = entry
        return True

    def empty_cells(self) -> List[tuple]:
        """All (bunk, slot_index) pairs still empty."""
        return [
            (bunk, idx)
            for bunk, row in self._rows.items()
            for idx, entry in enumerate(row)
            if entry is None
        ]

    def to_dict(self) -> Dict[str, List[Optional[ScheduleEntry]]]:
        return {bunk: list(row) for bunk, row in self._rows.items()}


@dataclass
class DaySchedule:
    """A completed day: the grid, every bunk's schedule and the final occupancy."""
    grid: List[TimeSlot]
    schedules: ScheduleStore
    usage: Any
    fairness_counts: Dict[str, Dict[str, int]] = field(default_factory=dict)
    divisions: Dict[str, List[str]] = field(default_factory=dict)
    props: Dict[str, ActivityProps] = field(default_factory=dict)

    def get_bunk_schedule(self, bunk: str) -> List[Optional[ScheduleEntry]]:
        """Get the schedule row of one bunk."""
        return self.schedules.row(bunk)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert the day to a long DataFrame, one row per bunk and slot."""
        data = []
        for division, bunks in self.divisions.items():
            for bunk in bunks:
                if bunk not in self.schedules:
                    continue
                for slot in self.grid:
                    entry = self.schedules.get(bunk, slot.index)
                    data.append({
                        'Division': division,
                        'Bunk': bunk,
                        'Slot': slot.index,
                        'Start Time': slot.start.time(),
                        'End Time': slot.end.time(),
                        'Time': slot.label,
                        'Resource': entry.resource if entry else None,
                        'Sport': entry.sport if entry else None,
                        'Activity': entry.display if entry else None,
                        'Continuation': entry.continuation if entry else False,
                        'Fixed': entry.fixed if entry else False,
                    })

        if not data:
            return pd.DataFrame()

        return pd.DataFrame(data)

    def get_summary_stats(self) -> Dict[str, Any]:
        """Get summary statistics for the day."""
        df = self.to_dataframe()
        if df.empty:
            return {}

        resource_rows = df[df['Resource'].notna()]

        return {
            'total_bunks': df['Bunk'].nunique(),
            'total_slots': len(self.grid),
            'day_range': {
                'start': self.grid[0].label if self.grid else None,
                'end': self.grid[-1].label if self.grid else None,
            },
            'empty_cells': int(df['Resource'].isna().sum()),
            'fixed_cells': int(df['Fixed'].sum()),
            'resource_distribution': resource_rows['Resource'].value_counts().to_dict(),
        }
