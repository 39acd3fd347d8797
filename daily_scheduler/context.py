"""
Shared state handed to every pass.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .config import SchedulerConfig
from .errors import RunWarnings
from .fairness import FairnessTracker
from .models import ActivityProps, Block, ScheduleStore, TimeSlot
from .usage import ResourceUsageGrid
from .utils import normalize_key


@dataclass
class PassContext:
    """Everything a pass reads or mutates. Passes take it explicitly."""
    config: SchedulerConfig
    grid: List[TimeSlot]
    usage: ResourceUsageGrid
    schedules: ScheduleStore
    props: Dict[str, ActivityProps]
    fairness: FairnessTracker
    divisions: Dict[str, List[str]]
    warnings: RunWarnings = field(default_factory=RunWarnings)

    def __post_init__(self):
        self._by_key = {normalize_key(name): name for name in self.props}

    @property
    def catalog(self):
        return self.config.activities

    @property
    def placeholder(self) -> str:
        return self.config.placeholder_name

    def lookup_resource(self, name: str) -> Tuple[Optional[str], Optional[ActivityProps]]:
        """Exact name first, then the canonical key. Returns (name, props)."""
        if name in self.props:
            return name, self.props[name]
        exact = self._by_key.get(normalize_key(name))
        if exact is None:
            return None, None
        return exact, self.props[exact]

    def bunks_for(self, block: Block) -> Optional[List[str]]:
        """Bunks a block applies to, or None if its division is unknown."""
        division_bunks = self.divisions.get(block.division)
        if division_bunks is None:
            return None
        if block.bunks is not None:
            return [b for b in block.bunks if b in division_bunks]
        return list(division_bunks)

    @classmethod
    def create(cls, config: SchedulerConfig, grid: List[TimeSlot],
               history_counts: Optional[Dict[str, Dict[str, int]]] = None) -> "PassContext":
        """Fresh run state: zero usage, empty schedules, props copied from config."""
        divisions = config.division_bunks()
        bunks = [bunk for division_bunks in divisions.values() for bunk in division_bunks]
        return cls(
            config=config,
            grid=grid,
            usage=ResourceUsageGrid.initialize(grid),
            schedules=ScheduleStore(bunks, len(grid)),
            props=config.resource_props(),
            fairness=FairnessTracker.from_catalog(config.activities, history_counts),
            divisions=divisions,
        )
