"""
Per-slot resource occupancy and the capacity / sharability checks.
"""

from typing import Dict, List, Optional

import pandas as pd

from .models import ActivityProps, Block, Sharability, TimeSlot
from .utils import ranges_overlap


class ResourceUsageGrid:
    """Slot index -> resource name -> occupancy count.

    Counts only ever go up during a run.
    """

    def __init__(self, grid: List[TimeSlot]):
        self.grid = list(grid)
        self.counts: Dict[int, Dict[str, int]] = {slot.index: {} for slot in self.grid}

    @classmethod
    def initialize(cls, grid: List[TimeSlot]) -> "ResourceUsageGrid":
        """All-zero occupancy for the grid."""
        return cls(grid)

    def slot(self, slot_index: int) -> Optional[TimeSlot]:
        if 0 <= slot_index < len(self.grid):
            return self.grid[slot_index]
        return None

    def count(self, slot_index: int, resource: str) -> int:
        return self.counts.get(slot_index, {}).get(resource, 0)

    def reservations_for(self, resource: str, slot_indices: List[int]) -> List[int]:
        """Current occupancy of a resource at each requested slot; missing reads as 0."""
        return [self.count(idx, resource) for idx in slot_indices]

    def increment(self, slot_index: int, resource: str) -> None:
        slot_counts = self.counts.setdefault(slot_index, {})
        slot_counts[resource] = slot_counts.get(resource, 0) + 1

    def total(self, resource: str) -> int:
        return sum(counts.get(resource, 0) for counts in self.counts.values())

    def to_dataframe(self) -> pd.DataFrame:
        """Occupancy as a slot x resource table."""
        resources = sorted({name for counts in self.counts.values() for name in counts})
        rows = []
        for slot in self.grid:
            row = {'Time': slot.label}
            for name in resources:
                row[name] = self.count(slot.index, name)
            rows.append(row)
        return pd.DataFrame(rows)


def is_time_allowed(slot: Optional[TimeSlot], props: Optional[ActivityProps]) -> bool:
    """
    Check a resource's availability and time rules for one slot.

    Any Available rule closes the resource by default; a slot fully inside an
    Available window opens it. A slot overlapping an Unavailable window is closed.
    """
    if props is None or slot is None:
        return False
    if not props.available:
        return False

    rules = props.time_rules or []
    if not rules:
        return True

    allowed = not any(rule.type == "Available" for rule in rules)

    for rule in rules:
        if rule.type == "Available":
            if slot.start_min >= rule.start_min and slot.end_min <= rule.end_min:
                allowed = True

    for rule in rules:
        if rule.type == "Unavailable":
            if ranges_overlap(slot.start_min, slot.end_min, rule.start_min, rule.end_min):
                return False

    return allowed


def has_room(occupancy: int, props: ActivityProps) -> bool:
    """Whether one more booking fits under the sharability policy."""
    sharing = props.sharable.type
    if sharing == Sharability.EXCLUSIVE:
        return occupancy == 0
    if sharing == Sharability.LIMITED:
        limit = props.sharable.max if props.sharable.max is not None else props.capacity
        return occupancy < limit
    # "all" and unknown types
    return occupancy < props.capacity


def can_fit(block: Block, resource_name: str, props: Optional[ActivityProps],
            usage: ResourceUsageGrid) -> bool:
    """
    Check whether a block can be placed on a resource.

    Every covered slot must pass; a block is never partially placed.

    Args:
        block: Block to place
        resource_name: Resource to place it on
        props: The resource's properties (None fails)
        usage: Current occupancy

    Returns:
        bool: True if the whole block fits
    """
    if not resource_name or props is None:
        return False

    for slot_index in block.slots:
        if not is_time_allowed(usage.slot(slot_index), props):
            return False
        if not has_room(usage.count(slot_index, resource_name), props):
            return False

    return True


def mark_usage(block: Block, resource_name: str, usage: ResourceUsageGrid) -> None:
    """Increment occupancy for every covered slot. Call only after can_fit."""
    for slot_index in block.slots:
        usage.increment(slot_index, resource_name)


def mark_slot_if_room(slot_index: int, resource_name: str, props: Optional[ActivityProps],
                      usage: ResourceUsageGrid) -> bool:
    """Record one pinned booking, capped at the sharability limit when props exist."""
    if props is not None and not has_room(usage.count(slot_index, resource_name), props):
        return False
    usage.increment(slot_index, resource_name)
    return True
