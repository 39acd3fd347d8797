"""
Unified time grid construction.
"""

from datetime import date
from typing import Dict, List, Optional, Tuple, Union

from .models import TimeSlot
from .utils import minutes_to_datetime, parse_time_to_minutes


DEFAULT_INCREMENT = 30
DEFAULT_START = "9:00"
DEFAULT_END = "16:00"


def build_time_grid(division_hours: Dict[str, Tuple[Union[str, int], Union[str, int]]],
                    increment: int = DEFAULT_INCREMENT,
                    default_start: Union[str, int] = DEFAULT_START,
                    default_end: Union[str, int] = DEFAULT_END,
                    anchor_date: Optional[date] = None,
                    timezone: str = "America/New_York") -> List[TimeSlot]:
    """
    Build the day's fixed-width slot sequence.

    The grid spans the earliest division start to the latest division end.
    With no usable division hours it falls back to the default window, and it
    always contains at least one slot.

    Args:
        division_hours: Division name -> (start, end) as parseable times
        increment: Slot width in minutes
        default_start: Grid start when no division hours are usable
        default_end: Grid end when no division hours are usable
        anchor_date: Date the slot instants fall on
        timezone: Timezone of the slot instants

    Returns:
        List[TimeSlot]: Contiguous slots with zero-based indices
    """
    if anchor_date is None:
        anchor_date = date(1970, 1, 1)

    earliest, latest = _day_bounds(division_hours, default_start, default_end)

    if latest <= earliest:
        latest = earliest + increment

    grid = []
    cursor = earliest
    while cursor < latest:
        end = cursor + increment
        grid.append(TimeSlot(
            index=len(grid),
            start_min=cursor,
            end_min=end,
            start=minutes_to_datetime(cursor, anchor_date, timezone),
            end=minutes_to_datetime(end, anchor_date, timezone),
        ))
        cursor = end

    return grid


def build_time_grid_from_config(config) -> List[TimeSlot]:
    """Build the grid from a SchedulerConfig."""
    hours = {d.name: (d.start_time, d.end_time) for d in config.divisions}
    return build_time_grid(
        hours,
        increment=config.increment_minutes,
        default_start=config.default_start,
        default_end=config.default_end,
        anchor_date=config.anchor_date,
        timezone=config.timezone,
    )


def slots_for_range(grid: List[TimeSlot], start_min: int, end_min: int) -> List[int]:
    """Indices of every slot whose start lies in [start_min, end_min)."""
    return [slot.index for slot in grid if start_min <= slot.start_min < end_min]


def _day_bounds(division_hours, default_start, default_end) -> Tuple[int, int]:
    starts = []
    ends = []
    for start, end in division_hours.values():
        s = parse_time_to_minutes(start)
        e = parse_time_to_minutes(end)
        if s is not None:
            starts.append(s)
        if e is not None:
            ends.append(e)

    if not starts or not ends:
        return parse_time_to_minutes(default_start), parse_time_to_minutes(default_end)

    return min(starts), max(ends)
