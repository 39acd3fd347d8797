"""
Master skeleton expansion into blocks.
"""

import math
from typing import Dict, List, Optional, Tuple

from .config import SkeletonEvent
from .errors import RunWarnings
from .logging import get_logger
from .models import Block, BlockKind, SmartData, TimeSlot
from .timegrid import slots_for_range
from .utils import normalize_key, parse_time_to_minutes


logger = get_logger(__name__)

GENERAL_ACTIVITY = "General Activity Slot"
LEAGUE_GAME = "League Game"
SPECIALTY_LEAGUE = "Specialty League"
DEFAULT_SPLIT_EVENTS = ("Swim", GENERAL_ACTIVITY)

# Short aliases must match exactly; "ga" is a substring of "gaga" and "gameroom".
_GA_EXACT = {"ga", "genact", "activity", "activty", "activyty"}
_GA_CONTAINS = ("generalactivity", "genactivity", "activityslot")
_LEAGUE_EXACT = {"lg", "lgame", "league"}
_LEAGUE_CONTAINS = ("leaguegame", "leagame")
_SPECIALTY_CONTAINS = ("specialtyleague", "specialityleague", "specleague", "specialleague")


def _compact(label: str) -> str:
    return normalize_key(label).replace(" ", "")


def is_specialty_label(label: str) -> bool:
    s = _compact(label)
    return any(k in s for k in _SPECIALTY_CONTAINS)


def is_league_label(label: str) -> bool:
    s = _compact(label)
    if is_specialty_label(label):
        return False
    return s in _LEAGUE_EXACT or any(k in s for k in _LEAGUE_CONTAINS)


def is_general_label(label: str) -> bool:
    s = _compact(label)
    return s in _GA_EXACT or any(k in s for k in _GA_CONTAINS)


def is_generated_label(label: str) -> bool:
    """Whether an event label asks the scheduler to choose an activity."""
    key = normalize_key(label)
    return (
        "sport" in key
        or "special" in key
        or is_general_label(label)
        or is_league_label(label)
    )


def normalize_event_label(label: str) -> str:
    """Canonical spelling for general activity and league labels."""
    if is_specialty_label(label):
        return SPECIALTY_LEAGUE
    if is_league_label(label):
        return LEAGUE_GAME
    key = normalize_key(label)
    if "sport" in key or "special" in key:
        return label
    if is_general_label(label):
        return GENERAL_ACTIVITY
    return label


def expand_skeleton(events: List[SkeletonEvent], divisions: Dict[str, List[str]],
                    grid: List[TimeSlot], warnings: Optional[RunWarnings] = None) -> List[Block]:
    """
    Expand the day's skeleton events into blocks.

    Events for unknown divisions, divisions without bunks, unparseable times, or
    ranges that cover no slot are skipped with a warning.

    Args:
        events: Skeleton events, in skeleton order
        divisions: Division name -> ordered bunks
        grid: Unified time grid
        warnings: Warning collector

    Returns:
        List[Block]: Blocks in skeleton order
    """
    if warnings is None:
        warnings = RunWarnings()

    blocks = []
    for event in events:
        context = {'division': event.division, 'label': event.event}

        if event.division not in divisions:
            warnings.warn("unknown_division", f"Skipping event for unknown division {event.division}", **context)
            continue
        if not divisions[event.division]:
            warnings.warn("empty_division", f"Skipping event for division {event.division} with no bunks", **context)
            continue

        start_min = parse_time_to_minutes(event.start_time)
        end_min = parse_time_to_minutes(event.end_time)
        if start_min is None or end_min is None or end_min <= start_min:
            warnings.warn("bad_time_range", "Skipping event with an invalid time range",
                          start=str(event.start_time), end=str(event.end_time), **context)
            continue

        slots = slots_for_range(grid, start_min, end_min)
        if not slots:
            warnings.warn("no_slots", "Skipping event that covers no time slot", **context)
            continue

        if event.type == BlockKind.SPLIT:
            blocks.extend(_expand_split(event, divisions[event.division], slots, grid, start_min, end_min))
            continue

        smart_data = None
        if event.smart_data is not None:
            smart_data = SmartData(
                main1=event.smart_data.main1,
                main2=event.smart_data.main2,
                fallback_for=event.smart_data.fallback_for,
                fallback_activity=event.smart_data.fallback_activity,
            )

        blocks.append(Block(
            division=event.division,
            start_min=start_min,
            end_min=end_min,
            kind=_resolve_kind(event.type, event.event),
            event=normalize_event_label(event.event),
            slots=slots,
            smart_data=smart_data,
        ))

    logger.info("skeleton expanded", events=len(events), blocks=len(blocks))
    return blocks


def _resolve_kind(kind: str, label: str) -> str:
    if kind != BlockKind.SLOT:
        return kind
    if is_specialty_label(label):
        return BlockKind.SPECIALTY
    if is_league_label(label):
        return BlockKind.LEAGUE
    if not is_generated_label(label):
        return BlockKind.PINNED
    return BlockKind.SLOT


def _expand_split(event: SkeletonEvent, bunks: List[str], slots: List[int],
                  grid: List[TimeSlot], start_min: int, end_min: int) -> List[Block]:
    """
    Split a division and a time range in half.

    The first half of the bunks get the first sub-event during the first half of
    the slots while the rest get the second sub-event, then they swap.
    """
    labels = [sub.event for sub in event.sub_events[:2]]
    if len(labels) < 2:
        labels = list(DEFAULT_SPLIT_EVENTS)

    mid_bunk = math.ceil(len(bunks) / 2)
    top, bottom = bunks[:mid_bunk], bunks[mid_bunk:]
    mid_slot = math.ceil(len(slots) / 2)
    first, second = slots[:mid_slot], slots[mid_slot:]

    def half(label: str, group: List[str], half_slots: List[int]) -> Optional[Block]:
        if not group or not half_slots:
            return None
        return Block(
            division=event.division,
            start_min=grid[half_slots[0]].start_min,
            end_min=grid[half_slots[-1]].end_min,
            kind=_resolve_kind(BlockKind.SLOT, label),
            event=normalize_event_label(label),
            slots=list(half_slots),
            bunks=list(group),
        )

    halves = [
        half(labels[0], top, first),
        half(labels[1], bottom, first),
        half(labels[1], top, second),
        half(labels[0], bottom, second),
    ]
    return [b for b in halves if b is not None]


def smart_group_key(block: Block) -> Tuple:
    """Division plus pairing signature; blocks without pairing data stay alone."""
    if block.smart_data is None:
        return (block.division, None, block.start_min)
    return (
        block.division,
        normalize_key(block.smart_data.main1),
        normalize_key(block.smart_data.main2),
    )


def group_smart_blocks(blocks: List[Block]) -> Dict[Tuple, List[Block]]:
    """Group smart blocks by division and pairing, in first-seen order."""
    groups: Dict[Tuple, List[Block]] = {}
    for block in blocks:
        if block.kind != BlockKind.SMART:
            continue
        groups.setdefault(smart_group_key(block), []).append(block)
    return groups
