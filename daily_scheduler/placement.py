"""
Write-once placement of picks into bunk schedules.
"""

from typing import Optional

from .finders import Pick
from .logging import get_logger
from .models import Block, ScheduleEntry, ScheduleStore
from .usage import mark_usage


logger = get_logger(__name__)


def open_block(bunk: str, block: Block, schedules: ScheduleStore) -> Optional[Block]:
    """
    The block narrowed to the bunk's still-empty cells.

    Returns None when every covered cell is already filled.
    """
    open_slots = schedules.open_slots(bunk, block.slots)
    if not open_slots:
        return None
    if len(open_slots) == len(block.slots):
        return block
    return block.narrowed(open_slots)


def write_entries(bunk: str, block: Block, pick: Pick, schedules: ScheduleStore,
                  fixed: bool = False, placeholder: bool = False) -> int:
    """Write the pick into every empty covered cell. Returns cells written."""
    written = 0
    for position, slot_index in enumerate(block.slots):
        entry = ScheduleEntry(
            resource=pick.resource,
            sport=pick.sport,
            continuation=position > 0,
            fixed=fixed,
            activity=pick.activity,
            placeholder=placeholder,
        )
        if schedules.reserve_if_absent(bunk, slot_index, entry):
            written += 1
    return written


def commit_pick(bunk: str, block: Block, pick: Pick, ctx) -> None:
    """Mark usage and write a pick that already passed can_fit."""
    mark_usage(block, pick.resource, ctx.usage)
    write_entries(bunk, block, pick, ctx.schedules)
    logger.debug("placed", bunk=bunk, resource=pick.resource, sport=pick.sport, slots=block.slots)


def place_placeholder(bunk: str, block: Block, ctx) -> int:
    """Fill empty covered cells with the placeholder. Never touches usage."""
    pick = Pick(resource=ctx.placeholder, activity=ctx.placeholder)
    return write_entries(bunk, block, pick, ctx.schedules, placeholder=True)
