"""
Override pass: daily resource patches and pinned placements.
"""

from typing import List

from ..context import PassContext
from ..logging import get_logger
from ..models import Block, BlockKind, ScheduleEntry
from ..timegrid import slots_for_range
from ..usage import mark_slot_if_room
from ..utils import normalize_key, parse_time_to_minutes


logger = get_logger(__name__)


def apply_overrides(blocks: List[Block], ctx: PassContext) -> List[Block]:
    """
    Apply the day's overrides.

    Patches resource props first, then places per-bunk pins, then the
    skeleton's pinned blocks.

    Args:
        blocks: All blocks of the day
        ctx: Pass context

    Returns:
        List[Block]: The blocks without pinned ones, which only this pass handles
    """
    logger.info("running override pass")

    patch_activity_props(ctx)
    patch_daily_sports(ctx)
    apply_bunk_overrides(ctx)
    apply_pinned_blocks(blocks, ctx)

    return [b for b in blocks if b.kind != BlockKind.PINNED]


def patch_activity_props(ctx: PassContext) -> None:
    """Disable daily-disabled resources and install daily time windows."""
    overrides = ctx.config.overrides

    for name in overrides.disabled_fields + overrides.disabled_specials:
        _, props = ctx.lookup_resource(name)
        if props is not None:
            props.available = False

    for name, rules in overrides.field_availability.items():
        _, props = ctx.lookup_resource(name)
        if props is None:
            continue
        props.time_rules = [r for r in (rule.to_rule() for rule in rules) if r is not None]


def patch_daily_sports(ctx: PassContext) -> None:
    """Attach each resource's daily disabled-sports set."""
    for name, sports in ctx.config.overrides.disabled_sports_by_field.items():
        _, props = ctx.lookup_resource(name)
        if props is not None:
            props.disabled_sports = set(sports)


def apply_bunk_overrides(ctx: PassContext) -> int:
    """Place every per-bunk pinned placement. Returns cells written."""
    written = 0
    for override in ctx.config.overrides.bunk_overrides:
        context = {'bunk': override.bunk, 'activity': override.activity}

        if override.bunk not in ctx.schedules:
            ctx.warnings.warn("unknown_bunk", f"Override for unknown bunk {override.bunk}", **context)
            continue

        start_min = parse_time_to_minutes(override.start_time)
        end_min = parse_time_to_minutes(override.end_time)
        if start_min is None or end_min is None:
            ctx.warnings.warn("bad_time_range", "Override with unparseable times", **context)
            continue

        slots = slots_for_range(ctx.grid, start_min, end_min)
        if not slots:
            ctx.warnings.warn("no_slots", "Override covers no time slot", **context)
            continue

        written += _pin(override.bunk, slots, override.activity, ctx)

    return written


def apply_pinned_blocks(blocks: List[Block], ctx: PassContext) -> int:
    """Pin every pinned skeleton block for each of its bunks. Returns cells written."""
    disabled = {
        normalize_key(name)
        for name in ctx.config.overrides.disabled_fields + ctx.config.overrides.disabled_specials
    }

    written = 0
    for block in blocks:
        if block.kind != BlockKind.PINNED or not block.slots:
            continue
        if normalize_key(block.event) in disabled:
            logger.info("pinned event disabled today", division=block.division, label=block.event)
            continue

        bunks = ctx.bunks_for(block)
        if bunks is None:
            ctx.warnings.warn("unknown_division", f"Pinned block for unknown division {block.division}",
                              division=block.division, label=block.event)
            continue

        for bunk in bunks:
            written += _pin(bunk, block.slots, block.event, ctx)

    return written


def _pin(bunk: str, slots: List[int], activity: str, ctx: PassContext) -> int:
    resource, props = ctx.lookup_resource(activity)
    if resource is None:
        resource = activity

    written = 0
    for position, slot_index in enumerate(slots):
        entry = ScheduleEntry(
            resource=resource,
            continuation=position > 0,
            fixed=True,
            activity=activity,
        )
        if ctx.schedules.reserve_if_absent(bunk, slot_index, entry):
            mark_slot_if_room(slot_index, resource, props, ctx.usage)
            written += 1
            continue

        existing = ctx.schedules.get(bunk, slot_index)
        if existing is None:
            continue
        ctx.warnings.warn(
            "pin_conflict",
            f"Pinned {activity} for {bunk} lost slot {slot_index} to {existing.resource}",
            bunk=bunk, slot=slot_index, existing=existing.resource, activity=activity,
        )

    return written
