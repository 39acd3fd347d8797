"""
Generic slot pass: classify each block by its label, then first-fit a resource.
"""

from typing import Callable, List, Optional

from ..context import PassContext
from ..finders import Pick, find_best_general, find_best_special, find_best_sport
from ..logging import get_logger
from ..models import Block, BlockKind
from ..placement import commit_pick, open_block, place_placeholder


logger = get_logger(__name__)

NON_GENERIC_KINDS = {
    BlockKind.SMART,
    BlockKind.LEAGUE,
    BlockKind.SPECIALTY,
    BlockKind.PINNED,
    BlockKind.SPLIT,
}

Finder = Callable[[Block, PassContext], Optional[Pick]]


def select_generic_blocks(blocks: List[Block]) -> List[Block]:
    """Blocks this pass owns, in ascending start time (stable)."""
    generic = [b for b in blocks if b.kind not in NON_GENERIC_KINDS]
    return sorted(generic, key=lambda b: b.start_min)


def classify_block(block: Block) -> Finder:
    """Sports, specials, or general finder, by label substring."""
    label = (block.event or "").lower()
    if "sport" in label:
        return find_best_sport
    if "special" in label:
        return find_best_special
    return find_best_general


def assign_slots(blocks: List[Block], ctx: PassContext) -> int:
    """
    Fill every open bunk cell of the generic blocks.

    A bunk with no fitting resource gets the placeholder, which never consumes
    capacity.

    Args:
        blocks: All blocks of the day; non-generic kinds are ignored
        ctx: Pass context

    Returns:
        int: Number of placeholder placements
    """
    generic = select_generic_blocks(blocks)
    logger.info("running generic slot pass", blocks=len(generic))

    placeholders = 0
    for block in generic:
        if not block.slots:
            continue

        bunks = ctx.bunks_for(block)
        if bunks is None:
            ctx.warnings.warn("unknown_division", f"Slot block for unknown division {block.division}",
                              division=block.division, label=block.event)
            continue

        finder = classify_block(block)
        for bunk in bunks:
            target = open_block(bunk, block, ctx.schedules)
            if target is None:
                continue

            pick = finder(target, ctx)
            if pick is None and finder is not find_best_general:
                pick = find_best_general(target, ctx)

            if pick is not None:
                commit_pick(bunk, target, pick, ctx)
            else:
                place_placeholder(bunk, target, ctx)
                placeholders += 1

    if placeholders:
        logger.info("placeholder placements", count=placeholders)

    return placeholders
