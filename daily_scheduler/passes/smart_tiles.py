"""
Smart tile pass: paired either/or blocks with fairness-driven side assignment.
"""

from typing import Dict, List, Optional, Tuple

from ..context import PassContext
from ..fairness import FairnessTracker
from ..finders import resolve_label
from ..logging import get_logger
from ..models import Block, SmartData
from ..placement import commit_pick, open_block
from ..utils import normalize_key


logger = get_logger(__name__)


def run_smart_tiles(groups: Dict[Tuple, List[Block]], ctx: PassContext) -> None:
    """
    Allocate every smart tile group.

    A group that cannot be processed is skipped with a warning; the rest of the
    groups still run.

    Args:
        groups: Group key -> blocks sharing a division and pairing data
        ctx: Pass context
    """
    logger.info("running smart tile pass", groups=len(groups))

    for key, blocks in groups.items():
        if blocks:
            _run_group(key, blocks, ctx)


def determine_sides(smart_data: SmartData, fairness: FairnessTracker) -> Tuple[str, str]:
    """
    Pick which main is generated and which is placed, once per group.

    The fallback target is generated. Failing that, a main with a known category
    beats one without. Otherwise main1 is generated.

    Returns:
        Tuple[str, str]: (generated, placed)
    """
    main1, main2 = smart_data.main1, smart_data.main2

    target = normalize_key(smart_data.fallback_for)
    if target and target == normalize_key(main1):
        return main1, main2
    if target and target == normalize_key(main2):
        return main2, main1

    cat1 = fairness.resolve_category(main1)
    cat2 = fairness.resolve_category(main2)
    if cat1 and not cat2:
        return main1, main2
    if cat2 and not cat1:
        return main2, main1

    return main1, main2


def _run_group(key: Tuple, blocks: List[Block], ctx: PassContext) -> None:
    blocks = sorted(blocks, key=lambda b: b.start_min)
    first = blocks[0]
    context = {'division': first.division, 'group': "|".join(str(k) for k in key)}

    bunks = ctx.bunks_for(first)
    if bunks is None:
        ctx.warnings.warn("unknown_division", f"Smart tile group for unknown division {first.division}", **context)
        return
    if not bunks:
        ctx.warnings.warn("empty_division", f"Smart tile group for division {first.division} has no bunks", **context)
        return

    smart_data = first.smart_data
    if smart_data is None or not smart_data.main1 or not smart_data.main2:
        ctx.warnings.warn("missing_smart_data", "Smart tile group has no pairing data", **context)
        return

    generated, placed = determine_sides(smart_data, ctx.fairness)
    generated_category = ctx.fairness.category_for_activity(generated)
    fallback = smart_data.fallback_activity
    fallback_category = ctx.fairness.category_for_activity(fallback) if fallback else None

    logger.debug("smart group", generated=generated, placed=placed, blocks=len(blocks), **context)

    got_generated = set()

    for position, block in enumerate(blocks):
        is_last = position == len(blocks) - 1
        generated_now = set()

        # Pass 1: generated side, lowest usage first
        for bunk in ctx.fairness.order(bunks, generated_category):
            if bunk in got_generated:
                continue
            target = open_block(bunk, block, ctx.schedules)
            if target is None:
                continue
            if _try_label(bunk, generated, target, ctx):
                generated_now.add(bunk)
                got_generated.add(bunk)
                ctx.fairness.bump(bunk, generated_category)

        # Pass 2: everyone else gets the placed side, or the fallback on the last block
        for bunk in bunks:
            if bunk in generated_now:
                continue
            target = open_block(bunk, block, ctx.schedules)
            if target is None:
                continue

            if bunk in got_generated:
                _try_label(bunk, placed, target, ctx)
                continue

            if is_last and fallback:
                if _try_label(bunk, fallback, target, ctx):
                    if fallback_category:
                        ctx.fairness.bump(bunk, fallback_category)
                    continue

            _try_label(bunk, placed, target, ctx)


def _try_label(bunk: str, label: Optional[str], block: Block, ctx: PassContext) -> bool:
    pick = resolve_label(label, block, ctx)
    if pick is None:
        logger.debug("smart label did not fit", bunk=bunk, label=label, slots=block.slots)
        return False
    commit_pick(bunk, block, pick, ctx)
    return True
