"""
Assignment passes, run in sequence against one shared context.
"""

from .smart_tiles import run_smart_tiles, determine_sides
from .slots import assign_slots, select_generic_blocks, classify_block
from .overrides import apply_overrides, patch_activity_props, patch_daily_sports

__all__ = [
    "run_smart_tiles",
    "determine_sides",
    "assign_slots",
    "select_generic_blocks",
    "classify_block",
    "apply_overrides",
    "patch_activity_props",
    "patch_daily_sports",
]
