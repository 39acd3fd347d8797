"""
Tests for the override pass.
"""

from pathlib import Path
import sys

# Add the daily_scheduler package to the path
sys.path.append(str(Path(__file__).parent.parent))

from daily_scheduler.config import SchedulerConfig
from daily_scheduler.context import PassContext
from daily_scheduler.models import Block, BlockKind
from daily_scheduler.passes import apply_overrides, assign_slots, patch_activity_props, patch_daily_sports
from daily_scheduler.timegrid import build_time_grid_from_config


def _context(overrides=None, bunks=("J1", "J2")):
    config = SchedulerConfig(
        divisions=[
            {"name": "Juniors", "start_time": "9:00", "end_time": "11:00", "bunks": list(bunks)}
        ],
        activities={"specials": ["ArtsAndCrafts", "Canteen"]},
        resources=[
            {"name": "ArtsAndCrafts"},
            {"name": "Canteen", "capacity": 2, "sharable": True},
            {"name": "Court 1"},
        ],
        overrides=overrides or {},
    )
    return PassContext.create(config, build_time_grid_from_config(config))


def _block(event, slots, kind=BlockKind.SLOT):
    start = 540 + 30 * slots[0]
    return Block(division="Juniors", start_min=start, end_min=start + 30 * len(slots),
                 kind=kind, event=event, slots=list(slots))


def test_patch_activity_props():
    """Disabled resources and daily windows are applied to props."""
    ctx = _context({
        "disabled_fields": ["court 1"],
        "disabled_specials": ["Canteen"],
        "field_availability": {
            "ArtsAndCrafts": [
                {"type": "Available", "start": "10:00", "end": "11:00"},
                {"type": "unavailable", "start_min": 630, "end_min": 660},
            ]
        },
    })

    patch_activity_props(ctx)

    assert ctx.props["Court 1"].available is False
    assert ctx.props["Canteen"].available is False
    rules = ctx.props["ArtsAndCrafts"].time_rules
    assert [(r.type, r.start_min, r.end_min) for r in rules] == [
        ("Available", 600, 660),
        ("Unavailable", 630, 660),
    ]


def test_patch_daily_sports():
    ctx = _context({"disabled_sports_by_field": {"Court 1": ["Basketball"]}})

    patch_daily_sports(ctx)

    assert ctx.props["Court 1"].disabled_sports == {"Basketball"}


def test_bunk_override_pins_entry():
    """A pin writes fixed entries and marks usage."""
    ctx = _context({
        "bunk_overrides": [
            {"bunk": "J1", "activity": "ArtsAndCrafts", "start_time": "10:00", "end_time": "10:30"}
        ]
    })

    apply_overrides([], ctx)

    entry = ctx.schedules.get("J1", 2)
    assert entry.resource == "ArtsAndCrafts"
    assert entry.fixed is True
    assert entry.continuation is False
    assert ctx.usage.count(2, "ArtsAndCrafts") == 1
    assert ctx.schedules.get("J1", 1) is None


def test_pin_survives_later_generic_pass():
    """Overrides first, then the slot filler: the pinned cell is never overwritten."""
    ctx = _context({
        "bunk_overrides": [
            {"bunk": "J1", "activity": "ArtsAndCrafts", "start_time": "10:00", "end_time": "10:30"}
        ]
    })

    blocks = apply_overrides([_block("Special Activity", [2, 3])], ctx)
    assign_slots(blocks, ctx)

    assert ctx.schedules.get("J1", 2).resource == "ArtsAndCrafts"
    assert ctx.schedules.get("J1", 2).fixed is True
    # J1 is placed on its remaining open slot only
    assert ctx.schedules.get("J1", 3).resource == "ArtsAndCrafts"
    assert ctx.schedules.get("J1", 3).fixed is False
    assert ctx.schedules.get("J2", 2).resource == "Canteen"


def test_pin_does_not_overwrite_earlier_pass():
    """With overrides last, a cell filled earlier keeps its entry."""
    ctx = _context({
        "bunk_overrides": [
            {"bunk": "J1", "activity": "Canteen", "start_time": "10:00", "end_time": "10:30"}
        ]
    })

    assign_slots([_block("Special Activity", [2])], ctx)
    apply_overrides([], ctx)

    assert ctx.schedules.get("J1", 2).resource == "ArtsAndCrafts"
    assert ctx.schedules.get("J1", 2).fixed is False
    assert ctx.usage.count(2, "Canteen") == 1

    conflicts = [w for w in ctx.warnings if w.code == "pin_conflict"]
    assert len(conflicts) == 1
    assert conflicts[0].context == {
        "bunk": "J1", "slot": 2, "existing": "ArtsAndCrafts", "activity": "Canteen"
    }


def test_pinned_usage_is_capped():
    """Pins never push occupancy past the sharability limit."""
    ctx = _context({
        "bunk_overrides": [
            {"bunk": "J1", "activity": "Court 1", "start_time": "9:00", "end_time": "9:30"},
            {"bunk": "J2", "activity": "Court 1", "start_time": "9:00", "end_time": "9:30"},
        ]
    })

    apply_overrides([], ctx)

    assert ctx.schedules.get("J1", 0).resource == "Court 1"
    assert ctx.schedules.get("J2", 0).resource == "Court 1"
    assert ctx.usage.count(0, "Court 1") == 1


def test_pinned_blocks_for_every_bunk():
    ctx = _context()
    blocks = [_block("Lunch", [1, 2], kind=BlockKind.PINNED), _block("Sports", [3])]

    remaining = apply_overrides(blocks, ctx)

    assert [b.event for b in remaining] == ["Sports"]
    for bunk in ("J1", "J2"):
        assert ctx.schedules.get(bunk, 1).resource == "Lunch"
        assert ctx.schedules.get(bunk, 1).fixed is True
        assert ctx.schedules.get(bunk, 2).continuation is True
    assert ctx.usage.count(1, "Lunch") == 2


def test_disabled_pinned_event_is_skipped():
    ctx = _context({"disabled_specials": ["canteen"]})

    remaining = apply_overrides([_block("Canteen", [0], kind=BlockKind.PINNED)], ctx)

    assert remaining == []
    assert ctx.schedules.get("J1", 0) is None


def test_bad_pins_warn():
    ctx = _context({
        "bunk_overrides": [
            {"bunk": "Nobody", "activity": "Canteen", "start_time": "9:00", "end_time": "9:30"},
            {"bunk": "J1", "activity": "Canteen", "start_time": "later", "end_time": "9:30"},
            {"bunk": "J1", "activity": "Canteen", "start_time": "15:00", "end_time": "16:00"},
        ]
    })

    apply_overrides([], ctx)

    assert ctx.warnings.codes() == ["unknown_bunk", "bad_time_range", "no_slots"]
