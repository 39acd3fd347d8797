"""
End-to-end tests for the scheduling engine.
"""

from pathlib import Path
import sys

# Add the daily_scheduler package to the path
sys.path.append(str(Path(__file__).parent.parent))

from daily_scheduler.config import SchedulerConfig
from daily_scheduler.engine import RunResult, SchedulingEngine, run_day, validate_schedule
from daily_scheduler.models import BlockKind, ScheduleEntry


def _config(**extra):
    data = {
        "divisions": [
            {"name": "Juniors", "start_time": "9:00", "end_time": "12:00", "bunks": ["J1", "J2", "J3"]},
            {"name": "Seniors", "start_time": "10:00", "end_time": "12:00", "bunks": ["S1", "S2"]},
        ],
        "activities": {
            "sports": ["Basketball", "Soccer"],
            "specials": ["Canteen", "Arts"],
            "fields_by_sport": {"Basketball": ["Court 1", "Court 2"], "Soccer": ["Field A"]},
        },
        "resources": [
            {"name": "Swim", "sharable": {"type": "exclusive"}},
            {"name": "Gameroom", "capacity": 3, "sharable": True},
            {"name": "Court 1"},
            {"name": "Court 2"},
            {"name": "Field A", "sharable": {"type": "limited", "max": 2}, "capacity": 4},
            {"name": "Canteen"},
            {"name": "Arts"},
        ],
    }
    data.update(extra)
    return SchedulerConfig(**data)


SKELETON = [
    {"division": "Juniors", "start_time": "9:00", "end_time": "10:00", "type": "smart", "event": "Swim / Gameroom",
     "smart_data": {"main1": "Swim", "main2": "Gameroom", "fallback_for": "Swim"}},
    {"division": "Juniors", "start_time": "10:00", "end_time": "10:30", "event": "Sports"},
    {"division": "Juniors", "start_time": "10:30", "end_time": "11:00", "event": "Lunch"},
    {"division": "Juniors", "start_time": "11:00", "end_time": "11:30", "event": "League Game"},
    {"division": "Seniors", "start_time": "10:00", "end_time": "11:00", "event": "General Activity"},
    {"division": "Seniors", "start_time": "11:00", "end_time": "12:00", "event": "Special Activity"},
]


def _snapshot(result: RunResult):
    day = result.schedule
    rows = {
        bunk: [(e.resource, e.sport, e.continuation, e.fixed, e.placeholder) for e in day.get_bunk_schedule(bunk)]
        for bunk in day.schedules.bunks
    }
    return rows, [(s.start, s.end) for s in day.grid]


def test_full_run_is_fully_populated():
    """Every bunk has one non-null entry per slot."""
    config = _config()
    result = run_day(config, SKELETON)

    assert result.ok
    day = result.schedule
    assert len(day.grid) == 6
    for bunk in config.get_all_bunks():
        row = day.get_bunk_schedule(bunk)
        assert len(row) == len(day.grid)
        assert all(entry is not None for entry in row)

    violations = validate_schedule(day, config)
    assert violations['errors'] == []


def test_full_run_assignments():
    result = run_day(_config(), SKELETON)
    day = result.schedule

    # Smart tile: one Swim per slot, the rest in the Gameroom
    assert day.schedules.get("J1", 0).resource == "Swim"
    assert day.schedules.get("J2", 0).resource == "Gameroom"
    assert day.schedules.get("J1", 1).continuation is True

    # Sports in first-fit order
    assert [day.schedules.get(b, 2).resource for b in ["J1", "J2", "J3"]] == ["Court 1", "Court 2", "Field A"]

    # Pinned lunch
    assert day.schedules.get("J3", 3).resource == "Lunch"
    assert day.schedules.get("J3", 3).fixed is True

    # No league pass: the gap sweep fills league cells
    assert day.schedules.get("J1", 4).placeholder is True

    # Seniors are off the grid before 10:00
    assert day.schedules.get("S1", 0).resource == "Free"


def test_exclusive_and_limited_bounds_hold():
    result = run_day(_config(), SKELETON)
    usage = result.schedule.usage

    for slot in result.schedule.grid:
        assert usage.count(slot.index, "Swim") <= 1
        assert usage.count(slot.index, "Court 1") <= 1
        assert usage.count(slot.index, "Field A") <= 2


def test_missing_accessor_is_fatal():
    """Nothing runs or persists without a skeleton accessor."""
    persisted = []
    engine = SchedulingEngine(_config())

    result = engine.run(None, persist=persisted.append)

    assert result.ok is False
    assert result.schedule is None
    assert "accessor" in result.error
    assert persisted == []

    assert run_day(_config(), None).ok is False
    assert engine.run(lambda: None).ok is False


def test_persist_receives_day():
    persisted = []
    result = SchedulingEngine(_config()).run(lambda: SKELETON, persist=persisted.append)

    assert persisted == [result.schedule]


def test_league_pass_receives_league_blocks():
    seen = []

    def league_pass(blocks, ctx):
        seen.extend(blocks)
        for bunk in ctx.bunks_for(blocks[0]):
            for slot_index in blocks[0].slots:
                ctx.schedules.reserve_if_absent(bunk, slot_index, ScheduleEntry(resource="Field A", h2h=True))

    result = run_day(_config(), SKELETON, league_pass=league_pass)

    assert [b.kind for b in seen] == [BlockKind.LEAGUE]
    assert result.schedule.schedules.get("J1", 4).h2h is True


def test_runs_are_deterministic():
    config = _config()
    history = {"J2": {"general": 1}}

    first = run_day(config, SKELETON, history=history)
    second = run_day(config, SKELETON, history=history)

    assert _snapshot(first) == _snapshot(second)


def test_history_counts_feed_fairness():
    result = run_day(_config(), SKELETON, history={"J1": {"general": 5}})

    assert result.schedule.schedules.get("J2", 0).resource == "Swim"
    assert result.schedule.fairness_counts["J1"]["general"] == 5
    assert result.schedule.fairness_counts["J2"]["general"] == 1


def test_malformed_events_warn_and_skip():
    skeleton = SKELETON + [{"start_time": "9:00"}, "not an event"]

    result = run_day(_config(), skeleton)

    assert result.ok
    assert result.warnings.codes().count("malformed_event") == 2


def test_default_pass_order_ignores_daily_disables_in_earlier_passes():
    """Overrides run last: a daily-disabled special is still used by the slot pass."""
    skeleton = [{"division": "Seniors", "start_time": "10:00", "end_time": "10:30", "event": "Special Activity"}]
    config = _config(overrides={"disabled_specials": ["Canteen"]})

    result = run_day(config, skeleton)

    assert result.schedule.schedules.get("S1", 2).resource == "Canteen"
    assert result.schedule.props["Canteen"].available is False


def test_overrides_first_applies_daily_disables():
    skeleton = [{"division": "Seniors", "start_time": "10:00", "end_time": "10:30", "event": "Special Activity"}]
    config = _config(overrides_first=True, overrides={"disabled_specials": ["Canteen"]})

    result = run_day(config, skeleton)

    assert result.schedule.schedules.get("S1", 2).resource == "Arts"


def test_overrides_first_keeps_pins():
    config = _config(overrides_first=True, overrides={
        "bunk_overrides": [{"bunk": "S1", "activity": "Arts", "start_time": "11:00", "end_time": "11:30"}]
    })

    result = run_day(config, SKELETON)
    entry = result.schedule.schedules.get("S1", 4)

    assert entry.resource == "Arts"
    assert entry.fixed is True


PIN_SKELETON = [
    {"division": "Juniors", "start_time": "9:00", "end_time": "11:00", "event": "General Activity Slot"},
]


def _pin_config(**extra):
    return SchedulerConfig(
        divisions=[{"name": "Juniors", "start_time": "9:00", "end_time": "11:00", "bunks": ["J1"]}],
        activities={"specials": ["Canteen", "ArtsAndCrafts"]},
        resources=[{"name": "Canteen"}, {"name": "ArtsAndCrafts"}],
        overrides={"bunk_overrides": [
            {"bunk": "J1", "activity": "ArtsAndCrafts", "start_time": "10:00", "end_time": "10:30"}
        ]},
        **extra,
    )


def test_pin_lost_to_slot_pass_is_reported():
    """Overrides last: the slot pass owns the cell and the lost pin is a warning."""
    result = run_day(_pin_config(), PIN_SKELETON)
    entry = result.schedule.schedules.get("J1", 2)

    assert result.ok
    assert entry.fixed is False
    conflicts = [w for w in result.warnings if w.code == "pin_conflict"]
    assert len(conflicts) == 1
    assert conflicts[0].context["bunk"] == "J1"
    assert conflicts[0].context["slot"] == 2
    assert conflicts[0].context["existing"] == entry.resource


def test_pin_survives_slot_pass_when_overrides_run_first():
    result = run_day(_pin_config(overrides_first=True), PIN_SKELETON)
    entry = result.schedule.schedules.get("J1", 2)

    assert entry.resource == "ArtsAndCrafts"
    assert entry.fixed is True
    assert "pin_conflict" not in result.warnings.codes()
    assert all(e is not None for e in result.schedule.get_bunk_schedule("J1"))

def test_validate_schedule_reports_violations():
    config = _config()
    day = run_day(config, SKELETON).schedule
    day.usage.increment(0, "Swim")

    violations = validate_schedule(day, config)

    assert any("Swim" in error for error in violations['errors'])
    assert any("Placeholder" in warning for warning in violations['warnings'])
