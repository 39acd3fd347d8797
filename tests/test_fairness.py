"""
Tests for fairness ordering and category resolution.
"""

from pathlib import Path
import sys

# Add the daily_scheduler package to the path
sys.path.append(str(Path(__file__).parent.parent))

from daily_scheduler.fairness import FairnessTracker
from daily_scheduler.models import Category


def test_order_is_stable_ascending():
    """Lower usage first; ties keep input order."""
    tracker = FairnessTracker(history={
        "A": {"sport": 0},
        "B": {"sport": 2},
        "C": {"sport": 1},
    })

    assert tracker.order(["A", "B", "C"], Category.SPORT) == ["A", "C", "B"]


def test_order_ties_preserve_input_order():
    tracker = FairnessTracker()

    assert tracker.order(["C", "A", "B"], Category.SPORT) == ["C", "A", "B"]
    assert tracker.order(["C", "A", "B"], "special") == ["C", "A", "B"]


def test_bump_initializes_unseen_bunks():
    tracker = FairnessTracker()

    tracker.bump("J1", Category.SPECIAL)
    tracker.bump("J1", Category.SPECIAL, amount=2)

    assert tracker.get_usage("J1", Category.SPECIAL) == 3
    assert tracker.get_usage("J1", Category.SPORT) == 0
    assert tracker.dump() == {"J1": {"special": 3}}


def test_category_membership():
    """Names are canonicalized before the membership test."""
    tracker = FairnessTracker(
        sports=["Basketball"],
        specials={"Arts and Crafts": {}},
        general=[{"name": "Nature Walk"}],
    )

    assert tracker.category_for_activity("  basketball ") == Category.SPORT
    assert tracker.category_for_activity("ARTS AND CRAFTS") == Category.SPECIAL
    assert tracker.category_for_activity("Nature  Walk") == Category.GENERAL
    assert tracker.category_for_activity("Sports Slot") == Category.SPORT
    assert tracker.category_for_activity("Special Activity") == Category.SPECIAL


def test_unknown_activity_is_general():
    tracker = FairnessTracker(sports=["Basketball"])

    assert tracker.category_for_activity("Swim") == Category.GENERAL
    assert tracker.resolve_category("Swim") is None
    assert tracker.category_for_activity("") is None


def test_load_replaces_counters():
    tracker = FairnessTracker(history={"A": {"sport": 5}})
    tracker.load({"B": {"sport": "2"}})

    assert tracker.get_usage("A", Category.SPORT) == 0
    assert tracker.get_usage("B", Category.SPORT) == 2


def test_dump_is_a_copy():
    tracker = FairnessTracker(history={"A": {"sport": 1}})
    blob = tracker.dump()
    blob["A"]["sport"] = 99

    assert tracker.get_usage("A", Category.SPORT) == 1
