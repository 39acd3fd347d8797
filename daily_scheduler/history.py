"""
Rotation history persisted across days.
"""

import os
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import pytz
import yaml
from pydantic import BaseModel, Field

from .config import SchedulerConfig
from .logging import get_logger
from .models import DaySchedule, ScheduleEntry


logger = get_logger(__name__)


class RotationHistory(BaseModel):
    """
    Cross-day rotation state.

    counts: bunk -> category -> cumulative usage
    bunks: bunk -> activity -> last time the bunk started it
    leagues: league -> sport -> last time the league played it
    """
    counts: Dict[str, Dict[str, int]] = Field(default_factory=dict)
    bunks: Dict[str, Dict[str, datetime]] = Field(default_factory=dict)
    leagues: Dict[str, Dict[str, datetime]] = Field(default_factory=dict)


def load_history(history_path: Optional[str]) -> RotationHistory:
    """Load history from YAML; a missing file is an empty history."""
    if not history_path or not os.path.exists(history_path):
        return RotationHistory()

    with open(history_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    return RotationHistory(**data)


def save_history(history: RotationHistory, history_path: str) -> None:
    """Save history to YAML."""
    with open(history_path, 'w') as f:
        yaml.dump(history.model_dump(mode='json'), f, default_flow_style=False, indent=2, sort_keys=True)


def extract_transitions(row: List[Optional[ScheduleEntry]]) -> List[Tuple[int, ScheduleEntry]]:
    """First cell of each real activity run; continuations and placeholders are skipped."""
    transitions = []
    for slot_index, entry in enumerate(row):
        if entry is None or entry.placeholder or entry.continuation:
            continue
        transitions.append((slot_index, entry))
    return transitions


def update_rotation_history(history: RotationHistory, day: DaySchedule, config: SchedulerConfig,
                            timestamp: Optional[datetime] = None) -> RotationHistory:
    """
    Fold a completed day into the history.

    Category counters are replaced by the day's final fairness counts, which
    already include the loaded history.

    Args:
        history: History loaded before the run
        day: Completed day
        config: Scheduler configuration
        timestamp: Time to record; defaults to now in the configured timezone

    Returns:
        RotationHistory: Updated copy
    """
    if timestamp is None:
        timestamp = datetime.now(pytz.timezone(config.timezone))

    updated = history.model_copy(deep=True)
    updated.counts = {bunk: dict(record) for bunk, record in day.fairness_counts.items()}

    league_bunks = _league_bunks(config)

    for bunk in day.schedules.bunks:
        for _, entry in extract_transitions(day.get_bunk_schedule(bunk)):
            activity = entry.sport or entry.activity or entry.resource
            updated.bunks.setdefault(bunk, {})[activity] = timestamp

            if not entry.sport:
                continue
            for league, (bunks, sports) in league_bunks.items():
                if bunk in bunks and (not sports or entry.sport in sports):
                    updated.leagues.setdefault(league, {})[entry.sport] = timestamp

    logger.info("rotation history updated", bunks=len(updated.bunks), leagues=len(updated.leagues))
    return updated


def _league_bunks(config: SchedulerConfig) -> Dict[str, Tuple[set, set]]:
    result = {}
    for name, league in config.leagues.items():
        if not league.enabled:
            continue
        bunks = set()
        for division in league.divisions:
            division_config = config.get_division(division)
            if division_config is not None:
                bunks.update(division_config.bunks)
        result[name] = (bunks, set(league.sports))
    return result
