"""
Orchestrator: sequences the passes over one shared context.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from .blocks import expand_skeleton, group_smart_blocks
from .config import SchedulerConfig, SkeletonEvent
from .context import PassContext
from .errors import ConfigurationError, RunWarnings
from .logging import get_logger
from .models import Block, BlockKind, DaySchedule, ScheduleEntry
from .passes import apply_overrides, assign_slots, run_smart_tiles
from .timegrid import build_time_grid_from_config


logger = get_logger(__name__)

LeaguePass = Callable[[List[Block], PassContext], None]
Persist = Callable[[DaySchedule], None]


@dataclass
class RunResult:
    """Outcome of one run. A failed run carries an error and no schedule."""
    ok: bool
    schedule: Optional[DaySchedule] = None
    error: Optional[str] = None
    warnings: RunWarnings = field(default_factory=RunWarnings)

    @classmethod
    def failure(cls, error: str, warnings: Optional[RunWarnings] = None) -> "RunResult":
        return cls(ok=False, error=error, warnings=warnings or RunWarnings())


class SchedulingEngine:
    """Runs the daily pipeline: grid, blocks, passes, gap sweep, persistence."""

    def __init__(self, config: SchedulerConfig):
        self.config = config

    def run(self, skeleton_accessor: Optional[Callable[[], Any]],
            history: Any = None,
            league_pass: Optional[LeaguePass] = None,
            persist: Optional[Persist] = None) -> RunResult:
        """
        Build one day's schedule.

        Args:
            skeleton_accessor: Callable returning the day's skeleton events
            history: Prior rotation history (RotationHistory or counts mapping)
            league_pass: Optional callable placing league and specialty blocks
            persist: Optional callable receiving the completed day

        Returns:
            RunResult: ok with the schedule, or a failure when the skeleton
            accessor is missing. Nothing is persisted on failure.
        """
        warnings = RunWarnings()

        try:
            raw_events = self._read_skeleton(skeleton_accessor)
        except ConfigurationError as e:
            logger.error("run aborted", error=str(e))
            return RunResult.failure(str(e), warnings)

        events = self._coerce_events(raw_events, warnings)

        grid = build_time_grid_from_config(self.config)
        ctx = PassContext.create(self.config, grid, _history_counts(history))
        ctx.warnings = warnings

        logger.info("run started", slots=len(grid), bunks=len(ctx.schedules.bunks), events=len(events))

        blocks = expand_skeleton(events, ctx.divisions, grid, warnings)

        if self.config.overrides_first:
            blocks = apply_overrides(blocks, ctx)

        run_smart_tiles(group_smart_blocks(blocks), ctx)
        assign_slots(blocks, ctx)

        league_blocks = [b for b in blocks if b.kind in (BlockKind.LEAGUE, BlockKind.SPECIALTY)]
        if league_pass is not None:
            league_pass(league_blocks, ctx)
        elif league_blocks:
            logger.info("no league pass configured", blocks=len(league_blocks))

        if not self.config.overrides_first:
            blocks = apply_overrides(blocks, ctx)

        fill_gaps(ctx)

        day = DaySchedule(
            grid=grid,
            schedules=ctx.schedules,
            usage=ctx.usage,
            fairness_counts=ctx.fairness.dump(),
            divisions=ctx.divisions,
            props=ctx.props,
        )

        if persist is not None:
            persist(day)

        logger.info("run finished", warnings=len(warnings))
        return RunResult(ok=True, schedule=day, warnings=warnings)

    def _read_skeleton(self, skeleton_accessor) -> List[Any]:
        if skeleton_accessor is None:
            raise ConfigurationError("Master skeleton accessor is missing")
        if not callable(skeleton_accessor):
            raise ConfigurationError("Master skeleton accessor is not callable")

        events = skeleton_accessor()
        if events is None:
            raise ConfigurationError("Master skeleton accessor returned no skeleton")
        return list(events)

    def _coerce_events(self, raw_events: List[Any], warnings: RunWarnings) -> List[SkeletonEvent]:
        events = []
        for position, raw in enumerate(raw_events):
            if isinstance(raw, SkeletonEvent):
                events.append(raw)
                continue
            try:
                events.append(SkeletonEvent(**raw))
            except (ValidationError, TypeError) as e:
                warnings.warn("malformed_event", f"Skipping malformed skeleton event: {e}", position=position)
        return events


def fill_gaps(ctx: PassContext) -> int:
    """Fill every still-empty cell with the placeholder. Returns cells filled."""
    filled = 0
    for bunk, slot_index in ctx.schedules.empty_cells():
        entry = ScheduleEntry(resource=ctx.placeholder, activity=ctx.placeholder, placeholder=True)
        if ctx.schedules.reserve_if_absent(bunk, slot_index, entry):
            filled += 1

    if filled:
        logger.info("gap sweep", cells=filled)
    return filled


def run_day(config: SchedulerConfig, skeleton: Optional[List[Any]], history: Any = None,
            league_pass: Optional[LeaguePass] = None, persist: Optional[Persist] = None) -> RunResult:
    """
    Convenience function to run the scheduler on a skeleton list.

    Args:
        config: Scheduler configuration
        skeleton: The day's skeleton events; None is treated as a missing accessor
        history: Prior rotation history
        league_pass: Optional league pass
        persist: Optional persistence callback

    Returns:
        RunResult: Result of the run
    """
    accessor = None if skeleton is None else (lambda: skeleton)
    engine = SchedulingEngine(config)
    return engine.run(accessor, history=history, league_pass=league_pass, persist=persist)


def validate_schedule(day: DaySchedule, config: SchedulerConfig) -> Dict[str, List[str]]:
    """
    Validate a completed day against the schedule invariants.

    Args:
        day: Completed day
        config: Scheduler configuration

    Returns:
        Dict[str, List[str]]: Validation results
    """
    violations = {
        'errors': [],
        'warnings': []
    }

    if not day.schedules.bunks:
        violations['errors'].append("No bunks scheduled")
        return violations

    # Schedule lengths and empty cells
    for bunk in day.schedules.bunks:
        row = day.get_bunk_schedule(bunk)
        if len(row) != len(day.grid):
            violations['errors'].append(
                f"Bunk {bunk} has {len(row)} cells for {len(day.grid)} slots"
            )
        empty = sum(1 for entry in row if entry is None)
        if empty:
            violations['errors'].append(f"Bunk {bunk} has {empty} empty cells")

    # Occupancy bounds
    for slot in day.grid:
        for resource, count in day.usage.counts.get(slot.index, {}).items():
            props = day.props.get(resource)
            if props is None:
                continue
            limit = props.occupancy_limit()
            if count > limit:
                violations['errors'].append(
                    f"Resource {resource} over limit at {slot.label}: {count} > {limit}"
                )

    # Bunks missing from the configuration
    configured = set(config.get_all_bunks())
    unknown = [bunk for bunk in day.schedules.bunks if bunk not in configured]
    if unknown:
        violations['warnings'].append(f"Bunks not in configuration: {', '.join(unknown)}")

    placeholders = sum(
        1
        for bunk in day.schedules.bunks
        for entry in day.get_bunk_schedule(bunk)
        if entry is not None and entry.placeholder
    )
    if placeholders:
        violations['warnings'].append(f"Placeholder cells: {placeholders}")

    return violations


def _history_counts(history: Any) -> Optional[Dict[str, Dict[str, int]]]:
    if history is None:
        return None
    if hasattr(history, 'counts'):
        return history.counts
    return history
