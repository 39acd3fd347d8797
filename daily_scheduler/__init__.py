"""
Daily Scheduler - camp activity scheduling engine with greedy assignment passes.
"""

__version__ = "0.1.0"

from .config import SchedulerConfig, load_config
from .models import Block, DaySchedule, ScheduleEntry, TimeSlot
from .engine import RunResult, SchedulingEngine, run_day, validate_schedule
from .export import write_excel

__all__ = [
    "SchedulerConfig",
    "load_config",
    "Block",
    "DaySchedule",
    "ScheduleEntry",
    "TimeSlot",
    "RunResult",
    "SchedulingEngine",
    "run_day",
    "validate_schedule",
    "write_excel",
]
