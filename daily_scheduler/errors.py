"""Error hierarchy and the recoverable-warning channel.

Only a missing required collaborator is fatal. Everything else is a warning:
logged, collected on the run, and the affected unit of work is skipped.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .logging import get_logger


logger = get_logger(__name__)


class SchedulerError(Exception):
    """Base exception for all scheduler errors."""

    pass


class ConfigurationError(SchedulerError):
    """A required collaborator is missing; the run cannot start.

    Raised before any schedule or usage state is mutated.
    """

    pass


@dataclass
class RunWarning:
    """One data integrity warning."""
    code: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)


class RunWarnings:
    """Collects warnings for one run and logs each as it arrives."""

    def __init__(self):
        self.items: List[RunWarning] = []

    def warn(self, code: str, message: str, **context) -> RunWarning:
        warning = RunWarning(code=code, message=message, context=context)
        self.items.append(warning)
        logger.warning(message, code=code, **context)
        return warning

    def codes(self) -> List[str]:
        return [w.code for w in self.items]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)
