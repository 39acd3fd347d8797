"""
Fairness / rotation tracking by activity category.
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from .models import Category
from .utils import normalize_catalog, normalize_key


SPORT_LABELS = {"sports", "sport", "sports slot"}
SPECIAL_LABELS = {"special", "special activity", "special activity slot"}


class FairnessTracker:
    """
    Per-bunk cumulative usage counters by category.

    Counters start from the loaded history and are bumped during the run. The
    tracker never persists anything itself; callers load and dump the blob.
    """

    def __init__(self, sports: Any = None, specials: Any = None, general: Any = None,
                 history: Optional[Dict[str, Dict[str, int]]] = None):
        self._members = {
            Category.SPORT: {normalize_key(n) for n in normalize_catalog(sports)} | SPORT_LABELS,
            Category.SPECIAL: {normalize_key(n) for n in normalize_catalog(specials)} | SPECIAL_LABELS,
            Category.GENERAL: {normalize_key(n) for n in normalize_catalog(general)},
        }
        self.counts: Dict[str, Dict[str, int]] = {}
        if history:
            self.load(history)

    @classmethod
    def from_catalog(cls, catalog, history: Optional[Dict[str, Dict[str, int]]] = None) -> "FairnessTracker":
        return cls(catalog.sports, catalog.specials, catalog.general, history)

    def resolve_category(self, name: Any) -> Optional[Category]:
        """First-match category membership, or None if the name is in no catalog."""
        key = normalize_key(name)
        if not key:
            return None
        for category in (Category.SPORT, Category.SPECIAL, Category.GENERAL):
            if key in self._members[category]:
                return category
        return None

    def category_for_activity(self, name: Any) -> Optional[Category]:
        """Category of an activity; unknown names are general. None only for an empty name."""
        if not normalize_key(name):
            return None
        return self.resolve_category(name) or Category.GENERAL

    def get_usage(self, bunk: str, category: Union[Category, str]) -> int:
        return self.counts.get(bunk, {}).get(_key(category), 0)

    def order(self, bunks: Iterable[str], category: Union[Category, str]) -> List[str]:
        """Stable ascending sort by usage; ties keep input order."""
        return sorted(bunks, key=lambda bunk: self.get_usage(bunk, category))

    def bump(self, bunk: str, category: Union[Category, str], amount: int = 1) -> None:
        record = self.counts.setdefault(bunk, {})
        cat = _key(category)
        record[cat] = record.get(cat, 0) + amount

    def load(self, blob: Dict[str, Dict[str, int]]) -> None:
        """Replace counters with a history blob: bunk -> category -> count."""
        self.counts = {
            bunk: {str(cat): int(n) for cat, n in (record or {}).items()}
            for bunk, record in (blob or {}).items()
        }

    def dump(self) -> Dict[str, Dict[str, int]]:
        """Copy of the counters for persistence."""
        return {bunk: dict(record) for bunk, record in self.counts.items()}


def _key(category: Union[Category, str]) -> str:
    return category.value if isinstance(category, Category) else str(category)
