"""
First-fit resource finders and label resolution.

Finders walk the catalog in configured order and return the first resource
that passes can_fit. They never mutate usage.
"""

from dataclasses import dataclass
from typing import Optional

from .fairness import SPECIAL_LABELS, SPORT_LABELS
from .models import Block
from .usage import can_fit
from .utils import normalize_key


@dataclass
class Pick:
    """A resource chosen for a block."""
    resource: str
    sport: Optional[str] = None
    activity: Optional[str] = None

    def __post_init__(self):
        if self.activity is None:
            self.activity = self.sport or self.resource


def find_best_sport(block: Block, ctx) -> Optional[Pick]:
    """First sport, then first eligible resource for it, that fits."""
    for sport in ctx.catalog.sports:
        sport_key = normalize_key(sport)
        for candidate in ctx.catalog.fields_for_sport(sport):
            name, props = ctx.lookup_resource(candidate)
            if props is None:
                continue
            if sport_key in {normalize_key(s) for s in props.disabled_sports}:
                continue
            if can_fit(block, name, props, ctx.usage):
                return Pick(resource=name, sport=sport, activity=sport)
    return None


def find_best_special(block: Block, ctx) -> Optional[Pick]:
    """First special activity that fits."""
    for special in ctx.catalog.specials:
        name, props = ctx.lookup_resource(special)
        if props is None:
            continue
        if can_fit(block, name, props, ctx.usage):
            return Pick(resource=name, activity=name)
    return None


def find_best_general(block: Block, ctx) -> Optional[Pick]:
    """Specials first, then sports."""
    return find_best_special(block, ctx) or find_best_sport(block, ctx)


def resolve_label(label: str, block: Block, ctx) -> Optional[Pick]:
    """
    Resolve a smart tile label to a concrete pick.

    Sport bucket labels go to the sports finder, special bucket labels to the
    specials finder, and anything else is a resource name checked directly.
    """
    key = normalize_key(label)
    if not key:
        return None
    if key in SPORT_LABELS:
        return find_best_sport(block, ctx)
    if key in SPECIAL_LABELS:
        return find_best_special(block, ctx)

    name, props = ctx.lookup_resource(label)
    if props is None or not can_fit(block, name, props, ctx.usage):
        return None
    return Pick(resource=name, activity=name)
