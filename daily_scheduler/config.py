"""
Configuration management for the daily scheduler.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, List, Dict, Optional, Union
from datetime import date
import pytz

from .models import ActivityProps, SharingRule, TimeRule, Sharability
from .utils import clean_name, normalize_catalog, normalize_key, parse_time_to_minutes


SHARABILITY_ALIASES = {
    "not_sharable": Sharability.EXCLUSIVE,
    "none": Sharability.EXCLUSIVE,
    "custom": Sharability.LIMITED,
}


def _validate_time(v):
    if parse_time_to_minutes(v) is None:
        raise ValueError(f"Invalid time format: {v}. Use H:MM, HH:MM or H:MM am/pm.")
    return v


class SharingConfig(BaseModel):
    """Sharability descriptor of a resource."""
    type: str = Field(default=Sharability.EXCLUSIVE, description="exclusive, limited or all")
    max: Optional[int] = Field(default=None, ge=1, description="Max bookings for limited sharing")

    @field_validator('type', mode='before')
    @classmethod
    def normalize_type(cls, v):
        if v is None:
            return Sharability.EXCLUSIVE
        key = str(v).strip().lower()
        return SHARABILITY_ALIASES.get(key, key)


class TimeRuleConfig(BaseModel):
    """A time window rule, given as text times or as minutes."""
    type: str = Field(description="Available or Unavailable")
    start: Optional[Union[str, int]] = None
    end: Optional[Union[str, int]] = None
    start_min: Optional[int] = None
    end_min: Optional[int] = None

    @field_validator('type')
    @classmethod
    def validate_type(cls, v):
        normalized = v.strip().capitalize()
        if normalized not in ("Available", "Unavailable"):
            raise ValueError(f"Invalid time rule type: {v}. Must be Available or Unavailable")
        return normalized

    def to_rule(self) -> Optional[TimeRule]:
        """Minutes pass through unchanged; text times are parsed. None if unparseable."""
        if self.start_min is not None and self.end_min is not None:
            return TimeRule(type=self.type, start_min=self.start_min, end_min=self.end_min)

        start = parse_time_to_minutes(self.start)
        end = parse_time_to_minutes(self.end)
        if start is None or end is None:
            return None
        return TimeRule(type=self.type, start_min=start, end_min=end)


class ResourceConfig(BaseModel):
    """A field, special activity room, or any other bookable resource."""
    name: str
    available: bool = Field(default=True, description="Master availability flag")
    capacity: int = Field(default=1, ge=1, description="Simultaneous bookings for 'all' sharing")
    sharable: SharingConfig = Field(default_factory=SharingConfig)
    time_rules: List[TimeRuleConfig] = Field(default_factory=list)
    disabled_sports: List[str] = Field(default_factory=list)

    @field_validator('name')
    @classmethod
    def clean(cls, v):
        v = clean_name(v)
        if not v:
            raise ValueError("Resource name must not be empty")
        return v

    @field_validator('sharable', mode='before')
    @classmethod
    def coerce_sharable(cls, v):
        if v is None or v is False:
            return {"type": Sharability.EXCLUSIVE}
        if v is True:
            return {"type": Sharability.ALL}
        if isinstance(v, str):
            return {"type": v}
        return v

    def to_props(self) -> ActivityProps:
        """Fresh, mutable props for one run."""
        rules = [r for r in (rule.to_rule() for rule in self.time_rules) if r is not None]
        return ActivityProps(
            name=self.name,
            available=self.available,
            capacity=self.capacity,
            sharable=SharingRule(type=self.sharable.type, max=self.sharable.max),
            time_rules=rules,
            disabled_sports=set(self.disabled_sports),
        )


class ActivityCatalog(BaseModel):
    """Activity catalogs. Each list accepts a list, a keyed mapping, or records."""
    sports: List[str] = Field(default_factory=list)
    specials: List[str] = Field(default_factory=list)
    general: List[str] = Field(default_factory=list)
    fields_by_sport: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Sport -> eligible resources, in preference order"
    )

    @field_validator('sports', 'specials', 'general', mode='before')
    @classmethod
    def normalize(cls, v):
        return normalize_catalog(v)

    @field_validator('fields_by_sport', mode='before')
    @classmethod
    def normalize_fields(cls, v):
        if not v:
            return {}
        return {clean_name(sport): normalize_catalog(fields) for sport, fields in v.items()}

    def fields_for_sport(self, sport: str) -> List[str]:
        """Eligible resources for a sport; a sport with no mapping is its own resource."""
        key = normalize_key(sport)
        for name, fields in self.fields_by_sport.items():
            if normalize_key(name) == key:
                return list(fields)
        return [sport]


class DivisionConfig(BaseModel):
    """A division with its operating hours and ordered bunks."""
    name: str
    start_time: Union[str, int]
    end_time: Union[str, int]
    bunks: List[str] = Field(default_factory=list)

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_time_format(cls, v):
        return _validate_time(v)

    @field_validator('bunks', mode='before')
    @classmethod
    def normalize_bunks(cls, v):
        return normalize_catalog(v)


class SmartTileConfig(BaseModel):
    """Pairing data of a smart tile event."""
    main1: str
    main2: str
    fallback_for: Optional[str] = None
    fallback_activity: Optional[str] = None

    @field_validator('main1', 'main2', 'fallback_for', 'fallback_activity')
    @classmethod
    def clean(cls, v):
        if v is None:
            return None
        return clean_name(v) or None


class SubEvent(BaseModel):
    """One half of a split event."""
    event: str


class SkeletonEvent(BaseModel):
    """One event of the day's master skeleton."""
    division: str
    start_time: Union[str, int]
    end_time: Union[str, int]
    type: str = Field(default="slot", description="slot, smart, league, specialty, pinned or split")
    event: str = ""
    smart_data: Optional[SmartTileConfig] = None
    sub_events: List[SubEvent] = Field(default_factory=list)

    @field_validator('type', mode='before')
    @classmethod
    def normalize_type(cls, v):
        return str(v or "slot").strip().lower()


class BunkOverride(BaseModel):
    """A pinned placement for one bunk."""
    bunk: str
    activity: str
    start_time: Union[str, int]
    end_time: Union[str, int]


class DailyOverrides(BaseModel):
    """Daily-only exceptions."""
    disabled_fields: List[str] = Field(default_factory=list)
    disabled_specials: List[str] = Field(default_factory=list)
    field_availability: Dict[str, List[TimeRuleConfig]] = Field(default_factory=dict)
    disabled_sports_by_field: Dict[str, List[str]] = Field(default_factory=dict)
    bunk_overrides: List[BunkOverride] = Field(default_factory=list)

    @field_validator('disabled_fields', 'disabled_specials', mode='before')
    @classmethod
    def normalize(cls, v):
        return normalize_catalog(v)


class LeagueConfig(BaseModel):
    """League membership, used to record league sport history."""
    enabled: bool = True
    divisions: List[str] = Field(default_factory=list)
    sports: List[str] = Field(default_factory=list)


class LoggingConfig(BaseModel):
    """Logging output options."""
    level: str = Field(default="INFO", description="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    json_output: bool = Field(default=False, description="Render logs as JSON")


class ExcelOut(BaseModel):
    """Excel output configuration."""
    include_summaries: bool = Field(default=True, description="Include summary sheets")
    sheets: Dict[str, str] = Field(
        default_factory=lambda: {
            "grid_name": "Daily Schedule",
            "assignments_name": "Assignments",
            "usage_name": "Resource Usage",
            "fairness_name": "Fairness",
        },
        description="Sheet names"
    )


class SchedulerConfig(BaseModel):
    """Main configuration for the daily scheduler."""
    timezone: str = Field(default="America/New_York", description="Timezone of the time grid")
    anchor_date: date = Field(default=date(1970, 1, 1), description="Date the grid instants fall on")
    increment_minutes: int = Field(default=30, ge=5, description="Time slot width")
    default_start: Union[str, int] = Field(default="9:00", description="Grid start when no divisions exist")
    default_end: Union[str, int] = Field(default="16:00", description="Grid end when no divisions exist")
    placeholder_name: str = Field(default="Free", description="Terminal placeholder label")
    overrides_first: bool = Field(
        default=False,
        description="Run the override pass before the smart tile and slot passes"
    )

    divisions: List[DivisionConfig] = Field(default_factory=list)
    activities: ActivityCatalog = Field(default_factory=ActivityCatalog)
    resources: List[ResourceConfig] = Field(default_factory=list)
    overrides: DailyOverrides = Field(default_factory=DailyOverrides)
    leagues: Dict[str, LeagueConfig] = Field(default_factory=dict)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    excel: ExcelOut = Field(default_factory=ExcelOut)

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v):
        try:
            pytz.timezone(v)
            return v
        except pytz.exceptions.UnknownTimeZoneError:
            raise ValueError(f"Unknown timezone: {v}")

    @field_validator('default_start', 'default_end')
    @classmethod
    def validate_time_format(cls, v):
        return _validate_time(v)

    @model_validator(mode='after')
    def validate_unique_bunks(self):
        seen = {}
        for division in self.divisions:
            for bunk in division.bunks:
                if bunk in seen:
                    raise ValueError(
                        f"Duplicate bunk: {bunk} appears in {seen[bunk]} and {division.name}"
                    )
                seen[bunk] = division.name
        return self

    @model_validator(mode='after')
    def validate_unique_resources(self):
        seen = set()
        for resource in self.resources:
            key = normalize_key(resource.name)
            if key in seen:
                raise ValueError(f"Duplicate resource: {resource.name}")
            seen.add(key)
        return self

    def get_all_bunks(self) -> List[str]:
        """Get all bunks in division order."""
        bunks = []
        for division in self.divisions:
            bunks.extend(division.bunks)
        return bunks

    def get_bunk_division(self, bunk: str) -> Optional[str]:
        """Get the division name for a given bunk."""
        for division in self.divisions:
            if bunk in division.bunks:
                return division.name
        return None

    def get_division(self, name: str) -> Optional[DivisionConfig]:
        for division in self.divisions:
            if division.name == name:
                return division
        return None

    def division_bunks(self) -> Dict[str, List[str]]:
        """Division name -> ordered bunk list."""
        return {division.name: list(division.bunks) for division in self.divisions}

    def resource_props(self) -> Dict[str, ActivityProps]:
        """Fresh resource props for one run, keyed by resource name."""
        return {resource.name: resource.to_props() for resource in self.resources}


def load_config(config_path: str) -> SchedulerConfig:
    """Load configuration from YAML file."""
    import yaml

    with open(config_path, 'r') as f:
        config_data = yaml.safe_load(f) or {}

    return SchedulerConfig(**config_data)


def save_config(config: SchedulerConfig, config_path: str) -> None:
    """Save configuration to YAML file."""
    import yaml

    with open(config_path, 'w') as f:
        yaml.dump(config.model_dump(mode='json'), f, default_flow_style=False, indent=2, sort_keys=False)


def coerce_skeleton(events: List[Any]) -> List[SkeletonEvent]:
    """Accept SkeletonEvent instances or plain mappings."""
    return [e if isinstance(e, SkeletonEvent) else SkeletonEvent(**e) for e in events]
