"""
Master skeleton ingestion for the daily scheduler.
"""

import os
import pandas as pd
from typing import Any, Callable, Dict, List
from pydantic import ValidationError

from .config import SchedulerConfig, SkeletonEvent
from .utils import clean_name, parse_time_to_minutes


SKELETON_COLUMNS = {
    'division': 'Division',
    'start': 'Start',
    'end': 'End',
    'type': 'Type',
    'event': 'Event',
    'main1': 'Main 1',
    'main2': 'Main 2',
    'fallback_for': 'Fallback For',
    'fallback_activity': 'Fallback Activity',
    'sub_events': 'Sub Events',
}


def load_skeleton(skeleton_path: str) -> List[Dict[str, Any]]:
    """
    Load the day's master skeleton.

    YAML files hold a list of events or a mapping with a 'skeleton' list.
    Excel and CSV files hold one event per row.

    Args:
        skeleton_path: Path to a .yaml/.yml, .xlsx/.xls or .csv file

    Returns:
        List[Dict[str, Any]]: Raw skeleton events
    """
    ext = os.path.splitext(skeleton_path)[1].lower()

    if ext in ('.yaml', '.yml'):
        import yaml

        with open(skeleton_path, 'r') as f:
            data = yaml.safe_load(f) or []
        if isinstance(data, dict):
            data = data.get('skeleton', [])
        return list(data)

    if ext == '.csv':
        df = pd.read_csv(skeleton_path)
    else:
        df = pd.read_excel(skeleton_path)

    return events_from_dataframe(df)


def events_from_dataframe(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert a skeleton table into raw events."""
    required_columns = [SKELETON_COLUMNS['division'], SKELETON_COLUMNS['start'], SKELETON_COLUMNS['end']]
    missing_columns = [col for col in required_columns if col not in df.columns]

    if missing_columns:
        raise ValueError(f"Missing required columns: {missing_columns}. Found columns: {list(df.columns)}")

    events = []
    for _, row in df.iterrows():
        event = {
            'division': clean_name(row[SKELETON_COLUMNS['division']]),
            'start_time': _cell(row, 'start'),
            'end_time': _cell(row, 'end'),
            'type': _cell(row, 'type') or 'slot',
            'event': _cell(row, 'event') or '',
        }

        main1, main2 = _cell(row, 'main1'), _cell(row, 'main2')
        if main1 and main2:
            event['smart_data'] = {
                'main1': main1,
                'main2': main2,
                'fallback_for': _cell(row, 'fallback_for'),
                'fallback_activity': _cell(row, 'fallback_activity'),
            }

        sub_events = _cell(row, 'sub_events')
        if sub_events:
            event['sub_events'] = [{'event': s.strip()} for s in sub_events.split('/') if s.strip()]

        events.append(event)

    return events


def skeleton_accessor(skeleton_path: str) -> Callable[[], List[Dict[str, Any]]]:
    """A skeleton accessor that reads the file when called."""
    def accessor():
        return load_skeleton(skeleton_path)
    return accessor


def validate_skeleton(events: List[Any], config: SchedulerConfig) -> Dict[str, List[str]]:
    """
    Validate skeleton events for common issues.

    Args:
        events: Raw or parsed skeleton events
        config: Scheduler configuration

    Returns:
        Dict[str, List[str]]: Validation results
    """
    issues = {
        'warnings': [],
        'errors': []
    }

    if not events:
        issues['errors'].append("No skeleton events found")
        return issues

    divisions = {division.name for division in config.divisions}

    for i, raw in enumerate(events):
        try:
            event = raw if isinstance(raw, SkeletonEvent) else SkeletonEvent(**raw)
        except (ValidationError, TypeError) as e:
            issues['errors'].append(f"Event {i} is malformed: {e}")
            continue

        start = parse_time_to_minutes(event.start_time)
        end = parse_time_to_minutes(event.end_time)

        if event.division not in divisions:
            issues['warnings'].append(f"Event {i} references unknown division {event.division}")
        if start is None or end is None:
            issues['errors'].append(f"Event {i} has unparseable times: {event.start_time} - {event.end_time}")
        elif end <= start:
            issues['errors'].append(f"Event {i} ends before it starts: {event.start_time} - {event.end_time}")
        if event.type == 'smart' and event.smart_data is None:
            issues['warnings'].append(f"Smart event {i} has no pairing data")

    return issues


def get_skeleton_summary(events: List[Any]) -> Dict:
    """
    Get summary statistics for a skeleton.

    Args:
        events: Raw or parsed skeleton events

    Returns:
        Dict: Summary statistics
    """
    if not events:
        return {}

    parsed = []
    malformed = 0
    for raw in events:
        try:
            parsed.append(raw if isinstance(raw, SkeletonEvent) else SkeletonEvent(**raw))
        except (ValidationError, TypeError):
            malformed += 1
    if not parsed:
        return {'total_events': 0, 'malformed_events': malformed}

    df = pd.DataFrame([
        {
            'division': e.division,
            'type': e.type,
            'event': e.event,
        }
        for e in parsed
    ])

    return {
        'total_events': len(parsed),
        'malformed_events': malformed,
        'division_distribution': df['division'].value_counts().to_dict(),
        'type_distribution': df['type'].value_counts().to_dict(),
        'event_distribution': df['event'].value_counts().to_dict(),
    }


def _cell(row, key: str):
    column = SKELETON_COLUMNS[key]
    if column not in row.index:
        return None
    value = row[column]
    if pd.isna(value):
        return None
    if hasattr(value, 'strftime'):
        return value.strftime('%H:%M')
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int):
        return value
    return str(value).strip() or None
