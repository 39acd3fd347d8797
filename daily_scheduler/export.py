"""
Export functionality for writing daily schedules to Excel.
"""

import pandas as pd
from typing import Dict

from .config import SchedulerConfig
from .models import DaySchedule


def write_excel(day: DaySchedule, config: SchedulerConfig, output_path: str) -> None:
    """
    Write a day to an Excel file with summary sheets.

    Args:
        day: Completed day
        config: Scheduler configuration
        output_path: Path to output Excel file
    """
    print(f"Writing schedule to {output_path}")

    with pd.ExcelWriter(output_path, engine='xlsxwriter') as writer:
        # Bunk x time grid
        _write_grid(day, config, writer)

        # Write summary sheets if requested
        if config.excel.include_summaries:
            _write_assignments(day, config, writer)
            _write_usage(day, config, writer)
            _write_fairness(day, config, writer)

    print(f"Schedule exported successfully to {output_path}")


def excel_persister(config: SchedulerConfig, output_path: str):
    """Persistence callback that writes the completed day to Excel."""
    def persist(day: DaySchedule) -> None:
        write_excel(day, config, output_path)
    return persist


def build_grid_frame(day: DaySchedule) -> pd.DataFrame:
    """One row per time slot, one column per bunk in division order."""
    df = day.to_dataframe()
    if df.empty:
        return df

    bunk_order = [bunk for bunks in day.divisions.values() for bunk in bunks if bunk in day.schedules]
    slot_labels = [slot.label for slot in day.grid]

    grid = df.pivot(index='Time', columns='Bunk', values='Activity')
    grid = grid.reindex(index=slot_labels, columns=bunk_order)
    grid.index.name = 'Time'
    grid.columns.name = None
    return grid.reset_index()


def _write_grid(day: DaySchedule, config: SchedulerConfig, writer) -> None:
    """Write the main schedule sheet."""
    df = build_grid_frame(day)

    if df.empty:
        print("Warning: No bunks to export")
        return

    sheet_name = config.excel.sheets.get('grid_name', 'Daily Schedule')
    df.to_excel(writer, sheet_name=sheet_name, index=False)

    worksheet = writer.sheets[sheet_name]
    workbook = writer.book

    _format_grid_worksheet(worksheet, workbook, df, config.placeholder_name)


def _write_assignments(day: DaySchedule, config: SchedulerConfig, writer) -> None:
    """Write the long assignment table."""
    sheet_name = config.excel.sheets.get('assignments_name', 'Assignments')

    df = day.to_dataframe()
    if df.empty:
        return

    df = df.copy()
    df['Start Time'] = df['Start Time'].apply(lambda x: x.strftime('%I:%M %p'))
    df['End Time'] = df['End Time'].apply(lambda x: x.strftime('%I:%M %p'))

    column_order = [
        'Division', 'Bunk', 'Slot', 'Start Time', 'End Time',
        'Resource', 'Sport', 'Activity', 'Continuation', 'Fixed'
    ]
    df = df[column_order]
    df.to_excel(writer, sheet_name=sheet_name, index=False)


def _write_usage(day: DaySchedule, config: SchedulerConfig, writer) -> None:
    """Write per-slot resource occupancy."""
    sheet_name = config.excel.sheets.get('usage_name', 'Resource Usage')

    df = day.usage.to_dataframe()
    df.to_excel(writer, sheet_name=sheet_name, index=False)

    # Totals at the bottom
    worksheet = writer.sheets[sheet_name]
    summary_row = len(df) + 3
    worksheet.write(summary_row, 0, 'Total Bookings')
    for i, column in enumerate(df.columns[1:], 1):
        worksheet.write(summary_row, i, int(df[column].sum()))


def _write_fairness(day: DaySchedule, config: SchedulerConfig, writer) -> None:
    """Write cumulative fairness counts per bunk."""
    sheet_name = config.excel.sheets.get('fairness_name', 'Fairness')

    df = fairness_frame(day)
    df.to_excel(writer, sheet_name=sheet_name, index=False)


def fairness_frame(day: DaySchedule) -> pd.DataFrame:
    """Category counts per bunk, in division order."""
    rows = []
    for division, bunks in day.divisions.items():
        for bunk in bunks:
            counts: Dict[str, int] = day.fairness_counts.get(bunk, {})
            rows.append({
                'Division': division,
                'Bunk': bunk,
                'Sport': counts.get('sport', 0),
                'Special': counts.get('special', 0),
                'General': counts.get('general', 0),
            })
    return pd.DataFrame(rows, columns=['Division', 'Bunk', 'Sport', 'Special', 'General'])


def _format_grid_worksheet(worksheet, workbook, df: pd.DataFrame, placeholder: str) -> None:
    """Apply formatting to the grid worksheet."""
    header_format = workbook.add_format({
        'bold': True,
        'text_wrap': True,
        'valign': 'top',
        'fg_color': '#D7E4BC',
        'border': 1
    })

    worksheet.set_column(0, 0, 20)
    worksheet.set_column(1, len(df.columns) - 1, 18)

    for col_num, value in enumerate(df.columns.values):
        worksheet.write(0, col_num, value, header_format)

    # Highlight placeholder cells
    if len(df.columns) > 1:
        worksheet.conditional_format(1, 1, len(df), len(df.columns) - 1, {
            'type': 'cell',
            'criteria': '==',
            'value': f'"{placeholder}"',
            'format': workbook.add_format({'bg_color': '#FFC7CE'})
        })
