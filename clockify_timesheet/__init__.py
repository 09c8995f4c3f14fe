"""
Clockify Timesheet - Monthly timesheet reports from Clockify time entries.

This package provides modules for collecting time entries from Clockify,
consolidating them into timesheet rows, and writing them as CSV.
"""

from clockify_timesheet.collector import (
    ClockifyCollector,
    ClockifyError,
    RawInterval,
    get_custom_range,
    get_month_range,
)
from clockify_timesheet.processor import TimesheetEntry, consolidate, total_worked
from clockify_timesheet.reporter import (
    ConsolePrinter,
    ReportGenerator,
    format_csv,
    write_csv,
)

__version__ = "0.1.0"

__all__ = [
    # Collector
    "ClockifyCollector",
    "ClockifyError",
    "RawInterval",
    "get_month_range",
    "get_custom_range",
    # Processor
    "TimesheetEntry",
    "consolidate",
    "total_worked",
    # Reporter
    "ConsolePrinter",
    "ReportGenerator",
    "format_csv",
    "write_csv",
]
