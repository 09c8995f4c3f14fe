"""
Report Generation Module.

This module renders timesheet entries as CSV, saves timesheet reports,
and handles console output for progress indication.
"""

from __future__ import annotations

import csv
import io
import os
import sys
from datetime import datetime, timedelta
from typing import Iterable, TextIO

from clockify_timesheet.processor import TimesheetEntry

CSV_HEADER = ["date", "start", "end", "break", "description"]


# =============================================================================
# Field Formatting
# =============================================================================


def format_date_field(dt: datetime) -> str:
    """Format the date of a timestamp as dd.mm.yy."""
    return dt.strftime("%d.%m.%y")


def format_time_field(dt: datetime) -> str:
    """
    Format a time field (start/end) as hh:mm, rounded to the nearest minute.

    The minute is rounded up if the second is >= 30.
    (12:30:29 -> 12:30, 12:30:30 -> 12:31)

    Args:
        dt: The timestamp to format.

    Returns:
        The time of day as a zero-padded hh:mm string.
    """
    hour = dt.hour
    minute = dt.minute
    if dt.second >= 30:
        minute += 1
    if minute >= 60:
        minute -= 60
        hour += 1
    return f"{hour:02d}:{minute:02d}"


def format_break_field(duration: timedelta) -> str:
    """
    Format a break as h:mm, rounded to the nearest minute.

    The minute is rounded up if the second is >= 30.
    (1:30:29 -> 1:30, 1:30:30 -> 1:31)
    The field is left empty if no break (less than 30 seconds) was recorded.

    Args:
        duration: The accumulated break of an entry.

    Returns:
        The break as h:mm, or an empty string.
    """
    total_seconds = int(duration.total_seconds())
    if total_seconds < 30:
        return ""
    hour, remainder = divmod(total_seconds, 3600)
    minute, second = divmod(remainder, 60)
    if second >= 30:
        minute += 1
    if minute >= 60:
        minute -= 60
        hour += 1
    return f"{hour}:{minute:02d}"


# =============================================================================
# CSV Output
# =============================================================================


def write_csv(stream: TextIO, entries: Iterable[TimesheetEntry]) -> None:
    """
    Write timesheet entries as CSV to the given text stream.

    Times are rounded to the nearest minute and the date is only written
    for the first entry of a day.

    Args:
        stream: A text stream; files should be opened with newline="".
        entries: Consolidated timesheet entries in chronological order.
    """
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(CSV_HEADER)

    last_date: str | None = None
    for entry in entries:
        date = format_date_field(entry.start)
        if date == last_date:
            date_field = ""
        else:
            last_date = date
            date_field = date

        writer.writerow(
            [
                date_field,
                format_time_field(entry.start),
                format_time_field(entry.end),
                format_break_field(entry.break_),
                entry.description,
            ]
        )


def format_csv(entries: Iterable[TimesheetEntry]) -> str:
    """Render timesheet entries as a CSV string."""
    buffer = io.StringIO()
    write_csv(buffer, entries)
    return buffer.getvalue()


class ReportGenerator:
    """
    Generator for saving CSV timesheet reports.

    Attributes:
        output_dir: Directory path where reports will be saved.

    Example:
        >>> generator = ReportGenerator("./reports")
        >>> filepath = generator.save(entries, "2022-10")
    """

    def __init__(self, output_dir: str = "./reports") -> None:
        """
        Initialize the report generator.

        Args:
            output_dir: Directory path for saving reports. Defaults to "./reports".
        """
        self.output_dir = output_dir

    def save(self, entries: Iterable[TimesheetEntry], label: str) -> str:
        """
        Save the timesheet to a CSV file.

        Creates the output directory if it doesn't exist.

        Args:
            entries: Consolidated timesheet entries.
            label: Period label used in the file name (e.g. "2022-10").

        Returns:
            The path to the saved report file.
        """
        os.makedirs(self.output_dir, exist_ok=True)
        filename = os.path.join(self.output_dir, f"timesheet_{label}.csv")
        save_csv(filename, entries)
        return filename


def save_csv(path: str, entries: Iterable[TimesheetEntry]) -> None:
    """Write timesheet entries to a UTF-8 CSV file at the given path."""
    with open(path, "w", encoding="utf-8", newline="") as f:
        write_csv(f, entries)


class ConsolePrinter:
    """
    Utility class for console output during report generation.

    Messages go to stdout unless another stream is given, which keeps
    stdout free when the CSV itself is written there.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream

    def _print(self, message: str) -> None:
        print(message, file=self.stream or sys.stdout)

    def print_header(self) -> None:
        """Print the application header banner."""
        self._print("=" * 50)
        self._print("🕒 Clockify Timesheet")
        self._print("=" * 50)

    def print_period(self, label: str, start: datetime, end: datetime) -> None:
        """
        Print the report time period.

        Args:
            label: Human-readable name for the period.
            start: Start datetime.
            end: End datetime (exclusive).
        """
        last_day = end - timedelta(days=1)
        self._print(
            f"\n📅 {label}: "
            f"{start.strftime('%Y-%m-%d')} ~ {last_day.strftime('%Y-%m-%d')}"
        )

    def print_collecting(self) -> None:
        """Print the data collection status message."""
        self._print("\n📊 Fetching time entries...")

    def print_counts(self, intervals: int, entries: int) -> None:
        """
        Print the number of fetched intervals and resulting timesheet rows.

        Args:
            intervals: Number of raw intervals fetched from Clockify.
            entries: Number of timesheet entries after merging.
        """
        self._print(f"   - Time entries: {intervals}")
        self._print(f"   - Timesheet rows: {entries}")

    def print_total(self, worked: timedelta) -> None:
        """Print the total worked time."""
        hours = round(worked.total_seconds() / 3600, 2)
        self._print(f"   - Total worked: {hours} h")

    def print_saved(self, filename: str) -> None:
        """
        Print the report saved confirmation.

        Args:
            filename: Path to the saved report file.
        """
        self._print(f"\n💾 Timesheet saved: {filename}")

    def print_notice(self, message: str) -> None:
        """Print an informational notice."""
        self._print(f"ℹ️  {message}")

    def print_error(self, message: str) -> None:
        """
        Print an error message.

        Args:
            message: The error message to display.
        """
        self._print(f"❌ {message}")
