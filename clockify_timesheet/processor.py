"""
Data Processing Module.

This module turns raw Clockify intervals into timesheet entries. Subsequent
intervals of the same activity on the same day are merged into one entry,
with the idle time between them accounted for as a break.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Sequence

from clockify_timesheet.collector import RawInterval


@dataclass
class TimesheetEntry:
    """
    One contiguous block of work on one activity for one calendar day.

    Attributes:
        description: The activity (task name or free-text description).
        start: Start of the first interval in the block.
        end: End of the last interval in the block.
        break_: Sum of the gaps between the merged intervals.
    """

    description: str
    start: datetime
    end: datetime
    break_: timedelta = field(default_factory=timedelta)

    @property
    def worked(self) -> timedelta:
        """Time actually worked: the span minus the breaks."""
        return self.end - self.start - self.break_


def convert_intervals(intervals: Sequence[RawInterval]) -> list[TimesheetEntry]:
    """
    Convert raw intervals into timesheet entries, oldest first.

    Clockify serves the newest entry first, so the order is reversed.

    Args:
        intervals: Raw intervals, newest first.

    Returns:
        Timesheet entries with zero breaks in chronological order.
    """
    return [
        TimesheetEntry(
            description=interval.description,
            start=interval.start,
            end=interval.end,
        )
        for interval in reversed(intervals)
    ]


def merge_entries(entries: Iterable[TimesheetEntry]) -> list[TimesheetEntry]:
    """
    Merge subsequent timesheet entries with equal descriptions.

    - Entries are not merged across date boundaries.
    - With each merge the break grows by the time between the end of the
      previous entry and the start of the next one, so the total of the
      list is kept.
    - Alternating descriptions are not merged, as the resulting entries
      would overlap each other and the list would become hard to read.

    Args:
        entries: Timesheet entries in chronological order.

    Returns:
        The merged entries, in chronological order.
    """
    result: list[TimesheetEntry] = []
    for entry in entries:
        if result:
            last = result[-1]
            if (
                last.description == entry.description
                and last.end.date() == entry.end.date()
            ):
                last.break_ += entry.start - last.end
                last.end = entry.end
                continue
        result.append(entry)
    return result


def consolidate(intervals: Sequence[RawInterval]) -> list[TimesheetEntry]:
    """
    Transform raw Clockify intervals into timesheet entries.

    Args:
        intervals: Raw intervals, newest first, as returned by the collector.

    Returns:
        Merged timesheet entries in chronological order.
    """
    return merge_entries(convert_intervals(intervals))


def total_worked(entries: Iterable[TimesheetEntry]) -> timedelta:
    """Sum the worked time (span minus breaks) of all entries."""
    return sum((entry.worked for entry in entries), timedelta())
