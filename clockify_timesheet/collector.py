"""
Data Collection Module.

This module is responsible for fetching time entries from the Clockify API.
It provides the ClockifyCollector class for interacting with the Clockify
REST API and utility functions for generating reporting time ranges.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import requests

CLOCKIFY_API_BASE = "https://api.clockify.me/api/v1"
USER_AGENT = "clockify-timesheet"

TIMESTAMP_FORMATS = [
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
]

log = logging.getLogger(__name__)


class ClockifyError(Exception):
    """Raised when the Clockify API returns data that cannot be interpreted."""


@dataclass(frozen=True)
class RawInterval:
    """
    A single tracked time entry as delivered by Clockify.

    Attributes:
        description: Task name if the entry belongs to a known task,
            otherwise the entry's free-text description.
        start: Start of the interval (local time, timezone-aware).
        end: End of the interval (local time, timezone-aware).
    """

    description: str
    start: datetime
    end: datetime


class ClockifyCollector:
    """
    Clockify time entry collector.

    This class handles communication with the Clockify API to retrieve the
    tasks of a project and the time entries a user tracked on it.

    Attributes:
        workspace_id: The Clockify workspace ID.
        user_id: The ID of the user whose entries are fetched.
        project_id: The project to restrict entries to.
        base_url: The Clockify API base URL.
        page_size: Number of entries requested per page.

    Example:
        >>> collector = ClockifyCollector(api_key, workspace_id, user_id, project_id)
        >>> intervals = collector.collect(start, end)
    """

    def __init__(
        self,
        api_key: str,
        workspace_id: str,
        user_id: str,
        project_id: str,
        base_url: str = CLOCKIFY_API_BASE,
        page_size: int = 50,
        timeout: int = 30,
    ) -> None:
        """
        Initialize the collector.

        Args:
            api_key: Clockify API key, sent as the X-Api-Key header.
            workspace_id: The Clockify workspace ID.
            user_id: The ID of the user whose entries are fetched.
            project_id: The project to restrict entries to.
            base_url: The Clockify API base URL.
            page_size: Number of entries requested per page. Defaults to 50.
            timeout: Request timeout in seconds. Defaults to 30.

        Raises:
            ValueError: If any of the credentials or IDs is empty.
        """
        missing = [
            name
            for name, value in (
                ("api_key", api_key),
                ("workspace_id", workspace_id),
                ("user_id", user_id),
                ("project_id", project_id),
            )
            if not value
        ]
        if missing:
            raise ValueError(f"Missing Clockify settings: {', '.join(missing)}")
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")

        self.workspace_id = workspace_id
        self.user_id = user_id
        self.project_id = project_id
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self.timeout = timeout

        self.session = requests.Session()
        self.session.headers.update(
            {"X-Api-Key": api_key, "User-Agent": USER_AGENT}
        )
        self._tasks_cache: dict[str, str] | None = None

    def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """
        Perform a GET request and decode the JSON body.

        Raises:
            requests.HTTPError: If the API request fails.
            ClockifyError: If the body is not valid JSON.
        """
        resp = self.session.get(
            f"{self.base_url}{path}", params=params, timeout=self.timeout
        )
        resp.raise_for_status()
        try:
            return resp.json()
        except ValueError as e:
            raise ClockifyError(f"Invalid JSON from {path}: {e}") from e

    def _get_pages(self, path: str, params: dict[str, Any] | None = None) -> list[Any]:
        """
        Fetch all pages of a paginated list endpoint.

        Pages are requested starting at 1 until an empty or short page is
        returned.
        """
        items: list[Any] = []
        page = 1
        while True:
            page_params = dict(params or {})
            page_params["page"] = page
            page_params["page-size"] = self.page_size
            batch = self._get_json(path, page_params)
            if not isinstance(batch, list):
                raise ClockifyError(
                    f"Expected a list from {path}, got {type(batch).__name__}"
                )
            log.debug("Fetched page %d of %s: %d items", page, path, len(batch))
            items.extend(batch)
            if len(batch) < self.page_size:
                break
            page += 1
        return items

    def get_tasks(self) -> dict[str, str]:
        """
        Retrieve the tasks of the project.

        Results are cached after the first call.

        Returns:
            A dictionary mapping task IDs to task names.

        Raises:
            requests.HTTPError: If the API request fails.
            ClockifyError: If the response cannot be interpreted.
        """
        if self._tasks_cache is None:
            tasks = self._get_pages(
                f"/workspaces/{self.workspace_id}/projects/{self.project_id}/tasks"
            )
            try:
                self._tasks_cache = {task["id"]: task["name"] for task in tasks}
            except (KeyError, TypeError) as e:
                raise ClockifyError(f"Malformed task in response: {e}") from e
        return self._tasks_cache

    def get_time_entries(
        self,
        start: datetime,
        end: datetime,
    ) -> list[dict[str, Any]]:
        """
        Retrieve the user's time entries on the project within a time range.

        Args:
            start: The start of the time range.
            end: The end of the time range.

        Returns:
            A list of time entry dictionaries, newest first.

        Raises:
            requests.HTTPError: If the API request fails.
            ClockifyError: If the response cannot be interpreted.
        """
        params = {
            "project": self.project_id,
            "start": format_api_timestamp(start),
            "end": format_api_timestamp(end),
        }
        return self._get_pages(
            f"/workspaces/{self.workspace_id}/user/{self.user_id}/time-entries",
            params,
        )

    def collect(self, start: datetime, end: datetime) -> list[RawInterval]:
        """
        Collect the tracked intervals of the project within a time range.

        Task IDs are resolved against the project's tasks: the task name is
        used as the description where available, the entry's own description
        otherwise. Entries whose timer is still running are skipped.

        Args:
            start: The start of the time range.
            end: The end of the time range.

        Returns:
            A list of RawInterval objects in the order served by Clockify
            (newest first).
        """
        tasks = self.get_tasks()
        entries = self.get_time_entries(start, end)

        intervals: list[RawInterval] = []
        for entry in entries:
            try:
                time_interval = entry["timeInterval"]
                start_str = time_interval["start"]
                end_str = time_interval.get("end")
            except (KeyError, TypeError, AttributeError) as e:
                raise ClockifyError(f"Malformed time entry: {e}") from e

            if end_str is None:
                log.info("Skipping running time entry %s", entry.get("id"))
                continue

            description = tasks.get(entry.get("taskId") or "")
            if description is None:
                description = entry.get("description") or ""

            intervals.append(
                RawInterval(
                    description=description,
                    start=parse_timestamp(start_str),
                    end=parse_timestamp(end_str),
                )
            )

        log.info("Collected %d intervals (%d tasks known)", len(intervals), len(tasks))
        return intervals


def parse_timestamp(ts_str: str) -> datetime:
    """
    Parse an RFC 3339 timestamp string and convert it to local time.

    Clockify stores timestamps in UTC with a trailing "Z". The result keeps
    its tzinfo so calendar dates are taken in the local timezone.

    Args:
        ts_str: The timestamp string to parse.

    Returns:
        A timezone-aware datetime in local time.

    Raises:
        ClockifyError: If the string is not a timestamp with offset.
    """
    if not isinstance(ts_str, str):
        raise ClockifyError(f"Invalid timestamp: {ts_str!r}")
    value = ts_str.strip()
    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(value, fmt).astimezone()
        except ValueError:
            continue
    raise ClockifyError(f"Invalid timestamp: {ts_str!r}")


def format_api_timestamp(dt: datetime) -> str:
    """Format a datetime as the UTC timestamp Clockify expects in queries."""
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# =============================================================================
# Time Range Utilities
# =============================================================================


def get_month_range(month: str | None = None) -> tuple[datetime, datetime]:
    """
    Get the time range of a calendar month.

    Args:
        month: Month in YYYY-MM format. Defaults to the current month.

    Returns:
        A tuple of (first_day_midnight, first_day_of_next_month_midnight),
        both in local time.
    """
    if month:
        start = datetime.strptime(month, "%Y-%m")
    else:
        start = datetime.now().replace(day=1)
    start = start.replace(hour=0, minute=0, second=0, microsecond=0)

    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    # Offsets are resolved separately so DST changes within the month apply.
    return start.astimezone(), end.astimezone()


def get_custom_range(start_str: str, end_str: str) -> tuple[datetime, datetime]:
    """
    Get a custom time range from date strings.

    Args:
        start_str: Start date in YYYY-MM-DD format.
        end_str: End date in YYYY-MM-DD format (inclusive).

    Returns:
        A tuple of (start_datetime, end_datetime) in local time.
        The end time is midnight after the end date.

    Raises:
        ValueError: If a date is malformed or the end precedes the start.
    """
    start = datetime.strptime(start_str, "%Y-%m-%d")
    end = datetime.strptime(end_str, "%Y-%m-%d") + timedelta(days=1)
    if end <= start:
        raise ValueError(f"End date {end_str} is before start date {start_str}")
    return start.astimezone(), end.astimezone()
