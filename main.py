#!/usr/bin/env python3
"""
Clockify Timesheet v0.1.

Creates a monthly CSV timesheet from the time entries a user tracked on a
Clockify project. This module provides the CLI entry point for the application.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any

import requests
import yaml

from clockify_timesheet.collector import (
    CLOCKIFY_API_BASE,
    ClockifyCollector,
    ClockifyError,
    get_custom_range,
    get_month_range,
)
from clockify_timesheet.processor import consolidate, total_worked
from clockify_timesheet.reporter import (
    ConsolePrinter,
    ReportGenerator,
    save_csv,
    write_csv,
)

log = logging.getLogger("clockify_timesheet.cli")

ENV_OVERRIDES = {
    "api_key": "CLOCKIFY_API_KEY",
    "workspace_id": "CLOCKIFY_WORKSPACE_ID",
    "user_id": "CLOCKIFY_USER_ID",
    "project_id": "CLOCKIFY_PROJECT_ID",
}


def load_config(config_path: str = "config/config.yaml") -> dict[str, Any]:
    """
    Load configuration from a YAML file.

    Values missing from the file are filled in from the defaults, and the
    CLOCKIFY_* environment variables take precedence over both.

    Args:
        config_path: Path to the configuration file.

    Returns:
        Configuration dictionary. Returns default config if file not found.

    Raises:
        ValueError: If the file or one of its sections is not a mapping.
    """
    config = get_default_config()
    path = Path(config_path)
    if not path.exists():
        log.warning("Config file not found: %s, using defaults", config_path)
    else:
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")
        for section, values in loaded.items():
            if values is None:
                continue
            if isinstance(config.get(section), dict):
                if not isinstance(values, dict):
                    raise ValueError(f"Config section '{section}' must be a mapping")
                config[section].update(values)
            else:
                config[section] = values

    clockify = config["clockify"]
    for key, env_name in ENV_OVERRIDES.items():
        clockify[key] = os.getenv(env_name, clockify.get(key))
    return config


def get_default_config() -> dict[str, Any]:
    """
    Get the default configuration.

    Returns:
        Default configuration dictionary with all required settings.
    """
    return {
        "clockify": {
            "api_base": CLOCKIFY_API_BASE,
            "api_key": "",
            "workspace_id": "",
            "user_id": "",
            "project_id": "",
            "page_size": 50,
        },
        "output": {"reports_dir": "./reports"},
    }


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Args:
        argv: Argument list. Defaults to sys.argv[1:].

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="clockify-timesheet",
        description="Clockify Timesheet - monthly CSV timesheets from Clockify",
    )
    parser.add_argument(
        "--month",
        type=str,
        help="Month to report (format: YYYY-MM). Default: current month",
    )
    parser.add_argument(
        "--start",
        type=str,
        help="Start date (format: YYYY-MM-DD) for custom period",
    )
    parser.add_argument(
        "--end",
        type=str,
        help="End date (format: YYYY-MM-DD, inclusive) for custom period",
    )
    parser.add_argument(
        "--project",
        type=str,
        help="Clockify project ID. Overrides the configured project",
    )
    parser.add_argument(
        "--output",
        type=str,
        help="Output CSV path, or '-' for stdout. Default: save to reports_dir",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/config.yaml",
        help="Config file path. Default: config/config.yaml",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)
    if bool(args.start) != bool(args.end):
        parser.error("--start and --end must be given together")
    return args


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the timesheet generator.

    This function orchestrates the full workflow:
    1. Load configuration
    2. Determine time range
    3. Collect time entries from Clockify
    4. Consolidate entries into timesheet rows
    5. Write the CSV timesheet

    Returns:
        Process exit code.
    """
    args = parse_args(argv)
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        level=logging.DEBUG if args.debug else logging.INFO,
    )

    to_stdout = args.output == "-"
    printer = ConsolePrinter(sys.stderr if to_stdout else None)

    # Step 1: Load configuration
    try:
        config = load_config(args.config)
    except (ValueError, yaml.YAMLError) as e:
        printer.print_error(f"Invalid config: {e}")
        return 1
    clockify_config = config["clockify"]
    if args.project:
        clockify_config["project_id"] = args.project

    printer.print_header()

    # Step 2: Determine time range
    try:
        if args.start and args.end:
            start, end = get_custom_range(args.start, args.end)
            label = f"{args.start}_{args.end}"
        else:
            start, end = get_month_range(args.month)
            label = start.strftime("%Y-%m")
    except ValueError as e:
        printer.print_error(f"Invalid period: {e}")
        return 1

    printer.print_period(label, start, end)

    # Step 3: Collect data
    printer.print_collecting()

    try:
        collector = ClockifyCollector(
            api_key=clockify_config["api_key"],
            workspace_id=clockify_config["workspace_id"],
            user_id=clockify_config["user_id"],
            project_id=clockify_config["project_id"],
            base_url=clockify_config.get("api_base") or CLOCKIFY_API_BASE,
            page_size=int(clockify_config.get("page_size", 50)),
        )
    except ValueError as e:
        printer.print_error(f"Configuration error: {e}")
        return 1

    try:
        intervals = collector.collect(start, end)
    except (requests.RequestException, ClockifyError) as e:
        printer.print_error(f"Data collection failed: {e}")
        return 1

    if not intervals:
        printer.print_notice("No time entries found for the selected period")

    # Step 4: Consolidate
    entries = consolidate(intervals)
    printer.print_counts(len(intervals), len(entries))
    printer.print_total(total_worked(entries))

    # Step 5: Write timesheet
    if to_stdout:
        write_csv(sys.stdout, entries)
        sys.stdout.flush()
        return 0

    if args.output:
        filename = args.output
        save_csv(filename, entries)
    else:
        reporter = ReportGenerator(config["output"]["reports_dir"])
        filename = reporter.save(entries, label)

    printer.print_saved(filename)
    return 0


if __name__ == "__main__":
    sys.exit(main())
