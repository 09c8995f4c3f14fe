from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest
import requests

import main
from clockify_timesheet.collector import RawInterval


def at(day, hour, minute):
    return datetime(2022, 10, day, hour, minute).astimezone()


INTERVALS = [
    RawInterval("Task 1", at(1, 14, 0), at(1, 15, 0)),
    RawInterval("Task 1", at(1, 9, 0), at(1, 12, 0)),
]


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    for env_name in main.ENV_OVERRIDES.values():
        monkeypatch.delenv(env_name, raising=False)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        "clockify:\n"
        "  api_key: file-key\n"
        "  workspace_id: ws\n"
        "  user_id: user\n"
        "  project_id: proj\n"
        "output:\n"
        f"  reports_dir: {tmp_path / 'reports'}\n",
        encoding="utf-8",
    )
    return path


def test_load_config_missing_file_uses_defaults(tmp_path: Path):
    config = main.load_config(str(tmp_path / "missing.yaml"))
    assert config["clockify"]["api_base"] == "https://api.clockify.me/api/v1"
    assert config["output"]["reports_dir"] == "./reports"


def test_load_config_merges_with_defaults(config_file: Path):
    config = main.load_config(str(config_file))
    assert config["clockify"]["api_key"] == "file-key"
    assert config["clockify"]["page_size"] == 50


def test_load_config_env_overrides(config_file: Path, monkeypatch):
    monkeypatch.setenv("CLOCKIFY_API_KEY", "env-key")
    config = main.load_config(str(config_file))
    assert config["clockify"]["api_key"] == "env-key"
    assert config["clockify"]["workspace_id"] == "ws"


def test_parse_args_requires_start_and_end():
    with pytest.raises(SystemExit):
        main.parse_args(["--start", "2022-10-01"])


def test_main_writes_csv_to_stdout(config_file: Path, capsys):
    with patch.object(main.ClockifyCollector, "collect", return_value=INTERVALS):
        code = main.main(["--config", str(config_file), "--month", "2022-10", "--output", "-"])
    assert code == 0
    out = capsys.readouterr().out
    assert out == "date,start,end,break,description\n01.10.22,09:00,15:00,2:00,Task 1\n"


def test_main_saves_report(config_file: Path, tmp_path: Path):
    with patch.object(main.ClockifyCollector, "collect", return_value=INTERVALS):
        code = main.main(["--config", str(config_file), "--month", "2022-10"])
    assert code == 0
    assert (tmp_path / "reports" / "timesheet_2022-10.csv").exists()


def test_main_missing_credentials(tmp_path: Path):
    code = main.main(["--config", str(tmp_path / "missing.yaml"), "--month", "2022-10"])
    assert code == 1


def test_main_collection_failure(config_file: Path):
    with patch.object(
        main.ClockifyCollector, "collect", side_effect=requests.ConnectionError("down")
    ):
        code = main.main(["--config", str(config_file), "--month", "2022-10"])
    assert code == 1


def test_main_no_entries_writes_header_only(config_file: Path, tmp_path: Path):
    output = tmp_path / "empty.csv"
    with patch.object(main.ClockifyCollector, "collect", return_value=[]):
        code = main.main(
            ["--config", str(config_file), "--month", "2022-10", "--output", str(output)]
        )
    assert code == 0
    assert output.read_text(encoding="utf-8") == "date,start,end,break,description\n"


def test_load_config_empty_section_uses_env(tmp_path: Path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("clockify:\noutput:\n  reports_dir: x\n", encoding="utf-8")
    monkeypatch.setenv("CLOCKIFY_API_KEY", "env-key")
    monkeypatch.setenv("CLOCKIFY_WORKSPACE_ID", "env-ws")
    monkeypatch.setenv("CLOCKIFY_USER_ID", "env-user")
    monkeypatch.setenv("CLOCKIFY_PROJECT_ID", "env-proj")
    config = main.load_config(str(path))
    assert config["clockify"]["api_key"] == "env-key"
    assert config["clockify"]["project_id"] == "env-proj"
    assert config["clockify"]["page_size"] == 50
    assert config["output"]["reports_dir"] == "x"


@pytest.mark.parametrize("content", ["- a\n- b\n", "clockify: just-a-string\n"])
def test_load_config_rejects_non_mapping(tmp_path: Path, content):
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError, match="mapping"):
        main.load_config(str(path))


def test_main_invalid_config_exits(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text("- a\n", encoding="utf-8")
    assert main.main(["--config", str(path), "--month", "2022-10"]) == 1


def test_main_value_error_during_collection_propagates(config_file: Path):
    with patch.object(main.ClockifyCollector, "collect", side_effect=ValueError("boom")):
        with pytest.raises(ValueError, match="boom"):
            main.main(["--config", str(config_file), "--month", "2022-10"])
