import json
from datetime import date
from pathlib import Path

import pytest

from bdaystate import main as main_module


@pytest.fixture
def configured_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    birthdays_file = tmp_path / "birthdays.json"
    birthdays_file.write_text(
        json.dumps(
            [
                {"name": "Max Mustermann", "year": 1990, "month": 3, "day": 10},
                {"name": "Erika Musterfrau", "year": 1985, "month": 7, "day": 21},
            ]
        ),
        encoding="utf-8",
    )
    state_file = tmp_path / "state.json"

    for name in ("ICAL_URL", "CARDDAV_URL", "LEAP_DAY_RULE", "DATE_FORMAT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BIRTHDAYS_FILE", str(birthdays_file))
    monkeypatch.setenv("STATE_FILE", str(state_file))
    monkeypatch.setattr(main_module, "setup_logging", lambda: None)
    return state_file


def test_run_once_writes_state_file(configured_env: Path) -> None:
    assert main_module.run_once() is True

    data = json.loads(configured_env.read_text(encoding="utf-8"))
    summary = json.loads(data["states"]["summary.json"]["val"])
    assert sorted(entry["name"] for entry in summary) == ["Erika Musterfrau", "Max Mustermann"]
    assert "month.03.maxMustermann" in data["objects"]
    assert "month.07.erikaMusterfrau" in data["objects"]


def test_dry_run_does_not_write(configured_env: Path) -> None:
    assert main_module.run_once(dry_run=True) is True
    assert not configured_env.exists()


def test_corrupt_state_file_fails_the_run(configured_env: Path) -> None:
    configured_env.write_text("{corrupt", encoding="utf-8")

    assert main_module.run_once() is False


def test_main_exits_after_one_run(configured_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sys.argv", ["bdaystate", "--no-banner"])

    with pytest.raises(SystemExit) as exc_info:
        main_module.main()

    assert exc_info.value.code == 0
    assert configured_env.exists()


def test_main_without_sources_exits_with_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("BIRTHDAYS_FILE", "ICAL_URL", "CARDDAV_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(main_module, "setup_logging", lambda: None)
    monkeypatch.setattr("sys.argv", ["bdaystate", "--no-banner"])

    with pytest.raises(SystemExit) as exc_info:
        main_module.main()

    assert exc_info.value.code == 1


def test_source_deadline_follows_fetch_timeout(configured_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FETCH_TIMEOUT", "30")

    aggregator = main_module.build_aggregator(date(2024, 3, 10))

    assert aggregator.deadline == 61
