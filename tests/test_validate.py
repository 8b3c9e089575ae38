from __future__ import annotations

from pathlib import Path

import pytest

from reprotrack.config import DATA_DIR_ENV
from reprotrack.validate import validate_repository

from support import write_json


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(DATA_DIR_ENV, raising=False)


def _data(root: Path) -> Path:
    return root / ".reprotrack" / "data"


def _severities(step) -> list[str]:
    return [message.severity for message in step.messages]


def test_missing_files_are_not_errors(tmp_path: Path) -> None:
    report = validate_repository(tmp_path)
    steps = {step.name: step for step in report.steps}
    assert report.ok is True
    assert _severities(steps["metadata"]) == ["warning"]
    assert _severities(steps["results"]) == ["info"]
    assert _severities(steps["baseline"]) == ["info"]


def test_valid_files(tmp_path: Path) -> None:
    write_json(_data(tmp_path) / "issues_metadata.json", [{"number": 1}, {"number": 2}])
    write_json(_data(tmp_path) / "results.json", [{"number": 1, "project_path": "a"}])
    write_json(_data(tmp_path) / "results-baseline.json", [])

    report = validate_repository(tmp_path)

    assert report.ok is True
    assert report.steps[0].numbers == frozenset({1, 2})


def test_invalid_numbers_are_errors(tmp_path: Path) -> None:
    write_json(_data(tmp_path) / "issues_metadata.json", [{"number": 0}, {"number": 3}])

    report = validate_repository(tmp_path)
    metadata = report.steps[0]

    assert report.ok is False
    assert metadata.ok is False
    assert "invalid numbers" in metadata.messages[0].text


def test_invalid_json_is_an_error(tmp_path: Path) -> None:
    path = _data(tmp_path) / "results.json"
    path.parent.mkdir(parents=True)
    path.write_text("[{", encoding="utf-8")

    report = validate_repository(tmp_path)
    results = report.steps[1]

    assert results.ok is False
    assert "invalid JSON" in results.messages[0].text


def test_non_array_baseline_is_an_error(tmp_path: Path) -> None:
    write_json(_data(tmp_path) / "results-baseline.json", {"number": 1})
    report = validate_repository(tmp_path)
    assert report.steps[2].ok is False


def test_results_without_metadata_warn(tmp_path: Path) -> None:
    write_json(_data(tmp_path) / "issues_metadata.json", [{"number": 1}])
    write_json(_data(tmp_path) / "results.json", [{"number": 1}, {"number": 8}])

    report = validate_repository(tmp_path)
    cross = report.steps[3]

    assert report.ok is True
    assert cross.messages[0].severity == "warning"
    assert cross.messages[0].text == "results without metadata: 8"


def test_baseline_without_metadata_warns(tmp_path: Path) -> None:
    write_json(_data(tmp_path) / "issues_metadata.json", [{"number": 1}])
    write_json(_data(tmp_path) / "results.json", [{"number": 1}, {"number": 8}])
    write_json(_data(tmp_path) / "results-baseline.json", [{"number": 5}, {"number": 1}, {"number": 3}])

    cross = validate_repository(tmp_path).steps[3]

    assert [(m.severity, m.text) for m in cross.messages] == [
        ("warning", "results without metadata: 8"),
        ("warning", "baseline results without metadata: 3, 5"),
    ]


def test_metadata_without_results_is_info(tmp_path: Path) -> None:
    write_json(_data(tmp_path) / "issues_metadata.json", [{"number": 1}, {"number": 2}, {"number": 4}])
    write_json(_data(tmp_path) / "results.json", [{"number": 1}])
    write_json(_data(tmp_path) / "results-baseline.json", [{"number": 2}])

    report = validate_repository(tmp_path)
    cross = report.steps[3]

    assert report.ok is True
    assert [(m.severity, m.text) for m in cross.messages] == [
        ("info", "results match metadata"),
        ("info", "2 metadata issues have no results (untested)"),
    ]


def test_untested_metadata_not_reported_without_results(tmp_path: Path) -> None:
    write_json(_data(tmp_path) / "issues_metadata.json", [{"number": 1}])

    cross = validate_repository(tmp_path).steps[3]

    assert _severities(cross) == ["info"]
    assert cross.messages[0].text == "results match metadata"
