"""Baseline/current comparison of per-artifact test outcomes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .results import Snapshot, StepResult, StepStatus, load_snapshot
from .worst import WorstResult

logger = logging.getLogger(__name__)

ChangeType = Literal[
    "None",
    "Fixed",
    "Regression",
    "BuildToFail",
    "Skipped",
    "New",
    "Deleted",
    "Other",
]

DiffKey = tuple[int, str]

_TOOLTIP_TEXT = {
    "Success": "Test Succeeds",
    "success": "Test Succeeds",
    "Failed": "Test Fails",
    "fail": "Test Fails",
    "NotRun": "Not Run",
    "not run": "Not Run",
    "not compile": "Not Compiling",
    "Skipped": "Skipped",
    "skipped": "Skipped",
}


@dataclass(frozen=True)
class DiffRecord:
    issue_number: int
    project_path: str
    baseline_status: StepStatus
    current_status: StepStatus
    change_type: ChangeType
    baseline_result: StepResult | None = None
    current_result: StepResult | None = None


def _index(snapshot: Snapshot) -> dict[DiffKey, StepResult]:
    # Later rows win when two paths differ only by case.
    return {row.key: row for row in snapshot}


def _is_filtered(baseline: StepResult | None, current: StepResult | None) -> bool:
    if baseline is not None and current is not None and baseline == current:
        return True
    return any(
        row is not None and row.run_result == "Skipped" for row in (baseline, current)
    )


def classify_pair(baseline: StepResult | None, current: StepResult | None) -> ChangeType:
    if baseline is None and current is not None:
        return "New"
    if baseline is not None and current is None:
        return "Deleted"
    if baseline is None or current is None:
        return "None"

    before = baseline.status
    after = current.status
    if before != "Success" and after == "Success":
        return "Fixed"
    if before == "Success" and after == "Failed":
        return "Regression"
    if (before == "NotRun" or baseline.run_result == "NotRun") and after == "Failed":
        return "BuildToFail"
    if before == after:
        return "None"
    return "Other"


def diff_snapshots(baseline: Snapshot, current: Snapshot) -> list[DiffRecord]:
    """Compare two snapshots keyed by (issue number, lowercased project path).

    Rows that are identical on both sides, or whose run result is Skipped on
    either side, produce no record.
    """
    baseline_by_key = _index(baseline)
    current_by_key = _index(current)
    keys = list(current_by_key)
    keys.extend(key for key in baseline_by_key if key not in current_by_key)

    records: list[DiffRecord] = []
    for key in keys:
        before = baseline_by_key.get(key)
        after = current_by_key.get(key)
        if _is_filtered(before, after):
            continue
        number, project_path = key
        records.append(
            DiffRecord(
                issue_number=number,
                project_path=project_path,
                baseline_status=before.status if before is not None else "NotRun",
                current_status=after.status if after is not None else "NotRun",
                change_type=classify_pair(before, after),
                baseline_result=before,
                current_result=after,
            )
        )
    return records


def compare_files(baseline_path: Path, current_path: Path) -> list[DiffRecord]:
    try:
        return diff_snapshots(load_snapshot(baseline_path), load_snapshot(current_path))
    except Exception:
        logger.exception("error comparing test results")
        return []


def classify_change(baseline_status: StepStatus, current_status: StepStatus) -> ChangeType:
    if baseline_status != "Success" and current_status == "Success":
        return "Fixed"
    if baseline_status == "Success" and current_status == "Failed":
        return "Regression"
    if baseline_status == "NotRun" and current_status == "Failed":
        return "BuildToFail"
    if baseline_status != current_status:
        return "Other"
    return "None"


def issue_change(
    baseline: WorstResult | None,
    current: WorstResult | None,
) -> ChangeType:
    """Issue-level change; issues missing from either snapshot report no change."""
    if baseline is None or current is None:
        return "None"
    return classify_change(baseline.status, current.status)


def group_by_issue(records: list[DiffRecord]) -> dict[int, list[DiffRecord]]:
    grouped: dict[int, list[DiffRecord]] = {}
    for record in records:
        grouped.setdefault(record.issue_number, []).append(record)
    return grouped


def change_keys(records: list[DiffRecord]) -> dict[str, ChangeType]:
    return {
        f"Issue{record.issue_number}|{record.project_path}": record.change_type
        for record in records
    }


def _tooltip_text(status: str) -> str:
    return _TOOLTIP_TEXT.get(status, status)


def change_tooltip(baseline_status: str, current_status: str) -> str:
    return f"{_tooltip_text(baseline_status)} -> {_tooltip_text(current_status)}"


def status_display(change: ChangeType, current_status: str) -> str | None:
    if change == "Regression":
        return "=> fail"
    if change in {"Fixed", "BuildToFail", "Other"}:
        return current_status
    return None
