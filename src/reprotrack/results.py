"""Step result rows and tolerant JSON snapshot loading."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

logger = logging.getLogger(__name__)

StepStatus = Literal["Success", "Failed", "NotRun"]
RunResult = Literal["Run", "Skipped", "NotSynced", "NotRun"]

STEP_STATUSES: tuple[StepStatus, ...] = ("Success", "Failed", "NotRun")
RUN_RESULTS: tuple[RunResult, ...] = ("Run", "Skipped", "NotSynced", "NotRun")

_STATUS_ALIASES: dict[str, StepStatus] = {
    "success": "Success",
    "failed": "Failed",
    "fail": "Failed",
    "notrun": "NotRun",
    "not run": "NotRun",
}
_RUN_RESULT_ALIASES: dict[str, RunResult] = {
    value.lower(): value for value in RUN_RESULTS
}

_STEP_FIELDS = ("update_result", "restore_result", "build_result", "test_result")
_TEXT_FIELDS = (
    "update_error",
    "restore_error",
    "build_error",
    "test_error",
    "restore_output",
    "build_output",
    "test_output",
    "last_run",
)


@dataclass(frozen=True)
class StepResult:
    number: int
    project_path: str
    target_frameworks: tuple[str, ...] = ()
    packages: tuple[str, ...] = ()
    update_result: StepStatus | None = None
    restore_result: StepStatus | None = None
    build_result: StepStatus | None = None
    test_result: StepStatus | None = None
    run_result: RunResult | None = None
    update_error: str | None = None
    restore_error: str | None = None
    build_error: str | None = None
    test_error: str | None = None
    restore_output: str | None = None
    build_output: str | None = None
    test_output: str | None = None
    last_run: str | None = None

    @property
    def status(self) -> StepStatus:
        return self.test_result or "NotRun"

    @property
    def key(self) -> tuple[int, str]:
        return (self.number, self.project_path.lower())

    @property
    def restore_failed(self) -> bool:
        return self.restore_result == "Failed" or bool(
            self.restore_error and self.restore_error.strip()
        )

    @property
    def build_failed(self) -> bool:
        return self.build_result == "Failed"


Snapshot = tuple[StepResult, ...]


def parse_step_status(value: object) -> StepStatus | None:
    if not isinstance(value, str):
        return None
    return _STATUS_ALIASES.get(value.strip().lower())


def parse_run_result(value: object) -> RunResult | None:
    if not isinstance(value, str):
        return None
    return _RUN_RESULT_ALIASES.get(value.strip().lower())


def _as_text(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return str(value)


def _as_str_tuple(value: object) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(item) for item in value if item is not None)


def _as_number(value: object) -> int | None:
    # bool is an int subclass; a JSON true is not an issue number.
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def step_result_from_dict(row: dict[str, Any]) -> StepResult | None:
    """Build a StepResult from one snapshot row, or None when the row has no usable key."""
    number = _as_number(row.get("number"))
    if number is None:
        return None
    project_path = row.get("project_path")
    if not isinstance(project_path, str):
        project_path = ""

    fields: dict[str, Any] = {
        name: parse_step_status(row.get(name)) for name in _STEP_FIELDS
    }
    fields.update({name: _as_text(row.get(name)) for name in _TEXT_FIELDS})
    return StepResult(
        number=number,
        project_path=project_path,
        target_frameworks=_as_str_tuple(row.get("target_frameworks")),
        packages=_as_str_tuple(row.get("packages")),
        run_result=parse_run_result(row.get("run_result")),
        **fields,
    )


def step_result_to_dict(result: StepResult) -> dict[str, Any]:
    out: dict[str, Any] = {
        "number": result.number,
        "project_path": result.project_path,
        "target_frameworks": list(result.target_frameworks),
        "packages": list(result.packages),
    }
    for name in (*_STEP_FIELDS, "run_result", *_TEXT_FIELDS):
        value = getattr(result, name)
        if value is not None:
            out[name] = value
    return out


def parse_snapshot(payload: object) -> Snapshot:
    if not isinstance(payload, list):
        raise ValueError("snapshot document must be a JSON array")
    rows: list[StepResult] = []
    for idx, raw in enumerate(payload):
        if not isinstance(raw, dict):
            logger.debug("skipping non-object snapshot row %d", idx)
            continue
        result = step_result_from_dict(raw)
        if result is None:
            logger.debug("skipping snapshot row %d without an issue number", idx)
            continue
        rows.append(result)
    return tuple(rows)


def load_snapshot(path: Path) -> Snapshot:
    """Read one snapshot document.

    A missing file is an empty snapshot. Unreadable or malformed documents are
    logged and also read as empty; this function never raises.
    """
    if not path.exists():
        return ()
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        return parse_snapshot(payload)
    except (OSError, ValueError) as exc:
        logger.warning("failed to load results from %s: %s", path, exc)
        return ()


def dump_snapshot(snapshot: Snapshot) -> str:
    return json.dumps([step_result_to_dict(row) for row in snapshot], indent=2)


def group_by_issue(snapshot: Snapshot) -> dict[int, list[StepResult]]:
    grouped: dict[int, list[StepResult]] = {}
    for row in snapshot:
        grouped.setdefault(row.number, []).append(row)
    return grouped
