"""Check that the repository data files load and hold valid issue numbers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .config import ReprotrackConfig, load_config

Severity = Literal["info", "warning", "error"]


@dataclass(frozen=True)
class ValidationMessage:
    severity: Severity
    text: str


@dataclass(frozen=True)
class ValidationStep:
    name: str
    messages: tuple[ValidationMessage, ...] = ()
    numbers: frozenset[int] = field(default_factory=frozenset)

    @property
    def ok(self) -> bool:
        return not any(message.severity == "error" for message in self.messages)


@dataclass(frozen=True)
class ValidationReport:
    steps: tuple[ValidationStep, ...]

    @property
    def ok(self) -> bool:
        return all(step.ok for step in self.steps)


def _read_array(path: Path, label: str) -> tuple[list | None, ValidationMessage | None]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        return None, ValidationMessage("error", f"invalid JSON in {label}: {exc}")
    except OSError as exc:
        return None, ValidationMessage("error", f"failed to read {label}: {exc}")
    if not isinstance(payload, list):
        return None, ValidationMessage("error", f"{label} must contain a JSON array")
    return payload, None


def _check_numbers(rows: list, label: str) -> tuple[frozenset[int], list[ValidationMessage]]:
    valid: set[int] = set()
    invalid: list[str] = []
    for row in rows:
        number = row.get("number") if isinstance(row, dict) else None
        if isinstance(number, int) and not isinstance(number, bool) and number >= 1:
            valid.add(number)
        else:
            invalid.append(repr(number))
    if invalid:
        return frozenset(valid), [
            ValidationMessage(
                "error",
                f"found {len(invalid)} entr{'y' if len(invalid) == 1 else 'ies'} "
                f"with invalid numbers (< 1) in {label}: {', '.join(invalid)}",
            )
        ]
    return frozenset(valid), [
        ValidationMessage("info", f"loaded {len(rows)} entries from {label}")
    ]


def _validate_file(name: str, path: Path, *, missing: ValidationMessage) -> ValidationStep:
    if not path.exists():
        return ValidationStep(name, (missing,))
    rows, problem = _read_array(path, path.name)
    if problem is not None or rows is None:
        return ValidationStep(name, (problem,) if problem else ())
    numbers, messages = _check_numbers(rows, path.name)
    return ValidationStep(name, tuple(messages), numbers)


def _orphans(label: str, numbers: frozenset[int], known: frozenset[int]) -> list[ValidationMessage]:
    orphans = sorted(numbers - known)
    if not orphans:
        return []
    return [
        ValidationMessage(
            "warning",
            f"{label} without metadata: " + ", ".join(str(n) for n in orphans),
        )
    ]


def _cross_check(
    metadata: ValidationStep,
    results: ValidationStep,
    baseline: ValidationStep,
) -> ValidationStep:
    messages: list[ValidationMessage] = []
    if metadata.numbers:
        messages.extend(_orphans("results", results.numbers, metadata.numbers))
        messages.extend(_orphans("baseline results", baseline.numbers, metadata.numbers))
    if not messages:
        messages.append(ValidationMessage("info", "results match metadata"))
    untested = metadata.numbers - results.numbers
    if untested and results.numbers:
        messages.append(
            ValidationMessage("info", f"{len(untested)} metadata issues have no results (untested)")
        )
    return ValidationStep("cross-check", tuple(messages))


def validate_repository(root: Path, config: ReprotrackConfig | None = None) -> ValidationReport:
    config = config or load_config(root)
    data = config.data
    metadata = _validate_file(
        "metadata",
        config.metadata_path,
        missing=ValidationMessage("warning", f"{data.metadata} not found"),
    )
    results = _validate_file(
        "results",
        config.results_path,
        missing=ValidationMessage(
            "info", f"{data.results} not found (no tests have been run)"
        ),
    )
    baseline = _validate_file(
        "baseline",
        config.baseline_path,
        missing=ValidationMessage("info", f"{data.baseline} not found (no baseline set)"),
    )
    return ValidationReport(
        (metadata, results, baseline, _cross_check(metadata, results, baseline))
    )
