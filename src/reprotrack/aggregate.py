"""One coarse status per issue, for repository-wide totals."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Literal, Mapping

from .markers import MarkerLookup
from .results import Snapshot, StepResult, group_by_issue

logger = logging.getLogger(__name__)

AggregatedStatus = Literal[
    "Passed",
    "Failed",
    "Skipped",
    "NotRestored",
    "NotCompiling",
    "NotTested",
]


@dataclass(frozen=True)
class AggregatedIssue:
    number: int
    status: AggregatedStatus
    last_run: str | None = None


@dataclass(frozen=True)
class StatusTotals:
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    not_restored: int = 0
    not_compiling: int = 0
    not_tested: int = 0

    @property
    def total(self) -> int:
        return (
            self.passed
            + self.failed
            + self.skipped
            + self.not_restored
            + self.not_compiling
            + self.not_tested
        )


_TOTAL_FIELDS: dict[str, str] = {
    "Passed": "passed",
    "Failed": "failed",
    "Skipped": "skipped",
    "NotRestored": "not_restored",
    "NotCompiling": "not_compiling",
    "NotTested": "not_tested",
}


def most_recent(results: list[StepResult]) -> StepResult | None:
    # Stable: the first row wins among equal timestamps; missing sorts lowest.
    if not results:
        return None
    return max(results, key=lambda row: row.last_run or "")


def _latest_run(results: list[StepResult]) -> str | None:
    runs = [row.last_run for row in results if row.last_run is not None]
    return max(runs) if runs else None


def _aggregate_results(results: list[StepResult]) -> AggregatedIssue:
    number = results[0].number
    latest = most_recent(results) or results[0]
    if latest.run_result == "Skipped":
        return AggregatedIssue(number, "Skipped", latest.last_run)
    if latest.run_result != "Run":
        return AggregatedIssue(number, "NotTested", latest.last_run)

    restore_row = next((row for row in results if row.restore_failed), None)
    if restore_row is not None:
        return AggregatedIssue(number, "NotRestored", restore_row.last_run)
    if any(row.build_failed for row in results):
        return AggregatedIssue(number, "NotCompiling", _latest_run(results))
    if latest.test_result == "Success":
        return AggregatedIssue(number, "Passed", latest.last_run)
    if latest.test_result == "Failed":
        return AggregatedIssue(number, "Failed", latest.last_run)
    return AggregatedIssue(number, "NotTested", latest.last_run)


def aggregate_issue(
    number: int,
    folder: Path,
    results: list[StepResult],
    markers: MarkerLookup,
) -> AggregatedIssue:
    if markers.should_skip(folder):
        return AggregatedIssue(number, "Skipped")
    if not results:
        return AggregatedIssue(number, "NotTested")
    return _aggregate_results(results)


def aggregate_statuses(
    folders: Mapping[int, Path],
    results: Snapshot,
    markers: MarkerLookup,
) -> list[AggregatedIssue]:
    """Aggregate every discovered issue.

    A failure while evaluating one issue is logged and that issue counts as
    NotTested; the remaining issues are still evaluated.
    """
    by_issue = group_by_issue(results)
    aggregated: list[AggregatedIssue] = []
    for number, folder in folders.items():
        try:
            item = aggregate_issue(number, folder, by_issue.get(number, []), markers)
        except Exception as exc:
            logger.warning("failed to aggregate results for issue %s: %s", number, exc)
            item = AggregatedIssue(number, "NotTested")
        aggregated.append(item)
    return aggregated


def count_statuses(aggregated: Iterable[AggregatedIssue]) -> StatusTotals:
    counts = {name: 0 for name in _TOTAL_FIELDS.values()}
    for item in aggregated:
        counts[_TOTAL_FIELDS[item.status]] += 1
    return StatusTotals(**counts)
