from __future__ import annotations

from typing import Iterable, NamedTuple

from .results import StepResult, StepStatus

NOT_TESTED = "Not tested"

_PRIORITY: dict[str, int] = {"Failed": 2, "NotRun": 1, "Success": 0}


class WorstResult(NamedTuple):
    status: StepStatus
    last_run: str


def worst_result(results: Iterable[StepResult]) -> WorstResult:
    """Pick the representative outcome for one issue.

    Failed beats NotRun beats Success. On a tie the greatest ``last_run``
    string wins; timestamps are compared as raw strings, never parsed.
    """
    status: StepStatus | None = None
    last_run: str | None = None
    for result in results:
        candidate = result.status
        candidate_run = result.last_run
        if status is None or _PRIORITY[candidate] > _PRIORITY[status]:
            status, last_run = candidate, candidate_run
        elif (
            candidate == status
            and candidate_run
            and last_run
            and candidate_run > last_run
        ):
            last_run = candidate_run
    return WorstResult(status or "NotRun", last_run or "")


def is_not_tested(status: str | None) -> bool:
    return not status or status in {"NotRun", NOT_TESTED}
