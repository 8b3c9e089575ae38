"""Lifecycle state resolution for a single issue.

Signals are evaluated against ``RULES`` top to bottom and the first rule whose
predicate holds decides the state. Markers come first, then structural checks
(no projects, missing sync files), then restore and build failures, and only
then the test outcome itself.

The sync rule looks at the per-folder files (``has_metadata`` and
``has_initial_state``). The test-outcome rules look at whether the repository
metadata file holds a record for the issue (``has_metadata_record``); a synced
folder without such a record stays Synced whatever its results say.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Literal, NamedTuple

from .results import StepResult
from .worst import WorstResult, is_not_tested

IssueState = Literal[
    "New",
    "Synced",
    "NotSynced",
    "FailedRestore",
    "FailedCompile",
    "Runnable",
    "NothingToRun",
    "Skipped",
]

METADATA_FILE = "issue_metadata.json"
INITIAL_STATE_FILE = "issue_initialstate.json"


class StateResolution(NamedTuple):
    state: IssueState
    detail: str
    reason: str | None


@dataclass(frozen=True)
class IssueSignals:
    skip: bool = False
    marker_reason: str = ""
    artifact_count: int = 0
    has_metadata: bool = False
    has_initial_state: bool = False
    has_metadata_record: bool = False
    restore_failed: bool = False
    restore_error: str | None = None
    build_failed: bool = False
    worst: WorstResult = field(default_factory=lambda: WorstResult("NotRun", ""))
    metadata_state: str = "Unknown"
    metadata_file: str = METADATA_FILE
    initial_state_file: str = INITIAL_STATE_FILE


@dataclass(frozen=True)
class StateRule:
    name: str
    applies: Callable[[IssueSignals], bool]
    outcome: Callable[[IssueSignals], StateResolution]


class FailureSignals(NamedTuple):
    restore_failed: bool
    restore_error: str | None
    build_failed: bool


def failure_signals(results: Iterable[StepResult]) -> FailureSignals:
    """Restore and build failure flags across all artifacts of one issue.

    A build failure is only reported when no restore failure exists.
    """
    rows = list(results)
    restore_row = next((row for row in rows if row.restore_failed), None)
    if restore_row is not None:
        error = restore_row.restore_error
        if not (error and error.strip()):
            error = None
        return FailureSignals(True, error, False)
    return FailureSignals(False, None, any(row.build_failed for row in rows))


def _missing_sync_files(signals: IssueSignals) -> str:
    missing = []
    if not signals.has_metadata:
        missing.append(signals.metadata_file)
    if not signals.has_initial_state:
        missing.append(signals.initial_state_file)
    return f"Missing {' and '.join(missing)}"


def _restore_reason(signals: IssueSignals) -> str:
    if signals.restore_error and signals.restore_error.strip():
        return f"Restore failed: {signals.restore_error.strip()}"
    return "Restore failed"


def _compile_reason(signals: IssueSignals) -> str | None:
    # A real test outcome keeps its own reason.
    if is_not_tested(signals.worst.status):
        return "Not compiling"
    return None


RULES: tuple[StateRule, ...] = (
    StateRule(
        "marker",
        lambda s: s.skip,
        lambda s: StateResolution("Skipped", "skipped", s.marker_reason),
    ),
    StateRule(
        "no_projects",
        lambda s: s.artifact_count == 0,
        lambda s: StateResolution("NothingToRun", "no projects", "No project files found"),
    ),
    StateRule(
        "not_synced",
        lambda s: not (s.has_metadata and s.has_initial_state),
        lambda s: StateResolution("NotSynced", "not synced", _missing_sync_files(s)),
    ),
    StateRule(
        "restore_failed",
        lambda s: s.restore_failed,
        lambda s: StateResolution("FailedRestore", "not restored", _restore_reason(s)),
    ),
    StateRule(
        "build_failed",
        lambda s: s.build_failed and not s.restore_failed,
        lambda s: StateResolution("FailedCompile", "not compiling", _compile_reason(s)),
    ),
    StateRule(
        "synced",
        lambda s: s.has_metadata_record and is_not_tested(s.worst.status),
        lambda s: StateResolution("Synced", s.metadata_state, None),
    ),
    StateRule(
        "runnable",
        lambda s: s.has_metadata_record,
        lambda s: StateResolution("Runnable", s.metadata_state, None),
    ),
    StateRule(
        "fallback",
        lambda s: True,
        lambda s: StateResolution("Synced", s.metadata_state, None),
    ),
)


def matching_rule(signals: IssueSignals, rules: tuple[StateRule, ...] = RULES) -> StateRule:
    for rule in rules:
        if rule.applies(signals):
            return rule
    raise LookupError("no state rule matched")


def resolve_state(signals: IssueSignals, rules: tuple[StateRule, ...] = RULES) -> StateResolution:
    return matching_rule(signals, rules).outcome(signals)
