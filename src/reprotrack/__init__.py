from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING

__all__ = [
    "__version__",
    "DiffRecord",
    "IssueSignals",
    "StepResult",
    "WorstResult",
    "aggregate_statuses",
    "diff_snapshots",
    "load_repository",
    "load_snapshot",
    "resolve_state",
    "worst_result",
]

__version__ = "0.1.0"

if TYPE_CHECKING:
    from .aggregate import aggregate_statuses
    from .diff import DiffRecord, diff_snapshots
    from .repository import load_repository
    from .results import StepResult, load_snapshot
    from .state import IssueSignals, resolve_state
    from .worst import WorstResult, worst_result

_EXPORTS = {
    "aggregate_statuses": ".aggregate",
    "DiffRecord": ".diff",
    "diff_snapshots": ".diff",
    "load_repository": ".repository",
    "StepResult": ".results",
    "load_snapshot": ".results",
    "IssueSignals": ".state",
    "resolve_state": ".state",
    "WorstResult": ".worst",
    "worst_result": ".worst",
}


def __getattr__(name: str) -> object:
    module = _EXPORTS.get(name)
    if module is None:
        raise AttributeError(f"module 'reprotrack' has no attribute {name!r}")
    return getattr(import_module(module, __name__), name)
