"""Assemble per-issue rows and totals for one repository directory."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Literal

from .aggregate import StatusTotals, aggregate_statuses, count_statuses
from .config import ReprotrackConfig, load_config
from .diff import (
    ChangeType,
    DiffRecord,
    change_keys,
    change_tooltip,
    diff_snapshots,
    group_by_issue as group_diffs,
    issue_change,
    status_display,
)
from .discovery import ArtifactDiscovery, GlobArtifactDiscovery, discover_issue_folders, sync_files
from .markers import FileMarkerLookup, MarkerLookup
from .results import Snapshot, StepResult, group_by_issue, load_snapshot
from .state import IssueSignals, IssueState, failure_signals, resolve_state
from .worst import WorstResult, worst_result

logger = logging.getLogger(__name__)

ViewMode = Literal["current", "baseline"]
VIEW_MODES: tuple[ViewMode, ...] = ("current", "baseline")

NET_FRAMEWORK = ".Net Framework"
NET = ".Net"
_NET_PREFIXES = ("net5", "net6", "net7", "net8", "net9", "net10")


@dataclass(frozen=True)
class IssueMetadata:
    number: int
    title: str = ""
    state: str = "Open"
    milestone: str | None = None
    labels: tuple[str, ...] = ()
    url: str = ""

    @property
    def type_label(self) -> str | None:
        for label in self.labels:
            if label.lower().startswith("is:"):
                return label[3:].strip()
        return None


@dataclass(frozen=True)
class IssueRow:
    number: int
    folder: Path
    metadata: IssueMetadata | None
    results: tuple[StepResult, ...]
    diffs: tuple[DiffRecord, ...]
    state: IssueState
    detail: str
    reason: str | None = None
    worst: WorstResult = WorstResult("NotRun", "")
    change_type: ChangeType = "None"
    status_display: str | None = None
    change_tooltip: str | None = None
    url: str = ""
    framework: str = ""

    @property
    def title(self) -> str:
        if self.metadata is not None and self.metadata.title:
            return self.metadata.title
        return f"Issue {self.number}"

    @property
    def type_label(self) -> str | None:
        return self.metadata.type_label if self.metadata is not None else None

    @property
    def test_result(self) -> str:
        if not self.results:
            return "Not tested"
        if any(row.restore_failed for row in self.results):
            return "not restored"
        if any(row.build_failed for row in self.results):
            return "not compiling"
        return self.worst.status


@dataclass(frozen=True)
class RepositoryView:
    config: ReprotrackConfig
    rows: tuple[IssueRow, ...]
    diffs: tuple[DiffRecord, ...]
    totals: StatusTotals
    baseline_totals: StatusTotals
    folders_without_metadata: tuple[int, ...] = ()
    metadata_without_folders: tuple[int, ...] = ()
    change_keys: dict[str, ChangeType] = field(default_factory=dict)
    view: ViewMode = "current"


def _metadata_from_dict(row: dict[str, Any]) -> IssueMetadata | None:
    number = row.get("number")
    if isinstance(number, bool) or not isinstance(number, int):
        return None
    labels = row.get("labels")
    milestone = row.get("milestone")
    return IssueMetadata(
        number=number,
        title=str(row.get("title") or ""),
        state=str(row.get("state") or "Open"),
        milestone=str(milestone) if milestone is not None else None,
        labels=tuple(str(label) for label in labels) if isinstance(labels, list) else (),
        url=str(row.get("url") or ""),
    )


def load_metadata(path: Path) -> dict[int, IssueMetadata]:
    if not path.exists():
        logger.warning("metadata file not found at %s", path)
        return {}
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("could not load metadata from %s: %s", path, exc)
        return {}
    if not isinstance(payload, list):
        logger.warning("metadata document at %s is not a JSON array", path)
        return {}
    out: dict[int, IssueMetadata] = {}
    for raw in payload:
        if not isinstance(raw, dict):
            continue
        item = _metadata_from_dict(raw)
        if item is not None:
            out[item.number] = item
    return out


def classify_framework(results: Iterable[StepResult]) -> str:
    """Framework family of an issue from its rows' target framework monikers.

    Returns ``".Net Framework"`` when any row targets net3x or net4x (this wins
    over modern targets), ``".Net"`` for net5 through net10, and ``""`` when
    neither is present. ``netcoreapp*`` and ``netstandard*`` are not counted.
    """
    has_net = False
    for row in results:
        for tfm in row.target_frameworks:
            moniker = tfm.strip().lower()
            if not moniker.startswith("net") or moniker.startswith(("netcoreapp", "netstandard")):
                continue
            if moniker.startswith(("net3", "net4")):
                return NET_FRAMEWORK
            if moniker.startswith(_NET_PREFIXES):
                has_net = True
    return NET if has_net else ""


def _worst_by_issue(snapshot: Snapshot) -> dict[int, WorstResult]:
    return {
        number: worst_result(rows) for number, rows in group_by_issue(snapshot).items()
    }


def _unknown_row(number: int, folder: Path, metadata: IssueMetadata | None) -> IssueRow:
    return IssueRow(
        number=number,
        folder=folder,
        metadata=metadata,
        results=(),
        diffs=(),
        state="New",
        detail="unknown",
    )


class RepositoryLoader:
    def __init__(
        self,
        config: ReprotrackConfig,
        *,
        markers: MarkerLookup | None = None,
        discovery: ArtifactDiscovery | None = None,
        view: ViewMode = "current",
    ) -> None:
        if view not in VIEW_MODES:
            expected = ", ".join(VIEW_MODES)
            raise ValueError(f"invalid view {view!r}; expected one of: {expected}")
        self.config = config
        self.view = view
        self.markers = markers or FileMarkerLookup()
        self.discovery = discovery or GlobArtifactDiscovery(config.issues.artifact_patterns)

    def signals(
        self,
        folder: Path,
        results: list[StepResult],
        worst: WorstResult,
        metadata: IssueMetadata | None,
    ) -> IssueSignals:
        layout = self.config.issues
        skip = self.markers.should_skip(folder)
        files = sync_files(folder, layout.metadata_file, layout.initial_state_file)
        failures = failure_signals(results)
        return IssueSignals(
            skip=skip,
            marker_reason=self.markers.reason(folder) if skip else "",
            artifact_count=len(self.discovery.list_artifacts(folder)),
            has_metadata=files.has_metadata,
            has_initial_state=files.has_initial_state,
            has_metadata_record=metadata is not None,
            restore_failed=failures.restore_failed,
            restore_error=failures.restore_error,
            build_failed=failures.build_failed,
            worst=worst,
            metadata_state=metadata.state if metadata is not None else "Unknown",
            metadata_file=layout.metadata_file,
            initial_state_file=layout.initial_state_file,
        )

    def build_row(
        self,
        number: int,
        folder: Path,
        *,
        results: list[StepResult],
        diffs: list[DiffRecord],
        metadata: IssueMetadata | None,
        current: WorstResult | None,
        baseline: WorstResult | None,
    ) -> IssueRow:
        worst = current or WorstResult("NotRun", "")
        resolution = resolve_state(self.signals(folder, results, worst, metadata))

        change = issue_change(baseline, current)
        display = None
        tooltip = None
        if change != "None" and baseline is not None and current is not None:
            display = status_display(change, current.status)
            tooltip = change_tooltip(baseline.status, current.status)

        base_url = self.config.repository.issues_url
        return IssueRow(
            number=number,
            folder=folder,
            metadata=metadata,
            results=tuple(results),
            diffs=tuple(diffs),
            state=resolution.state,
            detail=resolution.detail,
            reason=resolution.reason,
            worst=worst,
            change_type=change,
            status_display=display,
            change_tooltip=tooltip,
            url=f"{base_url}{number}" if base_url else "",
            framework=classify_framework(results),
        )

    def load(self) -> RepositoryView:
        config = self.config
        if config.error:
            logger.warning("config: %s", config.error)
        if self.view == "baseline" and not config.baseline_path.exists():
            logger.info("baseline results not found at %s; baseline view is empty", config.baseline_path)
            return RepositoryView(
                config=config,
                rows=(),
                diffs=(),
                totals=StatusTotals(),
                baseline_totals=StatusTotals(),
                view=self.view,
            )
        try:
            folders = discover_issue_folders(config.issues_dir, config.issues.prefix)
        except OSError as exc:
            logger.warning("could not list issue folders in %s: %s", config.issues_dir, exc)
            folders = {}
        logger.info("discovered %d issue folders", len(folders))

        metadata = load_metadata(config.metadata_path)
        baseline = load_snapshot(config.baseline_path)
        if self.view == "baseline":
            # Rows show the baseline itself, so there is nothing to compare against.
            shown = baseline
            diffs: list[DiffRecord] = []
            baseline_worst: dict[int, WorstResult] = {}
        else:
            shown = load_snapshot(config.results_path)
            diffs = diff_snapshots(baseline, shown)
            baseline_worst = _worst_by_issue(baseline)
        diffs_by_issue = group_diffs(diffs)
        results_by_issue = group_by_issue(shown)
        shown_worst = _worst_by_issue(shown)

        rows: list[IssueRow] = []
        for number, folder in folders.items():
            try:
                row = self.build_row(
                    number,
                    folder,
                    results=results_by_issue.get(number, []),
                    diffs=diffs_by_issue.get(number, []),
                    metadata=metadata.get(number),
                    current=shown_worst.get(number),
                    baseline=baseline_worst.get(number),
                )
            except Exception as exc:
                logger.warning("failed to evaluate issue %s: %s", number, exc)
                row = _unknown_row(number, folder, metadata.get(number))
            rows.append(row)

        return RepositoryView(
            config=config,
            rows=tuple(rows),
            diffs=tuple(diffs),
            totals=count_statuses(aggregate_statuses(folders, shown, self.markers)),
            baseline_totals=count_statuses(
                aggregate_statuses(folders, baseline, self.markers)
            ),
            folders_without_metadata=tuple(n for n in folders if n not in metadata),
            metadata_without_folders=tuple(sorted(n for n in metadata if n not in folders)),
            change_keys=change_keys(diffs),
            view=self.view,
        )


def load_repository(
    root: Path,
    config: ReprotrackConfig | None = None,
    *,
    markers: MarkerLookup | None = None,
    discovery: ArtifactDiscovery | None = None,
    view: ViewMode = "current",
) -> RepositoryView:
    """Load issue rows for ``root``.

    ``view="baseline"`` builds the rows from the baseline snapshot instead of
    the current one and skips the baseline comparison; it yields no rows when
    the baseline file does not exist.
    """
    loader = RepositoryLoader(
        config or load_config(root),
        markers=markers,
        discovery=discovery,
        view=view,
    )
    return loader.load()
