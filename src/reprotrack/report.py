"""Terminal rendering of repository totals, issue rows, and diffs."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.text import Text

from .aggregate import StatusTotals
from .diff import ChangeType, DiffRecord
from .repository import IssueRow, RepositoryView
from .ui import render_panel, render_table
from .validate import ValidationReport

CHANGE_STYLES: dict[str, str] = {
    "Fixed": "green",
    "Regression": "red",
    "BuildToFail": "dark_orange",
    "New": "cyan",
    "Deleted": "magenta",
    "Other": "grey50",
}

_SEVERITY_STYLES = {"info": "dim", "warning": "yellow", "error": "bold red"}


def change_style(change: ChangeType) -> str:
    return CHANGE_STYLES.get(change, "")


def _styled(text: str, change: ChangeType) -> Text:
    return Text(text, style=change_style(change))


def render_totals(
    console: Console,
    totals: StatusTotals,
    *,
    baseline: StatusTotals | None = None,
) -> None:
    labels = (
        ("Passed", "passed"),
        ("Failed", "failed"),
        ("Skipped", "skipped"),
        ("Not restored", "not_restored"),
        ("Not compiling", "not_compiling"),
        ("Not tested", "not_tested"),
    )
    headers = ["Status", "Current"]
    if baseline is not None:
        headers.append("Baseline")
    rows: list[list[object]] = []
    for label, attr in labels:
        row: list[object] = [label, str(getattr(totals, attr))]
        if baseline is not None:
            row.append(str(getattr(baseline, attr)))
        rows.append(row)
    render_table(console, title="Totals", headers=headers, rows=rows, no_wrap_columns=(0,))


def render_issue_rows(console: Console, rows: Sequence[IssueRow]) -> None:
    table_rows = []
    for row in rows:
        result = row.status_display or row.test_result
        table_rows.append(
            (
                str(row.number),
                row.title,
                row.state,
                row.detail,
                row.framework,
                _styled(result, row.change_type),
                row.reason or "",
                row.worst.last_run,
            )
        )
    render_table(
        console,
        title="Issues",
        headers=("#", "Title", "State", "Detail", "Framework", "Result", "Reason", "Last run"),
        rows=table_rows,
        no_wrap_columns=(0,),
    )


def render_diffs(console: Console, diffs: Sequence[DiffRecord]) -> None:
    if not diffs:
        console.print("no changes between baseline and current")
        return
    rows = [
        (
            str(record.issue_number),
            record.project_path,
            record.baseline_status,
            record.current_status,
            _styled(record.change_type, record.change_type),
        )
        for record in diffs
    ]
    render_table(
        console,
        title="Changes",
        headers=("#", "Project", "Baseline", "Current", "Change"),
        rows=rows,
        no_wrap_columns=(0,),
    )


def render_repository(console: Console, view: RepositoryView) -> None:
    if view.view == "baseline":
        render_totals(console, view.totals)
        console.print()
        render_issue_rows(console, view.rows)
    else:
        render_totals(console, view.totals, baseline=view.baseline_totals)
        console.print()
        render_issue_rows(console, view.rows)
        console.print()
        render_diffs(console, view.diffs)
    if view.folders_without_metadata or view.metadata_without_folders:
        lines = []
        if view.folders_without_metadata:
            lines.append(
                "folders without metadata: "
                + ", ".join(str(n) for n in view.folders_without_metadata)
            )
        if view.metadata_without_folders:
            lines.append(
                "metadata without folders: "
                + ", ".join(str(n) for n in view.metadata_without_folders)
            )
        console.print()
        render_panel(console, "\n".join(lines), title="Needs sync")


def render_validation(console: Console, report: ValidationReport) -> None:
    for step in report.steps:
        marker = "OK" if step.ok else "ERROR"
        console.print(Text(f"{step.name}: {marker}", style="bold" if step.ok else "bold red"))
        for message in step.messages:
            console.print(
                Text(f"  {message.severity}: {message.text}", style=_SEVERITY_STYLES[message.severity])
            )
