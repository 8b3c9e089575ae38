from __future__ import annotations

import os
import sys
from collections.abc import Mapping, Sequence
from typing import Literal, TextIO

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

OUTPUT_CHOICES = ("auto", "plain", "rich")
OUTPUT_ENV_VAR = "REPROTRACK_OUTPUT"
OutputMode = Literal["plain", "rich"]


def _normalize_choice(raw: str | None, *, source: str) -> str | None:
    if raw is None:
        return None
    value = raw.strip().lower()
    if not value:
        return None
    if value not in OUTPUT_CHOICES:
        expected = ", ".join(OUTPUT_CHOICES)
        raise ValueError(f"invalid {source} value {raw!r}; expected one of: {expected}")
    return value


def _stream_is_tty(stream: object) -> bool:
    probe = getattr(stream, "isatty", None)
    if not callable(probe):
        return False
    try:
        return bool(probe())
    except Exception:
        return False


def resolve_output_mode(
    requested: str | None = None,
    *,
    env: Mapping[str, str] | None = None,
    is_tty: bool | None = None,
) -> OutputMode:
    selected = _normalize_choice(requested, source="output")
    if selected is None:
        source = os.environ if env is None else env
        selected = _normalize_choice(source.get(OUTPUT_ENV_VAR), source=OUTPUT_ENV_VAR)
    if selected is None:
        selected = "auto"

    if selected == "auto":
        tty = _stream_is_tty(sys.stdout) if is_tty is None else bool(is_tty)
        return "rich" if tty else "plain"
    return "rich" if selected == "rich" else "plain"


def make_console(mode: OutputMode, *, file: TextIO | None = None, width: int | None = None) -> Console:
    return Console(
        file=file or sys.stdout,
        force_terminal=mode == "rich",
        no_color=mode != "rich",
        highlight=False,
        width=width,
    )


def render_table(
    console: Console,
    *,
    headers: Sequence[str],
    rows: Sequence[Sequence[object]],
    title: str | None = None,
    no_wrap_columns: Sequence[int] = (),
) -> None:
    table = Table(title=title)
    no_wrap = set(no_wrap_columns)
    for idx, header in enumerate(headers):
        table.add_column(str(header), no_wrap=idx in no_wrap)
    for row in rows:
        table.add_row(
            *(value if isinstance(value, Text) else str(value or "") for value in row)
        )
    console.print(table)


def render_panel(console: Console, body: str, *, title: str | None = None) -> None:
    console.print(Panel(body, title=title))
