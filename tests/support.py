from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from reprotrack.results import StepResult


def make_result(number: int = 1, project_path: str = "App/App.csproj", **fields: Any) -> StepResult:
    fields.setdefault("run_result", "Run")
    return StepResult(number=number, project_path=project_path, **fields)


def write_json(path: Path, payload: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path
