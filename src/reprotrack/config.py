from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import tomllib

from .discovery import DEFAULT_ARTIFACT_PATTERNS
from .state import INITIAL_STATE_FILE, METADATA_FILE

CONFIG_RELPATH = Path(".reprotrack") / "config.toml"
DATA_DIR_ENV = "REPROTRACK_DATA_DIR"


@dataclass(frozen=True)
class DataFiles:
    dir: Path = Path(".reprotrack") / "data"
    results: str = "results.json"
    baseline: str = "results-baseline.json"
    metadata: str = "issues_metadata.json"


@dataclass(frozen=True)
class IssueLayout:
    dir: Path = Path("Issues")
    prefix: str = "Issue"
    metadata_file: str = METADATA_FILE
    initial_state_file: str = INITIAL_STATE_FILE
    artifact_patterns: tuple[str, ...] = DEFAULT_ARTIFACT_PATTERNS


@dataclass(frozen=True)
class RepositoryInfo:
    owner: str | None = None
    name: str | None = None

    @property
    def issues_url(self) -> str:
        if not self.owner or not self.name:
            return ""
        return f"https://github.com/{self.owner}/{self.name}/issues/"


@dataclass(frozen=True)
class ReprotrackConfig:
    repo_root: Path
    data: DataFiles = field(default_factory=DataFiles)
    issues: IssueLayout = field(default_factory=IssueLayout)
    repository: RepositoryInfo = field(default_factory=RepositoryInfo)
    path: Path | None = None
    error: str | None = None

    def _resolve(self, path: Path) -> Path:
        return path if path.is_absolute() else self.repo_root / path

    @property
    def data_dir(self) -> Path:
        return self._resolve(self.data.dir)

    @property
    def issues_dir(self) -> Path:
        return self._resolve(self.issues.dir)

    @property
    def results_path(self) -> Path:
        return self.data_dir / self.data.results

    @property
    def baseline_path(self) -> Path:
        return self.data_dir / self.data.baseline

    @property
    def metadata_path(self) -> Path:
        return self.data_dir / self.data.metadata


class ConfigError(ValueError):
    pass


def _as_str(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    if not stripped:
        return None
    return stripped


def _str_field(table: dict[str, Any], key: str, *, section: str, default: str) -> str:
    raw = table.get(key)
    if raw is None:
        return default
    text = _as_str(raw)
    if text is None:
        raise ConfigError(f"[{section}].{key} must be a non-empty string")
    return text


def _as_str_tuple(value: object, *, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ConfigError(f"{field} must be an array of strings")
    out: list[str] = []
    for idx, item in enumerate(value):
        text = _as_str(item)
        if text is None:
            raise ConfigError(f"{field}[{idx}] must be a non-empty string")
        out.append(text)
    if not out:
        raise ConfigError(f"{field} must not be empty")
    return tuple(out)


def _table(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"[{name}] must be a table")
    return value


def _parse_data(raw: dict[str, Any]) -> DataFiles:
    table = _table(raw, "data")
    defaults = DataFiles()
    return DataFiles(
        dir=Path(_str_field(table, "dir", section="data", default=str(defaults.dir))),
        results=_str_field(table, "results", section="data", default=defaults.results),
        baseline=_str_field(table, "baseline", section="data", default=defaults.baseline),
        metadata=_str_field(table, "metadata", section="data", default=defaults.metadata),
    )


def _parse_issues(raw: dict[str, Any]) -> IssueLayout:
    table = _table(raw, "issues")
    defaults = IssueLayout()
    patterns = defaults.artifact_patterns
    if "artifact_patterns" in table:
        patterns = _as_str_tuple(
            table["artifact_patterns"], field="[issues].artifact_patterns"
        )
    return IssueLayout(
        dir=Path(_str_field(table, "dir", section="issues", default=str(defaults.dir))),
        prefix=_str_field(table, "prefix", section="issues", default=defaults.prefix),
        metadata_file=_str_field(
            table, "metadata_file", section="issues", default=defaults.metadata_file
        ),
        initial_state_file=_str_field(
            table,
            "initial_state_file",
            section="issues",
            default=defaults.initial_state_file,
        ),
        artifact_patterns=patterns,
    )


def _parse_repository(raw: dict[str, Any]) -> RepositoryInfo:
    table = _table(raw, "repository")
    return RepositoryInfo(
        owner=_as_str(table.get("owner")),
        name=_as_str(table.get("name")),
    )


def _apply_env(config: ReprotrackConfig) -> ReprotrackConfig:
    raw = os.environ.get(DATA_DIR_ENV, "").strip()
    if not raw:
        return config
    return replace(config, data=replace(config.data, dir=Path(raw).expanduser()))


def load_config(repo_root: Path) -> ReprotrackConfig:
    """Load ``.reprotrack/config.toml`` under *repo_root*.

    A missing file yields the defaults. An invalid file also yields the
    defaults, with the problem described in ``error``.
    """
    path = repo_root / CONFIG_RELPATH
    if not path.is_file():
        return _apply_env(ReprotrackConfig(repo_root=repo_root))

    try:
        raw = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:
        return _apply_env(
            ReprotrackConfig(
                repo_root=repo_root,
                path=path,
                error=f"invalid TOML in {CONFIG_RELPATH.as_posix()}: {exc}",
            )
        )

    try:
        config = ReprotrackConfig(
            repo_root=repo_root,
            data=_parse_data(raw),
            issues=_parse_issues(raw),
            repository=_parse_repository(raw),
            path=path,
        )
    except ConfigError as exc:
        config = ReprotrackConfig(
            repo_root=repo_root,
            path=path,
            error=f"{CONFIG_RELPATH.as_posix()}: {exc}",
        )
    return _apply_env(config)
