from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

DEFAULT_ARTIFACT_PATTERNS = ("*.csproj",)
_IGNORED_DIRS = frozenset({"bin", "obj"})


class ArtifactDiscovery(Protocol):
    def list_artifacts(self, folder: Path) -> list[str]: ...


class GlobArtifactDiscovery:
    """List buildable project files under an issue folder."""

    def __init__(self, patterns: tuple[str, ...] = DEFAULT_ARTIFACT_PATTERNS) -> None:
        self.patterns = patterns

    def list_artifacts(self, folder: Path) -> list[str]:
        if not folder.is_dir():
            return []
        found: set[str] = set()
        for pattern in self.patterns:
            for path in folder.rglob(pattern):
                if not path.is_file():
                    continue
                rel = path.relative_to(folder)
                if any(part.lower() in _IGNORED_DIRS for part in rel.parts[:-1]):
                    continue
                found.add(rel.as_posix())
        return sorted(found)


@dataclass(frozen=True)
class IssueFolder:
    number: int
    path: Path


def discover_issue_folders(issues_dir: Path, prefix: str = "Issue") -> dict[int, Path]:
    """Map issue numbers to ``<issues_dir>/<prefix><N>`` folders.

    Folders whose suffix is not a number are ignored.
    """
    if not issues_dir.is_dir():
        return {}
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$", re.IGNORECASE)
    folders: list[IssueFolder] = []
    for entry in issues_dir.iterdir():
        if not entry.is_dir():
            continue
        match = pattern.match(entry.name)
        if match is None:
            continue
        folders.append(IssueFolder(int(match.group(1)), entry))
    folders.sort(key=lambda folder: folder.number)
    return {folder.number: folder.path for folder in folders}


@dataclass(frozen=True)
class SyncFiles:
    has_metadata: bool
    has_initial_state: bool


def sync_files(folder: Path, metadata_file: str, initial_state_file: str) -> SyncFiles:
    return SyncFiles(
        has_metadata=(folder / metadata_file).is_file(),
        has_initial_state=(folder / initial_state_file).is_file(),
    )
