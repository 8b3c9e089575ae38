from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_MARKER_REASON = "marker file"

# Priority order; the bare name beats its .md variant.
MARKER_REASONS: tuple[tuple[str, str], ...] = (
    ("ignore", "Ignored"),
    ("explicit", "Explicit"),
    ("wip", "WIP"),
    ("gui", "GUI"),
    ("closedasnotplanned", "Closed As Not Planned"),
    ("closednotplanned", "Closed Not Planned"),
)


class MarkerLookup(Protocol):
    def should_skip(self, folder: Path) -> bool: ...

    def reason(self, folder: Path) -> str: ...


def marker_files() -> tuple[str, ...]:
    out: list[str] = []
    for name, _ in MARKER_REASONS:
        out.extend((name, f"{name}.md"))
    return tuple(out)


def _checked_folder(folder: Path | str) -> Path:
    if folder is None or not str(folder).strip():
        raise ValueError("folder path must be a non-empty path")
    path = Path(folder)
    if not path.is_dir():
        raise FileNotFoundError(f"issue folder not found: {path}")
    return path


class FileMarkerLookup:
    """Marker lookup backed by marker files inside the issue folder."""

    def _present(self, folder: Path | str) -> set[str]:
        path = _checked_folder(folder)
        return {entry.name.lower() for entry in path.iterdir() if entry.is_file()}

    def find_marker(self, folder: Path | str) -> str | None:
        present = self._present(folder)
        for name in marker_files():
            if name in present:
                return name
        return None

    def should_skip(self, folder: Path | str) -> bool:
        marker = self.find_marker(folder)
        if marker is not None:
            logger.debug("marker %s found in %s", marker, folder)
        return marker is not None

    def reason(self, folder: Path | str) -> str:
        marker = self.find_marker(folder)
        if marker is None:
            return DEFAULT_MARKER_REASON
        base = marker.removesuffix(".md")
        return dict(MARKER_REASONS).get(base, DEFAULT_MARKER_REASON)
