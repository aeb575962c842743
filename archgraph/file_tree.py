"""Build analyzer input trees from a local checkout or a JSON document."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

from .config import SKIP_DIRS
from .models import FileEntry

logger = logging.getLogger(__name__)


def build_file_tree(
    root: Path,
    max_depth: Optional[int] = None,
    read_content: bool = True,
) -> List[FileEntry]:
    """Walk *root* into nested :class:`FileEntry` records.

    Paths are relative to *root* with forward slashes.  Directories in
    ``SKIP_DIRS`` and symlinked directories are left out; ``max_depth``
    counts directory levels below *root* (``0`` keeps only top-level files).
    """
    root = root.resolve()

    def _walk(directory: Path, depth: int) -> List[FileEntry]:
        entries: List[FileEntry] = []
        for child in sorted(directory.iterdir(), key=lambda p: p.name):
            rel = child.relative_to(root).as_posix()
            if child.is_dir():
                if child.is_symlink():
                    logger.debug("Skipping symlinked directory %s", rel)
                    continue
                if child.name in SKIP_DIRS or (max_depth is not None and depth >= max_depth):
                    continue
                entries.append(FileEntry(
                    name=child.name,
                    path=rel,
                    type="dir",
                    children=_walk(child, depth + 1),
                ))
            elif child.is_file():
                size = child.stat().st_size
                content = None
                if read_content:
                    try:
                        content = child.read_text(encoding="utf-8", errors="ignore")
                    except OSError as exc:
                        logger.warning("Could not read %s: %s", child, exc)
                entries.append(FileEntry(name=child.name, path=rel, size=size, content=content))
        return entries

    return _walk(root, 0)


def load_file_tree(json_file: Path) -> List[FileEntry]:
    """Load a file tree saved as JSON: a list of entries or ``{"tree": [...]}``."""
    data = json.loads(json_file.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("tree") or data.get("children") or [data]
    return [FileEntry.from_dict(item) for item in data]
