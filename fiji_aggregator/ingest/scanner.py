from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List

from fiji_aggregator.errors import NotFoundError
from fiji_aggregator.models.catalog import PathNode


logger = logging.getLogger(__name__)

MAX_SCAN_DEPTH = 3


def _is_hidden(p: Path) -> bool:
    return p.name.startswith(".")


def _child_dirs(folder: Path) -> List[Path]:
    """Non-hidden sub-directories of folder, sorted by name."""
    try:
        entries = list(folder.iterdir())
    except PermissionError:
        logger.warning("Cannot list folder (permission denied): %s", folder)
        return []
    dirs = [p for p in entries if p.is_dir() and not _is_hidden(p)]
    return sorted(dirs, key=lambda p: p.name)


def scan(root: str | Path, depth: int = MAX_SCAN_DEPTH) -> List[PathNode]:
    """
    List every non-hidden folder up to ``depth`` levels below ``root``.

    Folders are returned depth-first, each parent immediately followed by its
    own sub-tree, siblings in name order. Index correspondence is only
    meaningful within the list returned by one call.
    """
    root_p = Path(root).expanduser().resolve()
    if not root_p.exists() or not root_p.is_dir():
        raise NotFoundError(f"Not a directory: {root_p}")
    if depth < 1:
        return []

    out: List[PathNode] = []

    def _walk(folder: Path, level: int) -> None:
        for sub in _child_dirs(folder):
            out.append(PathNode(path=sub, depth=level))
            if level < depth:
                _walk(sub, level + 1)

    _walk(root_p, 1)
    logger.debug("Scanned %s (depth %d): %d folders", root_p, depth, len(out))
    return out


def nodes_at_level(nodes: Iterable[PathNode], level: int) -> List[PathNode]:
    """Keep only nodes discovered at exactly ``level``."""
    return [n for n in nodes if n.depth == level]
