"""Assign leaf folders to their owning group folder.

A leaf belongs to a group when the group root is a prefix of the leaf path
bounded by directory separators (``/data/res1`` owns ``/data/res1/x`` but not
``/data/res10/x``). Paths are compared component-wise, so separators and
trailing slashes never matter.

Nested group roots: when several selected roots contain the same leaf, the
longest (most specific) root wins. A leaf is therefore never counted twice.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


def is_path_prefix(root: Path, path: Path) -> bool:
    """True if ``root`` equals ``path`` or is one of its ancestors."""
    rp = Path(root).parts
    pp = Path(path).parts
    return len(rp) <= len(pp) and pp[: len(rp)] == rp


def owning_root(leaf: Path, roots: Sequence[Path]) -> Optional[Path]:
    """Most specific root containing ``leaf``, or None."""
    best: Optional[Path] = None
    for r in roots:
        if is_path_prefix(r, leaf):
            if best is None or len(Path(r).parts) > len(best.parts):
                best = Path(r)
    return best


def group_leaves(
    roots: Sequence[Path],
    leaves: Sequence[Path],
) -> Tuple[Dict[Path, List[Path]], List[Path]]:
    """
    Map every root to its ordered leaves.

    Returns ``(mapping, orphans)``. ``mapping`` has one entry per root, in
    root order, possibly with an empty list. Leaves keep their input order
    inside each group. ``orphans`` lists leaves under no root.
    """
    mapping: Dict[Path, List[Path]] = {Path(r): [] for r in roots}
    orphans: List[Path] = []
    for leaf in leaves:
        lp = Path(leaf)
        owner = owning_root(lp, list(mapping))
        if owner is None:
            orphans.append(lp)
            logger.warning("Leaf folder is not under any selected group folder: %s", lp)
            continue
        mapping[owner].append(lp)
    return mapping, orphans
