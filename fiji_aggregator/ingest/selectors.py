from __future__ import annotations

from typing import List, Sequence

from fiji_aggregator.models.catalog import PathNode, SelectorSpec


def match(names: Sequence[str], spec: SelectorSpec) -> List[bool]:
    """
    Boolean mask over ``names`` (same length and order).

    A name matches when the pattern is found case-insensitively; with
    ``spec.strict`` the first match must begin at offset 0.
    """
    rx = spec.regex
    mask: List[bool] = []
    for name in names:
        m = rx.search(str(name))
        if m is None:
            mask.append(False)
        elif spec.strict:
            mask.append(m.start() == 0)
        else:
            mask.append(True)
    return mask


def select(nodes: Sequence[PathNode], spec: SelectorSpec) -> List[PathNode]:
    """Keep the nodes whose basename matches ``spec``, preserving order."""
    mask = match([n.name for n in nodes], spec)
    return [n for n, keep in zip(nodes, mask) if keep]
