from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Pattern, Tuple

from fiji_aggregator.errors import ConfigError


@dataclass(frozen=True)
class PathNode:
    """
    One directory found by the scanner.

    path: absolute directory path
    depth: discovery depth below the scan root (1 = direct child of the root)
    """
    path: Path
    depth: int

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class SelectorSpec:
    """
    Case-insensitive regex selector for folder basenames.

    pattern: regular expression searched in each basename
    strict: if True, the first match must start at offset 0 of the basename
    """
    pattern: str
    strict: bool = False

    def __post_init__(self) -> None:
        if self.pattern is None:
            raise ConfigError("Selector pattern must not be None.")
        try:
            re.compile(self.pattern, re.IGNORECASE)
        except re.error as e:
            raise ConfigError(f"Invalid selector pattern {self.pattern!r}: {e}") from e

    @property
    def regex(self) -> Pattern[str]:
        return re.compile(self.pattern, re.IGNORECASE)


@dataclass(frozen=True)
class Group:
    """
    An experimental group (well / condition), identified by its root folder.

    leaves keeps the scan order of the leaf folders assigned to this group.
    """
    root: Path
    leaves: Tuple[Path, ...] = ()

    @property
    def label(self) -> str:
        return self.root.name


@dataclass(frozen=True)
class GroupCatalog:
    """
    Discovery output: which groups survived selection and which leaves they own.

    Notes
    - groups keeps the scan order of the group roots; its length is the column
      count of every matrix built from this catalog.
    - orphans are selected leaves that lie under no selected group root.
    """
    root_dir: Path
    groups: List[Group]
    orphans: Tuple[Path, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def n_groups(self) -> int:
        return len(self.groups)

    @property
    def labels(self) -> List[str]:
        return [g.label for g in self.groups]

    def get_group(self, root: Path) -> Group:
        for g in self.groups:
            if g.root == Path(root):
                return g
        raise KeyError(f"No group with root '{root}'.")

    def find_group_for(self, leaf: Path) -> Optional[Group]:
        """Return the group owning leaf, or None for an orphan."""
        leaf = Path(leaf)
        for g in self.groups:
            if leaf in g.leaves:
                return g
        return None
