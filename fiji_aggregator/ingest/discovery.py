from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Set

from fiji_aggregator.errors import EmptyResultError
from fiji_aggregator.ingest.grouping import group_leaves
from fiji_aggregator.ingest.scanner import MAX_SCAN_DEPTH, nodes_at_level, scan
from fiji_aggregator.ingest.selectors import select
from fiji_aggregator.models.catalog import Group, GroupCatalog, PathNode, SelectorSpec
from fiji_aggregator.models.config import AggregationConfig


logger = logging.getLogger(__name__)


@dataclass
class GroupDiscovery:
    """
    Discovery: build a GroupCatalog for a condition folder.

    Layouts
      - nested: root/<group>/<subfolder>/<leaf>. Groups are level-1 folders
        matching folder_selector, leaves are level-3 folders matching
        file_selector and, when subfolder_selector is set, lying in a level-2
        folder that matches it.
      - flat: every folder up to depth 3 matching file_selector is a group
        whose only leaf is itself.

    No folder is invented: a run with no surviving group or leaf fails with
    EmptyResultError instead of producing an empty catalog.
    """
    depth: int = MAX_SCAN_DEPTH

    def build_catalog(self, config: AggregationConfig) -> GroupCatalog:
        config.validate()
        root = config.root.resolve()
        nodes = scan(root, self.depth)
        if not nodes:
            raise EmptyResultError(f"No subfolders found under {root}")

        folder_spec, sub_spec, file_spec = config.selectors()
        if config.layout == "flat":
            return self._flat(root, nodes, file_spec)
        return self._nested(root, nodes, folder_spec, sub_spec, file_spec, config.ignore_empty_folders)

    def _flat(self, root: Path, nodes: List[PathNode], file_spec: SelectorSpec) -> GroupCatalog:
        selected = select(nodes, file_spec)
        if not selected:
            raise EmptyResultError(
                f"No data found after applying file selector '{file_spec.pattern}' in {root}."
            )
        groups = [Group(root=n.path, leaves=(n.path,)) for n in selected]
        logger.info("Discovered %d folder groups under %s", len(groups), root)
        return GroupCatalog(root_dir=root, groups=groups)

    def _nested(
        self,
        root: Path,
        nodes: List[PathNode],
        folder_spec: SelectorSpec,
        sub_spec: Optional[SelectorSpec],
        file_spec: SelectorSpec,
        ignore_empty: bool,
    ) -> GroupCatalog:
        warnings: List[str] = []

        group_nodes = select(nodes_at_level(nodes, 1), folder_spec)
        leaf_nodes = select(nodes_at_level(nodes, self.depth), file_spec)

        if sub_spec is not None and self.depth > 2:
            subfolders: Set[Path] = {n.path for n in select(nodes_at_level(nodes, 2), sub_spec)}
            gated = [n for n in leaf_nodes if n.path.parent in subfolders]
            n_dropped = len(leaf_nodes) - len(gated)
            if n_dropped:
                warnings.append(
                    f"{n_dropped} leaf folder(s) dropped: parent does not match subfolder selector "
                    f"'{sub_spec.pattern}'"
                )
            leaf_nodes = gated

        if not group_nodes:
            raise EmptyResultError(
                f"No group folders found after applying folder selector '{folder_spec.pattern}' in {root}."
            )
        if not leaf_nodes:
            raise EmptyResultError(
                f"No leaf folders found under {root} with the given selectors."
            )

        mapping, orphans = group_leaves([n.path for n in group_nodes], [n.path for n in leaf_nodes])
        for p in orphans:
            warnings.append(f"Orphaned leaf folder (no selected group contains it): {p}")

        groups: List[Group] = []
        for g_root, leaves in mapping.items():
            if not leaves:
                if not ignore_empty:
                    raise EmptyResultError(f"No leaf folders found for group: {g_root}")
                msg = f"No leaf folders for group {g_root} (skipping)"
                warnings.append(msg)
                logger.warning(msg)
            groups.append(Group(root=g_root, leaves=tuple(leaves)))

        logger.info(
            "Discovered %d groups, %d leaves (%d orphaned) under %s",
            len(groups), sum(len(g.leaves) for g in groups), len(orphans), root,
        )
        return GroupCatalog(root_dir=root, groups=groups, orphans=tuple(orphans), warnings=tuple(warnings))
