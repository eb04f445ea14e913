"""Indented tree writer: one line per node, depth shown by ``| `` markers."""

from __future__ import annotations

from .base import HierarchyView, HierarchyWriter

INDENT = "| "


class TreeTextWriter(HierarchyWriter):
    """Prints every node of the hierarchy, shared sub-trees included."""

    def write(self, hierarchy: HierarchyView) -> None:
        self._write_node(hierarchy, 0)

    def _write_node(self, node: HierarchyView, level: int) -> None:
        self._write_line(f"{INDENT * level}{node.value}")
        for child in node.children:
            self._write_node(child, level + 1)
