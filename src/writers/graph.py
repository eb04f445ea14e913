"""GraphViz DOT writer: one ``"parent" -> "child"`` line per edge."""

from __future__ import annotations

from typing import Set

from constants import Constants

from .base import HierarchyView, HierarchyWriter


class GraphTextWriter(HierarchyWriter):
    """Prints the hierarchy as a DOT digraph.

    A package already expanded once is still linked from every parent but its
    own edges are not printed again.
    """

    def write(self, hierarchy: HierarchyView) -> None:
        expanded: Set[str] = set()
        self._write_line(f'digraph "{hierarchy.value}" {{')
        self._write_children(hierarchy, expanded)
        self._write_line("}")
        self._write_line(Constants.GRAPH_FOOTER)

    def _write_children(self, node: HierarchyView, expanded: Set[str]) -> None:
        parent = str(node.value)
        for child in node.children:
            description = str(child.value)
            self._write_line(f'  "{parent}" -> "{description}"')
            if description in expanded:
                continue
            self._write_children(child, expanded)
            expanded.add(description)
