"""Shared writer interface."""

from __future__ import annotations

from typing import Any, Iterable, Protocol, TextIO


class HierarchyView(Protocol):
    """Read-only view of a resolved tree consumed by writers."""

    @property
    def value(self) -> Any: ...

    @property
    def children(self) -> Iterable["HierarchyView"]: ...


class HierarchyWriter:
    """Base class for writers printing a hierarchy to a text stream."""

    def __init__(self, stream: TextIO):
        if stream is None:
            raise ValueError("stream must not be None")
        self.stream = stream

    def write(self, hierarchy: HierarchyView) -> None:
        raise NotImplementedError

    def _write_line(self, line: str) -> None:
        self.stream.write(line + "\n")
