"""Text writers for resolved hierarchies."""

from typing import TextIO, Union

from constants import WriterType

from .base import HierarchyView, HierarchyWriter
from .graph import GraphTextWriter
from .tree import TreeTextWriter

__all__ = [
    "HierarchyView",
    "HierarchyWriter",
    "GraphTextWriter",
    "TreeTextWriter",
    "create_writer",
]


def create_writer(writer_type: Union[WriterType, str], stream: TextIO) -> HierarchyWriter:
    """Create the writer for ``writer_type`` (enum member or its name, any case).

    Raises:
        ValueError: For unsupported writer types.
    """
    if isinstance(writer_type, str):
        try:
            writer_type = WriterType(writer_type.lower())
        except ValueError as exc:
            raise ValueError(f"Unsupported writer type: {writer_type}.") from exc
    if writer_type == WriterType.GRAPH:
        return GraphTextWriter(stream)
    if writer_type == WriterType.TREE:
        return TreeTextWriter(stream)
    raise ValueError(f"Unsupported writer type: {writer_type}.")
