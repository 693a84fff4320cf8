"""Graph model records, collaborator protocols and the in-memory model."""

from combofold.model.memory import InMemoryGraphModel
from combofold.model.protocol import GraphModel, OverlayPlugin
from combofold.model.types import Bounds, ComboData, EdgeData, ElementType, NodeData

__all__ = [
    "Bounds",
    "ComboData",
    "EdgeData",
    "ElementType",
    "GraphModel",
    "InMemoryGraphModel",
    "NodeData",
    "OverlayPlugin",
]
