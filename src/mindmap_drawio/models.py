"""
Mindmap Data Model
==================

Tree nodes produced by the parser and positioned by the layout engine.
"""

from enum import Enum
from typing import Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field


class Shape(str, Enum):
    """Node shape, taken from the delimiters around a mindmap label."""

    CIRCLE = "circle"
    SQUARE = "square"
    ROUNDED = "rounded"
    HEXAGON = "hexagon"
    CLOUD = "cloud"
    BANG = "bang"
    DEFAULT = "default"


class MindmapNode(BaseModel):
    """One mindmap entry.

    Geometry fields stay ``None`` until ``layout.assign_positions`` runs.
    ``x``/``y`` are the top-left corner, not the center.
    """

    id: str
    text: str
    shape: Shape = Shape.DEFAULT
    level: int = Field(default=0, ge=0)
    children: List["MindmapNode"] = Field(default_factory=list)

    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    direction: int = 1

    def walk(self) -> Iterator["MindmapNode"]:
        """Yield this node and its descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    @property
    def center(self) -> Tuple[float, float]:
        if self.x is None or self.width is None:
            raise ValueError(f"Node '{self.id}' has not been laid out")
        return self.x + self.width / 2, self.y + self.height / 2


class Edge(BaseModel):
    """Parent -> child relation, derived from the tree at serialization time."""

    source: str
    target: str


MindmapNode.model_rebuild()
