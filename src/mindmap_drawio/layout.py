"""
Mindmap Layout
==============

Bidirectional horizontal tree layout. The root sits at the canvas center,
its first half of children grow to the right and the rest to the left; every
deeper node keeps the side of its root-level ancestor.

Spacing is fixed per level and per sibling, so large subtrees may overlap.
"""

from typing import Dict, Tuple

from .models import MindmapNode

CANVAS_WIDTH = 2400
CANVAS_HEIGHT = 1800

LEVEL_SPACING = 300    # horizontal distance between levels
SIBLING_SPACING = 120  # vertical distance between siblings

# level -> (width, height); deeper levels use DEFAULT_SIZE
LEVEL_SIZES: Dict[int, Tuple[int, int]] = {
    0: (200, 90),
    1: (250, 70),
    2: (220, 55),
}
DEFAULT_SIZE = (180, 45)

RIGHT = 1
LEFT = -1


def size_for_level(level: int) -> Tuple[int, int]:
    return LEVEL_SIZES.get(level, DEFAULT_SIZE)


def split_direction(index: int, count: int) -> int:
    """Side for the ``index``-th of ``count`` root children (first ceil(n/2) go right)."""
    return RIGHT if index < count / 2 else LEFT


def assign_positions(node: MindmapNode, cx: float = CANVAS_WIDTH / 2,
                     cy: float = CANVAS_HEIGHT / 2, direction: int = RIGHT,
                     is_root: bool = True) -> None:
    """Set size, top-left position and direction on ``node`` and its subtree.

    Args:
        node: Subtree root to place
        cx, cy: Center point for ``node``
        direction: Side inherited from the parent (ignored for the root)
        is_root: Whether ``node`` is the mindmap root
    """
    # Explicit stack so deeply nested outlines don't hit the recursion limit
    stack = [(node, cx, cy, direction, is_root)]

    while stack:
        node, cx, cy, direction, is_root = stack.pop()

        node.width, node.height = size_for_level(node.level)
        node.x = cx - node.width / 2
        node.y = cy - node.height / 2
        node.direction = direction

        children = node.children
        if not children:
            continue

        total_height = (len(children) - 1) * SIBLING_SPACING
        start_y = cy - total_height / 2

        for index in reversed(range(len(children))):
            child_dir = split_direction(index, len(children)) if is_root else direction
            stack.append((
                children[index],
                cx + child_dir * LEVEL_SPACING,
                start_y + index * SIBLING_SPACING,
                child_dir,
                False,
            ))
