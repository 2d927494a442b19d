"""
Mermaid Mindmap Parser
======================

Turns mindmap source text into a tree of ``MindmapNode`` objects.

Three steps, each usable on its own:
- iter_lines: drop blank lines and the ``mindmap`` directive, measure indentation
- classify: strip shape delimiters from a label and name the shape
- parse_mindmap: rebuild parent/child structure from indentation
"""

import logging
import re
from typing import Dict, Iterator, List, NamedTuple, Optional, Pattern, Tuple

from .models import MindmapNode, Shape

logger = logging.getLogger(__name__)

DIRECTIVE = "mindmap"
BOM = "\ufeff"


# ============================================================================
# Tokenizer
# ============================================================================

def indent_width(line: str) -> int:
    """Count leading whitespace characters. Tabs count as one."""
    return len(line) - len(line.lstrip())


def iter_lines(source: str) -> Iterator[Tuple[str, int]]:
    """Yield ``(stripped_text, indent)`` for every significant line."""
    if source.startswith(BOM):
        source = source[1:]

    for line in source.split('\n'):
        stripped = line.strip()
        if not stripped or stripped.startswith(DIRECTIVE):
            continue
        yield stripped, indent_width(line)


# ============================================================================
# Shape Classifier
# ============================================================================

class ShapeRule(NamedTuple):
    shape: Shape
    pattern: Pattern
    # Reject the match if anything surrounds the delimited span
    standalone: bool = False


# Precedence matters: the forms overlap at the character level
SHAPE_RULES: List[ShapeRule] = [
    ShapeRule(Shape.CIRCLE, re.compile(r'(.+)?\(\((.+)\)\)(.*)?')),
    ShapeRule(Shape.SQUARE, re.compile(r'(.+)?\[(.+)\](.*)?')),
    ShapeRule(Shape.ROUNDED, re.compile(r'(.+)?\((.+)\)(.*)?'), standalone=True),
    ShapeRule(Shape.HEXAGON, re.compile(r'(.+)?\{\{(.+)\}\}(.*)?')),
    ShapeRule(Shape.CLOUD, re.compile(r'(.+)?\)(.+)\((.*)?')),
    ShapeRule(Shape.BANG, re.compile(r'(.+)?\)\)(.+)\(\((.*)?')),
]


def classify(line: str, rules: List[ShapeRule] = SHAPE_RULES) -> Tuple[str, Shape]:
    """Return ``(label, shape)`` for a stripped line.

    Anything before the delimiters (the Mermaid node id) is discarded.
    Lines matching no rule keep their full text with ``Shape.DEFAULT``.
    """
    for rule in rules:
        match = rule.pattern.search(line)
        if not match:
            continue
        prefix, inner, suffix = match.groups()
        if rule.standalone and (prefix or suffix):
            continue
        return inner, rule.shape

    return line, Shape.DEFAULT


# ============================================================================
# Tree Builder
# ============================================================================

class ParseContext:
    """Counters owned by a single parse.

    Levels are handed out in the order indentation widths are first seen
    anywhere in the document, not relative to the parent.
    """

    def __init__(self):
        self.next_id = 0
        self.indent_levels: Dict[int, int] = {}

    def level_for(self, indent: int) -> int:
        if indent not in self.indent_levels:
            self.indent_levels[indent] = len(self.indent_levels)
        return self.indent_levels[indent]

    def new_node(self, line: str, indent: int) -> MindmapNode:
        text, shape = classify(line)
        node = MindmapNode(
            id=f"node{self.next_id}",
            text=text,
            shape=shape,
            level=self.level_for(indent),
        )
        self.next_id += 1
        return node


def parse_mindmap(source: str, context: Optional[ParseContext] = None) -> Optional[MindmapNode]:
    """Build the mindmap tree. Returns ``None`` when there is nothing to render."""
    context = context or ParseContext()
    lines = iter_lines(source)

    first = next(lines, None)
    if first is None:
        logger.debug("No mindmap lines found")
        return None

    root = context.new_node(*first)
    stack = [(root, first[1])]

    for line, indent in lines:
        while stack and stack[-1][1] >= indent:
            stack.pop()

        node = context.new_node(line, indent)
        if stack:
            stack[-1][0].children.append(node)
        else:
            logger.debug("Line %r is not nested under the root, dropping it", line)
        stack.append((node, indent))

    logger.debug("Parsed %d lines into %d indentation levels",
                 context.next_id, len(context.indent_levels))
    return root
