"""Text rendering of a calclang AST for debugging.

The tree is drawn sideways: for binary nodes the right child is printed
above its parent and the left child below, so the tree reads correctly
when the page is turned clockwise. N-ary nodes put the second half of
their children above and the first half below. Each level of depth adds
one ``  |`` column, with ``--+`` (or ``  +`` at the first level) joining
a node to its parent.
"""

from __future__ import annotations

from typing import List

from .ast import (
    Node, UnaryNode, BinaryNode, NaryNode, Program, Neg, ClassDefinition,
)


def label(node: Node) -> str:
    if isinstance(node, Program):
        return 'PROGRAM'
    if isinstance(node, Neg):
        return 'NEG: -'
    text = f"{node.token.type}: {node.token.value}"
    if isinstance(node, ClassDefinition) and node.is_derived:
        text += f" (derived {node.parent_name})"
    return text


def prefix(depth: int) -> str:
    if depth == 0:
        return ''
    bars = '  |' * (depth - 1)
    return bars + ('--+' if depth > 1 else '  +')


def dump_lines(node: Node, depth: int, out: List[str]) -> None:
    own = prefix(depth) + label(node)
    if isinstance(node, NaryNode):
        children = node.children
        half = len(children) // 2
        for child in reversed(children[half:]):
            dump_lines(child, depth + 1, out)
        out.append(own)
        for child in reversed(children[:half]):
            dump_lines(child, depth + 1, out)
    elif isinstance(node, BinaryNode):
        if node.right is not None:
            dump_lines(node.right, depth + 1, out)
        out.append(own)
        if node.left is not None:
            dump_lines(node.left, depth + 1, out)
    elif isinstance(node, UnaryNode):
        out.append(own)
        if node.child is not None:
            dump_lines(node.child, depth + 1, out)
    else:
        out.append(own)


def format_tree(node: Node) -> str:
    """Render ``node`` and its subtree as a multi-line string."""
    out: List[str] = []
    dump_lines(node, 0, out)
    return '\n'.join(out)
