"""Generic depth-first traversal over tree-sitter syntax trees.

The walker knows nothing about node kinds: anything exposing ``children``
is recursed into, anything else is a leaf. Traversal is iterative so deeply
nested expressions cannot exhaust the interpreter stack.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterator
from typing import Any

Visitor = Callable[[Any], None]


def iter_nodes(root: Any) -> Iterator[Any]:
    """Yield ``root`` and every descendant once, in pre-order."""
    if root is None:
        return
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        children = getattr(node, "children", None) or ()
        stack.extend(reversed(children))


def walk(root: Any, visitor: Visitor) -> None:
    """Call ``visitor`` on every node of the tree, parents before children."""
    for node in iter_nodes(root):
        visitor(node)


def find_all(root: Any, node_types: Collection[str]) -> list[Any]:
    """Collect nodes whose ``type`` is in ``node_types``, in pre-order."""
    return [node for node in iter_nodes(root) if getattr(node, "type", None) in node_types]
