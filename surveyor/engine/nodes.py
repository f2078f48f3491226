"""Helpers for walking tree-sitter nodes."""

from __future__ import annotations

from typing import Any, Iterator


def iter_preorder(node: Any) -> Iterator[Any]:
    """Yield ``node`` and its descendants depth-first, parents before children.

    Iterative so deeply nested sources do not hit the recursion limit.
    """
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def node_text(node: Any) -> str:
    return node.text.decode("utf-8", errors="ignore")


__all__ = ["iter_preorder", "node_text"]
