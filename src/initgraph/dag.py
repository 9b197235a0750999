# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""Minimal directed acyclic graph with a depth-first topological sort.

The graph knows nothing about providers or types; node values are opaque and
only show up in :class:`~initgraph.exceptions.CircularDependencyError`.
Edges point from a dependent node to the nodes it depends on, so the sorted
order lists dependencies first.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from .exceptions import CircularDependencyError, InvalidGraphError


V = TypeVar("V")


@dataclass(eq=False, slots=True)
class Node(Generic[V]):
    """A graph node with ordered outgoing edges and traversal flags."""

    value: V
    edges: list[Node[V]] = field(default_factory=list)
    on_stack: bool = False
    done: bool = False

    def add_edge(self, dependency: Node[V]) -> None:
        self.edges.append(dependency)


class Graph(Generic[V]):
    """Ordered collection of nodes, sorted in place by :meth:`resolve`."""

    def __init__(self) -> None:
        self._nodes: list[Node[V]] = []

    def add(self, value: V) -> Node[V]:
        node = Node(value)
        self._nodes.append(node)
        return node

    def __iter__(self) -> Iterator[Node[V]]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, index: int) -> Node[V]:
        return self._nodes[index]

    def values(self) -> list[V]:
        return [node.value for node in self._nodes]

    def resolve(self) -> None:
        """Reorder the nodes so every dependency precedes its dependents.

        Nodes are visited in their current order and edges in insertion
        order, so the result is deterministic for a fixed input.

        Raises:
            CircularDependencyError: If a node is reached while still on the
                visit stack.
            InvalidGraphError: If a top-level visit resolves nothing.
        """
        for node in self._nodes:
            node.on_stack = False
            node.done = False

        unresolved: dict[Node[V], None] = dict.fromkeys(self._nodes)
        resolved: list[Node[V]] = []
        while unresolved:
            before = len(unresolved)
            _visit(next(iter(unresolved)), unresolved, resolved)
            if len(unresolved) >= before:
                raise InvalidGraphError(f"topological sort stalled with {before} unresolved node(s)")

        self._nodes = resolved


def _visit(root: Node[V], unresolved: dict[Node[V], None], resolved: list[Node[V]]) -> None:
    # Explicit stack of (node, remaining edges) instead of recursion
    if root.done:
        return
    root.on_stack = True
    stack: list[tuple[Node[V], Iterator[Node[V]]]] = [(root, iter(root.edges))]

    while stack:
        node, edges = stack[-1]
        child = next(edges, None)
        if child is None:
            stack.pop()
            node.on_stack = False
            node.done = True
            unresolved.pop(node, None)
            resolved.append(node)
            continue
        if child.done:
            continue
        if child.on_stack:
            path = [entry for entry, _ in stack]
            start = next(i for i, entry in enumerate(path) if entry is child)
            raise CircularDependencyError([entry.value for entry in path[start:]] + [child.value])
        child.on_stack = True
        stack.append((child, iter(child.edges)))


__all__ = ["Graph", "Node"]
