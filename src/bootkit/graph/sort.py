# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Dependency ordering for providers.

Depth-first, post-order traversal with three-color marking:
  - unvisited: not reached yet
  - in progress: on the current DFS path; reaching it again is a cycle
  - done: already emitted, skipped on later visits

The traversal keeps an explicit stack, so long dependency chains do not hit the
interpreter recursion limit. The order among independent providers follows
registration order but is not part of the contract.
"""

from collections.abc import Callable, Iterable, Iterator, Sequence
from enum import Enum
from typing import Any, Protocol

from ..api.contracts import declares_dependencies
from ..api.errors import CyclicDependencyError, InvalidProviderError, MissingDependencyError


class SortNode(Protocol):
    """What the sorter needs from a registry entry."""

    name: str
    provider: Any


Lookup = Callable[[Any], "SortNode | None"]


class _Mark(Enum):
    IN_PROGRESS = 1
    DONE = 2


def dependency_refs(provider: Any) -> list[Any]:
    """Declared dependencies of a provider (instances or names), in declaration order."""
    if not declares_dependencies(provider):
        return []
    deps = provider.dependencies
    if isinstance(deps, str):
        return [deps]
    if not isinstance(deps, Iterable):
        raise InvalidProviderError(f"{getattr(provider, 'name', provider)!r}: dependencies must be iterable")
    return list(deps)


def make_lookup(nodes: Iterable[SortNode]) -> Lookup:
    """
    Resolve a dependency reference to its node: provider instances match by
    identity, strings match by registered name.
    """
    by_name = {n.name: n for n in nodes}
    by_id = {id(n.provider): n for n in by_name.values()}

    def lookup(ref: Any) -> SortNode | None:
        if isinstance(ref, str):
            return by_name.get(ref)
        return by_id.get(id(ref))

    return lookup


def _label(ref: Any) -> str:
    if isinstance(ref, str):
        return repr(ref)
    name = getattr(ref, "name", None)
    return repr(name) if isinstance(name, str) else f"<{type(ref).__name__} object>"


def dependency_names(node: SortNode, lookup: Lookup) -> list[str]:
    """Resolved dependency names; raises MissingDependencyError for unknown refs."""
    out: list[str] = []
    for ref in dependency_refs(node.provider):
        dep = lookup(ref)
        if dep is None:
            raise MissingDependencyError(node.name, _label(ref))
        out.append(dep.name)
    return out


def topological_sort(nodes: Sequence[SortNode], lookup: Lookup | None = None) -> list[SortNode]:
    """
    Order `nodes` so that every dependency precedes its dependents.

    Raises:
        CyclicDependencyError: with the offending path, e.g. ["A", "B", "A"].
        MissingDependencyError: when a dependency is not among the known nodes.
    """
    lookup = lookup or make_lookup(nodes)
    marks: dict[str, _Mark] = {}
    order: list[SortNode] = []

    def children(node: SortNode) -> Iterator[SortNode]:
        for ref in dependency_refs(node.provider):
            dep = lookup(ref)
            if dep is None:
                raise MissingDependencyError(node.name, _label(ref))
            yield dep

    for root in nodes:
        if root.name in marks:
            continue
        marks[root.name] = _Mark.IN_PROGRESS
        stack: list[tuple[SortNode, Iterator[SortNode]]] = [(root, children(root))]
        while stack:
            node, pending = stack[-1]
            for dep in pending:
                mark = marks.get(dep.name)
                if mark is _Mark.DONE:
                    continue
                if mark is _Mark.IN_PROGRESS:
                    path = [n.name for n, _ in stack]
                    raise CyclicDependencyError(path[path.index(dep.name) :] + [dep.name])
                marks[dep.name] = _Mark.IN_PROGRESS
                stack.append((dep, children(dep)))
                break
            else:
                stack.pop()
                marks[node.name] = _Mark.DONE
                order.append(node)
    return order


__all__ = [
    "SortNode",
    "dependency_names",
    "dependency_refs",
    "make_lookup",
    "topological_sort",
]
