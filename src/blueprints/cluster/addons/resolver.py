"""Dependency graph resolution for add-on descriptors.

Builds a graph from declared ``depends_on`` edges (pointing from dependency
to dependent), validates it and computes a deterministic deployment order.
Validation is eager: unknown references, cycles and conflicts are all
reported before any add-on is deployed.

Ordering uses Kahn's algorithm with ties broken by add-on id in lexical
order, so unrelated add-ons always come out in the same order regardless of
registration order.
"""

import heapq
import logging
from collections import deque
from collections.abc import Iterable

from blueprints.cluster.addons.descriptor import AddonDescriptor, AddonId
from blueprints.utils.errors import (
    ConflictingAddonsError,
    CyclicDependencyError,
    DuplicateAddonError,
    UnknownDependencyError,
)

logger = logging.getLogger(__name__)

_WHITE, _GRAY, _BLACK = 0, 1, 2


class DependencyGraph:
    """Validated dependency graph over a set of add-on descriptors.

    Use ``build`` (or ``resolve``) to construct one; the constructor assumes
    its input has already been validated.
    """

    def __init__(self, descriptors: dict[AddonId, AddonDescriptor]):
        self._descriptors = descriptors
        self._dependents: dict[AddonId, set[AddonId]] = {addon_id: set() for addon_id in descriptors}
        for descriptor in descriptors.values():
            for dependency in descriptor.depends_on:
                self._dependents[dependency].add(descriptor.id)

    @classmethod
    def build(
        cls, descriptors: Iterable[AddonDescriptor], known_ids: Iterable[AddonId] | None = None
    ) -> "DependencyGraph":
        """Validate descriptors and build the graph.

        Args:
            descriptors: Descriptors registered for the run
            known_ids: Additional ids that may be named in ``conflicts_with``
                without being registered (e.g. the built-in catalog)

        Raises:
            DuplicateAddonError: If two descriptors share an id
            UnknownDependencyError: If a reference names an unknown add-on
            CyclicDependencyError: If depends_on edges form a cycle
            ConflictingAddonsError: If two registered add-ons conflict
        """
        by_id: dict[AddonId, AddonDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.id in by_id:
                raise DuplicateAddonError(descriptor.id)
            by_id[descriptor.id] = descriptor

        _check_references(by_id, set(known_ids or ()))
        cycle = _find_cycle(by_id)
        if cycle:
            raise CyclicDependencyError(cycle)
        pairs = _find_conflicts(by_id)
        if pairs:
            raise ConflictingAddonsError(pairs)

        return cls(by_id)

    def __contains__(self, addon_id: object) -> bool:
        return addon_id in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    def dependencies_of(self, addon_id: AddonId) -> frozenset[AddonId]:
        """Direct dependencies of an add-on."""
        return self._descriptors[addon_id].depends_on

    def dependents_of(self, addon_id: AddonId) -> frozenset[AddonId]:
        """Add-ons that directly depend on ``addon_id``."""
        return frozenset(self._dependents[addon_id])

    def descendants_of(self, addon_id: AddonId) -> frozenset[AddonId]:
        """Every add-on that transitively depends on ``addon_id``."""
        seen: set[AddonId] = set()
        queue: deque[AddonId] = deque(self._dependents[addon_id])
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            queue.extend(self._dependents[current])
        return frozenset(seen)

    def order(self) -> list[AddonId]:
        """Return a total deployment order (dependencies first, lexical ties)."""
        remaining = {addon_id: len(d.depends_on) for addon_id, d in self._descriptors.items()}
        ready = [addon_id for addon_id, count in remaining.items() if count == 0]
        heapq.heapify(ready)

        ordered: list[AddonId] = []
        while ready:
            addon_id = heapq.heappop(ready)
            ordered.append(addon_id)
            for dependent in self._dependents[addon_id]:
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    heapq.heappush(ready, dependent)

        # Unreachable for graphs built through build(); guards direct construction
        if len(ordered) != len(self._descriptors):
            raise CyclicDependencyError(_find_cycle(self._descriptors) or sorted(remaining))
        return ordered

    def levels(self) -> list[list[AddonId]]:
        """Group add-ons into waves whose members can deploy concurrently.

        Every add-on lands one wave after its deepest dependency.
        """
        depth: dict[AddonId, int] = {}
        for addon_id in self.order():
            dependencies = self._descriptors[addon_id].depends_on
            depth[addon_id] = 1 + max((depth[d] for d in dependencies), default=-1)

        waves: list[list[AddonId]] = [[] for _ in range(max(depth.values(), default=-1) + 1)]
        for addon_id in sorted(depth):
            waves[depth[addon_id]].append(addon_id)
        return waves


def resolve(
    descriptors: Iterable[AddonDescriptor], known_ids: Iterable[AddonId] | None = None
) -> list[AddonId]:
    """Validate descriptors and return their deployment order.

    See ``DependencyGraph.build`` for the errors raised.
    """
    order = DependencyGraph.build(descriptors, known_ids).order()
    logger.debug(f"Resolved deployment order: {', '.join(order) or '(empty)'}")
    return order


def _check_references(by_id: dict[AddonId, AddonDescriptor], known_ids: set[AddonId]) -> None:
    for addon_id in sorted(by_id):
        descriptor = by_id[addon_id]
        for dependency in sorted(descriptor.depends_on):
            if dependency not in by_id:
                raise UnknownDependencyError(addon_id, dependency, "depends on")
        for conflict in sorted(descriptor.conflicts_with):
            if conflict not in by_id and conflict not in known_ids:
                raise UnknownDependencyError(addon_id, conflict, "conflicts with")


def _find_cycle(by_id: dict[AddonId, AddonDescriptor]) -> list[AddonId] | None:
    """Return the members of one dependency cycle, or None.

    Depth-first search with white/gray/black colouring; reaching a gray node
    closes a cycle made of the gray path from that node onwards.
    """
    color = {addon_id: _WHITE for addon_id in by_id}
    path: list[AddonId] = []

    def visit(addon_id: AddonId) -> list[AddonId] | None:
        color[addon_id] = _GRAY
        path.append(addon_id)
        for dependency in sorted(by_id[addon_id].depends_on):
            if dependency not in color:
                continue
            if color[dependency] == _GRAY:
                # Report in deployment direction: dependency before dependent
                return list(reversed(path[path.index(dependency):]))
            if color[dependency] == _WHITE:
                found = visit(dependency)
                if found:
                    return found
        path.pop()
        color[addon_id] = _BLACK
        return None

    for addon_id in sorted(by_id):
        if color[addon_id] == _WHITE:
            found = visit(addon_id)
            if found:
                return found
    return None


def _find_conflicts(by_id: dict[AddonId, AddonDescriptor]) -> list[tuple[AddonId, AddonId]]:
    pairs: set[tuple[AddonId, AddonId]] = set()
    for addon_id, descriptor in by_id.items():
        for conflict in descriptor.conflicts_with:
            if conflict in by_id:
                first, second = sorted((addon_id, conflict))
                pairs.add((first, second))
    return sorted(pairs)
