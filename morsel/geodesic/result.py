"""Distances produced by geodesic distance computations."""

from __future__ import annotations

import math
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple


class GeodesicResult:
    """Distances from one or more source vertices to every vertex of a mesh.

    Unreachable vertices have distance ``math.inf``.  When predecessors were
    recorded, shortest paths can be rebuilt with :meth:`path_to`.
    """

    __slots__ = ("distances", "predecessors")

    def __init__(
        self,
        distances: Iterable[float],
        predecessors: Optional[Sequence[Optional[int]]] = None,
    ) -> None:
        self.distances: List[float] = [float(d) for d in distances]
        self.predecessors: Optional[List[Optional[int]]] = (
            list(predecessors) if predecessors is not None else None
        )

    def distance(self, v: int) -> float:
        """Return the distance to vertex ``v`` (``inf`` if unreachable)."""
        return self.distances[v]

    def __len__(self) -> int:
        return len(self.distances)

    def farthest_vertex(self) -> Optional[Tuple[int, float]]:
        """Return ``(vertex, distance)`` for the largest finite distance.

        Ties go to the lowest vertex index.  Returns ``None`` when no vertex
        has a finite distance.
        """
        best: Optional[Tuple[int, float]] = None
        for v, d in enumerate(self.distances):
            if math.isfinite(d) and (best is None or d > best[1]):
                best = (v, d)
        return best

    def path_to(self, target: int) -> Optional[List[int]]:
        """Return the shortest path from a source to ``target``, source first.

        Returns ``None`` if predecessors were not stored, the target is
        unreachable, or the predecessor chain does not end at a source.
        """
        if self.predecessors is None:
            return None
        if not math.isfinite(self.distances[target]):
            return None

        path = [target]
        current = target
        while (pred := self.predecessors[current]) is not None:
            current = pred
            path.append(current)
            if len(path) > len(self.distances):
                return None
        path.reverse()
        return path

    def is_reachable(self, v: int) -> bool:
        """Return whether vertex ``v`` has a finite distance."""
        return math.isfinite(self.distances[v])

    def reachable_count(self) -> int:
        """Return the number of vertices with a finite distance."""
        return sum(1 for d in self.distances if math.isfinite(d))

    def __iter__(self) -> Iterator[Tuple[int, float]]:
        return iter(enumerate(self.distances))

    def reachable(self) -> Iterator[Tuple[int, float]]:
        """Yield ``(vertex, distance)`` pairs for reachable vertices only."""
        return ((v, d) for v, d in self if math.isfinite(d))

    def __repr__(self) -> str:
        return f"GeodesicResult({len(self)} vertices, {self.reachable_count()} reachable)"