"""Shortest distances along mesh edges with Dijkstra's algorithm."""

from __future__ import annotations

import heapq
import itertools
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from morsel.geodesic.result import GeodesicResult


@dataclass(frozen=True)
class DijkstraOptions:
    """Options for :func:`dijkstra` and :func:`dijkstra_multiple`.

    ``store_predecessors`` records predecessors for path reconstruction;
    vertices popped beyond ``max_distance`` are not expanded; the search stops
    once ``target`` is settled.
    """

    store_predecessors: bool = False
    max_distance: Optional[float] = None
    target: Optional[int] = None


def _edge_graph(
    vertices: Sequence[Sequence[float]], faces: Iterable[Sequence[int]]
) -> List[Dict[int, float]]:
    """Return, for each vertex, its edge neighbours mapped to edge lengths."""
    positions = [tuple(float(c) for c in p) for p in vertices]
    n = len(positions)
    graph: List[Dict[int, float]] = [{} for _ in range(n)]
    for face in faces:
        tri = tuple(int(i) for i in face)
        if len(tri) != 3:
            raise ValueError("faces must be triangles")
        if any(i < 0 or i >= n for i in tri):
            raise ValueError("face references a vertex that does not exist")
        for a, b in zip(tri, tri[1:] + tri[:1]):
            if a == b:
                continue
            length = math.dist(positions[a], positions[b])
            graph[a][b] = length
            graph[b][a] = length
    return graph


def dijkstra(
    vertices: Sequence[Sequence[float]],
    faces: Iterable[Sequence[int]],
    source: int,
    options: Optional[DijkstraOptions] = None,
) -> GeodesicResult:
    """Compute edge-graph distances from one source vertex."""
    return dijkstra_multiple(vertices, faces, [source], options)


def dijkstra_multiple(
    vertices: Sequence[Sequence[float]],
    faces: Iterable[Sequence[int]],
    sources: Iterable[int],
    options: Optional[DijkstraOptions] = None,
) -> GeodesicResult:
    """Compute edge-graph distances to the nearest of several sources.

    Every source starts at distance 0; sources outside the mesh are ignored.
    """
    options = options or DijkstraOptions()
    graph = _edge_graph(vertices, faces)
    n = len(graph)
    sources = list(sources)

    if n == 0 or not sources:
        return GeodesicResult([math.inf] * n)

    distances = [math.inf] * n
    predecessors: Optional[List[Optional[int]]] = (
        [None] * n if options.store_predecessors else None
    )
    counter = itertools.count()
    heap = []

    for s in sources:
        if 0 <= s < n:
            distances[s] = 0.0
            heapq.heappush(heap, (0.0, next(counter), s))

    while heap:
        dist_u, _, u = heapq.heappop(heap)
        if dist_u > distances[u]:
            continue
        if options.target is not None and u == options.target:
            break
        if options.max_distance is not None and dist_u > options.max_distance:
            continue

        for v, length in graph[u].items():
            new_dist = dist_u + length
            if new_dist < distances[v]:
                distances[v] = new_dist
                if predecessors is not None:
                    predecessors[v] = u
                heapq.heappush(heap, (new_dist, next(counter), v))

    return GeodesicResult(distances, predecessors)