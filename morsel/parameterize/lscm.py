"""Least squares conformal maps (LSCM) parameterization.

LSCM computes UV coordinates for a triangle mesh with boundary by minimizing
the conformal energy. This energy measures how far the map is from preserving
angles. Two vertices are pinned so that the solution is unique.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from morsel.parameterize.sparse import CsrMatrix, conjugate_gradient
from morsel.parameterize.uv import UVMap

_PENALTY = 1e10


class EmptyMeshError(ValueError):
    """Raised when an operation needs a mesh with at least one vertex."""

    def __init__(self) -> None:
        super().__init__("mesh has no vertices")


class NoBoundaryError(ValueError):
    """Raised when an operation needs a mesh with boundary but it is closed."""

    def __init__(self) -> None:
        super().__init__("mesh has no boundary")


@dataclass(frozen=True)
class PinnedVertex:
    """A vertex held fixed at the UV coordinate ``(u, v)``."""

    vertex: int
    u: float
    v: float


@dataclass(frozen=True)
class LSCMOptions:
    """Options for :func:`lscm`.

    ``pins`` fixes two vertices; when ``None`` the two boundary vertices that
    are farthest apart are pinned to ``(0, 0)`` and ``(1, 0)``.
    ``max_iterations`` and ``tolerance`` control the conjugate gradient solve.
    """

    pins: Optional[Tuple[PinnedVertex, PinnedVertex]] = None
    max_iterations: int = 1000
    tolerance: float = 1e-8

    @classmethod
    def automatic(cls) -> "LSCMOptions":
        """Options that pin the farthest pair of boundary vertices."""
        return cls()

    @classmethod
    def with_pins(cls, pin0: PinnedVertex, pin1: PinnedVertex) -> "LSCMOptions":
        """Options that pin the two given vertices."""
        return cls(pins=(pin0, pin1))


def _mesh_arrays(
    vertices: Sequence[Sequence[float]], faces: Iterable[Sequence[int]]
) -> Tuple[np.ndarray, np.ndarray]:
    positions = np.asarray(vertices, dtype=float).reshape(-1, 3)
    tris = np.asarray(list(faces), dtype=np.int64).reshape(-1, 3)
    if tris.size and (tris.min() < 0 or tris.max() >= len(positions)):
        raise ValueError("face references a vertex that does not exist")
    return positions, tris


def find_boundary_vertices(faces: Iterable[Sequence[int]], n_vertices: int) -> List[int]:
    """Return, in increasing order, the vertices lying on a boundary edge.

    A boundary edge is an edge used by exactly one face.
    """
    edge_count: Counter = Counter()
    for face in faces:
        tri = [int(i) for i in face]
        for a, b in zip(tri, tri[1:] + tri[:1]):
            edge_count[(min(a, b), max(a, b))] += 1

    on_boundary = [False] * n_vertices
    for (a, b), count in edge_count.items():
        if count == 1:
            on_boundary[a] = True
            on_boundary[b] = True
    return [v for v, flag in enumerate(on_boundary) if flag]


def select_farthest_boundary_pair(
    vertices: Sequence[Sequence[float]], boundary: Sequence[int]
) -> Tuple[PinnedVertex, PinnedVertex]:
    """Pin the two boundary vertices farthest apart to ``(0, 0)`` and ``(1, 0)``.

    Among pairs at equal distance the first one found is kept.
    """
    if not boundary:
        raise ValueError("boundary is empty")
    positions = np.asarray(vertices, dtype=float).reshape(-1, 3)
    best = (boundary[0], boundary[0])
    max_dist = 0.0
    for i, v0 in enumerate(boundary):
        for v1 in boundary[i + 1:]:
            diff = positions[v1] - positions[v0]
            dist = float(diff @ diff)
            if dist > max_dist:
                max_dist = dist
                best = (v0, v1)
    return PinnedVertex(best[0], 0.0, 0.0), PinnedVertex(best[1], 1.0, 0.0)


def _build_system(
    positions: np.ndarray,
    tris: np.ndarray,
    n: int,
    pin0: PinnedVertex,
    pin1: PinnedVertex,
) -> Tuple[CsrMatrix, np.ndarray]:
    """Build the normal equations of the conformal energy with penalty pins.

    Unknowns are ordered ``u_0 .. u_{n-1}, v_0 .. v_{n-1}``.
    """
    pi = positions[tris[:, 0]]
    e1 = positions[tris[:, 1]] - pi
    e2 = positions[tris[:, 2]] - pi

    e1_len = np.linalg.norm(e1, axis=1)
    normal = np.cross(e1, e2)
    area = 0.5 * np.linalg.norm(normal, axis=1)
    keep = (e1_len >= 1e-10) & (area >= 1e-10)

    tris, e1, e2, e1_len, normal, area = (
        tris[keep], e1[keep], e2[keep], e1_len[keep], normal[keep], area[keep]
    )

    triplets: List[Tuple[int, int, float]] = []
    if len(tris):
        x_axis = e1 / e1_len[:, None]
        y_dir = np.cross(normal, e1)
        y_axis = y_dir / np.linalg.norm(y_dir, axis=1)[:, None]

        qjx = e1_len
        qkx = np.einsum("ij,ij->i", e2, x_axis)
        qky = np.einsum("ij,ij->i", e2, y_axis)
        inv_2a = 1.0 / (2.0 * area)
        zero = np.zeros_like(qjx)

        ax = np.stack([-qky * inv_2a, qky * inv_2a, zero], axis=1)
        ay = np.stack([(qkx - qjx) * inv_2a, -qkx * inv_2a, qjx * inv_2a], axis=1)

        w = area[:, None, None]
        uu = w * (ax[:, :, None] * ax[:, None, :] + ay[:, :, None] * ay[:, None, :])
        uv = w * (ay[:, :, None] * ax[:, None, :] - ax[:, :, None] * ay[:, None, :])

        rows = np.broadcast_to(tris[:, :, None], uu.shape).ravel()
        cols = np.broadcast_to(tris[:, None, :], uu.shape).ravel()
        uu = uu.ravel()
        uv = uv.ravel()

        all_rows = np.concatenate([rows, n + rows, rows, n + rows])
        all_cols = np.concatenate([cols, n + cols, n + cols, cols])
        all_vals = np.concatenate([uu, uu, uv, -uv])
        triplets.extend(zip(all_rows.tolist(), all_cols.tolist(), all_vals.tolist()))

    rhs = np.zeros(2 * n)
    for pin in (pin0, pin1):
        triplets.append((pin.vertex, pin.vertex, _PENALTY))
        triplets.append((n + pin.vertex, n + pin.vertex, _PENALTY))
        rhs[pin.vertex] = _PENALTY * pin.u
        rhs[n + pin.vertex] = _PENALTY * pin.v

    return CsrMatrix.from_triplets(2 * n, 2 * n, triplets), rhs


def lscm(
    vertices: Sequence[Sequence[float]],
    faces: Iterable[Sequence[int]],
    options: Optional[LSCMOptions] = None,
) -> UVMap:
    """Compute a least squares conformal parameterization.

    The result is normalized into ``[0, 1]`` keeping the aspect ratio.
    Raises :class:`EmptyMeshError` for a mesh without vertices,
    :class:`NoBoundaryError` for a closed mesh and
    :class:`~morsel.parameterize.sparse.ConvergenceError` if the solver fails.
    """
    options = options or LSCMOptions()
    positions, tris = _mesh_arrays(vertices, faces)
    n = len(positions)
    if n == 0:
        raise EmptyMeshError()

    boundary = find_boundary_vertices(tris.tolist(), n)
    if not boundary:
        raise NoBoundaryError()

    if options.pins is None:
        pin0, pin1 = select_farthest_boundary_pair(positions, boundary)
    else:
        pin0, pin1 = options.pins
        for pin in (pin0, pin1):
            if not 0 <= pin.vertex < n:
                raise IndexError(f"pinned vertex {pin.vertex} is outside the mesh")

    matrix, rhs = _build_system(positions, tris, n, pin0, pin1)
    solution = conjugate_gradient(
        matrix, rhs, None, options.max_iterations, options.tolerance
    )

    coords = np.column_stack([solution[:n], solution[n:]])
    coords[pin0.vertex] = (pin0.u, pin0.v)
    coords[pin1.vertex] = (pin1.u, pin1.v)

    uv_map = UVMap(coords)
    uv_map.normalize()
    return uv_map