"""As-rigid-as-possible (ARAP) parameterization.

Starting from an initial parameterization, ARAP alternates two steps.  The
local step finds the rotation that best maps each flattened triangle onto its
current UV image.  The global step solves a sparse linear system for the UV
coordinates that best agree with those rotations.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from morsel.parameterize.lscm import (
    EmptyMeshError,
    LSCMOptions,
    NoBoundaryError,
    find_boundary_vertices,
    lscm,
)
from morsel.parameterize.sparse import CsrMatrix, conjugate_gradient
from morsel.parameterize.uv import UVMap

_PENALTY = 1e10
_MIN_WEIGHT = 1e-6


@dataclass(frozen=True)
class ARAPOptions:
    """Options for :func:`arap`.

    ``iterations`` is the number of local/global rounds.  ``max_cg_iterations``
    and ``cg_tolerance`` control every linear solve.  ``use_lscm_init`` starts
    from an LSCM map; otherwise a Tutte embedding is used.
    """

    iterations: int = 10
    max_cg_iterations: int = 1000
    cg_tolerance: float = 1e-8
    use_lscm_init: bool = True


def _mesh_arrays(
    vertices: Sequence[Sequence[float]], faces: Iterable[Sequence[int]]
) -> Tuple[np.ndarray, np.ndarray]:
    positions = np.asarray(vertices, dtype=float).reshape(-1, 3)
    tris = np.asarray(list(faces), dtype=np.int64).reshape(-1, 3)
    if tris.size and (tris.min() < 0 or tris.max() >= len(positions)):
        raise ValueError("face references a vertex that does not exist")
    return positions, tris


def _cotangents(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
    """Cotangent of the angle at ``a`` in each triangle ``(a, b, c)``."""
    ab = b - a
    ac = c - a
    dot = np.einsum("ij,ij->i", ab, ac)
    cross_len = np.linalg.norm(np.cross(ab, ac), axis=1)
    degenerate = cross_len < 1e-10
    return np.where(degenerate, 0.0, dot / np.where(degenerate, 1.0, cross_len))


def closest_rotation(m) -> np.ndarray:
    """Return the rotation closest to the 2x2 matrix ``m``.

    Also accepts a stack of matrices of shape ``(..., 2, 2)``.  The result is
    ``U @ Vt`` from the singular value decomposition, with the second column
    of ``U`` negated where that product would be a reflection.
    """
    m = np.asarray(m, dtype=float)
    u, _, vt = np.linalg.svd(m)
    r = u @ vt
    reflected = np.linalg.det(r) < 0.0
    if np.any(reflected):
        u = u.copy()
        u[..., :, 1] = np.where(reflected[..., None], -u[..., :, 1], u[..., :, 1])
        r = u @ vt
    return r


def tutte_embedding(
    faces: Iterable[Sequence[int]], n_vertices: int, boundary: Sequence[int]
) -> np.ndarray:
    """Return an ``(n_vertices, 2)`` Tutte embedding.

    Boundary vertices are spread evenly over the unit circle in the order
    given; every interior vertex is placed at the average of its neighbours.
    """
    boundary = list(boundary)
    boundary_set = set(boundary)
    coords = np.zeros((n_vertices, 2))
    for i, v in enumerate(boundary):
        angle = 2.0 * math.pi * i / len(boundary)
        coords[v] = (math.cos(angle), math.sin(angle))

    interior = [v for v in range(n_vertices) if v not in boundary_set]
    if not interior:
        return coords

    neighbors: List[dict] = [{} for _ in range(n_vertices)]
    for face in faces:
        tri = [int(i) for i in face]
        for a, b in zip(tri, tri[1:] + tri[:1]):
            neighbors[a].setdefault(b, None)
            neighbors[b].setdefault(a, None)

    interior_index = {v: i for i, v in enumerate(interior)}
    n_interior = len(interior)
    triplets: List[Tuple[int, int, float]] = []
    rhs = np.zeros((n_interior, 2))

    for i, v in enumerate(interior):
        triplets.append((i, i, float(len(neighbors[v]))))
        for nb in neighbors[v]:
            if nb in boundary_set:
                rhs[i] += coords[nb]
            else:
                triplets.append((i, interior_index[nb], -1.0))

    matrix = CsrMatrix.from_triplets(n_interior, n_interior, triplets)
    u = conjugate_gradient(matrix, rhs[:, 0], None, 1000, 1e-8)
    w = conjugate_gradient(matrix, rhs[:, 1], None, 1000, 1e-8)
    coords[interior] = np.column_stack([u, w])
    return coords


def _edge_weights(positions: np.ndarray, tris: np.ndarray) -> np.ndarray:
    """Cotangent weight of each face edge ``(i, i+1)``, shape ``(faces, 3)``."""
    p0 = positions[tris[:, 0]]
    p1 = positions[tris[:, 1]]
    p2 = positions[tris[:, 2]]
    cot0 = _cotangents(p0, p1, p2)
    cot1 = _cotangents(p1, p0, p2)
    cot2 = _cotangents(p2, p0, p1)

    edges = np.concatenate([tris[:, [0, 1]], tris[:, [1, 2]], tris[:, [2, 0]]])
    edges = np.sort(edges, axis=1)
    cots = np.concatenate([cot2, cot0, cot1])
    _, inverse = np.unique(edges, axis=0, return_inverse=True)
    inverse = np.asarray(inverse).reshape(-1)
    sums = np.bincount(inverse, weights=cots)
    weights = np.maximum(0.5 * sums, _MIN_WEIGHT)
    return weights[inverse].reshape(3, -1).T


def _original_edges(positions: np.ndarray, tris: np.ndarray) -> np.ndarray:
    """Edge vectors of each triangle flattened into its own plane, ``(faces, 3, 2)``."""
    p0 = positions[tris[:, 0]]
    e1 = positions[tris[:, 1]] - p0
    e2 = positions[tris[:, 2]] - p0
    e1_len = np.linalg.norm(e1, axis=1)
    normal = np.cross(e1, e2)
    valid = (e1_len >= 1e-10) & (np.linalg.norm(normal, axis=1) >= 1e-10)

    edges = np.zeros((len(tris), 3, 2))
    if not np.any(valid):
        return edges
    e1, e2, e1_len, normal = e1[valid], e2[valid], e1_len[valid], normal[valid]
    x_axis = e1 / e1_len[:, None]
    y_dir = np.cross(normal, e1)
    y_axis = y_dir / np.linalg.norm(y_dir, axis=1)[:, None]

    q1 = np.column_stack([e1_len, np.zeros_like(e1_len)])
    q2 = np.column_stack(
        [np.einsum("ij,ij->i", e2, x_axis), np.einsum("ij,ij->i", e2, y_axis)]
    )
    edges[valid] = np.stack([q1, q2 - q1, -q2], axis=1)
    return edges


def _system_matrix(
    tris: np.ndarray, n: int, weights: np.ndarray, pinned: int
) -> CsrMatrix:
    v0 = tris.ravel()
    v1 = tris[:, [1, 2, 0]].ravel()
    w = weights.ravel()
    rows = np.concatenate([v0, v1, v0, v1])
    cols = np.concatenate([v0, v1, v1, v0])
    vals = np.concatenate([w, w, -w, -w])
    triplets = list(zip(rows.tolist(), cols.tolist(), vals.tolist()))
    triplets.append((pinned, pinned, _PENALTY))
    return CsrMatrix.from_triplets(n, n, triplets)


def arap(
    vertices: Sequence[Sequence[float]],
    faces: Iterable[Sequence[int]],
    options: ARAPOptions | None = None,
) -> UVMap:
    """Compute an as-rigid-as-possible parameterization.

    The result is normalized into ``[0, 1]`` keeping the aspect ratio.
    Raises :class:`~morsel.parameterize.lscm.EmptyMeshError` for a mesh
    without vertices, :class:`~morsel.parameterize.lscm.NoBoundaryError` for
    a closed mesh and :class:`~morsel.parameterize.sparse.ConvergenceError`
    if a linear solve fails.
    """
    options = options or ARAPOptions()
    positions, tris = _mesh_arrays(vertices, faces)
    n = len(positions)
    if n == 0:
        raise EmptyMeshError()

    boundary = find_boundary_vertices(tris.tolist(), n)
    if not boundary:
        raise NoBoundaryError()

    if options.use_lscm_init:
        init = lscm(
            positions,
            tris.tolist(),
            LSCMOptions(
                max_iterations=options.max_cg_iterations,
                tolerance=options.cg_tolerance,
            ),
        )
        uv = init.coords.copy()
    else:
        uv = tutte_embedding(tris.tolist(), n, boundary)

    weights = _edge_weights(positions, tris)
    pinned = boundary[0]
    system = _system_matrix(tris, n, weights, pinned)
    original = _original_edges(positions, tris)

    starts = tris
    ends = tris[:, [1, 2, 0]]

    for _ in range(options.iterations):
        current = uv[ends] - uv[starts]
        covariance = np.einsum("fia,fib->fab", current, original)
        rotations = closest_rotation(covariance)

        rotated = np.einsum("fab,fib->fia", rotations, original)
        weighted = weights[:, :, None] * rotated
        rhs = np.zeros((n, 2))
        np.add.at(rhs, starts.ravel(), weighted.reshape(-1, 2))
        np.add.at(rhs, ends.ravel(), -weighted.reshape(-1, 2))
        rhs[pinned] += _PENALTY * uv[pinned]

        u = conjugate_gradient(
            system, rhs[:, 0], None, options.max_cg_iterations, options.cg_tolerance
        )
        w = conjugate_gradient(
            system, rhs[:, 1], None, options.max_cg_iterations, options.cg_tolerance
        )
        uv = np.column_stack([u, w])

    uv_map = UVMap(uv)
    uv_map.normalize()
    return uv_map