"""Geodesic distances with the heat method.

Heat is diffused from the sources for a short time.  The normalized gradient
of the heat gives the direction of increasing distance.  A Poisson equation
then recovers a smooth distance field from that direction field.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from morsel.geodesic.result import GeodesicResult
from morsel.parameterize.sparse import CsrMatrix, conjugate_gradient


@dataclass(frozen=True)
class HeatMethodOptions:
    """Options for :func:`heat_method` and :func:`heat_method_multiple`.

    ``time_step`` defaults to the squared mean edge length when ``None``.
    ``max_cg_iterations`` and ``cg_tolerance`` control both linear solves.
    """

    time_step: Optional[float] = None
    max_cg_iterations: int = 1000
    cg_tolerance: float = 1e-8


def _mesh_arrays(
    vertices: Sequence[Sequence[float]], faces: Iterable[Sequence[int]]
) -> Tuple[np.ndarray, np.ndarray]:
    positions = np.asarray(vertices, dtype=float).reshape(-1, 3)
    tris = np.asarray(list(faces), dtype=np.int64).reshape(-1, 3)
    if tris.size and (tris.min() < 0 or tris.max() >= len(positions)):
        raise ValueError("face references a vertex that does not exist")
    return positions, tris


def _row_dot(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.einsum("ij,ij->i", a, b)


def _cotangents(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
    """Cotangent of the angle at ``a`` in each triangle ``(a, b, c)``."""
    ab = b - a
    ac = c - a
    dot = _row_dot(ab, ac)
    cross_len = np.linalg.norm(np.cross(ab, ac), axis=1)
    degenerate = cross_len < 1e-10
    safe = np.where(degenerate, 1.0, cross_len)
    return np.where(degenerate, 0.0, dot / safe)


def _mean_edge_length(positions: np.ndarray, tris: np.ndarray) -> float:
    if len(tris) == 0:
        return 1.0
    edges = np.concatenate([tris[:, [0, 1]], tris[:, [1, 2]], tris[:, [2, 0]]])
    edges = np.sort(edges, axis=1)
    edges = edges[edges[:, 0] != edges[:, 1]]
    if len(edges) == 0:
        return 1.0
    edges = np.unique(edges, axis=0)
    lengths = np.linalg.norm(positions[edges[:, 1]] - positions[edges[:, 0]], axis=1)
    return float(lengths.mean())


def _face_geometry(positions: np.ndarray, tris: np.ndarray):
    p0 = positions[tris[:, 0]]
    p1 = positions[tris[:, 1]]
    p2 = positions[tris[:, 2]]
    cross = np.cross(p1 - p0, p2 - p0)
    cross_len = np.linalg.norm(cross, axis=1)
    areas = 0.5 * cross_len
    return p0, p1, p2, cross, cross_len, areas


def _mass_vector(n: int, tris: np.ndarray, areas: np.ndarray) -> np.ndarray:
    mass = np.zeros(n)
    share = areas / 3.0
    for k in range(3):
        np.add.at(mass, tris[:, k], share)
    return mass


def _build_matrices(
    n: int,
    tris: np.ndarray,
    p0: np.ndarray,
    p1: np.ndarray,
    p2: np.ndarray,
    mass: np.ndarray,
    t: float,
) -> Tuple[CsrMatrix, CsrMatrix]:
    """Return the cotangent Laplacian ``L`` and the heat matrix ``M + t L``."""
    cot0 = np.maximum(_cotangents(p0, p1, p2), 1e-8)
    cot1 = np.maximum(_cotangents(p1, p0, p2), 1e-8)
    cot2 = np.maximum(_cotangents(p2, p0, p1), 1e-8)

    i = np.concatenate([tris[:, 0], tris[:, 1], tris[:, 0]])
    j = np.concatenate([tris[:, 1], tris[:, 2], tris[:, 2]])
    w = 0.5 * np.concatenate([cot2, cot0, cot1])

    rows = np.concatenate([i, j, i, j])
    cols = np.concatenate([j, i, i, j])
    lap_vals = np.concatenate([-w, -w, w, w])

    laplacian = CsrMatrix.from_triplets(
        n, n, zip(rows.tolist(), cols.tolist(), lap_vals.tolist())
    )

    diag = np.arange(n)
    heat_rows = np.concatenate([diag, rows])
    heat_cols = np.concatenate([diag, cols])
    heat_vals = np.concatenate([mass, t * lap_vals])
    heat_matrix = CsrMatrix.from_triplets(
        n, n, zip(heat_rows.tolist(), heat_cols.tolist(), heat_vals.tolist())
    )
    return laplacian, heat_matrix


def _normalized_gradient(
    tris: np.ndarray,
    p0: np.ndarray,
    p1: np.ndarray,
    p2: np.ndarray,
    cross: np.ndarray,
    cross_len: np.ndarray,
    areas: np.ndarray,
    u: np.ndarray,
) -> np.ndarray:
    """Per-face unit vector pointing against the heat gradient."""
    valid = areas > 1e-10
    safe_len = np.where(valid, cross_len, 1.0)[:, None]
    normals = np.where(valid[:, None], cross / safe_len, 0.0)

    e0 = p2 - p1
    e1 = p0 - p2
    e2 = p1 - p0
    u0 = u[tris[:, 0]][:, None]
    u1 = u[tris[:, 1]][:, None]
    u2 = u[tris[:, 2]][:, None]

    summed = u0 * np.cross(normals, e0) + u1 * np.cross(normals, e1) + u2 * np.cross(normals, e2)
    safe_area = np.where(valid, areas, 1.0)[:, None]
    grad = np.where(valid[:, None], summed / (2.0 * safe_area), 0.0)

    grad_norm = np.linalg.norm(grad, axis=1)
    nonzero = grad_norm > 1e-10
    safe_norm = np.where(nonzero, grad_norm, 1.0)[:, None]
    return np.where(nonzero[:, None], -grad / safe_norm, 0.0)


def _divergence(
    n: int,
    tris: np.ndarray,
    p0: np.ndarray,
    p1: np.ndarray,
    p2: np.ndarray,
    field: np.ndarray,
) -> np.ndarray:
    """Integrated divergence of a per-face vector field at each vertex."""
    e01 = p1 - p0
    e12 = p2 - p1
    e20 = p0 - p2

    cot0 = _cotangents(p0, p1, p2)
    cot1 = _cotangents(p1, p0, p2)
    cot2 = _cotangents(p2, p0, p1)

    d01 = _row_dot(e01, field)
    d12 = _row_dot(e12, field)
    d20 = _row_dot(e20, field)

    div = np.zeros(n)
    np.add.at(div, tris[:, 0], 0.5 * (cot2 * d01 - cot1 * d20))
    np.add.at(div, tris[:, 1], 0.5 * (cot0 * d12 - cot2 * d01))
    np.add.at(div, tris[:, 2], 0.5 * (cot1 * d20 - cot0 * d12))
    return div


def heat_method(
    vertices: Sequence[Sequence[float]],
    faces: Iterable[Sequence[int]],
    source: int,
    options: Optional[HeatMethodOptions] = None,
) -> GeodesicResult:
    """Compute approximate geodesic distances from one source vertex."""
    return heat_method_multiple(vertices, faces, [source], options)


def heat_method_multiple(
    vertices: Sequence[Sequence[float]],
    faces: Iterable[Sequence[int]],
    sources: Iterable[int],
    options: Optional[HeatMethodOptions] = None,
) -> GeodesicResult:
    """Compute approximate geodesic distances to the nearest of several sources.

    Distances are shifted so that the smallest is zero.  Raises ``IndexError``
    for a source outside the mesh and
    :class:`~morsel.parameterize.sparse.ConvergenceError` if a linear solve
    does not converge.
    """
    options = options or HeatMethodOptions()
    positions, tris = _mesh_arrays(vertices, faces)
    n = len(positions)
    sources = list(sources)

    if n == 0 or not sources:
        return GeodesicResult([float("inf")] * n)

    for s in sources:
        if not 0 <= s < n:
            raise IndexError(f"source vertex {s} is outside the mesh")

    h = _mean_edge_length(positions, tris)
    t = options.time_step if options.time_step is not None else h * h

    p0, p1, p2, cross, cross_len, areas = _face_geometry(positions, tris)
    mass = _mass_vector(n, tris, areas)
    laplacian, heat_matrix = _build_matrices(n, tris, p0, p1, p2, mass, t)

    delta = np.zeros(n)
    delta[sources] = 1.0
    u = conjugate_gradient(
        heat_matrix, delta, None, options.max_cg_iterations, options.cg_tolerance
    )

    field = _normalized_gradient(tris, p0, p1, p2, cross, cross_len, areas, u)
    div = _divergence(n, tris, p0, p1, p2, field)

    phi = conjugate_gradient(
        laplacian, -div, None, options.max_cg_iterations, options.cg_tolerance
    )
    distances = phi - phi.min()
    return GeodesicResult(distances.tolist())