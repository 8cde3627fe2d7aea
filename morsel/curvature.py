"""Discrete curvature of triangle meshes.

Gaussian curvature comes from the angle defect, mean curvature from the
cotangent Laplace-Beltrami operator, and both are normalized by the mixed
Voronoi area of each vertex.  Principal curvatures follow from
``k1, k2 = H +/- sqrt(H^2 - K)``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import numpy as np

_EPS = 1e-10
_PREV = (2, 0, 1)
_NEXT = (1, 2, 0)


@dataclass(frozen=True)
class CurvatureResult:
    """Per-vertex Gaussian, mean and principal curvatures."""

    gaussian_values: np.ndarray
    mean_values: np.ndarray
    principal_max: np.ndarray
    principal_min: np.ndarray

    def gaussian(self, v: int) -> float:
        """Gaussian curvature ``K`` at vertex ``v``."""
        return float(self.gaussian_values[v])

    def mean(self, v: int) -> float:
        """Signed mean curvature ``H`` at vertex ``v``."""
        return float(self.mean_values[v])

    def principal(self, v: int) -> Tuple[float, float]:
        """Principal curvatures ``(k1, k2)`` at vertex ``v``, with ``k1 >= k2``."""
        return float(self.principal_max[v]), float(self.principal_min[v])

    def __len__(self) -> int:
        return len(self.gaussian_values)

    def shape_index(self, v: int) -> float:
        """Scale-invariant shape index in ``[-1, 1]`` (0 at umbilical points)."""
        k1, k2 = self.principal(v)
        diff = k1 - k2
        if abs(diff) < _EPS:
            return 0.0
        return (2.0 / math.pi) * math.atan((k1 + k2) / diff)

    def curvedness(self, v: int) -> float:
        """Magnitude of curvature, ``sqrt((k1^2 + k2^2) / 2)``."""
        k1, k2 = self.principal(v)
        return math.sqrt((k1 * k1 + k2 * k2) / 2.0)


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


def _angles(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
    """Angle at ``a`` in each triangle ``(a, b, c)``."""
    with np.errstate(invalid="ignore", divide="ignore"):
        ab = b - a
        ac = c - a
        ab = ab / np.linalg.norm(ab, axis=1)[:, None]
        ac = ac / np.linalg.norm(ac, axis=1)[:, None]
        return np.arccos(np.clip(_row_dot(ab, ac), -1.0, 1.0))


def _cotangents(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
    """Cotangent of the angle at ``a`` in each triangle ``(a, b, c)``."""
    ab = b - a
    ac = c - a
    dot = _row_dot(ab, ac)
    cross_len = np.linalg.norm(np.cross(ab, ac), axis=1)
    degenerate = cross_len < _EPS
    return np.where(degenerate, 0.0, dot / np.where(degenerate, 1.0, cross_len))


class _Geometry:
    """Per-face quantities shared by the curvature computations."""

    def __init__(self, positions: np.ndarray, tris: np.ndarray) -> None:
        self.positions = positions
        self.tris = tris
        self.n = len(positions)
        corners = positions[tris] if len(tris) else np.zeros((0, 3, 3))
        self.corners = corners
        self.cross = np.cross(corners[:, 1] - corners[:, 0], corners[:, 2] - corners[:, 0])
        self.areas = 0.5 * np.linalg.norm(self.cross, axis=1)
        self.angles = np.stack(
            [
                _angles(corners[:, k], corners[:, (k + 1) % 3], corners[:, (k + 2) % 3])
                for k in range(3)
            ],
            axis=1,
        ) if len(tris) else np.zeros((0, 3))

    def _scatter(self, per_corner: np.ndarray) -> np.ndarray:
        out = np.zeros(self.n)
        np.add.at(out, self.tris.ravel(), per_corner.ravel())
        return out

    def mixed_areas(self) -> np.ndarray:
        """Mixed Voronoi area of every vertex (Meyer et al.)."""
        p = self.corners
        areas = self.areas
        obtuse = self.angles > math.pi / 2.0
        has_obtuse = obtuse.any(axis=1)
        first_obtuse = np.argmax(obtuse, axis=1)

        contrib = np.zeros((len(self.tris), 3))
        for k in range(3):
            pv = p[:, k]
            pprev = p[:, _PREV[k]]
            pnext = p[:, _NEXT[k]]
            pr = pnext - pv
            pq = pprev - pv
            voronoi = 0.125 * (
                _row_dot(pr, pr) * _cotangents(pprev, pv, pnext)
                + _row_dot(pq, pq) * _cotangents(pnext, pv, pprev)
            )
            obtuse_share = np.where(first_obtuse == k, areas / 2.0, areas / 4.0)
            contrib[:, k] = np.where(has_obtuse, obtuse_share, voronoi)

        area = self._scatter(contrib)
        fallback = self._scatter(np.repeat((areas / 3.0)[:, None], 3, axis=1))
        use_fallback = (area < _EPS) & (fallback > _EPS)
        return np.where(use_fallback, fallback, area)

    def angle_sums(self) -> np.ndarray:
        """Sum of the triangle angles at every vertex."""
        return self._scatter(self.angles)

    def vertex_normals(self) -> np.ndarray:
        """Area-weighted unit vertex normals (zero where undefined)."""
        normals = np.zeros((self.n, 3))
        for k in range(3):
            np.add.at(normals, self.tris[:, k], self.cross)
        lengths = np.linalg.norm(normals, axis=1)
        nonzero = lengths > 0.0
        return np.where(
            nonzero[:, None], normals / np.where(nonzero, lengths, 1.0)[:, None], 0.0
        )

    def laplacians(self) -> np.ndarray:
        """Half the cotangent-weighted sum of edge vectors around each vertex."""
        lap = np.zeros((self.n, 3))
        if len(self.tris) == 0:
            return lap
        p = self.corners
        starts = np.concatenate([self.tris[:, 0], self.tris[:, 1], self.tris[:, 2]])
        ends = np.concatenate([self.tris[:, 1], self.tris[:, 2], self.tris[:, 0]])
        cots = np.concatenate(
            [
                _cotangents(p[:, 2], p[:, 0], p[:, 1]),
                _cotangents(p[:, 0], p[:, 1], p[:, 2]),
                _cotangents(p[:, 1], p[:, 2], p[:, 0]),
            ]
        )
        edges = np.sort(np.column_stack([starts, ends]), axis=1)
        valid = edges[:, 0] != edges[:, 1]
        edges, cots = edges[valid], cots[valid]
        unique, inverse = np.unique(edges, axis=0, return_inverse=True)
        inverse = np.asarray(inverse).reshape(-1)
        weights = np.maximum(np.bincount(inverse, weights=cots, minlength=len(unique)), 0.0)

        a, b = unique[:, 0], unique[:, 1]
        delta = weights[:, None] * (self.positions[b] - self.positions[a])
        np.add.at(lap, a, delta)
        np.add.at(lap, b, -delta)
        return 0.5 * lap


def _gaussian(geom: _Geometry, areas: np.ndarray) -> np.ndarray:
    defect = 2.0 * math.pi - geom.angle_sums()
    ok = areas > _EPS
    return np.where(ok, defect / np.where(ok, areas, 1.0), 0.0)


def _mean(geom: _Geometry, areas: np.ndarray) -> np.ndarray:
    ok = areas > _EPS
    lap = geom.laplacians() / np.where(ok, areas, 1.0)[:, None]
    unsigned = np.linalg.norm(lap, axis=1) / 2.0
    sign = np.where(_row_dot(lap, geom.vertex_normals()) >= 0.0, 1.0, -1.0)
    return np.where(ok, sign * unsigned, 0.0)


def mixed_area(
    vertices: Sequence[Sequence[float]], faces: Iterable[Sequence[int]], v: int
) -> float:
    """Mixed Voronoi area of vertex ``v``."""
    positions, tris = _mesh_arrays(vertices, faces)
    if not 0 <= v < len(positions):
        raise IndexError(f"vertex {v} is outside the mesh")
    return float(_Geometry(positions, tris).mixed_areas()[v])


def gaussian_curvature(
    vertices: Sequence[Sequence[float]], faces: Iterable[Sequence[int]]
) -> List[float]:
    """Gaussian curvature of every vertex, ``(2 pi - sum of angles) / area``."""
    geom = _Geometry(*_mesh_arrays(vertices, faces))
    return _gaussian(geom, geom.mixed_areas()).tolist()


def mean_curvature(
    vertices: Sequence[Sequence[float]], faces: Iterable[Sequence[int]]
) -> List[float]:
    """Signed mean curvature of every vertex from the cotangent Laplacian.

    The sign is positive where the Laplacian points along the vertex normal.
    """
    geom = _Geometry(*_mesh_arrays(vertices, faces))
    return _mean(geom, geom.mixed_areas()).tolist()


def compute_curvature(
    vertices: Sequence[Sequence[float]], faces: Iterable[Sequence[int]]
) -> CurvatureResult:
    """Gaussian, mean and principal curvatures of every vertex.

    Where ``H^2 - K`` is negative, both principal curvatures are set to ``H``.
    """
    geom = _Geometry(*_mesh_arrays(vertices, faces))
    areas = geom.mixed_areas()
    k = _gaussian(geom, areas)
    h = _mean(geom, areas)
    disc = h * h - k
    root = np.sqrt(np.where(disc >= 0.0, disc, 0.0))
    return CurvatureResult(
        gaussian_values=k,
        mean_values=h,
        principal_max=h + root,
        principal_min=h - root,
    )