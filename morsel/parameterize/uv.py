"""Storage for per-vertex UV coordinates."""

from __future__ import annotations

from typing import Iterable, Iterator, Optional, Sequence, Tuple

import numpy as np

UV = Tuple[float, float]


class UVMap:
    """UV coordinates for the vertices of a mesh, indexed by vertex number.

    The coordinates are held in :attr:`coords`, an ``(n, 2)`` float array.
    """

    __slots__ = ("coords",)

    def __init__(self, coords: Iterable[Sequence[float]]) -> None:
        self.coords = np.array(list(coords) if not isinstance(coords, np.ndarray) else coords,
                               dtype=float).reshape(-1, 2)

    @classmethod
    def zeros(cls, n: int) -> "UVMap":
        """Return a map of ``n`` vertices, all at the origin."""
        return cls(np.zeros((n, 2)))

    def __getitem__(self, v: int) -> UV:
        u, w = self.coords[v]
        return float(u), float(w)

    def __setitem__(self, v: int, uv: Sequence[float]) -> None:
        self.coords[v] = uv

    def __len__(self) -> int:
        return len(self.coords)

    def __iter__(self) -> Iterator[UV]:
        for u, w in self.coords:
            yield float(u), float(w)

    def items(self) -> Iterator[Tuple[int, UV]]:
        """Yield ``(vertex, (u, v))`` pairs."""
        return enumerate(self)

    def bounding_box(self) -> Optional[Tuple[UV, UV]]:
        """Return ``((min_u, min_v), (max_u, max_v))``, or ``None`` if empty."""
        if len(self.coords) == 0:
            return None
        lo = self.coords.min(axis=0)
        hi = self.coords.max(axis=0)
        return (float(lo[0]), float(lo[1])), (float(hi[0]), float(hi[1]))

    def normalize(self) -> None:
        """Scale uniformly into ``[0, 1]``, keeping the aspect ratio."""
        box = self.bounding_box()
        if box is None:
            return
        lo, hi = np.array(box[0]), np.array(box[1])
        scale = float(np.max(hi - lo))
        if scale > 1e-10:
            self.coords = (self.coords - lo) / scale

    def normalize_stretch(self) -> None:
        """Scale each axis separately to fill ``[0, 1] x [0, 1]``."""
        box = self.bounding_box()
        if box is None:
            return
        lo, hi = np.array(box[0]), np.array(box[1])
        extent = hi - lo
        if extent[0] > 1e-10 and extent[1] > 1e-10:
            self.coords = (self.coords - lo) / extent

    def total_area(self, faces: Iterable[Sequence[int]]) -> float:
        """Return the summed unsigned area of the triangles ``faces`` in UV space."""
        tris = np.asarray(list(faces), dtype=np.int64).reshape(-1, 3)
        if len(tris) == 0:
            return 0.0
        p0 = self.coords[tris[:, 0]]
        d1 = self.coords[tris[:, 1]] - p0
        d2 = self.coords[tris[:, 2]] - p0
        cross = d1[:, 0] * d2[:, 1] - d2[:, 0] * d1[:, 1]
        return float(np.sum(0.5 * np.abs(cross)))

    def __repr__(self) -> str:
        return f"UVMap({len(self)} vertices)"