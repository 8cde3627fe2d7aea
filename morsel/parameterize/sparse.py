"""A compressed sparse row matrix and a conjugate gradient solver."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

import numpy as np


class ConvergenceError(RuntimeError):
    """Raised when an iterative solver fails to converge."""

    def __init__(self, iterations: int) -> None:
        super().__init__(f"solver did not converge within {iterations} iterations")
        self.iterations = iterations


class CsrMatrix:
    """Sparse matrix in compressed sparse row form."""

    __slots__ = ("_rows", "_cols", "_row_ptr", "_col_idx", "_values", "_row_of_entry")

    def __init__(
        self,
        rows: int,
        cols: int,
        row_ptr: np.ndarray,
        col_idx: np.ndarray,
        values: np.ndarray,
    ) -> None:
        self._rows = int(rows)
        self._cols = int(cols)
        self._row_ptr = np.asarray(row_ptr, dtype=np.int64)
        self._col_idx = np.asarray(col_idx, dtype=np.int64)
        self._values = np.asarray(values, dtype=float)
        self._row_of_entry = np.repeat(
            np.arange(self._rows, dtype=np.int64), np.diff(self._row_ptr)
        )

    @classmethod
    def from_triplets(
        cls, rows: int, cols: int, triplets: Iterable[Tuple[int, int, float]]
    ) -> "CsrMatrix":
        """Build a matrix from ``(row, col, value)`` triplets.

        Entries at the same position are summed.
        """
        entries = list(triplets)
        if not entries:
            return cls(
                rows,
                cols,
                np.zeros(rows + 1, dtype=np.int64),
                np.empty(0, dtype=np.int64),
                np.empty(0, dtype=float),
            )

        r = np.fromiter((e[0] for e in entries), dtype=np.int64, count=len(entries))
        c = np.fromiter((e[1] for e in entries), dtype=np.int64, count=len(entries))
        v = np.fromiter((e[2] for e in entries), dtype=float, count=len(entries))

        if r.min() < 0 or r.max() >= rows or c.min() < 0 or c.max() >= cols:
            raise ValueError("triplet index outside the matrix dimensions")

        order = np.lexsort((c, r))
        r, c, v = r[order], c[order], v[order]

        is_new = np.ones(len(r), dtype=bool)
        is_new[1:] = (r[1:] != r[:-1]) | (c[1:] != c[:-1])
        starts = np.flatnonzero(is_new)

        values = np.add.reduceat(v, starts)
        col_idx = c[starts]
        counts = np.bincount(r[starts], minlength=rows)
        row_ptr = np.concatenate(([0], np.cumsum(counts)))
        return cls(rows, cols, row_ptr, col_idx, values)

    @property
    def nrows(self) -> int:
        """Number of rows."""
        return self._rows

    @property
    def ncols(self) -> int:
        """Number of columns."""
        return self._cols

    @property
    def nnz(self) -> int:
        """Number of stored entries."""
        return len(self._values)

    def mul_vec(self, x) -> np.ndarray:
        """Return the product of this matrix with vector ``x``."""
        x = np.asarray(x, dtype=float)
        if x.shape != (self._cols,):
            raise ValueError("vector dimension mismatch")
        products = self._values * x[self._col_idx]
        return np.bincount(self._row_of_entry, weights=products, minlength=self._rows).astype(
            float
        )

    def __matmul__(self, x) -> np.ndarray:
        return self.mul_vec(x)

    def __repr__(self) -> str:
        return f"CsrMatrix(rows={self._rows}, cols={self._cols}, nnz={self.nnz})"


def conjugate_gradient(
    a: CsrMatrix,
    b,
    x0: Optional[np.ndarray] = None,
    max_iter: int = 1000,
    tolerance: float = 1e-8,
) -> np.ndarray:
    """Solve ``a @ x = b`` for a symmetric positive definite ``a``.

    Convergence is judged on the relative residual norm.  Raises
    :class:`ConvergenceError` if it is not reached within ``max_iter`` steps.
    """
    b = np.asarray(b, dtype=float)
    n = len(b)
    if a.nrows != n:
        raise ValueError("matrix-vector dimension mismatch")
    if a.ncols != n:
        raise ValueError("matrix must be square")

    x = np.zeros(n) if x0 is None else np.array(x0, dtype=float)

    r = b - a @ x
    b_norm = float(np.linalg.norm(b))
    if b_norm < 1e-15:
        return x

    r_norm_sq = float(r @ r)
    if np.sqrt(r_norm_sq) / b_norm < tolerance:
        return x

    p = r.copy()
    for _ in range(max_iter):
        ap = a @ p
        p_ap = float(p @ ap)
        if abs(p_ap) < 1e-15:
            break
        alpha = r_norm_sq / p_ap
        x += alpha * p
        r -= alpha * ap

        new_r_norm_sq = float(r @ r)
        if np.sqrt(new_r_norm_sq) / b_norm < tolerance:
            return x

        beta = new_r_norm_sq / r_norm_sq
        p = r + beta * p
        r_norm_sq = new_r_norm_sq

    raise ConvergenceError(max_iter)