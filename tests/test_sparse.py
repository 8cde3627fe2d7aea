import numpy as np
import pytest

from morsel.parameterize.sparse import ConvergenceError, CsrMatrix, conjugate_gradient

SMALL = [(0, 0, 4.0), (0, 1, 1.0), (1, 0, 1.0), (1, 1, 3.0)]


def test_csr_from_triplets():
    a = CsrMatrix.from_triplets(2, 2, SMALL)
    assert a.nrows == 2
    assert a.ncols == 2
    assert a.nnz == 4


def test_csr_from_triplets_with_duplicates():
    triplets = [(0, 0, 2.0), (0, 0, 2.0), (0, 1, 1.0), (1, 0, 1.0), (1, 1, 3.0)]
    a = CsrMatrix.from_triplets(2, 2, triplets)
    y = a.mul_vec(np.array([1.0, 0.0]))
    assert abs(y[0] - 4.0) < 1e-10
    assert abs(y[1] - 1.0) < 1e-10
    assert a.nnz == 4


def test_csr_mul_vec():
    a = CsrMatrix.from_triplets(2, 2, SMALL)
    y = a.mul_vec(np.array([1.0, 1.0]))
    assert abs(y[0] - 5.0) < 1e-10
    assert abs(y[1] - 4.0) < 1e-10


def test_matmul_matches_mul_vec():
    a = CsrMatrix.from_triplets(2, 2, SMALL)
    x = np.array([0.3, -1.2])
    assert np.allclose(a @ x, a.mul_vec(x))


def test_unordered_triplets_and_empty_rows():
    a = CsrMatrix.from_triplets(3, 3, [(2, 2, 5.0), (0, 1, 2.0)])
    y = a @ np.array([1.0, 1.0, 1.0])
    assert np.allclose(y, [2.0, 0.0, 5.0])


def test_empty_triplets():
    a = CsrMatrix.from_triplets(3, 3, [])
    assert a.nnz == 0
    assert np.allclose(a @ np.ones(3), np.zeros(3))


def test_out_of_range_triplet_raises():
    with pytest.raises(ValueError):
        CsrMatrix.from_triplets(2, 2, [(2, 0, 1.0)])


def test_mul_vec_dimension_mismatch():
    a = CsrMatrix.from_triplets(2, 2, SMALL)
    with pytest.raises(ValueError):
        a.mul_vec(np.ones(3))


def test_cg_simple():
    a = CsrMatrix.from_triplets(2, 2, SMALL)
    b = np.array([1.0, 2.0])
    x = conjugate_gradient(a, b, None, 100, 1e-10)
    assert np.linalg.norm(a @ x - b) < 1e-8
    assert abs(x[0] - 1.0 / 11.0) < 1e-8
    assert abs(x[1] - 7.0 / 11.0) < 1e-8


def test_cg_larger_system():
    triplets = [
        (0, 0, 10.0), (0, 1, 1.0), (0, 2, 2.0),
        (1, 0, 1.0), (1, 1, 10.0), (1, 2, 1.0),
        (2, 0, 2.0), (2, 1, 1.0), (2, 2, 10.0), (2, 3, 1.0),
        (3, 2, 1.0), (3, 3, 10.0),
    ]
    a = CsrMatrix.from_triplets(4, 4, triplets)
    b = np.array([1.0, 2.0, 3.0, 4.0])
    x = conjugate_gradient(a, b, None, 100, 1e-10)
    assert np.linalg.norm(a @ x - b) < 1e-8


def test_cg_with_initial_guess():
    a = CsrMatrix.from_triplets(2, 2, SMALL)
    b = np.array([1.0, 2.0])
    x0 = np.array([0.1, 0.6])
    x = conjugate_gradient(a, b, x0, 100, 1e-10)
    assert np.linalg.norm(a @ x - b) < 1e-8
    assert np.allclose(x0, [0.1, 0.6])


def test_cg_zero_rhs_returns_initial_guess():
    a = CsrMatrix.from_triplets(2, 2, SMALL)
    x = conjugate_gradient(a, np.zeros(2), None, 100, 1e-10)
    assert np.allclose(x, [0.0, 0.0])


def test_cg_no_iterations_raises():
    a = CsrMatrix.from_triplets(2, 2, SMALL)
    with pytest.raises(ConvergenceError) as info:
        conjugate_gradient(a, np.array([1.0, 2.0]), None, 0, 1e-10)
    assert info.value.iterations == 0


def test_cg_non_square_raises():
    a = CsrMatrix.from_triplets(2, 3, [(0, 0, 1.0)])
    with pytest.raises(ValueError):
        conjugate_gradient(a, np.ones(2), None, 10, 1e-10)