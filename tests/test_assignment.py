"""
tests/test_assignment.py
========================
Tests for the linear assignment solver (_assignment.py, _kernels._lap_njit).

Every optimum is checked against brute-force enumeration on small random
matrices, on both backends.
"""

import itertools
import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from splitmatch._assignment import BIG, solve_assignment, solve_square
from splitmatch._errors import InvalidInputError

BACKENDS = ["python", "cpu"]


def brute_force_cost(matrix: np.ndarray) -> int:
    """Minimum total cost over all injective row/column pairings."""
    n_rows, n_cols = matrix.shape
    if n_rows <= n_cols:
        return min(
            sum(int(matrix[i, cols[i]]) for i in range(n_rows))
            for cols in itertools.permutations(range(n_cols), n_rows)
        )
    return min(
        sum(int(matrix[rows[j], j]) for j in range(n_cols))
        for rows in itertools.permutations(range(n_rows), n_cols)
    )


def assignment_cost(matrix: np.ndarray, row_to_col) -> int:
    return sum(int(matrix[i, j]) for i, j in enumerate(row_to_col) if j >= 0)


# ======================================================================== #
# 1. Known answers                                                          #
# ======================================================================== #


@pytest.mark.parametrize("backend", BACKENDS)
class TestKnownAnswers:
    def test_diagonal_preferred(self, backend):
        assert solve_assignment([[1, 2], [2, 1]], backend=backend) == (2, [0, 1])

    def test_anti_diagonal_preferred(self, backend):
        assert solve_assignment([[5, 1], [1, 5]], backend=backend) == (2, [1, 0])

    def test_two_by_two_tie(self, backend):
        # Both assignments cost 5.
        cost, mapping = solve_assignment([[1, 2], [3, 4]], backend=backend)
        assert cost == 5
        assert sorted(mapping) == [0, 1]

    def test_one_by_one(self, backend):
        assert solve_assignment([[7]], backend=backend) == (7, [0])

    def test_three_by_three(self, backend):
        matrix = [[4, 1, 3], [2, 0, 5], [3, 2, 2]]
        assert solve_assignment(matrix, backend=backend) == (5, [1, 0, 2])

    def test_declared_dimensions(self, backend):
        cost, mapping = solve_assignment(
            [[1, 2, 3], [3, 2, 1]], n_rows=2, n_cols=3, backend=backend
        )
        assert (cost, mapping) == (2, [0, 2])

    def test_solve_square(self, backend):
        cost = np.array([[4, 1, 3], [2, 0, 5], [3, 2, 2]], dtype=np.int64)
        total, rowsol = solve_square(cost, backend)
        assert total == 5
        assert rowsol.tolist() == [1, 0, 2]


# ======================================================================== #
# 2. Brute-force verification                                               #
# ======================================================================== #


@pytest.mark.parametrize("backend", BACKENDS)
class TestBruteForce:
    @pytest.mark.parametrize("dim", [2, 3, 4, 5, 6])
    @pytest.mark.parametrize("seed", range(8))
    def test_square_random(self, backend, dim, seed):
        rng = np.random.default_rng(1000 * dim + seed)
        matrix = rng.integers(0, 100, size=(dim, dim))
        cost, mapping = solve_assignment(matrix, backend=backend)
        assert sorted(mapping) == list(range(dim))
        assert cost == assignment_cost(matrix, mapping)
        assert cost == brute_force_cost(matrix)

    @pytest.mark.parametrize("seed", range(8))
    def test_square_many_ties(self, backend, seed):
        rng = np.random.default_rng(seed)
        matrix = rng.integers(0, 3, size=(5, 5))
        cost, _ = solve_assignment(matrix, backend=backend)
        assert cost == brute_force_cost(matrix)

    @pytest.mark.parametrize("shape", [(2, 3), (2, 5), (3, 6), (1, 4)])
    @pytest.mark.parametrize("seed", range(4))
    def test_wide_random(self, backend, shape, seed):
        rng = np.random.default_rng(seed)
        matrix = rng.integers(0, 100, size=shape)
        cost, mapping = solve_assignment(matrix, backend=backend)
        assert -1 not in mapping
        assert len(set(mapping)) == shape[0]
        assert cost == assignment_cost(matrix, mapping)
        assert cost == brute_force_cost(matrix)

    @pytest.mark.parametrize("shape", [(3, 2), (5, 2), (6, 3), (4, 1)])
    @pytest.mark.parametrize("seed", range(4))
    def test_tall_random(self, backend, shape, seed):
        rng = np.random.default_rng(seed)
        matrix = rng.integers(0, 100, size=shape)
        cost, mapping = solve_assignment(matrix, backend=backend)
        assigned = [j for j in mapping if j >= 0]
        assert len(mapping) == shape[0]
        assert mapping.count(-1) == shape[0] - shape[1]
        assert sorted(assigned) == list(range(shape[1]))
        assert cost == assignment_cost(matrix, mapping)
        assert cost == brute_force_cost(matrix)


# ======================================================================== #
# 3. Edge cases and validation                                              #
# ======================================================================== #


class TestEdgeCases:
    def test_empty_matrix(self):
        assert solve_assignment(np.zeros((0, 0), dtype=np.int64)) == (0, [])

    def test_no_columns(self):
        assert solve_assignment(np.zeros((3, 0), dtype=np.int64)) == (0, [-1, -1, -1])

    def test_no_rows(self):
        assert solve_assignment(np.zeros((0, 4), dtype=np.int64)) == (0, [])

    def test_padding_never_reported(self):
        matrix = np.array([[BIG // 4, 0], [BIG // 4, 0], [0, BIG // 4]])
        cost, mapping = solve_assignment(matrix)
        assert mapping.count(-1) == 1
        assert cost == 0

    def test_accepts_other_integer_dtypes(self):
        matrix = np.array([[1, 2], [2, 1]], dtype=np.int16)
        assert solve_assignment(matrix) == (2, [0, 1])

    def test_input_not_modified(self):
        matrix = np.array([[4, 1, 3], [2, 0, 5], [3, 2, 2]], dtype=np.int64)
        before = matrix.copy()
        solve_assignment(matrix)
        np.testing.assert_array_equal(matrix, before)

    def test_identical_rows(self):
        matrix = np.full((6, 6), 10**12, dtype=np.int64)
        cost, mapping = solve_assignment(matrix)
        assert cost == 6 * 10**12
        assert sorted(mapping) == list(range(6))


class TestValidation:
    def test_one_dimensional(self):
        with pytest.raises(InvalidInputError):
            solve_assignment([1, 2, 3])

    def test_three_dimensional(self):
        with pytest.raises(InvalidInputError):
            solve_assignment(np.zeros((2, 2, 2), dtype=np.int64))

    def test_float_matrix(self):
        with pytest.raises(InvalidInputError):
            solve_assignment([[1.5, 2.0], [0.5, 1.0]])

    def test_declared_rows_mismatch(self):
        with pytest.raises(InvalidInputError):
            solve_assignment([[1, 2], [3, 4]], n_rows=3)

    def test_negative_dimension(self):
        with pytest.raises(InvalidInputError):
            solve_assignment([[1, 2], [3, 4]], n_cols=-1)

    @pytest.mark.parametrize("matrix", [[[1, 2], [3]], [[1], [2, 3], [4, 5, 6]]])
    def test_ragged_rows(self, matrix):
        with pytest.raises(InvalidInputError):
            solve_assignment(matrix)

    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            solve_assignment([1, 2, 3])

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            solve_assignment([[1, 2], [3, 4]], backend="gpu")


@pytest.mark.large_scale
@pytest.mark.parametrize("dim", [150, 400])
def test_large_planted_optimum(dim):
    # Positive costs everywhere except one zero per row along a random
    # permutation: that permutation is the unique optimum.
    rng = np.random.default_rng(dim)
    matrix = rng.integers(1, 10**9, size=(dim, dim), dtype=np.int64)
    perm = rng.permutation(dim)
    matrix[np.arange(dim), perm] = 0
    cost, mapping = solve_assignment(matrix, backend="cpu")
    assert cost == 0
    assert mapping == perm.tolist()
