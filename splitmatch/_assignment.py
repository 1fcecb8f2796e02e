"""
_assignment.py
==============
Minimum-cost bipartite matching (linear assignment problem).

Public API
----------
  solve_assignment(cost_matrix, n_rows=None, n_cols=None, backend='best')
      -> (total_cost, row_to_col)

The solver is the dense Jonker-Volgenant shortest augmenting path
algorithm (``_kernels._lap_njit``).  It works on square int64 matrices
only; a rectangular problem is padded with a sentinel cost so that every
real row or column prefers a real partner.  Rows matched to a padded
column are reported as unassigned (-1).

Costs are integers.  Floating scores should be scaled and rounded by the
caller (see ``_clustering``), which is also where the solver's tie-break
tolerance comes from.
"""

import logging
from typing import List, Optional, Tuple

import numpy as np

from splitmatch._backend import select_kernel
from splitmatch._errors import InvalidInputError
from splitmatch._kernels import _lap_njit
from splitmatch._logging import log_assignment_problem

logger = logging.getLogger(__name__)

# Largest cost the solver is meant to see; leaves head-room for the
# potentials, which can grow to a multiple of the largest entry.
BIG = np.iinfo(np.int64).max // 4096


def solve_square(cost: np.ndarray, backend: str = "best") -> Tuple[int, np.ndarray]:
    """
    Solve a square int64 assignment problem.

    Parameters
    ----------
    cost : int64[dim, dim]
        C-contiguous cost matrix.
    backend : str
        'best', 'python' or 'cpu'.

    Returns
    -------
    total_cost : int
    rowsol     : int64[dim]   column assigned to each row.
    """
    dim = cost.shape[0]
    rowsol = np.full(dim, -1, dtype=np.int64)
    colsol = np.full(dim, -1, dtype=np.int64)
    kernel = select_kernel(_lap_njit, backend)
    total = kernel(cost, rowsol, colsol)
    return int(total), rowsol


def solve_assignment(
    cost_matrix,
    n_rows: Optional[int] = None,
    n_cols: Optional[int] = None,
    backend: str = "best",
) -> Tuple[int, List[int]]:
    """
    Find the row-to-column assignment of minimum total cost.

    Parameters
    ----------
    cost_matrix : array-like of int, shape (n_rows, n_cols)
        Costs.  Any integer dtype; converted to int64.
    n_rows, n_cols : int, optional
        Declared dimensions.  When given they must agree with the shape of
        *cost_matrix*.
    backend : str, default 'best'
        'best', 'python' or 'cpu'.

    Returns
    -------
    total_cost : int
        Sum of the costs of the real cells used by the assignment.
    row_to_col : list[int]
        Column assigned to each row, or -1 for a row left unassigned
        (only possible when ``n_rows > n_cols``).

    Raises
    ------
    InvalidInputError
        If the matrix is not two-dimensional, holds non-integer values, or
        disagrees with the declared dimensions.
    ValueError
        If *backend* is unknown.

    Examples
    --------
    >>> solve_assignment([[5, 1], [1, 5]])
    (2, [1, 0])
    >>> solve_assignment([[4, 1, 3]])
    (1, [1])
    """
    try:
        matrix = np.asarray(cost_matrix)
    except ValueError as e:
        raise InvalidInputError(
            f"Cost matrix rows must all have the same length: {e}"
        ) from e
    if matrix.ndim != 2:
        raise InvalidInputError(
            f"Cost matrix must be two-dimensional, got {matrix.ndim} dimension(s)."
        )

    shape_rows, shape_cols = matrix.shape
    if n_rows is None:
        n_rows = shape_rows
    if n_cols is None:
        n_cols = shape_cols
    if n_rows < 0 or n_cols < 0:
        raise InvalidInputError(
            f"Matrix dimensions must be non-negative, got {n_rows}x{n_cols}."
        )
    if (n_rows, n_cols) != (shape_rows, shape_cols):
        raise InvalidInputError(
            f"Declared dimensions {n_rows}x{n_cols} do not match the "
            f"{shape_rows}x{shape_cols} cost matrix."
        )

    if n_rows == 0 or n_cols == 0:
        return 0, [-1] * n_rows

    if not np.issubdtype(matrix.dtype, np.integer):
        raise InvalidInputError(
            f"Cost matrix must hold integers, got dtype {matrix.dtype}."
        )

    dim = max(n_rows, n_cols)
    log_assignment_problem(n_rows, n_cols, dim, backend)

    if n_rows == n_cols:
        square = np.ascontiguousarray(matrix, dtype=np.int64)
    else:
        square = np.full((dim, dim), BIG // dim, dtype=np.int64)
        square[:n_rows, :n_cols] = matrix

    _, rowsol = solve_square(square, backend)

    row_to_col = []
    total_cost = 0
    for i in range(n_rows):
        j = int(rowsol[i])
        if j < n_cols:
            row_to_col.append(j)
            total_cost += int(square[i, j])
        else:
            row_to_col.append(-1)
    return total_cost, row_to_col
