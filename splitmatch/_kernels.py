"""
_kernels.py
===========
numba-compiled kernels for split matching.

This module contains ONLY numba-accelerated code and should not import other
project modules to avoid import-time complications.  Every kernel takes
numpy arrays and plain integers only; callers in ``_assignment`` and
``_clustering`` prepare the arrays and pick the backend (the compiled
dispatcher, or its ``py_func`` for the 'python' backend).

Exported Functions
------------------
_lap_njit : njit function
    Jonker-Volgenant shortest augmenting path solver for a dense square
    int64 cost matrix.

_split_cost_njit : njit function
    Scaled mutual-clustering-information cost of every pair of splits.

Notes
-----
- cache=True persists compiled binary to disk for faster subsequent runs
- Costs are int64 throughout; callers scale floating scores beforehand
"""

import numpy as np
from numba import njit

_INT64_MAX = 9223372036854775807

# Below this magnitude two reduced costs are compared exactly; above it a
# gap of up to 8 units is treated as a tie.  Absorbs the rounding noise of
# the float -> int64 cost scaling.
ROUND_PRECISION = 2048 * 2048


# ======================================================================== #
# Linear assignment                                                         #
# ======================================================================== #


@njit(cache=True)
def _lap_njit(cost, rowsol, colsol):
    """
    Minimum-cost perfect assignment of a square cost matrix.

    Parameters
    ----------
    cost   : int64[dim, dim]
        Cost matrix (read only).
    rowsol : int64[dim]
        Output: column assigned to each row.
    colsol : int64[dim]
        Output: row assigned to each column.

    Returns
    -------
    int64
        Total cost of the assignment.

    Notes
    -----
    Phases: column reduction, reduction transfer, two passes of augmenting
    row reduction, then a Dijkstra-style shortest augmenting path for every
    row still free.  ``v`` holds the column potentials; reduced costs are
    ``cost[i, j] - v[j]``.
    """
    dim = cost.shape[0]
    if dim == 0:
        return 0
    if dim == 1:
        rowsol[0] = 0
        colsol[0] = 0
        return cost[0, 0]

    v = np.zeros(dim, dtype=np.int64)
    matches = np.zeros(dim, dtype=np.int64)
    free_rows = np.zeros(dim, dtype=np.int64)
    col_list = np.zeros(dim, dtype=np.int64)
    d = np.zeros(dim, dtype=np.int64)
    pred = np.zeros(dim, dtype=np.int64)

    for j in range(dim):
        colsol[j] = -1

    # ── Column reduction ────────────────────────────────────────────────
    for j in range(dim - 1, -1, -1):
        min_cost = cost[0, j]
        imin = 0
        for i in range(1, dim):
            if cost[i, j] < min_cost:
                min_cost = cost[i, j]
                imin = i
        v[j] = min_cost
        matches[imin] += 1
        if matches[imin] == 1:
            rowsol[imin] = j
            colsol[j] = imin
        elif v[j] < v[rowsol[imin]]:
            j1 = rowsol[imin]
            rowsol[imin] = j
            colsol[j] = imin
            colsol[j1] = -1
        else:
            colsol[j] = -1

    # ── Reduction transfer ──────────────────────────────────────────────
    n_free = 0
    for i in range(dim):
        if matches[i] == 0:
            free_rows[n_free] = i
            n_free += 1
        elif matches[i] == 1:
            j1 = rowsol[i]
            min_cost = _INT64_MAX
            for j in range(dim):
                if j != j1:
                    h = cost[i, j] - v[j]
                    if h < min_cost:
                        min_cost = h
            v[j1] -= min_cost

    # ── Augmenting row reduction (two passes) ───────────────────────────
    for _ in range(2):
        prev_n_free = n_free
        n_free = 0
        k = 0
        while k < prev_n_free:
            i = free_rows[k]
            k += 1

            umin = cost[i, 0] - v[0]
            usubmin = _INT64_MAX
            j1 = 0
            j2 = 0
            for j in range(1, dim):
                h = cost[i, j] - v[j]
                if h < usubmin:
                    if h >= umin:
                        usubmin = h
                        j2 = j
                    else:
                        usubmin = umin
                        umin = h
                        j2 = j1
                        j1 = j

            i0 = colsol[j1]
            if umin > ROUND_PRECISION:
                gap = umin + 8 < usubmin
            else:
                gap = umin < usubmin

            if gap:
                v[j1] -= usubmin - umin
            elif i0 > -1:
                j1 = j2
                i0 = colsol[j2]

            rowsol[i] = j1
            colsol[j1] = i

            if i0 > -1:
                if gap:
                    k -= 1
                    free_rows[k] = i0
                else:
                    free_rows[n_free] = i0
                    n_free += 1

    # ── Augment solution for each free row ──────────────────────────────
    for f in range(n_free):
        free_row = free_rows[f]

        for j in range(dim):
            d[j] = cost[free_row, j] - v[j]
            pred[j] = free_row
            col_list[j] = j

        low = 0
        up = 0
        last = 0
        end_of_path = 0
        min_d = 0
        found = False

        while not found:
            if up == low:
                # Next frontier: every column at the current minimum distance.
                last = low - 1
                min_d = d[col_list[up]]
                up += 1
                for k in range(up, dim):
                    j = col_list[k]
                    h = d[j]
                    if h <= min_d:
                        if h < min_d:
                            up = low
                            min_d = h
                        col_list[k] = col_list[up]
                        col_list[up] = j
                        up += 1

                for k in range(low, up):
                    if colsol[col_list[k]] < 0:
                        end_of_path = col_list[k]
                        found = True
                        break

            if not found:
                # Scan one frontier column and relax the rest.
                j1 = col_list[low]
                low += 1
                i = colsol[j1]
                h = cost[i, j1] - v[j1] - min_d

                for k in range(up, dim):
                    j = col_list[k]
                    v2 = cost[i, j] - v[j] - h
                    if v2 < d[j]:
                        pred[j] = i
                        if v2 == min_d:
                            if colsol[j] < 0:
                                end_of_path = j
                                found = True
                                break
                            col_list[k] = col_list[up]
                            col_list[up] = j
                            up += 1
                        d[j] = v2

        # Update potentials of the columns fixed before the last frontier.
        for k in range(last + 1):
            j1 = col_list[k]
            v[j1] += d[j1] - min_d

        # Flip assignments along the alternating path.
        i = free_row
        while True:
            i = pred[end_of_path]
            colsol[end_of_path] = i
            j1 = end_of_path
            end_of_path = rowsol[i]
            rowsol[i] = j1
            if i == free_row:
                break

    total = 0
    for i in range(dim):
        total += cost[i, rowsol[i]]
    return total


# ======================================================================== #
# Clustering information costs                                              #
# ======================================================================== #


@njit(cache=True)
def _split_cost_njit(
    leaf_a, leaf_b, overlap, n_tips, log2_table, max_score, cost_out
):
    """
    Fill *cost_out* with ``max_score`` minus the scaled mutual clustering
    information of every pair of splits.

    Parameters
    ----------
    leaf_a    : int64[n_a]        Tips inside each split of the first list.
    leaf_b    : int64[n_b]        Tips inside each split of the second list.
    overlap   : int64[n_a, n_b]   Tips inside both splits of each pair.
    n_tips    : int               Size of the tip universe (> 0).
    log2_table: float64[k]        log2(i) for 0 < i < k.
    max_score : int               Cost of a pair sharing no information.
    cost_out  : int64[n_a, n_b]   Output.

    Notes
    -----
    Each pair defines a 2x2 contingency table of tip counts.  The
    information of cell (k, K) follows Meila (2007, eq. 16):

        n_kK * (log2(n_kK * n) - log2(n_k * n_K))

    A pair whose four cells are all n/4 shares no information; its cost is
    pinned to ``max_score`` so rounding cannot make it look informative.
    """
    n_log = log2_table.shape[0]
    max_over_tips = max_score / n_tips

    for ai in range(leaf_a.shape[0]):
        na = leaf_a[ai]
        n_not_a = n_tips - na
        for bi in range(leaf_b.shape[0]):
            nb = leaf_b[bi]
            n_not_b = n_tips - nb

            a_and_b = overlap[ai, bi]
            a_not_b = na - a_and_b
            b_not_a = nb - a_and_b
            neither = n_not_a - b_not_a

            if a_and_b == a_not_b and a_and_b == b_not_a and a_and_b == neither:
                cost_out[ai, bi] = max_score
                continue

            cells = (a_and_b, a_not_b, b_not_a, neither)
            row_sizes = (na, na, n_not_a, n_not_a)
            col_sizes = (nb, n_not_b, nb, n_not_b)

            ic_sum = 0.0
            for c in range(4):
                n_kk = cells[c]
                n_k = row_sizes[c]
                n_kk2 = col_sizes[c]
                if n_kk == 0 or n_k == 0 or n_kk2 == 0:
                    continue
                if n_kk == n_k and n_kk == n_kk2 and 2 * n_kk == n_tips:
                    ic_sum += n_kk
                    continue
                numerator = n_kk * n_tips
                denominator = n_k * n_kk2
                if numerator == denominator:
                    continue
                if numerator < n_log:
                    lg_num = log2_table[numerator]
                else:
                    lg_num = np.log2(numerator)
                if denominator < n_log:
                    lg_den = log2_table[denominator]
                else:
                    lg_den = np.log2(denominator)
                ic_sum += n_kk * (lg_num - lg_den)

            cost_out[ai, bi] = max_score - np.int64(ic_sum * max_over_tips)
