"""
_clustering.py
==============
Mutual clustering information and the Clustering Information Distance.

Each split is read as a clustering of the tips into two groups.  Two
splits share information measured by the variation of information of
their 2x2 contingency table (Meila 2007).  The mutual clustering
information of two trees is the information of an optimal one-to-one
matching of their splits, found with the assignment solver.

Pipeline of ``mutual_clustering_info``
--------------------------------------
1. Overlap counts of every split pair, from the packed words.
2. Integer cost of every pair (``_kernels._split_cost_njit``):
   ``MAX_SCORE - int(info * MAX_SCORE / n)``, the scaled score truncated
   towards zero.
3. Splits of *a* with an identical (or complementary) split in *b* are
   scored in closed form and removed from the problem.
4. The remaining splits are padded to a square matrix with ``MAX_SCORE``
   and handed to the solver.
5. The optimal cost is converted back to bits.

The exact-match pass lets several splits of *a* claim the same split of
*b*; duplicate splits in a tree then share one partner.
"""

import logging
from typing import Optional

import numpy as np

from splitmatch._assignment import solve_square
from splitmatch._backend import select_kernel
from splitmatch._errors import SizeMismatchError
from splitmatch._info import get_info_tables
from splitmatch._kernels import _split_cost_njit
from splitmatch._logging import log_clustering_matches
from splitmatch._split import popcount
from splitmatch._splitlist import SplitList

logger = logging.getLogger(__name__)

MAX_SCORE = np.iinfo(np.int64).max // 8192

# Distances below this are rounding noise.
_ZERO_TOLERANCE = 1e-10


def _common_tip_count(a: SplitList, b: SplitList, n_tips: Optional[int]) -> int:
    if n_tips is None:
        n_tips = a.n_tips
    if a.n_tips != n_tips or b.n_tips != n_tips:
        raise SizeMismatchError(
            f"Split lists must both cover {n_tips} tips; "
            f"got {a.n_tips} and {b.n_tips}."
        )
    return n_tips


def _overlap_counts(a: SplitList, b: SplitList) -> np.ndarray:
    """int64[len(a), len(b)]: tips inside both splits of each pair."""
    overlap = np.empty((len(a), len(b)), dtype=np.int64)
    b_bins = b.bins
    for ai in range(len(a)):
        overlap[ai] = popcount(a.bins[ai] & b_bins)
    return overlap


def _matching_info(a: int, n: int, tables) -> float:
    b = n - a
    return n * tables.log2(n) - a * tables.log2(a) - b * tables.log2(b)


def mutual_clustering_info(
    a: SplitList,
    b: SplitList,
    n_tips: Optional[int] = None,
    backend: str = "best",
) -> float:
    """
    Mutual clustering information (bits) of two split lists.

    Parameters
    ----------
    a, b : SplitList
        Splits of the two trees, over the same tip set.
    n_tips : int, optional
        Tip count; defaults to ``a.n_tips`` and must agree with both lists.
    backend : str, default 'best'
        Backend for the cost and assignment kernels.

    Returns
    -------
    float
        0.0 when either list is empty or there are no tips.

    Raises
    ------
    SizeMismatchError   if the lists disagree with each other or *n_tips*.
    """
    n = _common_tip_count(a, b, n_tips)
    n_a = len(a)
    n_b = len(b)
    if n_a == 0 or n_b == 0 or n == 0:
        return 0.0

    tables = get_info_tables()
    overlap = _overlap_counts(a, b)

    cost = np.empty((n_a, n_b), dtype=np.int64)
    cost_kernel = select_kernel(_split_cost_njit, backend)
    cost_kernel(
        a.leaf_counts, b.leaf_counts, overlap, n, tables.log2_table, MAX_SCORE, cost
    )

    # Identical or complementary pairs: one side of the contingency table
    # is empty.
    la = a.leaf_counts[:, None]
    lb = b.leaf_counts[None, :]
    a_not_b = la - overlap
    b_not_a = lb - overlap
    neither = n - la - lb + overlap
    identical = ((a_not_b == 0) & (b_not_a == 0)) | ((overlap == 0) & (neither == 0))

    a_matched = np.zeros(n_a, dtype=bool)
    b_matched = np.zeros(n_b, dtype=bool)
    exact_score = 0.0
    exact_matches = 0
    for ai in range(n_a):
        partners = np.flatnonzero(identical[ai])
        if partners.shape[0] == 0:
            continue
        exact_score += _matching_info(int(a.leaf_counts[ai]), n, tables)
        exact_matches += 1
        a_matched[ai] = True
        b_matched[partners[0]] = True

    most_splits = max(n_a, n_b)
    lap_dim = most_splits - exact_matches
    log_clustering_matches(n_a, n_b, exact_matches, lap_dim)
    if lap_dim <= 0:
        return exact_score / n

    a_extra = n_a - n_b if n_a > n_b else 0
    a_free = np.flatnonzero(~a_matched)[:lap_dim]
    b_free = np.flatnonzero(~b_matched)[: max(lap_dim - a_extra, 0)]

    reduced = np.full((lap_dim, lap_dim), MAX_SCORE, dtype=np.int64)
    reduced[: a_free.shape[0], : b_free.shape[0]] = cost[np.ix_(a_free, b_free)]

    lap_cost, _ = solve_square(reduced, backend)
    lap_score = (MAX_SCORE * lap_dim - lap_cost) / MAX_SCORE
    return lap_score + exact_score / n


def clustering_info_distance(
    a: SplitList,
    b: SplitList,
    n_tips: Optional[int] = None,
    normalize: bool = True,
    backend: str = "best",
) -> float:
    """
    Clustering Information Distance between two split lists.

    ``entropy(a) + entropy(b) - 2 * mutual_clustering_info(a, b)``, clamped
    to zero below 1e-10 and, when *normalize* is set and the total entropy
    is positive, divided by the total entropy.  The normalized distance
    lies in [0, 1] and is 0 for identical topologies.

    Raises
    ------
    SizeMismatchError   if the lists disagree with each other or *n_tips*.

    Examples
    --------
    >>> clustering_info_distance(build_splits(t1), build_splits(t1))
    0.0
    """
    mci = mutual_clustering_info(a, b, n_tips, backend=backend)
    total_entropy = a.total_clustering_entropy() + b.total_clustering_entropy()

    distance = total_entropy - 2 * mci
    if distance < _ZERO_TOLERANCE:
        distance = 0.0

    if normalize and total_entropy > 0:
        return distance / total_entropy
    return distance
