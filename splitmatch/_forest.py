"""
_forest.py
==========
A collection of phylogenetic trees on one shared tip set, with pairwise
tree distances.

Public API
----------
  Forest(newick_strings)
      Constructor.  Parses each NEWICK string into a Tree, builds the
      sorted global tip namespace, re-indexes every tree onto it and
      extracts each tree's split list once.

  .pairwise_distances(metric='cid', backend='best') -> float64[n_trees, n_trees]
  .distance(i, j, metric='cid', backend='best')    -> float

  tree_distance(newick_a, newick_b, metric='cid', backend='best') -> float
      One-off comparison of two NEWICK strings.

Metrics
-------
  'cid'                 normalized Clustering Information Distance
  'cid-raw'             Clustering Information Distance in bits
  'mci'                 mutual clustering information in bits (a similarity;
                        the diagonal holds each tree's self information)
  'rf'                  Robinson-Foulds distance
  'rf-normalized'       RF divided by its maximum
  'info-rf'             information-weighted RF in bits
  'info-rf-normalized'  information-weighted RF divided by its maximum

Logging
-------
One logger per module, all under 'splitmatch':

  logging.getLogger('splitmatch._forest')
      INFO level:    System capabilities (CPU, memory, numba version) on
                     first import, backend availability, tree and tip
                     counts, split statistics, memory footprint, trees
                     with polytomies.
      WARNING level: Trees whose tip set differs from the namespace (the
                     constructor then raises).

Users can control logging in the standard way:

    import logging
    # Silence INFO messages, keep warnings:
    logging.getLogger('splitmatch').setLevel(logging.WARNING)

or temporarily with ``splitmatch.quiet()``.

Tip namespace
-------------
Tip labels are collected across all trees and sorted (ASCII order); the
position of a label in ``tip_labels`` is its tip index and the bit it sets
in every split.  All trees must carry exactly this tip set.
"""

import logging
from itertools import combinations
from typing import Callable, Dict, List, Sequence

import numpy as np

from splitmatch._backend import get_available_backends
from splitmatch._clustering import clustering_info_distance, mutual_clustering_info
from splitmatch._context import suppress_logger
from splitmatch._errors import SizeMismatchError
from splitmatch._logging import (
    compute_memory_footprint,
    log_backend_availability,
    log_forest_statistics,
    log_optimization_status,
    log_polytomy_summary,
    log_tip_set_mismatch,
)
from splitmatch._robinson_foulds import (
    info_rf_distance,
    normalized_info_rf_distance,
    normalized_rf_distance,
    rf_distance,
)
from splitmatch._splitlist import SplitList
from splitmatch._tree import Tree
from splitmatch._utils import format_newick, jaccard_similarity

logger = logging.getLogger(__name__)


# Log system info and backend availability on module import
log_optimization_status()
log_backend_availability(get_available_backends())


# ======================================================================== #
# Metric dispatch                                                           #
# ======================================================================== #


def _cid(a: SplitList, b: SplitList, backend: str) -> float:
    return clustering_info_distance(a, b, normalize=True, backend=backend)


def _cid_raw(a: SplitList, b: SplitList, backend: str) -> float:
    return clustering_info_distance(a, b, normalize=False, backend=backend)


def _mci(a: SplitList, b: SplitList, backend: str) -> float:
    return mutual_clustering_info(a, b, backend=backend)


_METRICS: Dict[str, Callable[[SplitList, SplitList, str], float]] = {
    "cid": _cid,
    "cid-raw": _cid_raw,
    "mci": _mci,
    "rf": lambda a, b, backend: float(rf_distance(a, b)),
    "rf-normalized": lambda a, b, backend: normalized_rf_distance(a, b),
    "info-rf": lambda a, b, backend: info_rf_distance(a, b),
    "info-rf-normalized": lambda a, b, backend: normalized_info_rf_distance(a, b),
}

# Metrics whose diagonal is not zero.
_SIMILARITY_METRICS = ("mci",)


def _resolve_metric(metric: str) -> Callable[[SplitList, SplitList, str], float]:
    if metric not in _METRICS:
        raise ValueError(
            f"Unknown metric '{metric}'. "
            f"Available metrics: {', '.join(_METRICS)}"
        )
    return _METRICS[metric]


class Forest:
    """
    An immutable collection of trees on one tip set, with their splits.

    Parameters
    ----------
    newick_strings : sequence of str
        One NEWICK string per tree.  Polytomies are kept as given.

    Raises
    ------
    TypeError           if *newick_strings* is a single string.
    ValueError          if no trees are given or a string is malformed.
    SizeMismatchError   if the trees do not all carry the same tips.

    Attributes (read-only after construction)
    -----------------------------------------
    n_trees           : int
    n_tips            : int
    tip_labels        : list[str]         sorted tip names
    newicks           : list[str]         input strings, ';'-terminated
    trees             : list[Tree]        indexed onto ``tip_labels``
    split_lists       : list[SplitList]
    per_tree_n_splits : int32 (n_trees,)
    n_resolved        : int               fully bifurcating trees

    Examples
    --------
    >>> trees = ['((A,B),(C,D));', '((A,C),(B,D));']
    >>> forest = Forest(trees)
    >>> forest.pairwise_distances('rf')
    array([[0., 2.],
           [2., 0.]])
    >>> forest.distance(0, 1)
    1.0
    """

    # ================================================================== #
    # Construction                                                         #
    # ================================================================== #

    def __init__(self, newick_strings: Sequence[str]) -> None:
        if isinstance(newick_strings, str):
            raise TypeError(
                "newick_strings must be a sequence of NEWICK strings, got a "
                "single str"
            )
        self.newicks: List[str] = [format_newick(s) for s in newick_strings]
        if not self.newicks:
            raise ValueError("Forest needs at least one tree")

        self.n_trees = len(self.newicks)
        logger.info("Loading %d tree(s) from NEWICK strings...", self.n_trees)

        with suppress_logger("splitmatch._tree"):
            parsed = [Tree(s) for s in self.newicks]

        logger.info("Building global tip namespace...")
        self._build_tip_namespace(parsed)

        self.trees: List[Tree] = [t.reindexed(self.tip_labels) for t in parsed]

        unresolved = [i for i, t in enumerate(self.trees) if not t.is_resolved]
        self.n_resolved = self.n_trees - len(unresolved)
        log_polytomy_summary(len(unresolved), unresolved, self.n_trees)

        logger.info("Extracting splits...")
        self.split_lists: List[SplitList] = [
            SplitList.from_tree(t) for t in self.trees
        ]
        self.per_tree_n_splits = np.array(
            [len(s) for s in self.split_lists], dtype=np.int32
        )

        self._log_statistics_method()

    def _build_tip_namespace(self, trees: List[Tree]) -> None:
        """
        **Private.**  Collect all tip labels, sort them, and check every
        tree carries all of them.
        """
        name_set: set = set()
        for t in trees:
            name_set.update(t.tip_labels)

        self.tip_labels: List[str] = sorted(name_set)
        self.n_tips = len(self.tip_labels)

        mismatched = []
        similarities = []
        for ti, t in enumerate(trees):
            tips = set(t.tip_labels)
            if tips != name_set:
                mismatched.append(ti)
                similarities.append(jaccard_similarity(tips, name_set))

        if mismatched:
            log_tip_set_mismatch(mismatched, similarities, self.n_tips)
            raise SizeMismatchError(
                f"{len(mismatched)} tree(s) do not share the forest's "
                f"{self.n_tips} tips (first: tree {mismatched[0]}, "
                f"{len(trees[mismatched[0]].tip_labels)} tips)."
            )

    def _log_statistics_method(self) -> None:
        """**Private.**  Log forest statistics.  Called at the end of __init__."""
        log_forest_statistics(
            self.n_trees,
            self.n_tips,
            self.per_tree_n_splits,
            self.n_resolved,
            compute_memory_footprint(self.split_lists),
        )

    # ================================================================== #
    # Public methods                                                       #
    # ================================================================== #

    def distance(
        self, i: int, j: int, metric: str = "cid", backend: str = "best"
    ) -> float:
        """
        Distance between trees *i* and *j*.

        Raises
        ------
        ValueError   for an unknown metric or backend.
        IndexError   if a tree index is out of range.
        """
        fn = _resolve_metric(metric)
        for k in (i, j):
            if not 0 <= k < self.n_trees:
                raise IndexError(
                    f"Tree index {k} out of range for {self.n_trees} trees"
                )
        return fn(self.split_lists[i], self.split_lists[j], backend)

    def pairwise_distances(
        self, metric: str = "cid", backend: str = "best"
    ) -> np.ndarray:
        """
        Symmetric matrix of *metric* over every pair of trees.

        Parameters
        ----------
        metric : str, default 'cid'
            One of 'cid', 'cid-raw', 'mci', 'rf', 'rf-normalized',
            'info-rf', 'info-rf-normalized'.
        backend : str, default 'best'
            Backend for the clustering kernels.

        Returns
        -------
        float64 ndarray, shape (n_trees, n_trees)
            The diagonal is zero for every distance metric.  For 'mci' it
            holds each tree's information shared with itself.
        """
        fn = _resolve_metric(metric)
        out = np.zeros((self.n_trees, self.n_trees), dtype=np.float64)

        logger.debug(
            "pairwise_distances(metric=%r, backend=%r) over %d pairs",
            metric,
            backend,
            self.n_trees * (self.n_trees - 1) // 2,
        )

        for i, j in combinations(range(self.n_trees), 2):
            d = fn(self.split_lists[i], self.split_lists[j], backend)
            out[i, j] = d
            out[j, i] = d

        if metric in _SIMILARITY_METRICS:
            for i in range(self.n_trees):
                s = self.split_lists[i]
                out[i, i] = fn(s, s, backend)

        return out

    def __len__(self) -> int:
        return self.n_trees

    def __repr__(self) -> str:
        return f"Forest(n_trees={self.n_trees}, n_tips={self.n_tips})"


def tree_distance(
    newick_a: str, newick_b: str, metric: str = "cid", backend: str = "best"
) -> float:
    """
    Compare two NEWICK strings on the same tip set.

    The second tree is parsed with the first tree's tip order.

    Raises
    ------
    ValueError          for malformed NEWICK or an unknown metric.
    SizeMismatchError   if the tip sets differ.

    Examples
    --------
    >>> tree_distance('((a,b),(c,d));', '((a,c),(b,d));')
    1.0
    >>> tree_distance('((a,b),(c,d));', '((a,c),(b,d));', metric='rf')
    2.0
    """
    fn = _resolve_metric(metric)
    tree_a = Tree(newick_a)
    tree_b = Tree(newick_b, tip_labels=tree_a.tip_labels)
    return fn(SplitList.from_tree(tree_a), SplitList.from_tree(tree_b), backend)
