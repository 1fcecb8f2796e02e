"""
_info.py
========
Lookup tables for the information-theoretic quantities used by the split
distances: log2 of small integers, log2 of double factorials and log2 of
the number of rooted / unrooted binary tree shapes.

Public API
----------
  InfoTables(max_tips=2048)
      Immutable table object.  All arrays are float64 and flagged
      read-only after construction.

  get_info_tables()
      Process-wide tables, built lazily on first use.

  configure_info_tables(max_tips)
      Build a new table object and make it the process-wide default.

  log2(k), log2_double_factorial(k), log2_rooted_trees(n),
  log2_unrooted_trees(n), split_clustering_entropy(a, n),
  split_phylogenetic_info(a, n)
      Scalar helpers backed by the process-wide tables.  Inputs beyond the
      cached range are computed directly from the same closed forms, so no
      result depends on the table size.

Concurrency notes
-----------------
A table object is never mutated after ``__init__``.  ``get_info_tables``
builds the default under a lock; readers only ever see a complete object.
``configure_info_tables`` replaces the reference in one assignment, so a
reader that fetched the old object keeps using a consistent (old) table.
"""

import logging
import math
import threading

import numpy as np

from splitmatch._logging import log_info_tables_built

logger = logging.getLogger(__name__)

DEFAULT_MAX_TIPS = 2048


class InfoTables:
    """
    Precomputed log2 tables for trees of up to *max_tips* tips.

    Attributes (read-only after construction)
    -----------------------------------------
    max_tips              : int
    log2_table            : float64[max_tips]        log2(i); entry 0 unused.
    log2_double_factorial : float64[2*max_tips + 6]  log2(i!!).
    log2_rooted           : float64[max_tips]        log2((2i-3)!!) for i >= 3.
    """

    def __init__(self, max_tips: int = DEFAULT_MAX_TIPS) -> None:
        if max_tips < 4:
            raise ValueError(f"max_tips must be at least 4, got {max_tips}.")
        self.max_tips = int(max_tips)

        log2_table = np.zeros(self.max_tips, dtype=np.float64)
        log2_table[1:] = np.log2(np.arange(1, self.max_tips, dtype=np.float64))

        # f(k) = f(k-2) + log2(k), f(0) = f(1) = 0.  Even and odd indices
        # form two independent running sums.
        fact_max = 2 * self.max_tips + 6
        steps = np.zeros(fact_max, dtype=np.float64)
        steps[2:] = np.log2(np.arange(2, fact_max, dtype=np.float64))
        log2_dfact = np.empty(fact_max, dtype=np.float64)
        log2_dfact[0::2] = np.cumsum(steps[0::2])
        log2_dfact[1::2] = np.cumsum(steps[1::2])

        log2_rooted = np.zeros(self.max_tips, dtype=np.float64)
        if self.max_tips > 3:
            idx = np.arange(3, self.max_tips)
            log2_rooted[3:] = log2_dfact[2 * idx - 3]

        for arr in (log2_table, log2_dfact, log2_rooted):
            arr.flags.writeable = False

        self.log2_table = log2_table
        self.log2_double_factorial = log2_dfact
        self.log2_rooted = log2_rooted

        log_info_tables_built(self.max_tips, self.nbytes)

    @property
    def nbytes(self) -> int:
        return (
            self.log2_table.nbytes
            + self.log2_double_factorial.nbytes
            + self.log2_rooted.nbytes
        )

    # ------------------------------------------------------------------ #
    # Scalar lookups                                                       #
    # ------------------------------------------------------------------ #

    def log2(self, k: int) -> float:
        if 0 < k < self.log2_table.shape[0]:
            return float(self.log2_table[k])
        return math.log2(k)

    def log2_dfact(self, k: int) -> float:
        """log2(k!!); 0 for k < 2."""
        if 0 <= k < self.log2_double_factorial.shape[0]:
            return float(self.log2_double_factorial[k])
        if k < 2:
            return 0.0
        return float(np.sum(np.log2(np.arange(k, 1, -2, dtype=np.float64))))

    def log2_rooted_trees(self, n: int) -> float:
        """log2 of the number of rooted binary trees on *n* tips."""
        if 0 <= n < self.log2_rooted.shape[0]:
            return float(self.log2_rooted[n])
        if n < 3:
            return 0.0
        return self.log2_dfact(2 * n - 3)

    def log2_unrooted_trees(self, n: int) -> float:
        return self.log2_rooted_trees(n - 1)

    def split_clustering_entropy(self, a: int, n: int) -> float:
        """
        Shannon entropy (bits) of a bipartition into parts of size *a* and
        *n - a*.  Zero when either part is empty.
        """
        if a <= 0 or a >= n:
            return 0.0
        p_in = a / n
        p_out = (n - a) / n
        return -(p_in * math.log2(p_in) + p_out * math.log2(p_out))

    def split_phylogenetic_info(self, a: int, n: int) -> float:
        """
        Phylogenetic information content (bits) of a split of *n* tips with
        *a* tips on one side.  Zero when either side holds at most one tip.
        """
        b = n - a
        if a <= 1 or b <= 1:
            return 0.0
        return (
            self.log2_unrooted_trees(n)
            - self.log2_rooted_trees(a)
            - self.log2_rooted_trees(b)
        )


# ============================================================================ #
# Process-wide tables
# ============================================================================ #

_tables = None
_tables_lock = threading.Lock()


def get_info_tables() -> InfoTables:
    """Return the process-wide tables, building them on first call."""
    global _tables
    tables = _tables
    if tables is None:
        with _tables_lock:
            if _tables is None:
                _tables = InfoTables(DEFAULT_MAX_TIPS)
            tables = _tables
    return tables


def configure_info_tables(max_tips: int) -> InfoTables:
    """
    Replace the process-wide tables with a new object cached up to
    *max_tips* tips.

    Results never depend on the cache size; only lookup speed for very
    large trees does.
    """
    tables = InfoTables(max_tips)
    _install_tables(tables)
    logger.info("Info tables now cached up to %d tips", tables.max_tips)
    return tables


def _install_tables(tables: InfoTables) -> InfoTables:
    """Swap in *tables* as the process-wide object; return the previous one."""
    global _tables
    with _tables_lock:
        previous = _tables
        _tables = tables
    return previous


def log2(k: int) -> float:
    return get_info_tables().log2(k)


def log2_double_factorial(k: int) -> float:
    return get_info_tables().log2_dfact(k)


def log2_rooted_trees(n: int) -> float:
    return get_info_tables().log2_rooted_trees(n)


def log2_unrooted_trees(n: int) -> float:
    return get_info_tables().log2_unrooted_trees(n)


def split_clustering_entropy(a: int, n: int) -> float:
    return get_info_tables().split_clustering_entropy(a, n)


def split_phylogenetic_info(a: int, n: int) -> float:
    return get_info_tables().split_phylogenetic_info(a, n)
