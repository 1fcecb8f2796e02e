"""
_logging.py
===========
Logging functions for splitmatch.

All functions in this module have NO side effects except logging. They take
computed data as parameters and format/emit log messages.

This separation ensures:
- Logging can be easily disabled/mocked in tests
- Computation is separate from presentation
- Clear boundaries between analysis and reporting
"""

import logging
from typing import Any, List, Sequence

import numpy as np

logger = logging.getLogger(__name__)


# ============================================================================ #
# System and Backend Logging (called at module import time)
# ============================================================================ #


def log_optimization_status() -> None:
    """
    Log system capabilities and numba status at INFO level.

    Called once at module import time. Reports CPU count, memory (when
    psutil is installed), numba and llvmlite versions and the number of
    numba threads.
    """
    import os
    import platform

    import numba

    cpu_count = os.cpu_count() or 1
    logger.info(
        f"System: {platform.machine()} ({platform.system()}), "
        f"{cpu_count} CPU cores, Python {platform.python_version()}"
    )

    # Memory info (optional psutil)
    try:
        import psutil

        mem = psutil.virtual_memory()
        logger.info(
            f"Memory: {mem.total / (1024**3):.1f} GB total, "
            f"{mem.available / (1024**3):.1f} GB available"
        )
    except ImportError:
        pass  # psutil not required

    logger.info(f"Numba {numba.__version__} loaded successfully")

    # LLVM version from llvmlite (numba's backend)
    try:
        import llvmlite

        logger.info(f"LLVM backend: llvmlite {llvmlite.__version__}")
    except (ImportError, AttributeError):
        pass  # LLVM version unavailable

    logger.info(f"Numba threads available: {numba.get_num_threads()}")


def log_backend_availability(backends_available: List[str]) -> None:
    """
    Log which execution backends are available for the matching kernels.

    Parameters
    ----------
    backends_available : List[str]
        Available backends in preference order (e.g. ['python', 'cpu']).
    """
    logger.info(f"Available backends: {', '.join(backends_available)}")

    if "cpu" in backends_available:
        logger.info("  cpu: LLVM-compiled kernels (numba.njit, cached on disk)")
    if "python" in backends_available:
        logger.info("  python: uncompiled kernels (kernel.py_func)")

    best = backends_available[-1]  # Last in list is most optimized
    logger.info(f"Default backend='best' will use: {best}")


def log_kernel_compilation(kernel_name: str) -> None:
    """Announce the first call of a compiled kernel in this process."""
    logger.info(f"  Compiling {kernel_name} kernel (cached for future calls)")


def log_info_tables_built(max_tips: int, nbytes: int) -> None:
    """
    Report construction of a set of information tables.

    Parameters
    ----------
    max_tips : int
        Largest tip count covered by the cache.
    nbytes : int
        Combined size of the tables.
    """
    logger.debug(
        "Info tables built for up to %d tips (%.1f KB)", max_tips, nbytes / 1024
    )


# ============================================================================ #
# Per-call Logging
# ============================================================================ #


def log_assignment_problem(n_rows: int, n_cols: int, dim: int, backend: str) -> None:
    """Log the shape of one assignment problem at DEBUG level."""
    if dim != n_rows or dim != n_cols:
        logger.debug(
            "solve_assignment(%dx%d padded to %dx%d, backend=%r)",
            n_rows,
            n_cols,
            dim,
            dim,
            backend,
        )
    else:
        logger.debug("solve_assignment(%dx%d, backend=%r)", dim, dim, backend)


def log_clustering_matches(
    n_a: int, n_b: int, exact_matches: int, lap_dim: int
) -> None:
    """Log how much of a clustering comparison was settled without the solver."""
    logger.debug(
        "mutual_clustering_info: %d x %d splits, %d exact match(es), "
        "LAP dimension %d",
        n_a,
        n_b,
        exact_matches,
        lap_dim,
    )


# ============================================================================ #
# Forest Logging (called during initialization)
# ============================================================================ #


def log_polytomy_summary(
    n_unresolved: int, unresolved_indices: List[int], n_trees: int
) -> None:
    """
    Emit a consolidated note about trees that are not fully bifurcating.

    Polytomies are never resolved; their splits are simply absent.

    Parameters
    ----------
    n_unresolved : int
        Number of trees with at least one polytomy.
    unresolved_indices : List[int]
        Indices of those trees.
    n_trees : int
        Total number of trees in the forest.
    """
    if n_unresolved == 0:
        return
    if n_unresolved == 1:
        logger.info(
            "1 tree contains polytomies (tree index %d); "
            "its splits are taken as given.",
            unresolved_indices[0],
        )
    elif n_unresolved <= 5:
        logger.info(
            "%d trees contain polytomies (tree indices: %s); "
            "their splits are taken as given.",
            n_unresolved,
            ", ".join(map(str, unresolved_indices)),
        )
    else:
        logger.info(
            "%d trees contain polytomies (%.1f%% of total); "
            "their splits are taken as given.",
            n_unresolved,
            100.0 * n_unresolved / n_trees,
        )


def log_tip_set_mismatch(
    mismatched: Sequence[int], similarities: Sequence[float], n_global_tips: int
) -> None:
    """
    Warn about trees whose tip set differs from the forest namespace.

    Parameters
    ----------
    mismatched : sequence of int
        Indices of the offending trees.
    similarities : sequence of float
        Jaccard similarity between each offending tree's tips and the
        global namespace.
    n_global_tips : int
        Size of the global namespace.
    """
    logger.warning(
        "%d tree(s) do not carry all %d tips of the forest namespace:",
        len(mismatched),
        n_global_tips,
    )
    for tree_idx, jac in zip(mismatched, similarities):
        logger.warning("  tree %d: tip-set Jaccard similarity %.3f", tree_idx, jac)


def log_forest_statistics(
    n_trees: int,
    n_tips: int,
    per_tree_n_splits: np.ndarray,
    n_resolved: int,
    memory_bytes: int,
) -> None:
    """
    Log forest statistics: tree and tip counts, split counts, memory usage.

    Parameters
    ----------
    n_trees : int
        Number of trees in the forest.
    n_tips : int
        Size of the shared tip namespace.
    per_tree_n_splits : np.ndarray
        Number of non-trivial splits of each tree.
    n_resolved : int
        Number of fully bifurcating trees.
    memory_bytes : int
        Total size of the packed split arrays.
    """
    logger.info("Forest built: %d trees, %d shared tips", n_trees, n_tips)

    if n_trees > 0:
        logger.info(
            "Splits per tree: mean %.1f, min %d, max %d (resolved trees have %d)",
            float(per_tree_n_splits.mean()),
            int(per_tree_n_splits.min()),
            int(per_tree_n_splits.max()),
            max(n_tips - 3, 0),
        )
    logger.info("Fully bifurcating trees: %d of %d", n_resolved, n_trees)

    mem_mb = memory_bytes / (1024**2)
    if mem_mb >= 1.0:
        logger.info("Packed split storage: %.1f MB", mem_mb)
    else:
        logger.info("Packed split storage: %.1f KB", memory_bytes / 1024)


# ============================================================================ #
# Helper Functions for Computing Data (not logging)
# ============================================================================ #


def compute_memory_footprint(split_lists: Sequence[Any]) -> int:
    """
    Compute the total size of the packed arrays of several split lists.

    Parameters
    ----------
    split_lists : sequence of SplitList

    Returns
    -------
    int
        Total memory in bytes.
    """
    mem_bytes = 0
    for splits in split_lists:
        mem_bytes += splits.bins.nbytes
        mem_bytes += splits.leaf_counts.nbytes
    return mem_bytes
