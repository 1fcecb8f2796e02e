"""
_context.py
===========
Context managers for splitmatch.

Provides clean, Pythonic context managers for temporarily changing state:
- Logging control (suppress/change levels)
- Warning control (suppress specific warnings)
- Backend selection (force specific backend)
- Information table cache size

All context managers properly restore state on exit, even if exceptions occur.
"""

import logging
import warnings
from contextlib import contextmanager
from typing import Optional, Type


# Module-level state for backend override
_backend_override = None


# ============================================================================ #
# Logging Context Managers
# ============================================================================ #


@contextmanager
def suppress_logger(logger_name: str, level: int = logging.CRITICAL):
    """
    Temporarily change a logger's level.

    Parameters
    ----------
    logger_name : str
        Name of the logger to suppress (e.g. 'splitmatch._forest').
    level : int, default logging.CRITICAL
        Temporary logging level.

    Examples
    --------
    >>> with suppress_logger('splitmatch._forest'):
    ...     forest = Forest(newicks)

    Notes
    -----
    - Exception-safe: Logger level restored even if exception raised
    - Nesting-safe: Can nest multiple suppress_logger contexts
    """
    logger = logging.getLogger(logger_name)
    original_level = logger.level

    try:
        logger.setLevel(level)
        yield
    finally:
        logger.setLevel(original_level)


@contextmanager
def quiet(level: int = logging.CRITICAL):
    """
    Temporarily suppress all splitmatch logging.

    Every module logger lives under the 'splitmatch' logger and inherits
    its level, so raising that one level silences the whole package.

    Parameters
    ----------
    level : int, default logging.CRITICAL
        Temporary logging level.

    Examples
    --------
    >>> with quiet():
    ...     forest = Forest(newicks)

    >>> # Show only warnings during construction
    >>> with quiet(logging.WARNING):
    ...     forest = Forest(newicks)
    """
    with suppress_logger("splitmatch", level):
        yield


# ============================================================================ #
# Warning Context Managers
# ============================================================================ #


@contextmanager
def suppress_warnings(category: Optional[Type[Warning]] = None):
    """
    Temporarily suppress warnings.

    Parameters
    ----------
    category : Type[Warning] or None, default None
        Warning category to suppress. If None, suppresses all warnings.

    Examples
    --------
    >>> from numba.core.errors import NumbaPerformanceWarning
    >>> with suppress_warnings(NumbaPerformanceWarning):
    ...     d = forest.pairwise_distances()

    Notes
    -----
    - Uses Python's warnings.catch_warnings() internally
    - Fully restores warning state on exit
    """
    with warnings.catch_warnings():
        if category is None:
            warnings.simplefilter("ignore")
        else:
            warnings.filterwarnings("ignore", category=category)
        yield


# ============================================================================ #
# Backend Context Managers
# ============================================================================ #


@contextmanager
def use_backend(backend: str):
    """
    Temporarily force a specific backend for the matching kernels.

    Parameters
    ----------
    backend : str
        'python', 'cpu' or 'best'.

    Raises
    ------
    ValueError
        If requested backend is not available.

    Examples
    --------
    >>> # Step through the assignment solver in a debugger
    >>> with use_backend('python'):
    ...     cost, mapping = solve_assignment(matrix)

    Notes
    -----
    - **Not thread-safe**: Uses module-level state
    - Backend availability checked when context entered
    - Original behaviour restored on exit

    Thread Safety Warning
    ---------------------
    This context manager modifies module-level state and is NOT thread-safe.
    Pass the ``backend`` keyword directly for thread-safe selection:

        d = clustering_info_distance(a, b, backend='python')
    """
    global _backend_override

    from splitmatch._backend import get_available_backends

    available = get_available_backends()

    if backend != "best" and backend not in available:
        raise ValueError(
            f"Backend '{backend}' not available. "
            f"Available backends: {', '.join(available)}"
        )

    original_override = _backend_override

    try:
        _backend_override = backend
        yield
    finally:
        _backend_override = original_override


def get_backend_override() -> Optional[str]:
    """
    Get the current backend override, if any.

    Returns
    -------
    str or None
        Current backend override, or None if no override active.

    Examples
    --------
    >>> get_backend_override()
    None
    >>> with use_backend('python'):
    ...     print(get_backend_override())
    python
    """
    return _backend_override


# ============================================================================ #
# Information Table Context Managers
# ============================================================================ #


@contextmanager
def info_tables(max_tips: int):
    """
    Temporarily replace the process-wide information tables.

    Yields the new ``InfoTables``; the previous object (or the unbuilt
    state) is put back on exit.  Distances do not change with the cache
    size, so this only trades memory for lookup speed on very large trees.

    Examples
    --------
    >>> with info_tables(8192) as tables:
    ...     d = forest.pairwise_distances()
    """
    from splitmatch._info import InfoTables, _install_tables

    tables = InfoTables(max_tips)
    previous = _install_tables(tables)
    try:
        yield tables
    finally:
        _install_tables(previous)


# ============================================================================ #
# Combined Context Managers
# ============================================================================ #


@contextmanager
def silent_benchmark(backend: str = "best"):
    """
    Suppress logging and warnings while forcing a specific backend.

    Examples
    --------
    >>> for backend in ['python', 'cpu']:
    ...     with silent_benchmark(backend):
    ...         start = time.time()
    ...         d = forest.pairwise_distances()
    ...         print(f"{backend}: {time.time() - start:.3f}s")
    """
    with quiet():
        with use_backend(backend):
            with suppress_warnings():
                yield
