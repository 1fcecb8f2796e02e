"""
_backend.py
===========
Backend detection and selection for the compiled kernels.

Two backends exist:

  'python'  the kernels' original Python functions (``kernel.py_func``);
            slow, easy to step through in a debugger.
  'cpu'     the numba-compiled kernels (``@njit(cache=True)``).

'best' resolves to 'cpu'.  Apart from kernel selection, functions in this
module have NO side effects - they only query state.  Logging is delegated
to ``_logging``.
"""

from typing import Callable, Dict, List

from splitmatch._logging import log_kernel_compilation


# Track first calls to kernels for compilation logging
_kernel_first_call: Dict[str, bool] = {}


# ============================================================================ #
# Backend Detection (No Side Effects)
# ============================================================================ #


def get_available_backends() -> List[str]:
    """
    Get list of available execution backends.

    Returns
    -------
    list[str]
        Backends in preference order; the last is the most optimized.

    Examples
    --------
    >>> get_available_backends()
    ['python', 'cpu']
    """
    return ["python", "cpu"]


def get_best_backend() -> str:
    """
    Get the most optimized available backend.

    Examples
    --------
    >>> get_best_backend()
    'cpu'
    """
    return get_available_backends()[-1]


def resolve_backend(backend: str) -> str:
    """
    Resolve a backend specification to an actual backend.

    Parameters
    ----------
    backend : str
        'best', 'python' or 'cpu'.

    Returns
    -------
    str
        Resolved backend name.

    Raises
    ------
    ValueError
        If the requested backend does not exist.

    Examples
    --------
    >>> resolve_backend('best')
    'cpu'
    >>> resolve_backend('python')
    'python'
    """
    if backend == "best":
        return get_best_backend()

    available = get_available_backends()
    if backend not in available:
        raise ValueError(
            f"Backend '{backend}' not available. "
            f"Available backends: {', '.join(available)}"
        )
    return backend


# ============================================================================ #
# Kernel Selection
# ============================================================================ #


def select_kernel(kernel, backend: str = "best") -> Callable:
    """
    Return the callable implementing *kernel* on the requested backend.

    An active ``use_backend`` override takes precedence over *backend*.

    Parameters
    ----------
    kernel : numba dispatcher
        A function decorated with ``numba.njit``.
    backend : str
        'best', 'python' or 'cpu'.

    Raises
    ------
    ValueError
        If the backend does not exist.
    """
    from splitmatch._context import get_backend_override

    override = get_backend_override()
    if override is not None:
        backend = override

    resolved = resolve_backend(backend)
    if resolved == "python":
        return kernel.py_func

    name = kernel.py_func.__name__
    if _kernel_first_call.get(name, True):
        log_kernel_compilation(name)
        _kernel_first_call[name] = False
    return kernel


# ============================================================================ #
# Module-Level State Query (Read-Only)
# ============================================================================ #


def get_backend_info() -> dict:
    """
    Get comprehensive backend information.

    Returns
    -------
    dict
        Dictionary with keys:
        - 'numba_version': str
        - 'numba_threads': int
        - 'backends': list[str]
        - 'best_backend': str
        - 'compiled_kernels': list[str]  kernels already called on 'cpu'

    Examples
    --------
    >>> info = get_backend_info()
    >>> info['best_backend']
    'cpu'
    """
    import numba

    return {
        "numba_version": numba.__version__,
        "numba_threads": numba.get_num_threads(),
        "backends": get_available_backends(),
        "best_backend": get_best_backend(),
        "compiled_kernels": sorted(
            name for name, first in _kernel_first_call.items() if not first
        ),
    }
