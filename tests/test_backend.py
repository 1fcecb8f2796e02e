"""
tests/test_backend.py
=====================
Tests for backend selection (_backend.py) and the context managers that
override backends, logging and warnings (_context.py).
"""

import logging
import os
import sys
import warnings

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import splitmatch
from splitmatch import _backend
from splitmatch._backend import (
    get_available_backends,
    get_backend_info,
    get_best_backend,
    resolve_backend,
    select_kernel,
)
from splitmatch._context import (
    get_backend_override,
    quiet,
    silent_benchmark,
    suppress_logger,
    suppress_warnings,
    use_backend,
)
from splitmatch._kernels import _lap_njit, _split_cost_njit


# ======================================================================== #
# 1. Backend detection                                                      #
# ======================================================================== #


class TestBackendDetection:
    def test_available(self):
        assert get_available_backends() == ["python", "cpu"]

    def test_best(self):
        assert get_best_backend() == "cpu"

    @pytest.mark.parametrize(
        "requested, resolved",
        [("best", "cpu"), ("cpu", "cpu"), ("python", "python")],
    )
    def test_resolve(self, requested, resolved):
        assert resolve_backend(requested) == resolved

    @pytest.mark.parametrize("name", ["cuda", "gpu", "", "CPU"])
    def test_resolve_unknown(self, name):
        with pytest.raises(ValueError, match="not available"):
            resolve_backend(name)

    def test_backend_info_keys(self):
        info = get_backend_info()
        assert set(info) == {
            "numba_version",
            "numba_threads",
            "backends",
            "best_backend",
            "compiled_kernels",
        }
        assert info["best_backend"] == "cpu"
        assert info["numba_threads"] >= 1

    def test_reexported(self):
        assert splitmatch.get_available_backends is get_available_backends
        assert splitmatch.get_backend_info is get_backend_info


# ======================================================================== #
# 2. Kernel selection                                                       #
# ======================================================================== #


class TestSelectKernel:
    def test_python_is_py_func(self):
        assert select_kernel(_lap_njit, "python") is _lap_njit.py_func

    def test_cpu_is_dispatcher(self):
        assert select_kernel(_lap_njit, "cpu") is _lap_njit
        assert select_kernel(_lap_njit, "best") is _lap_njit

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            select_kernel(_lap_njit, "gpu")

    def test_first_compiled_call_logged(self, caplog, monkeypatch):
        monkeypatch.setattr(_backend, "_kernel_first_call", {})
        with caplog.at_level(logging.INFO, logger="splitmatch"):
            select_kernel(_split_cost_njit, "cpu")
            select_kernel(_split_cost_njit, "cpu")
        messages = [
            r.getMessage() for r in caplog.records if "Compiling" in r.getMessage()
        ]
        assert messages == [
            "  Compiling _split_cost_njit kernel (cached for future calls)"
        ]
        assert get_backend_info()["compiled_kernels"] == ["_split_cost_njit"]

    def test_python_backend_not_logged(self, caplog, monkeypatch):
        monkeypatch.setattr(_backend, "_kernel_first_call", {})
        with caplog.at_level(logging.INFO, logger="splitmatch"):
            select_kernel(_lap_njit, "python")
        assert not any("Compiling" in r.getMessage() for r in caplog.records)


# ======================================================================== #
# 3. use_backend                                                            #
# ======================================================================== #


class TestUseBackend:
    def test_override_takes_precedence(self):
        assert get_backend_override() is None
        with use_backend("python"):
            assert get_backend_override() == "python"
            assert select_kernel(_lap_njit, "cpu") is _lap_njit.py_func
        assert get_backend_override() is None

    def test_nested(self):
        with use_backend("python"):
            with use_backend("cpu"):
                assert get_backend_override() == "cpu"
            assert get_backend_override() == "python"

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="not available"):
            with use_backend("cuda"):
                pass
        assert get_backend_override() is None

    def test_restored_after_exception(self):
        with pytest.raises(RuntimeError):
            with use_backend("python"):
                raise RuntimeError("boom")
        assert get_backend_override() is None

    def test_results_agree(self):
        matrix = [[4, 1, 3], [2, 0, 5], [3, 2, 2]]
        with use_backend("python"):
            slow = splitmatch.solve_assignment(matrix)
        assert slow == splitmatch.solve_assignment(matrix, backend="cpu")


# ======================================================================== #
# 4. Logging and warning control                                            #
# ======================================================================== #


class TestLoggingControl:
    def test_suppress_logger_restores_level(self):
        log = logging.getLogger("splitmatch._forest")
        before = log.level
        with suppress_logger("splitmatch._forest"):
            assert log.level == logging.CRITICAL
        assert log.level == before

    def test_quiet_silences_package(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="splitmatch"):
            with quiet():
                splitmatch.Forest(["((A,B),(C,D));", "(A,B,C,D);"])
        assert not any(r.name.startswith("splitmatch") for r in caplog.records)

    def test_quiet_keeps_warnings_at_warning_level(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="splitmatch"):
            with quiet(logging.WARNING):
                with pytest.raises(splitmatch.SizeMismatchError):
                    splitmatch.Forest(["((A,B),(C,D));", "((A,B),(C,E));"])
        levels = {r.levelname for r in caplog.records if r.name.startswith("splitmatch")}
        assert levels == {"WARNING"}

    def test_suppress_warnings(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            with suppress_warnings(UserWarning):
                warnings.warn("hidden", UserWarning)
            warnings.warn("shown", UserWarning)
        assert [str(w.message) for w in caught] == ["shown"]

    def test_silent_benchmark(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="splitmatch"):
            with silent_benchmark("python"):
                assert get_backend_override() == "python"
                d = splitmatch.tree_distance("((a,b),(c,d));", "((a,c),(b,d));")
        assert d == pytest.approx(1.0)
        assert get_backend_override() is None
        assert not any(r.name.startswith("splitmatch") for r in caplog.records)
