"""
tests/test_info.py
==================
Tests for the cached information tables (_info.py).

Reference values
----------------
  k!!        : 5!! = 15, 6!! = 48, 7!! = 105
  rooted(n)  : (2n-3)!!  -> rooted(3) = 3, rooted(4) = 15, rooted(5) = 105
  unrooted(n): rooted(n-1)
  entropy    : an even split of n tips carries exactly 1 bit
"""

import math
import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from splitmatch._context import info_tables
from splitmatch._info import (
    DEFAULT_MAX_TIPS,
    InfoTables,
    configure_info_tables,
    get_info_tables,
    log2,
    log2_double_factorial,
    log2_rooted_trees,
    log2_unrooted_trees,
    split_clustering_entropy,
    split_phylogenetic_info,
)


@pytest.fixture
def restore_tables():
    """Put the default process-wide tables back after a test swaps them."""
    yield
    configure_info_tables(DEFAULT_MAX_TIPS)


# ======================================================================== #
# 1. Scalar functions                                                       #
# ======================================================================== #


class TestLog2:
    @pytest.mark.parametrize("k", [1, 2, 3, 8, 1000, 2047])
    def test_matches_math(self, k):
        assert log2(k) == pytest.approx(math.log2(k))

    def test_beyond_cache(self):
        assert log2(10**6) == pytest.approx(math.log2(10**6))

    @pytest.mark.parametrize("k", [0, -3])
    def test_non_positive_raises(self, k):
        with pytest.raises(ValueError):
            log2(k)


class TestDoubleFactorial:
    @pytest.mark.parametrize(
        "k,value", [(0, 1), (1, 1), (2, 2), (5, 15), (6, 48), (7, 105), (9, 945)]
    )
    def test_small_values(self, k, value):
        assert log2_double_factorial(k) == pytest.approx(math.log2(value))

    def test_beyond_cache(self):
        tables = InfoTables(8)
        k = 41
        expected = sum(math.log2(i) for i in range(k, 1, -2))
        assert tables.log2_dfact(k) == pytest.approx(expected)


class TestTreeCounts:
    @pytest.mark.parametrize("n,count", [(3, 3), (4, 15), (5, 105), (6, 945)])
    def test_rooted(self, n, count):
        assert log2_rooted_trees(n) == pytest.approx(math.log2(count))

    @pytest.mark.parametrize("n", [0, 1, 2])
    def test_rooted_tiny_is_zero(self, n):
        assert log2_rooted_trees(n) == 0.0

    @pytest.mark.parametrize("n,count", [(4, 3), (5, 15), (6, 105)])
    def test_unrooted(self, n, count):
        assert log2_unrooted_trees(n) == pytest.approx(math.log2(count))

    def test_cache_size_does_not_change_results(self):
        small = InfoTables(8)
        large = InfoTables(64)
        for n in (3, 7, 20, 50, 63):
            assert small.log2_rooted_trees(n) == pytest.approx(
                large.log2_rooted_trees(n)
            )


class TestSplitInformation:
    def test_even_split_entropy_is_one_bit(self):
        assert split_clustering_entropy(2, 4) == pytest.approx(1.0)
        assert split_clustering_entropy(50, 100) == pytest.approx(1.0)

    def test_entropy_formula(self):
        p = 3 / 10
        expected = -(p * math.log2(p) + (1 - p) * math.log2(1 - p))
        assert split_clustering_entropy(3, 10) == pytest.approx(expected)

    @pytest.mark.parametrize("a", [0, 4, -1, 5])
    def test_entropy_of_empty_side_is_zero(self, a):
        assert split_clustering_entropy(a, 4) == 0.0

    def test_phylogenetic_info_quartet(self):
        # A quartet split rules out 2 of the 3 unrooted 4-tip trees.
        assert split_phylogenetic_info(2, 4) == pytest.approx(math.log2(3))

    def test_phylogenetic_info_formula(self):
        expected = math.log2(945) - math.log2(3) - math.log2(3)
        # unrooted(7) = rooted(6) = 945; rooted(3) = 3
        assert split_phylogenetic_info(3, 7) == pytest.approx(
            log2_unrooted_trees(7) - 2 * log2_rooted_trees(3)
        )
        assert split_phylogenetic_info(3, 7) == pytest.approx(expected)

    @pytest.mark.parametrize("a", [0, 1, 5, 6])
    def test_trivial_split_has_no_info(self, a):
        assert split_phylogenetic_info(a, 6) == 0.0


# ======================================================================== #
# 2. Table object and process-wide cache                                    #
# ======================================================================== #


class TestInfoTables:
    def test_minimum_size(self):
        with pytest.raises(ValueError):
            InfoTables(3)

    def test_array_shapes(self):
        t = InfoTables(16)
        assert t.log2_table.shape == (16,)
        assert t.log2_double_factorial.shape == (2 * 16 + 6,)
        assert t.log2_rooted.shape == (16,)
        assert t.nbytes == 8 * (16 + 38 + 16)

    @pytest.mark.parametrize(
        "attr", ["log2_table", "log2_double_factorial", "log2_rooted"]
    )
    def test_arrays_read_only(self, attr):
        arr = getattr(InfoTables(16), attr)
        with pytest.raises(ValueError):
            arr[1] = 0.0

    def test_rooted_table_matches_double_factorial(self):
        t = InfoTables(32)
        for n in range(3, 32):
            assert t.log2_rooted[n] == pytest.approx(
                t.log2_double_factorial[2 * n - 3]
            )

    def test_log2_table_values(self):
        t = InfoTables(32)
        np.testing.assert_allclose(t.log2_table[1:], np.log2(np.arange(1, 32)))


class TestProcessWideTables:
    def test_default_tables(self):
        assert get_info_tables().max_tips == DEFAULT_MAX_TIPS

    def test_same_object_returned(self):
        assert get_info_tables() is get_info_tables()

    def test_configure_swaps_tables(self, restore_tables):
        before = get_info_tables()
        new = configure_info_tables(16)
        assert new.max_tips == 16
        assert get_info_tables() is new
        assert get_info_tables() is not before
        # Results beyond the new cache are unchanged.
        assert log2_rooted_trees(100) == pytest.approx(
            before.log2_rooted_trees(100)
        )

    def test_configure_rejects_tiny_cache(self, restore_tables):
        before = get_info_tables()
        with pytest.raises(ValueError):
            configure_info_tables(2)
        assert get_info_tables() is before

    def test_context_manager_restores_tables(self):
        before = get_info_tables()
        with info_tables(32) as tables:
            assert tables.max_tips == 32
            assert get_info_tables() is tables
            assert split_clustering_entropy(50, 100) == pytest.approx(1.0)
        assert get_info_tables() is before

    def test_context_manager_restores_after_error(self):
        before = get_info_tables()
        with pytest.raises(RuntimeError):
            with info_tables(32):
                raise RuntimeError("boom")
        assert get_info_tables() is before
