"""
_robinson_foulds.py
===================
Robinson-Foulds distances between two split lists.

The RF distance counts the bipartitions found in exactly one of the two
trees.  A split and its complement are the same bipartition, so every
comparison uses ``Split.equals_or_complement``.

  rf_distance                  integer, unique bipartitions only
  normalized_rf_distance       rf / (unique_a + unique_b)
  info_rf_distance             phylogenetic-information weighted
  normalized_info_rf_distance  info_rf / (info_a + info_b)
  rf_matching                  rf over the raw lists, with the matching

Because bipartition equality is an equivalence relation, greedy
first-found matching is optimal for these counts.
"""

from typing import List, Tuple

from splitmatch._errors import SizeMismatchError
from splitmatch._info import get_info_tables
from splitmatch._split import Split
from splitmatch._splitlist import SplitList


def _check_tip_counts(a: SplitList, b: SplitList) -> None:
    if a.n_tips != b.n_tips:
        raise SizeMismatchError(
            f"Split lists cover different tip sets: {a.n_tips} vs {b.n_tips} tips."
        )


def _unique_bipartitions(splits: SplitList) -> List[Split]:
    unique: List[Split] = []
    for split in splits:
        if not any(split.equals_or_complement(seen) for seen in unique):
            unique.append(split)
    return unique


def _count_matches(unique_a: List[Split], unique_b: List[Split]) -> int:
    matched_b = [False] * len(unique_b)
    n_matches = 0
    for split_a in unique_a:
        for bi, split_b in enumerate(unique_b):
            if matched_b[bi]:
                continue
            if split_a.equals_or_complement(split_b):
                matched_b[bi] = True
                n_matches += 1
                break
    return n_matches


def _rf_counts(a: SplitList, b: SplitList) -> Tuple[int, int]:
    _check_tip_counts(a, b)
    unique_a = _unique_bipartitions(a)
    unique_b = _unique_bipartitions(b)
    n_matches = _count_matches(unique_a, unique_b)
    total = len(unique_a) + len(unique_b)
    return total - 2 * n_matches, total


def rf_distance(a: SplitList, b: SplitList) -> int:
    """
    Number of bipartitions present in one tree but not the other.

    Raises
    ------
    SizeMismatchError   if the lists cover different tip counts.
    """
    rf, _ = _rf_counts(a, b)
    return rf


def normalized_rf_distance(a: SplitList, b: SplitList) -> float:
    """RF distance divided by its maximum; 0.0 when neither tree has splits."""
    rf, total = _rf_counts(a, b)
    return rf / total if total > 0 else 0.0


def info_rf_distance(a: SplitList, b: SplitList) -> float:
    """
    Information-weighted RF distance (bits).

    Each split of *a* that has a counterpart in *b* contributes its
    phylogenetic information content to the shared total::

        info(a) + info(b) - 2 * shared
    """
    _check_tip_counts(a, b)
    n = a.n_tips
    tables = get_info_tables()

    matched_info = 0.0
    for split_a in a:
        for split_b in b:
            if split_a.equals_or_complement(split_b):
                matched_info += tables.split_phylogenetic_info(split_a.leaf_count, n)
                break

    return a.total_phylogenetic_info() + b.total_phylogenetic_info() - 2 * matched_info


def normalized_info_rf_distance(a: SplitList, b: SplitList) -> float:
    """Information-weighted RF distance divided by the total information."""
    distance = info_rf_distance(a, b)
    total_info = a.total_phylogenetic_info() + b.total_phylogenetic_info()
    return distance / total_info if total_info > 0 else 0.0


def rf_matching(a: SplitList, b: SplitList) -> Tuple[int, List[int]]:
    """
    RF distance over the raw lists together with the split matching.

    Unlike :func:`rf_distance`, duplicates are not collapsed: every split
    of *b* can be matched at most once.

    Returns
    -------
    rf : int
        ``len(a) + len(b) - 2 * n_matches``.
    matching : list[int]
        For each split of *a*, the index of its partner in *b*, or -1.

    Examples
    --------
    >>> rf, matching = rf_matching(splits_1, splits_1)
    >>> rf, matching
    (0, [0, 1, 2])
    """
    _check_tip_counts(a, b)
    matching = [-1] * len(a)
    matched_b = [False] * len(b)
    n_matches = 0

    for ai, split_a in enumerate(a):
        for bi, split_b in enumerate(b):
            if matched_b[bi]:
                continue
            if split_a.equals_or_complement(split_b):
                matching[ai] = bi
                matched_b[bi] = True
                n_matches += 1
                break

    return len(a) + len(b) - 2 * n_matches, matching
