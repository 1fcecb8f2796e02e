"""
_utils.py
=========
General-purpose utility functions for splitmatch.

These are standalone functions that don't depend on the main classes.
"""

from typing import Set, TypeVar


T = TypeVar("T")


def jaccard_similarity(set_a: Set[T], set_b: Set[T]) -> float:
    """
    Jaccard similarity |A ∩ B| / |A ∪ B| of two sets.

    Used to report how far a tree's tip set is from the forest namespace
    before a mismatch is rejected.

    Returns
    -------
    float
        In [0, 1]; 0.0 when both sets are empty.

    Examples
    --------
    >>> jaccard_similarity({'A', 'B', 'C'}, {'A', 'B', 'C'})
    1.0
    >>> jaccard_similarity({'A', 'B', 'C'}, {'B', 'C', 'D'})
    0.5
    >>> jaccard_similarity(set(), set())
    0.0
    """
    intersection = len(set_a & set_b)
    union = len(set_a | set_b)
    return intersection / union if union > 0 else 0.0


def format_newick(newick: str) -> str:
    """
    Strip surrounding whitespace and make sure the string ends with ';'.

    Examples
    --------
    >>> format_newick('  ((A,B),(C,D))  ')
    '((A,B),(C,D));'
    >>> format_newick('((A,B),(C,D));')
    '((A,B),(C,D));'
    """
    newick = newick.strip()
    if not newick.endswith(";"):
        newick += ";"
    return newick
