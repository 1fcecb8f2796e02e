"""
_split.py
=========
A single bipartition of a fixed tip set, stored as a packed bit-vector.

Bit ``t`` of the vector is set when tip ``t`` lies on the "inside" of the
split.  Bits are packed little-endian into 64-bit words::

    word  = t // 64
    bit   = t %  64

so a split over ``n`` tips occupies ``ceil(n / 64)`` words.  Bits beyond
``n`` in the last word are never significant: every operation applies
``last_bin_mask`` to the final word before comparing or counting.

A split and its complement describe the same bipartition.  ``==`` is the
strict (masked) bitwise equality; ``equals_or_complement`` is the
bipartition equality used by all the tree distances.

Split objects are immutable values; ``bins`` is a read-only numpy array.
"""

from typing import Iterable, List, Optional

import numpy as np

from splitmatch._errors import InvalidInputError, SizeMismatchError

BITS_PER_BIN = 64
_ALL_ONES = np.uint64(0xFFFFFFFFFFFFFFFF)
_ONE = np.uint64(1)


def bins_required(n_tips: int) -> int:
    """Number of 64-bit words needed to hold *n_tips* bits."""
    return (n_tips + BITS_PER_BIN - 1) // BITS_PER_BIN


def last_bin_mask(n_tips: int) -> np.uint64:
    """Mask selecting the significant bits of the final word."""
    rem = n_tips % BITS_PER_BIN
    if rem == 0:
        return _ALL_ONES
    return np.uint64((1 << rem) - 1)


def popcount(words: np.ndarray) -> np.ndarray:
    """
    Count set bits along the last axis of a uint64 array.

    Parameters
    ----------
    words : uint64 array, shape (..., n_bins)

    Returns
    -------
    int64 array of shape ``words.shape[:-1]`` (a 0-d array for 1-D input).
    """
    words = np.ascontiguousarray(words, dtype=np.uint64)
    bits = np.unpackbits(words.view(np.uint8), axis=-1)
    return bits.sum(axis=-1, dtype=np.int64)


class Split:
    """
    Immutable packed bit-vector over a universe of *n_tips* tips.

    Parameters
    ----------
    bins : array-like of uint64
        ``ceil(n_tips / 64)`` words.  Copied; the stored copy is read-only.
    n_tips : int
        Size of the tip universe.
    leaf_count : int, optional
        Precomputed popcount (under mask).  Computed when omitted.

    Raises
    ------
    InvalidInputError   if the number of words does not fit *n_tips*.
    """

    __slots__ = ("_bins", "_n_tips", "_leaf_count", "_mask")

    def __init__(self, bins, n_tips: int, leaf_count: Optional[int] = None) -> None:
        arr = np.array(bins, dtype=np.uint64).ravel()
        n_bins = bins_required(n_tips)
        if n_tips < 0 or arr.shape[0] != n_bins:
            raise InvalidInputError(
                f"A split over {n_tips} tips needs {n_bins} words; "
                f"received {arr.shape[0]}."
            )
        arr.flags.writeable = False
        self._bins = arr
        self._n_tips = int(n_tips)
        self._mask = last_bin_mask(n_tips)

        if leaf_count is None:
            leaf_count = int(popcount(self._masked())) if n_bins else 0
        self._leaf_count = int(leaf_count)

    @classmethod
    def from_tips(cls, tips: Iterable[int], n_tips: int) -> "Split":
        """Build the split whose inside holds exactly *tips*."""
        bins = np.zeros(bins_required(n_tips), dtype=np.uint64)
        for t in tips:
            t = int(t)
            if t < 0 or t >= n_tips:
                raise InvalidInputError(
                    f"Tip index {t} outside universe of {n_tips} tips."
                )
            bins[t // BITS_PER_BIN] |= _ONE << np.uint64(t % BITS_PER_BIN)
        return cls(bins, n_tips)

    bins_required = staticmethod(bins_required)

    # ------------------------------------------------------------------ #
    # Properties                                                           #
    # ------------------------------------------------------------------ #

    @property
    def bins(self) -> np.ndarray:
        return self._bins

    @property
    def n_tips(self) -> int:
        return self._n_tips

    @property
    def n_bins(self) -> int:
        return self._bins.shape[0]

    @property
    def leaf_count(self) -> int:
        """Number of tips on the inside of the split."""
        return self._leaf_count

    # ------------------------------------------------------------------ #
    # Operations                                                           #
    # ------------------------------------------------------------------ #

    def complement(self) -> "Split":
        """Return the split with every significant bit flipped."""
        out = ~self._bins
        if out.shape[0]:
            out[-1] = self._bins[-1] ^ self._mask
        return Split(out, self._n_tips, self._n_tips - self._leaf_count)

    def count_overlap(self, other: "Split") -> int:
        """Number of tips inside both splits."""
        if other._n_tips != self._n_tips:
            raise SizeMismatchError(
                f"Cannot overlap splits over {self._n_tips} and "
                f"{other._n_tips} tips."
            )
        if not self.n_bins:
            return 0
        both = self._bins & other._bins
        both[-1] &= self._mask
        return int(popcount(both))

    def equals_or_complement(self, other: "Split") -> bool:
        """
        True when *other* describes the same bipartition, i.e. it is equal
        to this split or to its complement.

        Scans the words once, tracking two flags ("still equal", "still
        complementary") and stopping as soon as both are false.
        """
        if other._n_tips != self._n_tips or other.n_bins != self.n_bins:
            return False
        n_bins = self.n_bins
        if n_bins == 0:
            return True

        a = self._bins
        b = other._bins
        all_match = True
        all_complement = True
        for i in range(n_bins - 1):
            if a[i] != b[i]:
                all_match = False
            if a[i] != ~b[i]:
                all_complement = False
            if not all_match and not all_complement:
                return False

        mask = self._mask
        a_last = a[n_bins - 1] & mask
        b_last = b[n_bins - 1] & mask
        b_complement_last = (b[n_bins - 1] ^ mask) & mask
        if all_match and a_last != b_last:
            all_match = False
        if all_complement and a_last != b_complement_last:
            all_complement = False
        return all_match or all_complement

    def tips(self) -> List[int]:
        """Sorted tip indices on the inside of the split."""
        if not self.n_bins:
            return []
        raw = self._masked().astype("<u8").view(np.uint8)
        bits = np.unpackbits(raw, bitorder="little")[: self._n_tips]
        return [int(t) for t in np.flatnonzero(bits)]

    # ------------------------------------------------------------------ #
    # Dunder methods                                                       #
    # ------------------------------------------------------------------ #

    def __eq__(self, other) -> bool:
        if not isinstance(other, Split):
            return NotImplemented
        if other._n_tips != self._n_tips or other.n_bins != self.n_bins:
            return False
        return bool(np.array_equal(self._masked(), other._masked()))

    def __hash__(self) -> int:
        return hash((self._n_tips, self._masked().tobytes()))

    def __repr__(self) -> str:
        return (
            f"Split(n_tips={self._n_tips}, leaf_count={self._leaf_count}, "
            f"tips={self.tips()})"
        )

    def _masked(self) -> np.ndarray:
        out = self._bins.copy()
        if out.shape[0]:
            out[-1] &= self._mask
        return out
