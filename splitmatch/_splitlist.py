"""
_splitlist.py
=============
The non-trivial splits of one tree.

Public API
----------
  SplitList(splits, n_tips)
  SplitList.from_tree(tree)      (alias: build_splits(tree))
  .total_clustering_entropy()
  .total_phylogenetic_info()

A split is non-trivial when both of its sides hold at least two tips.  The
list is logically a multiset: order carries no meaning, and duplicates are
kept.  The single exception is a root with exactly two children, whose two
splits are complements of each other; only the first of them is kept.

Besides the ``Split`` objects, a list stores the same data as two
read-only arrays used by the vectorised distance code:

  bins        : uint64[n_splits, n_bins]   packed words, last word masked
  leaf_counts : int64 [n_splits]           tips inside each split
"""

from typing import Iterator, List, Sequence

import numpy as np

from splitmatch._errors import InvalidInputError, SizeMismatchError
from splitmatch._info import get_info_tables
from splitmatch._split import BITS_PER_BIN, Split, bins_required, last_bin_mask

_ONE = np.uint64(1)


class SplitList:
    """
    Ordered, read-only collection of the non-trivial splits of a tree.

    Parameters
    ----------
    splits : sequence of Split
        Every split must be declared over *n_tips* tips.
    n_tips : int
        Size of the tip universe.

    Raises
    ------
    SizeMismatchError   if a split declares a different tip count.
    InvalidInputError   if a split is trivial (fewer than two tips on a side).
    """

    def __init__(self, splits: Sequence[Split], n_tips: int) -> None:
        self._n_tips = int(n_tips)
        self._splits: List[Split] = list(splits)
        for k, split in enumerate(self._splits):
            if split.n_tips != self._n_tips:
                raise SizeMismatchError(
                    f"Split {k} is declared over {split.n_tips} tips; "
                    f"the list holds {self._n_tips}."
                )
            if not 2 <= split.leaf_count <= self._n_tips - 2:
                raise InvalidInputError(
                    f"Split {k} is trivial: {split.leaf_count} of "
                    f"{self._n_tips} tips on one side."
                )

        n_bins = bins_required(self._n_tips)
        bins = np.zeros((len(self._splits), n_bins), dtype=np.uint64)
        for k, split in enumerate(self._splits):
            bins[k] = split.bins
        if n_bins:
            bins[:, -1] &= last_bin_mask(self._n_tips)
        leaf_counts = np.array(
            [split.leaf_count for split in self._splits], dtype=np.int64
        )

        bins.flags.writeable = False
        leaf_counts.flags.writeable = False
        self.bins = bins
        self.leaf_counts = leaf_counts

    # ------------------------------------------------------------------ #
    # Construction from a tree                                             #
    # ------------------------------------------------------------------ #

    @classmethod
    def from_tree(cls, tree) -> "SplitList":
        """
        Extract the non-trivial splits of *tree* in one post-order pass.

        Each leaf contributes the bit of its tip index; each internal node
        ORs together its children's words.  Internal node IDs are assigned
        in post-order, so ascending ID order is a valid traversal.
        """
        n_tips = len(tree.tip_labels)
        n_bins = bins_required(n_tips)
        n_leaves = tree.n_leaves

        node_bins = np.zeros((tree.n_nodes, n_bins), dtype=np.uint64)
        node_counts = np.zeros(tree.n_nodes, dtype=np.int64)
        for leaf in range(n_leaves):
            t = int(tree.tip_index[leaf])
            node_bins[leaf, t // BITS_PER_BIN] = _ONE << np.uint64(t % BITS_PER_BIN)
            node_counts[leaf] = 1

        splits: List[Split] = []
        root_child_positions: List[int] = []
        root = tree.root

        for node in range(n_leaves, tree.n_nodes):
            children = tree.children(node)
            node_bins[node] = np.bitwise_or.reduce(node_bins[children], axis=0)
            node_counts[node] = node_counts[children].sum()
            if node == root:
                continue

            in_split = int(node_counts[node])
            if in_split >= 2 and n_tips - in_split >= 2:
                splits.append(Split(node_bins[node], n_tips, in_split))
                if tree.parent[node] == root:
                    root_child_positions.append(len(splits) - 1)

        # A bifurcating root induces the same bipartition twice.
        if root >= n_leaves and tree.children(root).shape[0] == 2:
            if len(root_child_positions) == 2:
                first, second = root_child_positions
                if splits[first].equals_or_complement(splits[second]):
                    del splits[second]

        return cls(splits, n_tips)

    # ------------------------------------------------------------------ #
    # Aggregates                                                           #
    # ------------------------------------------------------------------ #

    def total_clustering_entropy(self) -> float:
        """Sum of the clustering entropy (bits) of every split."""
        tables = get_info_tables()
        n = self._n_tips
        total = 0.0
        for a in self.leaf_counts:
            total += tables.split_clustering_entropy(int(a), n)
        return total

    def total_phylogenetic_info(self) -> float:
        """Sum of the phylogenetic information content (bits) of every split."""
        tables = get_info_tables()
        n = self._n_tips
        total = 0.0
        for a in self.leaf_counts:
            total += tables.split_phylogenetic_info(int(a), n)
        return total

    # ------------------------------------------------------------------ #
    # Sequence protocol                                                    #
    # ------------------------------------------------------------------ #

    @property
    def n_tips(self) -> int:
        return self._n_tips

    @property
    def splits(self) -> List[Split]:
        return list(self._splits)

    def __len__(self) -> int:
        return len(self._splits)

    def __getitem__(self, index: int) -> Split:
        return self._splits[index]

    def __iter__(self) -> Iterator[Split]:
        return iter(self._splits)

    def __repr__(self) -> str:
        return f"SplitList(n_splits={len(self._splits)}, n_tips={self._n_tips})"


def build_splits(tree) -> SplitList:
    """Return the :class:`SplitList` of *tree*."""
    return SplitList.from_tree(tree)
