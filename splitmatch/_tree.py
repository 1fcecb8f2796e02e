"""
_tree.py
========
A single phylogenetic tree represented as a set of parallel numpy arrays,
built by an iterative NEWICK scan.

Public API
----------
  Tree(newick_string, tip_labels=None)
      Constructor.  Parses the NEWICK string and assigns every leaf a tip
      index, either in left-to-right leaf order or from *tip_labels*.

  .children(node)
  .is_leaf(node)
  .leaf_id(name)
  .reindexed(tip_labels)
  .is_resolved                                              [property]

Node-ID conventions (set once; never change)
--------------------------------------------
  Leaves   : 0 … n_leaves-1        (left-to-right in the NEWICK string)
  Internal : n_leaves … n_nodes-1  (post-order; a parent always has a
                                    larger ID than each of its children)
  Root     : n_nodes-1

The post-order numbering means a plain ascending loop over the internal IDs
visits every child before its parent, which is all that split extraction
needs.  Internal nodes may have any number of children: polytomies are
kept exactly as written.

Tip indices versus node IDs
---------------------------
Node IDs describe *this* tree's shape.  Tip indices (``tip_index``) are the
positions in ``tip_labels`` and are the bit positions used by splits.  Two
trees can only be compared when they share one ``tip_labels`` order; pass
the first tree's ``tip_labels`` when parsing the second, or use
``reindexed``.

Branch lengths and support values are recognised and discarded.
"""

import copy
import logging
from typing import List, Optional, Sequence

import numpy as np

from splitmatch._errors import SizeMismatchError

logger = logging.getLogger(__name__)

_LABEL_STOP = "(),:;[ \t\n\r"


class Tree:
    """
    A rooted phylogenetic tree of arbitrary arity, stored as flat arrays.

    Attributes (all read-only after construction)
    ----------------------------------------------
    n_nodes      : int        Total number of nodes.
    n_leaves     : int        Number of leaf (tip) nodes.
    n_internal   : int        Number of internal nodes (root included).
    root         : int        Node ID of the root (always n_nodes - 1).
    max_children : int        Largest number of children of any node.
    names        : list[str]  Label of each node; '' for unlabelled nodes.
    tip_labels   : list[str]  Tip label for each tip index.

    Arrays
    ------
    parent        : int32[n_nodes]        Parent ID; -1 for the root.
    tip_index     : int32[n_nodes]        Tip index of leaves; -1 for internal.
    child_offsets : int64[n_internal + 1] CSR offsets into child_ids, indexed
                                          by (node - n_leaves).
    child_ids     : int32[n_nodes - 1]    Children of every internal node, in
                                          NEWICK order.
    """

    # ================================================================== #
    # Construction                                                         #
    # ================================================================== #

    def __init__(
        self, newick_string: str, tip_labels: Optional[Sequence[str]] = None
    ) -> None:
        """
        Parse *newick_string* and assign tip indices.

        Parameters
        ----------
        newick_string : str
            A NEWICK-formatted tree (trailing ';' optional).
        tip_labels : sequence of str, optional
            Tip order to use.  Must contain every leaf label of the tree
            exactly once and nothing else.

        Raises
        ------
        ValueError          if the string is malformed or a tip label repeats.
        SizeMismatchError   if *tip_labels* does not match the tree's leaves.
        """
        self._parse_newick(newick_string)

        self.n_nodes: int = int(self.parent.shape[0])
        self.n_internal: int = self.n_nodes - self.n_leaves
        self.root: int = self.n_nodes - 1
        arity = np.diff(self.child_offsets)
        self.max_children: int = int(arity.max()) if arity.shape[0] else 0

        self._name_index: dict = None  # type: ignore[assignment]
        self._assign_tip_indices(tip_labels)

        if self.max_children > 2:
            logger.debug(
                "Tree with %d tips keeps %d polytomous node(s) as given",
                self.n_leaves,
                int(np.count_nonzero(arity > 2)),
            )

    # ================================================================== #
    # Public methods                                                       #
    # ================================================================== #

    def children(self, node: int) -> np.ndarray:
        """Child IDs of *node* (empty for a leaf)."""
        if node < self.n_leaves:
            return self.child_ids[0:0]
        k = node - self.n_leaves
        return self.child_ids[self.child_offsets[k] : self.child_offsets[k + 1]]

    def is_leaf(self, node: int) -> bool:
        return node < self.n_leaves

    def leaf_id(self, name: str) -> int:
        """
        Return the node ID of the leaf labelled *name*.

        Raises
        ------
        KeyError   if no leaf carries that label.
        """
        if self._name_index is None:
            self._build_name_index()
        if name not in self._name_index:
            raise KeyError(f"No leaf with name '{name}' found in tree.")
        return self._name_index[name]

    def reindexed(self, tip_labels: Sequence[str]) -> "Tree":
        """
        Return a copy of this tree whose tip indices follow *tip_labels*.

        The shape arrays are shared with the original; only ``tip_labels``
        and ``tip_index`` differ.
        """
        other = copy.copy(self)
        other._assign_tip_indices(tip_labels)
        return other

    @property
    def is_resolved(self) -> bool:
        """
        True for a fully bifurcating tree: every non-root internal node has
        two children and the root has two or three.
        """
        if self.n_internal == 0:
            return self.n_leaves <= 1
        arity = np.diff(self.child_offsets)
        root_arity = int(arity[-1])
        return bool(np.all(arity[:-1] == 2)) and root_arity in (2, 3)

    def __repr__(self) -> str:
        return (
            f"Tree(n_leaves={self.n_leaves}, n_internal={self.n_internal}, "
            f"max_children={self.max_children})"
        )

    # ================================================================== #
    # Private instance methods                                             #
    # ================================================================== #

    def _parse_newick(self, newick_string: str) -> None:
        """
        **Private.**  Parse *newick_string* and populate the tree-structure
        arrays as instance attributes.

        Two-pass algorithm
        ------------------
        Pass 1  Count commas and '(' outside quotes/comments → exact sizes.
                Every tree satisfies n_leaves = n_commas + 1, and each '('
                opens one internal node.
        Pass 2  Iterative, stack-based character scan; no recursion.

        Populates
        ---------
        self.names, self.n_leaves, self.parent, self.child_offsets,
        self.child_ids
        """
        s = newick_string.strip()
        n_chars = len(s)
        if n_chars > 0 and s[n_chars - 1] == ";":
            n_chars -= 1
        if n_chars == 0:
            raise ValueError("Empty NEWICK string.")

        # ---- Pass 1: count commas and open parens ------------------- #
        n_commas = 0
        n_parens = 0
        k = 0
        while k < n_chars:
            c = s[k]
            if c == "'":
                k = Tree._skip_quoted(s, k, n_chars)
                continue
            if c == "[":
                k = Tree._skip_comment(s, k, n_chars)
                continue
            if c == ",":
                n_commas += 1
            elif c == "(":
                n_parens += 1
            k += 1

        n_leaves = n_commas + 1
        n_nodes = n_leaves + n_parens

        # ---- Allocate arrays ---------------------------------------- #
        parent = np.full(n_nodes, -1, dtype=np.int32)
        child_offsets = np.zeros(n_parens + 1, dtype=np.int64)
        child_ids = np.full(max(n_nodes - 1, 0), -1, dtype=np.int32)
        names = [""] * n_nodes

        # ---- Pass 2: iterative stack-based parse -------------------- #
        OPEN_PAREN = -2
        stack_node = [0] * (n_nodes + n_parens)
        stack_top = -1

        leaf_id = 0
        internal_id = n_leaves
        n_child_ids = 0

        i = 0
        while i < n_chars:
            c = s[i]

            if c == " " or c == "\t" or c == "\n" or c == "\r":
                i += 1
                continue

            if c == "[":
                i = Tree._skip_comment(s, i, n_chars)
                continue

            if c == "(":
                stack_top += 1
                stack_node[stack_top] = OPEN_PAREN
                i += 1
                continue

            if c == ",":
                i += 1
                continue

            if c == ")":
                # Pop children back to the matching '('.
                first = stack_top
                while first >= 0 and stack_node[first] != OPEN_PAREN:
                    first -= 1
                if first < 0:
                    raise ValueError(f"Unmatched ')' at position {i}.")
                n_children = stack_top - first
                if n_children == 0:
                    raise ValueError(f"Empty clade '()' at position {i}.")

                node_id = internal_id
                internal_id += 1
                k = node_id - n_leaves
                for m in range(first + 1, stack_top + 1):
                    child = stack_node[m]
                    child_ids[n_child_ids] = child
                    n_child_ids += 1
                    parent[child] = node_id
                child_offsets[k + 1] = n_child_ids
                stack_top = first - 1
                i += 1

                # Optional internal label (name or support value).
                label, i = Tree._read_label(s, i, n_chars)
                names[node_id] = label
                i = Tree._skip_branch_length(s, i, n_chars)

                stack_top += 1
                stack_node[stack_top] = node_id
                continue

            # Leaf
            label, j = Tree._read_label(s, i, n_chars)
            if label == "" or leaf_id >= n_leaves:
                raise ValueError(f"Expected leaf label at position {i}.")
            node_id = leaf_id
            leaf_id += 1
            names[node_id] = label
            i = Tree._skip_branch_length(s, j, n_chars)

            stack_top += 1
            stack_node[stack_top] = node_id

        if stack_top != 0 or stack_node[0] == OPEN_PAREN:
            raise ValueError(
                "Malformed NEWICK string: unbalanced parentheses or more "
                "than one top-level clade."
            )
        if leaf_id != n_leaves or internal_id != n_nodes:
            raise ValueError(
                f"Malformed NEWICK string: found {leaf_id} leaves and "
                f"{internal_id - n_leaves} clades, expected {n_leaves} "
                f"and {n_parens}."
            )

        self.names = names
        self.n_leaves = n_leaves
        self.parent = parent
        self.child_offsets = child_offsets
        self.child_ids = child_ids

    def _assign_tip_indices(self, tip_labels: Optional[Sequence[str]]) -> None:
        """
        **Private.**  Populate ``self.tip_labels`` and ``self.tip_index``.

        Raises
        ------
        ValueError          on duplicate labels.
        SizeMismatchError   if *tip_labels* and the leaves disagree.
        """
        leaf_names = self.names[: self.n_leaves]
        tip_index = np.full(self.n_nodes, -1, dtype=np.int32)

        if tip_labels is None:
            if len(set(leaf_names)) != len(leaf_names):
                # Reports the offending pair.
                self._build_name_index()
            labels = list(leaf_names)
            tip_index[: self.n_leaves] = np.arange(self.n_leaves, dtype=np.int32)
        else:
            labels = list(tip_labels)
            label_to_index = {name: t for t, name in enumerate(labels)}
            if len(label_to_index) != len(labels):
                raise ValueError("tip_labels contains duplicate labels.")
            if len(labels) != self.n_leaves:
                raise SizeMismatchError(
                    f"Tree has {self.n_leaves} tips but {len(labels)} tip "
                    f"labels were supplied."
                )
            seen = set()
            for leaf in range(self.n_leaves):
                name = leaf_names[leaf]
                if name not in label_to_index:
                    raise SizeMismatchError(
                        f"Tip label '{name}' not found in supplied tip labels."
                    )
                if name in seen:
                    self._build_name_index()
                seen.add(name)
                tip_index[leaf] = label_to_index[name]

        tip_index.flags.writeable = False
        self.tip_labels: List[str] = labels
        self.tip_index = tip_index

    def _build_name_index(self) -> None:
        """
        **Private.**  Build and cache ``self._name_index``: a dict mapping
        each leaf label to its node ID.

        Raises
        ------
        ValueError   if duplicate tip labels are found.
        """
        idx = {}
        for node_id in range(self.n_leaves):
            name = self.names[node_id]
            if name in idx:
                raise ValueError(
                    f"Duplicate tip label '{name}' at node IDs "
                    f"{idx[name]} and {node_id}."
                )
            idx[name] = node_id
        self._name_index = idx

    # ================================================================== #
    # Private static scanning helpers                                      #
    # ================================================================== #

    @staticmethod
    def _read_label(s: str, i: int, n_chars: int):
        """
        **Private static.**  Read a (possibly quoted) label starting at *i*,
        skipping leading blanks.  Returns ``(label, next_position)``; the
        label is '' when none is present.
        """
        while i < n_chars and (s[i] == " " or s[i] == "\t"):
            i += 1
        if i < n_chars and s[i] == "'":
            chunks = []
            j = i + 1
            while j < n_chars:
                if s[j] == "'":
                    if j + 1 < n_chars and s[j + 1] == "'":
                        chunks.append("'")
                        j += 2
                        continue
                    break
                chunks.append(s[j])
                j += 1
            if j >= n_chars:
                raise ValueError(f"Unterminated quoted label at position {i}.")
            return "".join(chunks), j + 1

        j = i
        while j < n_chars and s[j] not in _LABEL_STOP:
            j += 1
        return s[i:j], j

    @staticmethod
    def _skip_branch_length(s: str, i: int, n_chars: int) -> int:
        """**Private static.**  Skip an optional ``:length`` and comments."""
        while i < n_chars and (s[i] == " " or s[i] == "\t" or s[i] == "["):
            if s[i] == "[":
                i = Tree._skip_comment(s, i, n_chars)
            else:
                i += 1
        if i < n_chars and s[i] == ":":
            i += 1
            while i < n_chars and (s[i] == " " or s[i] == "\t"):
                i += 1
            j = i
            while j < n_chars and s[j] not in _LABEL_STOP:
                j += 1
            if j > i:
                # Validated, then discarded.
                float(s[i:j])
            i = j
        return i

    @staticmethod
    def _skip_quoted(s: str, i: int, n_chars: int) -> int:
        """**Private static.**  Return the position after the quoted run at *i*."""
        j = i + 1
        while j < n_chars:
            if s[j] == "'":
                if j + 1 < n_chars and s[j + 1] == "'":
                    j += 2
                    continue
                return j + 1
            j += 1
        raise ValueError(f"Unterminated quoted label at position {i}.")

    @staticmethod
    def _skip_comment(s: str, i: int, n_chars: int) -> int:
        """**Private static.**  Return the position after the ``[...]`` at *i*."""
        j = s.find("]", i + 1, n_chars)
        if j < 0:
            raise ValueError(f"Unterminated comment at position {i}.")
        return j + 1
