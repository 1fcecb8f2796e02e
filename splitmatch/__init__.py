"""
splitmatch
==========

Split-based distances between phylogenetic trees on a shared tip set.

Each tree is reduced to the list of bipartitions ("splits") of its tips
induced by its edges.  Two families of distances are computed from them:

- Robinson-Foulds distances, counting (or information-weighting) the
  bipartitions found in only one tree.
- Mutual clustering information and the Clustering Information Distance,
  which score an optimal matching of the two trees' splits found with a
  Jonker-Volgenant assignment solver.

Main Classes
------------
Forest : Collection of trees with pairwise distance matrices
Tree : Single tree parsed from NEWICK
Split : One bipartition, packed into 64-bit words
SplitList : The non-trivial splits of one tree
InfoTables : Cached log2 / tree-count tables

Distances
---------
rf_distance, normalized_rf_distance, info_rf_distance,
normalized_info_rf_distance, rf_matching,
mutual_clustering_info, clustering_info_distance, tree_distance

Context Managers
----------------
quiet : Suppress logging during operations
suppress_logger : Suppress specific logger
suppress_warnings : Suppress specific warnings
use_backend : Force specific computational backend
silent_benchmark : Combine quiet + backend selection + warning suppression

Examples
--------
>>> from splitmatch import tree_distance
>>> tree_distance('((a,b),(c,d));', '((a,c),(b,d));')
1.0

>>> from splitmatch import Tree, build_splits, rf_distance
>>> t1 = Tree('((a,b),(c,(d,e)));')
>>> t2 = Tree('((a,c),(b,(d,e)));', tip_labels=t1.tip_labels)
>>> rf_distance(build_splits(t1), build_splits(t2))
2

>>> from splitmatch import Forest, quiet
>>> with quiet():
...     forest = Forest(newick_list)
>>> d = forest.pairwise_distances('cid')
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Main classes
from ._forest import Forest, tree_distance
from ._tree import Tree
from ._split import Split
from ._splitlist import SplitList, build_splits

# Distances
from ._robinson_foulds import (
    rf_distance,
    normalized_rf_distance,
    info_rf_distance,
    normalized_info_rf_distance,
    rf_matching,
)
from ._clustering import mutual_clustering_info, clustering_info_distance
from ._assignment import solve_assignment

# Information tables
from ._info import (
    InfoTables,
    get_info_tables,
    configure_info_tables,
    log2,
    log2_double_factorial,
    log2_rooted_trees,
    log2_unrooted_trees,
    split_clustering_entropy,
    split_phylogenetic_info,
)

# Errors
from ._errors import SizeMismatchError, InvalidInputError

# Context managers (user-facing utilities)
from ._context import (
    suppress_logger,
    quiet,
    suppress_warnings,
    use_backend,
    silent_benchmark,
    info_tables,
)

# Utilities
from ._utils import jaccard_similarity, format_newick

# Backend information (useful for checking capabilities)
from ._backend import get_available_backends, get_backend_info

# Public API
__all__ = [
    # Main classes
    "Forest",
    "Tree",
    "Split",
    "SplitList",
    "build_splits",
    # Distances
    "rf_distance",
    "normalized_rf_distance",
    "info_rf_distance",
    "normalized_info_rf_distance",
    "rf_matching",
    "mutual_clustering_info",
    "clustering_info_distance",
    "tree_distance",
    "solve_assignment",
    # Information tables
    "InfoTables",
    "get_info_tables",
    "configure_info_tables",
    "log2",
    "log2_double_factorial",
    "log2_rooted_trees",
    "log2_unrooted_trees",
    "split_clustering_entropy",
    "split_phylogenetic_info",
    # Errors
    "SizeMismatchError",
    "InvalidInputError",
    # Context managers
    "suppress_logger",
    "quiet",
    "suppress_warnings",
    "use_backend",
    "silent_benchmark",
    "info_tables",
    # Utilities
    "jaccard_similarity",
    "format_newick",
    # Backend information
    "get_available_backends",
    "get_backend_info",
    # Version info
    "__version__",
]
