"""
algorithms/__init__.py — Algorithm Registry
=============================================
Demo step sources for the playback engine.

    from algorithms import REGISTRY, get_algorithm, build_source

REGISTRY is a dict:
    {
        "bubble_sort": AlgoInfo(key, label, fn, pseudocode, kind, …),
        …
    }

Adding an algorithm is: write the generator, add one entry here.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generator, List, Mapping, Optional

from algorithms.frame import Frame, FrameBuilder

# ---------------------------------------------------------------------------
# Import all algorithm modules
# ---------------------------------------------------------------------------
from algorithms.bubble_sort    import bubble_sort    as _bubble,    PSEUDOCODE as _bubble_pc
from algorithms.selection_sort import selection_sort as _selection, PSEUDOCODE as _selection_pc
from algorithms.insertion_sort import insertion_sort as _insertion, PSEUDOCODE as _insertion_pc
from algorithms.bfs            import bfs            as _bfs,       PSEUDOCODE as _bfs_pc
from algorithms.dfs            import dfs            as _dfs,       PSEUDOCODE as _dfs_pc
from algorithms.inorder        import inorder        as _inorder,   PSEUDOCODE as _inorder_pc


# ---------------------------------------------------------------------------
# AlgoInfo — metadata card for each algorithm
# ---------------------------------------------------------------------------
@dataclass
class AlgoInfo:
    key:              str                   # registry key, e.g. "bfs"
    label:            str                   # human label, e.g. "Breadth-First Search"
    fn:               Callable              # the generator function
    pseudocode:       List[str]             # lines for the side-panel
    kind:             str                   # "array" | "graph" | "tree": which input it takes
    tags:             List[str] = field(default_factory=list)
    complexity_time:  str       = ""
    complexity_space: str       = ""
    description:      str       = ""


# ---------------------------------------------------------------------------
# THE REGISTRY
# ---------------------------------------------------------------------------
REGISTRY: Dict[str, AlgoInfo] = {

    "bubble_sort": AlgoInfo(
        key="bubble_sort", label="Bubble Sort", fn=_bubble, pseudocode=_bubble_pc,
        kind="array", tags=["sorting", "stable"],
        complexity_time="O(n²)", complexity_space="O(1)",
        description="Repeatedly swaps adjacent out-of-order pairs.",
    ),

    "selection_sort": AlgoInfo(
        key="selection_sort", label="Selection Sort", fn=_selection, pseudocode=_selection_pc,
        kind="array", tags=["sorting"],
        complexity_time="O(n²)", complexity_space="O(1)",
        description="Selects the minimum of the unsorted part each pass.",
    ),

    "insertion_sort": AlgoInfo(
        key="insertion_sort", label="Insertion Sort", fn=_insertion, pseudocode=_insertion_pc,
        kind="array", tags=["sorting", "stable"],
        complexity_time="O(n²)", complexity_space="O(1)",
        description="Grows a sorted prefix one key at a time.",
    ),

    "bfs": AlgoInfo(
        key="bfs", label="Breadth-First Search", fn=_bfs, pseudocode=_bfs_pc,
        kind="graph", tags=["traversal", "shortest-path"],
        complexity_time="O(V + E)", complexity_space="O(V)",
        description="Explores layer-by-layer. Finds shortest path by hop count.",
    ),

    "dfs": AlgoInfo(
        key="dfs", label="Depth-First Search", fn=_dfs, pseudocode=_dfs_pc,
        kind="graph", tags=["traversal"],
        complexity_time="O(V + E)", complexity_space="O(V)",
        description="Dives deep before backtracking.",
    ),

    "inorder": AlgoInfo(
        key="inorder", label="In-order Traversal", fn=_inorder, pseudocode=_inorder_pc,
        kind="tree", tags=["traversal", "tree"],
        complexity_time="O(n)", complexity_space="O(h)",
        description="Left subtree, node, right subtree. Sorted order for a BST.",
    ),
}


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------
def get_algorithm(key: str) -> Optional[AlgoInfo]:
    """Return AlgoInfo by key, or None."""
    return REGISTRY.get(key)


def list_algorithms() -> List[AlgoInfo]:
    """Return all registered algorithms in insertion order."""
    return list(REGISTRY.values())


def algorithms_by_tag(tag: str) -> List[AlgoInfo]:
    return [a for a in REGISTRY.values() if tag in a.tags]


def build_source(key: str, params: Optional[Mapping[str, Any]] = None) -> Generator[Frame, None, None]:
    """Build a fresh generator for algorithm `key` from JSON-ish params.

    array : {"values": [...], "descending": false}
    graph : {"graph": {node: [neighbours]}, "source": n, "target": n | null}
    tree  : {"tree": [level-order values, null for gaps]}

    Raises:
        ValueError: unknown key or malformed params.
    """
    info = get_algorithm(key)
    if info is None:
        raise ValueError(f"Unknown algorithm: {key}")
    params = params or {}

    if info.kind == "array":
        values = params.get("values")
        if not isinstance(values, list):
            raise ValueError("'values' must be a list")
        if key == "bubble_sort":
            return info.fn(values, descending=bool(params.get("descending", False)))
        return info.fn(values)

    if info.kind == "graph":
        graph = params.get("graph")
        if not isinstance(graph, Mapping) or not graph:
            raise ValueError("'graph' must be a non-empty mapping of node to neighbours")
        source = params.get("source", next(iter(graph)))
        if source not in graph:
            raise ValueError(f"source node {source!r} is not in the graph")
        return info.fn(graph, source, params.get("target"))

    tree = params.get("tree")
    if not isinstance(tree, list):
        raise ValueError("'tree' must be a list in level order")
    return info.fn(tree)


__all__ = [
    "AlgoInfo",
    "REGISTRY",
    "Frame",
    "FrameBuilder",
    "get_algorithm",
    "list_algorithms",
    "algorithms_by_tag",
    "build_source",
]
