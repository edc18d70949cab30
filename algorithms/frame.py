"""
frame.py — Algorithm Frame Snapshot
====================================
Every demo algorithm is a generator that yields Frame objects.  The
playback engine treats them as opaque Step values; only renderers look
inside.  A Frame is a frozen-in-time picture of one unit of progress:

    • the array being sorted, with per-index highlights
    • or the traversal state: current node, visited order, frontier
    • which line of pseudocode is executing
    • a plain-English explanation of the step
    • running counters (comparisons, swaps, nodes visited)

Design decisions:
  - Frame is frozen.  The generator is the only writer; the controller
    and renderers are pure readers.
  - The last frame of a run carries is_final=True so the engine knows it
    is done without reading ahead.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Frame:
    """
    Attributes:
        array           : Array contents after this step (sorting algorithms).
        highlights      : {index: role} — "compare", "swap", "min", "key", "sorted".
        current_node    : Node being expanded right now (traversals).
        visited         : Nodes in the order they were visited.
        frontier        : Queue / stack contents.
        pseudocode_line : 0-based index into the algorithm's PSEUDOCODE.
        explanation     : Human-readable "what just happened".
        metrics         : Running tally: comparisons, swaps, nodes_visited, …
        is_final        : True on the very last frame.
    """

    array:           List[Any]       = field(default_factory=list)
    highlights:      Dict[int, str]  = field(default_factory=dict)
    current_node:    Optional[Any]   = None
    visited:         List[Any]       = field(default_factory=list)
    frontier:        List[Any]       = field(default_factory=list)
    pseudocode_line: int             = 0
    explanation:     str             = ""
    metrics:         Dict[str, int]  = field(default_factory=dict)
    is_final:        bool            = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "array":           list(self.array),
            "highlights":      {str(k): v for k, v in self.highlights.items()},
            "current_node":    self.current_node,
            "visited":         list(self.visited),
            "frontier":        list(self.frontier),
            "pseudocode_line": self.pseudocode_line,
            "explanation":     self.explanation,
            "metrics":         dict(self.metrics),
            "is_final":        self.is_final,
        }


# ---------------------------------------------------------------------------
# Convenience builder so algorithms don't have to spell out every kwarg
# ---------------------------------------------------------------------------
class FrameBuilder:
    """
    Mutable scratch-pad that algorithms use to construct Frames.

    Usage inside an algorithm generator:
        fb = FrameBuilder(array)
        fb.compare(0, 1)
        fb.explanation = "Compare 5 and 3."
        yield fb.build()

    Highlights and the explanation are per-frame and cleared by build();
    the array, traversal state and metrics carry over.
    """

    def __init__(self, array: Optional[List[Any]] = None):
        self.array:           List[Any]      = list(array or [])
        self.sorted:          set            = set()
        self.highlights:      Dict[int, str] = {}
        self.current_node:    Optional[Any]  = None
        self.visited:         List[Any]      = []
        self.frontier:        List[Any]      = []
        self.pseudocode_line: int            = 0
        self.explanation:     str            = ""
        self.metrics:         Dict[str, int] = {}

    # -- array helpers --
    def compare(self, i: int, j: int) -> None:
        self.highlights[i] = "compare"
        self.highlights[j] = "compare"
        self.metrics["comparisons"] = self.metrics.get("comparisons", 0) + 1

    def swap(self, i: int, j: int) -> None:
        self.array[i], self.array[j] = self.array[j], self.array[i]
        self.highlights[i] = "swap"
        self.highlights[j] = "swap"
        self.metrics["swaps"] = self.metrics.get("swaps", 0) + 1

    def mark_sorted(self, *indices: int) -> None:
        self.sorted.update(indices)

    # -- traversal helpers --
    def visit(self, node: Any) -> None:
        self.current_node = node
        if node not in self.visited:
            self.visited.append(node)
        self.metrics["nodes_visited"] = len(self.visited)

    def set_frontier(self, nodes: List[Any]) -> None:
        self.frontier = list(nodes)

    def build(self, is_final: bool = False) -> Frame:
        highlights = {i: "sorted" for i in self.sorted}
        highlights.update(self.highlights)
        frame = Frame(
            array=list(self.array),
            highlights=highlights,
            current_node=self.current_node,
            visited=list(self.visited),
            frontier=list(self.frontier),
            pseudocode_line=self.pseudocode_line,
            explanation=self.explanation,
            metrics=dict(self.metrics),
            is_final=is_final,
        )
        self.highlights = {}
        self.explanation = ""
        return frame
