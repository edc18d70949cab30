"""
bfs.py — Breadth-First Search
==============================
Generator-based BFS over an adjacency mapping {node: [neighbours]}.
Yields a Frame at every meaningful event:
  1. Dequeue a node            →  it becomes CURRENT and VISITED
  2. Enqueue an unseen neighbour  →  it joins the FRONTIER
  3. Final frame               →  target found, or the reachable set exhausted

Pseudocode lines are 0-indexed and match the PSEUDOCODE constant
exported alongside the generator so the UI can highlight them live.
"""

from collections import deque
from typing import Any, Dict, Generator, List, Mapping, Optional, Sequence

from algorithms.frame import Frame, FrameBuilder


PSEUDOCODE: List[str] = [
    "def BFS(graph, source, target):",          # 0
    "    queue ← [source]",                     # 1
    "    seen ← {source}",                      # 2
    "    while queue is not empty:",            # 3
    "        node ← queue.dequeue()",           # 4
    "        if node == target: return path",   # 5
    "        for neighbour in adj(node):",      # 6
    "            if neighbour not in seen:",    # 7
    "                seen.add(neighbour)",      # 8
    "                queue.enqueue(neighbour)", # 9
    "    return NOT FOUND",                     # 10
]


def bfs(
    graph: Mapping[Any, Sequence[Any]],
    source: Any,
    target: Optional[Any] = None,
) -> Generator[Frame, None, None]:
    """
    Yields Frame snapshots for every event during BFS execution.

    Args:
        graph  : Adjacency mapping.  Neighbours are expanded in list order.
        source : Starting node.
        target : Goal node, or None to traverse everything reachable.

    Raises:
        KeyError: if `source` is not in the graph (on the first pull).
    """

    if source not in graph:
        raise KeyError(f"source node {source!r} is not in the graph")

    fb = FrameBuilder()
    queue = deque([source])
    seen = {source}
    parent: Dict[Any, Optional[Any]] = {source: None}

    fb.set_frontier(list(queue))
    fb.pseudocode_line = 1
    fb.explanation = f"Initialise: '{source}' is queued. BFS explores layer by layer."
    yield fb.build()

    while queue:
        node = queue.popleft()
        fb.visit(node)
        fb.set_frontier(list(queue))
        fb.pseudocode_line = 4
        fb.explanation = f"Dequeue '{node}': the earliest discovered node (FIFO)."

        if node == target:
            path = _reconstruct(parent, node)
            fb.pseudocode_line = 5
            fb.explanation = f"Target '{target}' reached: {' → '.join(map(str, path))}."
            yield fb.build(is_final=True)
            return
        yield fb.build()

        for nbr in graph.get(node, ()):
            if nbr in seen:
                continue
            seen.add(nbr)
            parent[nbr] = node
            queue.append(nbr)
            fb.set_frontier(list(queue))
            fb.pseudocode_line = 9
            fb.explanation = f"Enqueue '{nbr}' (parent '{node}')."
            yield fb.build()

    fb.current_node = None
    fb.pseudocode_line = 10
    if target is None:
        fb.explanation = f"Queue empty: visited {len(fb.visited)} node(s)."
    else:
        fb.explanation = f"Queue empty: '{target}' is NOT reachable from '{source}'."
    yield fb.build(is_final=True)


def _reconstruct(parent: Dict[Any, Optional[Any]], target: Any) -> List[Any]:
    path = []
    cur: Optional[Any] = target
    while cur is not None:
        path.append(cur)
        cur = parent.get(cur)
    path.reverse()
    return path
