"""
dfs.py — Depth-First Search
============================
Iterative DFS with an explicit stack, so the frontier can be shown.
Neighbours are pushed in reverse so they are expanded in list order.
"""

from typing import Any, Generator, List, Mapping, Optional, Sequence

from algorithms.frame import Frame, FrameBuilder


PSEUDOCODE: List[str] = [
    "def DFS(graph, source, target):",              # 0
    "    stack ← [source]",                         # 1
    "    while stack is not empty:",                # 2
    "        node ← stack.pop()",                   # 3
    "        if node visited: continue",            # 4
    "        mark node visited",                    # 5
    "        if node == target: return",            # 6
    "        for neighbour in reversed(adj(node)):",# 7
    "            if neighbour not visited: push",   # 8
    "    return NOT FOUND",                         # 9
]


def dfs(
    graph: Mapping[Any, Sequence[Any]],
    source: Any,
    target: Optional[Any] = None,
) -> Generator[Frame, None, None]:
    if source not in graph:
        raise KeyError(f"source node {source!r} is not in the graph")

    fb = FrameBuilder()
    stack = [source]
    visited = set()

    fb.set_frontier(stack)
    fb.pseudocode_line = 1
    fb.explanation = f"Initialise: push '{source}'. DFS dives deep before backtracking."
    yield fb.build()

    while stack:
        node = stack.pop()
        if node in visited:
            continue
        visited.add(node)
        fb.visit(node)
        fb.set_frontier(stack)
        fb.pseudocode_line = 5

        if node == target:
            fb.pseudocode_line = 6
            fb.explanation = (
                f"Target '{target}' reached after visiting "
                f"{' → '.join(map(str, fb.visited))}."
            )
            yield fb.build(is_final=True)
            return

        pushed = [n for n in reversed(list(graph.get(node, ()))) if n not in visited]
        stack.extend(pushed)
        fb.set_frontier(stack)
        if pushed:
            fb.explanation = (
                f"Visit '{node}', push {', '.join(map(str, reversed(pushed)))}."
            )
        else:
            fb.explanation = f"Visit '{node}': no unvisited neighbours, backtrack."
        yield fb.build()

    fb.current_node = None
    fb.pseudocode_line = 9
    if target is None:
        fb.explanation = f"Stack empty: visited {len(fb.visited)} node(s)."
    else:
        fb.explanation = f"Stack empty: '{target}' is NOT reachable from '{source}'."
    yield fb.build(is_final=True)
