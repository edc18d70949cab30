"""
inorder.py — Binary Tree In-order Traversal
============================================
The tree is given in level order, heap style: children of index i sit
at 2i+1 and 2i+2, and None marks a missing node.

    [4, 2, 6, 1, 3, 5, 7]   →   1 2 3 4 5 6 7

The traversal is iterative so the stack can be drawn as the frontier.
Frames name nodes by their level-order index.
"""

from typing import Any, Generator, List, Optional, Sequence

from algorithms.frame import Frame, FrameBuilder


PSEUDOCODE: List[str] = [
    "def inorder(root):",                   # 0
    "    stack ← [], node ← root",          # 1
    "    while stack or node:",             # 2
    "        while node:",                  # 3
    "            stack.push(node)",         # 4
    "            node ← node.left",         # 5
    "        node ← stack.pop()",           # 6
    "        visit(node)",                  # 7
    "        node ← node.right",            # 8
]


def inorder(tree: Sequence[Optional[Any]]) -> Generator[Frame, None, None]:
    fb = FrameBuilder(list(tree))

    def exists(i: int) -> bool:
        return 0 <= i < len(tree) and tree[i] is not None

    stack: List[int] = []
    node: Optional[int] = 0 if exists(0) else None

    if node is None:
        fb.explanation = "Empty tree: nothing to visit."
        yield fb.build(is_final=True)
        return

    while stack or node is not None:
        while node is not None:
            stack.append(node)
            fb.set_frontier(stack)
            fb.highlights[node] = "compare"
            fb.pseudocode_line = 4
            fb.explanation = f"Push {tree[node]} and go left."
            yield fb.build()
            left = 2 * node + 1
            node = left if exists(left) else None

        node = stack.pop()
        fb.visit(node)
        fb.mark_sorted(node)
        fb.set_frontier(stack)
        fb.pseudocode_line = 7
        order = ", ".join(str(tree[i]) for i in fb.visited)
        fb.explanation = f"Visit {tree[node]}. Order so far: {order}."
        right = 2 * node + 2
        node = right if exists(right) else None

        done = node is None and not stack
        yield fb.build(is_final=done)
