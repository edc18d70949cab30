"""
bubble_sort.py — Bubble Sort
=============================
Generator-based bubble sort.  Yields a Frame at every meaningful event:
  1. Compare a[j] and a[j+1]        →  both marked COMPARE
  2. Swap them if out of order       →  both marked SWAP
  3. End of a pass                   →  the last unsorted slot is SORTED
  4. Final frame                     →  whole array SORTED

Stops early when a pass makes no swaps.
"""

from typing import Any, Generator, List

from algorithms.frame import Frame, FrameBuilder


PSEUDOCODE: List[str] = [
    "def bubble_sort(a):",                                  # 0
    "    for i in 0 .. n-2:",                               # 1
    "        swapped ← false",                              # 2
    "        for j in 0 .. n-2-i:",                         # 3
    "            if a[j] > a[j+1]:",                        # 4
    "                swap(a[j], a[j+1]); swapped ← true",   # 5
    "        if not swapped: break",                        # 6
    "    return a",                                         # 7
]


def bubble_sort(
    values: List[Any],
    descending: bool = False,
) -> Generator[Frame, None, None]:
    """
    Yields Frame snapshots while sorting a copy of `values`.

    Args:
        values     : Items to sort.  Not modified.
        descending : Sort largest-first instead.
    """

    fb = FrameBuilder(values)
    a = fb.array
    n = len(a)
    fb.metrics.update(comparisons=0, swaps=0, passes=0)

    if n < 2:
        fb.mark_sorted(*range(n))
        fb.pseudocode_line = 7
        fb.explanation = "Nothing to sort: fewer than two items."
        yield fb.build(is_final=True)
        return

    fb.explanation = f"Start: {n} items, one pass per item bubbles the largest to the end."
    yield fb.build()

    def out_of_order(x: Any, y: Any) -> bool:
        return x < y if descending else x > y

    for i in range(n - 1):
        swapped = False
        fb.metrics["passes"] = i + 1
        for j in range(n - 1 - i):
            fb.compare(j, j + 1)
            fb.pseudocode_line = 4
            fb.explanation = f"Compare a[{j}]={a[j]} with a[{j + 1}]={a[j + 1]}."
            yield fb.build()

            if out_of_order(a[j], a[j + 1]):
                fb.swap(j, j + 1)
                swapped = True
                fb.pseudocode_line = 5
                fb.explanation = f"Out of order, swap: a[{j}]={a[j]}, a[{j + 1}]={a[j + 1]}."
                yield fb.build()

        fb.mark_sorted(n - 1 - i)
        if not swapped:
            fb.mark_sorted(*range(n - 1 - i))
            break
        fb.pseudocode_line = 3
        fb.explanation = f"Pass {i + 1} done: a[{n - 1 - i}]={a[n - 1 - i]} is in place."
        yield fb.build()

    fb.mark_sorted(*range(n))
    fb.pseudocode_line = 7
    fb.explanation = (
        f"Sorted after {fb.metrics['passes']} pass(es), "
        f"{fb.metrics['comparisons']} comparisons and {fb.metrics['swaps']} swaps."
    )
    yield fb.build(is_final=True)
