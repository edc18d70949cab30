"""
insertion_sort.py — Insertion Sort
===================================
Grows a sorted prefix one item at a time, shifting the KEY left by
adjacent swaps until it sits in order.
"""

from typing import Any, Generator, List

from algorithms.frame import Frame, FrameBuilder


PSEUDOCODE: List[str] = [
    "def insertion_sort(a):",                       # 0
    "    for i in 1 .. n-1:",                       # 1
    "        j ← i",                                # 2
    "        while j > 0 and a[j-1] > a[j]:",       # 3
    "            swap(a[j-1], a[j]); j ← j - 1",    # 4
    "    return a",                                 # 5
]


def insertion_sort(values: List[Any]) -> Generator[Frame, None, None]:
    fb = FrameBuilder(values)
    a = fb.array
    n = len(a)
    fb.metrics.update(comparisons=0, swaps=0)

    for i in range(1, n):
        fb.highlights[i] = "key"
        fb.pseudocode_line = 2
        fb.explanation = f"Insert key a[{i}]={a[i]} into the sorted prefix a[0..{i - 1}]."
        yield fb.build()

        j = i
        while j > 0:
            fb.compare(j - 1, j)
            fb.pseudocode_line = 3
            if not a[j - 1] > a[j]:
                fb.explanation = f"a[{j - 1}]={a[j - 1]} <= {a[j]}: key is in place."
                yield fb.build()
                break
            fb.explanation = f"a[{j - 1}]={a[j - 1]} > {a[j]}: shift left."
            yield fb.build()
            fb.swap(j - 1, j)
            fb.pseudocode_line = 4
            fb.explanation = f"Swapped; key now at index {j - 1}."
            yield fb.build()
            j -= 1

    fb.mark_sorted(*range(n))
    fb.pseudocode_line = 5
    fb.explanation = (
        f"Sorted with {fb.metrics['comparisons']} comparisons and {fb.metrics['swaps']} swaps."
    )
    yield fb.build(is_final=True)
