"""
selection_sort.py — Selection Sort
===================================
Each pass scans the unsorted suffix for its minimum (marked MIN), then
swaps it into the first unsorted slot.
"""

from typing import Any, Generator, List

from algorithms.frame import Frame, FrameBuilder


PSEUDOCODE: List[str] = [
    "def selection_sort(a):",                 # 0
    "    for i in 0 .. n-2:",                 # 1
    "        min ← i",                        # 2
    "        for j in i+1 .. n-1:",           # 3
    "            if a[j] < a[min]: min ← j",  # 4
    "        swap(a[i], a[min])",             # 5
    "    return a",                           # 6
]


def selection_sort(values: List[Any]) -> Generator[Frame, None, None]:
    fb = FrameBuilder(values)
    a = fb.array
    n = len(a)
    fb.metrics.update(comparisons=0, swaps=0)

    for i in range(n - 1):
        smallest = i
        fb.highlights[i] = "min"
        fb.pseudocode_line = 2
        fb.explanation = f"Pass {i + 1}: assume a[{i}]={a[i]} is the minimum."
        yield fb.build()

        for j in range(i + 1, n):
            fb.compare(j, smallest)
            fb.highlights[smallest] = "min"
            fb.pseudocode_line = 4
            if a[j] < a[smallest]:
                fb.explanation = f"a[{j}]={a[j]} < a[{smallest}]={a[smallest]}: new minimum."
                smallest = j
            else:
                fb.explanation = f"a[{j}]={a[j]} is not smaller than the minimum {a[smallest]}."
            yield fb.build()

        if smallest != i:
            fb.swap(i, smallest)
            fb.explanation = f"Swap the minimum {a[i]} into position {i}."
        else:
            fb.explanation = f"a[{i}]={a[i]} is already the minimum; no swap."
        fb.mark_sorted(i)
        fb.pseudocode_line = 5
        yield fb.build()

    fb.mark_sorted(*range(n))
    fb.pseudocode_line = 6
    fb.explanation = (
        f"Sorted with {fb.metrics['comparisons']} comparisons and {fb.metrics['swaps']} swaps."
    )
    yield fb.build(is_final=True)
