import random

from settings import RECT_WIDTH, SCREEN_HEIGHT

# ============================================================
# ====================== ARRAY HELPERS =======================
# ============================================================

def bar_heights(rect_width=RECT_WIDTH, screen_height=SCREEN_HEIGHT):
    """Every multiple of the bar width up to the screen height, ascending."""
    return list(range(rect_width, screen_height + 1, rect_width))

def shuffled_heights(rng=None, rect_width=RECT_WIDTH, screen_height=SCREEN_HEIGHT):
    arr = bar_heights(rect_width, screen_height)
    (rng or random).shuffle(arr)
    return arr

def max_height(arr):
    return max(arr)

def is_sorted(arr):
    return all(arr[i] <= arr[i+1] for i in range(len(arr) - 1))

# ============================================================
# ===================== SORTING ALGORITHMS ===================
# ============================================================
#
# Every sorter is a generator that mutates `arr` in place and yields
# (arr, [active_indices]) once per animation step. The step's tone is
# taken from the last active index.

def counting_sort(arr):
    n = len(arr)
    if n < 2: return
    mx = max_height(arr)
    count = [0] * (mx + 1)
    for v in arr: count[v] += 1
    for i in range(1, mx + 1): count[i] += count[i-1]

    out = [0] * n
    for i in range(n-1, -1, -1):
        out[count[arr[i]] - 1] = arr[i]; count[arr[i]] -= 1
        yield arr, [i]

    for i in range(n):
        arr[i] = out[i]
        yield arr, [i]

def comb_sort(arr):
    n = len(arr)
    if n < 2: return
    gap, swapped = n, True
    while gap != 1 or swapped:
        gap = max(1, gap * 10 // 13)
        swapped = False
        for i in range(n - gap):
            yield arr, [i, i+gap]
            if arr[i] > arr[i+gap]:
                arr[i], arr[i+gap] = arr[i+gap], arr[i]; swapped = True

def cocktail_sort(arr):
    n = len(arr)
    if n < 2: return
    start, end = 0, n - 1
    swapped = True
    while swapped:
        swapped = False
        for i in range(start, end):
            yield arr, [i, i+1]
            if arr[i] > arr[i+1]: arr[i], arr[i+1] = arr[i+1], arr[i]; swapped = True
        if not swapped: break

        swapped = False
        end -= 1
        for i in range(end - 1, start - 1, -1):
            yield arr, [i, i+1]
            if arr[i] > arr[i+1]: arr[i], arr[i+1] = arr[i+1], arr[i]; swapped = True
        start += 1

ALGORITHMS = [
    ("Counting Sort",   "counting"),
    ("Comb Sort",       "comb"),
    ("Cocktail Shaker", "cocktail"),
]

_SORTERS = {
    "counting": counting_sort,
    "comb":     comb_sort,
    "cocktail": cocktail_sort,
}

def algorithm_keys():
    return [key for _, key in ALGORITHMS]

def algorithm_name(key):
    for name, k in ALGORITHMS:
        if k == key: return name
    raise KeyError(f"Unknown key: {key}")

def get_generator(key, arr):
    if key in _SORTERS: return _SORTERS[key](arr)
    raise KeyError(f"Unknown key: {key}")
