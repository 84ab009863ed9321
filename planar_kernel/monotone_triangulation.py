"""
Point-set triangulation from y-monotone polygons and a median split.

This is an alternative to the Delaunay engine when only *a* triangulation of the
points is needed. The point set is split at its median point in (x, y) order,
found with quickselect rather than a full sort, and each half is handled
recursively. Small sets are triangulated directly:

1. The topmost and bottommost points are joined by a spine. Points left of the
   spine form the left chain and points right of it the right chain, each
   ordered by height. Top, left chain, bottom, right chain is a simple y-monotone
   polygon through every point.
2. That polygon is triangulated with the classic stack sweep.
3. Each pocket between the polygon and the convex hull is bounded by one hull edge
   and a piece of a single chain, so it is y-monotone as well and is swept the
   same way.

Two triangulated halves are joined by their upper and lower hull bridges. The gap
between the facing hull chains and the bridges is ear-clipped. It is a simple
polygon unless one half lies inside the angle the two bridges make at one of its
vertices; then that half's whole hull faces the gap and the ring touches itself
at the shared vertex.

"Above" is the symbolic order used throughout: larger y, ties broken by smaller x.
"""
import random

import torch

from .errors import TriangulationError
from .geometry_core import (
    EPSILON, _monotone_chain_indices, orient, point_in_triangle, points_to_coords,
    points_device, polygon_signed_area, to_index_tensor
)
from .logging_utils import get_logger

logger = get_logger(__name__)

LEAF_SIZE = 8 # Point sets up to this size are triangulated without splitting


def select_kth(items: list, k: int, key=None, seed: int | None = None):
    """
    Returns the k-th smallest item (0-based) using quickselect.

    The list is partitioned in place: afterwards `items[:k]` hold keys no greater
    than the result and `items[k + 1:]` keys no smaller. Expected linear time;
    pivots are drawn at random and equal keys are grouped in a three-way
    partition, so runs of duplicates do not degrade it.

    Args:
        items (list): Items to partition; reordered in place.
        k (int): Rank of the requested item, 0 <= k < len(items).
        key (Callable | None, optional): Sort key. Defaults to the items themselves.
        seed (int | None, optional): Seed of the pivot choice.

    Raises:
        ValueError: If `k` is out of range.
    """
    if not 0 <= k < len(items):
        raise ValueError(f"k must lie in [0, {len(items)}), got {k}.")
    if key is None:
        key = lambda item: item
    rng = random.Random(seed)
    lo, hi = 0, len(items) - 1
    while lo < hi:
        pivot = key(items[rng.randint(lo, hi)])
        # Dutch-flag partition of items[lo..hi] into < pivot, == pivot, > pivot
        lt, i, gt = lo, lo, hi
        while i <= gt:
            item_key = key(items[i])
            if item_key < pivot:
                items[lt], items[i] = items[i], items[lt]
                lt += 1
                i += 1
            elif item_key > pivot:
                items[i], items[gt] = items[gt], items[i]
                gt -= 1
            else:
                i += 1
        if k < lt:
            hi = lt - 1
        elif k > gt:
            lo = gt + 1
        else:
            break
    return items[k]


def _ccw_triangle(coords, a: int, b: int, c: int) -> tuple[int, int, int] | None:
    """(a, b, c) reordered counter-clockwise, or None if it has no area."""
    turn = orient(coords[a], coords[b], coords[c])
    if turn > 0:
        return a, b, c
    if turn < 0:
        return a, c, b
    return None


def _on_segment_past(a, b, p) -> bool:
    """True if p lies on the line a-b on b's side of a."""
    if orient(a, b, p) != 0:
        return False
    return (p[0] - a[0]) * (b[0] - a[0]) + (p[1] - a[1]) * (b[1] - a[1]) > 0


def triangulate_monotone_polygon(coords, polygon: list[int]) -> list[tuple[int, int, int]]:
    """
    Triangulates a counter-clockwise y-monotone polygon with the stack sweep.

    Args:
        coords (Sequence[Sequence[float]]): Point coordinates.
        polygon (list[int]): Vertex indices in counter-clockwise order.

    Returns:
        list[tuple[int, int, int]]: Counter-clockwise triangles; zero-area triangles
                                    produced by collinear vertices are left out.
    """
    m = len(polygon)
    if m < 3:
        return []

    def height_key(v):
        return -coords[v][1], coords[v][0] # Ascending = from the top down

    top_pos = min(range(m), key=lambda k: height_key(polygon[k]))
    bottom = max(polygon, key=height_key)
    # Walking counter-clockwise from the top reaches the bottom along the left chain
    on_left = {}
    pos = top_pos
    while polygon[pos] != bottom:
        on_left[polygon[pos]] = True
        pos = (pos + 1) % m
    while polygon[pos] != polygon[top_pos]:
        on_left[polygon[pos]] = False
        pos = (pos + 1) % m

    order = sorted(polygon, key=height_key)
    raw = []
    stack = [order[0], order[1]]
    for j in range(2, m - 1):
        v = order[j]
        if on_left[v] != on_left[stack[-1]]:
            # Opposite chain: fan to every stacked vertex
            while len(stack) > 1:
                u = stack.pop()
                raw.append((v, u, stack[-1]))
            stack = [order[j - 1], v]
        else:
            last = stack.pop()
            while stack:
                turn = orient(coords[v], coords[last], coords[stack[-1]])
                inside = turn < 0 if on_left[v] else turn > 0
                if not inside:
                    break
                raw.append((v, last, stack[-1]))
                last = stack.pop()
            stack.append(last)
            stack.append(v)
    v = order[-1]
    while len(stack) > 1:
        u = stack.pop()
        raw.append((v, u, stack[-1]))

    triangles = []
    for tri in raw:
        ccw = _ccw_triangle(coords, *tri)
        if ccw is not None:
            triangles.append(ccw)
    return triangles


def ear_clip(coords, polygon: list[int]) -> list[tuple[int, int, int]]:
    """
    Triangulates a simple polygon by repeatedly cutting off ears.

    Vertices where the boundary runs straight are never cut; they stay on the
    boundary of a neighbouring triangle so no vertex ends up inside an edge. The
    ring may touch itself at a vertex listed twice; the two occurrences share an
    index and never block each other's ears.

    Raises:
        TriangulationError: If no ear exists (the polygon is not simple) or the
                            last three vertices turn clockwise.
    """
    ring = list(polygon)
    if polygon_signed_area([coords[v] for v in ring]) < 0:
        ring.reverse()
    triangles = []
    while len(ring) > 3:
        n = len(ring)
        for pos in range(n):
            a, b, c = ring[pos - 1], ring[pos], ring[(pos + 1) % n]
            if orient(coords[a], coords[b], coords[c]) <= 0:
                continue
            if any(v != a and v != b and v != c and point_in_triangle(coords[v], coords[a], coords[b], coords[c])
                   for v in ring):
                continue
            triangles.append((a, b, c))
            del ring[pos]
            break
        else:
            if all(orient(coords[ring[k - 1]], coords[ring[k]], coords[ring[(k + 1) % n]]) == 0 for k in range(n)):
                return triangles # Only a flat remainder is left
            raise TriangulationError(f"Ear clipping found no ear in a polygon of {n} vertices.")
    if len(ring) == 3:
        turn = orient(coords[ring[0]], coords[ring[1]], coords[ring[2]])
        if turn < 0:
            raise TriangulationError(f"Ear clipping left a clockwise remainder {tuple(ring)}.")
        if turn > 0:
            triangles.append(tuple(ring))
    return triangles


class MonotoneTriangulator:
    """
    Divide-and-conquer triangulation of a point set.

    Args:
        coords (list[list[float]]): Point coordinates.
        leaf_size (int, optional): Largest set triangulated without splitting. Defaults to `LEAF_SIZE`.
        seed (int | None, optional): Seed of the quickselect pivots.
        tol (float, optional): Tolerance of the collinearity test on each half. Defaults to `EPSILON`.
    """
    def __init__(self, coords, leaf_size: int = LEAF_SIZE, seed: int | None = None, tol: float = EPSILON):
        if leaf_size < 3:
            raise ValueError("leaf_size must be at least 3.")
        self.coords = coords
        self.leaf_size = leaf_size
        self.seed = seed
        self.tol = tol
        self.duplicates: list[int] = []

    def triangles(self) -> list[tuple[int, int, int]]:
        """Counter-clockwise triangles covering the convex hull of the points."""
        first_seen = {}
        for idx, point in enumerate(self.coords):
            key = (point[0], point[1])
            if key in first_seen:
                self.duplicates.append(idx)
            else:
                first_seen[key] = idx
        if self.duplicates:
            logger.info("Ignoring %d duplicate point(s) in monotone triangulation.", len(self.duplicates))
        ids = list(first_seen.values())
        if len(ids) < 3:
            return []
        return self._triangulate(ids)

    def _xy_key(self, v):
        return self.coords[v][0], self.coords[v][1]

    def _triangulate(self, ids: list[int]) -> list[tuple[int, int, int]]:
        if len(ids) <= self.leaf_size:
            return self._fill(ids)
        k = len(ids) // 2
        select_kth(ids, k, key=self._xy_key, seed=self.seed)
        left, right = ids[:k], ids[k:]
        if (len(_monotone_chain_indices(self.coords, left, self.tol)) < 3 or
                len(_monotone_chain_indices(self.coords, right, self.tol)) < 3):
            # A flat half has nothing to bridge against; treat the set as one leaf
            return self._fill(ids)
        triangles = self._triangulate(left) + self._triangulate(right)
        triangles.extend(self._merge(left, right))
        return triangles

    def _fill(self, ids: list[int]) -> list[tuple[int, int, int]]:
        """Triangulates the convex hull of `ids` through one spine polygon and its pockets."""
        coords = self.coords
        if len(_monotone_chain_indices(coords, ids, self.tol)) < 3:
            return []

        def height_key(v):
            return -coords[v][1], coords[v][0]

        top = min(ids, key=height_key)
        bottom = max(ids, key=height_key)
        left_chain, right_chain, on_spine = [], [], []
        for v in ids:
            if v == top or v == bottom:
                continue
            turn = orient(coords[bottom], coords[top], coords[v])
            if turn > 0:
                left_chain.append(v)
            elif turn < 0:
                right_chain.append(v)
            else:
                on_spine.append(v)
        # Points on the spine join the chain that would otherwise be the bare spine
        if left_chain:
            right_chain.extend(on_spine)
        else:
            left_chain.extend(on_spine)
        left_chain.sort(key=height_key)
        right_chain.sort(key=height_key, reverse=True)
        polygon = [top] + left_chain + [bottom] + right_chain
        triangles = triangulate_monotone_polygon(coords, polygon)

        hull = _monotone_chain_indices(coords, ids, keep_collinear=True)
        position = {v: k for k, v in enumerate(polygon)}
        m = len(polygon)
        for h, h_next in zip(hull, hull[1:] + hull[:1]):
            path = []
            k = (position[h] + 1) % m
            while polygon[k] != h_next:
                path.append(polygon[k])
                k = (k + 1) % m
            if path:
                triangles.extend(triangulate_monotone_polygon(coords, [h, h_next] + path[::-1]))
        return triangles

    def _tangent(self, hull_l: list[int], hull_r: list[int], upper: bool) -> tuple[int, int]:
        """Positions in `hull_l` and `hull_r` of the upper or lower bridge between the two hulls."""
        coords = self.coords
        n_l, n_r = len(hull_l), len(hull_r)
        # The (x, y) split separates the halves by a line that may lean off vertical;
        # the (x, y) extremes are the innermost vertices across it.
        i = max(range(n_l), key=lambda p: self._xy_key(hull_l[p]))
        j = min(range(n_r), key=lambda p: self._xy_key(hull_r[p]))
        # Upper bridge: left hull turns counter-clockwise, right hull clockwise, while
        # the candidate is above the line; the lower bridge mirrors both.
        step_l, step_r, sign = (1, -1, 1) if upper else (-1, 1, -1)
        budget = 2 * (n_l + n_r) + 4
        moved = True
        while moved:
            moved = False
            while sign * orient(coords[hull_l[i]], coords[hull_r[j]], coords[hull_l[(i + step_l) % n_l]]) > 0:
                i = (i + step_l) % n_l
                moved = True
                budget -= 1
            while sign * orient(coords[hull_l[i]], coords[hull_r[j]], coords[hull_r[(j + step_r) % n_r]]) > 0:
                j = (j + step_r) % n_r
                moved = True
                budget -= 1
            if budget < 0:
                raise TriangulationError("Hull bridge search did not converge.")

        # Pull both ends inward past hull vertices lying on the bridge itself
        moved = True
        while moved:
            moved = False
            inner_i, inner_j = (i - step_l) % n_l, (j - step_r) % n_r
            if _on_segment_past(coords[hull_l[i]], coords[hull_r[j]], coords[hull_l[inner_i]]):
                i, moved = inner_i, True
            elif _on_segment_past(coords[hull_r[j]], coords[hull_l[i]], coords[hull_r[inner_j]]):
                j, moved = inner_j, True
        return i, j

    def _merge(self, left: list[int], right: list[int]) -> list[tuple[int, int, int]]:
        """Triangulates the region between two separated, already triangulated halves."""
        hull_l = _monotone_chain_indices(self.coords, left, keep_collinear=True)
        hull_r = _monotone_chain_indices(self.coords, right, keep_collinear=True)
        lt, rt = self._tangent(hull_l, hull_r, upper=True)
        lb, rb = self._tangent(hull_l, hull_r, upper=False)

        # Counter-clockwise gap: lower bridge, right hull's facing side upwards,
        # upper bridge, left hull's facing side downwards. When both bridges meet
        # one hull at the same vertex, that whole hull faces the gap and the ring
        # passes through the vertex twice.
        gap = [hull_l[lb]]
        pos = rb
        while True:
            gap.append(hull_r[pos])
            pos = (pos - 1) % len(hull_r)
            if pos == rt:
                break
        gap.append(hull_r[rt])
        pos = lt
        while True:
            gap.append(hull_l[pos])
            pos = (pos - 1) % len(hull_l)
            if pos == lb:
                break
        return ear_clip(self.coords, gap)


def _monotone_triangles(points: torch.Tensor, count: int | None, leaf_size: int, seed: int | None):
    coords = points_to_coords(points, count)
    if len(coords) < 3:
        return []
    return MonotoneTriangulator(coords, leaf_size=leaf_size, seed=seed).triangles()


def triangulate_monotone_triangles(points: torch.Tensor, count: int | None = None, leaf_size: int = LEAF_SIZE,
                                   seed: int | None = None) -> torch.Tensor:
    """
    Triangulates a point set through y-monotone polygons and median splits.

    Args:
        points (torch.Tensor): Tensor of shape (N, 2).
        count (int | None, optional): Only the first `count` points are used.
        leaf_size (int, optional): Largest subset triangulated without splitting.
        seed (int | None, optional): Seed of the quickselect pivots.

    Returns:
        torch.Tensor: Long tensor of shape (M, 3) of counter-clockwise triangles whose
                      union is the convex hull of the points; `(0, 3)` for fewer than
                      3 distinct points or collinear input.
    """
    rows = [list(tri) for tri in _monotone_triangles(points, count, leaf_size, seed)]
    return to_index_tensor(rows, 3, points_device(points))


def triangulate_monotone(points: torch.Tensor, count: int | None = None, leaf_size: int = LEAF_SIZE,
                         seed: int | None = None) -> torch.Tensor:
    """
    Edge list of `triangulate_monotone_triangles`.

    Returns:
        torch.Tensor: Long tensor of shape (E, 2), each undirected edge once as
                      (min, max), rows sorted.
    """
    edge_set = set()
    for tri in _monotone_triangles(points, count, leaf_size, seed):
        for u, v in ((tri[0], tri[1]), (tri[1], tri[2]), (tri[2], tri[0])):
            edge_set.add((u, v) if u < v else (v, u))
    return to_index_tensor(sorted(edge_set), 2, points_device(points))
