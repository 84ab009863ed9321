"""
Computes 2D Delaunay triangulations with the randomized incremental algorithm.

Points are inserted one at a time in random order into a triangulation that starts
as a single triangle formed by the highest input point and two symbolic sentinel
points. The sentinels are never given coordinates: every predicate that involves
them is resolved from the lexicographic order of the real points, as in de Berg
et al., "Computational Geometry", chapter 9. Each insertion

1. locates the triangle containing the point by descending the history DAG,
2. splits that triangle into three (or, for a point on an edge, the two
   triangles sharing the edge into four), and
3. legalizes the edges opposite the new point with in-circle tests, flipping
   illegal edges and re-checking the two edges each flip exposes.

The subdivision is stored in a `DCEL` and every triangle ever created is a node of
a `HistoryDAG`. The triangulation is the set of DAG leaves that do not touch a
sentinel.
"""
from typing import NamedTuple

import torch

from .dcel import DCEL, OUTER_FACE
from .errors import TriangulationError
from .geometry_core import in_circle, orient, points_device, points_to_coords, to_index_tensor
from .history_dag import HistoryDAG
from .logging_utils import get_logger

logger = get_logger(__name__)

DEFAULT_SEED = 11111 # Seed of the insertion-order shuffle

# Symbolic sentinel vertices. P_MINUS_1 lies far to the lower right and compares
# greater than every real point; P_MINUS_2 lies far to the upper left and compares
# less than every real point.
P_MINUS_1 = -1
P_MINUS_2 = -2


class Triangle(NamedTuple):
    """Vertex indices of a counter-clockwise triangle, rotated to start at the smallest index."""
    a: int
    b: int
    c: int

    def has_sentinel(self) -> bool:
        return self.a < 0 # Canonical rotation puts the smallest index first

    def edges(self) -> tuple[tuple[int, int], ...]:
        """The three directed boundary edges, counter-clockwise."""
        return (self.a, self.b), (self.b, self.c), (self.c, self.a)


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


class SymbolicPredicates:
    """
    Orientation predicates over real points and the two sentinels.

    Real points are ordered by y and then by x (the larger x is the greater point).
    The sentinels sit outside the convex hull of every real point: P_MINUS_1 beyond
    all of them in the direction of that order's minimum, P_MINUS_2 beyond all of them
    in the direction of its maximum, both further away than any finite configuration
    can resolve. Every orientation involving a sentinel therefore reduces to a
    comparison between real points.

    Args:
        coords (list[list[float]]): Coordinates of the real points, indexed by point index.
    """
    def __init__(self, coords):
        self.coords = coords

    def compare(self, i: int, j: int) -> int:
        """Sign of point i minus point j in the (y, x) order, with the sentinels at the extremes."""
        if i == j:
            return 0
        if i == P_MINUS_1 or j == P_MINUS_2:
            return 1
        if i == P_MINUS_2 or j == P_MINUS_1:
            return -1
        ci, cj = self.coords[i], self.coords[j]
        if ci[1] != cj[1]:
            return 1 if ci[1] > cj[1] else -1
        if ci[0] != cj[0]:
            return 1 if ci[0] > cj[0] else -1
        return 0

    def is_left_of(self, j: int, i: int, k: int) -> int:
        """
        Side of point j relative to the directed line i -> k.

        Returns:
            int: 1 if j is to the left, -1 if to the right, 0 if on the line.
        """
        if j == i or j == k or i == k:
            return 0
        if j == P_MINUS_1:
            if k == P_MINUS_2:
                return 1
            if i == P_MINUS_2:
                return -1
            return self.compare(i, k)
        if j == P_MINUS_2:
            if k == P_MINUS_1:
                return -1
            if i == P_MINUS_1:
                return 1
            return self.compare(k, i)
        if i == P_MINUS_1:
            return -1 if k == P_MINUS_2 else self.compare(k, j)
        if i == P_MINUS_2:
            return 1 if k == P_MINUS_1 else self.compare(j, k)
        if k == P_MINUS_1:
            return self.compare(j, i)
        if k == P_MINUS_2:
            return self.compare(i, j)
        return _sign(orient(self.coords[i], self.coords[k], self.coords[j]))

    def orientation(self, a: int, b: int, c: int) -> int:
        """1 for a counter-clockwise triangle (a, b, c), -1 for clockwise, 0 if degenerate."""
        return self.is_left_of(c, a, b)

    def contains(self, triangle: Triangle, p: int) -> int:
        """
        Position of real point p relative to a counter-clockwise triangle.

        Returns:
            int: 1 strictly inside, 0 on an edge, -1 outside.
        """
        sides = [self.is_left_of(p, u, v) for u, v in triangle.edges()]
        if min(sides) < 0:
            return -1
        return 0 if 0 in sides else 1

    def make_triangle(self, a: int, b: int, c: int) -> Triangle:
        """
        Canonical key of triangle {a, b, c}: counter-clockwise, smallest index first.

        Raises:
            TriangulationError: If the three vertices are collinear or repeated.
        """
        turn = self.orientation(a, b, c)
        if turn == 0:
            raise TriangulationError(f"Degenerate triangle ({a}, {b}, {c}).")
        vertices = (a, b, c) if turn > 0 else (a, c, b)
        start = vertices.index(min(vertices))
        return Triangle(*(vertices[start:] + vertices[:start]))


class DelaunayTriangulator:
    """
    One randomized incremental Delaunay build over a fixed point set.

    Attributes:
        coords (list[list[float]]): Input coordinates.
        predicates (SymbolicPredicates): Sentinel-aware predicates over `coords`.
        dcel (DCEL): Current subdivision, sentinel triangles included.
        dag (HistoryDAG): Every triangle created during the build.
        highest (int | None): Index of the highest point (greatest y, then greatest x).
        skipped (list[int]): Indices dropped because they coincide with an earlier point.
        flips (int): Number of edge flips performed.
    """
    def __init__(self, coords, seed: int | None = DEFAULT_SEED):
        self.coords = coords
        self.seed = seed
        self.predicates = SymbolicPredicates(coords)
        self.dcel = DCEL()
        self.dag = HistoryDAG()
        self.highest: int | None = None
        self.skipped: list[int] = []
        self.flips = 0
        self._face_triangles: dict[int, Triangle] = {}

    def build(self) -> 'DelaunayTriangulator':
        """Runs the full construction. Fewer than 3 points leave the triangulation empty."""
        n_points = len(self.coords)
        if n_points < 3:
            return self
        self.highest = max(range(n_points), key=lambda i: (self.coords[i][1], self.coords[i][0]))
        root = self._add_triangle(self.highest, P_MINUS_2, P_MINUS_1)
        self.dag.add_root_node(root)

        for p in self.insertion_order():
            self.insert_point(p)

        if self.skipped:
            logger.info("Skipped %d duplicate point(s) during Delaunay triangulation.", len(self.skipped))
        logger.debug("Delaunay build: %d points, %d DAG nodes, %d flips.", n_points, len(self.dag), self.flips)
        return self

    def insertion_order(self) -> list[int]:
        """All point indices except the highest one, shuffled with the configured seed."""
        rest = [i for i in range(len(self.coords)) if i != self.highest]
        generator = None
        if self.seed is not None:
            generator = torch.Generator().manual_seed(self.seed)
        permutation = torch.randperm(len(rest), generator=generator).tolist()
        return [rest[k] for k in permutation]

    def insert_point(self, p: int) -> None:
        """
        Inserts real point p and restores the Delaunay property.

        Raises:
            TriangulationError: If p cannot be located or the subdivision is inconsistent.
        """
        leaf = self.dag.find_leaf(lambda tri: self.predicates.contains(tri, p) >= 0)
        if leaf is None:
            raise TriangulationError(f"Point {p} could not be located in the history DAG.")

        if any(v >= 0 and self.coords[v] == self.coords[p] for v in leaf):
            logger.debug("Point %d coincides with a vertex of %s; skipped.", p, leaf)
            self.skipped.append(p)
            return

        if self.predicates.contains(leaf, p) > 0:
            self._split_triangle(leaf, p)
        else:
            self._split_edge(leaf, p)

    def triangles(self) -> list[Triangle]:
        """Current triangles that do not touch a sentinel."""
        return [tri for tri in self.dag.get_leaves() if not tri.has_sentinel()]

    def edges(self) -> list[tuple[int, int]]:
        """Undirected edges of `triangles()`, each once as (min, max), sorted."""
        edge_set = set()
        for tri in self.triangles():
            for u, v in tri.edges():
                edge_set.add((u, v) if u < v else (v, u))
        return sorted(edge_set)

    def _add_triangle(self, a: int, b: int, c: int) -> Triangle:
        tri = self.predicates.make_triangle(a, b, c)
        face = self.dcel.add_triangle(*tri)
        if face is None:
            raise TriangulationError(f"DCEL rejected triangle {tri}.")
        self._face_triangles[face] = tri
        return tri

    def _triangle_of(self, edge: int) -> Triangle:
        face = self.dcel.half_edges[edge].face
        tri = self._face_triangles.get(face)
        if face == OUTER_FACE or tri is None:
            raise TriangulationError(f"Half-edge {edge} does not bound a live triangle.")
        return tri

    def _split_triangle(self, tri: Triangle, p: int) -> None:
        a, b, c = tri
        children = (self._add_triangle(a, b, p), self._add_triangle(b, c, p), self._add_triangle(c, a, p))
        self.dag.add_children(tri, *children)
        self._legalize(p, [(a, b), (b, c), (c, a)])

    def _split_edge(self, tri: Triangle, p: int) -> None:
        """Splits the edge of `tri` through p together with the triangle across it."""
        a, b = next((u, v) for u, v in tri.edges() if self.predicates.is_left_of(p, u, v) == 0)
        c = next(v for v in tri if v != a and v != b)
        edge = self.dcel.try_get_edge(a, b)
        if edge is None:
            raise TriangulationError(f"Edge ({a}, {b}) of {tri} is missing from the DCEL.")
        twin = self.dcel.half_edges[edge].twin
        x = self.dcel.third_vertex(twin)
        if x is None:
            raise TriangulationError(f"Edge ({a}, {b}) under point {p} has no triangle on its far side.")
        across = self._triangle_of(twin)

        self.dcel.remove_edge(a, b)
        children = (
            self._add_triangle(a, p, c), self._add_triangle(p, b, c),
            self._add_triangle(b, p, x), self._add_triangle(p, a, x),
        )
        self.dag.add_children(tri, *children)
        self.dag.add_children(across, *children)
        logger.debug("Point %d split edge (%d, %d).", p, a, b)
        self._legalize(p, [(a, x), (x, b), (b, c), (c, a)])

    def _is_root_edge(self, i: int, j: int) -> bool:
        if i < 0 and j < 0:
            return True
        return (i < 0 and j == self.highest) or (j < 0 and i == self.highest)

    def is_illegal(self, i: int, j: int, l: int, k: int) -> bool:
        """
        Whether edge i-j, shared by triangles (i, j, l) and (j, i, k), must be flipped.

        l is the point being inserted and is always real. For four real points the
        edge is illegal when k lies strictly inside the circumcircle of (i, j, l);
        cocircular points leave the edge in place. A sentinel is treated as a point
        at infinity: it never lies inside a circle through real points, and a circle
        through two real points q, l and a sentinel s degenerates to the open
        half-plane bounded by line q-l on the side of s.
        """
        if k < 0 or (i < 0 and j < 0):
            return False
        if i < 0 or j < 0:
            s, q = (i, j) if i < 0 else (j, i)
            side = self.predicates.is_left_of(k, q, l)
            return side != 0 and side == self.predicates.is_left_of(s, q, l)
        return in_circle(self.coords[i], self.coords[j], self.coords[l], self.coords[k]) > 0

    def _legalize(self, r: int, edges: list[tuple[int, int]]) -> None:
        """Legalizes `edges` (all opposite the new point r) with an explicit depth-first work list."""
        stack = list(reversed(edges))
        while stack:
            i, j = stack.pop()
            k = self._flip_if_illegal(r, i, j)
            if k is not None:
                # The flip exposes (i, k) and (k, j); check (i, k) first
                stack.append((k, j))
                stack.append((i, k))

    def _flip_if_illegal(self, r: int, i: int, j: int) -> int | None:
        """Flips edge i-j to r-k if illegal and returns k; returns None for a legal edge."""
        if self._is_root_edge(i, j):
            return None
        edge = self.dcel.try_get_edge(i, j)
        if edge is None:
            raise TriangulationError(f"Edge ({i}, {j}) is missing from the DCEL during legalization.")
        if self.dcel.third_vertex(edge) != r:
            i, j = j, i
            edge = self.dcel.half_edges[edge].twin
            if self.dcel.third_vertex(edge) != r:
                raise TriangulationError(f"Edge ({i}, {j}) is not opposite the inserted point {r}.")
        twin = self.dcel.half_edges[edge].twin
        k = self.dcel.third_vertex(twin)
        if k is None:
            raise TriangulationError(f"Edge ({i}, {j}) has only one incident triangle.")

        if not self.is_illegal(i, j, r, k):
            return None
        if self.predicates.orientation(i, k, r) <= 0 or self.predicates.orientation(k, j, r) <= 0:
            # Diagonal of a non-convex quadrilateral; it cannot be flipped
            logger.debug("Edge (%d, %d) tests illegal but its quadrilateral is not convex.", i, j)
            return None

        near, far = self._triangle_of(edge), self._triangle_of(twin)
        self.dcel.remove_edge(i, j)
        children = (self._add_triangle(i, k, r), self._add_triangle(k, j, r))
        self.dag.add_children(near, *children)
        self.dag.add_children(far, *children)
        self.flips += 1
        logger.debug("Flipped edge (%d, %d) to (%d, %d).", i, j, r, k)
        return k


def _triangulate(points: torch.Tensor, count: int | None, seed: int | None) -> DelaunayTriangulator | None:
    coords = points_to_coords(points, count)
    if len(coords) < 3:
        return None
    return DelaunayTriangulator(coords, seed=seed).build()


def delaunay_triangulation_2d(points: torch.Tensor, count: int | None = None,
                              seed: int | None = DEFAULT_SEED) -> torch.Tensor:
    """
    Computes the 2D Delaunay triangulation of a set of points.

    Args:
        points (torch.Tensor): Tensor of shape (N, 2) representing N points in 2D.
        count (int | None, optional): Only the first `count` points are triangulated.
        seed (int | None, optional): Seed of the insertion-order shuffle; None draws
                                     from torch's global generator. Defaults to `DEFAULT_SEED`.

    Returns:
        torch.Tensor: Long tensor of shape (M, 3), one counter-clockwise triangle per
                      row as indices into `points`. Empty `(0, 3)` for fewer than 3
                      points or collinear input.

    Raises:
        ValueError: If `points` is not an (N, 2) tensor or `count` is out of range.
        TriangulationError: If an internal invariant of the construction breaks.
    """
    triangulator = _triangulate(points, count, seed)
    rows = [list(tri) for tri in triangulator.triangles()] if triangulator is not None else []
    return to_index_tensor(rows, 3, points_device(points))


def delaunay_edges_2d(points: torch.Tensor, count: int | None = None,
                      seed: int | None = DEFAULT_SEED) -> torch.Tensor:
    """
    Edge list of the 2D Delaunay triangulation, suitable for line rendering.

    Args:
        points (torch.Tensor): Tensor of shape (N, 2).
        count (int | None, optional): Only the first `count` points are triangulated.
        seed (int | None, optional): Insertion-order seed. Defaults to `DEFAULT_SEED`.

    Returns:
        torch.Tensor: Long tensor of shape (E, 2). Each undirected edge appears once
                      as (min, max); rows are sorted. Empty `(0, 2)` when there are
                      no triangles.
    """
    triangulator = _triangulate(points, count, seed)
    rows = triangulator.edges() if triangulator is not None else []
    return to_index_tensor(rows, 2, points_device(points))
