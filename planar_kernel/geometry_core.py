"""
Core planar geometry: predicates, convex hulls and small polygon utilities.

This module provides the foundations every other part of the kernel builds on:
- A global EPSILON constant for numerical tolerance.
- Input validation that turns an (N, 2) PyTorch tensor into plain float rows.
- Orientation, point-in-triangle, point-segment distance, in-circle,
  segment intersection and point-in-polygon predicates.
- Convex hulls via Andrew's monotone chain and QuickHull (`ConvexHull` class
  and functional entry points), both returning counter-clockwise index lists.
- Circumcircle helpers used to verify Delaunay triangulations.

Predicates work on indexable (x, y) pairs. Coordinates are pulled out of tensors
once with `points_to_coords` so the inner loops run on Python floats; results
are handed back as `torch.long` index tensors on the caller's device.
"""
from collections.abc import Iterable, Sequence

import torch

EPSILON = 1e-7 # Global epsilon for float comparisons

HULL_METHODS = ('monotone', 'quickhull')


def points_to_coords(points: torch.Tensor, count: int | None = None) -> list[list[float]]:
    """
    Validates a point tensor and returns its first `count` rows as float lists.

    Args:
        points (torch.Tensor): Tensor of shape (N, 2).
        count (int | None, optional): Number of leading rows to use. Defaults to all N.

    Returns:
        list[list[float]]: `count` rows of `[x, y]` in double precision.

    Raises:
        ValueError: If `points` is not a tensor of shape (N, 2) or `count` is out of range.
    """
    if points is None and not count:
        return [] # An absent point set behaves like an empty one
    if not isinstance(points, torch.Tensor):
        raise ValueError("Input points must be a PyTorch tensor.")
    if points.ndim != 2 or points.shape[1] != 2:
        raise ValueError("Input points tensor must be 2-dimensional with shape (N, 2).")
    n_points = points.shape[0]
    if count is None:
        count = n_points
    elif count < 0 or count > n_points:
        raise ValueError(f"count must lie in [0, {n_points}], got {count}.")
    return points[:count].detach().to(device='cpu', dtype=torch.float64).tolist()


def points_device(points) -> torch.device | None:
    """Device of a point tensor, or None for absent input."""
    return points.device if isinstance(points, torch.Tensor) else None


def to_index_tensor(rows: Sequence, width: int | None, device: torch.device | str | None) -> torch.Tensor:
    """Packs index rows (or a flat index list when `width` is None) into a long tensor."""
    if not rows:
        shape = (0,) if width is None else (0, width)
        return torch.empty(shape, dtype=torch.long, device=device)
    return torch.tensor(rows, dtype=torch.long, device=device)


# --- Predicates ---

def cross(a: Sequence[float], b: Sequence[float]) -> float:
    """z-component of the cross product of two 2D vectors."""
    return a[0] * b[1] - a[1] * b[0]


def orient(a: Sequence[float], b: Sequence[float], c: Sequence[float]) -> float:
    """
    Twice the signed area of triangle (a, b, c).

    Positive when c lies to the left of the directed line a -> b (counter-clockwise
    turn), negative when it lies to the right, zero when the three are collinear.
    """
    return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])


def is_left_of(a: Sequence[float], b: Sequence[float], c: Sequence[float], tol: float = 0.0) -> bool:
    """True if c is strictly left of the directed line a -> b."""
    return orient(a, b, c) > tol


def point_in_triangle(p: Sequence[float], a: Sequence[float], b: Sequence[float], c: Sequence[float],
                      tol: float = 0.0) -> bool:
    """
    Closed point-in-triangle test that accepts either winding.

    Points on an edge or vertex count as inside.
    """
    d1 = orient(a, b, p)
    d2 = orient(b, c, p)
    d3 = orient(c, a, p)
    has_neg = d1 < -tol or d2 < -tol or d3 < -tol
    has_pos = d1 > tol or d2 > tol or d3 > tol
    return not (has_neg and has_pos)


def project_point_on_segment(p: Sequence[float], a: Sequence[float], b: Sequence[float]) -> float:
    """
    Parameter t in [0, 1] of the projection of p onto segment a-b.

    A zero-length segment projects everything onto t = 0.
    """
    abx, aby = b[0] - a[0], b[1] - a[1]
    denom = max(1e-12, abx * abx + aby * aby)
    t = ((p[0] - a[0]) * abx + (p[1] - a[1]) * aby) / denom
    return min(1.0, max(0.0, t))


def closest_point_on_segment(p: Sequence[float], a: Sequence[float],
                             b: Sequence[float]) -> tuple[tuple[float, float], float]:
    """Returns the closest point of segment a-b to p together with its parameter t."""
    t = project_point_on_segment(p, a, b)
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t), t


def distance_point_segment_sq(p: Sequence[float], a: Sequence[float],
                              b: Sequence[float]) -> tuple[float, tuple[float, float], float]:
    """Squared distance from p to segment a-b, plus the closest point and its parameter."""
    closest, t = closest_point_on_segment(p, a, b)
    dx, dy = p[0] - closest[0], p[1] - closest[1]
    return dx * dx + dy * dy, closest, t


def distance_point_segment(p: Sequence[float], a: Sequence[float],
                           b: Sequence[float]) -> tuple[float, tuple[float, float], float]:
    """Euclidean distance from p to segment a-b, plus the closest point and its parameter."""
    dist_sq, closest, t = distance_point_segment_sq(p, a, b)
    return dist_sq ** 0.5, closest, t


def in_circle(a: Sequence[float], b: Sequence[float], c: Sequence[float], d: Sequence[float]) -> float:
    """
    In-circle determinant of d against the circumcircle of (a, b, c).

    For a counter-clockwise triangle (a, b, c) the result is positive when d lies
    strictly inside the circumcircle, zero when the four points are cocircular and
    negative outside.
    """
    adx, ady = a[0] - d[0], a[1] - d[1]
    bdx, bdy = b[0] - d[0], b[1] - d[1]
    cdx, cdy = c[0] - d[0], c[1] - d[1]
    ad = adx * adx + ady * ady
    bd = bdx * bdx + bdy * bdy
    cd = cdx * cdx + cdy * cdy
    return (ad * (bdx * cdy - cdx * bdy)
            - bd * (adx * cdy - cdx * ady)
            + cd * (adx * bdy - bdx * ady))


def segment_intersection(a1: Sequence[float], a2: Sequence[float], b1: Sequence[float], b2: Sequence[float],
                         tol: float = EPSILON, half_open: bool = True):
    """
    Intersection of segments a1-a2 and b1-b2.

    Args:
        a1, a2 (Sequence[float]): End points of the first segment.
        b1, b2 (Sequence[float]): End points of the second segment.
        tol (float, optional): Segments whose direction cross product is below
                               `tol` in magnitude are treated as parallel.
        half_open (bool, optional): Accept parameters in [0, 1) instead of [0, 1].
                                    Walking a closed polygon edge by edge then
                                    reports a crossing at a shared vertex once.

    Returns:
        tuple[tuple[float, float], float, float] | None: The intersection point and
        its parameters along the first and second segment, or None.
    """
    rx, ry = a2[0] - a1[0], a2[1] - a1[1]
    sx, sy = b2[0] - b1[0], b2[1] - b1[1]
    denom = rx * sy - ry * sx
    if abs(denom) < tol:
        return None
    qx, qy = b1[0] - a1[0], b1[1] - a1[1]
    t_a = (qx * sy - qy * sx) / denom
    t_b = (qx * ry - qy * rx) / denom
    if half_open:
        inside = 0.0 <= t_a < 1.0 and 0.0 <= t_b < 1.0
    else:
        inside = 0.0 <= t_a <= 1.0 and 0.0 <= t_b <= 1.0
    if not inside:
        return None
    return (a1[0] + t_a * rx, a1[1] + t_a * ry), t_a, t_b


def point_in_polygon(p: Sequence[float], polygon: Sequence[Sequence[float]]) -> bool:
    """Even-odd ray casting test of p against a simple polygon given as a vertex ring."""
    inside = False
    n = len(polygon)
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i][0], polygon[i][1]
        xj, yj = polygon[j][0], polygon[j][1]
        if (yi > p[1]) != (yj > p[1]):
            x_cross = (xj - xi) * (p[1] - yi) / (yj - yi) + xi
            if p[0] < x_cross:
                inside = not inside
        j = i
    return inside


def polygon_signed_area(polygon: Sequence[Sequence[float]]) -> float:
    """Shoelace area of a vertex ring; positive for counter-clockwise order."""
    total = 0.0
    n = len(polygon)
    for i in range(n):
        x0, y0 = polygon[i][0], polygon[i][1]
        x1, y1 = polygon[(i + 1) % n][0], polygon[(i + 1) % n][1]
        total += x0 * y1 - x1 * y0
    return 0.5 * total


def ensure_ccw(polygon: Sequence[Sequence[float]]) -> list:
    """Returns the ring as a list in counter-clockwise order, reversing a clockwise one."""
    ring = list(polygon)
    if polygon_signed_area(ring) < 0:
        ring.reverse()
    return ring


# --- Convex hulls ---

def _monotone_chain_indices(coords: Sequence[Sequence[float]], indices: Iterable[int],
                            tol: float = EPSILON, keep_collinear: bool = False) -> list[int]:
    """
    Andrew's monotone chain over a subset of `coords`.

    Returns hull indices counter-clockwise, starting at the lowest-x point (ties:
    lowest y), first point not repeated. Collinear and duplicate points are dropped
    unless `keep_collinear` is set, in which case points lying exactly on a hull
    edge are kept (the input must then be free of duplicates and not all collinear).
    """
    order = sorted(indices, key=lambda i: (coords[i][0], coords[i][1]))
    if len(order) < 3:
        if len(order) == 2 and coords[order[0]] == coords[order[1]]:
            return order[:1]
        return order

    def is_non_left(turn):
        return turn < 0 if keep_collinear else turn <= tol

    def build_chain(sequence):
        chain = []
        for idx in sequence:
            # Pop while the last two chain points and idx do not make a left turn
            while len(chain) >= 2 and is_non_left(orient(coords[chain[-2]], coords[chain[-1]], coords[idx])):
                chain.pop()
            chain.append(idx)
        return chain

    lower = build_chain(order)
    upper = build_chain(reversed(order))
    hull = lower[:-1] + upper[:-1]
    if len(hull) == 2 and coords[hull[0]] == coords[hull[1]]: # All points coincide
        return hull[:1]
    return hull


def _quickhull_indices(coords: Sequence[Sequence[float]], indices: Iterable[int],
                       tol: float = EPSILON) -> list[int]:
    """
    QuickHull over a subset of `coords`, same output convention as the monotone chain.

    The recursion on (segment, outside points) is kept on an explicit stack so
    adversarial inputs cannot exhaust the interpreter's recursion limit.
    Expected O(n log n); O(n^2) when every point ends up on the hull.
    """
    candidates = list(indices)
    if len(candidates) < 3:
        return _monotone_chain_indices(coords, candidates, tol)

    def xy_key(i):
        return coords[i][0], coords[i][1]

    p_min = min(candidates, key=xy_key)
    p_max = max(candidates, key=xy_key)
    if coords[p_min] == coords[p_max]: # All points coincide
        return [p_min]

    def right_of(a, b, pool):
        # Strictly right of a -> b, i.e. outside the chord when walking the hull CCW
        ca, cb = coords[a], coords[b]
        return [i for i in pool if orient(ca, cb, coords[i]) < -tol]

    hull = []
    # Stack entries: ('emit', idx) or ('split', a, b, points strictly right of a -> b)
    stack = [
        ('split', p_max, p_min, right_of(p_max, p_min, candidates)),
        ('emit', p_max),
        ('split', p_min, p_max, right_of(p_min, p_max, candidates)),
        ('emit', p_min),
    ]
    while stack:
        task = stack.pop()
        if task[0] == 'emit':
            hull.append(task[1])
            continue
        _, a, b, outside = task
        if not outside:
            continue
        ca, cb = coords[a], coords[b]
        farthest = min(outside, key=lambda i: orient(ca, cb, coords[i]))
        stack.append(('split', farthest, b, right_of(farthest, b, outside)))
        stack.append(('emit', farthest))
        stack.append(('split', a, farthest, right_of(a, farthest, outside)))
    return hull


def _hull_candidates(n_points: int, exclude: Iterable[int] | None) -> list[int]:
    if exclude is None:
        return list(range(n_points))
    excluded = {int(i) for i in exclude}
    return [i for i in range(n_points) if i not in excluded]


def _hull_simplices(hull: list[int]) -> list[list[int]]:
    if len(hull) < 2:
        return []
    if len(hull) == 2: # A line segment
        return [[hull[0], hull[1]]]
    return [[hull[i], hull[(i + 1) % len(hull)]] for i in range(len(hull))]


def monotone_chain_2d(points: torch.Tensor, tol: float = EPSILON, count: int | None = None,
                      exclude: Iterable[int] | None = None):
    """
    Computes the convex hull of 2D points using the Monotone Chain algorithm.

    Andrew's algorithm sorts the points by (x, y), builds the lower hull left to
    right and the upper hull right to left, popping points that do not make a
    strict left turn, and joins the two chains.

    Args:
        points (torch.Tensor): Tensor of shape (N, 2) representing N points in 2D.
        tol (float, optional): Tolerance for the orientation test; turns with a cross
                               product at or below `tol` count as non-left. Defaults to `EPSILON`.
        count (int | None, optional): Only the first `count` points are used.
        exclude (Iterable[int] | None, optional): Point indices to leave out of the hull.

    Returns:
        Tuple[torch.Tensor, torch.Tensor]:
            - hull_vertices_indices (torch.Tensor): Long tensor of shape (H,), point
              indices ordered counter-clockwise, first point not repeated.
            - hull_simplices (torch.Tensor): Long tensor of shape (H, 2) with the hull
              edges as pairs of point indices; a single edge for collinear input and
              empty for fewer than 2 hull vertices.
    """
    coords = points_to_coords(points, count)
    hull = _monotone_chain_indices(coords, _hull_candidates(len(coords), exclude), tol)
    device = points_device(points)
    return to_index_tensor(hull, None, device), to_index_tensor(_hull_simplices(hull), 2, device)


def quickhull_2d(points: torch.Tensor, tol: float = EPSILON, count: int | None = None,
                 exclude: Iterable[int] | None = None):
    """
    Computes the convex hull of 2D points using QuickHull.

    The extreme-x points split the set into the points below and above their chord.
    Each side is refined by taking the point farthest from the current chord and
    discarding everything inside the triangle it forms.

    Args:
        points (torch.Tensor): Tensor of shape (N, 2) representing N points in 2D.
        tol (float, optional): Points within `tol` (in cross-product units) of a chord
                               are treated as on it. Defaults to `EPSILON`.
        count (int | None, optional): Only the first `count` points are used.
        exclude (Iterable[int] | None, optional): Point indices to leave out of the hull.

    Returns:
        Tuple[torch.Tensor, torch.Tensor]: Same as `monotone_chain_2d`.
    """
    coords = points_to_coords(points, count)
    hull = _quickhull_indices(coords, _hull_candidates(len(coords), exclude), tol)
    device = points_device(points)
    return to_index_tensor(hull, None, device), to_index_tensor(_hull_simplices(hull), 2, device)


def convex_hull_indices(points: torch.Tensor, count: int | None = None, method: str = 'monotone',
                        exclude: Iterable[int] | None = None, tol: float = EPSILON) -> torch.Tensor:
    """
    Counter-clockwise convex hull indices of the first `count` points.

    Args:
        points (torch.Tensor): Tensor of shape (N, 2).
        count (int | None, optional): Number of leading points to use. Defaults to all.
        method (str, optional): 'monotone' or 'quickhull'. Defaults to 'monotone'.
        exclude (Iterable[int] | None, optional): Indices skipped when building the hull.
        tol (float, optional): Orientation tolerance. Defaults to `EPSILON`.

    Returns:
        torch.Tensor: Long tensor of shape (H,).

    Raises:
        ValueError: For malformed points or an unknown `method`.
    """
    if method == 'monotone':
        vertices, _ = monotone_chain_2d(points, tol=tol, count=count, exclude=exclude)
    elif method == 'quickhull':
        vertices, _ = quickhull_2d(points, tol=tol, count=count, exclude=exclude)
    else:
        raise ValueError(f"Unknown hull method '{method}'; expected one of {HULL_METHODS}.")
    return vertices


class ConvexHull:
    """
    Convex hull of a set of 2D points.

    Attributes:
        points (torch.Tensor): The input points.
        tol (float): Tolerance used for the orientation tests.
        method (str): Hull construction, 'monotone' or 'quickhull'.
        vertices (torch.Tensor): Indices of the hull vertices, counter-clockwise.
        simplices (torch.Tensor): Hull edges (N_edges, 2) as point indices.
        area (torch.Tensor): Area of the hull polygon.
        perimeter (torch.Tensor): Length of the hull boundary.
    """
    def __init__(self, points: torch.Tensor, tol: float = EPSILON, method: str = 'monotone'):
        """
        Initializes and computes the convex hull.

        Args:
            points (torch.Tensor): Tensor of shape (N, 2).
            tol (float, optional): Orientation tolerance. Defaults to `EPSILON`.
            method (str, optional): 'monotone' or 'quickhull'. Defaults to 'monotone'.

        Raises:
            ValueError: If the points are not an (N, 2) tensor or the method is unknown.
        """
        if method not in HULL_METHODS:
            raise ValueError(f"Unknown hull method '{method}'; expected one of {HULL_METHODS}.")
        self.points = points
        self.tol = tol
        self.method = method
        self.device = points_device(points)
        self.dtype = points.dtype if isinstance(points, torch.Tensor) else None

        hull_fn = monotone_chain_2d if method == 'monotone' else quickhull_2d
        self.vertices, self.simplices = hull_fn(points, tol=tol)
        self._area = torch.tensor(0.0, device=self.device, dtype=self.dtype)
        self._perimeter = torch.tensor(0.0, device=self.device, dtype=self.dtype)
        self._compute_measures()

    def _compute_measures(self):
        """Shoelace area and boundary length of the hull polygon."""
        n_vertices = self.vertices.shape[0]
        if n_vertices < 2:
            return
        hull_pts = self.points[self.vertices]
        x, y = hull_pts[:, 0], hull_pts[:, 1]
        if n_vertices >= 3:
            self._area = (0.5 * torch.abs(torch.sum(x * torch.roll(y, -1) - torch.roll(x, -1) * y))).to(self.dtype)
            self._perimeter = torch.sum(torch.linalg.norm(torch.roll(hull_pts, -1, dims=0) - hull_pts, dim=1))
        else: # Degenerate hull: a segment traversed there and back
            self._perimeter = 2.0 * torch.linalg.norm(hull_pts[1] - hull_pts[0])

    @property
    def area(self) -> torch.Tensor:
        """Area of the convex polygon (0.0 for degenerate hulls)."""
        return self._area

    @property
    def perimeter(self) -> torch.Tensor:
        """Boundary length of the hull."""
        return self._perimeter


def compute_polygon_area(points_coords: torch.Tensor) -> float:
    """
    Computes the area of the convex hull of a 2D point set.

    Args:
        points_coords (torch.Tensor): Tensor of shape (N, 2).

    Returns:
        float: The hull area; 0.0 if N < 3 or the points are collinear.
    """
    if not (isinstance(points_coords, torch.Tensor) and points_coords.ndim == 2 and points_coords.shape[1] == 2):
        raise ValueError("Input points_coords must be a PyTorch tensor of shape (N, 2).")
    if points_coords.shape[0] < 3:
        return 0.0
    area_val = ConvexHull(points_coords, tol=EPSILON).area.item()
    return 0.0 if abs(area_val) < EPSILON**2 else area_val


# --- Circumcircles ---

def get_triangle_circumcircle_details_2d(p1: torch.Tensor, p2: torch.Tensor, p3: torch.Tensor):
    """
    Computes the circumcenter and squared circumradius of a 2D triangle.

    Args:
        p1 (torch.Tensor): Tensor of shape (2,), first vertex.
        p2 (torch.Tensor): Tensor of shape (2,), second vertex.
        p3 (torch.Tensor): Tensor of shape (2,), third vertex.

    Returns:
        Tuple[torch.Tensor | None, torch.Tensor | None]:
            - circumcenter (torch.Tensor | None): Shape (2,), or `None` for collinear points.
            - squared_radius (torch.Tensor | None): Scalar, or `None` for collinear points.
    """
    p1x, p1y = p1[0], p1[1]
    p2x, p2y = p2[0], p2[1]
    p3x, p3y = p3[0], p3[1]

    # D = 2 * (x1(y2-y3) + x2(y3-y1) + x3(y1-y2))
    d_val = 2 * (p1x * (p2y - p3y) + p2x * (p3y - p1y) + p3x * (p1y - p2y))
    if torch.abs(d_val) < EPSILON: # Collinear points
        return None, None

    p1_sq = p1x**2 + p1y**2
    p2_sq = p2x**2 + p2y**2
    p3_sq = p3x**2 + p3y**2
    ux = (p1_sq * (p2y - p3y) + p2_sq * (p3y - p1y) + p3_sq * (p1y - p2y)) / d_val
    uy = (p1_sq * (p3x - p2x) + p2_sq * (p1x - p3x) + p3_sq * (p2x - p1x)) / d_val

    circumcenter = torch.stack((ux, uy)).to(dtype=p1.dtype, device=p1.device)
    squared_radius = (p1x - ux)**2 + (p1y - uy)**2
    return circumcenter, squared_radius


def is_point_in_circumcircle(point: torch.Tensor,
                             tri_p1: torch.Tensor, tri_p2: torch.Tensor, tri_p3: torch.Tensor,
                             tol: float = EPSILON) -> bool:
    """
    Checks if a point is strictly inside the circumcircle of a triangle.

    Points within `tol` of the circle (in squared-distance units) are not
    considered inside, so cocircular configurations test as outside.

    Returns:
        bool: True if strictly inside; False on or outside the circle, or for a
              degenerate (collinear) triangle.
    """
    circumcenter, squared_radius = get_triangle_circumcircle_details_2d(tri_p1, tri_p2, tri_p3)
    if circumcenter is None:
        return False
    dist_sq_to_center = torch.sum((point - circumcenter)**2)
    return bool(dist_sq_to_center < squared_radius - tol)
