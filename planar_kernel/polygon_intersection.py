"""
Intersection of two simple polygons with the Weiler-Atherton algorithm.

Both boundaries are augmented with their mutual crossing points. Each crossing is
classified as entering or leaving polygon B when walking polygon A forward. The
intersection is then traced by starting at an entering crossing, following A
until the next crossing, switching to B, and so on until the walk closes.

Polygons are (M, 2) tensors of vertices without a repeated closing vertex, in
either winding (they are normalized to counter-clockwise first). Polygons with
holes are not supported. Boundaries that only touch (a vertex grazing an edge,
or a shared vertex) do not count as crossings.
"""
from dataclasses import dataclass

import torch

from .errors import PolygonClipError
from .geometry_core import (
    EPSILON, ensure_ccw, point_in_polygon, points_to_coords, segment_intersection
)
from .logging_utils import get_logger

logger = get_logger(__name__)


@dataclass
class Crossing:
    """A point where edge `edge_a` of A crosses edge `edge_b` of B."""
    point: tuple[float, float]
    edge_a: int
    t_a: float
    edge_b: int
    t_b: float
    entering: bool = False # A enters B here when walking A forward


def find_crossings(poly_a: list, poly_b: list, tol: float = EPSILON) -> list[Crossing]:
    """All pairwise edge intersections of two vertex rings, ordered along A."""
    crossings = []
    n_a, n_b = len(poly_a), len(poly_b)
    for i in range(n_a):
        a1, a2 = poly_a[i], poly_a[(i + 1) % n_a]
        for j in range(n_b):
            hit = segment_intersection(a1, a2, poly_b[j], poly_b[(j + 1) % n_b], tol=tol)
            if hit is not None:
                point, t_a, t_b = hit
                crossings.append(Crossing(point, i, t_a, j, t_b))
    crossings.sort(key=lambda c: (c.edge_a, c.t_a))
    return crossings


def _augment(polygon: list, crossings: list[Crossing], on_a: bool) -> tuple[list, dict[int, int]]:
    """
    Interleaves `crossings` with the vertices of `polygon`.

    Returns the ring as (point, crossing id or None) entries and the ring position
    of every crossing id.
    """
    per_edge: dict[int, list[int]] = {}
    for cid, crossing in enumerate(crossings):
        edge = crossing.edge_a if on_a else crossing.edge_b
        per_edge.setdefault(edge, []).append(cid)

    ring = []
    positions = {}
    for edge, vertex in enumerate(polygon):
        ring.append((tuple(vertex), None))
        on_edge = per_edge.get(edge, [])
        on_edge.sort(key=lambda cid: crossings[cid].t_a if on_a else crossings[cid].t_b)
        for cid in on_edge:
            positions[cid] = len(ring)
            ring.append((crossings[cid].point, cid))
    return ring, positions


def _neighbour_point(ring: list, position: int, step: int) -> tuple[float, float]:
    """Nearest ring point before (step=-1) or after (step=1) `position` that differs from it."""
    origin = ring[position][0]
    for offset in range(1, len(ring)):
        candidate = ring[(position + step * offset) % len(ring)][0]
        if candidate != origin:
            return candidate
    return origin


def _classify(poly_b: list, crossings: list[Crossing], ring_a: list, positions_a: dict[int, int]) -> list[Crossing]:
    """Marks entering crossings and drops contacts where A stays on one side of B."""
    kept = []
    for cid, crossing in enumerate(crossings):
        position = positions_a[cid]
        before = _neighbour_point(ring_a, position, -1)
        after = _neighbour_point(ring_a, position, 1)
        p = crossing.point
        inside_before = point_in_polygon(((before[0] + p[0]) / 2, (before[1] + p[1]) / 2), poly_b)
        inside_after = point_in_polygon(((after[0] + p[0]) / 2, (after[1] + p[1]) / 2), poly_b)
        if inside_before == inside_after:
            logger.debug("Ignoring boundary contact at %s.", p)
            continue
        crossing.entering = inside_after
        kept.append(crossing)
    return kept


def _dedupe_ring(points: list, tol: float) -> list:
    """Removes consecutive near-duplicate vertices, including a repeated closing vertex."""
    result = []
    for point in points:
        if not result or abs(point[0] - result[-1][0]) > tol or abs(point[1] - result[-1][1]) > tol:
            result.append(point)
    while len(result) > 1 and abs(result[0][0] - result[-1][0]) <= tol and abs(result[0][1] - result[-1][1]) <= tol:
        result.pop()
    return result


def _trace_loops(poly_a: list, poly_b: list, tol: float) -> list[list]:
    """Intersection loops of two counter-clockwise vertex rings."""
    crossings = find_crossings(poly_a, poly_b, tol)
    if crossings:
        ring_a, positions_a = _augment(poly_a, crossings, on_a=True)
        crossings = _classify(poly_b, crossings, ring_a, positions_a)

    if not crossings:
        # Disjoint boundaries: one polygon contains the other, or they do not overlap
        if point_in_polygon(poly_a[0], poly_b):
            return [list(map(tuple, poly_a))]
        if point_in_polygon(poly_b[0], poly_a):
            return [list(map(tuple, poly_b))]
        return []

    ring_a, positions_a = _augment(poly_a, crossings, on_a=True)
    ring_b, positions_b = _augment(poly_b, crossings, on_a=False)
    step_limit = len(poly_a) + len(poly_b) + 2 * len(crossings)

    loops = []
    visited = set()
    for start, start_crossing in enumerate(crossings):
        if not start_crossing.entering or start in visited:
            continue
        loop = []
        cid = start
        on_a = True
        steps = 0
        while True:
            visited.add(cid)
            loop.append(crossings[cid].point)
            ring, positions = (ring_a, positions_a) if on_a else (ring_b, positions_b)
            index = positions[cid]
            while True:
                index = (index + 1) % len(ring)
                steps += 1
                if steps > step_limit:
                    raise PolygonClipError(
                        "Weiler-Atherton walk did not close; the input polygons are probably not simple."
                    )
                point, next_cid = ring[index]
                if next_cid is not None:
                    break
                loop.append(point)
            cid = next_cid
            if cid == start:
                break
            on_a = not on_a
        loop = _dedupe_ring(loop, tol)
        if len(loop) >= 3:
            loops.append(loop)
    return loops


def _polygon_coords(polygon: torch.Tensor, name: str) -> list:
    try:
        return points_to_coords(polygon)
    except ValueError as exc:
        raise ValueError(f"{name} must be a tensor of shape (M, 2).") from exc


def intersect_polygons_all(poly_a: torch.Tensor, poly_b: torch.Tensor, tol: float = EPSILON) -> list[torch.Tensor]:
    """
    Every connected piece of the intersection of two simple polygons.

    Non-convex inputs can intersect in several pieces; convex inputs give at most one.

    Args:
        poly_a (torch.Tensor): Tensor of shape (M, 2), vertices of polygon A.
        poly_b (torch.Tensor): Tensor of shape (K, 2), vertices of polygon B.
        tol (float, optional): Parallel-edge and duplicate-vertex tolerance. Defaults to `EPSILON`.

    Returns:
        list[torch.Tensor]: Counter-clockwise vertex tensors, one per piece, with the
                            dtype and device of `poly_a`.

    Raises:
        ValueError: If either polygon is not an (M, 2) tensor.
        PolygonClipError: If the boundary walk does not close (non-simple input).
    """
    coords_a = _polygon_coords(poly_a, "poly_a")
    coords_b = _polygon_coords(poly_b, "poly_b")
    if len(coords_a) < 3 or len(coords_b) < 3:
        return []
    loops = _trace_loops(ensure_ccw(coords_a), ensure_ccw(coords_b), tol)
    return [torch.tensor(loop, dtype=poly_a.dtype, device=poly_a.device) for loop in loops]


def intersect_polygons(poly_a: torch.Tensor, poly_b: torch.Tensor, tol: float = EPSILON) -> torch.Tensor:
    """
    Intersection polygon of two simple polygons.

    When the intersection has several pieces, the piece reached first from the
    start of A's boundary is returned.

    Args:
        poly_a (torch.Tensor): Tensor of shape (M, 2), vertices of polygon A.
        poly_b (torch.Tensor): Tensor of shape (K, 2), vertices of polygon B.
        tol (float, optional): Parallel-edge and duplicate-vertex tolerance. Defaults to `EPSILON`.

    Returns:
        torch.Tensor: Counter-clockwise vertices of shape (P, 2); `(0, 2)` when the
                      polygons do not overlap or either has fewer than 3 vertices.
    """
    pieces = intersect_polygons_all(poly_a, poly_b, tol)
    if len(pieces) > 1:
        logger.debug("Polygon intersection has %d pieces; returning the first.", len(pieces))
    if not pieces:
        dtype = poly_a.dtype if isinstance(poly_a, torch.Tensor) else None
        device = poly_a.device if isinstance(poly_a, torch.Tensor) else None
        return torch.empty((0, 2), dtype=dtype, device=device)
    return pieces[0]


def intersect_index_polygons(points: torch.Tensor, indices_a, indices_b, tol: float = EPSILON) -> torch.Tensor:
    """
    Intersects two polygons given as index rings into one point tensor.

    Args:
        points (torch.Tensor): Tensor of shape (N, 2) holding the vertices of both polygons.
        indices_a (Sequence[int] | torch.Tensor): Vertex indices of polygon A.
        indices_b (Sequence[int] | torch.Tensor): Vertex indices of polygon B.
        tol (float, optional): Defaults to `EPSILON`.

    Returns:
        torch.Tensor: Same as `intersect_polygons`.
    """
    if not isinstance(points, torch.Tensor) or points.ndim != 2 or points.shape[1] != 2:
        raise ValueError("points must be a tensor of shape (N, 2).")
    index_a = torch.as_tensor(indices_a, dtype=torch.long, device=points.device)
    index_b = torch.as_tensor(indices_b, dtype=torch.long, device=points.device)
    return intersect_polygons(points[index_a], points[index_b], tol)
