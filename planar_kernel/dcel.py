"""
Doubly-connected edge list (half-edge) subdivision of the plane.

Half-edges and faces live in two arenas (plain lists) and refer to each other by
integer handle, so the structure has no reference cycles and copying or
inspecting it is cheap. Vertices are the caller's point indices; negative indices
are allowed (the Delaunay engine uses them for its symbolic sentinels).

A dictionary keyed by the directed edge (origin, destination) gives O(1) lookup
of the half-edge between two vertices. Every creation and removal goes through
this class so the dictionary always matches the live edge set.
"""
from dataclasses import dataclass

NONE = -1 # Handle value for an unset link
OUTER_FACE = 0 # Face handle of the unbounded exterior


@dataclass
class HalfEdge:
    """One directed side of an edge. Links are handles into the owning DCEL's arenas."""
    origin: int
    twin: int = NONE
    next: int = NONE
    prev: int = NONE
    face: int = OUTER_FACE


@dataclass
class Face:
    """A face, represented by one half-edge of its boundary cycle."""
    outer_component: int = NONE


class DCEL:
    """
    Half-edge subdivision built one triangle at a time.

    Attributes:
        half_edges (list[HalfEdge]): Half-edge arena; a handle is a list index.
        faces (list[Face]): Face arena; handle 0 is the outer face.
    """
    def __init__(self):
        self.half_edges: list[HalfEdge] = []
        self.faces: list[Face] = [Face()]
        self._edge_map: dict[tuple[int, int], int] = {}

    def __len__(self) -> int:
        """Number of live half-edges."""
        return len(self._edge_map)

    def dest(self, edge: int) -> int:
        """Destination vertex of a half-edge (origin of its twin)."""
        return self.half_edges[self.half_edges[edge].twin].origin

    def try_get_edge(self, origin: int, dest: int) -> int | None:
        """Handle of the live half-edge origin -> dest, or None."""
        return self._edge_map.get((origin, dest))

    def get_or_create_edge(self, origin: int, dest: int, face: int) -> int:
        """
        Returns the half-edge origin -> dest assigned to `face`.

        An existing half-edge just has its incident face reassigned. Otherwise a
        twin pair is created; the reverse half-edge starts on the outer face until
        a triangle claims it.
        """
        existing = self._edge_map.get((origin, dest))
        if existing is not None:
            self.half_edges[existing].face = face
            return existing

        edge = len(self.half_edges)
        twin = edge + 1
        self.half_edges.append(HalfEdge(origin=origin, twin=twin, face=face))
        self.half_edges.append(HalfEdge(origin=dest, twin=edge, face=OUTER_FACE))
        self._edge_map[(origin, dest)] = edge
        self._edge_map[(dest, origin)] = twin
        return edge

    def add_triangle(self, a: int, b: int, c: int) -> int | None:
        """
        Adds the triangular face a -> b -> c (counter-clockwise) and returns its handle.

        Edges shared with earlier triangles are reused, so adjacent faces end up
        joined through their twins. A triangle with a repeated vertex is rejected
        and None is returned.
        """
        if a == b or b == c or c == a:
            return None
        face = len(self.faces)
        self.faces.append(Face())
        e_ab = self.get_or_create_edge(a, b, face)
        e_bc = self.get_or_create_edge(b, c, face)
        e_ca = self.get_or_create_edge(c, a, face)

        for edge, nxt, prv in ((e_ab, e_bc, e_ca), (e_bc, e_ca, e_ab), (e_ca, e_ab, e_bc)):
            record = self.half_edges[edge]
            record.next = nxt
            record.prev = prv
        self.faces[face].outer_component = e_ab
        return face

    def remove_edge(self, u: int, v: int) -> None:
        """
        Drops the edge u-v (both directions) from the directed-edge lookup.

        The records stay in the arena so old handles remain readable, but the edge
        is no longer part of the subdivision. Removing a missing edge is a no-op.
        """
        for key in ((u, v), (v, u)):
            edge = self._edge_map.pop(key, None)
            if edge is not None:
                record = self.half_edges[edge]
                record.next = record.prev = NONE
                record.face = OUTER_FACE

    def third_vertex(self, edge: int) -> int | None:
        """
        Vertex opposite `edge` in its face (origin of next.next).

        Returns None for a half-edge whose cycle is not linked, which is the case
        for a twin that still borders the outer face.
        """
        record = self.half_edges[edge]
        if record.next == NONE or record.face == OUTER_FACE:
            return None
        nxt = self.half_edges[record.next]
        if nxt.next == NONE:
            return None
        return self.half_edges[nxt.next].origin

    def face_vertices(self, face: int) -> list[int]:
        """Vertices of a bounded face in boundary order."""
        start = self.faces[face].outer_component
        if start == NONE:
            return []
        vertices = []
        edge = start
        while True:
            vertices.append(self.half_edges[edge].origin)
            edge = self.half_edges[edge].next
            if edge == start or edge == NONE or len(vertices) > len(self.half_edges):
                break
        return vertices

    def to_edge_list(self) -> list[tuple[int, int]]:
        """Every live undirected edge exactly once, as (origin, dest) of one of its half-edges."""
        edges = []
        for (origin, dest), edge in self._edge_map.items():
            if edge < self.half_edges[edge].twin: # The pair is created edge, edge+1
                edges.append((origin, dest))
        return edges
