"""
Unit tests for the half-edge structure in `dcel.py`.
"""
import unittest

from ..dcel import DCEL, NONE, OUTER_FACE


class TestDCEL(unittest.TestCase):

    def setUp(self):
        # Two counter-clockwise triangles sharing the edge 1-2
        self.dcel = DCEL()
        self.face_a = self.dcel.add_triangle(0, 1, 2)
        self.face_b = self.dcel.add_triangle(2, 1, 3)

    def test_twins_are_involutive(self):
        for key, edge in self.dcel._edge_map.items():
            twin = self.dcel.half_edges[edge].twin
            self.assertEqual(self.dcel.half_edges[twin].twin, edge, f"Twin of twin differs for {key}.")
            self.assertEqual(self.dcel.half_edges[edge].origin, key[0])
            self.assertEqual(self.dcel.dest(edge), key[1])

    def test_face_cycles_have_length_three(self):
        for face in (self.face_a, self.face_b):
            start = self.dcel.faces[face].outer_component
            edge = start
            for _ in range(3):
                record = self.dcel.half_edges[edge]
                self.assertEqual(record.face, face)
                self.assertEqual(self.dcel.half_edges[record.next].prev, edge, "next.prev must return to the edge.")
                edge = record.next
            self.assertEqual(edge, start, "Face cycle should close after three steps.")

    def test_shared_edge_is_reused(self):
        """The second triangle claims the outer twin created by the first."""
        e12 = self.dcel.try_get_edge(1, 2)
        e21 = self.dcel.try_get_edge(2, 1)
        self.assertEqual(self.dcel.half_edges[e12].twin, e21)
        self.assertEqual(self.dcel.half_edges[e12].face, self.face_a)
        self.assertEqual(self.dcel.half_edges[e21].face, self.face_b)
        self.assertEqual(len(self.dcel), 10, "Five undirected edges, ten half-edges.")

    def test_third_vertex(self):
        self.assertEqual(self.dcel.third_vertex(self.dcel.try_get_edge(1, 2)), 0)
        self.assertEqual(self.dcel.third_vertex(self.dcel.try_get_edge(2, 1)), 3)
        self.assertIsNone(self.dcel.third_vertex(self.dcel.try_get_edge(1, 0)), "Boundary twin has no triangle.")

    def test_face_vertices(self):
        self.assertEqual(self.dcel.face_vertices(self.face_a), [0, 1, 2])
        self.assertEqual(self.dcel.face_vertices(OUTER_FACE), [])

    def test_to_edge_list(self):
        edges = sorted(tuple(sorted(e)) for e in self.dcel.to_edge_list())
        self.assertEqual(edges, [(0, 1), (0, 2), (1, 2), (1, 3), (2, 3)])

    def test_remove_edge(self):
        e12 = self.dcel.try_get_edge(1, 2)
        self.dcel.remove_edge(1, 2)
        self.assertIsNone(self.dcel.try_get_edge(1, 2))
        self.assertIsNone(self.dcel.try_get_edge(2, 1))
        self.assertEqual(len(self.dcel), 8)
        record = self.dcel.half_edges[e12]
        self.assertEqual(record.next, NONE)
        self.assertEqual(record.face, OUTER_FACE)
        self.dcel.remove_edge(1, 2) # Removing again is a no-op
        self.assertEqual(len(self.dcel), 8)

    def test_flip_rebuilds_consistent_faces(self):
        """Replacing diagonal 1-2 with 0-3 leaves a valid two-triangle subdivision."""
        self.dcel.remove_edge(1, 2)
        f1 = self.dcel.add_triangle(0, 1, 3)
        f2 = self.dcel.add_triangle(0, 3, 2)
        self.assertEqual(self.dcel.third_vertex(self.dcel.try_get_edge(0, 3)), 2)
        self.assertEqual(self.dcel.third_vertex(self.dcel.try_get_edge(3, 0)), 1)
        self.assertEqual(self.dcel.face_vertices(f1), [0, 1, 3])
        self.assertEqual(self.dcel.face_vertices(f2), [0, 3, 2])
        edges = sorted(tuple(sorted(e)) for e in self.dcel.to_edge_list())
        self.assertEqual(edges, [(0, 1), (0, 2), (0, 3), (1, 3), (2, 3)])

    def test_degenerate_triangle_rejected(self):
        self.assertIsNone(self.dcel.add_triangle(4, 4, 5))

    def test_negative_vertices_allowed(self):
        dcel = DCEL()
        face = dcel.add_triangle(0, -2, -1)
        self.assertIsNotNone(face)
        self.assertEqual(dcel.third_vertex(dcel.try_get_edge(-2, -1)), 0)


if __name__ == '__main__':
    unittest.main()
