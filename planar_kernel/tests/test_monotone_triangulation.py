"""
Unit tests for the monotone-polygon point-set triangulation.

Besides quickselect and the stack sweep on a single monotone polygon, every
triangulation is checked for validity: all triangles counter-clockwise with
positive area, their areas summing to the hull area, every distinct point used,
and the triangle count matching Euler's formula.
"""
import random
import torch
import unittest

from ..geometry_core import ConvexHull, orient, polygon_signed_area
from ..monotone_triangulation import (
    MonotoneTriangulator, ear_clip, select_kth, triangulate_monotone, triangulate_monotone_polygon,
    triangulate_monotone_triangles
)


def _triangle_area(coords, tri):
    a, b, c = (coords[v] for v in tri)
    return 0.5 * orient(a, b, c)


class TestSelectKth(unittest.TestCase):

    def test_matches_sorted_order(self):
        rng = random.Random(4)
        for trial in range(20):
            items = [rng.randint(0, 50) for _ in range(rng.randint(1, 40))]
            k = rng.randrange(len(items))
            expected = sorted(items)[k]
            result = select_kth(items, k, seed=trial)
            self.assertEqual(result, expected)
            self.assertTrue(all(x <= result for x in items[:k]), "Items before k must not be larger.")
            self.assertTrue(all(x >= result for x in items[k + 1:]), "Items after k must not be smaller.")

    def test_key_and_duplicates(self):
        items = [(3, 'c'), (1, 'a'), (2, 'b'), (1, 'z'), (5, 'e')]
        self.assertEqual(select_kth(items, 4, key=lambda item: item[0]), (5, 'e'))
        self.assertEqual(select_kth([7] * 10, 6), 7)

    def test_out_of_range(self):
        with self.assertRaises(ValueError):
            select_kth([1, 2, 3], 3)
        with self.assertRaises(ValueError):
            select_kth([], 0)


class TestMonotonePolygon(unittest.TestCase):

    def test_zigzag_polygon(self):
        coords = [[0., 4.], [-1., 3.], [-0.2, 2.], [-1., 1.], [0., 0.], [1., 1.], [0.3, 2.], [1., 3.]]
        polygon = list(range(8))
        triangles = triangulate_monotone_polygon(coords, polygon)
        self.assertEqual(len(triangles), 6, "A simple polygon with m vertices has m - 2 triangles.")
        for tri in triangles:
            self.assertGreater(_triangle_area(coords, tri), 0)
        total = sum(_triangle_area(coords, tri) for tri in triangles)
        self.assertAlmostEqual(total, polygon_signed_area(coords))

    def test_convex_polygon(self):
        coords = [[0., 0.], [2., 0.], [3., 1.], [2., 2.], [0., 2.], [-1., 1.]]
        triangles = triangulate_monotone_polygon(coords, list(range(6)))
        self.assertEqual(len(triangles), 4)
        self.assertAlmostEqual(sum(_triangle_area(coords, tri) for tri in triangles), polygon_signed_area(coords))

    def test_too_small(self):
        self.assertEqual(triangulate_monotone_polygon([[0., 0.], [1., 0.]], [0, 1]), [])

    def test_ear_clip_concave(self):
        coords = [[0., 0.], [4., 0.], [4., 4.], [2., 1.], [0., 4.]] # Arrow with a reflex vertex at (2, 1)
        triangles = ear_clip(coords, [4, 3, 2, 1, 0]) # Clockwise input is reoriented
        self.assertEqual(len(triangles), 3)
        self.assertAlmostEqual(sum(_triangle_area(coords, tri) for tri in triangles), polygon_signed_area(coords))


class TestTriangulateMonotone(unittest.TestCase):

    def _check_valid(self, points, triangles, expect_all_points=True):
        coords = points.tolist()
        total = 0.0
        for tri in triangles.tolist():
            area = _triangle_area(coords, tri)
            self.assertGreater(area, 0.0, f"Triangle {tri} is not counter-clockwise with positive area.")
            total += area
        hull_area = ConvexHull(points.to(torch.float64)).area.item()
        self.assertAlmostEqual(total, hull_area, places=9, msg="Triangles must tile the convex hull exactly.")
        if expect_all_points:
            self.assertEqual(set(triangles.flatten().tolist()), set(range(points.shape[0])))

    def test_unit_square(self):
        points = torch.tensor([[0., 0.], [1., 0.], [1., 1.], [0., 1.]], dtype=torch.float64)
        triangles = triangulate_monotone_triangles(points)
        self.assertEqual(triangles.shape, (2, 3))
        self._check_valid(points, triangles)
        self.assertEqual(triangulate_monotone(points).shape, (5, 2))

    def test_random_points(self):
        for seed, n in ((1, 9), (2, 40), (3, 100)):
            generator = torch.Generator().manual_seed(seed)
            points = torch.rand((n, 2), generator=generator, dtype=torch.float64)
            triangles = triangulate_monotone_triangles(points, seed=seed)
            self._check_valid(points, triangles)
            n_hull = ConvexHull(points).vertices.shape[0]
            self.assertEqual(triangles.shape[0], 2 * n - n_hull - 2, f"Triangle count mismatch for n={n}.")

    def test_small_leaves_force_merges(self):
        generator = torch.Generator().manual_seed(8)
        points = torch.rand((64, 2), generator=generator, dtype=torch.float64)
        triangles = triangulate_monotone_triangles(points, leaf_size=3, seed=0)
        self._check_valid(points, triangles)

    def test_grid_with_collinear_points(self):
        xs, ys = torch.meshgrid(torch.arange(5, dtype=torch.float64), torch.arange(4, dtype=torch.float64),
                                indexing='ij')
        points = torch.stack([xs.flatten(), ys.flatten()], dim=1)
        triangles = triangulate_monotone_triangles(points, leaf_size=6)
        self._check_valid(points, triangles)
        self.assertEqual(triangles.shape[0], 2 * 4 * 3, "A 5 x 4 grid splits into 24 unit triangles.")

    def test_edges_well_formed(self):
        generator = torch.Generator().manual_seed(12)
        points = torch.rand((30, 2), generator=generator, dtype=torch.float64)
        edges = triangulate_monotone(points).tolist()
        self.assertEqual(edges, sorted(edges))
        self.assertEqual(len(edges), len({tuple(e) for e in edges}))
        for u, v in edges:
            self.assertLess(u, v)
        n_hull = ConvexHull(points).vertices.shape[0]
        self.assertEqual(len(edges), 3 * 30 - 3 - n_hull)

    def test_collinear_and_tiny_inputs(self):
        collinear = torch.tensor([[0., 0.], [1., 1.], [2., 2.], [3., 3.]])
        self.assertEqual(triangulate_monotone_triangles(collinear).shape, (0, 3))
        self.assertEqual(triangulate_monotone(collinear).shape, (0, 2))
        self.assertEqual(triangulate_monotone(torch.rand((2, 2))).shape, (0, 2))

    def test_duplicates_are_ignored(self):
        points = torch.tensor([[0., 0.], [2., 0.], [1., 2.], [1., 0.5], [1., 0.5]], dtype=torch.float64)
        triangulator = MonotoneTriangulator(points.tolist())
        triangles = triangulator.triangles()
        self.assertEqual(triangulator.duplicates, [4])
        self.assertEqual(len(triangles), 3)
        self.assertNotIn(4, {v for tri in triangles for v in tri})

    def test_count_argument(self):
        points = torch.tensor([[0., 0.], [1., 0.], [0., 1.], [5., 5.]])
        self.assertEqual(triangulate_monotone_triangles(points, count=3).shape, (1, 3))
        with self.assertRaises(ValueError):
            triangulate_monotone(points, count=7)

    def test_invalid_leaf_size(self):
        with self.assertRaises(ValueError):
            MonotoneTriangulator([[0., 0.], [1., 0.], [0., 1.]], leaf_size=2)

    def test_absent_points(self):
        self.assertEqual(triangulate_monotone(None).shape, (0, 2))
        self.assertEqual(triangulate_monotone_triangles(None).shape, (0, 3))


class TestMergeTiling(unittest.TestCase):
    """
    Merged halves must tile the convex hull: no overlap, no gap.

    The sets below put points of both halves on one vertical line, and have one
    half fall inside the angle between the two bridges, so both bridges end at
    the same vertex of that half.
    """

    def _check_tiling(self, points, triangles, context):
        coords = points.tolist()
        distinct = {}
        for idx, point in enumerate(coords):
            distinct.setdefault(tuple(point), idx)
        hull_area = ConvexHull(points).area.item()
        total = 0.0
        for tri in triangles.tolist():
            area = _triangle_area(coords, tri)
            self.assertGreater(area, 0.0, f"{context}: triangle {tri} is not counter-clockwise.")
            total += area
        self.assertAlmostEqual(total, hull_area, places=9, msg=f"{context}: triangle areas must sum to the hull area.")
        if hull_area > 0:
            self.assertEqual(set(triangles.flatten().tolist()), set(distinct.values()),
                             f"{context}: every distinct point must be a vertex.")

    def test_half_inside_bridge_angle(self):
        points = torch.tensor([[3., 2.], [1., 1.], [2., 1.], [3., 3.], [1., 3.], [2., 0.], [0., 0.], [1., 2.], [1., 4.]],
                              dtype=torch.float64)
        triangles = triangulate_monotone_triangles(points)
        self._check_tiling(points, triangles, "nine lattice points")
        self.assertEqual(triangles.shape[0], 2 * 9 - 5 - 2)

    def test_small_leaves_half_inside_bridge_angle(self):
        points = torch.tensor([[2., 1.], [1., 2.], [0., 0.], [3., 4.], [1., 3.], [1., 1.]], dtype=torch.float64)
        triangles = triangulate_monotone_triangles(points, leaf_size=3)
        self._check_tiling(points, triangles, "six lattice points")
        self.assertEqual(triangles.shape[0], 2 * 6 - 4 - 2)

    def test_random_floats_over_leaf_sizes(self):
        generator = torch.Generator().manual_seed(8)
        points = torch.rand((56, 2), generator=generator, dtype=torch.float64)
        for leaf_size in range(3, 9):
            self._check_tiling(points, triangulate_monotone_triangles(points, leaf_size=leaf_size),
                               f"56 random points, leaf_size={leaf_size}")

        for seed in range(12):
            generator = torch.Generator().manual_seed(100 + seed)
            points = torch.rand((15 + 4 * seed, 2), generator=generator, dtype=torch.float64)
            for leaf_size in range(3, 9):
                self._check_tiling(points, triangulate_monotone_triangles(points, leaf_size=leaf_size, seed=seed),
                                   f"seed={seed}, leaf_size={leaf_size}")

    def test_integer_lattice_over_leaf_sizes(self):
        for seed in range(12):
            generator = torch.Generator().manual_seed(200 + seed)
            points = torch.randint(0, 6, (12 + 3 * seed, 2), generator=generator).to(torch.float64)
            for leaf_size in range(3, 9):
                self._check_tiling(points, triangulate_monotone_triangles(points, leaf_size=leaf_size, seed=seed),
                                   f"lattice seed={seed}, leaf_size={leaf_size}")


if __name__ == '__main__':
    unittest.main()
