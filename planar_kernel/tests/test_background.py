"""
Unit tests for off-thread Delaunay builds in `background.py`.
"""
import concurrent.futures as futures
import torch
import unittest

from ..background import SerializedTriangulator, submit_delaunay
from ..delaunay_2d import delaunay_edges_2d


class TestBackgroundBuilds(unittest.TestCase):

    def setUp(self):
        generator = torch.Generator().manual_seed(21)
        self.points = torch.rand((30, 2), generator=generator, dtype=torch.float64)

    def test_submit_matches_synchronous_result(self):
        with futures.ThreadPoolExecutor(max_workers=2) as executor:
            future = submit_delaunay(executor, self.points)
            edges = future.result(timeout=60)
        self.assertTrue(torch.equal(edges, delaunay_edges_2d(self.points)))

    def test_snapshot_is_taken_at_submission(self):
        """Mutating the caller's buffer after submission does not affect the queued build."""
        expected = delaunay_edges_2d(self.points)
        buffer = self.points.clone()
        with futures.ThreadPoolExecutor(max_workers=1) as executor:
            future = submit_delaunay(executor, buffer)
            buffer.zero_()
            self.assertTrue(torch.equal(future.result(timeout=60), expected))

    def test_errors_surface_through_the_future(self):
        with futures.ThreadPoolExecutor(max_workers=1) as executor:
            future = submit_delaunay(executor, self.points, count=100)
            with self.assertRaises(ValueError):
                future.result(timeout=60)

    def test_serialized_triangulator_latest(self):
        with SerializedTriangulator() as builder:
            self.assertIsNone(builder.latest())
            first = builder.submit(self.points, count=10)
            second = builder.submit(self.points)
            self.assertIs(builder.latest(), second)
            self.assertTrue(torch.equal(second.result(timeout=60), delaunay_edges_2d(self.points)))
            # The first build either ran to completion or was cancelled while queued
            self.assertTrue(first.cancelled() or first.done())

    def test_shutdown_rejects_new_work(self):
        builder = SerializedTriangulator()
        builder.shutdown()
        with self.assertRaises(RuntimeError):
            builder.submit(self.points)


if __name__ == '__main__':
    unittest.main()
