import torch
import unittest
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from ..monotone_triangulation import triangulate_monotone
from ..plotting import plot_convex_hull_2d, plot_polygon_intersection_2d, plot_triangulation_2d


class TestPlotting(unittest.TestCase):
    """
    Smoke tests for the plotting helpers.
    These only check that the functions run and hand back axes for basic inputs.
    They do not verify the visual output.
    """

    @classmethod
    def tearDownClass(cls):
        """Close all Matplotlib figures after all tests in the class have run."""
        plt.close('all')

    def setUp(self):
        self.points = torch.tensor([[0., 0.], [1., 0.], [0.5, 0.866], [1., 1.], [0.3, 0.4]])

    def test_plot_triangulation_smoke(self):
        try:
            ax = plot_triangulation_2d(self.points, title="Delaunay Smoke Test")
            self.assertIsNotNone(ax)
            edges = triangulate_monotone(self.points)
            _, ax2 = plt.subplots()
            self.assertIs(plot_triangulation_2d(self.points, edges=edges, ax=ax2), ax2)
            plot_triangulation_2d(self.points[:2], title="Two Points")
        except Exception as e:
            self.fail(f"plot_triangulation_2d raised an exception: {e}")
        finally:
            plt.close('all')

    def test_plot_convex_hull_smoke(self):
        try:
            self.assertIsNotNone(plot_convex_hull_2d(self.points))
            plot_convex_hull_2d(torch.tensor([[0., 0.], [1., 1.], [2., 2.]]), title="Collinear")
            plot_convex_hull_2d(self.points[:1], title="One Point")
        except Exception as e:
            self.fail(f"plot_convex_hull_2d raised an exception: {e}")
        finally:
            plt.close('all')

    def test_plot_polygon_intersection_smoke(self):
        square = torch.tensor([[0., 0.], [1., 0.], [1., 1.], [0., 1.]])
        try:
            self.assertIsNotNone(plot_polygon_intersection_2d(square, square + 0.5))
            plot_polygon_intersection_2d(square, square + 5.0, title="Disjoint")
        except Exception as e:
            self.fail(f"plot_polygon_intersection_2d raised an exception: {e}")
        finally:
            plt.close('all')

    def test_empty_input_returns_none(self):
        with self.assertLogs('planar_kernel.plotting', level='WARNING'):
            self.assertIsNone(plot_triangulation_2d(torch.empty((0, 2))))
        with self.assertLogs('planar_kernel.plotting', level='WARNING'):
            self.assertIsNone(plot_convex_hull_2d(torch.empty((0, 2))))
        with self.assertLogs('planar_kernel.plotting', level='WARNING'):
            self.assertIsNone(plot_polygon_intersection_2d(torch.empty((0, 2)), torch.rand(3, 2)))


if __name__ == '__main__':
    unittest.main()
