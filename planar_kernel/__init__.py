"""
Planar computational geometry on torch point tensors.

Convex hulls, an incremental Delaunay triangulation over a half-edge
structure, Weiler-Atherton polygon intersection and a monotone-polygon
point-set triangulation. Plotting helpers live in `planar_kernel.plotting`
and are not imported here so the package loads without matplotlib.
"""
import logging as _logging

from .background import SerializedTriangulator, submit_delaunay
from .dcel import DCEL
from .delaunay_2d import DelaunayTriangulator, delaunay_edges_2d, delaunay_triangulation_2d
from .errors import GeometryKernelError, PolygonClipError, TriangulationError
from .geometry_core import EPSILON, ConvexHull, convex_hull_indices, monotone_chain_2d, quickhull_2d
from .history_dag import HistoryDAG
from .logging_utils import configure_logging, get_logger
from .monotone_triangulation import select_kth, triangulate_monotone, triangulate_monotone_triangles
from .polygon_intersection import intersect_index_polygons, intersect_polygons, intersect_polygons_all

__version__ = "0.1.0"

_logging.getLogger(__name__).addHandler(_logging.NullHandler())

__all__ = [
    '__version__',
    'EPSILON',
    # structures
    'DCEL', 'HistoryDAG',
    # hulls
    'ConvexHull', 'convex_hull_indices', 'monotone_chain_2d', 'quickhull_2d',
    # triangulation
    'DelaunayTriangulator', 'delaunay_triangulation_2d', 'delaunay_edges_2d',
    'SerializedTriangulator', 'submit_delaunay',
    'select_kth', 'triangulate_monotone', 'triangulate_monotone_triangles',
    # polygons
    'intersect_polygons', 'intersect_polygons_all', 'intersect_index_polygons',
    # errors and logging
    'GeometryKernelError', 'TriangulationError', 'PolygonClipError',
    'configure_logging', 'get_logger',
]
