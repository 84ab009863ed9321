"""
Matplotlib figures for inspecting the kernel's output.

- `plot_triangulation_2d`: points and triangulation edges (Delaunay by default).
- `plot_convex_hull_2d`: points with their hull polygon.
- `plot_polygon_intersection_2d`: two polygons and their intersection.

Each function draws onto the given axes or a fresh figure and returns the axes.
Missing data is computed on the fly; empty input logs a warning and returns None.
"""
import torch
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.collections import LineCollection
from matplotlib.patches import Polygon as MplPolygon # Alias to keep the name free for our own polygons

# Project-specific imports
from .delaunay_2d import delaunay_edges_2d
from .geometry_core import convex_hull_indices
from .logging_utils import get_logger
from .polygon_intersection import intersect_polygons

logger = get_logger(__name__)


def _new_axes(ax):
    if ax is None:
        _, ax = plt.subplots()
    return ax


def _finish_axes(ax, title: str):
    ax.autoscale_view()
    ax.set_xlabel("X-axis")
    ax.set_ylabel("Y-axis")
    ax.set_title(title)
    handles, _ = ax.get_legend_handles_labels()
    if handles:
        ax.legend()
    ax.set_aspect('equal', adjustable='box')
    return ax


def plot_triangulation_2d(
    points: torch.Tensor,
    edges: torch.Tensor | None = None,
    ax=None,
    title: str = "2D Delaunay Triangulation"
):
    """
    Plots the edges of a planar triangulation over its points.

    Args:
        points (torch.Tensor): Tensor of shape (N, 2).
        edges (torch.Tensor | None, optional): Long tensor of shape (E, 2) of point
            index pairs. If None, the Delaunay edges of `points` are computed.
            Edges from `triangulate_monotone` work the same way.
        ax (matplotlib.axes.Axes | None, optional): Existing axes to plot on.
            If None, a new figure and axes are created.
        title (str, optional): Title for the plot.

    Returns:
        matplotlib.axes.Axes | None: The axes drawn on; None for empty input.
    """
    if points.shape[0] == 0:
        logger.warning("No points provided for triangulation plot.")
        return None
    if edges is None:
        edges = delaunay_edges_2d(points)

    ax = _new_axes(ax)
    points_np = points.detach().cpu().numpy()
    if edges.shape[0] > 0:
        edges_np = edges.detach().cpu().numpy()
        segments = np.stack([points_np[edges_np[:, 0]], points_np[edges_np[:, 1]]], axis=1)
        ax.add_collection(LineCollection(segments, colors='black', linewidths=0.8, label='Edges'))
    ax.plot(points_np[:, 0], points_np[:, 1], 'o', label='Points', color='blue')
    return _finish_axes(ax, title)


def plot_convex_hull_2d(
    points: torch.Tensor,
    hull: torch.Tensor | None = None,
    ax=None,
    title: str = "2D Convex Hull"
):
    """
    Plots points with their convex hull outline.

    Args:
        points (torch.Tensor): Tensor of shape (N, 2).
        hull (torch.Tensor | None, optional): Counter-clockwise hull vertex indices.
            If None, it will be computed with `convex_hull_indices`.
        ax (matplotlib.axes.Axes | None, optional): Existing axes to plot on.
        title (str, optional): Title for the plot.

    Returns:
        matplotlib.axes.Axes | None: The axes drawn on; None for empty input.
    """
    if points.shape[0] == 0:
        logger.warning("No points provided for convex hull plot.")
        return None
    if hull is None:
        hull = convex_hull_indices(points)

    ax = _new_axes(ax)
    points_np = points.detach().cpu().numpy()
    ax.plot(points_np[:, 0], points_np[:, 1], 'o', label='Points', color='blue')
    hull_np = points_np[hull.detach().cpu().numpy()]
    if hull_np.shape[0] >= 3:
        ax.add_patch(MplPolygon(hull_np, edgecolor='red', fill=False, label='Hull'))
    elif hull_np.shape[0] == 2:
        ax.plot(hull_np[:, 0], hull_np[:, 1], '-', color='red', label='Hull')
    return _finish_axes(ax, title)


def plot_polygon_intersection_2d(
    poly_a: torch.Tensor,
    poly_b: torch.Tensor,
    result: torch.Tensor | None = None,
    ax=None,
    title: str = "Polygon Intersection"
):
    """
    Plots two polygons and the region where they overlap.

    Args:
        poly_a (torch.Tensor): Tensor of shape (M, 2), vertices of polygon A.
        poly_b (torch.Tensor): Tensor of shape (K, 2), vertices of polygon B.
        result (torch.Tensor | None, optional): Intersection vertices. If None,
            `intersect_polygons` is called.
        ax (matplotlib.axes.Axes | None, optional): Existing axes to plot on.
        title (str, optional): Title for the plot.

    Returns:
        matplotlib.axes.Axes | None: The axes drawn on; None if either polygon is empty.
    """
    if poly_a.shape[0] == 0 or poly_b.shape[0] == 0:
        logger.warning("Both polygons need vertices for an intersection plot.")
        return None
    if result is None:
        result = intersect_polygons(poly_a, poly_b)

    ax = _new_axes(ax)
    for poly, color, label in ((poly_a, 'blue', 'Polygon A'), (poly_b, 'green', 'Polygon B')):
        ax.add_patch(MplPolygon(poly.detach().cpu().numpy(), edgecolor=color, fill=False, label=label))
    if result.shape[0] >= 3:
        ax.add_patch(MplPolygon(result.detach().cpu().numpy(), facecolor='orange', alpha=0.5,
                                edgecolor='red', label='Intersection'))
    return _finish_axes(ax, title)
