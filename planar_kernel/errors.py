"""
Exception types raised by the planar_kernel algorithms.

Malformed arguments (wrong tensor type or shape, bad `count`) raise the built-in
`ValueError`, and degenerate geometry yields empty results. The classes below are
reserved for broken internal invariants: a corrupted DCEL, a point that cannot be
located, or a polygon walk that never closes. They are never caught inside the
package.
"""


class GeometryKernelError(RuntimeError):
    """Base class for invariant violations inside the geometry kernel."""


class TriangulationError(GeometryKernelError):
    """A triangulation engine reached a state its invariants rule out."""


class PolygonClipError(GeometryKernelError):
    """The Weiler-Atherton walk could not close the intersection polygon."""
