"""
Runs Delaunay builds off the calling thread.

The triangulation itself is synchronous. Callers that drive an interactive loop
(for example, points that move every frame) hand the work to a thread pool and
pick up the edge tensor from a `concurrent.futures.Future` when it is ready.

Each submission snapshots the point tensor, so the caller may keep mutating its
own buffer while a build runs.
"""
import concurrent.futures as futures
import threading

import torch

from .delaunay_2d import DEFAULT_SEED, delaunay_edges_2d
from .logging_utils import get_logger

logger = get_logger(__name__)


def submit_delaunay(executor: futures.Executor, points: torch.Tensor, count: int | None = None,
                    seed: int | None = DEFAULT_SEED) -> futures.Future:
    """
    Schedules `delaunay_edges_2d` on `executor`.

    Args:
        executor (concurrent.futures.Executor): Pool that runs the build.
        points (torch.Tensor): Tensor of shape (N, 2); copied before submission.
        count (int | None, optional): Only the first `count` points are triangulated.
        seed (int | None, optional): Insertion-order seed. Defaults to `DEFAULT_SEED`.

    Returns:
        concurrent.futures.Future: Resolves to the (E, 2) edge tensor, or raises what
                                   the build raised.
    """
    snapshot = points.detach().clone() if isinstance(points, torch.Tensor) else points
    return executor.submit(delaunay_edges_2d, snapshot, count, seed)


class SerializedTriangulator:
    """
    Serializes Delaunay builds that write to one output slot.

    Builds run one at a time on a private single-worker pool, so a newer request
    never races an older one. Submitting while an earlier request is still queued
    cancels the queued one; a build that has already started is left to finish
    and its result is simply superseded.

    Example:
        with SerializedTriangulator() as builder:
            builder.submit(points)
            edges = builder.latest().result()
    """
    def __init__(self, seed: int | None = DEFAULT_SEED):
        self.seed = seed
        self._executor = futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix='planar-kernel')
        self._lock = threading.Lock()
        self._latest: futures.Future | None = None

    def submit(self, points: torch.Tensor, count: int | None = None) -> futures.Future:
        """Queues a build for `points` and returns its future."""
        with self._lock:
            previous = self._latest
            if previous is not None and previous.cancel():
                logger.debug("Cancelled a queued Delaunay build superseded by a new request.")
            self._latest = submit_delaunay(self._executor, points, count, self.seed)
            return self._latest

    def latest(self) -> futures.Future | None:
        """Future of the most recent submission, or None before the first one."""
        with self._lock:
            return self._latest

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> 'SerializedTriangulator':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown(wait=True)
