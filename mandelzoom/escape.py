"""Escape-time computation for Mandelbrot frames."""

from __future__ import annotations

import os
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np
import tensorflow as tf

from .scheduler import Viewport

BAILOUT_SQUARED = 4.0


@dataclass(frozen=True)
class EscapeField:
    """Iteration counts of one frame together with their merged histogram."""

    iterations: np.ndarray
    histogram: np.ndarray
    max_iterations: int
    viewport: Viewport

    @property
    def total_pixels(self) -> int:
        return int(self.iterations.size)


@tf.function(reduce_retracing=True)
def _escape_step(zs: tf.Tensor, cs: tf.Tensor, ns: tf.Tensor, active: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor]:
    """Perform a single iteration for points that have not escaped yet."""

    zs_new = zs * zs + cs
    zs = tf.where(active, zs_new, zs)
    ns = ns + tf.cast(active, tf.int32)
    re = tf.math.real(zs)
    im = tf.math.imag(zs)
    bailout = tf.constant(BAILOUT_SQUARED, dtype=re.dtype)
    new_active = tf.logical_and(active, re * re + im * im <= bailout)
    return zs, ns, new_active


@tf.function(reduce_retracing=True)
def _escape_run(cs: tf.Tensor, max_iterations: tf.Tensor) -> tf.Tensor:
    """Iterate z <- z^2 + c from z = 0 using a TensorFlow while loop."""

    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    zs = tf.zeros_like(cs)
    ns = tf.zeros(tf.shape(cs), tf.int32)
    active = tf.ones(tf.shape(cs), tf.bool)

    def cond(i, zs, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zs, ns, active):
        zs, ns, active = _escape_step(zs, cs, ns, active)
        return i + 1, zs, ns, active

    _, _, ns, _ = tf.while_loop(cond, body, (i, zs, ns, active))
    return ns


def pixel_coordinates(count: int, low: float, high: float, start: int = 0, stop: Optional[int] = None) -> np.ndarray:
    """Left-edge sample positions ``low + i / count * (high - low)`` for ``i`` in ``[start, stop)``."""

    stop = count if stop is None else stop
    indices = np.arange(start, stop, dtype=np.float64)
    return np.float64(low) + indices / np.float64(count) * (np.float64(high) - np.float64(low))


def partition_rows(height: int, workers: int) -> list[tuple[int, int]]:
    """Split ``[0, height)`` into at most ``workers`` contiguous, non-empty bands."""

    workers = max(1, min(int(workers), int(height)))
    base, extra = divmod(int(height), workers)
    bands = []
    start = 0
    for worker in range(workers):
        stop = start + base + (1 if worker < extra else 0)
        bands.append((start, stop))
        start = stop
    return bands


def merge_histograms(partials: Iterable[np.ndarray]) -> np.ndarray:
    """Element-wise sum of per-worker histograms."""

    partials = [np.asarray(partial, dtype=np.int64) for partial in partials]
    if not partials:
        raise ValueError("At least one partial histogram is required.")
    merged = np.zeros_like(partials[0])
    for partial in partials:
        merged += partial
    return merged


def default_workers() -> int:
    return os.cpu_count() or 1


def _compute_band(
    iterations: np.ndarray,
    band: tuple[int, int],
    width: int,
    height: int,
    viewport: Viewport,
    max_iterations: int,
    device: str,
) -> np.ndarray:
    start, stop = band
    real = pixel_coordinates(width, viewport.x_min, viewport.x_max)
    imag = pixel_coordinates(height, viewport.y_min, viewport.y_max, start, stop)

    with tf.device(device):
        X, Y = tf.meshgrid(
            tf.convert_to_tensor(real, dtype=tf.float64),
            tf.convert_to_tensor(imag, dtype=tf.float64),
        )
        ns = _escape_run(tf.complex(X, Y), tf.constant(max_iterations, dtype=tf.int32))
        histogram = tf.math.bincount(
            tf.reshape(ns, [-1]),
            minlength=max_iterations + 1,
            maxlength=max_iterations + 1,
            dtype=tf.int64,
        )

    iterations[start:stop, :] = ns.numpy()
    return histogram.numpy()


def compute_escape_field(
    width: int,
    height: int,
    viewport: Viewport,
    max_iterations: int,
    *,
    executor: Optional[Executor] = None,
    workers: Optional[int] = None,
    device: str = "/CPU:0",
) -> EscapeField:
    """Compute per-pixel escape counts and their histogram for one frame.

    Rows are split into disjoint bands, one per worker. Each band fills its own
    rows of the iteration field and returns a private histogram; the partial
    histograms are summed once every band has finished.
    """

    if width <= 0 or height <= 0:
        raise ValueError(f"Frame size must be positive, got {width}x{height}.")
    if max_iterations <= 0:
        raise ValueError(f"max_iterations must be positive, got {max_iterations}.")

    workers = workers or default_workers()
    bands = partition_rows(height, workers)
    iterations = np.empty((height, width), dtype=np.int32)

    def run(pool: Executor) -> list[np.ndarray]:
        futures = [
            pool.submit(_compute_band, iterations, band, width, height, viewport, max_iterations, device)
            for band in bands
        ]
        return [future.result() for future in futures]

    if executor is not None:
        partials = run(executor)
    else:
        with ThreadPoolExecutor(max_workers=len(bands)) as pool:
            partials = run(pool)

    return EscapeField(
        iterations=iterations,
        histogram=merge_histograms(partials),
        max_iterations=int(max_iterations),
        viewport=viewport,
    )
