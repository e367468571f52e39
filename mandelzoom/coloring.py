"""Histogram-equalised colouring of escape-time fields."""

from __future__ import annotations

import numpy as np
from matplotlib.colors import hsv_to_rgb

GAMMA = 0.5
# 110 on the 0-180 half-degree hue scale.
HUE_DEGREES = 220.0
SATURATION = 1.0
INSIDE_COLOR = (0, 0, 0)


def compute_cdf(histogram: np.ndarray, total_pixels: int) -> np.ndarray:
    """Cumulative share of pixels with a count of at most ``n``, for every ``n``."""

    if total_pixels <= 0:
        raise ValueError(f"total_pixels must be positive, got {total_pixels}.")
    counts = np.cumsum(np.asarray(histogram, dtype=np.int64))
    return counts.astype(np.float64) / np.float64(total_pixels)


def brightness(iterations: np.ndarray, cdf: np.ndarray, max_iterations: int, gamma: float = GAMMA) -> np.ndarray:
    """Gamma-corrected CDF rank of every pixel as an 8-bit value plane.

    Interior pixels (``n == max_iterations``) get 0.
    """

    iterations = np.asarray(iterations)
    inside = iterations >= max_iterations
    ranks = np.asarray(cdf, dtype=np.float64)[np.clip(iterations, 0, max_iterations)]
    values = np.clip(np.rint(255.0 * np.power(ranks, gamma)), 0, 255).astype(np.uint8)
    values[inside] = 0
    return values


def colorize(iterations: np.ndarray, cdf: np.ndarray, max_iterations: int, *, gamma: float = GAMMA) -> np.ndarray:
    """Map an iteration field to an RGB frame using a fixed hue and CDF-driven brightness."""

    iterations = np.asarray(iterations)
    values = brightness(iterations, cdf, max_iterations, gamma)

    hsv = np.empty(iterations.shape + (3,), dtype=np.float64)
    hsv[..., 0] = HUE_DEGREES / 360.0
    hsv[..., 1] = SATURATION
    hsv[..., 2] = values / 255.0
    rgb = np.uint8(np.clip(np.rint(hsv_to_rgb(hsv) * 255.0), 0, 255))

    inside = iterations >= max_iterations
    for k in (0, 1, 2):
        rgb[..., k] = np.where(inside, INSIDE_COLOR[k], rgb[..., k])
    return rgb
