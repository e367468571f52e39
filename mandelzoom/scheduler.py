"""Utilities for planning the frames of a Mandelbrot zoom sequence."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Iterator

import numpy as np

SECONDS_PER_ZOOM_DOUBLING = 1.25
BASE_ITERATIONS = 64
ITERATIONS_PER_DOUBLING = 64


@dataclass(frozen=True)
class Viewport:
    """Rectangle of the complex plane mapped onto the pixel grid."""

    x_min: float
    x_max: float
    y_min: float
    y_max: float

    @property
    def x_range(self) -> float:
        return self.x_max - self.x_min

    @property
    def y_range(self) -> float:
        return self.y_max - self.y_min


@dataclass
class ZoomState:
    zoom: float = 1.0
    frame_index: int = 0


@dataclass(frozen=True)
class FramePlan:
    """Everything needed to render one frame of the sequence."""

    index: int
    zoom: float
    viewport: Viewport
    max_iterations: int


def scale_per_frame(fps: float, seconds_per_doubling: float = SECONDS_PER_ZOOM_DOUBLING) -> float:
    """Per-frame zoom multiplier giving one doubling every ``seconds_per_doubling``."""

    zoom_scale_per_second = np.power(np.float64(2.0), 1.0 / np.float64(seconds_per_doubling))
    return float(np.power(zoom_scale_per_second, 1.0 / np.float64(fps)))


def iteration_budget(zoom: float) -> int:
    return BASE_ITERATIONS + int(math.floor(math.log2(zoom) * ITERATIONS_PER_DOUBLING))


def compute_viewport(x_center: float, y_center: float, x_range: float, y_range: float, zoom: float) -> Viewport:
    scale = np.float64(1.0) / np.float64(zoom)
    x_half = np.float64(x_range) * scale / 2.0
    y_half = np.float64(y_range) * scale / 2.0
    x_center = np.float64(x_center)
    y_center = np.float64(y_center)
    return Viewport(
        x_min=float(x_center - x_half),
        x_max=float(x_center + x_half),
        y_min=float(y_center - y_half),
        y_max=float(y_center + y_half),
    )


class ZoomScheduler:
    """Carry the zoom level across frames and plan each frame in turn."""

    def __init__(
        self,
        fps: float,
        end_zoom: float,
        x_center: float,
        y_center: float,
        x_range: float,
        y_range: float,
        *,
        start_zoom: float = 1.0,
        seconds_per_doubling: float = SECONDS_PER_ZOOM_DOUBLING,
    ) -> None:
        self.end_zoom = float(end_zoom)
        self.x_center = float(x_center)
        self.y_center = float(y_center)
        self.x_range = float(x_range)
        self.y_range = float(y_range)
        self.scale_per_frame = scale_per_frame(fps, seconds_per_doubling)
        self.state = ZoomState(zoom=float(start_zoom))

    @classmethod
    def from_config(cls, config, **kwargs) -> "ZoomScheduler":
        return cls(
            config.fps,
            config.end_zoom,
            config.x_center,
            config.y_center,
            config.x_range,
            config.y_range,
            **kwargs,
        )

    @property
    def zoom(self) -> float:
        return self.state.zoom

    @property
    def frame_index(self) -> int:
        return self.state.frame_index

    def is_complete(self) -> bool:
        return self.state.zoom >= self.end_zoom

    def plan(self, zoom: float, index: int) -> FramePlan:
        return FramePlan(
            index=index,
            zoom=zoom,
            viewport=compute_viewport(self.x_center, self.y_center, self.x_range, self.y_range, zoom),
            max_iterations=iteration_budget(zoom),
        )

    def advance(self) -> FramePlan:
        """Step the zoom forward one frame and return the plan for that frame."""

        zoom = self.state.zoom * self.scale_per_frame
        plan = self.plan(zoom, self.state.frame_index)
        self.state = replace(self.state, zoom=zoom, frame_index=self.state.frame_index + 1)
        return plan

    def planned_frames(self) -> int:
        """Number of frames still to come before the sequence is complete."""

        zoom = self.state.zoom
        count = 0
        while zoom < self.end_zoom:
            zoom *= self.scale_per_frame
            count += 1
        return count

    def __iter__(self) -> Iterator[FramePlan]:
        while not self.is_complete():
            yield self.advance()
