"""Public API for the Mandelbrot zoom renderer."""

from .coloring import brightness, colorize, compute_cdf
from .config import AnimationConfig
from .escape import EscapeField, compute_escape_field, merge_histograms, partition_rows
from .frames import FrameRenderer, RenderStats
from .output import FfmpegEncoder, FrameWriter, GifEncoder, build_encoder, prepare_frame_dir
from .scheduler import (
    FramePlan,
    Viewport,
    ZoomScheduler,
    ZoomState,
    compute_viewport,
    iteration_budget,
    scale_per_frame,
)

__all__ = [
    "AnimationConfig",
    "EscapeField",
    "FfmpegEncoder",
    "FramePlan",
    "FrameRenderer",
    "FrameWriter",
    "GifEncoder",
    "RenderStats",
    "Viewport",
    "ZoomScheduler",
    "ZoomState",
    "brightness",
    "build_encoder",
    "colorize",
    "compute_cdf",
    "compute_escape_field",
    "compute_viewport",
    "iteration_budget",
    "merge_histograms",
    "partition_rows",
    "prepare_frame_dir",
    "scale_per_frame",
]
