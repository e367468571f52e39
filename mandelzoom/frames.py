"""Per-frame rendering pipeline and the render loop."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

import numpy as np

from .coloring import GAMMA, colorize, compute_cdf
from .config import AnimationConfig
from .escape import compute_escape_field, default_workers
from .log import log, report
from .scheduler import FramePlan, ZoomScheduler


class FrameSink(Protocol):
    def write(self, frame: np.ndarray, index: int) -> bool:
        ...


@dataclass(frozen=True)
class RenderStats:
    """Summary of a completed (or interrupted) render loop."""

    frames: int
    persisted: int
    final_zoom: float
    x_center: float
    y_center: float
    elapsed: float

    @property
    def failed(self) -> int:
        return self.frames - self.persisted

    @property
    def seconds_per_frame(self) -> float:
        return self.elapsed / self.frames if self.frames else 0.0

    def format_report(self) -> str:
        lines = [
            "====== FINAL STATS ======",
            f"Frames generated : {self.frames}",
            f"Final zoom       : {self.final_zoom:.6g}",
            f"Center X         : {self.x_center:.17g}",
            f"Center Y         : {self.y_center:.17g}",
            f"Total time       : {self.elapsed:.3f} seconds",
            f"Time per frame   : {self.seconds_per_frame:.3f} seconds",
            "=========================",
        ]
        if self.failed:
            lines.insert(2, f"Frames not saved : {self.failed}")
        return "\n".join(lines)


class FrameRenderer:
    """Drive the zoom scheduler and hand every coloured frame to ``writer``."""

    def __init__(
        self,
        config: AnimationConfig,
        writer: FrameSink,
        *,
        scheduler: Optional[ZoomScheduler] = None,
        workers: Optional[int] = None,
        device: str = "/CPU:0",
        gamma: float = GAMMA,
    ) -> None:
        self.config = config
        self.writer = writer
        self.scheduler = scheduler if scheduler is not None else ZoomScheduler.from_config(config)
        self.workers = workers or default_workers()
        self.device = device
        self.gamma = gamma
        self._executor: Optional[ThreadPoolExecutor] = None

    def render(self, plan: FramePlan) -> np.ndarray:
        """Render the colour image for ``plan`` without persisting it."""

        field = compute_escape_field(
            self.config.width,
            self.config.height,
            plan.viewport,
            plan.max_iterations,
            executor=self._executor,
            workers=self.workers,
            device=self.device,
        )
        cdf = compute_cdf(field.histogram, field.total_pixels)
        return colorize(field.iterations, cdf, field.max_iterations, gamma=self.gamma)

    def run(self, on_frame: Optional[Callable[[FramePlan, bool], None]] = None) -> RenderStats:
        frames = 0
        persisted = 0
        start = time.perf_counter()

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            self._executor = executor
            try:
                while not self.scheduler.is_complete():
                    plan = self.scheduler.advance()
                    log(f"frame {plan.index}: zoom={plan.zoom:.6g} max_iterations={plan.max_iterations}")
                    image = self.render(plan)
                    ok = self.writer.write(image, plan.index)
                    if ok:
                        persisted += 1
                    else:
                        report(f"Frame {plan.index} was not saved")
                    frames += 1
                    if on_frame is not None:
                        on_frame(plan, ok)
            finally:
                self._executor = None

        return RenderStats(
            frames=frames,
            persisted=persisted,
            final_zoom=self.scheduler.zoom,
            x_center=self.config.x_center,
            y_center=self.config.y_center,
            elapsed=time.perf_counter() - start,
        )
