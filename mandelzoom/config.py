"""Configuration surface consumed by the zoom renderer."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_X_CENTER = -0.74364388703715870475
DEFAULT_Y_CENTER = 0.13182590420531197049


@dataclass(frozen=True)
class AnimationConfig:
    """Parameters that describe a complete zoom animation."""

    width: int = 1920
    height: int = 1080
    fps: int = 30
    end_zoom: float = 1e6
    x_center: float = DEFAULT_X_CENTER
    y_center: float = DEFAULT_Y_CENTER
    x_range: float = 3.0

    @property
    def aspect(self) -> float:
        return float(self.width) / float(self.height)

    @property
    def y_range(self) -> float:
        return self.x_range / self.aspect

    @property
    def total_pixels(self) -> int:
        return int(self.width) * int(self.height)

    def validate(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Frame size must be positive, got {self.width}x{self.height}.")
        if self.fps <= 0:
            raise ValueError(f"fps must be positive, got {self.fps}.")
        if not self.end_zoom > 1.0:
            raise ValueError(f"end_zoom must be greater than 1.0, got {self.end_zoom}.")
        if not self.x_range > 0:
            raise ValueError(f"x_range must be positive, got {self.x_range}.")
