"""Frame persistence and video encoding collaborators."""

from __future__ import annotations

import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol, Sequence

import imageio
import numpy as np
import PIL.Image

from .log import log, report

FRAME_PREFIX = "frame_"
FRAME_DIGITS = 5


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def write_frame_sequence(
    image: PIL.Image.Image,
    frame_dir: Path,
    index: int,
    digits: int,
    image_format: str,
    prefix: str,
) -> Path:
    """Persist a frame in a numbered sequence inside ``frame_dir``."""

    pil_format = _pil_format_name(image_format)
    frame_path = frame_dir / f"{prefix}{index:0{digits}d}.{image_format}"
    frame_dir.mkdir(parents=True, exist_ok=True)
    image.save(str(frame_path), format=pil_format)
    return frame_path


def prepare_frame_dir(frame_dir: Path, prefix: str = FRAME_PREFIX, image_format: str = "png") -> bool:
    """Create ``frame_dir`` and remove frames left over from an earlier run."""

    try:
        frame_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        report(f"Error while creating the folder {frame_dir}: {exc}")
        return False

    ok = True
    for stale in sorted(frame_dir.glob(f"{prefix}*.{image_format}")):
        try:
            stale.unlink()
        except OSError as exc:
            report(f"Error while cleaning {stale}: {exc}")
            ok = False
    return ok


class FrameWriter:
    """Write rendered frames as ``<prefix><index>.<format>`` files."""

    def __init__(
        self,
        frame_dir: Path,
        *,
        image_format: str = "png",
        prefix: str = FRAME_PREFIX,
        digits: int = FRAME_DIGITS,
    ) -> None:
        self.frame_dir = Path(frame_dir)
        self.image_format = (image_format or "png").lower().lstrip(".") or "png"
        self.prefix = prefix
        self.digits = digits
        self.paths: list[Path] = []

    def write(self, frame: np.ndarray, index: int) -> bool:
        try:
            path = write_frame_sequence(
                PIL.Image.fromarray(frame),
                self.frame_dir,
                index,
                self.digits,
                self.image_format,
                self.prefix,
            )
        except (OSError, ValueError) as exc:
            report(f"Error while writing frame {index}: {exc}")
            return False
        self.paths.append(path)
        return True


class SequenceEncoder(Protocol):
    output: Path

    def encode(self, frames: Sequence[Path], fps: float) -> bool:
        ...


class FfmpegEncoder:
    """Encode an ordered frame sequence into a video with the ``ffmpeg`` executable."""

    def __init__(
        self,
        output: Path,
        *,
        codec: str = "libx264",
        pixel_format: str = "yuv420p",
        executable: str = "ffmpeg",
    ) -> None:
        self.output = Path(output)
        self.codec = codec
        self.pixel_format = pixel_format
        self.executable = executable

    def command(self, fps: float) -> list[str]:
        return [
            self.executable,
            "-y",
            "-loglevel", "error",
            "-f", "image2pipe",
            "-framerate", str(fps),
            "-i", "-",
            "-c:v", self.codec,
            "-pix_fmt", self.pixel_format,
            str(self.output),
        ]

    def encode(self, frames: Sequence[Path], fps: float) -> bool:
        if not frames:
            report("No frames to encode.")
            return False
        if shutil.which(self.executable) is None:
            report(f"Error while creating the video: {self.executable} not found")
            return False

        self.output.parent.mkdir(parents=True, exist_ok=True)
        cmd = self.command(fps)
        log("Running: %s" % " ".join(cmd))
        with tempfile.TemporaryFile() as errors:
            try:
                proc = subprocess.Popen(cmd, stdin=subprocess.PIPE, stderr=errors)
            except OSError as exc:
                report(f"Error while creating the video: {exc}")
                return False

            try:
                for frame in frames:
                    proc.stdin.write(Path(frame).read_bytes())
            except (BrokenPipeError, OSError) as exc:
                log(f"ffmpeg stopped reading frames: {exc}")
            finally:
                proc.stdin.close()
            returncode = proc.wait()

            errors.seek(0)
            stderr = errors.read()

        if returncode != 0:
            report(f"Error while creating the video (ffmpeg exited with {returncode})")
            if stderr:
                report(stderr.decode(errors="replace").strip())
            return False
        return True


class GifEncoder:
    """Assemble an ordered frame sequence into an animated GIF."""

    def __init__(self, output: Path) -> None:
        self.output = Path(output)

    def encode(self, frames: Sequence[Path], fps: float) -> bool:
        if not frames:
            report("No frames to encode.")
            return False
        try:
            self.output.parent.mkdir(parents=True, exist_ok=True)
            writer = imageio.get_writer(str(self.output), mode='I', duration=1000.0 / fps, loop=0)
            try:
                for frame in frames:
                    with PIL.Image.open(frame) as image:
                        writer.append_data(np.asarray(image.convert("RGB")))
            finally:
                writer.close()
        except (OSError, ValueError) as exc:
            report(f"Error while creating the GIF: {exc}")
            return False
        return True


ENCODERS = ("ffmpeg", "gif", "none")


def infer_encoder(output: Path) -> str:
    return "gif" if Path(output).suffix.lower() == ".gif" else "ffmpeg"


def build_encoder(name: str, output: Path) -> SequenceEncoder | None:
    if name == "ffmpeg":
        return FfmpegEncoder(output)
    if name == "gif":
        return GifEncoder(output)
    if name == "none":
        return None
    raise ValueError(f"Unknown encoder '{name}'. Valid choices: {', '.join(ENCODERS)}.")
