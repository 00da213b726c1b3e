"""Adapters for the external media tools: ffprobe, ffmpeg and ImageMagick."""

import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import cv2
from PIL import Image, ImageOps

from video_collage.config.config import (
    COLLAGE_BACKGROUND,
    DEFAULT_CAPTURE_QUALITY,
)
from video_collage.exceptions import CaptureError, ComposeError, ProbeError
from video_collage.logging.logger import get_logger
from video_collage.models import TileGrid, Timestamp


def montage_command() -> Optional[List[str]]:
    """ImageMagick montage invocation available on this host, if any."""
    if shutil.which("magick"):
        return ["magick", "montage"]
    if shutil.which("montage"):
        return ["montage"]
    return None


class MediaTools:
    """Synchronous wrappers around the probe, capture and compose tools."""

    def __init__(
        self,
        capture_quality: int = DEFAULT_CAPTURE_QUALITY,
        compose_backend: str = "auto",
        ffmpeg: str = "ffmpeg",
        ffprobe: str = "ffprobe",
    ):
        self.capture_quality = capture_quality
        self.ffmpeg = ffmpeg
        self.ffprobe = ffprobe
        self.logger = get_logger()
        self.montage = None
        if compose_backend in ("auto", "montage"):
            self.montage = montage_command()
            if self.montage is None and compose_backend == "montage":
                raise ComposeError("ImageMagick 'montage' is not installed")
        self.compose_backend = "montage" if self.montage else "pillow"

    # Probe

    def probe_duration(self, media_path: Path) -> float:
        """Duration in seconds, from ffprobe or, failing that, OpenCV."""
        duration = self._probe_with_ffprobe(media_path)
        if duration is None:
            self.logger.debug(f"ffprobe gave no duration for {media_path}, trying OpenCV")
            duration = self._probe_with_opencv(media_path)
        if duration is None or duration <= 0:
            raise ProbeError(f"Unable to determine duration of '{media_path}'")
        return duration

    def _probe_with_ffprobe(self, media_path: Path) -> Optional[float]:
        cmd = [
            self.ffprobe,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            str(media_path),
        ]
        try:
            result = subprocess.run(cmd, check=True, capture_output=True, text=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            self.logger.debug(f"ffprobe failed for {media_path}: {exc}")
            return None
        try:
            return float(result.stdout.strip())
        except ValueError:
            return None

    def _probe_with_opencv(self, media_path: Path) -> Optional[float]:
        cap = cv2.VideoCapture(str(media_path))
        if not cap.isOpened():
            return None
        try:
            fps = cap.get(cv2.CAP_PROP_FPS)
            frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
        finally:
            cap.release()
        if not fps or fps <= 0 or frame_count <= 0:
            return None
        return frame_count / fps

    # Capture

    def capture_frame(self, media_path: Path, timestamp: Timestamp, output_path: Path) -> Path:
        """Extract the frame at ``timestamp`` into ``output_path``."""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        cmd = [
            self.ffmpeg,
            "-y",
            "-ss", timestamp.clock,
            "-i", str(media_path),
            "-vframes", "1",
            "-q:v", str(self.capture_quality),
            str(output_path),
        ]
        try:
            subprocess.run(cmd, check=True, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except (OSError, subprocess.CalledProcessError) as exc:
            raise CaptureError(f"ffmpeg failed at {timestamp.clock} for '{media_path}': {exc}") from exc

        if not output_path.exists() or output_path.stat().st_size == 0:
            output_path.unlink(missing_ok=True)
            raise CaptureError(f"No frame written at {timestamp.clock} for '{media_path}'")
        return output_path

    # Compose

    def compose_grid(
        self,
        output_path: Path,
        members: Sequence[Path],
        grid: TileGrid,
        geometry: Tuple[int, int],
    ) -> Path:
        """Tile ``members`` into ``output_path`` using a ``grid`` of ``geometry`` cells."""
        if not members:
            raise ComposeError(f"No images to compose into '{output_path}'")
        if len(members) > grid.capacity:
            raise ComposeError(f"{len(members)} images do not fit grid {grid}")
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if self.montage:
            self._compose_with_montage(output_path, members, grid, geometry)
        else:
            self._compose_with_pillow(output_path, members, grid, geometry)

        if not output_path.exists() or output_path.stat().st_size == 0:
            raise ComposeError(f"Collage '{output_path}' was not written")
        return output_path

    def _compose_with_montage(self, output_path, members, grid, geometry) -> None:
        width, height = geometry
        cmd = [
            *self.montage,
            *[str(m) for m in members],
            "-tile", str(grid),
            "-geometry", f"{width}x{height}+0+0",
            "-background", COLLAGE_BACKGROUND,
            "-gravity", "center",
            str(output_path),
        ]
        try:
            subprocess.run(cmd, check=True, capture_output=True, text=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            stderr = getattr(exc, "stderr", "") or ""
            raise ComposeError(f"montage failed for '{output_path}': {exc} {stderr.strip()}") from exc

    def _compose_with_pillow(self, output_path, members, grid, geometry) -> None:
        width, height = geometry
        sheet = Image.new("RGB", (width * grid.columns, height * grid.rows), COLLAGE_BACKGROUND)
        try:
            for position, member in enumerate(members):
                with Image.open(member) as image:
                    tile = ImageOps.contain(image.convert("RGB"), (width, height))
                column, row = position % grid.columns, position // grid.columns
                x = column * width + (width - tile.width) // 2
                y = row * height + (height - tile.height) // 2
                sheet.paste(tile, (x, y))
            sheet.save(output_path, format="JPEG", quality=90)
        except OSError as exc:
            raise ComposeError(f"Pillow failed to compose '{output_path}': {exc}") from exc
