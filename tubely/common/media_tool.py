"""
Media normalization and inspection.

``MediaTool`` is the capability the upload pipeline depends on. The default
implementation shells out to ffmpeg/ffprobe; tests substitute fakes.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List, Optional, Protocol, Type

from pydantic import ValidationError

from .config import ONE_GIB, TubelyConfig
from .errors import InspectionFailed, NormalizationFailed, OperationTimedOut, TubelyError
from .logging_helper import log_event, tail
from .schemas import Orientation, StreamReport, StreamGeometry

# Tolerance bands around 16:9 (1.778) and 9:16 (0.5625); encoders round dimensions.
LANDSCAPE_RANGE = (1.7, 1.8)
PORTRAIT_RANGE = (0.55, 0.57)

NORMALIZED_SUFFIX = ".processing"


class MediaTool(Protocol):
    def normalize(self, path: Path, request_id: Optional[str] = None) -> Path:
        """Return a fast-start copy of ``path``."""

    def inspect(self, path: Path, request_id: Optional[str] = None) -> StreamGeometry:
        """Return the geometry of the first stream in ``path``."""


def classify(width: int, height: int) -> Orientation:
    if height <= 0 or width < 0:
        raise InspectionFailed(f"invalid stream geometry {width}x{height}")

    ratio = width / height
    if LANDSCAPE_RANGE[0] < ratio < LANDSCAPE_RANGE[1]:
        return Orientation.LANDSCAPE
    if PORTRAIT_RANGE[0] < ratio < PORTRAIT_RANGE[1]:
        return Orientation.PORTRAIT
    return Orientation.OTHER


class FFmpegMediaTool:
    """Runs ffmpeg (stream copy + faststart) and ffprobe (JSON stream listing)."""

    def __init__(
        self,
        ffmpeg_bin: str = "ffmpeg",
        ffprobe_bin: str = "ffprobe",
        timeout: float = 60.0,
        transcode_seconds_per_gb: float = 60.0,
    ) -> None:
        self.ffmpeg_bin = ffmpeg_bin
        self.ffprobe_bin = ffprobe_bin
        self.timeout = timeout
        self.transcode_seconds_per_gb = transcode_seconds_per_gb

    @classmethod
    def from_config(cls, config: TubelyConfig) -> "FFmpegMediaTool":
        return cls(
            ffmpeg_bin=config.ffmpeg_bin,
            ffprobe_bin=config.ffprobe_bin,
            timeout=config.media_tool_timeout,
            transcode_seconds_per_gb=config.transcode_seconds_per_gb,
        )

    def normalize(self, path: Path, request_id: Optional[str] = None) -> Path:
        output = path.with_name(path.name + NORMALIZED_SUFFIX)
        cmd = [
            self.ffmpeg_bin,
            "-y",
            "-v",
            "error",
            "-i",
            str(path),
            "-c",
            "copy",
            "-movflags",
            "faststart",
            "-f",
            "mp4",
            str(output),
        ]
        self._run(cmd, self._transcode_timeout(path), NormalizationFailed, "normalize", request_id)

        # ffmpeg has failure modes that exit 0 and leave an empty file behind
        try:
            size = output.stat().st_size
        except OSError as exc:
            raise NormalizationFailed(f"normalized output missing: {output}") from exc
        if size == 0:
            raise NormalizationFailed(f"normalized output is empty: {output}")
        return output

    def inspect(self, path: Path, request_id: Optional[str] = None) -> StreamGeometry:
        cmd = [
            self.ffprobe_bin,
            "-v",
            "error",
            "-select_streams",
            "v:0",
            "-print_format",
            "json",
            "-show_streams",
            str(path),
        ]
        proc = self._run(cmd, self.timeout, InspectionFailed, "inspect", request_id)

        try:
            report = StreamReport.model_validate_json(proc.stdout or "")
        except ValidationError as exc:
            raise InspectionFailed("could not parse ffprobe output") from exc

        if not report.streams:
            raise InspectionFailed("no streams found in the video")
        first = report.streams[0]
        if first.width is None or first.height is None:
            raise InspectionFailed("first stream reports no width/height")
        return StreamGeometry(width=first.width, height=first.height)

    def _transcode_timeout(self, path: Path) -> float:
        try:
            size = path.stat().st_size
        except OSError:
            size = 0
        return self.timeout + (size / ONE_GIB) * self.transcode_seconds_per_gb

    @staticmethod
    def _run(
        cmd: List[str],
        timeout: float,
        error_cls: Type[TubelyError],
        stage: str,
        request_id: Optional[str],
    ) -> subprocess.CompletedProcess:
        log_event(stage, "start", request_id=request_id, cmd=cmd, timeout_s=round(timeout, 1))
        try:
            proc = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise OperationTimedOut(f"{cmd[0]} did not finish within {timeout:.0f}s") from exc
        except OSError as exc:
            raise error_cls(f"could not run {cmd[0]}") from exc

        if proc.returncode != 0:
            log_event(
                stage,
                "tool_failed",
                request_id=request_id,
                returncode=proc.returncode,
                stderr=tail(proc.stderr),
            )
            raise error_cls(f"{cmd[0]} exited with status {proc.returncode}")
        if proc.stderr:
            log_event(stage, "tool_stderr", request_id=request_id, stderr=tail(proc.stderr))
        return proc
