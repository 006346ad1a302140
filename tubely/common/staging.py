"""
Temporary staging of inbound upload bodies.

Every artifact an upload produces locally (the staged body, the fast-start copy)
lives inside one per-request work directory, which is removed when the
``upload_workspace`` scope exits, whatever the outcome.
"""

from __future__ import annotations

import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from .errors import StagingFailed, TubelyError, UploadTooLarge
from .logging_helper import log_event

STAGE_NAME = "staging"
CHUNK_SIZE = 1 << 20
STAGED_FILENAME = "upload.mp4"


@contextmanager
def upload_workspace(request_id: Optional[str] = None) -> Iterator[Path]:
    """Yield a private temp directory that is deleted on every exit path."""
    try:
        tmp = tempfile.TemporaryDirectory(prefix="tubely-upload-")
    except OSError as exc:
        raise StagingFailed("could not create staging directory") from exc

    try:
        with tmp as tmp_dir:
            yield Path(tmp_dir)
    finally:
        log_event(STAGE_NAME, "cleaned_up", request_id=request_id, workdir=tmp.name)


def stage_upload(
    stream: BinaryIO,
    workdir: Path,
    max_bytes: int,
    request_id: Optional[str] = None,
) -> BinaryIO:
    """
    Copy ``stream`` into ``workdir`` and return the open file, seeked to offset 0.

    The transport is expected to cap the body at ``max_bytes`` already; a body
    that still exceeds it is rejected here as ``UploadTooLarge``.
    """
    path = workdir / STAGED_FILENAME
    try:
        staged = path.open("w+b")
    except OSError as exc:
        raise StagingFailed(f"could not create staged file {path}") from exc

    written = 0
    try:
        while True:
            chunk = stream.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                raise UploadTooLarge(f"upload exceeds the {max_bytes} byte limit")
            staged.write(chunk)
        staged.flush()
        staged.seek(0)
    except TubelyError:
        staged.close()
        raise
    except (OSError, ValueError) as exc:
        staged.close()
        raise StagingFailed("could not write upload to staging file") from exc

    log_event(STAGE_NAME, "staged", request_id=request_id, path=str(path), size_bytes=written)
    return staged
