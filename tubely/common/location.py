"""
Asset location records.

A video's ``video_url`` is stored in one of two forms:

- Direct: an absolute URL that can be handed to clients as-is.
- Indirect: ``"{bucket},{key}"``, turned into a short-lived presigned GET URL
  every time the record is read.

Both forms may coexist in the metadata store, so the read path handles either
regardless of which scheme new uploads are written with. The variant is only
serialized at the storage boundary; resolution never writes back.
"""

from __future__ import annotations

from typing import Optional, Protocol, Tuple, Union

from pydantic import BaseModel

from .config import TubelyConfig
from .errors import MalformedLocation, SigningFailed
from .schemas import Video

DELIMITER = ","


class DirectLocation(BaseModel):
    url: str

    model_config = {"frozen": True}

    def serialize(self) -> str:
        return self.url


class IndirectLocation(BaseModel):
    bucket: str
    key: str

    model_config = {"frozen": True}

    def serialize(self) -> str:
        return f"{self.bucket}{DELIMITER}{self.key}"


AssetLocation = Union[DirectLocation, IndirectLocation]


class URLSigner(Protocol):
    def presign_get(self, bucket: str, key: str, expires_in: int) -> str:
        ...


def parse_location(raw: str) -> AssetLocation:
    """
    Decode a stored location.

    Values without the delimiter are direct URLs. Otherwise only the first
    delimiter separates bucket from key, so ``"a,b,c"`` is bucket ``a`` with
    key ``b,c``. Empty halves still make a pair; the signer rejects what it
    cannot sign. A blank value is neither a URL nor a pair.
    """
    if not raw.strip():
        raise MalformedLocation("location is empty")
    if DELIMITER not in raw:
        return DirectLocation(url=raw)
    bucket, key = raw.split(DELIMITER, 1)
    return IndirectLocation(bucket=bucket, key=key)


def location_for(config: TubelyConfig, key: str) -> AssetLocation:
    """The location new uploads are recorded with, per ``config.location_scheme``."""
    if config.location_scheme == "direct":
        return DirectLocation(url=config.public_url(key))
    return IndirectLocation(bucket=config.bucket, key=key)


def resolve_video(video: Video, signer: URLSigner, ttl: int) -> Video:
    """
    Return a copy of ``video`` whose ``video_url`` is directly usable.

    Errors are raised with ``exc.video`` set to the untouched input record.
    """
    if video.video_url is None:
        return video

    try:
        location = parse_location(video.video_url)
    except MalformedLocation as exc:
        exc.video = video
        raise

    if isinstance(location, DirectLocation):
        return video

    try:
        signed = signer.presign_get(location.bucket, location.key, ttl)
    except SigningFailed as exc:
        exc.video = video
        raise
    return video.model_copy(update={"video_url": signed})


def try_resolve_video(video: Video, signer: URLSigner, ttl: int) -> Tuple[Video, Optional[Exception]]:
    """Like ``resolve_video`` but hands back ``(record, error)`` instead of raising."""
    try:
        return resolve_video(video, signer, ttl), None
    except (MalformedLocation, SigningFailed) as exc:
        return video, exc
