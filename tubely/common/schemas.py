"""Pydantic models shared across Tubely functions."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Orientation(str, Enum):
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"


class Video(BaseModel):
    """Video metadata record. ``video_url`` holds the serialized asset location."""

    id: UUID
    user_id: UUID
    title: str = ""
    description: str = ""
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class UploadRequest(BaseModel):
    video_id: UUID
    user_id: UUID
    content_type: Optional[str] = None
    # any readable binary file object; the transport bounds its size
    stream: Any
    request_id: Optional[str] = None


class StreamInfo(BaseModel):
    index: Optional[int] = None
    codec_type: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


class StreamReport(BaseModel):
    """Subset of ``ffprobe -print_format json -show_streams`` we rely on."""

    streams: List[StreamInfo] = Field(default_factory=list)


class StreamGeometry(BaseModel):
    width: int
    height: int
