from __future__ import annotations

import uuid
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from tubely.common.config import TubelyConfig
from tubely.common.errors import (
    MetadataUpdateFailed,
    TubelyError,
    Unauthorized,
    UnsupportedMediaType,
)
from tubely.common.location import location_for, resolve_video
from tubely.common.logging_helper import log_event, log_exception
from tubely.common.media_tool import FFmpegMediaTool, MediaTool, classify
from tubely.common.metrics_helper import stage_timer
from tubely.common.schemas import UploadRequest, Video
from tubely.common.staging import stage_upload, upload_workspace
from tubely.common.state_helper import S3VideoStore, VideoStore
from tubely.common.storage_helper import ObjectStore, new_storage_key

STAGE_NAME = "upload-video"
ACCEPTED_MEDIA_TYPES = frozenset({"video/mp4"})


def parse_media_type(content_type: Optional[str]) -> str:
    """``"video/mp4; codecs=avc1"`` -> ``"video/mp4"``; missing or foreign types are rejected."""
    if not content_type or not content_type.strip():
        raise UnsupportedMediaType("Missing content type header")
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type not in ACCEPTED_MEDIA_TYPES:
        raise UnsupportedMediaType("Invalid media type")
    return media_type


class UploadVideoService:
    """Stages an mp4 upload, rewrites it for fast start, classifies it and stores it."""

    def __init__(
        self,
        config: TubelyConfig,
        videos: VideoStore,
        objects: ObjectStore,
        media_tool: MediaTool,
    ) -> None:
        self.config = config
        self.videos = videos
        self.objects = objects
        self.media_tool = media_tool

    @classmethod
    def from_config(cls, config: TubelyConfig) -> "UploadVideoService":
        objects = ObjectStore.from_config(config)
        return cls(
            config=config,
            videos=S3VideoStore.from_config(config, objects),
            objects=objects,
            media_tool=FFmpegMediaTool.from_config(config),
        )

    def handle(self, request: UploadRequest) -> Tuple[int, Dict[str, Any]]:
        """Run the pipeline and translate the outcome into (status code, JSON body)."""
        if request.request_id is None:
            request = request.model_copy(update={"request_id": str(uuid.uuid4())})
        try:
            video = self.upload(request)
        except TubelyError as exc:
            log_exception(STAGE_NAME, request.request_id, exc)
            return exc.status_code, {"status": "error", "message": exc.public_message}
        return 200, video.model_dump(mode="json")

    def upload(self, request: UploadRequest) -> Video:
        """
        Staging -> normalize -> inspect -> upload -> record, then resolve for the response.

        Caller errors are raised before anything touches disk or the bucket. Local
        artifacts are removed on every exit path. The stored record keeps the
        unresolved location; only the returned copy carries a signed URL.
        """
        request_id = request.request_id
        media_type = parse_media_type(request.content_type)

        video = self.videos.get(request.video_id)
        if video.user_id != request.user_id:
            raise Unauthorized("Current user can't modify this video")

        log_event(STAGE_NAME, "start", request_id=request_id, video_id=str(video.id), user_id=str(request.user_id))
        with stage_timer() as elapsed:
            key = self._process(request, media_type)
        log_event(STAGE_NAME, "metrics", request_id=request_id, duration_ms=elapsed(), key=key)

        updated = video.model_copy(update={"video_url": location_for(self.config, key).serialize()})
        try:
            self.videos.update(updated)
        except MetadataUpdateFailed:
            # the object stays in the bucket with nothing pointing at it
            log_event(
                STAGE_NAME,
                "orphaned_object",
                request_id=request_id,
                bucket=self.config.bucket,
                key=key,
                video_id=str(video.id),
            )
            raise

        log_event(STAGE_NAME, "completed", request_id=request_id, video_id=str(video.id), video_url=updated.video_url)
        return resolve_video(updated, self.objects, self.config.signed_url_ttl)

    def _process(self, request: UploadRequest, media_type: str) -> str:
        """Returns the storage key the normalized video was uploaded under."""
        request_id = request.request_id
        with upload_workspace(request_id) as workdir:
            with stage_upload(request.stream, workdir, self.config.max_upload_bytes, request_id) as staged:
                normalized = self.media_tool.normalize(Path(staged.name), request_id=request_id)

            # geometry comes from the normalized file, never the raw upload
            geometry = self.media_tool.inspect(normalized, request_id=request_id)
            orientation = classify(geometry.width, geometry.height)
            log_event(
                STAGE_NAME,
                "classified",
                request_id=request_id,
                width=geometry.width,
                height=geometry.height,
                orientation=orientation.value,
            )

            key = new_storage_key(orientation)
            self.objects.upload_file(normalized, self.config.bucket, key, media_type, request_id=request_id)
            return key
