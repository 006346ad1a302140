from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from tubely.common.config import TubelyConfig
from tubely.common.errors import TubelyError
from tubely.common.location import URLSigner, resolve_video, try_resolve_video
from tubely.common.logging_helper import log_event, log_exception
from tubely.common.schemas import Video
from tubely.common.state_helper import S3VideoStore, VideoStore
from tubely.common.storage_helper import ObjectStore

STAGE_NAME = "get-video"


class GetVideoService:
    """Read path: turns stored locations into URLs a client can play right away."""

    def __init__(self, config: TubelyConfig, videos: VideoStore, signer: URLSigner) -> None:
        self.config = config
        self.videos = videos
        self.signer = signer

    @classmethod
    def from_config(cls, config: TubelyConfig) -> "GetVideoService":
        objects = ObjectStore.from_config(config)
        return cls(config, S3VideoStore.from_config(config, objects), objects)

    def get_video(self, video_id: UUID) -> Video:
        return resolve_video(self.videos.get(video_id), self.signer, self.config.signed_url_ttl)

    def list_videos(self, user_id: UUID, request_id: Optional[str] = None) -> List[Video]:
        """A record that fails to resolve is listed as stored rather than dropped."""
        resolved = []
        for video in self.videos.list_for_user(user_id):
            video, error = try_resolve_video(video, self.signer, self.config.signed_url_ttl)
            if error is not None:
                log_event(
                    STAGE_NAME,
                    "resolve_failed",
                    request_id=request_id,
                    video_id=str(video.id),
                    error_type=type(error).__name__,
                    error=str(error),
                )
            resolved.append(video)
        return resolved

    def handle(self, video_id: Optional[UUID], user_id: Optional[UUID]) -> Tuple[int, Any]:
        request_id = str(uuid.uuid4())
        try:
            if video_id is not None:
                return 200, self.get_video(video_id).model_dump(mode="json")
            if user_id is not None:
                return 200, [v.model_dump(mode="json") for v in self.list_videos(user_id, request_id)]
        except TubelyError as exc:
            log_exception(STAGE_NAME, request_id, exc)
            return exc.status_code, self._error(exc.public_message)
        return 400, self._error("Missing video or user ID")

    @staticmethod
    def _error(message: str) -> Dict[str, Any]:
        return {"status": "error", "message": message}
