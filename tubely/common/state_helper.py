"""Video metadata stores: JSON documents in the artifact bucket, or in memory."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Protocol
from uuid import UUID

from botocore.exceptions import BotoCoreError, ClientError, ConnectTimeoutError, ReadTimeoutError

from .config import TubelyConfig
from .errors import MetadataReadFailed, MetadataUpdateFailed, OperationTimedOut, VideoNotFound
from .logging_helper import log_event
from .schemas import Video
from .storage_helper import ObjectStore

STAGE_NAME = "metadata"


class VideoStore(Protocol):
    def get(self, video_id: UUID) -> Video:
        """Return the record or raise ``VideoNotFound``."""

    def update(self, video: Video) -> None:
        """Persist ``video``; raise ``MetadataUpdateFailed`` on error."""

    def list_for_user(self, user_id: UUID) -> List[Video]:
        ...


def _touch(video: Video) -> Video:
    return video.model_copy(update={"updated_at": datetime.now(timezone.utc)})


class S3VideoStore:
    """One ``{prefix}/{video_id}.json`` document per video."""

    def __init__(self, store: ObjectStore, bucket: str, prefix: str = "metadata/videos") -> None:
        self.store = store
        self.bucket = bucket
        self.prefix = prefix.rstrip("/")

    @classmethod
    def from_config(cls, config: TubelyConfig, store: ObjectStore) -> "S3VideoStore":
        return cls(store, config.bucket, config.metadata_prefix)

    def record_key(self, video_id: UUID) -> str:
        """Return canonical key for the video record."""
        return f"{self.prefix}/{video_id}.json"

    def get(self, video_id: UUID) -> Video:
        key = self.record_key(video_id)
        try:
            if not self.store.object_exists(self.bucket, key):
                raise VideoNotFound(f"video {video_id} not found")
            return self._read(key)
        except (ConnectTimeoutError, ReadTimeoutError) as exc:
            raise OperationTimedOut(f"reading s3://{self.bucket}/{key} timed out") from exc
        except (BotoCoreError, ClientError, ValueError) as exc:
            raise MetadataReadFailed(f"could not read video record s3://{self.bucket}/{key}") from exc

    def update(self, video: Video) -> None:
        video = _touch(video)
        key = self.record_key(video.id)
        try:
            self.store.write_json(video.model_dump(mode="json"), self.bucket, key)
        except (ConnectTimeoutError, ReadTimeoutError) as exc:
            raise OperationTimedOut(f"writing s3://{self.bucket}/{key} timed out") from exc
        except (BotoCoreError, ClientError) as exc:
            raise MetadataUpdateFailed(f"could not persist video {video.id}") from exc

    def list_for_user(self, user_id: UUID) -> List[Video]:
        """Documents that cannot be read or parsed are logged and skipped."""
        videos = []
        try:
            keys = [key for key in self.store.list_keys(self.bucket, self.prefix + "/") if key.endswith(".json")]
        except (ConnectTimeoutError, ReadTimeoutError) as exc:
            raise OperationTimedOut(f"listing s3://{self.bucket}/{self.prefix}/ timed out") from exc
        except (BotoCoreError, ClientError) as exc:
            raise MetadataReadFailed(f"could not list s3://{self.bucket}/{self.prefix}/") from exc

        for key in keys:
            try:
                video = self._read(key)
            except (BotoCoreError, ClientError, ValueError) as exc:
                log_event(
                    STAGE_NAME,
                    "record_unreadable",
                    key=key,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                continue
            if video.user_id == user_id:
                videos.append(video)
        return sorted(videos, key=lambda v: v.created_at)

    def _read(self, key: str) -> Video:
        # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
        return Video.model_validate(self.store.read_json(self.bucket, key))


class InMemoryVideoStore:
    """Dict-backed store for local runs and tests."""

    def __init__(self) -> None:
        self._videos: Dict[UUID, Video] = {}

    def add(self, video: Video) -> Video:
        self._videos[video.id] = video
        return video

    def get(self, video_id: UUID) -> Video:
        try:
            return self._videos[video_id]
        except KeyError:
            raise VideoNotFound(f"video {video_id} not found") from None

    def update(self, video: Video) -> None:
        if video.id not in self._videos:
            raise MetadataUpdateFailed(f"video {video.id} does not exist")
        self._videos[video.id] = _touch(video)

    def list_for_user(self, user_id: UUID) -> List[Video]:
        videos = [v for v in self._videos.values() if v.user_id == user_id]
        return sorted(videos, key=lambda v: v.created_at)
