from functools import lru_cache
from uuid import UUID

from tubely.common.config import TubelyConfig
from tubely.common.event_helper import error_response, header, response

from .get_video_service import GetVideoService


@lru_cache(maxsize=1)
def get_service() -> GetVideoService:
    return GetVideoService.from_config(TubelyConfig.from_env())


def _uuid_header(event, name):
    raw = header(event, name)
    return UUID(raw) if raw else None


def handle(event, context):  # type: ignore[override]
    try:
        video_id = _uuid_header(event, "X-Video-ID")
        user_id = _uuid_header(event, "X-User-ID")
    except ValueError:
        return error_response(400, "Invalid ID")

    status_code, payload = get_service().handle(video_id, user_id)
    return response(status_code, payload)
