from functools import lru_cache

from pydantic import ValidationError

from tubely.common.config import TubelyConfig
from tubely.common.event_helper import body_stream, error_response, header, response
from tubely.common.logging_helper import log_event
from tubely.common.schemas import UploadRequest

from .upload_video_service import STAGE_NAME, UploadVideoService


@lru_cache(maxsize=1)
def get_service() -> UploadVideoService:
    return UploadVideoService.from_config(TubelyConfig.from_env())


def handle(event, context):  # type: ignore[override]
    # X-User-ID is set by the gateway after the bearer token has been verified
    try:
        request = UploadRequest(
            video_id=header(event, "X-Video-ID"),
            user_id=header(event, "X-User-ID"),
            content_type=header(event, "Content-Type"),
            stream=body_stream(event),
            request_id=header(event, "X-Request-ID"),
        )
    except ValidationError as exc:
        log_event(STAGE_NAME, "invalid_request", error=str(exc))
        return error_response(400, "Invalid ID")

    status_code, payload = get_service().handle(request)
    return response(status_code, payload)
