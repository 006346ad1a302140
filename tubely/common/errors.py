"""Error taxonomy shared by the upload and delivery functions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .schemas import Video


class TubelyError(Exception):
    """Base class. ``status_code`` is what the function handler reports."""

    status_code = 500
    public = False

    @property
    def public_message(self) -> str:
        if self.public:
            return str(self)
        return "Internal server error"


# caller errors: reported verbatim, no side effects performed


class BadInput(TubelyError):
    status_code = 400
    public = True


class UnsupportedMediaType(BadInput):
    pass


class UploadTooLarge(BadInput):
    status_code = 413


class Unauthorized(TubelyError):
    status_code = 401
    public = True


class VideoNotFound(TubelyError):
    status_code = 404
    public = True


# internal failures: opaque to the caller, logged with their cause


class StagingFailed(TubelyError):
    pass


class NormalizationFailed(TubelyError):
    pass


class InspectionFailed(TubelyError):
    pass


class UploadFailed(TubelyError):
    pass


class OperationTimedOut(TubelyError):
    pass


class MetadataUpdateFailed(TubelyError):
    pass


class MetadataReadFailed(TubelyError):
    pass


class LocationResolutionError(TubelyError):
    """Raised by the resolver; ``video`` is the untouched pre-resolution record."""

    def __init__(self, message: str, video: Optional["Video"] = None) -> None:
        super().__init__(message)
        self.video = video


class MalformedLocation(LocationResolutionError):
    pass


class SigningFailed(LocationResolutionError):
    pass
