"""Runtime configuration, built once at the function edge and passed into services."""

from __future__ import annotations

import os
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, Field

ONE_GIB = 1 << 30


class TubelyConfig(BaseModel):
    bucket: str = "tubely-videos"
    region: str = "us-east-1"
    endpoint_url: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    public_base_url: Optional[str] = None

    location_scheme: Literal["indirect", "direct"] = "indirect"
    signed_url_ttl: int = Field(default=15 * 60, gt=0)
    max_upload_bytes: int = Field(default=ONE_GIB, gt=0)

    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"
    media_tool_timeout: float = Field(default=60.0, gt=0)
    transcode_seconds_per_gb: float = Field(default=60.0, ge=0)
    storage_timeout: float = Field(default=30.0, gt=0)

    metadata_prefix: str = "metadata/videos"

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TubelyConfig":
        """Read ``ARTIFACT_*`` and friends; unset variables keep the defaults."""
        env = os.environ if environ is None else environ
        mapping = {
            "bucket": "ARTIFACT_BUCKET",
            "region": "ARTIFACT_REGION",
            "endpoint_url": "ARTIFACT_ENDPOINT",
            "access_key": "ARTIFACT_ACCESS_KEY",
            "secret_key": "ARTIFACT_SECRET_KEY",
            "public_base_url": "PUBLIC_BASE_URL",
            "location_scheme": "LOCATION_SCHEME",
            "signed_url_ttl": "SIGNED_URL_TTL_SECONDS",
            "max_upload_bytes": "MAX_UPLOAD_BYTES",
            "ffmpeg_bin": "FFMPEG_BIN",
            "ffprobe_bin": "FFPROBE_BIN",
            "media_tool_timeout": "MEDIA_TOOL_TIMEOUT",
            "transcode_seconds_per_gb": "TRANSCODE_SECONDS_PER_GB",
            "storage_timeout": "STORAGE_TIMEOUT",
            "metadata_prefix": "VIDEO_METADATA_PREFIX",
        }
        values = {field: env[var] for field, var in mapping.items() if env.get(var)}
        return cls.model_validate(values)

    def public_url(self, key: str) -> str:
        base = self.public_base_url or f"https://{self.bucket}.s3.{self.region}.amazonaws.com"
        return f"{base.rstrip('/')}/{key}"
