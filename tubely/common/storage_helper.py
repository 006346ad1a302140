"""
Utilities for interacting with the S3/MinIO video store.

Every Tubely function should go through ``ObjectStore`` instead of rolling
bespoke boto3 code so credentials, timeouts and logging remain consistent.
"""

from __future__ import annotations

import base64
import json
import secrets
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError, ConnectTimeoutError, ReadTimeoutError

from .config import TubelyConfig
from .errors import OperationTimedOut, SigningFailed, UploadFailed
from .logging_helper import log_event
from .schemas import Orientation

STAGE_NAME = "storage"
RANDOM_ID_BYTES = 32


def new_storage_key(orientation: Orientation) -> str:
    """Return ``{orientation}/{base64url(32 random bytes)}``; never derived from user input."""
    raw = secrets.token_bytes(RANDOM_ID_BYTES)
    resource_id = base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")
    return f"{orientation.value}/{resource_id}"


def make_s3_client(config: TubelyConfig):
    """Build a boto3 S3 client for AWS or a MinIO-compatible endpoint."""
    session = boto3.session.Session()
    return session.client(
        "s3",
        endpoint_url=config.endpoint_url,
        region_name=config.region,
        aws_access_key_id=config.access_key,
        aws_secret_access_key=config.secret_key,
        config=Config(
            signature_version="s3v4",
            connect_timeout=config.storage_timeout,
            read_timeout=config.storage_timeout,
            # failures are terminal for the request
            retries={"total_max_attempts": 1, "mode": "standard"},
        ),
    )


class ObjectStore:
    def __init__(self, client) -> None:
        self.client = client

    @classmethod
    def from_config(cls, config: TubelyConfig) -> "ObjectStore":
        return cls(make_s3_client(config))

    def upload_file(
        self,
        source: str | Path,
        bucket: str,
        key: str,
        content_type: str,
        request_id: Optional[str] = None,
    ) -> None:
        """
        Single-shot PutObject of a local file.

        Bodies are capped at 1 GiB upstream, so no multipart transfer is needed
        here; larger assets would switch to ``create_multipart_upload``.
        """
        log_event(STAGE_NAME, "upload_start", request_id=request_id, bucket=bucket, key=key)
        try:
            with open(source, "rb") as body:
                self.client.put_object(Bucket=bucket, Key=key, Body=body, ContentType=content_type)
        except (ConnectTimeoutError, ReadTimeoutError) as exc:
            raise OperationTimedOut(f"upload of s3://{bucket}/{key} timed out") from exc
        except (BotoCoreError, ClientError, OSError) as exc:
            raise UploadFailed(f"upload of s3://{bucket}/{key} failed") from exc
        log_event(STAGE_NAME, "upload_completed", request_id=request_id, bucket=bucket, key=key)

    def presign_get(self, bucket: str, key: str, expires_in: int) -> str:
        """Return a GET URL for the object valid for ``expires_in`` seconds."""
        if not bucket:
            raise SigningFailed(f"cannot presign {key!r} without a bucket")
        try:
            return self.client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as exc:
            raise SigningFailed(f"failed to presign s3://{bucket}/{key}") from exc

    def list_keys(self, bucket: str, prefix: str) -> Iterator[str]:
        """Iterate over object keys under the specified prefix."""
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            for obj in page.get("Contents", []):
                yield obj["Key"]

    def object_exists(self, bucket: str, key: str) -> bool:
        """Return True if the object exists."""
        try:
            self.client.head_object(Bucket=bucket, Key=key)
            return True
        except ClientError as exc:
            if exc.response["ResponseMetadata"]["HTTPStatusCode"] == 404:
                return False
            raise

    def read_json(self, bucket: str, key: str) -> Dict[str, Any]:
        """Download and parse a JSON object."""
        obj = self.client.get_object(Bucket=bucket, Key=key)
        return json.loads(obj["Body"].read().decode("utf-8"))

    def write_json(self, data: Dict[str, Any], bucket: str, key: str) -> None:
        """Serialize data as JSON and upload."""
        self.client.put_object(
            Bucket=bucket,
            Key=key,
            Body=json.dumps(data, indent=2).encode("utf-8"),
            ContentType="application/json",
        )
