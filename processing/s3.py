import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path

import boto3
from botocore.config import Config as BotoConfig
from django.conf import settings

from .exceptions import StorageError

logger = logging.getLogger(__name__)

OBJECTS_PREFIX = "/objects/"


@dataclass(frozen=True)
class StoredObject:
    object_path: str  # caller-addressable, e.g. /objects/uploads/<uuid>
    size: int


def _session():
    return boto3.session.Session(
        aws_access_key_id=settings.S3_ACCESS_KEY,
        aws_secret_access_key=settings.S3_SECRET_KEY,
        region_name=settings.S3_REGION,
    )


def get_s3_client():
    """
    SDK client for server-side upload/download.
    """
    return _session().client(
        "s3",
        endpoint_url=settings.S3_ENDPOINT_URL,  # e.g. http://127.0.0.1:9000
        config=BotoConfig(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
        ),
    )


def get_presign_client():
    """
    Separate client for generating presigned URLs that the browser will call.
    Uses S3_PUBLIC_ENDPOINT so the URL host matches what the client reaches.
    """
    return _session().client(
        "s3",
        endpoint_url=settings.S3_PUBLIC_ENDPOINT,
        config=BotoConfig(
            s3={"addressing_style": "path"},
            signature_version="s3v4",  # ensures AWS4 signing
        ),
    )


def _split_bucket_key(path: str, original: str) -> tuple[str, str]:
    bucket, _, key = path.lstrip("/").partition("/")
    if not bucket or not key:
        raise StorageError(f"Cannot resolve object path {original!r} to a bucket and key")
    return bucket, key


def _private_dir() -> str:
    return settings.S3_PRIVATE_OBJECT_DIR.rstrip("/") + "/"


def resolve_object_path(object_path: str) -> tuple[str, str]:
    """
    Map a durable object path to (bucket, key).

    "/objects/<entity>" paths live under S3_PRIVATE_OBJECT_DIR ("/<bucket>/<prefix>");
    anything else is read as "/<bucket>/<key>".
    """
    if object_path.startswith(OBJECTS_PREFIX):
        entity = object_path[len(OBJECTS_PREFIX):]
        if not entity:
            raise StorageError(f"Cannot resolve object path {object_path!r} to a bucket and key")
        return _split_bucket_key(_private_dir() + entity, object_path)
    return _split_bucket_key(object_path, object_path)


def download_file(object_path: str, dest: Path) -> Path:
    """
    Stream an object to a local file.
    """
    bucket, key = resolve_object_path(object_path)
    logger.debug("Downloading s3://%s/%s to %s", bucket, key, dest)
    get_s3_client().download_file(bucket, key, str(dest))
    return dest


def upload_file(local_path: Path, content_type: str | None = None) -> StoredObject:
    """
    Upload a local file under a fresh object id in the private uploads area.
    The reported size is read from disk, not assumed by the caller.
    """
    object_id = str(uuid.uuid4())
    object_path = f"{OBJECTS_PREFIX}uploads/{object_id}"
    bucket, key = resolve_object_path(object_path)

    extra = {}
    if content_type:
        extra["ContentType"] = content_type
    logger.debug("Uploading %s to s3://%s/%s", local_path, bucket, key)
    get_s3_client().upload_file(str(local_path), bucket, key, ExtraArgs=extra or None)

    return StoredObject(object_path=object_path, size=os.path.getsize(local_path))


def create_presigned_get(object_path: str, expires: int | None = None) -> str:
    """
    Create a presigned GET URL to download an object.
    """
    bucket, key = resolve_object_path(object_path)
    return get_presign_client().generate_presigned_url(
        ClientMethod="get_object",
        Params={"Bucket": bucket, "Key": key},
        ExpiresIn=expires or settings.S3_PRESIGN_EXPIRE_SECONDS,
        HttpMethod="GET",
    )
