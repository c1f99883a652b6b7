"""
S3 helpers for media references.

Stored references are plain object URLs. When no bucket is configured the
helpers return references unchanged so local development needs no AWS
credentials.
"""
import secrets
from typing import Optional
from urllib.parse import urlparse

import boto3
from botocore.exceptions import ClientError

from socialnet.config import settings
from socialnet.logging_config import setup_logger

logger = setup_logger(__name__)

_s3 = None


def get_s3_client():
    global _s3
    if _s3 is None:
        _s3 = boto3.client("s3", region_name=settings.AWS_BUCKET_REGION)
    return _s3


def storage_enabled() -> bool:
    return bool(settings.AWS_BUCKET_NAME)


def object_url(key: str) -> str:
    return f"https://{settings.AWS_BUCKET_NAME}.s3.{settings.AWS_BUCKET_REGION}.amazonaws.com/{key}"


def _presign(client_method: str, bucket: str, key: str) -> str:
    try:
        return get_s3_client().generate_presigned_url(
            ClientMethod=client_method,
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=settings.PRESIGNED_URL_EXPIRES,
        )
    except ClientError as e:
        logger.error(f"S3 presign failed for {bucket}/{key}: {e}")
        raise


def sign_url(reference: str) -> str:
    """Turn a stored object URL into a retrievable presigned GET URL"""
    if not storage_enabled():
        return reference
    parsed = urlparse(reference)
    bucket = parsed.hostname.split(".")[0] if parsed.hostname else settings.AWS_BUCKET_NAME
    key = parsed.path.lstrip("/")
    return _presign("get_object", bucket, key)


def sign_key(key: Optional[str]) -> Optional[str]:
    if not key:
        return None
    if not storage_enabled():
        return object_url(key)
    return _presign("get_object", settings.AWS_BUCKET_NAME, key)


def presign_upload(key: str) -> str:
    if not storage_enabled():
        return object_url(key)
    return _presign("put_object", settings.AWS_BUCKET_NAME, key)


def random_media_key(file_type: str, bytes_: int = 32) -> str:
    return f"uploadedMedia/{secrets.token_hex(bytes_)}.{file_type}"
