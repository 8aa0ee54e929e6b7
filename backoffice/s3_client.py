"""
S3 storage for tenant backups.

Objects are laid out as ``<S3_BACKUP_FOLDER>/<owner_id>/backup_<owner_id>_<stamp>.json``
so one tenant's snapshots never share a prefix with another's.
"""

import json
import os
from datetime import datetime
from typing import Optional, Tuple

import boto3

DEFAULT_BACKUP_FOLDER = "backups/db"
LINK_TTL_SECONDS = 3600


def _target() -> Tuple[object, str]:
    """Client and bucket from the environment; RuntimeError when either is unset."""
    region = os.getenv("AWS_REGION")
    bucket = os.getenv("S3_BUCKET")
    missing = [name for name, value in (("AWS_REGION", region), ("S3_BUCKET", bucket)) if not value]
    if missing:
        raise RuntimeError(f"{', '.join(missing)} not configured")
    return boto3.client("s3", region_name=region), bucket


def backup_key(owner_id: int, taken_at: datetime, folder: Optional[str] = None) -> str:
    folder = (folder or os.getenv("S3_BACKUP_FOLDER") or DEFAULT_BACKUP_FOLDER).rstrip("/")
    return f"{folder}/{owner_id}/backup_{owner_id}_{taken_at.strftime('%Y%m%d_%H%M%S')}.json"


def store_backup(owner_id: int, payload: dict, taken_at: datetime) -> Tuple[str, str]:
    """Write one tenant snapshot and return its key with a time-limited download link."""
    client, bucket = _target()
    key = backup_key(owner_id, taken_at)
    client.put_object(
        Bucket=bucket,
        Key=key,
        Body=json.dumps(payload).encode("utf-8"),
        ContentType="application/json",
    )
    url = client.generate_presigned_url(
        "get_object",
        Params={"Bucket": bucket, "Key": key},
        ExpiresIn=LINK_TTL_SECONDS,
    )
    return key, url
