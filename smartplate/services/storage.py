"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Tue Feb 03 2026
# SPDX-License-Identifier: MIT
"""

import logging
import time
import uuid
from pathlib import Path, PurePosixPath

from smartplate.config import settings

logger = logging.getLogger(__name__)

NGO_DOCUMENTS_BUCKET = "verification-documents"
VOLUNTEER_DOCUMENTS_BUCKET = "volunteer-documents"
FOOD_REQUEST_PHOTOS_BUCKET = "food-request-photos"

BUCKETS = (NGO_DOCUMENTS_BUCKET, VOLUNTEER_DOCUMENTS_BUCKET, FOOD_REQUEST_PHOTOS_BUCKET)


class StorageError(Exception):
    pass


def file_extension(file_name: str) -> str:
    suffix = PurePosixPath(file_name or "").suffix
    return suffix[1:].lower() if suffix else "bin"


def timestamp_ms() -> int:
    return int(time.time() * 1000)


def object_name(prefix: str, file_name: str) -> str:
    """
    Builds "{prefix}{ms timestamp}-{random}.{ext}", unique even for uploads in the same millisecond.
    """
    return f"{prefix}{timestamp_ms()}-{uuid.uuid4().hex[:8]}.{file_extension(file_name)}"


class BlobStorage:
    """
    Bucketed file storage on the local filesystem. Every object key starts with the
    owner's id so that ownership can be checked from the key alone.
    """

    def __init__(self, root: str, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _resolve(self, bucket: str, key: str) -> Path:
        if bucket not in BUCKETS:
            raise StorageError(f"Unknown bucket '{bucket}'")
        parts = PurePosixPath(key).parts
        if not parts or any(part in ("..", "/", "") for part in parts):
            raise StorageError(f"Invalid object key '{key}'")
        return self.root.joinpath(bucket, *parts)

    def upload(self, bucket: str, owner_id: int, key: str, data: bytes) -> str:
        """
        Stores `data` under `bucket/key` and returns the URL it is served from.
        The first key segment must be the owner's id.
        """
        if PurePosixPath(key).parts[:1] != (str(owner_id),):
            raise StorageError("Object key must be prefixed with the owner id")
        target = self._resolve(bucket, key)
        if target.exists():
            raise StorageError(f"Object '{key}' already exists")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Could not store '{key}': {e}") from e
        logger.info("Stored %s/%s (%d bytes)", bucket, key, len(data))
        return self.public_url(bucket, key)

    def public_url(self, bucket: str, key: str) -> str:
        return f"{self.base_url}/{bucket}/{key}"

    def exists(self, bucket: str, key: str) -> bool:
        return self._resolve(bucket, key).exists()


def get_storage() -> BlobStorage:
    return BlobStorage(settings.storage_root, settings.storage_base_url)
