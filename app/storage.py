"""Company logo storage backed by a GridFS bucket."""
import logging
import os
import time
from typing import Optional, Tuple

from gridfs.errors import NoFile
from motor.motor_asyncio import AsyncIOMotorDatabase, AsyncIOMotorGridFSBucket
from pymongo.errors import PyMongoError

from app.errors import StoreError

logger = logging.getLogger(__name__)


def logo_path(original_filename: Optional[str], now_ms: int = None) -> str:
    """Time-based object path, e.g. ``logos/1718000000000.png``."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    ext = os.path.splitext(original_filename or "")[1].lstrip(".")
    return f"logos/{stamp}.{ext}" if ext else f"logos/{stamp}"


class GridFSLogoStorage:
    def __init__(self, db: AsyncIOMotorDatabase, bucket: str, public_base_url: str):
        self.bucket_name = bucket
        self.bucket = AsyncIOMotorGridFSBucket(db, bucket_name=bucket)
        self.public_base_url = public_base_url.rstrip("/")

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/api/files/{path}"

    async def upload(self, path: str, data: bytes, content_type: Optional[str]) -> str:
        try:
            await self.bucket.upload_from_stream(
                path, data, metadata={"contentType": content_type or "application/octet-stream"}
            )
        except PyMongoError as exc:
            raise StoreError(f"Logo upload failed: {exc}") from exc
        logger.info(f"Stored logo {path} ({len(data)} bytes)")
        return self.public_url(path)

    async def open(self, path: str) -> Optional[Tuple[bytes, str]]:
        try:
            stream = await self.bucket.open_download_stream_by_name(path)
        except NoFile:
            return None
        except PyMongoError as exc:
            raise StoreError(f"Logo download failed: {exc}") from exc
        data = await stream.read()
        metadata = stream.metadata or {}
        return data, metadata.get("contentType", "application/octet-stream")

    async def delete(self, path: str):
        try:
            async for grid_out in self.bucket.find({"filename": path}):
                await self.bucket.delete(grid_out._id)
        except PyMongoError as exc:
            raise StoreError(f"Logo delete failed: {exc}") from exc
        logger.info(f"Deleted logo {path}")
