"""Where copied Notion media ends up: local disk for development, Cloudflare R2 in production."""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path

import aioboto3
from botocore.client import Config
from loguru import logger

# Re-uploads overwrite the same key, so keep edge caching short.
MEDIA_CACHE_CONTROL = "public, max-age=86400"


class MediaStorage(ABC):
    @abstractmethod
    async def store(self, key: str, data: bytes, content_type: str) -> str:
        """Store `data` under `key` (overwriting) and return the URL it is served from."""


class LocalMediaStorage(MediaStorage):
    def __init__(self, base_path: Path, public_url: str = "/media"):
        self.base_path = base_path
        self.public_url = public_url.rstrip("/")

    async def store(self, key: str, data: bytes, content_type: str) -> str:
        target = (self.base_path / key).resolve()
        if not target.is_relative_to(self.base_path.resolve()):
            raise ValueError(f"Media key escapes storage root: {key}")
        await asyncio.to_thread(self._write, target, data)
        return f"{self.public_url}/{key}"

    @staticmethod
    def _write(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)


class R2MediaStorage(MediaStorage):
    """S3-compatible upload to an R2 bucket fronted by a public CDN domain."""

    def __init__(
        self,
        account_id: str,
        access_key_id: str,
        secret_access_key: str,
        bucket_name: str,
        public_url: str,
    ):
        self.bucket = bucket_name
        self.public_url = public_url.rstrip("/")
        self._session = aioboto3.Session(
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name="auto",
        )
        self._endpoint = f"https://{account_id}.r2.cloudflarestorage.com"

    async def store(self, key: str, data: bytes, content_type: str) -> str:
        async with self._session.client(
            "s3", endpoint_url=self._endpoint, config=Config(signature_version="s3v4")
        ) as s3:
            await s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl=MEDIA_CACHE_CONTROL,
            )
        logger.info(f"Uploaded media r2://{self.bucket}/{key} ({len(data)} bytes, {content_type})")
        return f"{self.public_url}/{key}"
