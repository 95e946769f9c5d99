"""Copy media referenced by Notion blocks into our own storage.

Notion-hosted file URLs expire after an hour, so the blog frontend cannot
link to them directly.
"""

import io
import re
from enum import StrEnum, auto

import httpx
from fastapi import APIRouter
from loguru import logger
from pydantic import BaseModel

from notion_cms.gateway.deps import MediaAuth, MediaStorageDep, SettingsDep
from notion_cms.gateway.exceptions import BadGatewayError, InvalidRequestError

router = APIRouter(prefix="/v1/media", tags=["Media"], dependencies=[MediaAuth])

ID_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


class MediaType(StrEnum):
    image = auto()
    video = auto()


DEFAULT_CONTENT_TYPES = {
    MediaType.image: ("image/jpeg", "jpg"),
    MediaType.video: ("video/mp4", "mp4"),
}


class UploadRequest(BaseModel):
    url: str = ""
    media_type: str = ""
    tenant_id: str = ""
    block_id: str = ""


class UploadResponse(BaseModel):
    success: bool
    url: str
    key: str


async def download_media(url: str, max_size: int) -> tuple[bytes, str | None]:
    """Download `url` within `max_size` bytes; return (content, content-type header).

    Raises:
        BadGatewayError: If the download fails or the file is too large
    """
    async with httpx.AsyncClient(follow_redirects=True, timeout=30.0) as client:
        try:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                content = io.BytesIO()
                downloaded = 0
                async for chunk in response.aiter_bytes(chunk_size=8192):
                    downloaded += len(chunk)
                    if downloaded > max_size:
                        raise BadGatewayError(f"Media exceeds maximum of {max_size} bytes")
                    content.write(chunk)
                return content.getvalue(), response.headers.get("content-type")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Failed to fetch media from {url}: {e}")
            raise BadGatewayError("Failed to fetch media from provided URL")


def content_type_and_extension(header: str | None, media_type: MediaType) -> tuple[str, str]:
    default_type, default_ext = DEFAULT_CONTENT_TYPES[media_type]
    content_type = (header or "").split(";")[0].strip() or default_type
    _, _, subtype = content_type.partition("/")
    extension = re.sub(r"[^a-z0-9]", "", subtype.lower()) or default_ext
    return content_type, extension


@router.post("")
async def upload_media(request: UploadRequest, settings: SettingsDep, storage: MediaStorageDep) -> UploadResponse:
    """Fetch a media URL and store it under `{tenant_id}/{media_type}s/{block_id}.{ext}`."""
    if not request.url or not request.media_type or not request.tenant_id or not request.block_id:
        raise InvalidRequestError("Missing required fields: url, media_type, tenant_id and block_id")
    if not ID_PATTERN.fullmatch(request.tenant_id):
        raise InvalidRequestError("Invalid tenant_id format")
    if not ID_PATTERN.fullmatch(request.block_id):
        raise InvalidRequestError("Invalid block_id format")
    if request.media_type not in MediaType.__members__:
        raise InvalidRequestError('Invalid media_type. Must be "image" or "video"')
    try:
        source = httpx.URL(request.url)
    except httpx.InvalidURL:
        raise InvalidRequestError("Invalid url")
    if source.scheme not in ("http", "https") or not source.host:
        raise InvalidRequestError("Invalid url")
    media_type = MediaType(request.media_type)

    data, header_type = await download_media(request.url, settings.media_max_download_size)
    content_type, extension = content_type_and_extension(header_type, media_type)

    key = f"{request.tenant_id}/{media_type}s/{request.block_id}.{extension}"
    public_url = await storage.store(key, data, content_type)
    logger.bind(tenant_id=request.tenant_id).info(f"Stored {media_type} {key} ({len(data)} bytes)")

    return UploadResponse(success=True, url=public_url, key=key)
