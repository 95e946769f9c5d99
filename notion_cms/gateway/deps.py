import hmac
from collections.abc import Callable
from pathlib import Path
from typing import Annotated

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis.asyncio import Redis

from notion_cms.gateway.config import MediaStorages, Settings, get_settings
from notion_cms.gateway.exceptions import UnauthorizedError
from notion_cms.gateway.notion.api import NotionClient
from notion_cms.gateway.redis_client import get_redis_client
from notion_cms.gateway.storage import LocalMediaStorage, MediaStorage, R2MediaStorage
from notion_cms.gateway.store import RedisTenantStore, RedisWebhookStore, TenantStore, WebhookStore

SettingsDep = Annotated[Settings, Depends(get_settings)]
RedisClient = Annotated[Redis, Depends(get_redis_client)]

NotionClientFactory = Callable[[str], NotionClient]

bearer = HTTPBearer(auto_error=False)


def get_tenant_store(redis: RedisClient) -> TenantStore:
    return RedisTenantStore(redis)


def get_webhook_store(redis: RedisClient) -> WebhookStore:
    return RedisWebhookStore(redis)


def get_notion_client_factory(settings: SettingsDep) -> NotionClientFactory:
    def factory(token: str) -> NotionClient:
        return NotionClient.from_settings(settings, token)

    return factory


def get_media_storage(settings: SettingsDep) -> MediaStorage:
    match settings.media_storage_type:
        case MediaStorages.LOCAL:
            return LocalMediaStorage(Path(settings.media_local_path))
        case MediaStorages.R2:
            if not (
                settings.r2_account_id
                and settings.r2_access_key_id
                and settings.r2_secret_access_key
                and settings.r2_bucket
                and settings.r2_public_url
            ):
                raise ValueError("R2 media storage selected but R2 settings are incomplete")
            return R2MediaStorage(
                account_id=settings.r2_account_id,
                access_key_id=settings.r2_access_key_id,
                secret_access_key=settings.r2_secret_access_key,
                bucket_name=settings.r2_bucket,
                public_url=settings.r2_public_url,
            )
        case _:
            raise ValueError(f"Invalid media storage type {settings.media_storage_type}")


async def require_media_secret(
    settings: SettingsDep,
    creds: HTTPAuthorizationCredentials | None = Security(bearer),
) -> None:
    if creds is None or not settings.media_secret_key:
        raise UnauthorizedError("Unauthorized")
    if not hmac.compare_digest(creds.credentials.encode(), settings.media_secret_key.encode()):
        raise UnauthorizedError("Unauthorized")


TenantStoreDep = Annotated[TenantStore, Depends(get_tenant_store)]
WebhookStoreDep = Annotated[WebhookStore, Depends(get_webhook_store)]
NotionClientFactoryDep = Annotated[NotionClientFactory, Depends(get_notion_client_factory)]
MediaStorageDep = Annotated[MediaStorage, Depends(get_media_storage)]
MediaAuth = Depends(require_media_secret)
