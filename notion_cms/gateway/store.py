"""Key-value storage for tenant configuration and webhook records."""

import abc

import orjson
from pydantic import BaseModel, ValidationError
from redis.asyncio import Redis

from notion_cms.gateway.tenants import TenantConfig


class WebhookRecord(BaseModel):
    tenant_id: str
    event_id: str
    payload: dict
    timestamp: int  # epoch milliseconds
    page_id: str
    status: str


def tenant_key(tenant_id: str) -> str:
    return f"user:{tenant_id}"


def page_prefix(tenant_id: str, page_id: str) -> str:
    return f"webhook:{tenant_id}-pageId:{page_id}"


def webhook_pattern(tenant_id: str, page_id: str) -> str:
    return f"{page_prefix(tenant_id, page_id)}-webhookId:*"


def webhook_key(record: WebhookRecord) -> str:
    return f"{page_prefix(record.tenant_id, record.page_id)}-webhookId:{record.event_id}"


def page_seen_key(tenant_id: str, page_id: str) -> str:
    return f"page-seen:{tenant_id}-pageId:{page_id}"


class TenantStore(abc.ABC):
    @abc.abstractmethod
    async def get(self, tenant_id: str) -> TenantConfig | None:
        """Return the tenant's configuration, or None if there is none."""


class WebhookStore(abc.ABC):
    @abc.abstractmethod
    async def page_exists(self, tenant_id: str, page_id: str) -> bool:
        """Return True if any webhook record was stored for this page before."""

    @abc.abstractmethod
    async def save(self, record: WebhookRecord, ttl_seconds: int) -> str:
        """Persist `record` with a TTL and return its key."""


class RedisTenantStore(TenantStore):
    def __init__(self, redis: Redis):
        self._redis = redis

    async def get(self, tenant_id: str) -> TenantConfig | None:
        raw = await self._redis.get(tenant_key(tenant_id))
        if raw is None:
            return None
        try:
            return TenantConfig.model_validate(orjson.loads(raw))
        except (orjson.JSONDecodeError, ValidationError) as e:
            raise ValueError(f"Stored configuration for tenant {tenant_id!r} is invalid") from e


class RedisWebhookStore(WebhookStore):
    def __init__(self, redis: Redis):
        self._redis = redis

    async def page_exists(self, tenant_id: str, page_id: str) -> bool:
        if await self._redis.exists(page_seen_key(tenant_id, page_id)):
            return True
        # Records written before the marker key existed
        async for _ in self._redis.scan_iter(match=webhook_pattern(tenant_id, page_id), count=1000):
            return True
        return False

    async def save(self, record: WebhookRecord, ttl_seconds: int) -> str:
        key = webhook_key(record)
        await self._redis.set(key, orjson.dumps(record.model_dump()), ex=ttl_seconds)
        await self._redis.set(page_seen_key(record.tenant_id, record.page_id), record.event_id, ex=ttl_seconds)
        return key
