import itertools
from typing import Any

import httpx
import pytest

from notion_cms.gateway.notion.api import NotionClient
from notion_cms.gateway.store import TenantStore, WebhookRecord, WebhookStore, page_prefix, webhook_key
from notion_cms.gateway.tenants import TenantConfig

_ids = itertools.count(1)


def _next_id(kind: str) -> str:
    return f"{kind}-{next(_ids)}"


class BlockFactory:
    """Raw Notion API block payloads, shaped like `GET /blocks/{id}/children` results."""

    @staticmethod
    def rich(text: str, href: str | None = None, **annotations: bool) -> dict[str, Any]:
        return {
            "type": "text",
            "text": {"content": text, "link": {"url": href} if href else None},
            "annotations": {
                "bold": False,
                "italic": False,
                "strikethrough": False,
                "underline": False,
                "code": False,
                "color": "default",
                **annotations,
            },
            "plain_text": text,
            "href": href,
        }

    @classmethod
    def text_block(
        cls, kind: str, text: str | list[dict], *, id: str | None = None, has_children: bool = False
    ) -> dict[str, Any]:
        rich_text = [cls.rich(text)] if isinstance(text, str) else text
        return {
            "object": "block",
            "id": id or _next_id(kind),
            "type": kind,
            "has_children": has_children,
            kind: {"rich_text": rich_text, "color": "default"},
        }

    @classmethod
    def paragraph(cls, text: str | list[dict], **kwargs: Any) -> dict[str, Any]:
        return cls.text_block("paragraph", text, **kwargs)

    @classmethod
    def heading(cls, text: str, level: int = 1, **kwargs: Any) -> dict[str, Any]:
        return cls.text_block(f"heading_{level}", text, **kwargs)

    @classmethod
    def bullet(cls, text: str, **kwargs: Any) -> dict[str, Any]:
        return cls.text_block("bulleted_list_item", text, **kwargs)

    @classmethod
    def numbered(cls, text: str, **kwargs: Any) -> dict[str, Any]:
        return cls.text_block("numbered_list_item", text, **kwargs)

    @classmethod
    def code(cls, text: str, language: str = "python", **kwargs: Any) -> dict[str, Any]:
        block = cls.text_block("code", text, **kwargs)
        block["code"]["language"] = language
        block["code"]["caption"] = []
        return block

    @staticmethod
    def media(kind: str, url: str | None, *, hosted: bool = False, caption: str | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"caption": [BlockFactory.rich(caption)] if caption else []}
        if hosted:
            payload["type"] = "file"
            payload["file"] = {"url": url, "expiry_time": "2026-10-18T12:00:00.000Z"}
        else:
            payload["type"] = "external"
            payload["external"] = {"url": url}
        return {"object": "block", "id": _next_id(kind), "type": kind, "has_children": False, kind: payload}

    @staticmethod
    def divider() -> dict[str, Any]:
        return {"object": "block", "id": _next_id("divider"), "type": "divider", "has_children": False, "divider": {}}

    @staticmethod
    def unsupported(kind: str = "unsupported_x") -> dict[str, Any]:
        return {"object": "block", "id": _next_id(kind), "type": kind, "has_children": False, kind: {}}


class FakeNotion:
    """In-memory Notion API served through `httpx.MockTransport`."""

    def __init__(self):
        self.children: dict[str, list[dict[str, Any]]] = {}
        self.properties: dict[tuple[str, str], dict[str, Any]] = {}
        self.failing: set[str] = set()
        self.malformed: dict[str, Any] = {}
        self.requests: list[httpx.Request] = []

    def set_status(self, page_id: str, property_id: str, name: str | None) -> None:
        self.properties[(page_id, property_id)] = {
            "object": "property_item",
            "id": property_id,
            "type": "status",
            "status": {"id": "opt", "name": name, "color": "default"} if name else None,
        }

    def set_checkbox(self, page_id: str, property_id: str, checked: bool) -> None:
        self.properties[(page_id, property_id)] = {
            "object": "property_item",
            "id": property_id,
            "type": "checkbox",
            "checkbox": checked,
        }

    def children_requests(self, block_id: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(f"/blocks/{block_id}/children")]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")  # v1/<resource>/<id>/...

        if parts[1] == "blocks":
            block_id = parts[2]
            if block_id in self.malformed:
                return httpx.Response(200, json=self.malformed[block_id])
            if block_id in self.failing:
                return httpx.Response(
                    500, json={"object": "error", "code": "internal_server_error", "message": "boom"}
                )
            if block_id not in self.children:
                return httpx.Response(404, json={"object": "error", "code": "object_not_found", "message": "nope"})
            items = self.children[block_id]
            size = int(request.url.params.get("page_size", 100))
            start = int(request.url.params.get("start_cursor") or 0)
            end = start + size
            has_more = end < len(items)
            return httpx.Response(
                200,
                json={
                    "object": "list",
                    "results": items[start:end],
                    "next_cursor": str(end) if has_more else None,
                    "has_more": has_more,
                },
            )

        if parts[1] == "pages":
            page_id, property_id = parts[2], parts[4]
            if page_id in self.failing:
                return httpx.Response(502, text="bad gateway")
            item = self.properties.get((page_id, property_id))
            if item is None:
                return httpx.Response(404, json={"object": "error", "code": "object_not_found", "message": "nope"})
            return httpx.Response(200, json=item)

        return httpx.Response(400, json={"object": "error", "code": "invalid_request_url", "message": "?"})

    def client(self, token: str = "secret_token") -> NotionClient:
        return NotionClient(token, transport=httpx.MockTransport(self.handle))


class InMemoryTenantStore(TenantStore):
    def __init__(self):
        self.tenants: dict[str, TenantConfig] = {}

    async def get(self, tenant_id: str) -> TenantConfig | None:
        return self.tenants.get(tenant_id)


class InMemoryWebhookStore(WebhookStore):
    def __init__(self):
        self.records: dict[str, tuple[WebhookRecord, int]] = {}

    async def page_exists(self, tenant_id: str, page_id: str) -> bool:
        prefix = f"{page_prefix(tenant_id, page_id)}-webhookId:"
        return any(key.startswith(prefix) for key in self.records)

    async def save(self, record: WebhookRecord, ttl_seconds: int) -> str:
        key = webhook_key(record)
        self.records[key] = (record, ttl_seconds)
        return key


@pytest.fixture
def blocks() -> type[BlockFactory]:
    return BlockFactory


@pytest.fixture
def fake_notion() -> FakeNotion:
    return FakeNotion()


@pytest.fixture
async def notion(fake_notion):
    async with fake_notion.client() as client:
        yield client


@pytest.fixture
def tenant_store() -> InMemoryTenantStore:
    return InMemoryTenantStore()


@pytest.fixture
def webhook_store() -> InMemoryWebhookStore:
    return InMemoryWebhookStore()
