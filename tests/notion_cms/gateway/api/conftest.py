from typing import Any

import httpx
import orjson
import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from notion_cms.gateway import create_app
from notion_cms.gateway.config import MediaStorages, Settings
from notion_cms.gateway.deps import get_notion_client_factory, get_tenant_store, get_webhook_store
from notion_cms.gateway.signature import compute_signature
from notion_cms.gateway.tenants import (
    GatingPolicy,
    NotionMapping,
    ParentBlocks,
    StatusMapping,
    TenantConfig,
)


class WebhookScenario:
    """One tenant with a Notion page, plus helpers to build and send signed deliveries."""

    tenant_id = "tenant-1"
    page_id = "page-1"
    status_property = "status-prop"
    republish_property = "republish-prop"
    secret = "verification-secret"

    def __init__(self, client: AsyncClient, tenant_store, fake_notion):
        self.client = client
        self.tenant_store = tenant_store
        self.fake_notion = fake_notion
        self.configure_tenant()

    def configure_tenant(self, policy: GatingPolicy = GatingPolicy.STATUS, with_mapping: bool = True) -> TenantConfig:
        mapping = NotionMapping(
            status_property=StatusMapping(
                id=self.status_property, draft="Draft", published="Published", republish="Republish"
            ),
            parent_blocks=ParentBlocks(schemas="Schemas", blog_copy="Blog Copy"),
            policy=policy,
            republish_property_id=self.republish_property if policy == GatingPolicy.CHECKBOX else None,
        )
        tenant = TenantConfig(
            verification_secret=self.secret,
            notion_token="secret_notion_token",
            notion_mapping=mapping if with_mapping else None,
        )
        self.tenant_store.tenants[self.tenant_id] = tenant
        return tenant

    def event(
        self,
        *,
        event_type: str = "page.properties_updated",
        entity_type: str = "page",
        updated_properties: list[str] | None = None,
        omit_updated_properties: bool = False,
    ) -> dict[str, Any]:
        data = {} if omit_updated_properties else {"updated_properties": updated_properties or [self.status_property]}
        return {
            "id": "evt-1",
            "timestamp": "2026-10-18T10:00:00.000Z",
            "workspace_id": "ws-1",
            "type": event_type,
            "entity": {"id": self.page_id, "type": entity_type},
            "data": data,
        }

    def set_status(self, name: str | None) -> None:
        self.fake_notion.set_status(self.page_id, self.status_property, name)

    def set_republish_checkbox(self, checked: bool) -> None:
        self.fake_notion.set_checkbox(self.page_id, self.republish_property, checked)

    def set_page(self, blocks, *, blog_copy: list[dict], schemas: list[dict]) -> None:
        """Lay out the page as two heading_1 sections holding the given blocks."""
        self.fake_notion.children[self.page_id] = [
            blocks.paragraph("intro"),
            blocks.heading("Blog Copy", id="section-blog-copy"),
            blocks.heading("Schemas", id="section-schemas"),
        ]
        self.fake_notion.children["section-blog-copy"] = blog_copy
        self.fake_notion.children["section-schemas"] = schemas

    async def post(
        self,
        payload: dict | bytes,
        *,
        tenant_id: str | None = None,
        signature: str | None = None,
        sign: bool = True,
    ) -> httpx.Response:
        body = payload if isinstance(payload, bytes) else orjson.dumps(payload)
        headers = {"Content-Type": "application/json"}
        if sign:
            headers["X-Notion-Signature"] = signature or compute_signature(body, self.secret)
        path = f"/notion-webhook/{self.tenant_id if tenant_id is None else tenant_id}"
        return await self.client.post(path, content=body, headers=headers)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        redis_url="redis://unused:6379/0",
        log_dir=str(tmp_path / "logs"),
        media_secret_key="media-secret",
        media_storage_type=MediaStorages.LOCAL,
        media_local_path=str(tmp_path / "media"),
    )


@pytest.fixture
def app(settings, tenant_store, webhook_store, fake_notion) -> FastAPI:
    app = create_app(settings, setup_logging=False)
    app.dependency_overrides[get_tenant_store] = lambda: tenant_store
    app.dependency_overrides[get_webhook_store] = lambda: webhook_store
    app.dependency_overrides[get_notion_client_factory] = lambda: fake_notion.client
    return app


@pytest.fixture
async def client(app):
    # Unhandled errors are rendered by the app's handler instead of propagating into the test.
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def scenario(client, tenant_store, fake_notion) -> WebhookScenario:
    return WebhookScenario(client, tenant_store, fake_notion)
