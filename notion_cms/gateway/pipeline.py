"""Webhook processing: relevance filtering, publish gating, and page rendering."""

import asyncio
import time
import uuid
from typing import Any
from urllib.parse import unquote

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from notion_cms.gateway.config import Settings
from notion_cms.gateway.decision import Ignore, decide
from notion_cms.gateway.exceptions import UpstreamFetchError
from notion_cms.gateway.notion.api import NotionAPIError, NotionClient
from notion_cms.gateway.notion.fetcher import SectionsNotFoundError, fetch_children, find_sections
from notion_cms.gateway.rendering import assemble_document, process_blocks
from notion_cms.gateway.store import WebhookRecord, WebhookStore
from notion_cms.gateway.tenants import GatingPolicy, NotionMapping

PROPERTIES_UPDATED = "page.properties_updated"
PAGE_ENTITY = "page"


class EventEntity(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    type: str


class EventData(BaseModel):
    model_config = ConfigDict(extra="allow")

    updated_properties: list[str] | None = None


class NotionWebhookEvent(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    entity: EventEntity | None = None
    data: EventData = Field(default_factory=EventData)


def no_op(message: str, **extra: Any) -> dict[str, Any]:
    """A successful, deliberately ignored delivery. Notion must not retry these."""
    return {"success": True, "message": message, **extra}


def touches_watched_property(event: NotionWebhookEvent, mapping: NotionMapping) -> bool:
    """True if the event reports a change to a property gating depends on.

    Deliveries that do not list updated properties are treated as relevant.
    Notion sends property ids URL-encoded, so ids are compared decoded.
    """
    updated = event.data.updated_properties
    if updated is None:
        return True
    watched = {unquote(property_id) for property_id in mapping.watched_property_ids()}
    return any(unquote(property_id) in watched for property_id in updated)


async def handle_page_event(
    *,
    tenant_id: str,
    mapping: NotionMapping,
    event: NotionWebhookEvent,
    payload: dict[str, Any],
    notion: NotionClient,
    webhooks: WebhookStore,
    settings: Settings,
) -> dict[str, Any]:
    """Process one verified webhook delivery for a tenant and return the response body.

    Raises:
        UpstreamFetchError: if Notion could not be queried for the page
    """
    if event.type != PROPERTIES_UPDATED:
        return no_op("Webhook received but not relevant type")
    if event.entity is None or event.entity.type != PAGE_ENTITY:
        return no_op("Webhook received but entity type is not 'page'")
    if not touches_watched_property(event, mapping):
        return no_op("Webhook received but status property was not updated")

    page_id = event.entity.id
    log = logger.bind(tenant_id=tenant_id, page_id=page_id)

    page_exists = await webhooks.page_exists(tenant_id, page_id)

    try:
        status_item = await notion.retrieve_page_property(page_id, mapping.status_property.id)
        if status_item.get("type") != "status":
            return no_op("Expected status property but got different type - ignoring webhook")
        status_value = (status_item.get("status") or {}).get("name")

        republish_checked = False
        if mapping.policy == GatingPolicy.CHECKBOX and mapping.republish_property_id:
            checkbox_item = await notion.retrieve_page_property(page_id, mapping.republish_property_id)
            republish_checked = checkbox_item.get("type") == "checkbox" and bool(checkbox_item.get("checkbox"))

        action = decide(page_exists, status_value, republish_checked, mapping.status_property, mapping.policy)
        if isinstance(action, Ignore):
            log.info(f"Ignoring webhook: {action.reason}")
            return no_op(action.reason)

        event_id = str(uuid.uuid4())
        record = WebhookRecord(
            tenant_id=tenant_id,
            event_id=event_id,
            payload=payload,
            timestamp=int(time.time() * 1000),
            page_id=page_id,
            status=status_value,
        )
        await webhooks.save(record, ttl_seconds=settings.webhook_record_ttl_seconds)
        log.info(f"Stored webhook {event_id} with status {status_value!r} (page seen before: {page_exists})")

        parents = mapping.parent_blocks
        try:
            sections = await find_sections(
                notion, page_id, [parents.blog_copy, parents.schemas], page_size=settings.notion_page_size
            )
        except SectionsNotFoundError as e:
            log.info(str(e))
            return no_op(str(e), missing_sections=e.missing)

        schema_blocks, blog_copy_blocks = await asyncio.gather(
            fetch_children(notion, sections[parents.schemas], page_size=settings.notion_page_size),
            fetch_children(notion, sections[parents.blog_copy], page_size=settings.notion_page_size),
        )
        processed_schemas = await process_blocks(
            notion, schema_blocks, max_depth=settings.max_list_depth, page_size=settings.notion_page_size
        )
        processed_blocks = await process_blocks(
            notion, blog_copy_blocks, max_depth=settings.max_list_depth, page_size=settings.notion_page_size
        )
    except NotionAPIError as e:
        log.error(f"Error retrieving page: {e}")
        raise UpstreamFetchError() from e

    complete_html = assemble_document(processed_blocks)
    log.info(f"Rendered {len(processed_blocks)} blocks ({len(complete_html)} chars of HTML)")

    return {
        "success": True,
        "message": "Webhook processed successfully",
        "tenant_id": tenant_id,
        "page_id": page_id,
        "event_id": event_id,
        "status": status_value,
        "page_exists": page_exists,
        "blocks_count": len(processed_blocks),
        "processed_blocks": [block.model_dump() for block in processed_blocks],
        "schema_blocks": [block.model_dump() for block in processed_schemas],
        "complete_html": complete_html,
    }
