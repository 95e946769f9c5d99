import re

import orjson
from fastapi import APIRouter, Request
from loguru import logger
from pydantic import ValidationError

from notion_cms.gateway.deps import NotionClientFactoryDep, SettingsDep, TenantStoreDep, WebhookStoreDep
from notion_cms.gateway.exceptions import InvalidRequestError, SignatureMismatchError, TenantNotFoundError
from notion_cms.gateway.pipeline import NotionWebhookEvent, handle_page_event, no_op
from notion_cms.gateway.signature import SIGNATURE_HEADER, verify_signature

router = APIRouter(tags=["Webhooks"])

TENANT_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]+")
INVALID_URL_MESSAGE = "Invalid webhook URL format. Expected: /notion-webhook/{userId}"


@router.post("/notion-webhook", include_in_schema=False)
async def notion_webhook_without_tenant() -> None:
    # Otherwise Starlette answers with a 307 slash redirect.
    raise InvalidRequestError(INVALID_URL_MESSAGE)


@router.post("/notion-webhook/{tenant_id:path}")
async def notion_webhook(
    tenant_id: str,
    request: Request,
    settings: SettingsDep,
    tenants: TenantStoreDep,
    webhooks: WebhookStoreDep,
    notion_client_factory: NotionClientFactoryDep,
) -> dict:
    """Receive a Notion webhook for one tenant and re-render the page when its status allows."""
    if not TENANT_ID_PATTERN.fullmatch(tenant_id):
        raise InvalidRequestError(INVALID_URL_MESSAGE)
    request.state.tenant_id = tenant_id

    tenant = await tenants.get(tenant_id)
    if tenant is None:
        raise TenantNotFoundError(tenant_id)

    # Verify the bytes as received; re-serialized JSON would not match the signature.
    body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)
    if not signature:
        raise InvalidRequestError(f"Missing {SIGNATURE_HEADER} header")
    if not verify_signature(body, signature, tenant.verification_secret):
        logger.bind(tenant_id=tenant_id).warning("Rejected webhook with invalid signature")
        raise SignatureMismatchError()

    if tenant.notion_mapping is None:
        return no_op("No notion mapping configured - ignoring webhook")

    try:
        payload = orjson.loads(body)
        if not isinstance(payload, dict):
            raise InvalidRequestError("Webhook payload must be a JSON object")
        event = NotionWebhookEvent.model_validate(payload)
    except (orjson.JSONDecodeError, ValidationError):
        raise InvalidRequestError("Invalid webhook payload")

    async with notion_client_factory(tenant.notion_token) as notion:
        return await handle_page_event(
            tenant_id=tenant_id,
            mapping=tenant.notion_mapping,
            event=event,
            payload=payload,
            notion=notion,
            webhooks=webhooks,
            settings=settings,
        )
