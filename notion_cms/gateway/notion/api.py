"""Thin async client for the Notion REST API."""

import asyncio
from typing import Any, Self

import httpx
from loguru import logger

from notion_cms.gateway.config import Settings

RATE_LIMIT_STATUS = 429
MAX_RETRIES = 3
DEFAULT_RETRY_AFTER_SECONDS = 1.0
MAX_RETRY_AFTER_SECONDS = 10.0


class NotionAPIError(Exception):
    """Raised for any failed call to Notion: transport errors and non-2xx responses alike."""

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class NotionClient:
    """Owns one `httpx.AsyncClient`; use as `async with NotionClient(...) as notion:`."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = "https://api.notion.com/v1",
        notion_version: str = "2022-06-28",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._notion_version = notion_version
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings, token: str) -> "NotionClient":
        return cls(
            token,
            base_url=settings.notion_api_base,
            notion_version=settings.notion_version,
            timeout=settings.notion_timeout_seconds,
        )

    async def __aenter__(self) -> Self:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Notion-Version": self._notion_version,
                "Content-Type": "application/json",
            },
        )
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def retrieve_page_property(self, page_id: str, property_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/pages/{page_id}/properties/{property_id}")

    async def list_block_children(
        self, block_id: str, start_cursor: str | None = None, page_size: int = 100
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"page_size": page_size}
        if start_cursor:
            params["start_cursor"] = start_cursor
        return await self._request("GET", f"/blocks/{block_id}/children", params=params)

    async def _request(self, method: str, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        if self._client is None:
            raise RuntimeError("NotionClient used outside of `async with`")

        for attempt in range(MAX_RETRIES):
            try:
                response = await self._client.request(method, path, params=params)
            except httpx.HTTPError as e:
                raise NotionAPIError(f"Request to Notion failed: {method} {path}: {e}") from e

            if response.status_code == RATE_LIMIT_STATUS and attempt < MAX_RETRIES - 1:
                wait_time = _retry_after(response)
                logger.warning(
                    f"Notion rate limited {method} {path}, attempt {attempt + 1}/{MAX_RETRIES}, "
                    f"retrying in {wait_time:.1f}s"
                )
                await asyncio.sleep(wait_time)
                continue

            if response.is_error:
                code, message = _error_details(response)
                raise NotionAPIError(
                    f"Notion returned HTTP {response.status_code} for {method} {path}: {message}",
                    status_code=response.status_code,
                    code=code,
                )
            try:
                body = response.json()
            except ValueError as e:
                raise NotionAPIError(f"Notion returned invalid JSON for {method} {path}") from e
            if not isinstance(body, dict):
                raise NotionAPIError(f"Notion returned a non-object body for {method} {path}")
            return body

        raise AssertionError("unreachable")


def _retry_after(response: httpx.Response) -> float:
    try:
        seconds = float(response.headers.get("retry-after", DEFAULT_RETRY_AFTER_SECONDS))
    except ValueError:
        seconds = DEFAULT_RETRY_AFTER_SECONDS
    return min(max(seconds, 0.0), MAX_RETRY_AFTER_SECONDS)


def _error_details(response: httpx.Response) -> tuple[str | None, str]:
    try:
        body = response.json()
    except ValueError:
        return None, response.text[:200]
    if not isinstance(body, dict):
        return None, str(body)[:200]
    return body.get("code"), body.get("message", "")
