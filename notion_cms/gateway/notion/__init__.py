from notion_cms.gateway.notion.api import NotionAPIError, NotionClient
from notion_cms.gateway.notion.fetcher import SectionsNotFoundError, fetch_children, find_sections
from notion_cms.gateway.notion.models import (
    ALLOWED_BLOCK_TYPES,
    LIST_ITEM_TYPES,
    ContentBlock,
    RichText,
    UnsupportedBlock,
    parse_block,
)

__all__ = [
    "ALLOWED_BLOCK_TYPES",
    "LIST_ITEM_TYPES",
    "ContentBlock",
    "NotionAPIError",
    "NotionClient",
    "RichText",
    "SectionsNotFoundError",
    "UnsupportedBlock",
    "fetch_children",
    "find_sections",
    "parse_block",
]
