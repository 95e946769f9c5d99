"""Block tree retrieval: exhaustive child pagination and named-section lookup."""

from loguru import logger

from notion_cms.gateway.notion.api import NotionAPIError, NotionClient
from notion_cms.gateway.notion.models import ContentBlock, Heading1Block, parse_block

DEFAULT_PAGE_SIZE = 100


class SectionsNotFoundError(Exception):
    """Raised when one or more named top-level sections are absent from a page."""

    def __init__(self, missing: list[str]):
        super().__init__(f"Missing required sections: {', '.join(missing)}")
        self.missing = missing


async def fetch_children(
    client: NotionClient, block_id: str, page_size: int = DEFAULT_PAGE_SIZE
) -> list[ContentBlock]:
    """Fetch every direct child of `block_id`, following `next_cursor` until it is exhausted."""
    blocks: list[ContentBlock] = []
    cursor: str | None = None
    pages = 0
    while True:
        response = await client.list_block_children(block_id, start_cursor=cursor, page_size=page_size)
        results = response.get("results", [])
        if not isinstance(results, list):
            raise NotionAPIError(f"Malformed children listing for block {block_id}: results is not a list")
        blocks.extend(parse_block(raw) for raw in results)
        pages += 1
        cursor = response.get("next_cursor")
        if not cursor or response.get("has_more") is False:
            break
    logger.debug(f"Fetched {len(blocks)} children of {block_id} in {pages} page(s)")
    return blocks


def heading_text(block: Heading1Block) -> str | None:
    """Literal text of a heading's first rich-text run."""
    rich_text = block.heading_1.rich_text
    if not rich_text:
        return None
    return rich_text[0].content


async def find_sections(
    client: NotionClient,
    page_id: str,
    headings: list[str],
    page_size: int = DEFAULT_PAGE_SIZE,
) -> dict[str, str]:
    """Map each heading text to the id of the top-level `heading_1` block carrying it.

    Only the page's direct children are scanned and matching is exact. The first
    matching heading wins.

    Raises:
        SectionsNotFoundError: listing every heading with no matching block
    """
    wanted = set(headings)
    found: dict[str, str] = {}
    for block in await fetch_children(client, page_id, page_size=page_size):
        if not isinstance(block, Heading1Block):
            continue
        text = heading_text(block)
        if text in wanted and text not in found:
            found[text] = block.id

    missing = [heading for heading in headings if heading not in found]
    if missing:
        raise SectionsNotFoundError(missing)
    return found
