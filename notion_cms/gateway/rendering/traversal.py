"""Depth-capped fetch-and-render of a block sequence.

Children are fetched lazily, level by level: every list item on the current
level that reports children (and sits above the depth cap) is expanded, and
sibling subtrees are fetched concurrently. Rendering then runs bottom-up over
the discovered nodes in reverse discovery order, so no step recurses.
"""

import asyncio
from dataclasses import dataclass

from loguru import logger

from notion_cms.gateway.notion.api import NotionAPIError, NotionClient
from notion_cms.gateway.notion.fetcher import DEFAULT_PAGE_SIZE, fetch_children
from notion_cms.gateway.notion.models import LIST_ITEM_TYPES, ContentBlock, is_supported
from notion_cms.gateway.rendering.models import ProcessedBlock
from notion_cms.gateway.rendering.renderer import block_text, inline_html, render_block

DEFAULT_MAX_DEPTH = 4


@dataclass
class _Node:
    block: ContentBlock
    depth: int
    children: list["_Node"] | None = None
    processed: ProcessedBlock | None = None


def _expandable(node: _Node, max_depth: int) -> bool:
    return node.block.type in LIST_ITEM_TYPES and node.block.has_children and node.depth < max_depth


async def _fetch_node_children(client: NotionClient, block_id: str, page_size: int) -> list[ContentBlock] | None:
    try:
        return await fetch_children(client, block_id, page_size=page_size)
    except NotionAPIError as e:
        logger.warning(f"Error fetching children for block {block_id}, rendering it without children: {e}")
        return None


async def process_blocks(
    client: NotionClient,
    blocks: list[ContentBlock],
    max_depth: int = DEFAULT_MAX_DEPTH,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> list[ProcessedBlock]:
    """Render `blocks` (and list-item descendants up to `max_depth` levels) to ProcessedBlocks.

    Unsupported kinds are dropped from the tree entirely. A failed child fetch
    only affects its own node, which renders as childless.
    """
    roots = [_Node(block, 0) for block in blocks if is_supported(block)]
    discovered = list(roots)

    frontier = [node for node in roots if _expandable(node, max_depth)]
    while frontier:
        results = await asyncio.gather(
            *(_fetch_node_children(client, node.block.id, page_size) for node in frontier)
        )
        next_frontier: list[_Node] = []
        for node, child_blocks in zip(frontier, results):
            if child_blocks is None:
                continue
            node.children = [_Node(child, node.depth + 1) for child in child_blocks if is_supported(child)]
            discovered.extend(node.children)
            next_frontier.extend(child for child in node.children if _expandable(child, max_depth))
        frontier = next_frontier

    for node in reversed(discovered):
        children = [child.processed for child in node.children] if node.children is not None else None
        node.processed = ProcessedBlock(
            block_id=node.block.id,
            type=node.block.type,
            content=block_text(node.block),
            children=children,
            html=render_block(node.block, children),
            text_html=inline_html(node.block),
        )

    return [node.processed for node in roots]
