"""Notion block tree to HTML rendering."""

from notion_cms.gateway.rendering.assembler import assemble_document
from notion_cms.gateway.rendering.models import ProcessedBlock
from notion_cms.gateway.rendering.renderer import render_block
from notion_cms.gateway.rendering.rich_text import extract_text, rich_text_to_html
from notion_cms.gateway.rendering.traversal import process_blocks

__all__ = [
    # Traversal
    "process_blocks",
    # Rendering
    "render_block",
    "rich_text_to_html",
    "extract_text",
    # Assembly
    "assemble_document",
    # Models
    "ProcessedBlock",
]
