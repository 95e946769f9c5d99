"""Per-block HTML rendering.

Dispatch is by block kind; only allow-listed kinds reach `render_block`.
"""

import re
from html import escape

from notion_cms.gateway.notion.models import (
    CodeBlock,
    ContentBlock,
    DividerBlock,
    ImageBlock,
    MediaPayload,
    VideoBlock,
)
from notion_cms.gateway.rendering.models import ProcessedBlock
from notion_cms.gateway.rendering.rich_text import extract_text, is_safe_url, rich_text_to_html

_TEXT_TAGS = {
    "heading_1": "h1",
    "heading_2": "h2",
    "heading_3": "h3",
    "paragraph": "p",
    "quote": "blockquote",
}

_LIST_TAGS = {
    "bulleted_list_item": "ul",
    "numbered_list_item": "ol",
}

_YOUTUBE_ID = re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/)([^&\n?#]+)")


def is_youtube_url(url: str) -> bool:
    return "youtube.com" in url or "youtu.be" in url


def youtube_embed_url(url: str) -> str:
    """Turn watch/short links into an embeddable URL; anything else passes through."""
    match = _YOUTUBE_ID.search(url)
    if match:
        return f"https://www.youtube.com/embed/{match.group(1)}"
    return url


def media_url(block: ContentBlock) -> str | None:
    if isinstance(block, (ImageBlock, VideoBlock)):
        payload: MediaPayload = block.payload  # type: ignore[assignment]
        return payload.url
    return None


def block_text(block: ContentBlock) -> str | None:
    """Plain-text content of a block: text for text kinds, the URL for media, None for dividers."""
    match block:
        case ImageBlock() | VideoBlock():
            return media_url(block)
        case DividerBlock():
            return None
        case CodeBlock():
            return extract_text(block.code.rich_text)
        case _:
            return extract_text(getattr(block.payload, "rich_text", None))


def inline_html(block: ContentBlock) -> str:
    if block.type not in _TEXT_TAGS and block.type not in _LIST_TAGS:
        return ""
    return rich_text_to_html(block.payload.rich_text)  # type: ignore[attr-defined]


def render_block(block: ContentBlock, children: list[ProcessedBlock] | None = None) -> str:
    kind = block.type
    if kind in _TEXT_TAGS:
        tag = _TEXT_TAGS[kind]
        return f"<{tag}>{inline_html(block)}</{tag}>"

    if kind in _LIST_TAGS:
        tag = _LIST_TAGS[kind]
        children_html = "".join(child.html for child in children or [])
        return f"<{tag}><li>{inline_html(block)}{children_html}</li></{tag}>"

    match block:
        case CodeBlock():
            language = escape(block.code.language)
            code = escape(extract_text(block.code.rich_text), quote=False)
            return f'<pre><code class="{language}">{code}</code></pre>'
        case ImageBlock():
            return _render_image(block)
        case VideoBlock():
            return _render_video(block)
        case DividerBlock():
            return "<hr>"
        case _:
            return ""


def _render_image(block: ImageBlock) -> str:
    url = block.image.url
    if not is_safe_url(url):
        return ""
    caption = extract_text(block.image.caption)
    if caption:
        return f'<img src="{escape(url)}" alt="{escape(caption)}" />'
    return f'<img src="{escape(url)}" />'


def _render_video(block: VideoBlock) -> str:
    url = block.video.url
    if not is_safe_url(url):
        return ""
    if is_youtube_url(url):
        return f'<iframe src="{escape(youtube_embed_url(url))}" frameborder="0" allowfullscreen></iframe>'
    return f'<video src="{escape(url)}" controls></video>'
