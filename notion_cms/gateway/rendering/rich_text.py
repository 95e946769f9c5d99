"""Rich-text runs to plain text and inline HTML."""

from html import escape
from urllib.parse import urlparse

from notion_cms.gateway.notion.models import RichText

SAFE_URL_SCHEMES = frozenset({"http", "https", "mailto"})

# Innermost first; the link wraps everything.
_STYLE_TAGS = (
    ("code", "code"),
    ("bold", "strong"),
    ("italic", "em"),
    ("strikethrough", "s"),
    ("underline", "u"),
)


def is_safe_url(url: str | None) -> bool:
    """Allow relative URLs and the http(s)/mailto schemes only."""
    if not url or not url.strip():
        return False
    scheme = urlparse(url.strip()).scheme.lower()
    return scheme == "" or scheme in SAFE_URL_SCHEMES


def extract_text(rich_text: list[RichText] | None) -> str:
    if not rich_text:
        return ""
    return "".join(run.content for run in rich_text)


def run_to_html(run: RichText) -> str:
    if run.type != "text" or run.text is None:
        return ""

    html = escape(run.text.content, quote=False)
    for flag, tag in _STYLE_TAGS:
        if getattr(run.annotations, flag):
            html = f"<{tag}>{html}</{tag}>"

    href = run.href or (run.text.link.url if run.text.link else None)
    if href and is_safe_url(href):
        html = f'<a href="{escape(href.strip())}">{html}</a>'
    return html


def rich_text_to_html(rich_text: list[RichText] | None) -> str:
    if not rich_text:
        return ""
    return "".join(run_to_html(run) for run in rich_text)
