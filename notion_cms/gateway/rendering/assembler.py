"""Assemble processed blocks into one HTML document, merging list runs."""

from notion_cms.gateway.rendering.models import ProcessedBlock

LIST_CONTAINERS = {
    "bulleted_list_item": "ul",
    "numbered_list_item": "ol",
}


def assemble_document(blocks: list[ProcessedBlock], separator: str = "\n") -> str:
    """Emit blocks in order, collapsing each run of same-kind list items into one list.

    A run ends at the first block of any other kind, so
    [bullet, bullet, paragraph, bullet] yields two separate `<ul>` elements.
    """
    parts: list[str] = []
    i = 0
    while i < len(blocks):
        kind = blocks[i].type
        if kind not in LIST_CONTAINERS:
            parts.append(blocks[i].html)
            i += 1
            continue

        run_end = i
        while run_end < len(blocks) and blocks[run_end].type == kind:
            run_end += 1
        parts.append(_render_list(blocks[i:run_end], LIST_CONTAINERS[kind]))
        i = run_end

    return separator.join(parts)


def _render_list(items: list[ProcessedBlock], tag: str) -> str:
    rendered = []
    for item in items:
        nested = assemble_document(item.children, separator="") if item.children else ""
        rendered.append(f"<li>{item.text_html}{nested}</li>")
    return f"<{tag}>{''.join(rendered)}</{tag}>"
