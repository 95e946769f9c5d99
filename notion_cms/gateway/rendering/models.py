from pydantic import BaseModel, Field


class ProcessedBlock(BaseModel):
    """A rendered node of the block tree.

    `html` is this node's standalone fragment; list items wrap themselves in a
    single-item list so the fragment is valid on its own. `text_html` is the
    inline rich-text markup the document assembler uses when merging runs of
    list items.
    """

    block_id: str
    type: str
    content: str | None = None  # plain text, or the media URL for image/video
    children: list["ProcessedBlock"] | None = None
    html: str = ""
    text_html: str = Field(default="", exclude=True)
