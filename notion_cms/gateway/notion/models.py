"""Typed Notion block payloads.

Blocks arrive as loosely-typed JSON. Every allow-listed kind is modelled as
its own pydantic class; anything else (unknown kinds, or known kinds whose
payload fails validation) becomes an `UnsupportedBlock`, which the renderer
never sees.
"""

from typing import Annotated, Any, Literal, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, TypeAdapter, ValidationError

# === RICH TEXT ===


class Annotations(BaseModel):
    model_config = ConfigDict(extra="ignore")

    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    underline: bool = False
    code: bool = False
    color: str = "default"


class Link(BaseModel):
    url: str


class TextObject(BaseModel):
    content: str = ""
    link: Link | None = None


class RichText(BaseModel):
    """One styled run of text. Only `type == "text"` runs carry renderable content."""

    model_config = ConfigDict(extra="ignore")

    type: str = "text"
    text: TextObject | None = None
    annotations: Annotations = Field(default_factory=Annotations)
    plain_text: str = ""
    href: str | None = None

    @property
    def content(self) -> str:
        if self.type != "text" or self.text is None:
            return ""
        return self.text.content


# === BLOCK PAYLOADS ===


class TextPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    rich_text: list[RichText] = Field(default_factory=list)


class CodePayload(TextPayload):
    language: str = ""
    caption: list[RichText] = Field(default_factory=list)


class FileRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str | None = None


class MediaPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = "external"
    external: FileRef | None = None
    file: FileRef | None = None
    caption: list[RichText] = Field(default_factory=list)

    @property
    def url(self) -> str | None:
        """Resolve the media URL; an external link wins over a hosted file."""
        if self.type == "external" and self.external is not None:
            return self.external.url or None
        if self.type == "file" and self.file is not None:
            return self.file.url or None
        return None


class EmptyPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")


# === BLOCK TYPES ===


class BlockBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    type: str
    has_children: bool = False

    @property
    def payload(self) -> BaseModel:
        return getattr(self, self.type)


class Heading1Block(BlockBase):
    type: Literal["heading_1"] = "heading_1"
    heading_1: TextPayload = Field(default_factory=TextPayload)


class Heading2Block(BlockBase):
    type: Literal["heading_2"] = "heading_2"
    heading_2: TextPayload = Field(default_factory=TextPayload)


class Heading3Block(BlockBase):
    type: Literal["heading_3"] = "heading_3"
    heading_3: TextPayload = Field(default_factory=TextPayload)


class ParagraphBlock(BlockBase):
    type: Literal["paragraph"] = "paragraph"
    paragraph: TextPayload = Field(default_factory=TextPayload)


class QuoteBlock(BlockBase):
    type: Literal["quote"] = "quote"
    quote: TextPayload = Field(default_factory=TextPayload)


class CodeBlock(BlockBase):
    type: Literal["code"] = "code"
    code: CodePayload = Field(default_factory=CodePayload)


class ImageBlock(BlockBase):
    type: Literal["image"] = "image"
    image: MediaPayload = Field(default_factory=MediaPayload)


class VideoBlock(BlockBase):
    type: Literal["video"] = "video"
    video: MediaPayload = Field(default_factory=MediaPayload)


class BulletedListItemBlock(BlockBase):
    type: Literal["bulleted_list_item"] = "bulleted_list_item"
    bulleted_list_item: TextPayload = Field(default_factory=TextPayload)


class NumberedListItemBlock(BlockBase):
    type: Literal["numbered_list_item"] = "numbered_list_item"
    numbered_list_item: TextPayload = Field(default_factory=TextPayload)


class DividerBlock(BlockBase):
    type: Literal["divider"] = "divider"
    divider: EmptyPayload = Field(default_factory=EmptyPayload)


class UnsupportedBlock(BaseModel):
    """Fallback for anything outside the allow-list. Dropped by the traversal."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    type: str = ""
    has_children: bool = False


HEADING_TYPES = ("heading_1", "heading_2", "heading_3")
LIST_ITEM_TYPES = ("bulleted_list_item", "numbered_list_item")
TEXT_BLOCK_TYPES = (*HEADING_TYPES, "paragraph", "quote", *LIST_ITEM_TYPES)
MEDIA_TYPES = ("image", "video")

_BLOCK_CLASSES: dict[str, type[BlockBase]] = {
    "heading_1": Heading1Block,
    "heading_2": Heading2Block,
    "heading_3": Heading3Block,
    "paragraph": ParagraphBlock,
    "quote": QuoteBlock,
    "code": CodeBlock,
    "image": ImageBlock,
    "video": VideoBlock,
    "bulleted_list_item": BulletedListItemBlock,
    "numbered_list_item": NumberedListItemBlock,
    "divider": DividerBlock,
}

ALLOWED_BLOCK_TYPES = frozenset(_BLOCK_CLASSES)

_UNSUPPORTED = "unsupported"


def _block_kind(value: Any) -> str:
    kind = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return kind if kind in ALLOWED_BLOCK_TYPES else _UNSUPPORTED


ContentBlock = Annotated[
    Union[
        Annotated[Heading1Block, Tag("heading_1")],
        Annotated[Heading2Block, Tag("heading_2")],
        Annotated[Heading3Block, Tag("heading_3")],
        Annotated[ParagraphBlock, Tag("paragraph")],
        Annotated[QuoteBlock, Tag("quote")],
        Annotated[CodeBlock, Tag("code")],
        Annotated[ImageBlock, Tag("image")],
        Annotated[VideoBlock, Tag("video")],
        Annotated[BulletedListItemBlock, Tag("bulleted_list_item")],
        Annotated[NumberedListItemBlock, Tag("numbered_list_item")],
        Annotated[DividerBlock, Tag("divider")],
        Annotated[UnsupportedBlock, Tag(_UNSUPPORTED)],
    ],
    Discriminator(_block_kind),
]

_block_adapter: TypeAdapter[ContentBlock] = TypeAdapter(ContentBlock)


def parse_block(raw: Any) -> ContentBlock:
    """Validate one block from the API, degrading to `UnsupportedBlock` on schema drift."""
    try:
        return _block_adapter.validate_python(raw)
    except ValidationError as e:
        block_id = str(raw.get("id", "")) if isinstance(raw, dict) else ""
        kind = str(raw.get("type", "")) if isinstance(raw, dict) else ""
        logger.warning(f"Dropping malformed {kind or 'untyped'} block {block_id or '<no id>'}: {e.error_count()} errors")
        return UnsupportedBlock(id=block_id, type=kind)


def is_supported(block: ContentBlock) -> bool:
    return not isinstance(block, UnsupportedBlock)
