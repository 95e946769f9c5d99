"""Per-tenant configuration as stored in the key-value store.

Records are written by the dashboard as camelCase JSON, e.g.::

    {
      "verificationSecret": "...",
      "notionToken": "secret_...",
      "notionMapping": {
        "statusProperty": {"id": "XGe%40", "draft": "Draft", "published": "Published", "republish": "Republish"},
        "parentBlocks": {"schemas": "Schemas", "blogCopy": "Blog Copy"}
      }
    }
"""

from enum import StrEnum, auto

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class GatingPolicy(StrEnum):
    STATUS = auto()  # republish via a dedicated status value
    CHECKBOX = auto()  # republish via a separate checkbox property


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class StatusMapping(_CamelModel):
    id: str
    draft: str
    published: str
    republish: str

    @property
    def accepted(self) -> frozenset[str]:
        return frozenset({self.draft, self.published, self.republish})


class ParentBlocks(_CamelModel):
    schemas: str
    blog_copy: str


class NotionMapping(_CamelModel):
    status_property: StatusMapping
    parent_blocks: ParentBlocks
    policy: GatingPolicy = GatingPolicy.STATUS
    republish_property_id: str | None = None

    @model_validator(mode="after")
    def _checkbox_needs_property(self) -> "NotionMapping":
        if self.policy == GatingPolicy.CHECKBOX and not self.republish_property_id:
            raise ValueError("republishPropertyId is required when policy is checkbox")
        return self

    def watched_property_ids(self) -> set[str]:
        ids = {self.status_property.id}
        if self.policy == GatingPolicy.CHECKBOX and self.republish_property_id:
            ids.add(self.republish_property_id)
        return ids


class TenantConfig(_CamelModel):
    verification_secret: str
    notion_token: str
    webhook_url: str | None = None
    notion_mapping: NotionMapping | None = None
    html_mapping: dict | None = None
