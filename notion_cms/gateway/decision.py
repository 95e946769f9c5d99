"""Publish-state gating: should a status change re-render the page?

The `published` status is only ever written by this service, so it is never
accepted as a trigger. A page must have been seen before (a prior webhook
record exists) before it can be republished, and an existing page moved back
to draft is being taken down, not regenerated.
"""

from dataclasses import dataclass

from notion_cms.gateway.tenants import GatingPolicy, StatusMapping


@dataclass(frozen=True)
class Ignore:
    reason: str


@dataclass(frozen=True)
class Proceed:
    pass


Action = Ignore | Proceed

EMPTY_STATUS = "Status value is empty - ignoring webhook"
PUBLISHED_IS_SYSTEM_CONTROLLED = "Status is 'published' which is worker-controlled - ignoring webhook"
UNSEEN_PAGE = "Cannot set republish/published status on non-existent page - ignoring webhook"
DEMOTED_TO_DRAFT = "Existing page changed to draft status - ignoring webhook"


def _unrecognized(status_value: str) -> Ignore:
    return Ignore(f'Invalid status value "{status_value}" - ignoring webhook')


def decide(
    exists_already: bool,
    status_value: str | None,
    republish_checked: bool,
    mapping: StatusMapping,
    policy: GatingPolicy = GatingPolicy.STATUS,
) -> Action:
    """Evaluate the gating rules for `policy`; the first matching rule wins."""
    if not status_value:
        return Ignore(EMPTY_STATUS)
    if status_value == mapping.published:
        return Ignore(PUBLISHED_IS_SYSTEM_CONTROLLED)

    match policy:
        case GatingPolicy.STATUS:
            return _decide_by_status(exists_already, status_value, mapping)
        case GatingPolicy.CHECKBOX:
            return _decide_by_checkbox(exists_already, status_value, republish_checked, mapping)
        case _:
            raise ValueError(f"Invalid gating policy {policy}")


def _decide_by_status(exists_already: bool, status_value: str, mapping: StatusMapping) -> Action:
    if not exists_already and status_value in (mapping.republish, mapping.published):
        return Ignore(UNSEEN_PAGE)
    if exists_already and status_value == mapping.draft:
        return Ignore(DEMOTED_TO_DRAFT)
    if status_value not in mapping.accepted:
        return _unrecognized(status_value)
    return Proceed()


def _decide_by_checkbox(
    exists_already: bool, status_value: str, republish_checked: bool, mapping: StatusMapping
) -> Action:
    # The checkbox replaces the `republish` status value; only draft is a valid trigger status.
    if not exists_already and republish_checked:
        return Ignore(UNSEEN_PAGE)
    if exists_already and status_value == mapping.draft and not republish_checked:
        return Ignore(DEMOTED_TO_DRAFT)
    if status_value != mapping.draft:
        return _unrecognized(status_value)
    return Proceed()
