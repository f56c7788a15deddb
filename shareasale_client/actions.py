"""Action catalog and case-insensitive resolution.

The service's ``action`` parameter is case-sensitive, so resolution always
returns the catalog's own casing regardless of how the caller spelled it.
Catalogs are checked in CATALOG_ORDER and must stay disjoint.
"""

from __future__ import annotations

from shareasale_client.errors import UnknownActionError
from shareasale_client.models import ActionCategory, ActionDescriptor


TRANSACTION_ACTIONS: tuple[str, ...] = (
    "void",
    "edit",
    "find",
    "new",
    "reference",
)

REPORT_ACTIONS: tuple[str, ...] = (
    "transactiondetail",
    "weeklyprogress",
    "affiliatetimespan",
    "activitysummary",
    "datafeeddownloads",
    "todayataglance",
    "staterevenue",
    "report-affiliate",
    "transactioneditreport",
    "transactionvoidreport",
    "apitokencount",
    "ledger",
    "affiliateTags",
    "balance",
)

MAINTENANCE_ACTIONS: tuple[str, ...] = (
    "bannerList",
    "bannerUpload",
    "bannerEdit",
    "dealList",
    "dealUpload",
    "dealEdit",
    "approveAffiliate",
    "declineAffiliate",
    "MassTagAffiliates",
)

CATALOG_ORDER: tuple[tuple[ActionCategory, tuple[str, ...]], ...] = (
    (ActionCategory.TRANSACTION, TRANSACTION_ACTIONS),
    (ActionCategory.REPORT, REPORT_ACTIONS),
    (ActionCategory.MAINTENANCE, MAINTENANCE_ACTIONS),
)


def _describe(name: str, category: ActionCategory) -> ActionDescriptor:
    record_tag = "" if category == ActionCategory.TRANSACTION else name
    return ActionDescriptor(name=name, category=category, record_tag=record_tag)


def _build_index() -> dict[str, ActionDescriptor]:
    index: dict[str, ActionDescriptor] = {}
    for category, names in CATALOG_ORDER:
        for name in names:
            # setdefault keeps the first catalog's entry on a collision
            index.setdefault(name.lower(), _describe(name, category))
    return index


_INDEX = _build_index()


def resolve_action(name: str) -> ActionDescriptor:
    """Resolve *name* (any casing) to its catalog descriptor.

    Raises:
        UnknownActionError: If no catalog contains the name.
    """
    descriptor = _INDEX.get(name.lower())
    if descriptor is None:
        raise UnknownActionError(name)
    return descriptor


def is_known_action(name: str) -> bool:
    return name.lower() in _INDEX


def all_actions() -> list[ActionDescriptor]:
    """Every descriptor, in catalog order."""
    return [_describe(name, category) for category, names in CATALOG_ORDER for name in names]
