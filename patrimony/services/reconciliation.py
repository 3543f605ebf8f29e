from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from patrimony.config.loader import ItemDefaults
from patrimony.importing.rows import parse_rows
from patrimony.models.item import PatrimonyItem
from patrimony.models.record import NormalizedRecord
from patrimony.models.report import ItemDifference, ReconciliationReport
from patrimony.sources import read_grid
from patrimony.storage.base import DuplicateAssetTagError

"""Two-collection reconciliation keyed by asset tag.

Items are matched only by exact asset tag equality; nothing tries to pair an
item that exists only in A with one that exists only in B. Matched pairs are
compared field by field in a fixed order.
"""

__all__ = [
    "COMPARED_FIELDS",
    "DUPLICATE_POLICIES",
    "compare_items",
    "compare_files",
    "records_to_items",
    "field_differences",
]

logger = logging.getLogger(__name__)

# (label, attribute) in report order
COMPARED_FIELDS: tuple[tuple[str, str], ...] = (
    ("Name", "name"),
    ("Date", "acquisition_date"),
    ("Location", "location"),
    ("Responsible", "responsible"),
)

DUPLICATE_POLICIES = ("last", "first", "reject")


def _tag_map(items: Sequence[PatrimonyItem], policy: str) -> dict[int, PatrimonyItem]:
    mapping: dict[int, PatrimonyItem] = {}
    dupes: list[int] = []
    for item in items:
        if item.asset_tag in mapping:
            dupes.append(item.asset_tag)
            if policy == "first":
                continue
        mapping[item.asset_tag] = item
    if dupes:
        if policy == "reject":
            raise DuplicateAssetTagError(dupes)
        logger.warning(
            "duplicate asset tags resolved by %s-wins: %s",
            policy, ", ".join(str(t) for t in sorted(set(dupes))),
        )
    return mapping


def field_differences(item_a: PatrimonyItem, item_b: PatrimonyItem) -> list[str]:
    diffs: list[str] = []
    for label, attr in COMPARED_FIELDS:
        value_a = getattr(item_a, attr)
        value_b = getattr(item_b, attr)
        if value_a != value_b:
            diffs.append(f'{label}: "{value_a}" vs "{value_b}"')
    return diffs


def compare_items(
    items_a: Sequence[PatrimonyItem],
    items_b: Sequence[PatrimonyItem],
    *,
    duplicates: str = "last",
) -> ReconciliationReport:
    """Classify every asset tag of A and B into the four report buckets.

    Parameters
    ----------
    items_a, items_b: collections to compare; bucket order follows input order
    duplicates: how a tag repeated within one side is resolved when building
        the lookup maps: "last" (last occurrence wins), "first", or "reject"
        (raise DuplicateAssetTagError)
    """
    if duplicates not in DUPLICATE_POLICIES:
        raise ValueError(f"unknown duplicate policy: {duplicates}")

    map_a = _tag_map(items_a, duplicates)
    map_b = _tag_map(items_b, duplicates)

    # one representative per tag, in order of first appearance
    tags_a = list(dict.fromkeys(item.asset_tag for item in items_a))
    tags_b = list(dict.fromkeys(item.asset_tag for item in items_b))

    only_in_a = [map_a[tag] for tag in tags_a if tag not in map_b]
    only_in_b = [map_b[tag] for tag in tags_b if tag not in map_a]

    differing: list[ItemDifference] = []
    identical: list[PatrimonyItem] = []
    for tag in tags_a:
        item_b = map_b.get(tag)
        if item_b is None:
            continue
        item_a = map_a[tag]
        diffs = field_differences(item_a, item_b)
        if diffs:
            differing.append(ItemDifference(item_a=item_a, item_b=item_b, field_differences=diffs))
        else:
            identical.append(item_a)

    return ReconciliationReport(
        only_in_a=only_in_a,
        only_in_b=only_in_b,
        differing=differing,
        identical=identical,
    )


def records_to_items(
    records: Sequence[NormalizedRecord],
    defaults: ItemDefaults,
    *,
    location: str | None = None,
    description: str = "",
) -> list[PatrimonyItem]:
    """Turn parsed records into unsaved items, filling the other fields from defaults."""
    return [
        PatrimonyItem(
            id="",
            asset_tag=r.asset_tag,
            name=r.item_name,
            category=defaults.category,
            location=location if location is not None else defaults.location,
            acquisition_date=r.acquisition_date,
            value=0.0,
            status=defaults.status,
            description=description,
            responsible=defaults.responsible,
        )
        for r in records
    ]


def load_items_from_file(
    path: Path,
    defaults: ItemDefaults,
    *,
    has_header: bool | None = None,
    delimiter: str | None = None,
) -> list[PatrimonyItem]:
    grid = read_grid(path, delimiter=delimiter)
    records = parse_rows(grid, has_header=has_header)
    logger.info(f"{path.name}: {len(records)} items found")
    return records_to_items(records, defaults, description=f"Imported from file: {path.name}")


def compare_files(
    path_a: Path,
    path_b: Path,
    defaults: ItemDefaults,
    *,
    has_header: bool | None = None,
    delimiter: str | None = None,
    duplicates: str = "last",
) -> ReconciliationReport:
    """Parse two import files and reconcile them.

    Raises:
        SourceError: either file is empty, unreadable or of an unsupported type
    """
    items_a = load_items_from_file(path_a, defaults, has_header=has_header, delimiter=delimiter)
    items_b = load_items_from_file(path_b, defaults, has_header=has_header, delimiter=delimiter)
    return compare_items(items_a, items_b, duplicates=duplicates)
