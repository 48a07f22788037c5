"""
pharmacy stocktake helpers

Search for the medication autocomplete, the stock level bar, and the
stock deduction that happens when a clinician links a prescribed
medication to an inventory item.
"""

from __future__ import annotations

from typing import Iterable

from clinicshift.schemas.mission import (
    MedicationEntry,
    PharmacyItem,
    StaffingColor,
    StockLevel,
    utcnow,
)


SEARCH_LIMIT = 50


def search_pharmacy_items(
    items: Iterable[PharmacyItem],
    query: str,
    limit: int = SEARCH_LIMIT,
) -> list[PharmacyItem]:
    """
    Case-insensitive substring search.

    Names starting with the query come first, then everything else,
    each group alphabetical. Empty query returns nothing.
    """
    needle = query.strip().lower()
    if not needle:
        return []

    matches = [i for i in items if needle in i.name.lower()]
    matches.sort(key=lambda i: (not i.name.lower().startswith(needle), i.name.lower()))
    return matches[:limit]


def compute_stock_level(item: PharmacyItem) -> StockLevel:
    if item.initial_stock <= 0:
        percentage = 0
    else:
        percentage = min(100, round(item.stock_count / item.initial_stock * 100))

    if percentage > 50:
        color = StaffingColor.green
    elif percentage > 20:
        color = StaffingColor.yellow
    else:
        color = StaffingColor.red

    return StockLevel(percentage=percentage, color=color)


def deduct_medication_stock(
    items: list[PharmacyItem],
    medications: list[MedicationEntry],
) -> tuple[list[PharmacyItem], list[MedicationEntry]]:
    """
    Takes one unit off the shelf for every linked, not yet deducted medication.

    Stock never goes below zero. A medication pointing at an unknown item
    is left alone (and stays deducted=False).
    Returns fresh lists, the inputs are not touched.
    """
    by_id = {item.id: item for item in items}
    out_meds: list[MedicationEntry] = []

    for med in medications:
        item = by_id.get(med.pharmacy_item_id) if med.pharmacy_item_id else None
        if item is None or med.deducted:
            out_meds.append(med)
            continue

        by_id[item.id] = item.model_copy(
            update={"stock_count": max(0, item.stock_count - 1), "updated_at": utcnow()}
        )
        out_meds.append(med.model_copy(update={"deducted": True}))

    return [by_id[item.id] for item in items], out_meds
