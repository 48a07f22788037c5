"""
Unit tests for pharmacy search, stock levels and stock deduction.
"""

from clinicshift.schemas.mission import MedicationEntry, PharmacyItem, StaffingColor
from clinicshift.services.pharmacy import (
    compute_stock_level,
    deduct_medication_stock,
    search_pharmacy_items,
)


def item(id: str, name: str, stock: int = 10, initial: int = 10) -> PharmacyItem:
    return PharmacyItem(id=id, name=name, category="Analgesics", form="Tablets",
                        stock_count=stock, initial_stock=initial)


# ── Tests: search ────────────────────────────────────────────────────

def test_search_prefix_matches_first():
    items = [item("1", "Co-Paracetamol"), item("2", "Paracetamol"), item("3", "Ibuprofen")]
    names = [i.name for i in search_pharmacy_items(items, "para")]
    assert names == ["Paracetamol", "Co-Paracetamol"]


def test_search_empty_query_returns_nothing():
    assert search_pharmacy_items([item("1", "Aspirin")], "   ") == []


def test_search_limit():
    items = [item(str(n), f"Vitamin {n:02d}") for n in range(60)]
    assert len(search_pharmacy_items(items, "vit")) == 50
    assert len(search_pharmacy_items(items, "vit", limit=5)) == 5


# ── Tests: stock level ───────────────────────────────────────────────

def test_stock_level_bands():
    assert compute_stock_level(item("1", "A", stock=8, initial=10)).color == StaffingColor.green
    assert compute_stock_level(item("1", "A", stock=3, initial=10)).color == StaffingColor.yellow
    assert compute_stock_level(item("1", "A", stock=2, initial=10)).color == StaffingColor.red


def test_stock_level_caps_at_100_and_handles_zero_initial():
    assert compute_stock_level(item("1", "A", stock=30, initial=10)).percentage == 100
    level = compute_stock_level(item("1", "A", stock=5, initial=0))
    assert level.percentage == 0
    assert level.color == StaffingColor.red


# ── Tests: deduction ─────────────────────────────────────────────────

def test_deduct_linked_medications():
    items = [item("a", "Amoxicillin", stock=5), item("b", "Ibuprofen", stock=0)]
    meds = [
        MedicationEntry(name="Amoxicillin", pharmacy_item_id="a"),
        MedicationEntry(name="Ibuprofen", pharmacy_item_id="b"),
        MedicationEntry(name="Herbal tea"),
        MedicationEntry(name="Amoxicillin", pharmacy_item_id="a", deducted=True),
        MedicationEntry(name="Mystery", pharmacy_item_id="zzz"),
    ]

    new_items, new_meds = deduct_medication_stock(items, meds)

    assert [i.stock_count for i in new_items] == [4, 0]
    assert [m.deducted for m in new_meds] == [True, True, False, True, False]
    # inputs untouched
    assert items[0].stock_count == 5
    assert meds[0].deducted is False
