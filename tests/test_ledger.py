# tests/test_ledger.py
import logging

import pytest

from ledger_model import ItemKind, InvalidRow, InvalidInput, PersistenceFailure, CURRENCY_FMT, EDIT_MARKER
from ledger import LedgerStore, next_fabrication_id

FAB, APPAREL = ItemKind.FABRICATION, ItemKind.APPAREL

def fab(description="Bracket", dims="12 x 4 in", price=250.0):
    return {"description": description, "dimensions": dims, "totalPrice": price}

def tee(description="Crew tee", qty=24, price=312.0):
    return {"description": description, "quantity": qty, "totalPrice": price}

def cell(ws, row, col):
    return ws.read_cell(ws.project_sheet, row, col)

def test_first_fabrication_id_is_f01(ws):
    assert next_fabrication_id(ws) == "F01"

def test_tenth_id_is_not_truncated(ws):
    store = LedgerStore(ws)
    for i in range(9):
        store.append(FAB, fab(f"Part {i}"))
    assert cell(ws, 9, 2) == "F09"
    assert next_fabrication_id(ws) == "F10"
    row = store.append(FAB, fab("Part 10"))
    assert cell(ws, row, 2) == "F10"

def test_id_grows_past_two_digits(ws):
    ws.ensure_table(ws.project_sheet)
    ws.write_row(ws.project_sheet, 1, ["", "F99"])
    assert next_fabrication_id(ws) == "F100"

def test_non_conforming_ids_are_ignored(ws):
    ws.ensure_table(ws.project_sheet)
    for i, v in enumerate(["FX1", "G05", 12, "F7a", None, "f3"], start=1):
        ws.write_row(ws.project_sheet, i, ["", v])
    assert next_fabrication_id(ws) == "F01"
    ws.write_row(ws.project_sheet, 7, ["", " F04 "])
    assert next_fabrication_id(ws) == "F05"

def test_ids_are_gap_tolerant(ws):
    ws.ensure_table(ws.project_sheet)
    ws.write_row(ws.project_sheet, 1, ["", "F02"])
    ws.write_row(ws.project_sheet, 2, ["", "F07"])
    assert next_fabrication_id(ws) == "F08"

def test_append_fabrication_layout(ws):
    row = LedgerStore(ws).append(FAB, fab())
    assert row == 1
    assert cell(ws, 1, 1) in (None, "")
    assert cell(ws, 1, 2) == "F01"
    assert cell(ws, 1, 3) == "Bracket"
    assert cell(ws, 1, 4) == "12 x 4 in"
    assert cell(ws, 1, 5) in (None, "")
    assert cell(ws, 1, 6) == 250.0
    assert cell(ws, 1, 7) == EDIT_MARKER
    assert ws.sheet(ws.project_sheet).cell(row=1, column=6).number_format == CURRENCY_FMT

def test_append_generic_layout(ws):
    row = LedgerStore(ws).append(APPAREL, tee())
    assert row == 1
    assert cell(ws, 1, 1) == "Crew tee"
    assert cell(ws, 1, 2) == 24
    assert cell(ws, 1, 4) == 312.0
    assert cell(ws, 1, 5) == EDIT_MARKER
    assert ws.sheet(ws.project_sheet).cell(row=1, column=4).number_format == CURRENCY_FMT

def test_append_goes_after_last_populated_row(ws):
    store = LedgerStore(ws)
    assert store.append(APPAREL, tee()) == 1
    assert store.append(FAB, fab()) == 2
    assert cell(ws, 2, 2) == "F01"
    assert store.append(APPAREL, tee("Hoodie", 10, 450)) == 3

def test_nested_form_data_and_dimension_dict(ws):
    sub = {"formData": {"description": "Gate", "dimensions": {"width": 48, "height": 72.5, "unit": "in"},
                        "totalPrice": "$1,200.50"}}
    row = LedgerStore(ws).append(FAB, sub)
    assert cell(ws, row, 3) == "Gate"
    assert cell(ws, row, 4) == "48 x 72.5 in"
    assert cell(ws, row, 6) == 1200.5

@pytest.mark.parametrize("sub", [
    {"dimensions": "1 x 1", "totalPrice": 10},
    {"description": "   ", "totalPrice": 10},
    {"description": "Bracket", "totalPrice": "n/a"},
    {"description": "Bracket"},
])
def test_append_rejects_bad_fields_without_writing(ws, sub):
    with pytest.raises(InvalidInput):
        LedgerStore(ws).append(FAB, sub)
    assert not ws.has_table(ws.project_sheet) or ws.read_table(ws.project_sheet) == []

def test_apparel_quantity_must_be_numeric(ws):
    with pytest.raises(InvalidInput):
        LedgerStore(ws).append(APPAREL, tee(qty="lots"))

def test_update_keeps_display_id(ws):
    store = LedgerStore(ws)
    store.append(FAB, fab("A"))
    store.append(FAB, fab("B"))
    store.append(APPAREL, tee())
    store.append(APPAREL, tee())
    assert store.append(FAB, fab("C")) == 5
    assert cell(ws, 5, 2) == "F03"

    assert store.update_at(5, FAB, fab("C revised", "10 x 10 in", 999)) == 5
    assert cell(ws, 5, 2) == "F03"
    assert cell(ws, 5, 3) == "C revised"
    assert cell(ws, 5, 6) == 999
    assert next_fabrication_id(ws) == "F04"
    assert ws.last_row(ws.project_sheet) == 5

def test_update_generic_row_in_place(ws):
    store = LedgerStore(ws)
    store.append(APPAREL, tee())
    store.update_at(1, APPAREL, tee("Crew tee", 30, 390))
    rec = store.read_row(1, APPAREL)
    assert (rec.description, rec.quantity, rec.total_price) == ("Crew tee", 30, 390)
    assert ws.last_row(ws.project_sheet) == 1

def test_update_with_empty_id_recovers_with_warning(ws, caplog):
    store = LedgerStore(ws)
    store.append(FAB, fab("A"))
    ws.write_row(ws.project_sheet, 2, ["", "", "Orphan", "", "", 5.0, "Edit"])
    with caplog.at_level(logging.WARNING, logger="ledger"):
        store.update_at(2, FAB, fab("Orphan fixed"))
    assert cell(ws, 2, 2) == "F02"
    assert any("no display ID" in r.message for r in caplog.records)

@pytest.mark.parametrize("row", [0, -1, 1001, "abc", None, 2.5, True])
def test_update_rejects_rows_out_of_bounds(ws, row):
    store = LedgerStore(ws)
    store.append(FAB, fab())
    before = ws.read_table(ws.project_sheet)
    with pytest.raises(InvalidRow):
        store.update_at(row, FAB, fab("Changed"))
    assert ws.read_table(ws.project_sheet) == before

def test_update_with_bad_fields_writes_nothing(ws):
    store = LedgerStore(ws)
    store.append(FAB, fab())
    before = ws.read_table(ws.project_sheet)
    with pytest.raises(InvalidInput):
        store.update_at(1, FAB, {"description": "", "totalPrice": 1})
    assert ws.read_table(ws.project_sheet) == before

def test_update_replaces_log_note(ws):
    store = LedgerStore(ws)
    row = store.append(FAB, fab())
    store.attach_log(row, FAB, "FAB_1_1")
    assert ws.cell_note(ws.project_sheet, row, 7) == "LogID: FAB_1_1"
    store.update_at(row, FAB, fab("Again"))
    assert ws.cell_note(ws.project_sheet, row, 7) is None
    store.attach_log(row, FAB, "FAB_2_1")
    assert ws.cell_note(ws.project_sheet, row, 7) == "LogID: FAB_2_1"

def failing_save(*a, **kw):
    raise PersistenceFailure("disk full")

def test_failed_save_on_append_leaves_no_row(ws, monkeypatch):
    store = LedgerStore(ws)
    monkeypatch.setattr(ws, "commit", failing_save)
    with pytest.raises(PersistenceFailure):
        store.append(FAB, fab("A"))
    assert ws.read_table(ws.project_sheet) == []
    assert next_fabrication_id(ws) == "F01"

    monkeypatch.undo()
    assert store.append(FAB, fab("B")) == 1
    assert cell(ws, 1, 2) == "F01"

def test_failed_save_on_update_restores_previous_row(ws, monkeypatch):
    store = LedgerStore(ws)
    store.append(FAB, fab("A", price=100))
    store.attach_log(1, FAB, "FAB_1_1")
    before = ws.read_table(ws.project_sheet)

    monkeypatch.setattr(ws, "commit", failing_save)
    with pytest.raises(PersistenceFailure):
        store.update_at(1, FAB, fab("A changed", price=900))
    assert ws.read_table(ws.project_sheet) == before
    assert ws.cell_note(ws.project_sheet, 1, 7) == "LogID: FAB_1_1"
    assert ws.sheet(ws.project_sheet).cell(row=1, column=6).number_format == CURRENCY_FMT

def test_failed_save_on_attach_log_restores_note(ws, monkeypatch):
    store = LedgerStore(ws)
    store.append(APPAREL, tee())
    store.attach_log(1, APPAREL, "APP_1_1")
    monkeypatch.setattr(ws, "commit", failing_save)
    with pytest.raises(PersistenceFailure):
        store.attach_log(1, APPAREL, "APP_2_1")
    assert ws.cell_note(ws.project_sheet, 1, 5) == "LogID: APP_1_1"

def test_edit_cannot_change_item_kind(ws):
    store = LedgerStore(ws)
    store.append(FAB, fab())
    store.append(APPAREL, tee())
    before = ws.read_table(ws.project_sheet)
    with pytest.raises(InvalidInput):
        store.update_at(1, APPAREL, tee("Tee", 3, 30))
    with pytest.raises(InvalidInput):
        store.update_at(2, FAB, fab("Plate"))
    assert ws.read_table(ws.project_sheet) == before
    assert store.layout_at(1) == "fabrication"
    assert store.layout_at(2) == "generic"
    assert store.layout_at(3) is None
