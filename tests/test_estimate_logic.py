# tests/test_estimate_logic.py
import pytest

from ledger_model import ItemKind, format_dimensions
from estimate_logic import (
    clean_material_lines, clean_labor_lines, fabrication_total, apparel_total,
    build_fabrication_submission, build_apparel_submission,
)
from submission import submit_item, fetch_for_edit

MATS = {"Steel Plate": 1540.16, "Hinge": 4.5}
PEOPLE = {"Dana": 85.0}

def test_clean_lines_drop_blank_names_and_negative_numbers():
    assert clean_material_lines([{"name": " Hinge ", "qty": "3"}, {"name": "", "qty": 9}, {"name": "Bolt", "qty": -2}]) == [
        {"name": "Hinge", "qty": 3.0}, {"name": "Bolt", "qty": 0.0}]
    assert clean_labor_lines([{"name": "Dana", "hours": None}, {"name": None, "hours": 4}]) == [
        {"name": "Dana", "hours": 0.0}]

def test_fabrication_total():
    mats = [{"name": "Steel Plate", "qty": 1}, {"name": "Hinge", "qty": 4}, {"name": "Unknown", "qty": 10}]
    labor = [{"name": "Dana", "hours": 2.5}]
    assert fabrication_total(mats, labor, MATS, PEOPLE) == pytest.approx(1770.66)
    assert fabrication_total(mats, labor, MATS, PEOPLE, markup=0.5) == pytest.approx(2655.99)

def test_apparel_total():
    assert apparel_total(24, "12.50", 35) == 335.0
    assert apparel_total("", 10) == 0.0

def test_format_dimensions():
    assert format_dimensions({"width": 24, "height": 36.0, "depth": 2, "unit": "in"}) == "24 x 36 x 2 in"
    assert format_dimensions({"width": 0.5, "depth": "", "unit": ""}) == "0.5"
    assert format_dimensions({}) == ""
    assert format_dimensions(" 4 ft ") == "4 ft"

def test_built_fabrication_submission_goes_through(ws):
    sub = build_fabrication_submission("Railing", {"width": 96, "height": 36, "unit": "in"},
                                       [{"name": "Steel Plate", "qty": 1}], [{"name": "Dana", "hours": 4}],
                                       MATS, PEOPLE, markup=0.1, notes="black")
    assert sub["totalPrice"] == pytest.approx(2068.18)
    res = submit_item(ws, ItemKind.FABRICATION, sub)
    assert res.success
    assert ws.read_cell(ws.project_sheet, res.row_number, 4) == "96 x 36 in"

    stored = fetch_for_edit(ws, res.log_id, ItemKind.FABRICATION)
    again = build_fabrication_submission("Railing", stored["formData"]["dimensions"],
                                         stored["formData"]["materials"], stored["formData"]["labor"],
                                         MATS, PEOPLE, markup=0.2, original_row=stored["originalRowNumber"])
    res2 = submit_item(ws, ItemKind.FABRICATION, again)
    assert res2.is_update and res2.row_number == res.row_number

def test_built_apparel_submission_goes_through(ws):
    sub = build_apparel_submission("Polo", 12, 18, setup_fee=40, sizes={"M": 6, "L": 6})
    assert sub["totalPrice"] == 256.0
    assert "originalRowNumber" not in sub
    res = submit_item(ws, ItemKind.APPAREL, sub)
    assert res.success
    assert ws.read_cell(ws.project_sheet, res.row_number, 2) == 12
