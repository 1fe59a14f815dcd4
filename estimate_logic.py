# -*- coding: utf-8 -*-
# estimate_logic.py - line-item logic (input cleaning / totals / submission building)
from typing import List, Dict, Any, Optional

from ledger_model import Submission, format_dimensions, to_float_nonneg

MaterialLine = Dict[str, Any]   # {"name": str, "qty": float}
LaborLine    = Dict[str, Any]   # {"name": str, "hours": float}

def _round_cents(x: float) -> float:
    return round(float(x), 2)

def clean_material_lines(lines: List[MaterialLine]) -> List[MaterialLine]:
    """
    - drop rows without a material name / qty coerced to a non-negative number
    - input order is kept
    """
    cleaned: List[MaterialLine] = []
    for ln in lines or []:
        nm = str(ln.get("name") or "").strip()
        if not nm:
            continue
        cleaned.append({"name": nm, "qty": to_float_nonneg(ln.get("qty", 0))})
    return cleaned

def clean_labor_lines(lines: List[LaborLine]) -> List[LaborLine]:
    cleaned: List[LaborLine] = []
    for ln in lines or []:
        nm = str(ln.get("name") or "").strip()
        if not nm:
            continue
        cleaned.append({"name": nm, "hours": to_float_nonneg(ln.get("hours", 0))})
    return cleaned

def fabrication_total(materials: List[MaterialLine], labor: List[LaborLine],
                      material_catalog: Dict[str, float], personnel_catalog: Dict[str, float],
                      markup: float = 0.0) -> float:
    """(sum qty * unit cost + sum hours * rate) * (1 + markup). Unknown names price at 0."""
    mat = sum(ln["qty"] * material_catalog.get(ln["name"], 0.0) for ln in clean_material_lines(materials))
    lab = sum(ln["hours"] * personnel_catalog.get(ln["name"], 0.0) for ln in clean_labor_lines(labor))
    return _round_cents((mat + lab) * (1.0 + to_float_nonneg(markup)))

def apparel_total(quantity: Any, unit_price: Any, setup_fee: Any = 0.0) -> float:
    return _round_cents(to_float_nonneg(quantity) * to_float_nonneg(unit_price) + to_float_nonneg(setup_fee))

def build_fabrication_submission(description: str, dimensions: Any,
                                 materials: List[MaterialLine], labor: List[LaborLine],
                                 material_catalog: Dict[str, float], personnel_catalog: Dict[str, float],
                                 markup: float = 0.0, notes: str = "",
                                 original_row: Optional[int] = None) -> Submission:
    mats = clean_material_lines(materials)
    labs = clean_labor_lines(labor)
    total = fabrication_total(mats, labs, material_catalog, personnel_catalog, markup)
    sub: Submission = {
        "description": str(description or "").strip(),
        "dimensions": format_dimensions(dimensions),
        "totalPrice": total,
        "formData": {
            "description": str(description or "").strip(),
            "dimensions": dimensions,
            "materials": mats,
            "labor": labs,
            "markup": to_float_nonneg(markup),
            "notes": notes,
        },
    }
    if original_row:
        sub["originalRowNumber"] = original_row
    return sub

def build_apparel_submission(description: str, quantity: Any, unit_price: Any,
                             setup_fee: Any = 0.0, sizes: Optional[Dict[str, int]] = None,
                             notes: str = "", original_row: Optional[int] = None) -> Submission:
    sub: Submission = {
        "description": str(description or "").strip(),
        "quantity": to_float_nonneg(quantity),
        "totalPrice": apparel_total(quantity, unit_price, setup_fee),
        "formData": {
            "description": str(description or "").strip(),
            "quantity": to_float_nonneg(quantity),
            "unitPrice": to_float_nonneg(unit_price),
            "setupFee": to_float_nonneg(setup_fee),
            "sizes": dict(sizes or {}),
            "notes": notes,
        },
    }
    if original_row:
        sub["originalRowNumber"] = original_row
    return sub
