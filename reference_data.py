# -*- coding: utf-8 -*-
# reference_data.py - Materials / Personnel sheets -> ReferenceItem lists
from typing import List, Any
import re
import unicodedata

import pandas as pd

from ledger_model import ReferenceItem, NotFound, to_float_nonneg
from workbook_io import Workspace

MATERIALS_SHEET = "Materials"
PERSONNEL_SHEET = "Personnel"
HEADER_ROWS     = 1

# column positions (0-based) in the source sheets
MAT_NAME, MAT_CATEGORY, MAT_COST = 1, 4, 9
PER_NAME, PER_RATE               = 0, 2

FABRICATION_CATEGORY = "FABRICATION"

def normalize_string(s: Any) -> str:
    if s is None: return ""
    if isinstance(s, float) and pd.isna(s): return ""
    s = unicodedata.normalize("NFKC", str(s))
    return re.sub(r"\s+", " ", s.strip())

def read_frame(ws: Workspace, sheet: str) -> pd.DataFrame:
    """Sheet body (header rows dropped) as a positional DataFrame; missing sheet -> empty."""
    try:
        rows = ws.read_table(sheet)
    except NotFound:
        return pd.DataFrame()
    body = rows[HEADER_ROWS:]
    if not body: return pd.DataFrame()
    width = max(len(r) for r in body)
    return pd.DataFrame([list(r) + [None] * (width - len(r)) for r in body])

def _col(df: pd.DataFrame, idx: int) -> pd.Series:
    if idx in df.columns:
        return df[idx]
    return pd.Series([None] * len(df), index=df.index)

def _project(names: pd.Series, values: pd.Series) -> List[ReferenceItem]:
    out: List[ReferenceItem] = []
    for nm, v in zip(names.map(normalize_string), values):
        if not nm:
            continue
        out.append(ReferenceItem(nm, to_float_nonneg(v)))
    return out

def load_materials(ws: Workspace) -> List[ReferenceItem]:
    """Materials whose primary category mentions FABRICATION (e.g. 'FABRICATION, HARDWARE')."""
    df = read_frame(ws, MATERIALS_SHEET)
    if df.empty: return []
    cat = _col(df, MAT_CATEGORY).map(normalize_string).str.upper()
    hit = df[cat.str.contains(FABRICATION_CATEGORY, regex=False, na=False)]
    return _project(_col(hit, MAT_NAME), _col(hit, MAT_COST))

def load_personnel(ws: Workspace) -> List[ReferenceItem]:
    df = read_frame(ws, PERSONNEL_SHEET)
    if df.empty: return []
    return _project(_col(df, PER_NAME), _col(df, PER_RATE))

DATASETS = {
    "materials": load_materials,
    "personnel": load_personnel,
}

def as_catalog(items: List[ReferenceItem]) -> dict:
    return {it.name: it.value for it in items}
