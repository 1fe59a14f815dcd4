# -*- coding: utf-8 -*-
# main.py — shop estimating front end (fabrication / apparel forms -> project sheet)
#  1) Reference data: Materials (FABRICATION category only) / Personnel rates from the workbook.
#  2) Fabrication form: materials x qty + labour hours x rate (+ markup) -> one "F" row.
#  3) Apparel form: qty x unit price (+ setup fee) -> one generic row.
#  4) Edit: pick a logged submission, load it back into its form, resubmit to update the same row.

import os, logging
from pathlib import Path

import pandas as pd
import streamlit as st

from ledger_model import ItemKind, DeserializationFailure, PersistenceFailure, format_dimensions
from workbook_io import Workspace
from audit_log import AuditLog
from reference_data import as_catalog
from estimate_logic import build_fabrication_submission, build_apparel_submission, fabrication_total, apparel_total
from submission import submit_item, fetch_for_edit, get_reference_data

# ---- Logging (must be early) ----
logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger("shop_ledger")

# ===== paths / settings =====
APP_DIR       = Path(__file__).parent
LEDGER_BOOK   = Path(os.environ.get("SHOP_LEDGER_BOOK", APP_DIR / "data" / "project_ledger.xlsx"))
PROJECT_SHEET = os.environ.get("SHOP_PROJECT_SHEET", "Project")

FAB = "fab_"
APP = "app_"

# ===== page setup =====
st.set_page_config(layout="wide", page_title="Shop Estimating")

st.markdown("""
<style>
section.main > div.block-container { padding-top: 8px; padding-bottom: 10px; padding-left: 10px; padding-right: 10px; }
div[data-testid="stHorizontalBlock"] { gap: 8px !important; }
.sec-h { font-size:16pt; font-weight:400; margin: 6px 0 4px; }
.hr-thin { border-top: 1px solid rgba(128,128,128,.35); margin: 6px 0 10px; }
</style>
""", unsafe_allow_html=True)
def sec_title(text: str): st.markdown(f'<div class="sec-h">{text}</div>', unsafe_allow_html=True)

def open_workspace() -> Workspace | None:
    try:
        return Workspace.open(LEDGER_BOOK, project_sheet=st.session_state.get("project_sheet") or PROJECT_SHEET)
    except PersistenceFailure as e:
        st.error(f"Cannot open the workbook: {e}")
        return None

# ===== session =====
if "project_sheet" not in st.session_state: st.session_state.project_sheet = PROJECT_SHEET
if FAB+"mats" not in st.session_state:      st.session_state[FAB+"mats"] = [{"name": "", "qty": 1.0}]
if FAB+"labor" not in st.session_state:     st.session_state[FAB+"labor"] = [{"name": "", "hours": 1.0}]
if FAB+"orig" not in st.session_state:      st.session_state[FAB+"orig"] = None
if APP+"orig" not in st.session_state:      st.session_state[APP+"orig"] = None

sec_title("Shop Estimating")
st.caption(f"Workbook: {LEDGER_BOOK}")
st.text_input("Project sheet", key="project_sheet")

ws = open_workspace()
if ws is None:
    st.stop()

materials = get_reference_data(ws, "materials")
personnel = get_reference_data(ws, "personnel")
mat_cat, per_cat = as_catalog(materials), as_catalog(personnel)

with st.expander("Reference data", expanded=False):
    c1, c2 = st.columns(2)
    with c1:
        st.markdown("**Materials (fabrication)**")
        st.dataframe(pd.DataFrame([{"name": m.name, "unit cost": m.value} for m in materials]),
                     use_container_width=True, hide_index=True)
    with c2:
        st.markdown("**Personnel**")
        st.dataframe(pd.DataFrame([{"name": p.name, "project rate": p.value} for p in personnel]),
                     use_container_width=True, hide_index=True)

def show_result(res):
    if res.success:
        st.success(res.message)
        if res.log_id: st.caption(f"Log ID: {res.log_id}")
    else:
        st.error(res.message)

# ===== edit loader =====
st.markdown('<div class="hr-thin"></div>', unsafe_allow_html=True)
sec_title("Edit a logged item")
e1, e2, e3 = st.columns([0.25, 0.55, 0.2])
with e1:
    edit_kind = ItemKind.parse(st.radio("Kind", [k.value for k in ItemKind], horizontal=True, key="edit_kind"))
entries = AuditLog(ws).entries(edit_kind)
with e2:
    labels = {f"row {en.row_number} - {en.payload.get('description','')} ({en.log_id})": en.log_id for en in entries}
    picked = st.selectbox("Logged submission", [""] + list(labels.keys()), key="edit_pick")
with e3:
    st.write("")
    if st.button("Load for edit", key="edit_load") and picked:
        try:
            payload = fetch_for_edit(ws, labels[picked], edit_kind)
        except DeserializationFailure as e:
            st.error(f"The stored form data is damaged: {e}")
            payload = None
        if payload is None:
            st.warning("That log entry was not found.")
        else:
            form = payload.get("formData") or {}
            if edit_kind is ItemKind.FABRICATION:
                dims = form.get("dimensions") if isinstance(form.get("dimensions"), dict) else {}
                st.session_state[FAB+"desc"] = form.get("description", payload.get("description", ""))
                for k in ("width", "height", "depth"):
                    st.session_state[FAB+k] = float(dims.get(k) or 0.0)
                st.session_state[FAB+"unit"] = dims.get("unit") or "in"
                st.session_state[FAB+"mats"] = form.get("materials") or [{"name": "", "qty": 1.0}]
                st.session_state[FAB+"labor"] = form.get("labor") or [{"name": "", "hours": 1.0}]
                st.session_state[FAB+"markup"] = float(form.get("markup") or 0.0) * 100
                st.session_state[FAB+"notes"] = form.get("notes", "")
                st.session_state[FAB+"orig"] = payload.get("originalRowNumber")
                # editor deltas belong to the lines that were on screen before the load
                st.session_state.pop(FAB+"mats_ed", None)
                st.session_state.pop(FAB+"labor_ed", None)
            else:
                st.session_state[APP+"desc"] = form.get("description", payload.get("description", ""))
                st.session_state[APP+"qty"] = float(form.get("quantity") or 0.0)
                st.session_state[APP+"unit_price"] = float(form.get("unitPrice") or 0.0)
                st.session_state[APP+"setup"] = float(form.get("setupFee") or 0.0)
                st.session_state[APP+"notes"] = form.get("notes", "")
                st.session_state[APP+"orig"] = payload.get("originalRowNumber")
            st.rerun()

# ===== fabrication =====
st.markdown('<div class="hr-thin"></div>', unsafe_allow_html=True)
sec_title("Fabrication item" + (f" (editing row {st.session_state[FAB+'orig']})" if st.session_state[FAB+"orig"] else ""))
st.text_input("Description", key=FAB+"desc")
d1, d2, d3, d4 = st.columns(4)
with d1: st.number_input("Width", min_value=0.0, step=0.25, key=FAB+"width")
with d2: st.number_input("Height", min_value=0.0, step=0.25, key=FAB+"height")
with d3: st.number_input("Depth", min_value=0.0, step=0.25, key=FAB+"depth")
with d4: st.selectbox("Unit", ["in", "ft", "mm"], key=FAB+"unit")

m1, m2 = st.columns(2)
with m1:
    st.markdown("**Materials**")
    mats = st.data_editor(pd.DataFrame(st.session_state[FAB+"mats"]), num_rows="dynamic", key=FAB+"mats_ed",
                          column_config={"name": st.column_config.SelectboxColumn("name", options=list(mat_cat.keys()))},
                          use_container_width=True, hide_index=True)
with m2:
    st.markdown("**Labour**")
    labor = st.data_editor(pd.DataFrame(st.session_state[FAB+"labor"]), num_rows="dynamic", key=FAB+"labor_ed",
                           column_config={"name": st.column_config.SelectboxColumn("name", options=list(per_cat.keys()))},
                           use_container_width=True, hide_index=True)
markup_pct = st.number_input("Markup (%)", min_value=0.0, step=5.0, key=FAB+"markup")
st.text_area("Notes", key=FAB+"notes", height=68)

dims = {"width": st.session_state.get(FAB+"width"), "height": st.session_state.get(FAB+"height"),
        "depth": st.session_state.get(FAB+"depth"), "unit": st.session_state.get(FAB+"unit")}
mat_lines = mats.to_dict("records")
lab_lines = labor.to_dict("records")
st.metric("Fabrication total", f"${fabrication_total(mat_lines, lab_lines, mat_cat, per_cat, markup_pct/100):,.2f}")
st.caption(f"Dimensions: {format_dimensions(dims) or '-'}")

f1, f2 = st.columns([0.3, 0.7])
with f1:
    if st.button("Save fabrication item", key=FAB+"save"):
        sub = build_fabrication_submission(st.session_state.get(FAB+"desc", ""), dims, mat_lines, lab_lines,
                                           mat_cat, per_cat, markup_pct/100, st.session_state.get(FAB+"notes", ""),
                                           original_row=st.session_state[FAB+"orig"])
        res = submit_item(ws, ItemKind.FABRICATION, sub)
        show_result(res)
        if res.success: st.session_state[FAB+"orig"] = None
with f2:
    if st.session_state[FAB+"orig"] and st.button("Cancel edit", key=FAB+"cancel"):
        st.session_state[FAB+"orig"] = None; st.rerun()

# ===== apparel =====
st.markdown('<div class="hr-thin"></div>', unsafe_allow_html=True)
sec_title("Apparel item" + (f" (editing row {st.session_state[APP+'orig']})" if st.session_state[APP+"orig"] else ""))
st.text_input("Description", key=APP+"desc")
a1, a2, a3 = st.columns(3)
with a1: st.number_input("Quantity", min_value=0.0, step=1.0, key=APP+"qty")
with a2: st.number_input("Unit price", min_value=0.0, step=0.5, key=APP+"unit_price")
with a3: st.number_input("Setup fee", min_value=0.0, step=5.0, key=APP+"setup")
st.text_area("Notes", key=APP+"notes", height=68)
st.metric("Apparel total", f"${apparel_total(st.session_state.get(APP+'qty'), st.session_state.get(APP+'unit_price'), st.session_state.get(APP+'setup')):,.2f}")

g1, g2 = st.columns([0.3, 0.7])
with g1:
    if st.button("Save apparel item", key=APP+"save"):
        sub = build_apparel_submission(st.session_state.get(APP+"desc", ""), st.session_state.get(APP+"qty"),
                                       st.session_state.get(APP+"unit_price"), st.session_state.get(APP+"setup"),
                                       notes=st.session_state.get(APP+"notes", ""),
                                       original_row=st.session_state[APP+"orig"])
        res = submit_item(ws, ItemKind.APPAREL, sub)
        show_result(res)
        if res.success: st.session_state[APP+"orig"] = None
with g2:
    if st.session_state[APP+"orig"] and st.button("Cancel edit", key=APP+"cancel"):
        st.session_state[APP+"orig"] = None; st.rerun()

# ===== project sheet =====
st.markdown('<div class="hr-thin"></div>', unsafe_allow_html=True)
sec_title("Project sheet")
if ws.has_table(ws.project_sheet):
    rows = ws.read_table(ws.project_sheet)
    if rows:
        st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
    else:
        st.info("The project sheet is empty.")
else:
    st.info("No items have been added yet.")
if LEDGER_BOOK.exists():
    with open(LEDGER_BOOK, "rb") as f:
        st.download_button("Download workbook", f.read(), file_name=LEDGER_BOOK.name,
                           mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                           key="book_dl_btn")
