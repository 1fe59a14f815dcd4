# -*- coding: utf-8 -*-
# ledger.py - project sheet writes (append / update in place) + fabrication display-ID allocation
# Row layouts live in ledger_model (FabricationRow / GenericRow); this module only places them.
from typing import Any, Optional
import logging
import re

from ledger_model import (
    ItemKind, Submission, FabricationRow, GenericRow, EDIT_MARKER,
    InvalidRow, InvalidInput, PersistenceFailure, row_type,
)
from workbook_io import Workspace

logger = logging.getLogger(__name__)

FAB_ID_PREFIX = "F"
FAB_ID_RE     = re.compile(r"^F(\d+)$")

def _to_row_number(x: Any) -> Optional[int]:
    if isinstance(x, bool): return None
    if isinstance(x, int): return x
    if isinstance(x, float) and x.is_integer(): return int(x)
    if isinstance(x, str) and x.strip().isdigit(): return int(x.strip())
    return None

# ---------- ID allocator ----------
def next_fabrication_id(ws: Workspace) -> str:
    """
    F + (largest existing numeric suffix + 1), zero-padded to 2 digits.
    Values that are not F<digits> (apparel quantities, blanks, 'FX1') are skipped.
    """
    top = 0
    if ws.has_table(ws.project_sheet):
        for row in ws.read_table(ws.project_sheet):
            if len(row) < FabricationRow.ID_COL: continue
            m = FAB_ID_RE.match(str(row[FabricationRow.ID_COL - 1] or "").strip())
            if m:
                top = max(top, int(m.group(1)))
    return f"{FAB_ID_PREFIX}{top + 1:02d}"

# ---------- ledger store ----------
class LedgerStore:
    def __init__(self, ws: Workspace):
        self.ws = ws

    @property
    def sheet(self) -> str:
        return self.ws.project_sheet

    def append(self, kind: ItemKind, fields: Submission) -> int:
        """Write a new row one past the last populated row; returns its row number."""
        rt = row_type(kind)
        if rt is FabricationRow:
            rec = FabricationRow.from_submission(fields)
            rec.display_id = next_fabrication_id(self.ws)
        else:
            rec = rt.from_submission(fields)

        self.ws.ensure_table(self.sheet)
        row = self.ws.last_row(self.sheet) + 1
        self._write(row, rt, rec)
        logger.info("ledger append kind=%s row=%d", kind.value, row)
        return row

    def update_at(self, row_number: Any, kind: ItemKind, fields: Submission) -> int:
        """Overwrite the row in place. Fabrication rows keep their display ID."""
        row = _to_row_number(row_number)
        cap = self.ws.max_rows(self.sheet) if self.ws.has_table(self.sheet) else self.ws.row_capacity
        if row is None or row < 1 or row > cap:
            raise InvalidRow(f"Row {row_number!r} is outside the project sheet (1..{cap}).")

        self.ws.ensure_table(self.sheet)
        held = self.layout_at(row)
        if held is not None and held != kind.layout:
            raise InvalidInput(f"Row {row} holds a {held} item; it cannot be edited as {kind.value}.")

        rt = row_type(kind)
        if rt is FabricationRow:
            rec = FabricationRow.from_submission(fields)
            rec.display_id = self._existing_display_id(row)
        else:
            rec = rt.from_submission(fields)

        self._write(row, rt, rec)
        logger.info("ledger update kind=%s row=%d", kind.value, row)
        return row

    def attach_log(self, row_number: int, kind: ItemKind, log_id: str) -> None:
        """Point the edit-marker note at the log entry for this row."""
        rt = row_type(kind)
        before = self.ws.snapshot_row(self.sheet, row_number, rt.MARKER_COL)
        try:
            self.ws.annotate_cell(self.sheet, row_number, rt.MARKER_COL, f"LogID: {log_id}")
            self.ws.commit()
        except PersistenceFailure:
            self.ws.restore_row(self.sheet, row_number, before)
            raise

    def layout_at(self, row: int) -> Optional[str]:
        """'fabrication' / 'generic' by where the edit marker sits; None for a row without one."""
        if self.ws.read_cell(self.sheet, row, FabricationRow.MARKER_COL) == EDIT_MARKER:
            return "fabrication"
        if self.ws.read_cell(self.sheet, row, GenericRow.MARKER_COL) == EDIT_MARKER:
            return "generic"
        return None

    def read_row(self, row_number: int, kind: ItemKind):
        rt = row_type(kind)
        cells = [self.ws.read_cell(self.sheet, row_number, c) for c in range(1, rt.WIDTH + 1)]
        return rt.from_cells(cells)

    def _write(self, row: int, rt, rec) -> None:
        # the row goes back to its previous cells when any step up to the save fails
        before = self.ws.snapshot_row(self.sheet, row, FabricationRow.WIDTH)
        try:
            self.ws.write_row(self.sheet, row, rec.to_cells())
            self.ws.annotate_cell(self.sheet, row, rt.MARKER_COL, None)
            self.ws.format_currency(self.sheet, row, rt.PRICE_COL)
            self.ws.commit()
        except PersistenceFailure:
            self.ws.restore_row(self.sheet, row, before)
            raise

    def _existing_display_id(self, row: int) -> str:
        current = str(self.ws.read_cell(self.sheet, row, FabricationRow.ID_COL) or "").strip()
        if current:
            return current
        # Empty ID cell on an edited row: the row was cleared or never had one.
        new_id = next_fabrication_id(self.ws)
        logger.warning("row %d has no display ID; allocating %s", row, new_id)
        return new_id
