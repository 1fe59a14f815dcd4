# -*- coding: utf-8 -*-
# workbook_io.py - Workspace handle over an openpyxl workbook (read / write / notes / currency format / save)
# All sheet access of the ledger layer goes through this handle; nothing looks up an "active" sheet.
from typing import List, Any, Optional, Callable
from datetime import datetime
from pathlib import Path
import logging
import os

from openpyxl import Workbook, load_workbook
from openpyxl.comments import Comment
from openpyxl.worksheet.worksheet import Worksheet

from ledger_model import NotFound, PersistenceFailure, CURRENCY_FMT

logger = logging.getLogger(__name__)

ROW_CAPACITY   = 1000        # rows a fresh sheet offers before it has to grow
COMMENT_AUTHOR = "shop-ledger"

def _is_blank(v: Any) -> bool:
    return v is None or (isinstance(v, str) and v.strip() == "")

class Workspace:
    def __init__(self, wb: Workbook, path: Optional[Path] = None, *,
                 project_sheet: str = "Project",
                 row_capacity: int = ROW_CAPACITY,
                 clock: Callable[[], datetime] = datetime.now):
        self.wb = wb
        self.path = Path(path) if path else None
        self.project_sheet = project_sheet
        self.row_capacity = row_capacity
        self.clock = clock

    # ---------- open ----------
    @classmethod
    def open(cls, path, **kw) -> "Workspace":
        path = Path(path)
        try:
            if path.exists():
                wb = load_workbook(path)
            else:
                wb = Workbook()
                wb.active.title = kw.get("project_sheet", "Project")
        except Exception as e:
            raise PersistenceFailure(f"Cannot open workbook {path}: {e}") from e
        return cls(wb, path, **kw)

    @classmethod
    def in_memory(cls, **kw) -> "Workspace":
        wb = Workbook()
        wb.active.title = kw.get("project_sheet", "Project")
        return cls(wb, None, **kw)

    # ---------- sheets ----------
    def has_table(self, name: str) -> bool:
        return name in self.wb.sheetnames

    def sheet(self, name: str) -> Worksheet:
        if name not in self.wb.sheetnames:
            raise NotFound(f"Sheet '{name}' not found.")
        return self.wb[name]

    def ensure_table(self, name: str, header: Optional[List[Any]] = None) -> Worksheet:
        """Return the named sheet, creating it (with header row) when missing."""
        if name in self.wb.sheetnames:
            return self.wb[name]
        try:
            ws = self.wb.create_sheet(title=name)
            if header:
                for c, v in enumerate(header, start=1):
                    ws.cell(row=1, column=c).value = v
        except Exception as e:
            raise PersistenceFailure(f"Cannot create sheet '{name}': {e}") from e
        logger.info("created sheet %s", name)
        return ws

    # ---------- read ----------
    def read_table(self, name: str) -> List[List[Any]]:
        ws = self.sheet(name)
        last = self.last_row(name)
        if last == 0: return []
        return [list(r) for r in ws.iter_rows(min_row=1, max_row=last, values_only=True)]

    def read_cell(self, name: str, row: int, col: int) -> Any:
        return self.sheet(name).cell(row=row, column=col).value

    def last_row(self, name: str) -> int:
        """Last row holding any value (0 for an empty sheet)."""
        ws = self.sheet(name)
        for r in range(ws.max_row, 0, -1):
            for c in range(1, ws.max_column + 1):
                if not _is_blank(ws.cell(row=r, column=c).value):
                    return r
        return 0

    def max_rows(self, name: str) -> int:
        return max(self.sheet(name).max_row, self.row_capacity)

    # ---------- write ----------
    def write_row(self, name: str, row: int, values: List[Any]) -> None:
        ws = self.sheet(name)
        try:
            for c, v in enumerate(values, start=1):
                ws.cell(row=row, column=c).value = v
        except Exception as e:
            raise PersistenceFailure(f"Cannot write row {row} of '{name}': {e}") from e

    def append_row(self, name: str, values: List[Any]) -> int:
        row = self.last_row(name) + 1
        self.write_row(name, row, values)
        return row

    def annotate_cell(self, name: str, row: int, col: int, note: Optional[str]) -> None:
        cell = self.sheet(name).cell(row=row, column=col)
        cell.comment = Comment(note, COMMENT_AUTHOR) if note else None

    def cell_note(self, name: str, row: int, col: int) -> Optional[str]:
        cm = self.sheet(name).cell(row=row, column=col).comment
        return cm.text if cm else None

    def format_currency(self, name: str, row: int, col: int) -> None:
        self.sheet(name).cell(row=row, column=col).number_format = CURRENCY_FMT

    # ---------- undo ----------
    def snapshot_row(self, name: str, row: int, width: int) -> List[tuple]:
        """(value, number_format, note) for the first `width` cells of a row."""
        ws = self.sheet(name)
        out = []
        for c in range(1, width + 1):
            cell = ws.cell(row=row, column=c)
            out.append((cell.value, cell.number_format, cell.comment.text if cell.comment else None))
        return out

    def restore_row(self, name: str, row: int, snapshot: List[tuple]) -> None:
        ws = self.sheet(name)
        for c, (value, fmt, note) in enumerate(snapshot, start=1):
            cell = ws.cell(row=row, column=c)
            cell.value = value
            cell.number_format = fmt
            cell.comment = Comment(note, COMMENT_AUTHOR) if note else None

    def drop_table(self, name: str) -> None:
        if name in self.wb.sheetnames:
            self.wb.remove(self.wb[name])

    # ---------- clock / save ----------
    def now(self) -> datetime:
        return self.clock()

    def epoch_millis(self, at: Optional[datetime] = None) -> int:
        return int((at or self.now()).timestamp() * 1000)

    def commit(self) -> None:
        """Save to the bound path; in-memory workspaces do nothing."""
        if self.path is None:
            return
        try:
            os.makedirs(self.path.parent, exist_ok=True)
            self.wb.save(self.path)
        except Exception as e:
            raise PersistenceFailure(f"Cannot save workbook {self.path}: {e}") from e
