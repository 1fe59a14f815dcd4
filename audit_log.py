# -*- coding: utf-8 -*-
# audit_log.py - per-kind log sheets of raw form submissions (LogID / ProjectRow / Timestamp / FormData)
# Logging is best-effort: a failed write returns None and the ledger row that was already written stays.
from typing import List, Dict, Any, Optional
from datetime import datetime
import copy
import json
import logging

from ledger_model import (
    ItemKind, LogEntry, LOG_HEADER,
    PersistenceFailure, DeserializationFailure,
)
from workbook_io import Workspace

logger = logging.getLogger(__name__)

COL_LOG_ID, COL_ROW, COL_TS, COL_FORM = 1, 2, 3, 4
FIRST_ENTRY_ROW = 2
TS_FMT = "%Y-%m-%d %H:%M:%S"

def _as_int(x: Any) -> Optional[int]:
    try:
        return int(float(x))
    except (TypeError, ValueError):
        return None

def _as_datetime(x: Any) -> Optional[datetime]:
    if isinstance(x, datetime): return x
    try:
        return datetime.strptime(str(x), TS_FMT)
    except (TypeError, ValueError):
        return None

def _decode(raw: Any, log_id: str) -> Dict[str, Any]:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise DeserializationFailure(f"FormData of {log_id} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise DeserializationFailure(f"FormData of {log_id} is not a JSON object.")
    return data

class AuditLog:
    def __init__(self, ws: Workspace):
        self.ws = ws

    def _cells(self, kind: ItemKind, row_number: int, payload: Dict[str, Any]) -> List[Any]:
        body = copy.deepcopy(payload) if isinstance(payload, dict) else {}
        body["originalRowNumber"] = row_number
        now = self.ws.now()
        return [
            f"{kind.log_prefix}_{self.ws.epoch_millis(now)}_{row_number}",
            row_number,
            now.strftime(TS_FMT),
            json.dumps(body, ensure_ascii=False, default=str),
        ]

    def _find_row(self, kind: ItemKind, row_number: int) -> Optional[int]:
        for i, r in enumerate(self.ws.read_table(kind.log_sheet)[FIRST_ENTRY_ROW - 1:], start=FIRST_ENTRY_ROW):
            if len(r) >= COL_ROW and _as_int(r[COL_ROW - 1]) == row_number:
                return i
        return None

    def record(self, kind: ItemKind, row_number: int, payload: Dict[str, Any]) -> Optional[str]:
        """Append a new entry; returns its log ID or None when the write failed."""
        created = not self.ws.has_table(kind.log_sheet)
        before = None
        try:
            self.ws.ensure_table(kind.log_sheet, LOG_HEADER)
            at = self.ws.last_row(kind.log_sheet) + 1
            before = self.ws.snapshot_row(kind.log_sheet, at, len(LOG_HEADER))
            cells = self._cells(kind, row_number, payload)
            self.ws.append_row(kind.log_sheet, cells)
            self.ws.commit()
        except PersistenceFailure as e:
            if created:
                self.ws.drop_table(kind.log_sheet)
            elif before is not None:
                self.ws.restore_row(kind.log_sheet, at, before)
            logger.error("log record failed kind=%s row=%s: %s", kind.value, row_number, e)
            return None
        logger.info("log record %s", cells[0])
        return cells[0]

    def update(self, kind: ItemKind, row_number: int, payload: Dict[str, Any]) -> Optional[str]:
        """Overwrite the entry for this project row, or record a new one when there is none."""
        at = self._find_row(kind, row_number) if self.ws.has_table(kind.log_sheet) else None
        if at is None:
            return self.record(kind, row_number, payload)
        before = self.ws.snapshot_row(kind.log_sheet, at, len(LOG_HEADER))
        try:
            cells = self._cells(kind, row_number, payload)
            self.ws.write_row(kind.log_sheet, at, cells)
            self.ws.commit()
        except PersistenceFailure as e:
            self.ws.restore_row(kind.log_sheet, at, before)
            logger.error("log update failed kind=%s row=%s: %s", kind.value, row_number, e)
            return None
        logger.info("log update %s (log row %d)", cells[0], at)
        return cells[0]

    def fetch(self, log_id: str, kind: ItemKind) -> Optional[Dict[str, Any]]:
        """Stored payload for log_id, or None. Corrupt JSON raises DeserializationFailure."""
        if not log_id or not self.ws.has_table(kind.log_sheet):
            return None
        for r in self.ws.read_table(kind.log_sheet)[FIRST_ENTRY_ROW - 1:]:
            if r and str(r[COL_LOG_ID - 1] or "") == log_id:
                raw = r[COL_FORM - 1] if len(r) >= COL_FORM else None
                return _decode(raw, log_id)
        return None

    def entries(self, kind: ItemKind) -> List[LogEntry]:
        if not self.ws.has_table(kind.log_sheet):
            return []
        out: List[LogEntry] = []
        for r in self.ws.read_table(kind.log_sheet)[FIRST_ENTRY_ROW - 1:]:
            r = list(r) + [None] * (len(LOG_HEADER) - len(r))
            log_id = str(r[COL_LOG_ID - 1] or "").strip()
            row_number = _as_int(r[COL_ROW - 1])
            if not log_id or row_number is None:
                continue
            try:
                payload = _decode(r[COL_FORM - 1], log_id)
            except DeserializationFailure as e:
                logger.warning("skipping log entry: %s", e)
                continue
            out.append(LogEntry(log_id, row_number, _as_datetime(r[COL_TS - 1]), payload, kind))
        return out
