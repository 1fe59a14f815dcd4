# -*- coding: utf-8 -*-
# submission.py - add-or-update coordinator + the calls the UI makes (submit / fetch for edit / reference data)
# Create: ledger append -> log record.  Edit: ledger update_at -> log update.
# The two writes are not transactional; a lost log write leaves the ledger row and returns log_id=None.
from typing import List, Dict, Any, Optional
import logging

from ledger_model import (
    ItemKind, Submission, SubmitResult, ReferenceItem,
    LedgerError, InvalidInput, PersistenceFailure,
)
from workbook_io import Workspace
from ledger import LedgerStore
from audit_log import AuditLog
from reference_data import DATASETS

logger = logging.getLogger(__name__)

def _parse_row(raw: Any) -> Optional[int]:
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise InvalidInput(f"originalRowNumber is not a row number: {raw!r}")
    if isinstance(raw, int):
        return raw
    try:
        v = float(str(raw).strip())
    except ValueError:
        raise InvalidInput(f"originalRowNumber is not a row number: {raw!r}") from None
    if not v.is_integer():
        raise InvalidInput(f"originalRowNumber is not a row number: {raw!r}")
    return int(v)

def original_row_number(submission: Submission) -> Optional[int]:
    """originalRowNumber from the top level, then from formData when the top level is blank or <= 0."""
    if not isinstance(submission, dict):
        return None
    top = _parse_row(submission.get("originalRowNumber"))
    if top is not None and top > 0:
        return top
    form = submission.get("formData")
    nested = _parse_row(form.get("originalRowNumber")) if isinstance(form, dict) else None
    if nested is not None and nested > 0:
        return nested
    return top if top is not None else nested

class SubmissionCoordinator:
    def __init__(self, ws: Workspace):
        self.ws = ws
        self.ledger = LedgerStore(ws)
        self.log = AuditLog(ws)

    def submit(self, kind: Any, submission: Submission) -> SubmitResult:
        try:
            kind = ItemKind.parse(kind)
            if not isinstance(submission, dict):
                raise InvalidInput("Submission must be a mapping of form fields.")
            orig = original_row_number(submission)
            if orig is not None and orig > 0:
                row = self.ledger.update_at(orig, kind, submission)
                log_id = self.log.update(kind, row, submission)
                is_update = True
            else:
                row = self.ledger.append(kind, submission)
                log_id = self.log.record(kind, row, submission)
                is_update = False
            if log_id:
                try:
                    self.ledger.attach_log(row, kind, log_id)
                except PersistenceFailure as e:
                    logger.error("could not note %s on row %d: %s", log_id, row, e)
        except LedgerError as e:
            logger.error("submission failed: %s", e)
            return SubmitResult(False, None, None, False, str(e))
        except Exception as e:
            logger.exception("unexpected submission failure")
            return SubmitResult(False, None, None, False, f"Unexpected error: {e}")

        verb = "Updated" if is_update else "Added"
        msg = f"{verb} row {row}."
        if not log_id:
            msg += " The submission log could not be written; this row cannot be reopened for edit."
        return SubmitResult(True, row, log_id, is_update, msg, kind)

    def fetch(self, log_id: str, kind: Any) -> Optional[Dict[str, Any]]:
        return self.log.fetch(log_id, ItemKind.parse(kind))

# ---------- calls exposed to the UI ----------
def submit_item(ws: Workspace, kind: Any, submission: Submission) -> SubmitResult:
    return SubmissionCoordinator(ws).submit(kind, submission)

def fetch_for_edit(ws: Workspace, log_id: str, kind: Any) -> Optional[Dict[str, Any]]:
    """Stored submission for log_id (with originalRowNumber), None when unknown."""
    return SubmissionCoordinator(ws).fetch(log_id, kind)

def get_reference_data(ws: Workspace, dataset: str) -> List[ReferenceItem]:
    loader = DATASETS.get(str(dataset or "").strip().lower())
    if loader is None:
        logger.warning("unknown reference dataset %r", dataset)
        return []
    return loader(ws)
