# -*- coding: utf-8 -*-
# ledger_model.py - item kinds / ledger row layouts / log entries / error taxonomy
from typing import List, Dict, Any, Optional
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import math
import re

Submission = Dict[str, Any]   # {"description", "dimensions"|"quantity", "totalPrice", "formData": {...}, "originalRowNumber"?}

EDIT_MARKER   = "Edit"
CURRENCY_FMT  = '"$"#,##0.00'
LOG_HEADER    = ["LogID", "ProjectRow", "Timestamp", "FormData"]

# ---------- errors ----------
class LedgerError(Exception):
    """Base class for everything the ledger layer raises."""

class NotFound(LedgerError):
    pass

class InvalidInput(LedgerError):
    pass

class InvalidRow(LedgerError):
    pass

class PersistenceFailure(LedgerError):
    pass

class DeserializationFailure(LedgerError):
    pass

# ---------- kinds ----------
class ItemKind(Enum):
    FABRICATION = "Fabrication"
    APPAREL     = "Apparel"

    @property
    def layout(self) -> str:
        return "fabrication" if self is ItemKind.FABRICATION else "generic"

    @property
    def log_sheet(self) -> str:
        return f"{self.value}Log"

    @property
    def log_prefix(self) -> str:
        return "FAB" if self is ItemKind.FABRICATION else "APP"

    @classmethod
    def parse(cls, value: Any) -> "ItemKind":
        if isinstance(value, cls):
            return value
        s = str(value or "").strip().lower()
        for k in cls:
            if s in (k.value.lower(), k.name.lower()):
                return k
        raise InvalidInput(f"Unknown item kind: {value!r}")

# ---------- value helpers ----------
NUM_RE = re.compile(r"[-+]?\d[\d,]*\.?\d*")

def parse_number(x: Any) -> Optional[float]:
    """'$1,540.16' -> 1540.16 / 12 -> 12.0 / 'abc' -> None"""
    if x is None or isinstance(x, bool): return None
    if isinstance(x, (int, float)):
        if isinstance(x, float) and (math.isnan(x) or math.isinf(x)): return None
        return float(x)
    m = NUM_RE.search(str(x))
    if not m: return None
    try: return float(m.group(0).replace(",", ""))
    except ValueError: return None

def to_float_nonneg(x: Any) -> float:
    v = parse_number(x)
    if v is None or v < 0: return 0.0
    return v

def lookup_field(submission: Submission, key: str) -> Any:
    """Top-level value first, then the nested formData value."""
    if not isinstance(submission, dict): return None
    v = submission.get(key)
    if v is not None and v != "": return v
    form = submission.get("formData")
    if isinstance(form, dict):
        return form.get(key)
    return None

def format_dimensions(value: Any) -> str:
    """{'width':24,'height':36,'depth':2,'unit':'in'} -> '24 x 36 x 2 in'"""
    if isinstance(value, dict):
        parts = []
        for k in ("width", "height", "depth"):
            v = value.get(k)
            if v is None or str(v).strip() == "": continue
            n = parse_number(v)
            parts.append(f"{n:g}" if n is not None else str(v).strip())
        unit = str(value.get("unit") or "").strip()
        text = " x ".join(parts)
        return f"{text} {unit}".strip() if text else ""
    return str(value or "").strip()

def _require_price(raw: Any) -> float:
    if raw is None or str(raw).strip() == "":
        raise InvalidInput("totalPrice is required.")
    v = parse_number(raw)
    if v is None:
        raise InvalidInput(f"totalPrice is not numeric: {raw!r}")
    return round(v, 2)

def _require_description(raw: Any) -> str:
    s = str(raw or "").strip()
    if not s:
        raise InvalidInput("description is required.")
    return s

# ---------- ledger rows ----------
@dataclass
class FabricationRow:
    display_id: str
    description: str
    dimensions: str
    total_price: float

    WIDTH        = 7
    ID_COL       = 2
    PRICE_COL    = 6
    MARKER_COL   = 7

    @classmethod
    def from_submission(cls, submission: Submission, display_id: str = "") -> "FabricationRow":
        return cls(
            display_id=display_id,
            description=_require_description(lookup_field(submission, "description")),
            dimensions=format_dimensions(lookup_field(submission, "dimensions")),
            total_price=_require_price(lookup_field(submission, "totalPrice")),
        )

    def to_cells(self) -> List[Any]:
        return ["", self.display_id, self.description, self.dimensions, "", self.total_price, EDIT_MARKER]

    @classmethod
    def from_cells(cls, cells: List[Any]) -> "FabricationRow":
        c = list(cells) + [None] * (cls.WIDTH - len(cells))
        return cls(
            display_id=str(c[1] or "").strip(),
            description=str(c[2] or "").strip(),
            dimensions=str(c[3] or "").strip(),
            total_price=to_float_nonneg(c[5]),
        )

@dataclass
class GenericRow:
    description: str
    quantity: float
    total_price: float

    WIDTH        = 5
    PRICE_COL    = 4
    MARKER_COL   = 5

    @classmethod
    def from_submission(cls, submission: Submission) -> "GenericRow":
        raw_qty = lookup_field(submission, "quantity")
        qty = parse_number(raw_qty)
        if qty is None or qty < 0:
            raise InvalidInput(f"quantity is not a non-negative number: {raw_qty!r}")
        return cls(
            description=_require_description(lookup_field(submission, "description")),
            quantity=int(qty) if float(qty).is_integer() else qty,
            total_price=_require_price(lookup_field(submission, "totalPrice")),
        )

    def to_cells(self) -> List[Any]:
        return [self.description, self.quantity, "", self.total_price, EDIT_MARKER]

    @classmethod
    def from_cells(cls, cells: List[Any]) -> "GenericRow":
        c = list(cells) + [None] * (cls.WIDTH - len(cells))
        return cls(
            description=str(c[0] or "").strip(),
            quantity=to_float_nonneg(c[1]),
            total_price=to_float_nonneg(c[3]),
        )

def row_type(kind: ItemKind):
    return FabricationRow if kind.layout == "fabrication" else GenericRow

# ---------- reference / log / result ----------
@dataclass(frozen=True)
class ReferenceItem:
    name: str
    value: float   # unit cost (materials) or project rate (personnel)

@dataclass(frozen=True)
class LogEntry:
    log_id: str
    row_number: int
    timestamp: Optional[datetime]
    payload: Dict[str, Any]
    kind: ItemKind

@dataclass
class SubmitResult:
    success: bool
    row_number: Optional[int]
    log_id: Optional[str]
    is_update: bool
    message: str = ""
    kind: Optional[ItemKind] = None
