# utils/db_errors.py
"""
แปลง IntegrityError จาก DB ให้เป็น error ที่แยกประเภทได้
เพื่อให้ API ตอบ 409/422 แทน 500
"""
from sqlalchemy.exc import IntegrityError


class DataIntegrityError(Exception):
    status_code = 400
    kind = "integrity"

    def __init__(self, message: str, constraint: str = None):
        super().__init__(message)
        self.message = message
        self.constraint = constraint

    def to_detail(self):
        return {"error": self.kind, "message": self.message, "constraint": self.constraint}


class DuplicateError(DataIntegrityError):
    status_code = 409
    kind = "duplicate"


class InvalidReferenceError(DataIntegrityError):
    status_code = 409
    kind = "invalid_reference"


class MissingValueError(DataIntegrityError):
    status_code = 422
    kind = "missing_value"


class InvalidValueError(DataIntegrityError):
    status_code = 422
    kind = "invalid_value"


class QuantityUnavailableError(DataIntegrityError):
    """dispatch มากกว่ายอดที่ run เหลืออยู่"""
    status_code = 400
    kind = "quantity_unavailable"


class MigrationPreconditionError(RuntimeError):
    """ข้อมูลเดิมขัดกับ constraint ที่กำลังจะเพิ่ม ต้องแก้ข้อมูลก่อน"""


class SeedError(RuntimeError):
    pass


# SQLSTATE (PostgreSQL)
_PG_CODES = {
    "23505": DuplicateError,
    "23503": InvalidReferenceError,
    "23001": InvalidReferenceError,   # restrict_violation
    "23502": MissingValueError,
    "23514": InvalidValueError,
    "22P02": InvalidValueError,       # invalid_text_representation (bad enum label)
}

# ข้อความของ sqlite3
_SQLITE_MARKERS = [
    ("UNIQUE constraint failed", DuplicateError),
    ("FOREIGN KEY constraint failed", InvalidReferenceError),
    ("NOT NULL constraint failed", MissingValueError),
    ("CHECK constraint failed", InvalidValueError),
]


def _constraint_name(orig):
    diag = getattr(orig, "diag", None)
    name = getattr(diag, "constraint_name", None) if diag is not None else None
    if name:
        return name
    text = str(orig)
    if ":" in text:
        return text.split(":", 1)[1].strip() or None
    return None


def translate_integrity_error(exc: IntegrityError) -> DataIntegrityError:
    orig = getattr(exc, "orig", exc)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    cls = _PG_CODES.get(code)
    if cls is None:
        text = str(orig)
        for marker, candidate in _SQLITE_MARKERS:
            if marker in text:
                cls = candidate
                break
    if cls is None:
        cls = DataIntegrityError
    return cls(str(orig).strip().splitlines()[0], constraint=_constraint_name(orig))
