from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Optional, Tuple

from sqlalchemy import and_, select

from driverpay_api.extensions import db

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(x) -> Decimal:
    if x is None or x == "":
        return Decimal("0")
    if isinstance(x, Decimal):
        return x
    return Decimal(str(x))


def money(x) -> Decimal:
    """Quantise to pence, half-up."""
    return to_decimal(x).quantize(CENT, rounding=ROUND_HALF_UP)


def day_bounds(start: Optional[date], end: Optional[date]) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Timestamp window for a date range: [start 00:00, end+1 00:00).
    Either side may be None (unbounded).
    """
    lo = datetime.combine(start, time.min) if start else None
    hi = datetime.combine(end + timedelta(days=1), time.min) if end else None
    return lo, hi


def upsert(model, key_cols: Iterable[str], values: Dict[str, Any], update_cols: Iterable[str], where=None) -> bool:
    """
    Atomic insert-or-update of one row keyed by a unique constraint.

    PostgreSQL and SQLite try INSERT .. ON CONFLICT DO NOTHING first; the
    insert's own row count says whether this call created the row, and only
    a conflicting call goes on to UPDATE it. Two concurrent callers for the
    same key leave exactly one row and exactly one of them reports "created".
    Other dialects take a row lock on the key first. `where` limits which
    existing rows may be overwritten (a row that fails it is left untouched).

    Returns True when a row already existed for the key.
    """
    table = model.__table__
    key_cols = list(key_cols)
    update_cols = list(update_cols)
    key_clause = and_(*[table.c[k] == values[k] for k in key_cols])

    dialect = db.session.get_bind().dialect.name
    if dialect in ("postgresql", "sqlite"):
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        else:
            from sqlalchemy.dialects.sqlite import insert
        ins = insert(table).values(**values).on_conflict_do_nothing(index_elements=key_cols)
        if db.session.execute(ins).rowcount:
            return False
        upd = table.update().where(key_clause)
        if where is not None:
            upd = upd.where(where)
        db.session.execute(upd.values(**{c: values[c] for c in update_cols}))
        return True

    row = db.session.execute(select(table.c.id).where(key_clause).with_for_update()).first()
    if row is None:
        db.session.execute(table.insert().values(**values))
        return False
    upd = table.update().where(table.c.id == row.id)
    if where is not None:
        upd = upd.where(where)
    db.session.execute(upd.values(**{c: values[c] for c in update_cols}))
    return True
