# column <-> python value helpers shared by the store modules
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Sequence


def now() -> str:
    """Current local time as stored in the database (ISO-8601, seconds)."""
    return datetime.now().isoformat(timespec="seconds")


def to_datetime(val: str) -> datetime:
    return datetime.fromisoformat(val)


def to_decimal(val) -> Decimal:
    try:
        return Decimal(str(val))
    except InvalidOperation as exc:
        raise ValueError(f"not a decimal amount: {val!r}") from exc


def placeholders(values: Sequence[object]) -> str:
    """`?, ?, ?` for an IN (...) clause."""
    return ", ".join("?" for _ in values)
