"""
Business identifier generation.

Two strategies, with different collision characteristics:

  Sequential (DON-, TKT-)   DON-{year}-{n:05d}
      n comes from the sequence_counters row for (name, year), bumped with
      an atomic UPDATE inside the caller's transaction. The row is seeded
      from the number of records already created that year, so n equals
      "existing count + 1".

  Random (PAY-, ORD-, RCPT-)
      PAY-{base36 ms timestamp}-{6 random base36}
      ORD-{base36 ms timestamp}-{6 random base36}
      RCPT-{year}-{8 random base36}
      Safe under full concurrency, negligible collision probability.
"""
import secrets
import time
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import models
from app.models import utcnow

BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

_rng = secrets.SystemRandom()


def to_base36(n: int) -> str:
    if n < 0:
        raise ValueError("base36 input must be non-negative")
    if n == 0:
        return "0"
    digits = []
    while n:
        n, r = divmod(n, 36)
        digits.append(BASE36[r])
    return "".join(reversed(digits))


def random_base36(length: int, rng=None) -> str:
    rng = rng or _rng
    return "".join(rng.choice(BASE36) for _ in range(length))


def _timestamp36(now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return to_base36(now_ms)


def payment_id(now_ms: Optional[int] = None, rng=None) -> str:
    return f"PAY-{_timestamp36(now_ms)}-{random_base36(6, rng)}"


def order_id(now_ms: Optional[int] = None, rng=None) -> str:
    return f"ORD-{_timestamp36(now_ms)}-{random_base36(6, rng)}"


def receipt_id(year: Optional[int] = None, rng=None) -> str:
    year = year or utcnow().year
    return f"RCPT-{year}-{random_base36(8, rng)}"


def transaction_ref(rng=None) -> str:
    return random_base36(16, rng)


# ---------------------------------------------------------------------------
# Atomic per-year counter
# ---------------------------------------------------------------------------
def next_sequence(
    db: Session,
    name: str,
    year: int,
    seed: Optional[Callable[[], int]] = None,
) -> int:
    """
    Return the next value of the (name, year) counter.

    Runs inside the caller's transaction; the increment is a single SQL
    UPDATE so concurrent writers are serialized by the database.
    """
    counter = models.SequenceCounter
    key = (counter.name == name, counter.year == year)

    updated = db.query(counter).filter(*key).update(
        {counter.value: counter.value + 1}, synchronize_session=False
    )
    if updated:
        return db.query(counter.value).filter(*key).scalar()

    start = seed() if seed else 0
    try:
        with db.begin_nested():
            db.add(counter(name=name, year=year, value=start + 1))
    except IntegrityError:
        # Another writer created the row first
        return next_sequence(db, name, year)
    return start + 1


def _count_in_year(db: Session, model, year: int) -> int:
    return db.query(model).filter(
        model.created_at >= datetime(year, 1, 1),
        model.created_at < datetime(year + 1, 1, 1),
    ).count()


def donation_id(db: Session, year: Optional[int] = None) -> str:
    year = year or utcnow().year
    n = next_sequence(db, "donation", year, seed=lambda: _count_in_year(db, models.Donation, year))
    return f"DON-{year}-{n:05d}"


def ticket_id(db: Session, year: Optional[int] = None) -> str:
    year = year or utcnow().year
    n = next_sequence(db, "contact", year, seed=lambda: _count_in_year(db, models.Contact, year))
    return f"TKT-{year}-{n:05d}"
