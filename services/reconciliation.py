"""
Reconciliation Engine.

Compares what was paid in a period (or a whole year) against what was
expected, per student or per teacher, and rolls the results up.

Students and teachers are classified differently:

* students are ``paid`` as soon as anything was paid in the period,
  whatever their ``base_fee`` is;
* teachers are ``paid`` when the salary is covered, ``partial`` when
  something but not enough was paid, ``unpaid`` otherwise.
"""
import enum
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from services.ledger import PaymentKind
from services.periods import encode_period, try_parse_period

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12


class PaymentStatus(str, enum.Enum):
    PAID = "paid"
    PARTIAL = "partial"
    UNPAID = "unpaid"


@dataclass
class EntityStatus:
    entity_id: int
    expected: float
    total_paid: float
    payment_count: int = 0
    status: PaymentStatus = PaymentStatus.UNPAID
    entity: Any = field(default=None, repr=False, compare=False)

    @property
    def remaining(self) -> float:
        return self.expected - self.total_paid


@dataclass
class AggregateTotals:
    total_paid_amount: float = 0.0
    payment_count: int = 0
    paid_count: int = 0
    partial_count: int = 0
    unpaid_count: int = 0
    statuses: List[EntityStatus] = field(default_factory=list)


# =====================
# CLASSIFICATION RULES
# =====================

def classify_tuition(total_paid: float) -> PaymentStatus:
    return PaymentStatus.PAID if total_paid > 0 else PaymentStatus.UNPAID


def classify_salary(expected: float, total_paid: float) -> PaymentStatus:
    remaining = expected - total_paid
    if remaining <= 0:
        return PaymentStatus.PAID
    if total_paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def expected_for(kind: PaymentKind, entity, annual: bool = False) -> float:
    monthly = (entity.base_fee if kind is PaymentKind.TUITION else entity.monthly_salary) or 0.0
    return monthly * MONTHS_PER_YEAR if annual else monthly


def classify(kind: PaymentKind, expected: float, total_paid: float) -> PaymentStatus:
    if kind is PaymentKind.TUITION:
        return classify_tuition(total_paid)
    return classify_salary(expected, total_paid)


# =====================
# GROUPED TOTALS
# =====================

def _grouped_rows(db: Session, kind: PaymentKind, entity_ids: Optional[Iterable[int]] = None, period: Optional[str] = None):
    """One aggregate query: (entity_id, period, sum(amount), count) rows."""
    model = kind.model
    entity_col = kind.entity_column
    query = db.query(
        entity_col,
        model.period,
        func.coalesce(func.sum(model.amount), 0.0),
        func.count(model.id),
    )
    if entity_ids is not None:
        query = query.filter(entity_col.in_(list(entity_ids)))
    if period is not None:
        query = query.filter(model.period == period)
    return query.group_by(entity_col, model.period).all()


def paid_totals_for_period(db: Session, kind: PaymentKind, year, month, entity_ids=None) -> Dict[int, tuple]:
    """{entity_id: (total_paid, payment_count)} for one "year/month" key."""
    period = encode_period(year, month)
    totals = {}
    for entity_id, _period, total, count in _grouped_rows(db, kind, entity_ids, period=period):
        totals[entity_id] = (float(total), int(count))
    return totals


def paid_totals_for_year(db: Session, kind: PaymentKind, year, entity_ids=None) -> Dict[int, tuple]:
    """Sum every period key whose year part equals ``year``; malformed keys are skipped."""
    year = int(year)
    totals = defaultdict(lambda: (0.0, 0))
    for entity_id, period, total, count in _grouped_rows(db, kind, entity_ids):
        parsed = try_parse_period(period)
        if parsed is None:
            logger.debug("Skipping unattributable %s period key %r", kind.value, period)
            continue
        if parsed[0] != year:
            continue
        paid, n = totals[entity_id]
        totals[entity_id] = (paid + float(total), n + int(count))
    return dict(totals)


def paid_totals_all_time(db: Session, kind: PaymentKind, entity_ids=None) -> Dict[int, tuple]:
    totals = defaultdict(lambda: (0.0, 0))
    for entity_id, _period, total, count in _grouped_rows(db, kind, entity_ids):
        paid, n = totals[entity_id]
        totals[entity_id] = (paid + float(total), n + int(count))
    return dict(totals)


# =====================
# PER-ENTITY STATUS
# =====================

def _status(kind: PaymentKind, entity, totals: Dict[int, tuple], annual: bool) -> EntityStatus:
    total_paid, count = totals.get(entity.id, (0.0, 0))
    expected = expected_for(kind, entity, annual=annual)
    return EntityStatus(
        entity_id=entity.id,
        expected=expected,
        total_paid=total_paid,
        payment_count=count,
        status=classify(kind, expected, total_paid),
        entity=entity,
    )


def entity_status(db: Session, kind: PaymentKind, entity, year=None, month=None) -> EntityStatus:
    """
    Status of one student or teacher.

    - year and month: that period, monthly expectation
    - year only: every period of that year, expectation x 12
    - neither: all payments ever made against one monthly expectation
    """
    if year is not None and month is not None:
        totals = paid_totals_for_period(db, kind, year, month, entity_ids=[entity.id])
        return _status(kind, entity, totals, annual=False)
    if year is not None:
        totals = paid_totals_for_year(db, kind, year, entity_ids=[entity.id])
        return _status(kind, entity, totals, annual=True)
    totals = paid_totals_all_time(db, kind, entity_ids=[entity.id])
    return _status(kind, entity, totals, annual=False)


def summarize(statuses: List[EntityStatus]) -> AggregateTotals:
    agg = AggregateTotals(statuses=statuses)
    for s in statuses:
        agg.total_paid_amount += s.total_paid
        agg.payment_count += s.payment_count
        if s.status is PaymentStatus.PAID:
            agg.paid_count += 1
        elif s.status is PaymentStatus.PARTIAL:
            agg.partial_count += 1
        else:
            agg.unpaid_count += 1
    return agg


def reconcile_all(db: Session, kind: PaymentKind, year, month=None) -> AggregateTotals:
    """Status of every student (or teacher) for a month, or for a year when month is None."""
    entity_model = kind.entity_model
    entities = db.query(entity_model).order_by(entity_model.id).all()

    if month is not None:
        totals = paid_totals_for_period(db, kind, year, month)
        annual = False
    else:
        totals = paid_totals_for_year(db, kind, year)
        annual = True

    return summarize([_status(kind, e, totals, annual) for e in entities])
