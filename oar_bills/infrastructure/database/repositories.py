"""Data access layer for bills and payments"""

import calendar
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload
from oar_bills.infrastructure.database.models import BillRecord, TagRecord, TransactionRecord
from oar_bills.domain.models import Bill, BillState, BillStatus, Frequency, PaymentResult, Transaction


def to_bill(record: BillRecord) -> Bill:
    return Bill(
        id=record.id,
        title=record.title,
        base_amount=record.base_amount,
        amount_due=record.amount_due,
        due_date=record.due_date,
        end_date=record.end_date,
        frequency=Frequency(record.frequency),
        status=BillStatus(record.status),
        is_auto_pay=record.is_auto_pay,
        is_variable=record.is_variable,
        is_archived=record.is_archived,
        tags=[tag.slug for tag in record.tags],
    )


def to_transaction(record: TransactionRecord) -> Transaction:
    return Transaction(
        id=record.id,
        bill_id=record.bill_id,
        amount=record.amount,
        paid_at=record.paid_at,
        notes=record.notes,
    )


class BillRepository:
    """Repository for bills"""

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(BillRecord).options(selectinload(BillRecord.tags))

    def create(self, bill: Bill) -> Bill:
        """Persist a new bill; tags are matched by slug and created if missing"""
        record = BillRecord(
            title=bill.title,
            base_amount=bill.base_amount,
            amount_due=bill.amount_due,
            due_date=bill.due_date,
            end_date=bill.end_date,
            frequency=Frequency(bill.frequency).value,
            status=BillStatus(bill.status).value,
            is_auto_pay=bill.is_auto_pay,
            is_variable=bill.is_variable,
            is_archived=bill.is_archived,
        )
        if bill.id:
            record.id = bill.id
        for slug in bill.tags:
            tag = self.db.query(TagRecord).filter(TagRecord.slug == slug).first()
            record.tags.append(tag or TagRecord(name=slug, slug=slug))

        self.db.add(record)
        self.db.flush()
        return to_bill(record)

    def get(self, bill_id: str) -> Optional[Bill]:
        record = self._query().filter(BillRecord.id == bill_id).first()
        return to_bill(record) if record else None

    def get_autopay_eligible(self, today: date) -> List[Bill]:
        """
        Unpaid auto-pay bills due today or earlier.

        Uses status != paid rather than status == pending so bills the overdue
        sweep has just marked overdue are still settled.
        """
        records = (
            self._query()
            .filter(
                BillRecord.is_auto_pay.is_(True),
                BillRecord.status != BillStatus.PAID.value,
                BillRecord.due_date <= today,
                BillRecord.is_archived.is_(False),
            )
            .order_by(BillRecord.due_date)
            .all()
        )
        return [to_bill(r) for r in records]

    def get_overdue_candidates(self, today: date) -> List[Bill]:
        """Pending, non-archived bills whose due date has passed"""
        records = (
            self._query()
            .filter(
                BillRecord.status == BillStatus.PENDING.value,
                BillRecord.is_archived.is_(False),
                BillRecord.due_date < today,
            )
            .all()
        )
        return [to_bill(r) for r in records]

    def get_active(self, tag: Optional[str] = None) -> List[Bill]:
        """Non-archived, unpaid bills, optionally limited to a tag slug"""
        query = self._query().filter(
            BillRecord.is_archived.is_(False),
            BillRecord.status != BillStatus.PAID.value,
        )
        if tag:
            query = query.filter(BillRecord.tags.any(TagRecord.slug == tag))
        return [to_bill(r) for r in query.order_by(BillRecord.due_date).all()]

    def mark_overdue_if_pending(self, bill_id: str) -> bool:
        """
        Conditional status write: only succeeds while the bill is still pending.

        Returns False when a concurrent writer changed the bill first.
        """
        matched = (
            self.db.query(BillRecord)
            .filter(BillRecord.id == bill_id, BillRecord.status == BillStatus.PENDING.value)
            .update({BillRecord.status: BillStatus.OVERDUE.value}, synchronize_session="fetch")
        )
        return matched == 1

    def apply_state(self, bill_id: str, state: PaymentResult | BillState) -> None:
        """Write a computed due date / amount due / status to the bill"""
        self.db.query(BillRecord).filter(BillRecord.id == bill_id).update(
            {
                BillRecord.due_date: state.due_date,
                BillRecord.amount_due: state.amount_due,
                BillRecord.status: BillStatus(state.status).value,
            },
            synchronize_session="fetch",
        )


class TransactionRepository:
    """Repository for payment records; also serves as estimation history"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, bill_id: str, amount: int, paid_at: date, notes: Optional[str] = None) -> Transaction:
        record = TransactionRecord(bill_id=bill_id, amount=amount, paid_at=paid_at, notes=notes)
        self.db.add(record)
        self.db.flush()  # Get ID without committing
        return to_transaction(record)

    def get(self, transaction_id: str) -> Optional[Transaction]:
        record = self.db.query(TransactionRecord).filter(TransactionRecord.id == transaction_id).first()
        return to_transaction(record) if record else None

    def update(self, transaction_id: str, amount: int, paid_at: date, notes: Optional[str]) -> None:
        self.db.query(TransactionRecord).filter(TransactionRecord.id == transaction_id).update(
            {
                TransactionRecord.amount: amount,
                TransactionRecord.paid_at: paid_at,
                TransactionRecord.notes: notes,
            },
            synchronize_session="fetch",
        )

    def delete(self, transaction_id: str) -> None:
        self.db.query(TransactionRecord).filter(TransactionRecord.id == transaction_id).delete(
            synchronize_session="fetch"
        )

    def by_bill_id(self, bill_id: str, limit: Optional[int] = None) -> List[Transaction]:
        """Payments for a bill, most recent first"""
        query = (
            self.db.query(TransactionRecord)
            .filter(TransactionRecord.bill_id == bill_id)
            .order_by(TransactionRecord.paid_at.desc(), TransactionRecord.created_at.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return [to_transaction(r) for r in query.all()]

    def by_bill_id_and_month(self, bill_id: str, year: int, month: int) -> List[Transaction]:
        """Payments for a bill within one calendar month, most recent first"""
        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        records = (
            self.db.query(TransactionRecord)
            .filter(
                TransactionRecord.bill_id == bill_id,
                TransactionRecord.paid_at >= first,
                TransactionRecord.paid_at <= last,
            )
            .order_by(TransactionRecord.paid_at.desc())
            .all()
        )
        return [to_transaction(r) for r in records]
