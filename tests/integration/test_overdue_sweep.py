"""Integration tests for the overdue status sweep"""

from datetime import date
from unittest.mock import patch
from oar_bills.domain.models import BillStatus, Frequency
from oar_bills.infrastructure.database.repositories import BillRepository
from oar_bills.services.overdue import OverdueSweep

TODAY = date(2025, 6, 15)


def test_sweep_marks_past_due_pending_bills(session_factory, store_bill, reload_bill):
    store_bill(id="late", due_date=date(2025, 6, 10))
    store_bill(id="due-today", due_date=date(2025, 6, 15))
    store_bill(id="upcoming", due_date=date(2025, 6, 20))
    store_bill(id="archived", due_date=date(2025, 6, 1), is_archived=True)

    result = OverdueSweep(session_factory).run(today=TODAY)

    assert result.checked == 1
    assert result.updated == 1
    assert reload_bill("late").status is BillStatus.OVERDUE
    assert reload_bill("due-today").status is BillStatus.PENDING
    assert reload_bill("upcoming").status is BillStatus.PENDING
    assert reload_bill("archived").status is BillStatus.PENDING


def test_sweep_ignores_paid_and_overdue_bills(session_factory, store_bill):
    store_bill(id="overdue", due_date=date(2025, 6, 1), status=BillStatus.OVERDUE)
    store_bill(id="paid", frequency=Frequency.ONCE, due_date=date(2025, 6, 1), status=BillStatus.PAID, amount_due=0)

    result = OverdueSweep(session_factory).run(today=TODAY)

    assert result.checked == 0
    assert result.updated == 0


def test_sweep_skips_bill_changed_by_another_writer(session_factory, make_bill, store_bill, reload_bill):
    """Bill was paid between the read and the conditional write"""
    store_bill(id="raced", frequency=Frequency.ONCE, due_date=date(2025, 6, 1), status=BillStatus.PAID, amount_due=0)
    stale = make_bill(id="raced", frequency=Frequency.ONCE, due_date=date(2025, 6, 1))

    with patch.object(BillRepository, "get_overdue_candidates", return_value=[stale]):
        result = OverdueSweep(session_factory).run(today=TODAY)

    assert result.checked == 1
    assert result.updated == 0
    assert reload_bill("raced").status is BillStatus.PAID


def test_conditional_write_only_applies_once(db, store_bill):
    store_bill(id="late", due_date=date(2025, 6, 10))
    repo = BillRepository(db)

    assert repo.mark_overdue_if_pending("late") is True
    assert repo.mark_overdue_if_pending("late") is False
    assert repo.mark_overdue_if_pending("missing") is False
