"""Integration tests for the startup catch-up"""

from datetime import date
from unittest.mock import MagicMock
from oar_bills.domain.models import AutoPayResult, BillStatus, SweepResult
from oar_bills.services.autopay import AutoPayBatchRunner
from oar_bills.services.overdue import OverdueSweep
from oar_bills.services.reconciler import StartupReconciler

TODAY = date(2025, 6, 15)


def _mock_steps():
    sweep = MagicMock(spec=OverdueSweep)
    sweep.run.return_value = SweepResult(checked=2, updated=2)
    autopay = MagicMock(spec=AutoPayBatchRunner)
    autopay.run.return_value = AutoPayResult(processed=1)
    return sweep, autopay


def test_runs_sweep_then_autopay():
    sweep, autopay = _mock_steps()
    calls = MagicMock()
    calls.attach_mock(sweep.run, "sweep")
    calls.attach_mock(autopay.run, "autopay")

    result = StartupReconciler(sweep, autopay).run(today=TODAY)

    assert [c[0] for c in calls.mock_calls] == ["sweep", "autopay"]
    assert result.overdue_check.updated == 2
    assert result.auto_pay.processed == 1
    assert result.skipped is False
    assert result.completed_at is not None


def test_runs_only_once_per_instance():
    sweep, autopay = _mock_steps()
    reconciler = StartupReconciler(sweep, autopay)

    reconciler.run(today=TODAY)
    second = reconciler.run(today=TODAY)

    assert second.skipped is True
    assert second.overdue_check.updated == 0
    assert second.auto_pay.processed == 0
    sweep.run.assert_called_once()
    autopay.run.assert_called_once()


def test_failed_sweep_does_not_block_autopay():
    sweep, autopay = _mock_steps()
    sweep.run.side_effect = RuntimeError("database unavailable")

    result = StartupReconciler(sweep, autopay).run(today=TODAY)

    assert result.overdue_check == SweepResult()
    assert result.auto_pay.processed == 1


def test_both_steps_failing_yields_zeroed_result():
    sweep, autopay = _mock_steps()
    sweep.run.side_effect = RuntimeError("sweep failed")
    autopay.run.side_effect = RuntimeError("autopay failed")
    reconciler = StartupReconciler(sweep, autopay)

    result = reconciler.run(today=TODAY)

    assert result.overdue_check == SweepResult()
    assert result.auto_pay == AutoPayResult()
    assert reconciler.executed is True


def test_catch_up_against_database(session_factory, store_bill, reload_bill):
    """Sweep marks both late bills overdue; auto-pay then settles its one"""
    store_bill(id="manual", due_date=date(2025, 6, 1))
    store_bill(id="auto", due_date=date(2025, 6, 10), is_auto_pay=True)

    reconciler = StartupReconciler(OverdueSweep(session_factory), AutoPayBatchRunner(session_factory))
    result = reconciler.run(today=TODAY)

    assert result.overdue_check.updated == 2
    assert result.auto_pay.processed == 1
    assert reload_bill("manual").status is BillStatus.OVERDUE

    auto = reload_bill("auto")
    assert auto.due_date == date(2025, 7, 10)
    assert auto.status is BillStatus.PENDING
