from __future__ import annotations

import sys
import threading
from datetime import datetime

import pytest

from src.hrms.hrms.core.enums import PayrollStatus
from src.hrms.hrms.core.exceptions import ConflictError
from src.hrms.hrms.payroll.memory_payroll_repository import InMemoryPayrollRepository
from src.hrms.hrms.payroll.model import Deductions, NewPayroll, PayrollTotals

THREADS = 8


@pytest.fixture(autouse=True)
def frequent_thread_switches():
    previous = sys.getswitchinterval()
    sys.setswitchinterval(1e-6)
    yield
    sys.setswitchinterval(previous)


def _slip(month, year=2024):
    return NewPayroll(
        user_id=1,
        month=month,
        year=year,
        basic=1000.0,
        hra=0.0,
        allowances=0.0,
        overtime=0.0,
        bonus=0.0,
        deductions=Deductions(),
        totals=PayrollTotals(total_earnings=1000.0, total_deductions=0.0, net_salary=1000.0),
    )


def _race(target):
    barrier = threading.Barrier(THREADS)
    outcomes = []

    def worker():
        barrier.wait()
        try:
            outcomes.append(target())
        except ConflictError as exc:
            outcomes.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(THREADS)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return outcomes


def test_concurrent_generation_keeps_one_slip_per_period():
    repo = InMemoryPayrollRepository()

    for year in (2023, 2024, 2025):
        for month in range(1, 13):
            outcomes = _race(lambda: repo.create(_slip(month, year)))

            assert sum(isinstance(o, int) for o in outcomes) == 1
            assert sum(isinstance(o, ConflictError) for o in outcomes) == THREADS - 1

    for year in (2023, 2024, 2025):
        assert [p.month for p in repo.list_for_year(year)] == list(range(1, 13))


def test_concurrent_mark_paid_applies_once():
    repo = InMemoryPayrollRepository()
    payroll_id = repo.create(_slip(3))

    outcomes = _race(lambda: repo.mark_paid(payroll_id=payroll_id, paid_at=datetime(2024, 4, 1, 10)))

    assert outcomes.count(True) == 1
    assert repo.get_by_id(payroll_id).status == PayrollStatus.PAID
