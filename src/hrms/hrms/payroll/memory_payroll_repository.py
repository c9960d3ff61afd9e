from __future__ import annotations

import dataclasses
import threading
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.pagination import Page, slice_page
from ..core.enums import PayrollStatus
from ..core.exceptions import ConflictError
from .model import NewPayroll, Payroll
from .repository import PayrollRepository


def _newest_period_first(items: list[Payroll]) -> list[Payroll]:
    return sorted(items, key=lambda p: (p.year, p.month, p.payroll_id), reverse=True)


class InMemoryPayrollRepository(PayrollRepository):
    def __init__(self):
        self._by_id: dict[int, Payroll] = {}
        self._id = 0
        self._lock = threading.Lock()

    def create(self, new_payroll: NewPayroll) -> int:
        with self._lock:
            if self.get_for_period(user_id=new_payroll.user_id, month=new_payroll.month, year=new_payroll.year):
                raise ConflictError("Payroll already exists for this period")
            self._id += 1
            self._by_id[self._id] = Payroll(
                payroll_id=self._id,
                user_id=int(new_payroll.user_id),
                month=new_payroll.month,
                year=new_payroll.year,
                basic=new_payroll.basic,
                hra=new_payroll.hra,
                allowances=new_payroll.allowances,
                overtime=new_payroll.overtime,
                bonus=new_payroll.bonus,
                deductions=new_payroll.deductions,
                total_earnings=new_payroll.totals.total_earnings,
                total_deductions=new_payroll.totals.total_deductions,
                net_salary=new_payroll.totals.net_salary,
                remarks=new_payroll.remarks,
                created_at=now_local(),
            )
            return self._id

    def get_by_id(self, payroll_id: int) -> Optional[Payroll]:
        return self._by_id.get(int(payroll_id))

    def get_for_period(self, *, user_id: int, month: int, year: int) -> Optional[Payroll]:
        return next(
            (
                p
                for p in list(self._by_id.values())
                if p.user_id == int(user_id) and p.month == int(month) and p.year == int(year)
            ),
            None,
        )

    def save(self, payroll: Payroll) -> bool:
        with self._lock:
            if payroll.payroll_id not in self._by_id:
                return False
            self._by_id[payroll.payroll_id] = payroll
            return True

    def mark_paid(self, *, payroll_id: int, paid_at: datetime) -> bool:
        with self._lock:
            p = self._by_id.get(int(payroll_id))
            if not p or p.status == PayrollStatus.PAID:
                return False
            self._by_id[p.payroll_id] = dataclasses.replace(p, status=PayrollStatus.PAID, paid_at=paid_at)
            return True

    def list_for_user(self, *, user_id: int, year: Optional[int] = None) -> Sequence[Payroll]:
        items = [
            p for p in list(self._by_id.values()) if p.user_id == int(user_id) and (year is None or p.year == int(year))
        ]
        return _newest_period_first(items)

    def list_page(
        self,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        status: Optional[PayrollStatus] = None,
        page: int,
        limit: int,
    ) -> Page[Payroll]:
        items = list(self._by_id.values())
        if month is not None:
            items = [p for p in items if p.month == int(month)]
        if year is not None:
            items = [p for p in items if p.year == int(year)]
        if status is not None:
            items = [p for p in items if p.status == status]
        return slice_page(_newest_period_first(items), page=page, limit=limit)

    def list_for_year(self, year: int) -> Sequence[Payroll]:
        items = [p for p in list(self._by_id.values()) if p.year == int(year)]
        return sorted(items, key=lambda p: (p.month, p.payroll_id))
