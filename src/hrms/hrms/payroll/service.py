from __future__ import annotations

import dataclasses
import logging
from collections import defaultdict
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.numbers import round2
from ..common.pagination import Page
from ..common.validators import require_enum, require_int, require_non_negative
from ..core.enums import PayrollStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from ..users.tokens import Identity
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import Deductions, GenerationResult, NewPayroll, Payroll
from .repository import PayrollRepository

logger = logging.getLogger(__name__)

_NOT_FOUND = "Payroll record not found"
_EARNING_FIELDS = ("basic", "hra", "allowances", "overtime", "bonus")
_DEDUCTION_FIELDS = ("pf", "tax", "other")


def _require_month(value: Any) -> int:
    month = require_int(value, "Month")
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    return month


class PayrollService:
    """Use cases: generate monthly slips, edit, mark paid, listings, stats."""

    def __init__(
        self,
        payrolls: PayrollRepository,
        users: UserRepository,
        *,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self._payrolls = payrolls
        self._users = users
        self._calculator = calculator or StandardPayrollCalculator()

    def generate(self, *, month: Any, year: Any, employee_ids: Optional[Sequence[Any]] = None) -> GenerationResult:
        """Create one pending slip per target employee for the period.

        Not atomic across the batch: existing slips are skipped and
        per-employee failures are collected instead of aborting.
        """
        month = _require_month(month)
        year = require_int(year, "Year")
        if employee_ids and not isinstance(employee_ids, (list, tuple)):
            raise ValidationError("employeeIds must be a list")
        ids = [require_int(i, "Employee id") for i in employee_ids] if employee_ids else None

        created: list[Payroll] = []
        errors: list[str] = []
        for employee in self._users.list_active(user_ids=ids):
            if self._payrolls.get_for_period(user_id=employee.user_id, month=month, year=year):
                errors.append(f"Payroll already exists for {employee.full_name}")
                continue
            try:
                payroll_id = self._payrolls.create(self._draft(employee, month=month, year=year))
            except Exception as exc:
                logger.exception("Payroll generation failed for user %s", employee.user_id)
                errors.append(f"Error generating payroll for {employee.full_name}: {exc}")
                continue
            created.append(self._payrolls.get_by_id(payroll_id))

        logger.info("Generated %s payroll records for %02d/%s (%s skipped)", len(created), month, year, len(errors))
        return GenerationResult(created=created, errors=errors)

    def _draft(self, employee: User, *, month: int, year: int) -> NewPayroll:
        salary = employee.salary
        deductions = self._calculator.deductions_for(salary)
        return NewPayroll(
            user_id=employee.user_id,
            month=month,
            year=year,
            basic=salary.basic,
            hra=salary.hra,
            allowances=salary.allowances,
            overtime=0.0,
            bonus=0.0,
            deductions=deductions,
            totals=self._calculator.totals(
                basic=salary.basic,
                hra=salary.hra,
                allowances=salary.allowances,
                overtime=0.0,
                bonus=0.0,
                deductions=deductions,
            ),
        )

    def update(self, payroll_id: int, payload: Mapping[str, Any], *, now: Optional[datetime] = None) -> Payroll:
        """Edit components, remarks or status. Caller-supplied totals are ignored."""
        payroll = self._require(payroll_id)

        changes: dict[str, Any] = {
            name: require_non_negative(payload[name], name) for name in _EARNING_FIELDS if name in payload
        }
        if "deductions" in payload:
            parts = payload["deductions"]
            if not isinstance(parts, Mapping):
                raise ValidationError("deductions must be an object")
            changes["deductions"] = dataclasses.replace(
                payroll.deductions,
                **{k: require_non_negative(parts[k], f"deductions.{k}") for k in _DEDUCTION_FIELDS if k in parts},
            )
        if "remarks" in payload:
            changes["remarks"] = payload["remarks"] or None
        if "status" in payload:
            status = require_enum(PayrollStatus, payload["status"], "Status")
            changes["status"] = status
            if status == PayrollStatus.PAID and payroll.paid_at is None:
                changes["paid_at"] = now or now_local()

        updated = dataclasses.replace(payroll, **changes)
        totals = self._calculator.totals(
            basic=updated.basic,
            hra=updated.hra,
            allowances=updated.allowances,
            overtime=updated.overtime,
            bonus=updated.bonus,
            deductions=updated.deductions,
        )
        updated = dataclasses.replace(
            updated,
            total_earnings=totals.total_earnings,
            total_deductions=totals.total_deductions,
            net_salary=totals.net_salary,
        )
        if not self._payrolls.save(updated):
            raise NotFoundError(_NOT_FOUND)
        return self._payrolls.get_by_id(payroll.payroll_id)

    def process(self, payroll_id: int, *, now: Optional[datetime] = None) -> Payroll:
        payroll = self._require(payroll_id)
        if payroll.status == PayrollStatus.PAID or not self._payrolls.mark_paid(
            payroll_id=payroll.payroll_id, paid_at=now or now_local()
        ):
            raise ConflictError("Payroll has already been paid")
        logger.info("Payroll %s marked paid", payroll.payroll_id)
        return self._payrolls.get_by_id(payroll.payroll_id)

    def get(self, payroll_id: int, *, caller: Identity) -> Payroll:
        payroll = self._require(payroll_id)
        if not caller.is_privileged and payroll.user_id != caller.user_id:
            raise AuthorizationError("Not authorized to view this payroll")
        return payroll

    def list_mine(self, user_id: int, *, year: Any = None) -> list[Payroll]:
        return list(self._payrolls.list_for_user(user_id=user_id, year=require_int(year, "Year") if year else None))

    def list_all(
        self,
        *,
        month: Any = None,
        year: Any = None,
        status: Any = None,
        page: int,
        limit: int,
    ) -> Page[dict]:
        result = self._payrolls.list_page(
            month=_require_month(month) if month else None,
            year=require_int(year, "Year") if year else None,
            status=require_enum(PayrollStatus, status, "Status") if status else None,
            page=page,
            limit=limit,
        )
        users = self._users.get_by_ids([p.user_id for p in result.items])

        def _with_user(payroll: Payroll) -> dict:
            user = users.get(payroll.user_id)
            return payroll.to_dict(user=user.to_summary_dict() if user else None)

        return dataclasses.replace(result, items=result.map(_with_user))

    def slip(self, payroll: Payroll) -> dict:
        """Slip view: the record with the employee's summary and bank details."""
        user = self._users.get_by_id(payroll.user_id)
        if not user:
            return payroll.to_dict()
        return payroll.to_dict(user={**user.to_summary_dict(), "bankDetails": dict(user.bank_details)})

    def stats(self, *, year: Any = None) -> dict:
        year = require_int(year, "Year") if year else now_local().year
        records = self._payrolls.list_for_year(year)

        monthly: dict[int, dict] = {}
        by_status: dict[str, dict] = defaultdict(lambda: {"count": 0, "total": 0.0})
        for p in records:
            m = monthly.setdefault(
                p.month,
                {"_id": p.month, "totalNetSalary": 0.0, "totalEarnings": 0.0, "totalDeductions": 0.0, "count": 0},
            )
            m["totalNetSalary"] += p.net_salary
            m["totalEarnings"] += p.total_earnings
            m["totalDeductions"] += p.total_deductions
            m["count"] += 1
            s = by_status[p.status.value]
            s["count"] += 1
            s["total"] += p.net_salary

        monthly_stats = []
        for month in sorted(monthly):
            m = monthly[month]
            monthly_stats.append(
                {
                    **m,
                    "totalNetSalary": round2(m["totalNetSalary"]),
                    "totalEarnings": round2(m["totalEarnings"]),
                    "totalDeductions": round2(m["totalDeductions"]),
                }
            )

        return {
            "monthlyStats": monthly_stats,
            "statusStats": [{"_id": k, "count": v["count"], "total": round2(v["total"])} for k, v in by_status.items()],
            "yearlyTotal": {
                "totalNetSalary": round2(sum(p.net_salary for p in records)),
                "totalEarnings": round2(sum(p.total_earnings for p in records)),
                "totalDeductions": round2(sum(p.total_deductions for p in records)),
            },
        }

    def _require(self, payroll_id: int) -> Payroll:
        payroll = self._payrolls.get_by_id(int(payroll_id))
        if not payroll:
            raise NotFoundError(_NOT_FOUND)
        return payroll
