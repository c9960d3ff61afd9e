from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import isoformat_or_none
from ..core.enums import PayrollStatus


@dataclass(frozen=True)
class Deductions:
    pf: float = 0.0
    tax: float = 0.0
    other: float = 0.0

    @property
    def total(self) -> float:
        return self.pf + self.tax + self.other

    def to_dict(self) -> dict:
        return {"pf": self.pf, "tax": self.tax, "other": self.other}


@dataclass(frozen=True)
class PayrollTotals:
    total_earnings: float
    total_deductions: float
    net_salary: float


@dataclass(frozen=True)
class Payroll:
    """One salary slip per (user, month, year).

    Totals are always derived from the components by a PayrollCalculator.
    """

    payroll_id: int
    user_id: int
    month: int
    year: int
    basic: float
    hra: float = 0.0
    allowances: float = 0.0
    overtime: float = 0.0
    bonus: float = 0.0
    deductions: Deductions = field(default_factory=Deductions)
    total_earnings: float = 0.0
    total_deductions: float = 0.0
    net_salary: float = 0.0
    status: PayrollStatus = PayrollStatus.PENDING
    paid_at: Optional[datetime] = None
    remarks: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self, user: Optional[dict] = None) -> dict[str, Any]:
        return {
            "id": self.payroll_id,
            "user": user if user is not None else self.user_id,
            "month": self.month,
            "year": self.year,
            "basic": self.basic,
            "hra": self.hra,
            "allowances": self.allowances,
            "overtime": self.overtime,
            "bonus": self.bonus,
            "deductions": self.deductions.to_dict(),
            "totalEarnings": self.total_earnings,
            "totalDeductions": self.total_deductions,
            "netSalary": self.net_salary,
            "status": self.status.value,
            "paidAt": isoformat_or_none(self.paid_at),
            "remarks": self.remarks,
            "createdAt": isoformat_or_none(self.created_at),
        }


@dataclass(frozen=True)
class NewPayroll:
    user_id: int
    month: int
    year: int
    basic: float
    hra: float
    allowances: float
    overtime: float
    bonus: float
    deductions: Deductions
    totals: PayrollTotals
    remarks: Optional[str] = None


@dataclass(frozen=True)
class GenerationResult:
    """Batch outcome: created slips plus one readable line per skipped/failed employee."""

    created: list[Payroll]
    errors: list[str]
