from __future__ import annotations

from abc import ABC, abstractmethod

from ...common.numbers import round2
from ...users.model import SalaryProfile
from ..model import Deductions, PayrollTotals


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def deductions_for(self, salary: SalaryProfile) -> Deductions:
        """Statutory deductions for a monthly salary profile."""
        raise NotImplementedError

    def totals(
        self,
        *,
        basic: float,
        hra: float,
        allowances: float,
        overtime: float,
        bonus: float,
        deductions: Deductions,
    ) -> PayrollTotals:
        earnings = round2(basic + hra + allowances + overtime + bonus)
        deducted = round2(deductions.total)
        return PayrollTotals(
            total_earnings=earnings,
            total_deductions=deducted,
            net_salary=round2(earnings - deducted),
        )
