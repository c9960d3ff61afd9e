from __future__ import annotations

from dataclasses import dataclass

from ...common.numbers import round_whole
from ...core.constants import PROVIDENT_FUND_RATE, TAX_RATE
from ...users.model import SalaryProfile
from ..model import Deductions
from .base import PayrollCalculator


@dataclass
class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: pf = 12% of basic, tax = 10% of basic+hra+allowances,
    both rounded to whole amounts; the profile's own deductions go to `other`."""

    pf_rate: float = PROVIDENT_FUND_RATE
    tax_rate: float = TAX_RATE

    def deductions_for(self, salary: SalaryProfile) -> Deductions:
        return Deductions(
            pf=round_whole(salary.basic * self.pf_rate),
            tax=round_whole((salary.basic + salary.hra + salary.allowances) * self.tax_rate),
            other=salary.deductions,
        )
