from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..common.pagination import Page
from ..core.enums import PayrollStatus
from .model import NewPayroll, Payroll


class PayrollRepository(Protocol):
    """Payroll store. (user_id, month, year) is unique; a duplicate insert
    must raise ConflictError."""

    def create(self, new_payroll: NewPayroll) -> int:
        raise NotImplementedError

    def get_by_id(self, payroll_id: int) -> Optional[Payroll]:
        raise NotImplementedError

    def get_for_period(self, *, user_id: int, month: int, year: int) -> Optional[Payroll]:
        raise NotImplementedError

    def save(self, payroll: Payroll) -> bool:
        """Overwrite the editable fields of an existing record."""

        raise NotImplementedError

    def mark_paid(self, *, payroll_id: int, paid_at: datetime) -> bool:
        """Set status=paid unless it already is."""

        raise NotImplementedError

    def list_for_user(self, *, user_id: int, year: Optional[int] = None) -> Sequence[Payroll]:
        """Newest period first."""

        raise NotImplementedError

    def list_page(
        self,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        status: Optional[PayrollStatus] = None,
        page: int,
        limit: int,
    ) -> Page[Payroll]:
        raise NotImplementedError

    def list_for_year(self, year: int) -> Sequence[Payroll]:
        raise NotImplementedError
