from __future__ import annotations

from typing import Iterable, Mapping

from ..core.constants import LEAVE_ALLOTMENTS
from ..core.enums import LeaveType
from .model import BalanceEntry, LeaveRequest


def compute_balance(
    approved: Iterable[LeaveRequest],
    allotments: Mapping[LeaveType, int] = LEAVE_ALLOTMENTS,
) -> dict[LeaveType, BalanceEntry]:
    """Yearly allotment minus approved days, per allotted leave type.

    Types without an allotment (unpaid, maternity...) are not tracked.
    Remaining may go negative.
    """
    used = {leave_type: 0 for leave_type in allotments}
    for request in approved:
        if request.leave_type in used:
            used[request.leave_type] += request.total_days
    return {leave_type: BalanceEntry(total=total, used=used[leave_type]) for leave_type, total in allotments.items()}


def balance_to_dict(balance: Mapping[LeaveType, BalanceEntry]) -> dict:
    return {leave_type.value: entry.to_dict() for leave_type, entry in balance.items()}
