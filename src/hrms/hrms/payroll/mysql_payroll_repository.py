from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..common.pagination import Page, offset_for
from ..core.enums import PayrollStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, unique_violation_as, where_clause
from .model import Deductions, NewPayroll, Payroll
from .repository import PayrollRepository

_COLUMNS = """
    payroll_id, user_id, month, year, basic, hra, allowances, overtime, bonus,
    deduction_pf, deduction_tax, deduction_other,
    total_earnings, total_deductions, net_salary, status, paid_at, remarks, created_at
"""


def _money(value) -> float:
    return float(value or 0)


def _row_to_payroll(r: dict) -> Payroll:
    return Payroll(
        payroll_id=int(r["payroll_id"]),
        user_id=int(r["user_id"]),
        month=int(r["month"]),
        year=int(r["year"]),
        basic=_money(r["basic"]),
        hra=_money(r.get("hra")),
        allowances=_money(r.get("allowances")),
        overtime=_money(r.get("overtime")),
        bonus=_money(r.get("bonus")),
        deductions=Deductions(
            pf=_money(r.get("deduction_pf")),
            tax=_money(r.get("deduction_tax")),
            other=_money(r.get("deduction_other")),
        ),
        total_earnings=_money(r["total_earnings"]),
        total_deductions=_money(r["total_deductions"]),
        net_salary=_money(r["net_salary"]),
        status=PayrollStatus(r["status"]),
        paid_at=r.get("paid_at"),
        remarks=r.get("remarks"),
        created_at=r.get("created_at"),
    )


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, new_payroll: NewPayroll) -> int:
        # uq_payroll_user_period stops two concurrent generate runs from double-writing.
        with unique_violation_as("Payroll already exists for this period"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO payrolls(
                        user_id, month, year, basic, hra, allowances, overtime, bonus,
                        deduction_pf, deduction_tax, deduction_other,
                        total_earnings, total_deductions, net_salary, status, remarks
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(new_payroll.user_id),
                        int(new_payroll.month),
                        int(new_payroll.year),
                        new_payroll.basic,
                        new_payroll.hra,
                        new_payroll.allowances,
                        new_payroll.overtime,
                        new_payroll.bonus,
                        new_payroll.deductions.pf,
                        new_payroll.deductions.tax,
                        new_payroll.deductions.other,
                        new_payroll.totals.total_earnings,
                        new_payroll.totals.total_deductions,
                        new_payroll.totals.net_salary,
                        PayrollStatus.PENDING.value,
                        new_payroll.remarks,
                    ),
                )
                return int(cur.lastrowid)

    def get_by_id(self, payroll_id: int) -> Optional[Payroll]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM payrolls WHERE payroll_id=%s", (int(payroll_id),))
            r = fetchone(cur)
            return _row_to_payroll(r) if r else None

    def get_for_period(self, *, user_id: int, month: int, year: int) -> Optional[Payroll]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payrolls WHERE user_id=%s AND month=%s AND year=%s",
                (int(user_id), int(month), int(year)),
            )
            r = fetchone(cur)
            return _row_to_payroll(r) if r else None

    def save(self, payroll: Payroll) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payrolls
                SET basic=%s, hra=%s, allowances=%s, overtime=%s, bonus=%s,
                    deduction_pf=%s, deduction_tax=%s, deduction_other=%s,
                    total_earnings=%s, total_deductions=%s, net_salary=%s,
                    status=%s, paid_at=%s, remarks=%s
                WHERE payroll_id=%s
                """,
                (
                    payroll.basic,
                    payroll.hra,
                    payroll.allowances,
                    payroll.overtime,
                    payroll.bonus,
                    payroll.deductions.pf,
                    payroll.deductions.tax,
                    payroll.deductions.other,
                    payroll.total_earnings,
                    payroll.total_deductions,
                    payroll.net_salary,
                    payroll.status.value,
                    payroll.paid_at,
                    payroll.remarks,
                    int(payroll.payroll_id),
                ),
            )
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT 1 AS found FROM payrolls WHERE payroll_id=%s", (int(payroll.payroll_id),))
            return fetchone(cur) is not None

    def mark_paid(self, *, payroll_id: int, paid_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE payrolls SET status=%s, paid_at=%s WHERE payroll_id=%s AND status<>%s",
                (PayrollStatus.PAID.value, paid_at, int(payroll_id), PayrollStatus.PAID.value),
            )
            return cur.rowcount > 0

    def list_for_user(self, *, user_id: int, year: Optional[int] = None) -> Sequence[Payroll]:
        clauses = ["user_id=%s"]
        params: list[object] = [int(user_id)]
        if year is not None:
            clauses.append("year=%s")
            params.append(int(year))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM payrolls
                WHERE {where_clause(clauses)}
                ORDER BY year DESC, month DESC
                """,
                tuple(params),
            )
            return [_row_to_payroll(r) for r in fetchall(cur)]

    def list_page(
        self,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        status: Optional[PayrollStatus] = None,
        page: int,
        limit: int,
    ) -> Page[Payroll]:
        clauses: list[str] = []
        params: list[object] = []
        if month is not None:
            clauses.append("month=%s")
            params.append(int(month))
        if year is not None:
            clauses.append("year=%s")
            params.append(int(year))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        where = where_clause(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM payrolls WHERE {where}", tuple(params))
            total = int(fetchone(cur)["n"])
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM payrolls
                WHERE {where}
                ORDER BY year DESC, month DESC, payroll_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), offset_for(page, limit)]),
            )
            items = [_row_to_payroll(r) for r in fetchall(cur)]
        return Page(items=items, total=total, page=page, limit=limit)

    def list_for_year(self, year: int) -> Sequence[Payroll]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payrolls WHERE year=%s ORDER BY month, payroll_id",
                (int(year),),
            )
            return [_row_to_payroll(r) for r in fetchall(cur)]
