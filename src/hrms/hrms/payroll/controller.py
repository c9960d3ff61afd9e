from __future__ import annotations

from flask import Blueprint, Flask, g, request

from ..common.web import AuthGuards, json_body, ok, ok_page, paging_args
from ..container import Container
from ..core.constants import DEFAULT_PAGE_LIMIT
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("payroll", __name__, url_prefix="/api/payroll")
    guards = AuthGuards(container.auth_service.identify)
    service = container.payroll_service

    @bp.route("/my", methods=["GET"])
    @guards.login_required
    def my_payroll():
        records = service.list_mine(g.identity.user_id, year=request.args.get("year"))
        return ok([p.to_dict() for p in records])

    @bp.route("/stats", methods=["GET"])
    @guards.roles_required(Role.HR, Role.ADMIN)
    def stats():
        return ok(service.stats(year=request.args.get("year")))

    @bp.route("/generate", methods=["POST"])
    @guards.roles_required(Role.ADMIN)
    def generate():
        payload = json_body()
        result = service.generate(
            month=payload.get("month"),
            year=payload.get("year"),
            employee_ids=payload.get("employeeIds"),
        )
        return ok(
            [p.to_dict() for p in result.created],
            message=f"Generated {len(result.created)} payroll records",
            status=201,
            errors=result.errors,
        )

    @bp.route("", methods=["GET"])
    @guards.roles_required(Role.HR, Role.ADMIN)
    def all_payroll():
        page, limit = paging_args(default_limit=DEFAULT_PAGE_LIMIT)
        result = service.list_all(
            month=request.args.get("month"),
            year=request.args.get("year"),
            status=request.args.get("status"),
            page=page,
            limit=limit,
        )
        return ok_page(result, list(result.items))

    @bp.route("/<int:payroll_id>", methods=["GET"])
    @guards.login_required
    def get_slip(payroll_id: int):
        payroll = service.get(payroll_id, caller=g.identity)
        return ok(service.slip(payroll))

    @bp.route("/<int:payroll_id>", methods=["PUT"])
    @guards.roles_required(Role.ADMIN)
    def update(payroll_id: int):
        payroll = service.update(payroll_id, json_body())
        return ok(payroll.to_dict())

    @bp.route("/<int:payroll_id>/process", methods=["PUT"])
    @guards.roles_required(Role.ADMIN)
    def process(payroll_id: int):
        payroll = service.process(payroll_id)
        return ok(payroll.to_dict(), message="Payroll processed successfully")

    app.register_blueprint(bp)
