from __future__ import annotations

from flask import Blueprint, Flask, g, request

from ..common.web import AuthGuards, json_body, ok, ok_page, paging_args
from ..container import Container
from ..core.constants import DEFAULT_ATTENDANCE_PAGE_LIMIT
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("attendance", __name__, url_prefix="/api/attendance")
    guards = AuthGuards(container.auth_service.identify)
    service = container.attendance_service

    @bp.route("/check-in", methods=["POST"])
    @guards.login_required
    def check_in():
        record = service.check_in(g.identity.user_id)
        return ok(record.to_dict(), message="Checked in successfully")

    @bp.route("/check-out", methods=["POST"])
    @guards.login_required
    def check_out():
        record = service.check_out(g.identity.user_id)
        return ok(record.to_dict(), message="Checked out successfully")

    @bp.route("/my", methods=["GET"])
    @guards.login_required
    def my_attendance():
        result = service.list_mine(
            g.identity.user_id,
            month=request.args.get("month"),
            year=request.args.get("year"),
        )
        return ok([r.to_dict() for r in result.records], summary=result.summary.to_dict())

    @bp.route("/today", methods=["GET"])
    @guards.login_required
    def today():
        record = service.today(g.identity.user_id)
        return ok(record.to_dict() if record else None)

    @bp.route("", methods=["GET"])
    @guards.roles_required(Role.HR, Role.ADMIN)
    def all_attendance():
        page, limit = paging_args(default_limit=DEFAULT_ATTENDANCE_PAGE_LIMIT)
        result = service.list_all(
            work_date=request.args.get("date"),
            user_id=request.args.get("userId"),
            page=page,
            limit=limit,
        )
        return ok_page(result, list(result.items))

    @bp.route("/stats", methods=["GET"])
    @guards.roles_required(Role.HR, Role.ADMIN)
    def stats():
        return ok(service.stats())

    @bp.route("/<int:attendance_id>", methods=["PUT"])
    @guards.roles_required(Role.HR, Role.ADMIN)
    def update(attendance_id: int):
        record = service.update(attendance_id, json_body())
        return ok(record.to_dict())

    app.register_blueprint(bp)
