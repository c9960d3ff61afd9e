from __future__ import annotations

from flask import Blueprint, Flask, g, request

from ..common.web import AuthGuards, json_body, ok, ok_page, paging_args
from ..container import Container
from ..core.constants import DEFAULT_PAGE_LIMIT
from ..core.enums import Role
from .balance import balance_to_dict


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("leaves", __name__, url_prefix="/api/leaves")
    guards = AuthGuards(container.auth_service.identify)
    service = container.leave_service

    @bp.route("", methods=["POST"])
    @guards.login_required
    def apply_leave():
        payload = json_body()
        leave = service.apply(
            g.identity.user_id,
            leave_type=payload.get("leaveType"),
            start_date=payload.get("startDate"),
            end_date=payload.get("endDate"),
            reason=payload.get("reason", ""),
        )
        return ok(leave.to_dict(), message="Leave request submitted successfully", status=201)

    @bp.route("/my", methods=["GET"])
    @guards.login_required
    def my_leaves():
        result = service.list_mine(
            g.identity.user_id,
            status=request.args.get("status"),
            year=request.args.get("year"),
        )
        return ok(service.present(result.requests), leaveBalance=balance_to_dict(result.balance))

    @bp.route("/balance", methods=["GET"])
    @guards.login_required
    def my_balance():
        return ok(balance_to_dict(service.balance(g.identity.user_id)))

    @bp.route("/stats", methods=["GET"])
    @guards.roles_required(Role.HR, Role.ADMIN)
    def stats():
        return ok(service.stats())

    @bp.route("", methods=["GET"])
    @guards.roles_required(Role.HR, Role.ADMIN)
    def all_leaves():
        page, limit = paging_args(default_limit=DEFAULT_PAGE_LIMIT)
        result = service.list_all(status=request.args.get("status"), page=page, limit=limit)
        return ok_page(result, list(result.items))

    @bp.route("/<int:request_id>", methods=["GET"])
    @guards.login_required
    def get_leave(request_id: int):
        leave = service.get(request_id, caller=g.identity)
        return ok(service.present([leave])[0])

    @bp.route("/<int:request_id>/status", methods=["PUT"])
    @guards.roles_required(Role.HR, Role.ADMIN)
    def decide(request_id: int):
        payload = json_body()
        leave = service.decide(
            request_id,
            status=payload.get("status"),
            approver_id=g.identity.user_id,
            comments=payload.get("approverComments"),
        )
        return ok(leave.to_dict(), message=f"Leave request {leave.status.value} successfully")

    @bp.route("/<int:request_id>", methods=["DELETE"])
    @guards.login_required
    def cancel(request_id: int):
        service.cancel(request_id, caller=g.identity)
        return ok(message="Leave request cancelled successfully")

    app.register_blueprint(bp)
