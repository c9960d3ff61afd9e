from __future__ import annotations

from flask import Blueprint, Flask, g, request

from ..common.web import AuthGuards, json_body, ok, ok_page, paging_args
from ..container import Container
from ..core.constants import DEFAULT_PAGE_LIMIT
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    guards = AuthGuards(container.auth_service.identify)
    auth = container.auth_service
    employees = container.employee_service

    auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

    @auth_bp.route("/register", methods=["POST"])
    def register_user():
        payload = json_body()
        result = auth.register(
            employee_id=payload.get("employeeId", ""),
            email=payload.get("email", ""),
            password=payload.get("password", ""),
            first_name=payload.get("firstName", ""),
            last_name=payload.get("lastName", ""),
        )
        return ok(
            result.user.to_public_dict(),
            message="Registration successful. Please verify your email.",
            status=201,
            token=result.token,
        )

    @auth_bp.route("/login", methods=["POST"])
    def login():
        payload = json_body()
        result = auth.authenticate(payload.get("email", ""), payload.get("password", ""))
        return ok(result.user.to_public_dict(), token=result.token)

    @auth_bp.route("/me", methods=["GET"])
    @guards.login_required
    def me():
        return ok(auth.me(g.identity.user_id).to_public_dict())

    @auth_bp.route("/forgot-password", methods=["POST"])
    def forgot_password():
        auth.forgot_password(json_body().get("email", ""))
        return ok(message="Password reset email sent")

    @auth_bp.route("/reset-password/<token>", methods=["PUT"])
    def reset_password(token: str):
        result = auth.reset_password(token, json_body().get("password", ""))
        return ok(message="Password reset successful", token=result.token)

    @auth_bp.route("/verify-email/<token>", methods=["GET"])
    def verify_email(token: str):
        auth.verify_email(token)
        return ok(message="Email verified successfully")

    employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")

    @employees_bp.route("", methods=["GET"])
    @guards.roles_required(Role.HR, Role.ADMIN)
    def list_employees():
        page, limit = paging_args(default_limit=DEFAULT_PAGE_LIMIT)
        result = employees.list(
            search=request.args.get("search"),
            department=request.args.get("department"),
            role=request.args.get("role"),
            page=page,
            limit=limit,
        )
        return ok_page(result, result.map(lambda u: u.to_public_dict()))

    @employees_bp.route("", methods=["POST"])
    @guards.roles_required(Role.HR, Role.ADMIN)
    def create_employee():
        user = employees.create(caller=g.identity, payload=json_body())
        return ok(user.to_public_dict(), status=201)

    @employees_bp.route("/stats", methods=["GET"])
    @guards.roles_required(Role.HR, Role.ADMIN)
    def employee_stats():
        return ok(employees.stats())

    @employees_bp.route("/<int:user_id>", methods=["GET"])
    @guards.login_required
    def get_employee(user_id: int):
        return ok(employees.get(caller=g.identity, user_id=user_id).to_public_dict())

    @employees_bp.route("/<int:user_id>", methods=["PUT"])
    @guards.login_required
    def update_employee(user_id: int):
        user = employees.update(caller=g.identity, user_id=user_id, payload=json_body())
        return ok(user.to_public_dict())

    @employees_bp.route("/<int:user_id>", methods=["DELETE"])
    @guards.roles_required(Role.ADMIN)
    def delete_employee(user_id: int):
        employees.delete(caller=g.identity, user_id=user_id)
        return ok(message="Employee deleted successfully")

    app.register_blueprint(auth_bp)
    app.register_blueprint(employees_bp)
