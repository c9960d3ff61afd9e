from __future__ import annotations

from flask import Blueprint, Flask, g, request

from ..common.web import AuthGuards, json_body, ok, ok_page, paging_args
from ..container import Container
from ..core.constants import DEFAULT_NOTIFICATION_PAGE_LIMIT
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")
    guards = AuthGuards(container.auth_service.identify)
    service = container.notification_service

    @bp.route("", methods=["GET"])
    @guards.login_required
    def list_notifications():
        page, limit = paging_args(default_limit=DEFAULT_NOTIFICATION_PAGE_LIMIT)
        result = service.list(
            g.identity.user_id,
            unread_only=request.args.get("unreadOnly") == "true",
            page=page,
            limit=limit,
        )
        return ok_page(result.page, result.page.map(lambda n: n.to_dict()), unreadCount=result.unread_count)

    @bp.route("", methods=["POST"])
    @guards.roles_required(Role.ADMIN)
    def create_notification():
        payload = json_body()
        notification = service.create(
            user_id=payload.get("userId"),
            title=payload.get("title", ""),
            message=payload.get("message", ""),
            type=payload.get("type"),
            link=payload.get("link"),
        )
        return ok(notification.to_dict(), status=201)

    @bp.route("/read-all", methods=["PUT"])
    @guards.login_required
    def mark_all_read():
        service.mark_all_read(g.identity.user_id)
        return ok(message="All notifications marked as read")

    @bp.route("/<int:notification_id>/read", methods=["PUT"])
    @guards.login_required
    def mark_read(notification_id: int):
        notification = service.mark_read(notification_id, user_id=g.identity.user_id)
        return ok(notification.to_dict())

    @bp.route("/<int:notification_id>", methods=["DELETE"])
    @guards.login_required
    def delete_notification(notification_id: int):
        service.delete(notification_id, user_id=g.identity.user_id)
        return ok(message="Notification deleted")

    app.register_blueprint(bp)
