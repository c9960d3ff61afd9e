import pytest

from src.hrms.hrms.core.enums import NotificationType
from src.hrms.hrms.core.exceptions import NotFoundError, ValidationError
from src.hrms.hrms.notifications.memory_notification_repository import InMemoryNotificationRepository
from src.hrms.hrms.notifications.service import NotificationService
from src.hrms.hrms.users.memory_user_repository import InMemoryUserRepository
from src.hrms.hrms.users.model import NewUser


def _service(*employee_ids):
    users = InMemoryUserRepository()
    ids = [
        users.create_user(
            NewUser(
                employee_id=employee_id,
                email=f"{employee_id.lower()}@example.com",
                password_hash="x",
                first_name=employee_id,
                last_name="Tester",
            )
        )
        for employee_id in employee_ids
    ]
    return NotificationService(InMemoryNotificationRepository(), users), ids


def test_create_defaults_to_info():
    service, (user_id,) = _service("EMP1")

    note = service.create(user_id=str(user_id), title="Hello", message="Welcome aboard")

    assert note.user_id == user_id
    assert note.type == NotificationType.INFO
    assert note.is_read is False
    assert note.to_dict()["isRead"] is False


def test_create_validates():
    service, (user_id,) = _service("EMP1")

    with pytest.raises(ValidationError):
        service.create(user_id=user_id, title="", message="x")
    with pytest.raises(ValidationError):
        service.create(user_id=user_id, title="x", message="x", type="shout")


def test_create_for_unknown_user_is_not_found():
    service, (user_id,) = _service("EMP1")

    with pytest.raises(NotFoundError) as exc:
        service.create(user_id=9999, title="Hi", message="there")

    assert str(exc.value) == "User not found"
    assert service.list(user_id, page=1, limit=20).page.total == 0


def test_list_with_unread_count():
    service, (first_user, second_user) = _service("EMP1", "EMP2")
    first = service.create(user_id=first_user, title="a", message="a")
    service.create(user_id=first_user, title="b", message="b", type="payroll")
    service.create(user_id=second_user, title="c", message="c")
    service.mark_read(first.notification_id, user_id=first_user)

    everything = service.list(first_user, page=1, limit=20)
    unread = service.list(first_user, unread_only=True, page=1, limit=20)

    assert everything.page.total == 2
    assert everything.unread_count == 1
    assert [n.title for n in unread.page.items] == ["b"]


def test_mark_read_is_owner_only():
    service, (owner, other) = _service("EMP1", "EMP2")
    note = service.create(user_id=owner, title="a", message="a")

    with pytest.raises(NotFoundError):
        service.mark_read(note.notification_id, user_id=other)
    with pytest.raises(NotFoundError):
        service.delete(note.notification_id, user_id=other)

    assert service.mark_read(note.notification_id, user_id=owner).is_read is True


def test_mark_all_read_and_delete():
    service, (first_user, second_user) = _service("EMP1", "EMP2")
    for title in ("a", "b", "c"):
        service.create(user_id=first_user, title=title, message=title)
    service.create(user_id=second_user, title="x", message="x")

    assert service.mark_all_read(first_user) == 3
    assert service.list(first_user, page=1, limit=20).unread_count == 0
    assert service.list(second_user, page=1, limit=20).unread_count == 1

    note = service.list(first_user, page=1, limit=1).page.items[0]
    service.delete(note.notification_id, user_id=first_user)
    assert service.list(first_user, page=1, limit=20).page.total == 2
