"""Example: drive the service layer directly, without Flask.

Controllers are thin; the business rules live in the services.
"""

from datetime import datetime

from src.hrms.hrms.container import build_container


def main():
    container = build_container(backend="memory", jwt_secret="example-secret-0123456789abcdef0123", seed_demo=True)
    employee = container.users_repo.get_by_email("employee@demo.com")

    attendance = container.attendance_service
    attendance.check_in(employee.user_id, now=datetime(2024, 3, 4, 9, 0))
    record = attendance.check_out(employee.user_id, now=datetime(2024, 3, 4, 17, 30))
    print(record.to_dict())

    leave = container.leave_service.apply(
        employee.user_id, leave_type="sick", start_date="2024-03-10", end_date="2024-03-12", reason="Flu"
    )
    print(leave.to_dict())

    result = container.payroll_service.generate(month=3, year=2024)
    for payroll in result.created:
        print(payroll.to_dict())


if __name__ == "__main__":
    main()
