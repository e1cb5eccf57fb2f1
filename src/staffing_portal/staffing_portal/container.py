from __future__ import annotations

from dataclasses import dataclass

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .database.connection import DBConfig, DatabaseConnection
from .leaves.mysql_holiday_repository import MySQLHolidayRepository
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.service import LeaveService
from .notifications.dispatcher import (
    LoggingNotificationDispatcher,
    MySQLNotificationDispatcher,
    NotificationDispatcher,
)
from .reports.service import AttendanceExportService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    attendance_repo: MySQLAttendanceRepository
    leaves_repo: MySQLLeaveRepository
    holidays_repo: MySQLHolidayRepository
    notifier: NotificationDispatcher

    auth_service: AuthService
    attendance_service: AttendanceService
    leave_service: LeaveService
    export_service: AttendanceExportService


def build_notifier(backend: str, conn: DatabaseConnection) -> NotificationDispatcher:
    if (backend or "mysql").lower() == "log":
        return LoggingNotificationDispatcher()
    return MySQLNotificationDispatcher(conn)


def build_container(*, db_config: dict, notifications_backend: str = "mysql") -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    users_repo = MySQLUserRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    leaves_repo = MySQLLeaveRepository(conn)
    holidays_repo = MySQLHolidayRepository(conn)

    auth_service = AuthService(users_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        users_repo,
        strategy_factory=AttendanceStrategyFactory(),
    )
    leave_service = LeaveService(leaves_repo, holidays_repo, users_repo)
    export_service = AttendanceExportService(attendance_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        holidays_repo=holidays_repo,
        notifier=build_notifier(notifications_backend, conn),
        auth_service=auth_service,
        attendance_service=attendance_service,
        leave_service=leave_service,
        export_service=export_service,
    )
