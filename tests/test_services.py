"""Request, tool, people, finance, dashboard and admin services over the demo store."""

from datetime import date

import pytest

from ops_portal.auth.identity import verify_password
from ops_portal.domain.entities import (
    AttendanceStatus,
    Employee,
    LeaveStatus,
    RequestStatus,
    Role,
    Urgency,
    UserStatus,
    VisibilityLevel,
)
from ops_portal.errors import AuthorizationDenied, EntityNotFound, StoreNotImplemented, ValidationFailure
from ops_portal.notifications.sink import NotificationEvent
from ops_portal.services.admin import AdminService
from ops_portal.services.dashboard import DashboardService, next_birthday, upcoming_birthdays
from ops_portal.services.finance import FinanceService
from ops_portal.services.people import UNKNOWN_NAME, PeopleService, generate_temporary_password
from ops_portal.services.requests import RequestService, format_tool_request_notes
from ops_portal.services.tools import ToolService


@pytest.fixture
def requests_service(adapter, notifier, settings):
    return RequestService(adapter, notifier, settings)


@pytest.fixture
def people(adapter, settings):
    return PeopleService(adapter, settings)


@pytest.fixture
def finance(adapter, notifier, settings):
    return FinanceService(adapter, notifier, settings)


class TestRequestSubmission:
    async def test_submit_tool_request(self, requests_service, adapter, notifier, session_for):
        session = await session_for("usr_emp")

        request = await requests_service.submit_tool_request(
            session, "  Miro ", "Workshops", expected_users=4, urgency=Urgency.HIGH,
            estimated_cost=12.5, currency="EUR",
        )

        assert request.status == RequestStatus.REQUESTED
        assert request.approver_id is None
        assert request.user_id == "usr_emp"
        assert request.tool_name == "Miro"
        assert request.notes == "Estimated cost: 12.5 EUR/month. Workshops"

        [(event, payload)] = notifier.sent
        assert event == NotificationEvent.TOOL_REQUEST
        assert payload.event == "submitted"
        assert payload.requester.email == "tom@creooglobal.com"
        assert payload.deep_link == "https://portal.test/requests"

        [entry] = await adapter.list_audit_logs()
        assert entry.action == "tool_request_created"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"tool_name": "   "},
            {"tool_name": "Miro", "expected_users": 0},
            {"tool_name": "Miro", "estimated_cost": -1},
        ],
    )
    async def test_invalid_tool_request(self, requests_service, adapter, notifier, session_for, kwargs):
        session = await session_for("usr_emp")
        with pytest.raises(ValidationFailure):
            await requests_service.submit_tool_request(session, **kwargs)
        assert len(await adapter.list_tool_requests()) == 3
        assert notifier.sent == []

    async def test_submit_leave_request(self, requests_service, notifier, session_for):
        session = await session_for("usr_intern")

        leave = await requests_service.submit_leave_request(session, "2026-12-01", "2026-12-03", "", "Exams")

        assert leave.status == LeaveStatus.REQUESTED
        assert leave.leave_type == "Casual"
        assert notifier.events() == [NotificationEvent.LEAVE_REQUEST]
        assert notifier.sent[0][1].deep_link == "https://portal.test/hr"

    @pytest.mark.parametrize(
        "start,end",
        [("2026-12-05", "2026-12-01"), ("01/12/2026", "2026-12-03"), ("2026-12-01", "")],
    )
    async def test_invalid_leave_dates(self, requests_service, session_for, start, end):
        session = await session_for("usr_emp")
        with pytest.raises(ValidationFailure):
            await requests_service.submit_leave_request(session, start, end)

    def test_notes_format(self):
        assert format_tool_request_notes(24.0, "USD", "") == "Estimated cost: 24 USD/month."


class TestRequestListing:
    async def test_employee_sees_own_requests_without_actions(self, requests_service, session_for):
        session = await session_for("usr_emp")

        items = await requests_service.list_tool_requests(session)

        assert [item.request.request_id for item in items] == ["req_001", "req_003"]
        assert all(item.available_actions == [] for item in items)
        assert items[0].requester.name == "Tom Okafor"

    async def test_approver_sees_everything_with_actions(self, requests_service, session_for):
        session = await session_for("usr_ops")

        items = {item.request.request_id: item for item in await requests_service.list_tool_requests(session)}

        assert set(items) == {"req_001", "req_002", "req_003"}
        assert items["req_001"].available_actions == ["approve", "reject", "need_info"]
        assert items["req_003"].available_actions == ["procure"]

    async def test_finance_sees_all_but_may_act_on_none(self, requests_service, session_for):
        items = await requests_service.list_tool_requests(await session_for("usr_finance"))
        assert len(items) == 3
        assert all(item.available_actions == [] for item in items)

    async def test_pending_and_resolved_filters(self, requests_service, session_for):
        session = await session_for("usr_admin")

        pending = await requests_service.list_tool_requests(session, "pending")
        resolved = await requests_service.list_tool_requests(session, "resolved")

        assert {i.request.request_id for i in pending} == {"req_001", "req_002"}
        assert {i.request.request_id for i in resolved} == {"req_003"}

    async def test_unknown_filter(self, requests_service, session_for):
        with pytest.raises(ValidationFailure):
            await requests_service.list_leave_requests(await session_for("usr_admin"), "archived")

    async def test_leave_listing(self, requests_service, session_for):
        items = await requests_service.list_leave_requests(await session_for("usr_ops"), "pending")
        [item] = items
        assert item.request.leave_id == "lv_001"
        assert item.available_actions == ["approve", "reject", "need_info"]

    async def test_requester_missing_from_users(self, requests_service, adapter, session_for):
        await adapter.create_tool_request({"user_id": "usr_gone", "tool_name": "Jira"})
        items = await requests_service.list_tool_requests(await session_for("usr_admin"))
        orphan = next(item for item in items if item.request.user_id == "usr_gone")
        assert orphan.requester.user_id == "usr_gone"
        assert orphan.requester.name == ""


class TestToolService:
    async def test_private_tools_hidden(self, adapter, session_for):
        tools = ToolService(adapter)
        employee_ids = {t.tool_id for t in await tools.list_tools(await session_for("usr_emp"))}
        admin_ids = {t.tool_id for t in await tools.list_tools(await session_for("usr_admin"))}
        assert "tool_bank" not in employee_ids
        assert "tool_bank" in admin_ids

    async def test_search_and_category(self, adapter, session_for):
        tools = ToolService(adapter)
        session = await session_for("usr_emp")

        assert [t.tool_id for t in await tools.list_tools(session, search="git")] == ["tool_github"]
        assert [t.tool_id for t in await tools.list_tools(session, search="NOTION LABS")] == ["tool_notion"]
        productivity = await tools.list_tools(session, category="Productivity")
        assert {t.tool_id for t in productivity} == {"tool_notion", "tool_loom"}

    async def test_categories(self, adapter, session_for):
        tools = ToolService(adapter)
        assert await tools.categories(await session_for("usr_emp")) == [
            "All", "Design", "Engineering", "Productivity",
        ]

    async def test_hidden_tool_reads_as_missing(self, adapter, session_for):
        tools = ToolService(adapter)
        with pytest.raises(EntityNotFound):
            await tools.get_tool(await session_for("usr_finance"), "tool_bank")
        assert (await tools.get_tool(await session_for("usr_admin"), "tool_bank")).name

    async def test_only_admin_creates(self, adapter, session_for):
        tools = ToolService(adapter)
        with pytest.raises(AuthorizationDenied):
            await tools.create_tool(await session_for("usr_ops"), {"name": "Miro"})

        tool = await tools.create_tool(
            await session_for("usr_admin"),
            {"name": "Miro", "cost": 8, "visibility_level": VisibilityLevel.TEAM_SHARED},
        )
        assert tool.owner_role == Role.ADMIN
        assert (await adapter.list_audit_logs())[0].action == "tool_created"

    async def test_create_validation(self, adapter, session_for):
        tools = ToolService(adapter)
        admin = await session_for("usr_admin")
        with pytest.raises(ValidationFailure):
            await tools.create_tool(admin, {"name": ""})
        with pytest.raises(ValidationFailure):
            await tools.create_tool(admin, {"name": "Miro", "cost": -3})


class TestPeopleService:
    async def test_directory_sorted_with_unknown(self, people, adapter, session_for):
        await adapter.create_employee({"employee_id": "emp_orphan", "user_id": "usr_gone", "department": "Sales"})

        entries = await people.directory(await session_for("usr_intern"))

        names = [entry.name for entry in entries]
        assert names == sorted(names, key=str.lower)
        orphan = next(entry for entry in entries if entry.employee.employee_id == "emp_orphan")
        assert orphan.name == UNKNOWN_NAME
        assert orphan.role is None

    async def test_invite_user(self, people, adapter, session_for):
        result = await people.invite_user(
            await session_for("usr_admin"), "Nia Park", " Nia@CreooGlobal.com ", Role.INTERN,
            {"department": "Design"},
        )

        assert result.user.email == "nia@creooglobal.com"
        assert result.user.status == UserStatus.ACTIVE_TEMP_PASSWORD
        assert result.employee.user_id == result.user.user_id
        assert result.employee.department == "Design"
        assert len(result.temporary_password) == 12
        stored = await adapter.get_user_by_email("nia@creooglobal.com")
        assert stored.password_hash != result.temporary_password
        assert verify_password(result.temporary_password, stored.password_hash)

    async def test_invite_duplicate_email(self, people, session_for):
        with pytest.raises(ValidationFailure):
            await people.invite_user(await session_for("usr_admin"), "Tom", "TOM@creooglobal.com")

    async def test_invite_requires_admin(self, people, session_for):
        with pytest.raises(AuthorizationDenied):
            await people.invite_user(await session_for("usr_ops"), "Nia", "nia@creooglobal.com")

    async def test_update_and_toggle(self, people, session_for):
        admin = await session_for("usr_admin")

        promoted = await people.update_user(admin, "usr_emp", role=Role.OPS_HR)
        assert promoted.role == Role.OPS_HR

        deactivated = await people.toggle_user_status(admin, "usr_emp")
        assert deactivated.status == UserStatus.INACTIVE
        reactivated = await people.toggle_user_status(admin, "usr_emp")
        assert reactivated.status == UserStatus.ACTIVE

    async def test_update_validation(self, people, session_for):
        admin = await session_for("usr_admin")
        with pytest.raises(ValidationFailure):
            await people.update_user(admin, "usr_emp")
        with pytest.raises(ValidationFailure):
            await people.update_user(admin, "usr_emp", status=UserStatus.ACTIVE_TEMP_PASSWORD)
        with pytest.raises(EntityNotFound):
            await people.update_user(admin, "usr_ghost", role=Role.ADMIN)

    async def test_audit_logs_newest_first(self, people, session_for):
        admin = await session_for("usr_admin")
        await people.update_user(admin, "usr_emp", role=Role.INTERN)
        await people.update_user(admin, "usr_emp", role=Role.EMPLOYEE)

        logs = await people.list_audit_logs(admin)
        assert [log.action for log in logs] == ["user_updated", "user_updated"]
        assert logs[0].timestamp >= logs[1].timestamp
        assert len(await people.list_audit_logs(admin, limit=1)) == 1

        with pytest.raises(AuthorizationDenied):
            await people.list_audit_logs(await session_for("usr_ops"))

    async def test_attendance_scope(self, people, session_for):
        own = await people.list_attendance(await session_for("usr_emp"), "2026-10-01", "2026-10-31")
        everyone = await people.list_attendance(await session_for("usr_ops"), "2026-10-01", "2026-10-31")

        assert [row.user_id for row in own] == ["usr_emp"]
        assert [row.user_id for row in everyone] == ["usr_emp", "usr_ops"]

        with pytest.raises(ValidationFailure):
            await people.list_attendance(await session_for("usr_emp"), "2026-10-31", "2026-10-01")

    async def test_record_attendance(self, people, session_for):
        employee = await session_for("usr_emp")
        entry = await people.record_attendance(employee, "2026-10-19", AttendanceStatus.WFO, location="HQ")
        assert entry.user_id == "usr_emp"

        with pytest.raises(AuthorizationDenied):
            await people.record_attendance(employee, "2026-10-19", AttendanceStatus.WFO, user_id="usr_ops")

        ops = await session_for("usr_ops")
        other = await people.record_attendance(ops, "2026-10-19", AttendanceStatus.LEAVE, user_id="usr_emp")
        assert other.status == AttendanceStatus.LEAVE

    def test_temporary_password(self):
        password = generate_temporary_password(16)
        assert len(password) == 16
        assert password.isalnum()


class TestFinanceService:
    async def test_summary_for_month(self, finance, session_for):
        summary = await finance.summary(await session_for("usr_admin"), "2026-10")

        assert summary.monthly_burn == 2014.0
        assert summary.total_salaries == 3200.0
        assert summary.active_tools == 4
        assert summary.by_category == {"Tools": 45.0, "Office": 1200.0, "Travel": 640.0}
        assert len(summary.activity) == 6
        assert summary.activity[0].counterparty == "Emirates"

    async def test_september_counts_salary_by_month_for(self, finance, session_for):
        summary = await finance.summary(await session_for("usr_admin"), "2026-09")
        assert summary.monthly_burn == 3200.0

    async def test_finance_is_admin_only(self, finance, session_for):
        for user_id in ("usr_finance", "usr_ops", "usr_emp"):
            with pytest.raises(AuthorizationDenied):
                await finance.summary(await session_for(user_id))

    async def test_bad_month(self, finance, session_for):
        with pytest.raises(ValidationFailure):
            await finance.summary(await session_for("usr_admin"), "October")

    async def test_log_tool_payment(self, finance, adapter, notifier, session_for):
        payment = await finance.log_tool_payment(
            await session_for("usr_admin"),
            {"tool_id": "tool_notion", "payment_date": "2026-10-18", "month_for": "2026-10", "amount": 96.0},
        )

        assert payment.paid_by_user_id == "usr_admin"
        [(event, payload)] = notifier.sent
        assert event == NotificationEvent.FINANCE_EVENT
        assert payload.request_type == "tool_payment"
        assert payload.deep_link == "https://portal.test/finance"
        assert (await adapter.list_audit_logs())[0].action == "tool_payment_logged"

    async def test_tool_payment_validation(self, finance, session_for):
        admin = await session_for("usr_admin")
        base = {"tool_id": "tool_notion", "payment_date": "2026-10-18", "month_for": "2026-10", "amount": 10.0}
        with pytest.raises(ValidationFailure):
            await finance.log_tool_payment(admin, {**base, "amount": 0})
        with pytest.raises(ValidationFailure):
            await finance.log_tool_payment(admin, {**base, "month_for": "2026/10"})
        with pytest.raises(EntityNotFound):
            await finance.log_tool_payment(admin, {**base, "tool_id": "tool_missing"})

    async def test_log_expense(self, finance, session_for):
        admin = await session_for("usr_admin")
        expense = await finance.log_expense(
            admin, {"date": "2026-10-18", "vendor": "Uber", "category": "Travel", "amount": 30.0}
        )
        assert expense.recurring == "N"
        with pytest.raises(ValidationFailure):
            await finance.log_expense(admin, {"date": "2026-10-18", "amount": 5.0, "recurring": "maybe"})

    async def test_log_salary_transfer_resolves_name(self, finance, session_for):
        admin = await session_for("usr_admin")

        transfer = await finance.log_salary_transfer(
            admin, {"date": "2026-10-31", "paid_to_user_id": "usr_intern", "amount": 900.0, "month_for": "2026-10"}
        )
        assert transfer.paid_to_name == "Sara Lind"
        assert transfer.created_by_user_id == "usr_admin"

        unknown = await finance.log_salary_transfer(
            admin, {"date": "2026-10-31", "paid_to_user_id": "usr_gone", "amount": 100.0}
        )
        assert unknown.paid_to_name == "Unknown"

        with pytest.raises(ValidationFailure):
            await finance.log_salary_transfer(admin, {"date": "2026-10-31", "amount": 100.0})


class TestDashboard:
    async def test_admin_stats(self, adapter, session_for):
        stats = await DashboardService(adapter).stats(await session_for("usr_admin"), today=date(2026, 10, 19))

        assert stats.headcount == 5
        assert stats.active_tools == 4
        assert stats.pending_requests == 2
        assert stats.monthly_burn == 1885.0
        assert [(b.name, b.days_away) for b in stats.upcoming_birthdays] == [
            ("Leila Haddad", 9), ("Aisha Raman", 14),
        ]

    async def test_employee_stats_are_scoped(self, adapter, session_for):
        stats = await DashboardService(adapter).stats(await session_for("usr_emp"), today=date(2026, 10, 19))

        assert stats.active_tools == 3
        assert stats.pending_requests == 1
        assert stats.monthly_burn is None

    def test_leap_day_birthday(self):
        assert next_birthday(date(2000, 2, 29), date(2027, 2, 10)) == date(2027, 3, 1)
        assert next_birthday(date(2000, 2, 29), date(2028, 2, 10)) == date(2028, 2, 29)

    def test_birthday_wraps_into_next_year(self):
        assert next_birthday(date(1990, 1, 5), date(2026, 12, 20)) == date(2027, 1, 5)

    def test_upcoming_birthdays_skips_bad_dates(self):
        employees = [
            Employee(employee_id="e1", user_id="u1", birthday="not-a-date"),
            Employee(employee_id="e2", user_id="u2", birthday="1990-10-20"),
            Employee(employee_id="e3", birthday=None),
        ]
        [birthday] = upcoming_birthdays(employees, {"u2": "Ada"}, date(2026, 10, 19))
        assert birthday.name == "Ada"
        assert birthday.days_away == 1


class TestAdminService:
    async def test_reset_demo_data(self, adapter, notifier, settings, session_for):
        admin = await session_for("usr_admin")
        await adapter.create_tool({"name": "Miro"})

        await AdminService(adapter, notifier, settings).reset_demo_data(admin)

        assert len(await adapter.list_tools()) == 5
        [entry] = await adapter.list_audit_logs()
        assert entry.action == "demo_data_reset"

    async def test_reset_requires_admin(self, adapter, notifier, settings, session_for):
        with pytest.raises(AuthorizationDenied):
            await AdminService(adapter, notifier, settings).reset_demo_data(await session_for("usr_ops"))

    async def test_reset_on_null_store(self, notifier, settings, session_for):
        from ops_portal.adapters.null import NullAdapter

        admin = await session_for("usr_admin")
        with pytest.raises(StoreNotImplemented):
            await AdminService(NullAdapter(), notifier, settings).reset_demo_data(admin)

    async def test_test_notification(self, adapter, notifier, settings, session_for):
        payload = AdminService(adapter, notifier, settings).send_test_notification(await session_for("usr_admin"))
        assert payload.request_type == "test"
        assert notifier.events() == [NotificationEvent.FINANCE_EVENT]
