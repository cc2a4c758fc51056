"""HTTP surface: status codes, error bodies and camelCase payloads."""

import httpx
import pytest

from conftest import auth_headers
from test_delegated import JwksServer, _id_token, _jwk, _verifier
from ops_portal.errors import InvalidTransition, StoreUnavailable, ValidationFailure
from ops_portal.main import ERROR_STATUS, create_app, status_for
from ops_portal.notifications.sink import NotificationEvent


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    async def test_ready_reports_adapter(self, client):
        body = (await client.get("/ready")).json()
        assert body == {"status": "ok", "adapter": "memory", "mock": True, "checks": {"store": "ok"}}

    async def test_metrics(self, client):
        response = await client.get("/metrics")
        assert response.status_code == 200
        assert "portal_workflow_transitions" in response.text


class TestAuthEndpoints:
    async def test_login_returns_token_and_public_user(self, client):
        response = await client.post(
            "/auth/login", json={"email": "Tom@CreooGlobal.com", "password": "demo1234"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["tokenType"] == "bearer"
        assert body["user"]["userId"] == "usr_emp"
        assert "passwordHash" not in body["user"]
        assert body["mustChangePassword"] is False

        me = await client.get("/auth/me", headers={"Authorization": f"Bearer {body['accessToken']}"})
        assert me.json()["user"]["email"] == "tom@creooglobal.com"

    async def test_bad_login_is_generic_401(self, client):
        wrong_password = await client.post(
            "/auth/login", json={"email": "tom@creooglobal.com", "password": "nope"}
        )
        unknown_user = await client.post(
            "/auth/login", json={"email": "nobody@creooglobal.com", "password": "demo1234"}
        )

        assert wrong_password.status_code == unknown_user.status_code == 401
        assert wrong_password.json() == unknown_user.json() == {
            "detail": "Invalid credentials.", "error": "AuthenticationFailure",
        }
        assert wrong_password.headers["WWW-Authenticate"] == "Bearer"

    async def test_temp_password_must_change(self, client):
        login = await client.post("/auth/login", json={"email": "sara@creoo.co", "password": "demo1234"})
        assert login.json()["mustChangePassword"] is True

        token = login.json()["accessToken"]
        changed = await client.post(
            "/auth/change-password",
            json={"newPassword": "brand-new-secret"},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert changed.status_code == 200
        assert changed.json()["mustChangePassword"] is False
        assert changed.json()["user"]["status"] == "active"

    async def test_me_lists_permissions_and_navigation(self, client):
        body = (await client.get("/auth/me", headers=auth_headers("usr_finance"))).json()

        assert body["user"]["role"] == "Finance"
        assert body["permissions"]["tool_requests"]["view_all"] is True
        assert body["permissions"]["tool_requests"]["approve"] is False
        assert {"name": "Finance", "path": "/finance"} in body["navigation"]

    async def test_me_requires_token(self, client):
        response = await client.get("/auth/me")
        assert response.status_code == 401

    async def test_garbage_token_is_signed_out(self, client):
        response = await client.get("/auth/me", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401

    async def test_logout(self, client):
        response = await client.post("/auth/logout", headers=auth_headers("usr_emp"))
        assert response.json() == {"status": "signed_out"}


class TestNavigationEndpoints:
    async def test_menu(self, client):
        entries = (await client.get("/navigation", headers=auth_headers("usr_intern"))).json()
        assert {"name": "My Requests", "path": "/requests"} in entries

    async def test_resolve_signed_out(self, client):
        body = (await client.get("/navigation/resolve", params={"path": "/admin"})).json()
        assert body == {"requested": "/admin", "path": "/login", "redirected": True}

    async def test_resolve_non_admin(self, client):
        body = (
            await client.get("/navigation/resolve", params={"path": "/finance"}, headers=auth_headers("usr_finance"))
        ).json()
        assert body["path"] == "/dashboard"


class TestRequestEndpoints:
    async def test_submit_and_list(self, client, notifier):
        created = await client.post(
            "/requests",
            json={"toolName": "Miro", "justification": "Retros", "expectedUsers": 3, "estimatedCost": 10},
            headers=auth_headers("usr_emp"),
        )

        assert created.status_code == 201
        assert created.json()["status"] == "requested"
        assert created.json()["approverId"] is None
        assert notifier.events() == [NotificationEvent.TOOL_REQUEST]

        listing = (await client.get("/requests", headers=auth_headers("usr_emp"))).json()
        assert {row["item"]["toolName"] for row in listing} == {"Miro", "Postman", "Sentry"}
        assert all(row["availableActions"] == [] for row in listing)

    async def test_submit_validation(self, client):
        response = await client.post(
            "/requests", json={"toolName": "Miro", "expectedUsers": 0}, headers=auth_headers("usr_emp")
        )
        assert response.status_code == 422
        assert response.json()["error"] == "ValidationFailure"

    async def test_pending_filter(self, client):
        listing = (
            await client.get("/requests", params={"filter": "pending"}, headers=auth_headers("usr_ops"))
        ).json()
        assert {row["item"]["requestId"] for row in listing} == {"req_001", "req_002"}

    async def test_unknown_filter(self, client):
        response = await client.get("/requests", params={"filter": "weird"}, headers=auth_headers("usr_ops"))
        assert response.status_code == 422

    async def test_approve(self, client, notifier):
        response = await client.post(
            "/requests/req_001/approve", json={"note": "budget ok"}, headers=auth_headers("usr_ops")
        )

        assert response.status_code == 200
        body = response.json()
        assert body["outcome"] == "applied"
        assert body["previousStatus"] == "requested"
        assert body["item"]["status"] == "approved"
        assert body["item"]["approverId"] == "usr_ops"
        assert notifier.events() == [NotificationEvent.STATUS_UPDATE]

    async def test_action_without_body(self, client):
        response = await client.post("/requests/req_001/reject", headers=auth_headers("usr_admin"))
        assert response.json()["item"]["status"] == "rejected"

    async def test_cancelled_action(self, client, notifier):
        response = await client.post(
            "/requests/req_001/approve", json={"cancelled": True}, headers=auth_headers("usr_admin")
        )

        assert response.status_code == 200
        assert response.json()["outcome"] == "cancelled"
        assert response.json()["item"] is None
        assert notifier.sent == []

    async def test_employee_forbidden(self, client):
        response = await client.post("/requests/req_001/approve", json={}, headers=auth_headers("usr_emp"))
        assert response.status_code == 403
        assert response.json()["error"] == "AuthorizationDenied"

    async def test_invalid_transition_is_conflict(self, client):
        response = await client.post("/requests/req_001/grant_access", json={}, headers=auth_headers("usr_admin"))
        assert response.status_code == 409
        assert response.json()["error"] == "InvalidTransition"

    async def test_unknown_request(self, client):
        response = await client.post("/requests/req_nope/approve", json={}, headers=auth_headers("usr_admin"))
        assert response.status_code == 404

    async def test_unknown_action(self, client):
        response = await client.post("/requests/req_001/escalate", json={}, headers=auth_headers("usr_admin"))
        assert response.status_code == 422

    async def test_signed_out(self, client):
        response = await client.post("/requests/req_001/approve", json={})
        assert response.status_code == 401


class TestLeaveEndpoints:
    async def test_submit_and_approve(self, client):
        created = await client.post(
            "/leave",
            json={"startDate": "2026-12-01", "endDate": "2026-12-02", "leaveType": "Annual"},
            headers=auth_headers("usr_emp"),
        )
        assert created.status_code == 201
        leave_id = created.json()["leaveId"]

        approved = await client.post(f"/leave/{leave_id}/approve", json={"note": "ok"}, headers=auth_headers("usr_ops"))
        assert approved.json()["item"]["status"] == "approved"

    async def test_bad_dates(self, client):
        response = await client.post(
            "/leave", json={"startDate": "2026-12-05", "endDate": "2026-12-01"}, headers=auth_headers("usr_emp")
        )
        assert response.status_code == 422

    async def test_tool_only_action_is_conflict(self, client):
        response = await client.post("/leave/lv_001/procure", json={}, headers=auth_headers("usr_admin"))
        assert response.status_code == 409
        assert response.json()["error"] == "InvalidTransition"

    async def test_employee_cannot_approve(self, client):
        response = await client.post("/leave/lv_001/approve", json={"note": ""}, headers=auth_headers("usr_emp"))
        assert response.status_code == 403


class TestToolEndpoints:
    async def test_list_hides_private_tools(self, client):
        employee = (await client.get("/tools", headers=auth_headers("usr_emp"))).json()
        admin = (await client.get("/tools", headers=auth_headers("usr_admin"))).json()
        assert "tool_bank" not in {tool["toolId"] for tool in employee}
        assert "tool_bank" in {tool["toolId"] for tool in admin}

    async def test_hidden_tool_is_404(self, client):
        response = await client.get("/tools/tool_bank", headers=auth_headers("usr_emp"))
        assert response.status_code == 404

    async def test_categories(self, client):
        categories = (await client.get("/tools/categories", headers=auth_headers("usr_emp"))).json()
        assert categories[0] == "All"

    async def test_create_tool(self, client):
        forbidden = await client.post("/tools", json={"name": "Miro"}, headers=auth_headers("usr_ops"))
        created = await client.post(
            "/tools", json={"name": "Miro", "cost": 8, "category": "Design"}, headers=auth_headers("usr_admin")
        )
        assert forbidden.status_code == 403
        assert created.status_code == 201
        assert created.json()["ownerRole"] == "Admin"


class TestPeopleEndpoints:
    async def test_directory(self, client):
        rows = (await client.get("/employees", headers=auth_headers("usr_emp"))).json()
        assert len(rows) == 5
        assert rows[0]["name"] == "Aisha Raman"
        assert rows[0]["employee"]["employeeId"] == "emp_001"

    async def test_attendance(self, client):
        saved = await client.put(
            "/attendance", json={"date": "2026-10-19", "status": "WFO"}, headers=auth_headers("usr_emp")
        )
        assert saved.status_code == 200
        assert saved.json()["userId"] == "usr_emp"

        rows = (
            await client.get(
                "/attendance", params={"start": "2026-10-01", "end": "2026-10-31"}, headers=auth_headers("usr_emp")
            )
        ).json()
        assert [row["date"] for row in rows] == ["2026-10-15", "2026-10-19"]

    async def test_attendance_for_someone_else(self, client):
        response = await client.put(
            "/attendance", json={"date": "2026-10-19", "status": "WFH", "userId": "usr_ops"},
            headers=auth_headers("usr_emp"),
        )
        assert response.status_code == 403


class TestFinanceEndpoints:
    async def test_summary_admin_only(self, client):
        admin = await client.get("/finance/summary", params={"month": "2026-10"}, headers=auth_headers("usr_admin"))
        finance = await client.get("/finance/summary", headers=auth_headers("usr_finance"))

        assert admin.status_code == 200
        assert admin.json()["monthlyBurn"] == 2014.0
        assert finance.status_code == 403

    async def test_log_expense(self, client, notifier):
        response = await client.post(
            "/finance/expenses",
            json={"date": "2026-10-18", "vendor": "Uber", "category": "Travel", "amount": 30},
            headers=auth_headers("usr_admin"),
        )
        assert response.status_code == 201
        assert response.json()["expenseId"].startswith("exp_")
        assert notifier.events() == [NotificationEvent.FINANCE_EVENT]

    async def test_non_positive_amount(self, client):
        response = await client.post(
            "/finance/expenses", json={"date": "2026-10-18", "amount": 0}, headers=auth_headers("usr_admin")
        )
        assert response.status_code == 422


class TestAdminEndpoints:
    async def test_invite_and_sign_in(self, client):
        invited = await client.post(
            "/admin/users/invite",
            json={"name": "Nia Park", "email": "nia@creooglobal.com", "role": "Intern", "department": "Design"},
            headers=auth_headers("usr_admin"),
        )
        assert invited.status_code == 201
        body = invited.json()
        assert body["user"]["status"] == "active_temp_password"
        assert body["employee"]["department"] == "Design"

        login = await client.post(
            "/auth/login", json={"email": "nia@creooglobal.com", "password": body["temporaryPassword"]}
        )
        assert login.status_code == 200
        assert login.json()["mustChangePassword"] is True

    async def test_duplicate_invite(self, client):
        response = await client.post(
            "/admin/users/invite", json={"name": "Tom", "email": "tom@creooglobal.com"},
            headers=auth_headers("usr_admin"),
        )
        assert response.status_code == 422

    async def test_deactivated_user_loses_access(self, client):
        headers = auth_headers("usr_emp")
        toggled = await client.post("/admin/users/usr_emp/toggle-status", headers=auth_headers("usr_admin"))
        assert toggled.json()["status"] == "inactive"

        assert (await client.get("/auth/me", headers=headers)).status_code == 401

    async def test_update_role(self, client):
        response = await client.patch(
            "/admin/users/usr_emp", json={"role": "Ops/HR"}, headers=auth_headers("usr_admin")
        )
        assert response.json()["role"] == "Ops/HR"

    async def test_admin_routes_forbidden_for_ops(self, client):
        for method, path in [
            ("GET", "/admin/users"),
            ("GET", "/admin/audit-logs"),
            ("POST", "/admin/reset-demo-data"),
            ("POST", "/admin/test-notification"),
        ]:
            response = await client.request(method, path, headers=auth_headers("usr_ops"))
            assert response.status_code == 403, path

    async def test_reset_and_audit(self, client):
        await client.post("/requests/req_001/approve", json={}, headers=auth_headers("usr_admin"))

        reset = await client.post("/admin/reset-demo-data", headers=auth_headers("usr_admin"))
        assert reset.json() == {"status": "reset"}

        logs = (await client.get("/admin/audit-logs", headers=auth_headers("usr_admin"))).json()
        assert [log["action"] for log in logs] == ["demo_data_reset"]

    async def test_test_notification(self, client, notifier):
        response = await client.post("/admin/test-notification", headers=auth_headers("usr_admin"))
        assert response.json()["requestType"] == "test"
        assert notifier.events() == [NotificationEvent.FINANCE_EVENT]


class TestErrorMapping:
    @pytest.mark.parametrize(
        "exc,expected",
        [(InvalidTransition(), 409), (ValidationFailure(), 422), (StoreUnavailable(), 503)],
    )
    def test_most_specific_class_wins(self, exc, expected):
        assert status_for(exc) == expected

    def test_every_store_error_is_mapped(self):
        assert set(ERROR_STATUS.values()) >= {401, 403, 404, 409, 422, 501, 502, 503}


class TestDelegatedLoginEndpoint:
    @pytest.fixture
    async def delegated_client(self, settings, adapter, notifier):
        app = create_app(settings=settings, adapter=adapter, notifier=notifier,
                         verifier=_verifier(JwksServer([_jwk("key-1")])))
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://portal.test") as c:
            yield c
        await app.state.verifier.aclose()

    async def test_known_user_signs_in(self, delegated_client):
        response = await delegated_client.post("/auth/delegated", json={"idToken": _id_token()})

        assert response.status_code == 200
        assert response.json()["user"]["userId"] == "usr_emp"

    async def test_outside_domain_is_rejected(self, delegated_client):
        response = await delegated_client.post(
            "/auth/delegated", json={"idToken": _id_token(email="someone@gmail.com")}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials."


class TestAppSigningKey:
    async def test_sessions_are_signed_with_the_app_key(self, settings, adapter, notifier):
        app_settings = settings.model_copy(update={"jwt_secret_key": "key-for-this-deployment-only"})
        app = create_app(settings=app_settings, adapter=adapter, notifier=notifier)

        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://portal.test") as c:
            login = await c.post("/auth/login", json={"email": "ops@creooglobal.com", "password": "demo1234"})
            token = login.json()["accessToken"]

            me = await c.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
            default_key = await c.get("/auth/me", headers=auth_headers("usr_ops"))

        assert me.json()["user"]["userId"] == "usr_ops"
        assert default_key.status_code == 401
        await app.state.verifier.aclose()
