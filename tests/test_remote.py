"""RemoteStoreAdapter against an httpx.MockTransport record store."""

import json

import httpx
import pytest

from ops_portal.adapters.remote import (
    RemoteStoreAdapter,
    date_range_formula,
    quote_formula_value,
    to_store_fields,
)
from ops_portal.domain.entities import RequestStatus, Role, UserStatus
from ops_portal.errors import EntityNotFound, StoreNotImplemented, StoreRejected, StoreUnavailable


class FakeStore:
    """Records every request; answers from canned tables."""

    def __init__(self, tables=None, page_size=100):
        self.tables: dict[str, list[dict]] = tables or {}
        self.page_size = page_size
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")
        table = parts[2]
        if request.method == "GET":
            records = self.tables.get(table, [])
            start = int(request.url.params.get("offset", 0))
            page = records[start:start + self.page_size]
            body = {"records": page}
            if start + self.page_size < len(records):
                body["offset"] = str(start + self.page_size)
            return httpx.Response(200, json=body)
        if request.method == "POST":
            fields = json.loads(request.content)["fields"]
            return httpx.Response(200, json={"id": "recNEW", "fields": fields})
        if request.method == "PATCH":
            return httpx.Response(200, json={"id": parts[3], "fields": json.loads(request.content)["fields"]})
        return httpx.Response(405)


def _adapter(store: FakeStore, write_enabled: bool = True) -> RemoteStoreAdapter:
    return RemoteStoreAdapter(
        api_url="https://store.test/v0",
        base_id="appBASE",
        token="secret-token",
        write_enabled=write_enabled,
        transport=httpx.MockTransport(store.handler),
    )


def _record(record_id: str, **fields) -> dict:
    return {"id": record_id, "fields": fields}


USERS = [
    _record("rec1", userId="usr_admin", name="Aisha Raman", email="admin@creooglobal.com",
            passwordHash="demo1234", role="Admin", status="active"),
    _record("rec2", userId="usr_emp", name="Tom Okafor", email="tom@creooglobal.com",
            passwordHash="demo1234", role="employee", status="active_temp_password"),
]


class TestReads:
    async def test_list_users_parses_camel_case(self):
        store = FakeStore({"Users": USERS})
        adapter = _adapter(store)

        users = await adapter.list_users()

        assert [u.user_id for u in users] == ["usr_admin", "usr_emp"]
        assert users[1].role == Role.EMPLOYEE
        assert users[1].status == UserStatus.ACTIVE_TEMP_PASSWORD
        assert store.requests[0].headers["Authorization"] == "Bearer secret-token"
        assert store.requests[0].url.path == "/v0/appBASE/Users"
        await adapter.aclose()

    async def test_pagination_follows_offset(self):
        rows = [_record(f"rec{i}", toolId=f"tool_{i}", name=f"Tool {i}") for i in range(5)]
        store = FakeStore({"ToolsRegistry": rows}, page_size=2)
        adapter = _adapter(store)

        tools = await adapter.list_tools()

        assert [t.tool_id for t in tools] == [f"tool_{i}" for i in range(5)]
        assert len(store.requests) == 3
        await adapter.aclose()

    async def test_email_lookup_uses_formula(self):
        store = FakeStore({"Users": USERS[:1]})
        adapter = _adapter(store)

        user = await adapter.get_user_by_email(" Admin@CreooGlobal.com")

        assert user.user_id == "usr_admin"
        params = store.requests[0].url.params
        assert params["filterByFormula"] == "LOWER({email})='admin@creooglobal.com'"
        assert params["maxRecords"] == "1"
        await adapter.aclose()

    async def test_malformed_record_is_skipped(self):
        rows = [
            _record("rec1", requestId="req_1", userId="usr_emp", toolName="Miro", status="requested"),
            _record("rec2", requestId="req_2", userId="usr_emp", toolName="Jira", status="aproved"),
        ]
        adapter = _adapter(FakeStore({"ToolRequests": rows}))

        requests = await adapter.list_tool_requests()

        assert [r.request_id for r in requests] == ["req_1"]
        await adapter.aclose()

    async def test_linked_record_cells_are_unwrapped(self):
        rows = [_record("rec1", employeeId="emp_1", userId=["usr_emp"], managerId=[])]
        adapter = _adapter(FakeStore({"Employees": rows}))

        [employee] = await adapter.list_employees()

        assert employee.user_id == "usr_emp"
        assert employee.manager_id is None
        await adapter.aclose()


class TestWrites:
    async def test_status_update_patches_matching_record(self):
        rows = [_record("recREQ", requestId="req_1", userId="usr_emp", toolName="Miro")]
        store = FakeStore({"ToolRequests": rows})
        adapter = _adapter(store)

        await adapter.update_tool_request_status("req_1", RequestStatus.APPROVED, "usr_admin", "ok")

        lookup, patch = store.requests
        assert lookup.url.params["filterByFormula"] == "{requestId}='req_1'"
        assert patch.method == "PATCH"
        assert patch.url.path == "/v0/appBASE/ToolRequests/recREQ"
        assert json.loads(patch.content)["fields"] == {
            "status": "approved", "approverId": "usr_admin", "notes": "ok",
        }
        await adapter.aclose()

    async def test_update_unknown_key(self):
        adapter = _adapter(FakeStore({"ToolRequests": []}))
        with pytest.raises(EntityNotFound):
            await adapter.update_tool_request_status("req_x", RequestStatus.APPROVED, "usr_admin", "")
        await adapter.aclose()

    async def test_create_sends_store_fields(self):
        store = FakeStore()
        adapter = _adapter(store)

        created = await adapter.create_leave_request(
            {"user_id": "usr_emp", "start_date": "2026-11-03", "end_date": "2026-11-04"}
        )

        body = json.loads(store.requests[0].content)
        assert body["typecast"] is True
        assert body["fields"]["userId"] == "usr_emp"
        assert body["fields"]["status"] == "requested"
        assert "approverId" not in body["fields"]
        assert created.leave_id.startswith("lv_")
        await adapter.aclose()

    async def test_writes_disabled(self):
        store = FakeStore()
        adapter = _adapter(store, write_enabled=False)
        with pytest.raises(StoreNotImplemented):
            await adapter.create_tool({"name": "Miro"})
        assert store.requests == []
        await adapter.aclose()

    async def test_demo_reset_not_available(self):
        adapter = _adapter(FakeStore())
        with pytest.raises(StoreNotImplemented):
            await adapter.reset_demo_data()
        await adapter.aclose()


class TestErrorMapping:
    @pytest.mark.parametrize(
        "status,expected",
        [(429, StoreUnavailable), (500, StoreUnavailable), (503, StoreUnavailable),
         (404, StoreRejected), (422, StoreRejected)],
    )
    async def test_http_status(self, status, expected):
        adapter = RemoteStoreAdapter(
            api_url="https://store.test/v0", base_id="appBASE", token="t",
            transport=httpx.MockTransport(lambda request: httpx.Response(status, json={"error": "x"})),
        )
        with pytest.raises(expected):
            await adapter.list_users()
        await adapter.aclose()

    async def test_non_json_success_body(self):
        adapter = RemoteStoreAdapter(
            api_url="https://store.test/v0", base_id="appBASE", token="t",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>gateway</html>")),
        )
        with pytest.raises(StoreUnavailable):
            await adapter.list_tools()
        await adapter.aclose()

    async def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        adapter = RemoteStoreAdapter(
            api_url="https://store.test/v0", base_id="appBASE", token="t",
            transport=httpx.MockTransport(handler),
        )
        with pytest.raises(StoreUnavailable):
            await adapter.list_tools()
        await adapter.aclose()


class TestFormulaHelpers:
    def test_quote_escapes_quotes(self):
        assert quote_formula_value("o'brien@x.com") == "'o\\'brien@x.com'"

    def test_date_range_formula(self):
        assert date_range_formula("date", None, None) is None
        assert date_range_formula("date", "2026-10-01", None) == "NOT(IS_BEFORE({date},'2026-10-01'))"
        assert date_range_formula("date", "2026-10-01", "2026-10-31T00:00:00Z") == (
            "AND(NOT(IS_BEFORE({date},'2026-10-01')),NOT(IS_AFTER({date},'2026-10-31')))"
        )

    def test_to_store_fields(self):
        assert to_store_fields({"last_login_at": "T", "status": UserStatus.ACTIVE}) == {
            "lastLoginAt": "T", "status": "active",
        }
