import psycopg
import pytest
from litestar import Litestar
from litestar.di import Provide
from litestar.exceptions import NotAuthorizedException
from litestar.middleware import AbstractMiddleware
from litestar.testing import TestClient

import app as app_module
import core.realtime as realtime
from api.auth import AuthController
from api.clients import ClientsController
from api.health import HealthController, PingController
from api.jobs import JobsController
from api.orders import OrdersController
from api.pre_orders import PreOrdersController
from conftest import FakeConnection
from core.auth import AuthenticatedUser, scope_user
from core.config import AppConfig
from core.password import hash_password
from core.realtime import JobChannel


class ApiConnection(FakeConnection, psycopg.AsyncConnection):
    """Scripted connection that satisfies the handlers' connection type."""


ALL_CAPABILITIES = {
    "clients:read",
    "clients:write",
    "pre_orders:read",
    "pre_orders:write",
    "orders:read",
    "jobs:read",
    "jobs:write",
}


def make_client(conn, capabilities=ALL_CAPABILITIES, authenticated=True) -> TestClient:
    user = AuthenticatedUser("1", "admin", "مدیر", set(capabilities))

    class InjectUser(AbstractMiddleware):
        async def __call__(self, scope, receive, send):
            if authenticated:
                scope["user"] = user
            await self.app(scope, receive, send)

    async def provide_conn():
        return conn

    async def provide_channel():
        return JobChannel()

    app = Litestar(
        route_handlers=[
            AuthController,
            PingController,
            HealthController,
            ClientsController,
            PreOrdersController,
            OrdersController,
            JobsController,
        ],
        dependencies={"conn": Provide(provide_conn), "channel": Provide(provide_channel)},
        middleware=[InjectUser],
    )
    return TestClient(app)


@pytest.fixture
def conn():
    return ApiConnection()


@pytest.fixture
def config(monkeypatch):
    monkeypatch.setattr(app_module, "config", AppConfig())
    return app_module.config


def test_ping(conn):
    with make_client(conn, authenticated=False) as client:
        assert client.get("/api/ping").json() == {"message": "pong"}


def test_guards(conn):
    with make_client(conn, authenticated=False) as client:
        assert client.get("/api/clients").status_code == 401

    with make_client(conn, capabilities={"clients:read"}) as client:
        assert client.get("/api/clients").status_code == 200
        assert client.delete("/api/clients/1").status_code == 403
        assert client.get("/api/orders").status_code == 403
    assert not conn.queries("DELETE")


def test_list_clients(conn):
    conn.on(
        "FROM client c",
        [
            {"id": 1, "type": "personal", "status": "done", "entity": {"name": "علی"}},
            {"id": 2, "type": "company", "status": "done", "entity": None},
        ],
    )

    with make_client(conn) as client:
        response = client.get(
            "/api/clients",
            params={"page": 2, "rows_per_page": 10, "status": ["paused", "done"], "search": "علی"},
        )

    assert response.status_code == 200
    body = response.json()
    assert body["success"]
    assert [c["key"] for c in body["columns"]][:2] == ["id", "name"]
    assert body["data"] == [
        {"id": "1", "type": "personal", "data": {"name": "علی", "id": "1"}, "status": "done"}
    ]
    params = conn.executed[0][1]
    assert params["statuses"] == ["done", "paused"]
    assert params["types"] is None
    assert (params["limit"], params["offset"], params["search"]) == (10, 10, "%علی%")


def test_count_and_names(conn):
    conn.on("SELECT count(*)", [{"total": 7}])
    conn.on("AS client_name", [{"client_id": 1, "client_name": "علی", "client_type": "personal"}])

    with make_client(conn) as client:
        count = client.get("/api/clients/count", params={"type": "company"}).json()
        names = client.get("/api/clients/names").json()

    assert count["data"] == 7
    assert conn.executed[0][1]["types"] == ["company"]
    assert names["data"] == [{"id": "1", "name": "علی", "type": "personal"}]


def test_add_client(conn):
    conn.on("INSERT INTO person", [{"id": 3}])
    conn.on("INSERT INTO client", [{"id": 4}])

    with make_client(conn) as client:
        created = client.post("/api/clients", json={"name": "علی", "phone": "09121234567"})
        refused = client.post("/api/clients", json={"phone": "09121234567"})

    assert created.status_code == 201
    assert created.json()["data"] == "4"
    assert refused.status_code == 400
    assert refused.json()["success"] is False


def test_delete_blocked_client_conflicts(conn):
    conn.on("SELECT person_id, company_id", [{"person_id": 3, "company_id": None, "type": "personal"}])
    conn.on('FROM "order"', [{"id": 1}])

    with make_client(conn) as client:
        check = client.get("/api/clients/1/dependencies").json()
        response = client.delete("/api/clients/1")

    assert check == {
        "message": "این مشتری دارای سفارش است و قابل حذف نیست.",
        "success": True,
        "data": False,
    }
    assert response.status_code == 409
    assert response.json()["message"] == "این مشتری دارای سفارش است و قابل حذف نیست."


def test_pre_order_invalid_transition(conn):
    conn.on("SELECT id, status FROM pre_order", [{"id": 5, "status": "rejected"}])

    with make_client(conn) as client:
        response = client.put("/api/pre-orders/5", json={"description": "میز", "status": "approved"})

    assert response.status_code == 400
    assert response.json()["message"] == "تغییر وضعیت از rejected به approved مجاز نیست"


def test_orders_count(conn):
    conn.on("SELECT count(*)", [{"total": 2}])
    with make_client(conn) as client:
        body = client.get("/api/orders/count", params={"status": "pending"}).json()
    assert body["data"] == 2
    assert conn.executed[0][1]["statuses"] == ["pending"]


def test_submit_jobs(conn):
    conn.on(
        "INSERT INTO n8n_job",
        lambda p: [{"id": 1, "name": p["name"], "url": p["url"], "status": "pending"}],
    )

    with make_client(conn) as client:
        response = client.post("/api/jobs/pre_order/5/edit")
        unknown_entity = client.post("/api/jobs/warehouse/5/edit")
        unknown_operation = client.post("/api/jobs/client/5/archive")
        nothing_configured = client.post("/api/jobs/client/5/add")

    assert response.status_code == 201
    assert [job["name"] for job in response.json()["data"]] == ["ویرایش پیش سفارش", "محاسبه مجدد مبلغ"]
    assert {p["entity"] for _, p in conn.queries("INSERT INTO n8n_job")} == {"pre_order"}
    assert unknown_entity.status_code == 404
    assert unknown_operation.status_code == 400
    assert nothing_configured.status_code == 400


def test_list_jobs(conn):
    conn.on("FROM n8n_job", [{"id": 2, "name": "a", "url": "u", "status": "done"}])
    with make_client(conn) as client:
        body = client.get("/api/jobs/client/5").json()
    assert body["data"] == [{"id": "2", "name": "a", "url": "u", "status": "done"}]


def test_login_and_logout(conn, config):
    conn.on(
        "FROM users",
        [{"id": 1, "username": "admin", "full_name": "مدیر", "pwhash": hash_password("secret"), "inactive": False}],
    )
    conn.on("cap_name", [{"cap_name": "clients:read"}])

    with make_client(conn, authenticated=False) as client:
        refused = client.post("/api/auth/login", json={"username": "admin", "password": "nope"})
        accepted = client.post("/api/auth/login", json={"username": "admin", "password": "secret"})
        logged_out = client.post("/api/auth/logout")

    assert refused.status_code == 401
    assert refused.json()["message"] == "ورود موفقیت آمیز نبود دوباره تلاش کنید."
    assert accepted.status_code == 200
    body = accepted.json()
    assert body["data"]["capabilities"] == ["clients:read"]
    assert "session_id=" in accepted.headers["set-cookie"]
    assert logged_out.status_code == 200
    assert logged_out.json()["success"]


def test_me(conn):
    with make_client(conn, capabilities={"orders:read", "clients:read"}) as client:
        body = client.get("/api/auth/me").json()
    assert body["capabilities"] == ["clients:read", "orders:read"]

    with make_client(ApiConnection(), authenticated=False) as client:
        assert client.get("/api/auth/me").status_code == 401


def test_scope_user():
    user = AuthenticatedUser("1", "admin", None, {"orders:read"})
    assert scope_user({"user": user}) is user
    assert user.can("orders:read")
    assert not user.can("orders:write")
    with pytest.raises(NotAuthorizedException):
        scope_user({})


def test_health_reports_idle_listener(conn, config, monkeypatch):
    monkeypatch.setattr(realtime, "channel", JobChannel())
    with make_client(conn, authenticated=False) as client:
        body = client.get("/api/health").json()
    assert body["status"] == "ok"
    assert body["jobs_listening"] is False
