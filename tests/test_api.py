from __future__ import annotations

import pytest

from scanner_app.app import create_app
from scanner_shared.config import DatabaseKind
from scanner_shared.database.executor import QueryExecutor
from scanner_shared.settings_store import SettingsStore

from tests.support import FailingConnector, make_app_config


@pytest.fixture
def app(store, executor):
    app = create_app(make_app_config(), settings_store=store, executor=executor)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


class ProbeConnector:
    """Answers the probe query of either dialect with one row."""

    def __init__(self) -> None:
        self.descriptors = []

    def __call__(self, descriptor):
        self.descriptors.append(descriptor)

        class _Cursor:
            description = (("server_time", None, None, None, None, None, None),)

            def execute(self, sql, parameters):
                pass

            def fetchall(self):
                return [("2024-01-01 00:00:00",)]

            def close(self):
                pass

        class _Connection:
            def cursor(self):
                return _Cursor()

            def close(self):
                pass

        return _Connection()


def _client_with_connector(store, connector, **config):
    executor = QueryExecutor(
        store, connectors={DatabaseKind.POSTGRES: connector, DatabaseKind.SQL_SERVER: connector}
    )
    return create_app(make_app_config(**config), settings_store=store, executor=executor).test_client()


def test_ping(client) -> None:
    response = client.get("/api/ping")

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "success"
    assert body["message"]
    assert body["timestamp"]


def test_get_settings_returns_name_and_type_only(client, db_type) -> None:
    body = client.get("/api/settings").get_json()

    assert body["status"] == "success"
    assert body["dbName"] == "shop"
    assert body["dbType"] == db_type
    assert "dbPassword" not in body


def test_post_settings_merges_into_store(client, store) -> None:
    response = client.post("/api/settings", json={"dbName": "warehouse", "productsTable": "items"})

    assert response.status_code == 200
    assert response.get_json()["status"] == "success"
    assert store.read().connection.database == "warehouse"
    assert store.read().mapping.products_table == "items"


def test_post_settings_rejects_unsafe_identifier(client, store) -> None:
    response = client.post("/api/settings", json={"productsTable": "products;--"})

    assert response.status_code == 400
    assert response.get_json()["status"] == "error"
    assert store.read().mapping.products_table == "products"


@pytest.mark.parametrize("payload", [{"dbTimeout": 0}, {"dbTimeout": -5}, {"dbPort": 70000}])
def test_post_settings_rejects_connection_values_lookups_would_refuse(client, store, payload) -> None:
    response = client.post("/api/settings", json=payload)

    assert response.status_code == 400
    assert response.get_json()["status"] == "error"
    assert client.get("/api/product/012345").status_code == 200


def test_post_settings_requires_json_object(client) -> None:
    response = client.post("/api/settings", data="nope", content_type="text/plain")

    assert response.status_code == 400


def test_product_found(client) -> None:
    response = client.get("/api/product/012345")

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "success"
    assert body["data"]["productCode"] == "SKU1"
    assert body["data"]["productName"] == "Widget"
    assert body["data"]["price1"] == 1000
    assert body["data"]["price2"] is None


def test_product_not_found(client) -> None:
    response = client.get("/api/product/UNKNOWN")

    assert response.status_code == 404
    assert response.get_json() == {"status": "error", "message": "Product not found"}


def test_product_lookup_without_mapping_is_a_client_error(client, store) -> None:
    store.write({"productsTable": ""})

    response = client.get("/api/product/012345")

    assert response.status_code == 400
    assert "products_table" in response.get_json()["message"]


def test_product_lookup_database_failure_is_500(store) -> None:
    connector = FailingConnector(RuntimeError("server closed the connection"), fail_on_connect=True)
    client = _client_with_connector(store, connector)

    response = client.get("/api/product/012345")

    assert response.status_code == 500
    body = response.get_json()
    assert body["status"] == "error"
    assert "server closed the connection" in body["message"]
    assert "s3cret" not in response.get_data(as_text=True)


def test_test_connection_success(store) -> None:
    connector = ProbeConnector()
    client = _client_with_connector(store, connector)

    response = client.post(
        "/api/test-connection", json={"dbType": "mssql", "dbServer": "sql.local", "dbUser": "sa"}
    )

    assert response.status_code == 200
    assert response.get_json()["status"] == "success"
    assert connector.descriptors[0].host == "sql.local"
    assert connector.descriptors[0].port == 1433


def test_test_connection_accepts_server_alias(store) -> None:
    connector = ProbeConnector()
    client = _client_with_connector(store, connector)

    response = client.post("/api/test-connection", json={"server": "pg.local"})

    assert response.status_code == 200
    assert connector.descriptors[0].host == "pg.local"


def test_test_connection_without_server_fails_before_connecting(store) -> None:
    connector = FailingConnector(AssertionError("must not connect"))
    client = _client_with_connector(store, connector)

    response = client.post("/api/test-connection", json={"dbType": "postgres", "dbServer": ""})

    assert response.status_code == 400
    assert connector.calls == 0


def test_test_connection_failure_reports_driver_text(store) -> None:
    connector = FailingConnector(OSError("Login failed for user 'sa'"), fail_on_connect=True)
    client = _client_with_connector(store, connector)

    response = client.post(
        "/api/test-connection",
        json={"dbType": "mssql", "dbServer": "sql.local", "dbPassword": "hunter2"},
    )

    assert response.status_code == 500
    body = response.get_json()
    assert body["message"] == "Connection failed: Login failed for user 'sa'"
    assert "hunter2" not in response.get_data(as_text=True)


def test_unknown_route_is_json_404(client) -> None:
    response = client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert response.get_json()["status"] == "error"


def test_unexpected_error_detail_hidden_in_production(store) -> None:
    class BrokenStore(SettingsStore):
        def read(self):
            raise RuntimeError("disk on fire")

    broken = BrokenStore(initial=store.read())
    dev = create_app(make_app_config(), settings_store=store)
    prod = create_app(make_app_config(environment="production"), settings_store=store)
    for app in (dev, prod):
        app.extensions["scanner"].settings.settings_store = broken

    dev_body = dev.test_client().get("/api/settings").get_json()
    prod_body = prod.test_client().get("/api/settings").get_json()

    assert dev_body == {"status": "error", "message": "Internal server error", "error": "disk on fire"}
    assert prod_body == {"status": "error", "message": "Internal server error"}


def test_cors_headers_for_configured_origin(client) -> None:
    allowed = client.get("/api/ping", headers={"Origin": "http://localhost:3000"})
    other = client.get("/api/ping", headers={"Origin": "http://evil.example"})

    assert allowed.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
    assert allowed.headers["Access-Control-Allow-Credentials"] == "true"
    assert "Access-Control-Allow-Origin" not in other.headers


def test_cors_preflight_is_answered(client) -> None:
    response = client.options(
        "/api/settings",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )

    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
    assert "POST" in response.headers["Access-Control-Allow-Methods"]
    assert "content-type" in response.headers["Access-Control-Allow-Headers"].lower()


def test_pages_render_with_api_base_url(store, executor) -> None:
    app = create_app(make_app_config(api_base_url="https://scanner.example/api/"),
                     settings_store=store, executor=executor)
    client = app.test_client()

    index = client.get("/")
    settings = client.get("/settings")

    assert index.status_code == 200
    assert settings.status_code == 200
    assert '"https://scanner.example/api"' in index.get_data(as_text=True)
    assert "productsPrice3Column" in settings.get_data(as_text=True)
