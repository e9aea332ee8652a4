from app import create_app
from utils.errors import StoreError


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "healthy"
    assert body["storeConnected"] is True
    assert body["time"]


def test_unknown_route_is_json_404(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.get_json() == {"error": "not found"}


def test_missing_upload_is_404(client):
    assert client.get("/uploads/missing.png").status_code == 404


def test_store_error_is_generic_in_production(app, client, admin_headers, monkeypatch):
    def broken_list(limit=None):
        raise StoreError("connection reset by peer")

    monkeypatch.setattr(app.extensions["mycity_services"].complaints, "list_complaints", broken_list)
    response = client.get("/api/complaints", headers=admin_headers)
    assert response.status_code == 500
    assert response.get_json() == {"status": "error", "message": "An error occurred"}


def test_store_error_is_detailed_in_debug(app, client, admin_headers, monkeypatch):
    def broken_list(limit=None):
        raise StoreError("connection reset by peer")

    monkeypatch.setattr(app.extensions["mycity_services"].complaints, "list_complaints", broken_list)
    app.debug = True
    body = client.get("/api/complaints", headers=admin_headers).get_json()
    assert body["message"] == "connection reset by peer"
    assert body["stack"]


def test_unexpected_error_is_handled(app, client, monkeypatch):
    def explode(complaint_id):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(app.extensions["mycity_services"].complaints, "get", explode)
    response = client.get("/api/complaints/anything")
    assert response.status_code == 500
    assert response.get_json()["status"] == "error"
    assert "kaboom" not in response.get_json()["message"]


def test_api_is_rate_limited(tmp_path):
    app = create_app(
        "testing",
        {
            "COMPLAINT_UPLOAD_FOLDER": str(tmp_path / "uploads"),
            "LOG_DIR": str(tmp_path / "logs"),
            "RATELIMIT_ENABLED": True,
            "API_RATE_LIMIT": "2 per minute",
        },
    )
    client = app.test_client()
    assert client.get("/api/resolved").status_code == 200
    assert client.get("/api/resolved").status_code == 200
    response = client.get("/api/resolved")
    assert response.status_code == 429
    assert "error" in response.get_json()
    # Health checks sit outside the API and are never throttled.
    for _ in range(3):
        assert client.get("/health").status_code == 200


def test_api_rate_limit_is_shared_across_endpoints(tmp_path):
    app = create_app(
        "testing",
        {
            "COMPLAINT_UPLOAD_FOLDER": str(tmp_path / "uploads"),
            "LOG_DIR": str(tmp_path / "logs"),
            "RATELIMIT_ENABLED": True,
            "API_RATE_LIMIT": "3 per minute",
        },
    )
    client = app.test_client()
    assert client.get("/api/resolved").status_code == 200
    assert client.get("/api/complaints/missing").status_code == 404
    assert client.post("/api/chatbot", json={"message": "hello"}).status_code == 200

    for send in (
        lambda: client.get("/api/complaints"),
        lambda: client.post("/api/auth/login", json={"email": "a@example.com", "password": "x"}),
        lambda: client.get("/api/resolved"),
    ):
        assert send().status_code == 429
    assert client.get("/health").status_code == 200


def test_logging_writes_to_configured_file(app, tmp_path, client):
    client.post("/api/complaints", json={"description": "Blocked drain"})
    for handler in app.logger.handlers:
        handler.flush()

    log_file = tmp_path / "logs" / "mycity.log"
    assert log_file.exists()
    contents = log_file.read_text(encoding="utf-8")
    assert "logging ready" in contents
    assert "Complaint submitted" in contents


def test_repeated_factory_calls_do_not_stack_handlers(app, tmp_path):
    again = create_app(
        "testing",
        {"COMPLAINT_UPLOAD_FOLDER": str(tmp_path / "uploads"), "LOG_DIR": str(tmp_path / "logs")},
    )
    assert len(again.logger.handlers) == 2
