import io

import pytest
from PIL import Image

from app import create_app
from extensions import db
from utils.services import get_services


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def notify_status_change(self, snapshot):
        self.sent.append(snapshot)
        return None


def make_png(size=(4, 4), color="red") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def app(tmp_path):
    app = create_app(
        "testing",
        {
            "COMPLAINT_UPLOAD_FOLDER": str(tmp_path / "uploads"),
            "LOG_DIR": str(tmp_path / "logs"),
        },
    )
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def services(app):
    with app.app_context():
        yield get_services()


@pytest.fixture()
def notifier(app):
    recorder = RecordingNotifier()
    app.extensions["mycity_services"].complaints.notifier = recorder
    return recorder


@pytest.fixture()
def admin_token(app, client):
    response = client.post(
        "/api/auth/login",
        json={"email": app.config["DEFAULT_ADMIN_EMAIL"], "password": app.config["DEFAULT_ADMIN_PASSWORD"]},
    )
    assert response.status_code == 200
    return response.get_json()["token"]


@pytest.fixture()
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture()
def png_bytes():
    return make_png()
