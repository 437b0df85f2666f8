"""
Simulated device actions on a session.

    POST /api/sessions/<sid>/install-app
    POST /api/sessions/<sid>/screenshot
    GET  /api/sessions/<sid>/metrics
"""

import json

from devicelab.models import db
from devicelab.models.session import Screenshot, TestLog, TestSession
from devicelab.services.device_controller import (
    CaptureResult,
    DeviceController,
    SimulatedDeviceController,
    init_device_controller,
)

API = "/api"


def _post(client, url, data=None):
    return client.post(API + url, json=data or {})


def _get(client, url):
    return client.get(API + url)


def _app_session(user, pairing=None, app_path="/uploads/apps/0123abcd.apk"):
    s = TestSession(
        user_id=user.id,
        browser_device_id=pairing.id if pairing else None,
        app_path=app_path,
        app_type="ANDROID_APK",
        status="CREATED",
    )
    db.session.add(s)
    db.session.commit()
    return s


def _web_session(user, pairing=None):
    s = TestSession(
        user_id=user.id,
        browser_device_id=pairing.id if pairing else None,
        url="https://example.com",
        status="RUNNING",
    )
    db.session.add(s)
    db.session.commit()
    return s


class _RecordingController(DeviceController):
    """Controller double that records install calls."""

    def __init__(self):
        self.installs = []

    def install(self, device, app_path):
        self.installs.append((device.name, app_path))

    def capture(self, session):
        return CaptureResult(filename="fixed.png", path="/screenshots/fixed.png", thumbnail=None)

    def poll(self, session):
        return {"session_id": session.id, "cpu": 1.0}


# ═════════════════════════════════════════════════════════════════════════════
# Install
# ═════════════════════════════════════════════════════════════════════════════


class TestInstallApp:
    def test_install_logs_success(self, client, user, pairing):
        s = _app_session(user, pairing)
        res = _post(client, f"/sessions/{s.id}/install-app")
        assert res.status_code == 200
        data = res.get_json()
        assert data["message"] == "App installed successfully"
        assert data["device"] == "Samsung Galaxy S24"
        assert data["app_path"] == "/uploads/apps/0123abcd.apk"

        log = TestLog.query.filter_by(session_id=s.id).one()
        assert log.level == "INFO"
        assert log.message == "App installed successfully on Samsung Galaxy S24"
        assert json.loads(log.log_metadata) == {"action": "install", "device": "Samsung Galaxy S24"}

    def test_install_without_app_is_rejected(self, client, user, pairing):
        s = _web_session(user, pairing)
        res = _post(client, f"/sessions/{s.id}/install-app")
        assert res.status_code == 400
        assert res.get_json()["error"] == "No app file associated with this session"
        assert TestLog.query.count() == 0

    def test_install_without_device_is_rejected(self, client, user):
        s = _app_session(user)
        res = _post(client, f"/sessions/{s.id}/install-app")
        assert res.status_code == 400
        assert res.get_json()["error"] == "No device associated with this session"
        assert TestLog.query.count() == 0

    def test_install_unknown_session_is_404(self, client):
        assert _post(client, "/sessions/9999/install-app").status_code == 404

    def test_install_goes_through_registered_controller(self, app, client, user, pairing):
        recorder = _RecordingController()
        original = app.extensions["device_controller"]
        init_device_controller(app, recorder)
        try:
            s = _app_session(user, pairing)
            _post(client, f"/sessions/{s.id}/install-app")
        finally:
            app.extensions["device_controller"] = original
        assert recorder.installs == [("Samsung Galaxy S24", "/uploads/apps/0123abcd.apk")]


# ═════════════════════════════════════════════════════════════════════════════
# Screenshot
# ═════════════════════════════════════════════════════════════════════════════


class TestScreenshot:
    def test_screenshot_creates_placeholder_row(self, client, user):
        s = _web_session(user)
        res = _post(client, f"/sessions/{s.id}/screenshot")
        assert res.status_code == 200
        data = res.get_json()
        assert data["session_id"] == s.id
        assert data["filename"].startswith("screenshot-")
        assert data["filename"].endswith(".png")
        assert data["path"] == f"/screenshots/{data['filename']}"
        assert Screenshot.query.filter_by(session_id=s.id).count() == 1

    def test_screenshots_are_listed_on_session(self, client, user):
        s = _web_session(user)
        _post(client, f"/sessions/{s.id}/screenshot")
        _post(client, f"/sessions/{s.id}/screenshot")
        data = _get(client, f"/sessions/{s.id}").get_json()
        assert len(data["screenshots"]) == 2

    def test_screenshot_unknown_session_is_404(self, client):
        res = _post(client, "/sessions/9999/screenshot")
        assert res.status_code == 404
        assert Screenshot.query.count() == 0


# ═════════════════════════════════════════════════════════════════════════════
# Metrics
# ═════════════════════════════════════════════════════════════════════════════


class TestMetrics:
    def test_metrics_snapshot(self, client, user):
        s = _web_session(user)
        res = _get(client, f"/sessions/{s.id}/metrics")
        assert res.status_code == 200
        data = res.get_json()
        assert data["session_id"] == s.id
        assert data["simulated"] is True
        assert {"cpu", "memory", "battery", "network", "timestamp"} <= set(data)

    def test_metrics_unknown_session_is_404(self, client):
        assert _get(client, "/sessions/9999/metrics").status_code == 404


class TestSimulatedController:
    def test_zero_delay_install_returns_immediately(self, device):
        SimulatedDeviceController(install_delay=0).install(device, "/uploads/apps/x.apk")

    def test_capture_names_are_unique(self, user):
        s = _web_session(user)
        controller = SimulatedDeviceController(install_delay=0)
        assert controller.capture(s).filename != controller.capture(s).filename
