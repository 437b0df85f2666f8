"""Request timing headers and structured log formatting with lab context."""

import io
import json
import logging

from devicelab.middleware.logging_config import (
    JSONFormatter,
    ReadableFormatter,
    build_formatter,
    lab_extra,
)
from devicelab.models import db
from devicelab.models.session import TestSession

API = "/api"


def _record(msg="TestSession id=%s transitioned", args=(7,), **extra):
    record = logging.LogRecord(
        name="devicelab.services.session_service",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def _records_with(caplog, attr):
    return [r for r in caplog.records if getattr(r, attr, None) is not None]


class TestRequestTiming:
    def test_timing_headers_present(self, client):
        res = client.get("/api/devices")
        assert "X-Request-Duration-Ms" in res.headers
        assert res.headers["X-Request-ID"]

    def test_incoming_request_id_is_echoed(self, client):
        res = client.get("/api/devices", headers={"X-Request-ID": "trace-abc"})
        assert res.headers["X-Request-ID"] == "trace-abc"


class TestFormatters:
    def test_json_includes_request_and_lab_fields(self):
        record = _record(session_id=7, device_id=3, request_id="abc123", app_type="ANDROID_APK")
        entry = json.loads(JSONFormatter().format(record))
        assert entry["message"] == "TestSession id=7 transitioned"
        assert entry["level"] == "INFO"
        assert entry["session_id"] == 7
        assert entry["device_id"] == 3
        assert entry["app_type"] == "ANDROID_APK"
        assert entry["request_id"] == "abc123"

    def test_json_omits_unset_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert "session_id" not in entry
        assert "device_id" not in entry

    def test_readable_tags_session_and_device(self):
        line = ReadableFormatter(color=False).format(_record(session_id=7, device_id=3))
        assert "[session=7 device=3]" in line
        assert line.endswith("TestSession id=7 transitioned")

    def test_build_formatter(self):
        assert isinstance(build_formatter("json"), JSONFormatter)
        assert isinstance(build_formatter("readable"), ReadableFormatter)


class TestLabExtra:
    def test_device_comes_from_session_pairing(self, user, pairing):
        s = TestSession(user_id=user.id, browser_device_id=pairing.id, url="https://example.com")
        db.session.add(s)
        db.session.commit()
        assert lab_extra(s) == {"session_id": s.id, "device_id": pairing.device_id}

    def test_explicit_fields_and_unset_values(self, device):
        assert lab_extra(device=device, app_type=None) == {"device_id": device.id}
        assert lab_extra(device_id=5, unknown="x") == {"device_id": 5}


class TestServiceLogContext:
    def test_transition_log_carries_session_and_device(self, client, user, pairing, caplog):
        s = TestSession(user_id=user.id, browser_device_id=pairing.id, url="https://example.com")
        db.session.add(s)
        db.session.commit()

        with caplog.at_level(logging.INFO, logger="devicelab"):
            client.post(f"{API}/sessions/{s.id}/start", json={})

        records = [r for r in _records_with(caplog, "session_id") if "transitioned" in r.getMessage()]
        assert len(records) == 1
        assert records[0].session_id == s.id
        assert records[0].device_id == pairing.device_id

    def test_install_log_carries_device(self, client, user, pairing, caplog):
        s = TestSession(user_id=user.id, browser_device_id=pairing.id,
                        app_path="/uploads/apps/x.apk", app_type="ANDROID_APK")
        db.session.add(s)
        db.session.commit()

        with caplog.at_level(logging.INFO, logger="devicelab"):
            client.post(f"{API}/sessions/{s.id}/install-app", json={})

        records = [r for r in _records_with(caplog, "device_id") if "App installed" in r.getMessage()]
        assert len(records) == 1
        assert records[0].device_id == pairing.device_id
        assert records[0].session_id == s.id
        assert records[0].app_type == "ANDROID_APK"

    def test_upload_log_carries_session_and_app_type(self, client, user, pairing, upload_dir, caplog):
        data = {
            "appFile": (io.BytesIO(b"apk"), "demo.apk", "application/octet-stream"),
            "deviceId": str(pairing.device_id),
            "userId": str(user.id),
        }
        with caplog.at_level(logging.INFO, logger="devicelab"):
            res = client.post(f"{API}/upload-app", data=data, content_type="multipart/form-data")

        session_id = res.get_json()["session"]["id"]
        records = [r for r in _records_with(caplog, "session_id") if "App uploaded" in r.getMessage()]
        assert len(records) == 1
        assert records[0].session_id == session_id
        assert records[0].device_id == pairing.device_id
        assert records[0].app_type == "ANDROID_APK"
