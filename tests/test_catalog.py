"""
Device / Browser catalog API tests.

Covers:
    - GET  /api/devices : active filtering on both sides of a pairing
    - GET  /api/browsers: mirror of the device listing
    - POST /api/devices : defaults and validation
    - POST /api/browsers: defaults and validation
"""

from conftest import make_browser, make_device, make_pairing

API = "/api"


def _post(client, url, data=None):
    return client.post(API + url, json=data or {})


def _get(client, url):
    return client.get(API + url)


# ═════════════════════════════════════════════════════════════════════════════
# Devices
# ═════════════════════════════════════════════════════════════════════════════


class TestListDevices:
    def test_empty_catalog_returns_empty_list(self, client):
        res = _get(client, "/devices")
        assert res.status_code == 200
        assert res.get_json() == []

    def test_inactive_device_is_excluded(self, client):
        make_device(name="Retired Phone", is_active=False)
        live = make_device(name="Pixel 8")

        data = _get(client, "/devices").get_json()
        assert [d["id"] for d in data] == [live.id]

    def test_pairings_with_inactive_browsers_are_dropped(self, client):
        device = make_device(name="Desktop Windows 11", type="DESKTOP")
        chrome = make_browser(name="Chrome")
        legacy = make_browser(name="Internet Explorer", version="11", is_active=False)
        make_pairing(device, chrome)
        make_pairing(device, legacy)

        data = _get(client, "/devices").get_json()
        assert len(data) == 1
        pairings = data[0]["browser_devices"]
        assert [p["browser"]["name"] for p in pairings] == ["Chrome"]

    def test_active_device_with_only_inactive_browsers_has_no_pairings(self, client):
        device = make_device(name="Old Tablet", type="TABLET")
        make_pairing(device, make_browser(name="Opera Mini", is_active=False))

        data = _get(client, "/devices").get_json()
        assert len(data) == 1
        assert data[0]["browser_devices"] == []

    def test_newest_device_first(self, client):
        first = make_device(name="First")
        second = make_device(name="Second")

        data = _get(client, "/devices").get_json()
        assert [d["id"] for d in data] == [second.id, first.id]


class TestCreateDevice:
    def test_create_device_defaults(self, client):
        res = _post(client, "/devices", {"name": "Generic PC"})
        assert res.status_code == 201
        data = res.get_json()
        assert data["name"] == "Generic PC"
        assert data["type"] == "DESKTOP"
        assert data["is_mobile"] is False
        assert data["is_active"] is True

    def test_create_device_type_is_case_insensitive(self, client):
        res = _post(client, "/devices", {"name": "Galaxy Tab", "type": "tablet", "is_mobile": True})
        assert res.status_code == 201
        assert res.get_json()["type"] == "TABLET"
        assert res.get_json()["is_mobile"] is True

    def test_create_device_requires_name(self, client):
        res = _post(client, "/devices", {"type": "MOBILE"})
        assert res.status_code == 400
        assert "name" in res.get_json()["error"]

    def test_create_device_rejects_unknown_type(self, client):
        res = _post(client, "/devices", {"name": "Watch", "type": "WEARABLE"})
        assert res.status_code == 400

    def test_created_device_is_listed(self, client):
        _post(client, "/devices", {"name": "Pixel 8", "type": "MOBILE"})
        names = [d["name"] for d in _get(client, "/devices").get_json()]
        assert names == ["Pixel 8"]

    def test_create_device_rejects_non_string_name(self, client):
        res = _post(client, "/devices", {"name": 123})
        assert res.status_code == 400
        assert res.get_json()["error"] == "name must be a string"

    def test_create_device_rejects_non_string_type(self, client):
        res = _post(client, "/devices", {"name": "Pixel 8", "type": 5})
        assert res.status_code == 400

    def test_create_device_rejects_non_boolean_is_mobile(self, client):
        res = _post(client, "/devices", {"name": "Pixel 8", "is_mobile": "yes"})
        assert res.status_code == 400


# ═════════════════════════════════════════════════════════════════════════════
# Browsers
# ═════════════════════════════════════════════════════════════════════════════


class TestListBrowsers:
    def test_inactive_browser_is_excluded(self, client):
        make_browser(name="Netscape", is_active=False)
        firefox = make_browser(name="Firefox", version="121")

        data = _get(client, "/browsers").get_json()
        assert [b["id"] for b in data] == [firefox.id]

    def test_pairings_with_inactive_devices_are_dropped(self, client):
        safari = make_browser(name="Safari", version="17")
        make_pairing(make_device(name="iPhone 15 Pro"), safari)
        make_pairing(make_device(name="iPhone 6", is_active=False), safari)

        data = _get(client, "/browsers").get_json()
        pairings = data[0]["browser_devices"]
        assert [p["device"]["name"] for p in pairings] == ["iPhone 15 Pro"]


class TestCreateBrowser:
    def test_create_browser(self, client):
        res = _post(client, "/browsers", {"name": "Edge", "version": "120", "engine": "Blink"})
        assert res.status_code == 201
        data = res.get_json()
        assert data["engine"] == "Blink"
        assert data["is_mobile"] is False

    def test_create_browser_requires_name(self, client):
        res = _post(client, "/browsers", {"version": "1"})
        assert res.status_code == 400

    def test_create_browser_rejects_non_string_fields(self, client):
        assert _post(client, "/browsers", {"name": ["Edge"]}).status_code == 400
        assert _post(client, "/browsers", {"name": "Edge", "version": 120}).status_code == 400


class TestContentTypeGuard:
    def test_non_json_body_is_rejected(self, client):
        res = client.post(API + "/devices", data="name=x", content_type="text/plain")
        assert res.status_code == 415
