"""
Tests for the webhook HTTP surface.

Every failure is an empty 500; success is an empty 200.
"""

import pytest

pytest.importorskip("flask")

from conftest import push_body, webhook_headers


class TestWebhookRoute:

    def test_push_mirrored(self, client, fake_git):
        body = push_body()
        resp = client.post("/", data=body, headers=webhook_headers(body))

        assert resp.status_code == 200
        assert resp.get_data() == b""
        assert fake_git.operations() == ["clone", "config", "push"]

    def test_any_path_accepted(self, client):
        body = push_body()
        resp = client.post("/F", data=body, headers=webhook_headers(body))
        assert resp.status_code == 200

    def test_bad_signature(self, client, fake_git, fake_credentials):
        body = push_body()
        resp = client.post("/", data=body, headers=webhook_headers(body, secret="wrong"))

        assert resp.status_code == 500
        assert resp.get_data() == b""
        assert fake_credentials.calls == 0
        assert fake_git.calls == []

    def test_unsupported_event(self, client, fake_git):
        body = push_body()
        resp = client.post("/", data=body, headers=webhook_headers(body, event="issues"))
        assert resp.status_code == 500
        assert fake_git.calls == []

    def test_missing_target_repository(self, client, fake_git):
        body = push_body(name="absent")
        resp = client.post("/", data=body, headers=webhook_headers(body))
        assert resp.status_code == 500
        assert resp.get_data() == b""
        assert fake_git.calls == []

    @pytest.mark.parametrize("method", ["GET", "PUT", "PATCH", "DELETE", "OPTIONS"])
    def test_other_methods_fail_validation(self, client, fake_git, fake_credentials, method):
        resp = client.open("/", method=method)

        assert resp.status_code == 500
        assert resp.get_data() == b""
        assert "Allow" not in resp.headers
        assert fake_credentials.calls == 0
        assert fake_git.calls == []

    def test_head_fails_validation(self, client):
        resp = client.head("/F")
        assert resp.status_code == 500


class TestHealthz:

    def test_ok(self, client, fake_credentials):
        resp = client.get("/healthz")
        assert resp.status_code == 200
        assert resp.get_json() == {"status": "ok"}
        assert fake_credentials.calls == 0
