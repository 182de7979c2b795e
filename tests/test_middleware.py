import logging
from wsgiref.util import setup_testing_defaults

import pytest

from agentforge.metrics import reset_request_metrics, snapshot_request_metrics
from agentforge.middleware import (
    AuthMiddleware,
    TenantInfo,
    effective_auth_mode,
    extract_identity,
    get_tenant,
)


def make_environ(path="/tasks", method="GET", headers=None):
    environ = {}
    setup_testing_defaults(environ)
    environ["REQUEST_METHOD"] = method
    environ["PATH_INFO"] = path
    environ["SCRIPT_NAME"] = ""
    for name, value in (headers or {}).items():
        environ["HTTP_" + name.upper().replace("-", "_")] = value
    return environ


def call(app, environ):
    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = status
        captured["headers"] = dict(headers)
        return lambda data: None

    body = b"".join(app(environ, start_response))
    return int(captured["status"].split()[0]), captured["headers"], body


def make_app(status="204 No Content", seen=None):
    def app(environ, start_response):
        if seen is not None:
            seen.append(get_tenant(environ))
        start_response(status, [])
        return []

    return app


@pytest.fixture
def header_mode(monkeypatch):
    monkeypatch.setenv("AGENTFORGE_AUTH_MODE", "header")


@pytest.fixture
def trusted_mode(monkeypatch):
    monkeypatch.setenv("AGENTFORGE_AUTH_MODE", "trusted")


def test_sets_request_id(header_mode):
    seen = []
    environ = make_environ(headers={"X-Tenant-Id": "tnt_1", "X-User-Id": "user_1"})
    status, headers, _ = call(AuthMiddleware(make_app(seen=seen)), environ)
    assert status == 204
    assert seen[0] is not None and seen[0].request_id.startswith("req_")
    assert headers["X-Request-Id"] == seen[0].request_id


def test_uses_provided_request_id(header_mode):
    seen = []
    environ = make_environ(
        headers={"X-Tenant-Id": "tnt_1", "X-User-Id": "user_1", "X-Request-Id": "req_custom"}
    )
    _, headers, _ = call(AuthMiddleware(make_app(seen=seen)), environ)
    assert seen[0].request_id == "req_custom"
    assert headers["X-Request-Id"] == "req_custom"


def test_requires_user_identity(header_mode):
    environ = make_environ(headers={"X-Tenant-Id": "tnt_1"})
    status, headers, body = call(AuthMiddleware(make_app()), environ)
    assert status == 401
    assert b"missing authenticated user identity" in body
    assert headers["X-Request-Id"] in body.decode()


def test_requires_tenant_identity(header_mode):
    environ = make_environ(headers={"X-User-Id": "user_1"})
    status, _, body = call(AuthMiddleware(make_app()), environ)
    assert status == 401
    assert b"missing authenticated tenant identity" in body


def test_trusted_mode_uses_trusted_headers(trusted_mode):
    seen = []
    environ = make_environ(
        headers={
            "X-Authenticated-Tenant-Id": "trusted_tenant",
            "X-Authenticated-User-Id": "trusted_user",
            "X-Tenant-Id": "spoof_tenant",
            "X-User-Id": "spoof_user",
        }
    )
    status, _, _ = call(AuthMiddleware(make_app(seen=seen)), environ)
    assert status == 204
    assert seen[0].tenant_id == "trusted_tenant"
    assert seen[0].user_id == "trusted_user"


def test_trusted_mode_rejects_legacy_headers(trusted_mode):
    environ = make_environ(headers={"X-Tenant-Id": "tnt_1", "X-User-Id": "user_1"})
    status, _, _ = call(AuthMiddleware(make_app()), environ)
    assert status == 401


def test_logs_structured_request_fields(header_mode, caplog):
    caplog.set_level(logging.INFO, logger="agentforge.api")
    environ = make_environ(
        path="/tasks/task_123",
        headers={"X-Tenant-Id": "tnt_1", "X-User-Id": "user_1", "X-Request-Id": "req_custom"},
    )
    call(AuthMiddleware(make_app()), environ)
    line = caplog.text
    for want in [
        "request method=GET",
        "path=/tasks/task_123",
        "status=204",
        "request_id=req_custom",
        "tenant_id=tnt_1",
        "user_id=user_1",
        "latency_ms=",
    ]:
        assert want in line


def test_records_request_metrics(header_mode):
    reset_request_metrics()
    try:
        app = AuthMiddleware(make_app(status="201 Created"))
        call(app, make_environ(method="POST", headers={"X-Tenant-Id": "tnt_1", "X-User-Id": "user_1"}))
        call(app, make_environ(method="POST", headers={"X-Tenant-Id": "tnt_1"}))
        snap = snapshot_request_metrics()
        assert snap.requests_total == 2
        assert snap.status_2xx == 1
        assert snap.status_4xx == 1
        assert snap.status_5xx == 0
        assert snap.latency_ms_total >= 0
    finally:
        reset_request_metrics()


def test_body_is_passed_through(header_mode):
    def app(environ, start_response):
        start_response("200 OK", [("Content-Type", "application/json")])
        return [b'{"a":', b"1}"]

    environ = make_environ(headers={"X-Tenant-Id": "tnt_1", "X-User-Id": "user_1"})
    status, headers, body = call(AuthMiddleware(app), environ)
    assert status == 200
    assert body == b'{"a":1}'
    assert headers["Content-Type"] == "application/json"


@pytest.mark.parametrize(
    "mode_value, runtime, expected",
    [
        ("header", "aws", "header"),
        ("trusted", "", "trusted"),
        ("trusted_claims", "", "trusted"),
        ("CLAIMS", "", "trusted"),
        ("", "aws", "trusted"),
        ("", "local", "header"),
        ("bogus", "", "header"),
    ],
)
def test_effective_auth_mode(monkeypatch, mode_value, runtime, expected):
    monkeypatch.setenv("AGENTFORGE_AUTH_MODE", mode_value)
    monkeypatch.setenv("AGENTFORGE_RUNTIME", runtime)
    assert effective_auth_mode() == expected


def test_extract_identity_trims_values():
    environ = make_environ(headers={"X-Tenant-Id": "  tnt_1 ", "X-User-Id": " user_1"})
    assert extract_identity(environ, "header") == ("tnt_1", "user_1")
    assert extract_identity(environ, "trusted") == ("", "")


def test_get_tenant_absent_returns_none():
    assert get_tenant(make_environ()) is None


def test_tenant_info_fields():
    info = TenantInfo(tenant_id="t", user_id="u", request_id="r")
    assert (info.tenant_id, info.user_id, info.request_id) == ("t", "u", "r")