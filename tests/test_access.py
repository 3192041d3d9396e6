import io
import json
from http import HTTPStatus

import pytest

from anet.access import (
    AccessValidationError,
    ApiKeyMiddleware,
    CheckAccessRequest,
    CheckAccessResponse,
    check_access,
    create_app,
)
from anet.users import UserStore

AUTH_KEY = "placeholder"


@pytest.fixture
def store():
    with UserStore() as s:
        s.create_schema()
        s.add("fingerprint-active", "user-1", True)
        s.add("fingerprint-banned", "user-2", False)
        yield s


def _call(app, method, path, body=None, auth=None):
    data = b"" if body is None else body
    environ = {
        "REQUEST_METHOD": method,
        "PATH_INFO": path,
        "CONTENT_LENGTH": str(len(data)),
        "wsgi.input": io.BytesIO(data),
    }
    if auth is not None:
        environ["HTTP_X_AUTH_KEY"] = auth
    captured = {}

    def start_response(status, headers):
        captured["status"] = status
        captured["headers"] = headers

    result = b"".join(app(environ, start_response))
    code = int(captured["status"].split()[0])
    return code, result


def _post(app, payload, auth=AUTH_KEY):
    return _call(app, "POST", "/check_access", json.dumps(payload).encode(), auth)


def test_active_user_allowed(store):
    assert check_access(store, "fingerprint-active") == CheckAccessResponse(
        True, "Access granted"
    )


def test_inactive_user_denied(store):
    assert check_access(store, "fingerprint-banned") == CheckAccessResponse(
        False, "Account is banned or inactive"
    )


def test_unknown_user_denied(store):
    assert check_access(store, "fingerprint-unknown") == CheckAccessResponse(
        False, "User not found"
    )


def test_short_fingerprint_rejected(store):
    with pytest.raises(AccessValidationError):
        check_access(store, "short")
    with pytest.raises(AccessValidationError):
        CheckAccessRequest("tiny")


def test_request_rejects_non_string():
    with pytest.raises(AccessValidationError):
        CheckAccessRequest(1234567890)


def test_missing_key_unauthorized(store):
    code, body = _post(create_app(store, AUTH_KEY), {"fingerprint": "fingerprint-active"}, None)
    assert code == HTTPStatus.UNAUTHORIZED
    assert b"Invalid or missing X-Auth-Key" in body


def test_wrong_key_unauthorized(store):
    code, _ = _post(create_app(store, AUTH_KEY), {"fingerprint": "fingerprint-active"}, "secret")
    assert code == HTTPStatus.UNAUTHORIZED


def test_authorized_check(store):
    code, body = _post(create_app(store, AUTH_KEY), {"fingerprint": "fingerprint-active"})
    assert code == HTTPStatus.OK
    assert json.loads(body) == {"allowed": True, "message": "Access granted"}


def test_authorized_check_banned(store):
    code, body = _post(create_app(store, AUTH_KEY), {"fingerprint": "fingerprint-banned"})
    assert code == HTTPStatus.OK
    assert json.loads(body)["allowed"] is False


def test_spec_open_without_key(store):
    code, body = _call(create_app(store, AUTH_KEY), "GET", "/spec")
    assert code == HTTPStatus.OK
    assert "/check_access" in json.loads(body)["paths"]


def test_validation_error_is_bad_request(store):
    code, _ = _post(create_app(store, AUTH_KEY), {"fingerprint": "short"})
    assert code == HTTPStatus.BAD_REQUEST


def test_malformed_json_is_bad_request(store):
    app = create_app(store, AUTH_KEY)
    code, _ = _call(app, "POST", "/check_access", b"{not json", AUTH_KEY)
    assert code == HTTPStatus.BAD_REQUEST


def test_missing_field_is_bad_request(store):
    code, _ = _post(create_app(store, AUTH_KEY), {"other": "value"})
    assert code == HTTPStatus.BAD_REQUEST


def test_wrong_method(store):
    code, _ = _call(create_app(store, AUTH_KEY), "GET", "/check_access", auth=AUTH_KEY)
    assert code == HTTPStatus.METHOD_NOT_ALLOWED


def test_unknown_path(store):
    code, _ = _call(create_app(store, AUTH_KEY), "GET", "/nowhere", auth=AUTH_KEY)
    assert code == HTTPStatus.NOT_FOUND


def test_database_error_is_server_error(store):
    app = create_app(store, AUTH_KEY)
    store.drop_schema()
    code, _ = _post(app, {"fingerprint": "fingerprint-active"})
    assert code == HTTPStatus.INTERNAL_SERVER_ERROR


def test_middleware_passes_swagger_paths():
    def inner(environ, start_response):
        start_response("200 OK", [])
        return [b"inner"]

    code, body = _call(ApiKeyMiddleware(inner, AUTH_KEY), "GET", "/swagger/index.html")
    assert code == HTTPStatus.OK
    assert body == b"inner"