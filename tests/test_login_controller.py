# -*- coding: utf-8 -*-
import pytest
import requests

from controllers.login_controller import IdentityProvider, LoginController, map_provider_error, message_for_code
from tests.conftest import FakeResponse, FakeSession


def _controller(session):
    return LoginController(IdentityProvider(api_key="test-key", endpoint="https://auth.test/signIn", session=session))


def test_successful_login():
    session = FakeSession()
    result = _controller(session).login(" a@b.c ", "secret")

    assert result["success"]
    assert result["user_data"] == {"uid": "uid-1", "email": "a@b.c", "token": "tok"}

    url, kwargs = session.calls[0]
    assert url == "https://auth.test/signIn"
    assert kwargs["params"] == {"key": "test-key"}
    assert kwargs["json"]["email"] == "a@b.c"
    assert session.headers["Content-Type"] == "application/json"


def test_empty_credentials_are_not_sent():
    session = FakeSession()
    result = _controller(session).login("", "")
    assert not result["success"]
    assert result["message"] == "請輸入帳號與密碼"
    assert session.calls == []


@pytest.mark.parametrize("status_code, payload, expected", [
    (400, {"error": {"message": "EMAIL_NOT_FOUND"}}, "auth/user-not-found"),
    (400, {"error": {"message": "INVALID_PASSWORD"}}, "auth/wrong-password"),
    (400, {"error": {"message": "INVALID_LOGIN_CREDENTIALS"}}, "auth/invalid-credential"),
    (400, {"error": {"message": "TOO_MANY_ATTEMPTS_TRY_LATER : Access disabled"}}, "auth/too-many-requests"),
    (400, {"error": {"message": "PASSWORD_LOGIN_DISABLED"}}, "auth/operation-not-allowed"),
    (403, {"error": {"message": "Requests from referer http://x are blocked.",
                     "status": "PERMISSION_DENIED"}}, "auth/unauthorized-domain"),
    (500, {"error": {"message": "SOMETHING_ELSE"}}, "auth/unknown"),
    (500, None, "auth/unknown"),
])
def test_map_provider_error(status_code, payload, expected):
    assert map_provider_error(status_code, payload) == expected


def test_failed_login_returns_mapped_message():
    session = FakeSession(response=FakeResponse(400, {"error": {"message": "INVALID_PASSWORD"}}))
    result = _controller(session).login("a@b.c", "wrong")
    assert not result["success"]
    assert result["code"] == "auth/wrong-password"
    assert result["message"] == "密碼錯誤，請重新輸入。"


def test_non_json_error_body_is_unknown():
    session = FakeSession(response=FakeResponse(502, None))
    result = _controller(session).login("a@b.c", "pw")
    assert result["code"] == "auth/unknown"


def test_network_failure():
    session = FakeSession(error=requests.ConnectionError("down"))
    result = _controller(session).login("a@b.c", "pw")
    assert result["code"] == "auth/network-request-failed"
    assert result["message"] == "網路連線異常，請檢查連線狀態。"


def test_unknown_code_message():
    assert message_for_code("auth/whatever") == message_for_code("auth/unknown")
