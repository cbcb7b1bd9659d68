"""HTTP status and transport failure mapping onto the error taxonomy."""

from unittest.mock import Mock

import pytest
import requests

from pte.errors import AuthError, NotFoundError, QuotaError, TransferError, TransientError
from pte.providers.base import Credential
from pte.providers.http import error_for_response, format_duration_ms
from pte.providers.spotify.client import SpotifyAdapter


def fake_response(status: int, text: str = "", headers=None, payload=None):
    r = Mock()
    r.status_code = status
    r.text = text
    r.headers = headers or {}
    r.content = text.encode() if text else b""
    r.json.return_value = payload if payload is not None else {}
    return r


@pytest.mark.parametrize("status,text,expected", [
    (401, "Unauthorized", AuthError),
    (403, "Forbidden", AuthError),
    (403, '{"error": {"errors": [{"reason": "quotaExceeded"}]}}', QuotaError),
    (429, "Too Many Requests", QuotaError),
    (404, "Not found", NotFoundError),
    (408, "", TransientError),
    (500, "", TransientError),
    (503, "Service Unavailable", TransientError),
    (400, "Bad request", TransferError),
])
def test_error_for_response(status, text, expected):
    err = error_for_response(fake_response(status, text), "search")
    assert type(err) is expected
    assert f"HTTP {status}" in str(err)


def test_retry_after_is_reported():
    err = error_for_response(fake_response(429, headers={"Retry-After": "30"}), "add tracks")
    assert "Retry-After 30s" in str(err)


def _adapter(session, **cred):
    return SpotifyAdapter(Credential("token", **cred), {"timeout_seconds": 7}, session=session)


def test_request_sends_bearer_token_and_timeout():
    session = Mock()
    session.request.return_value = fake_response(200, "{}", payload={"id": "me"})

    assert _adapter(session)._get("/me") == {"id": "me"}

    _, kwargs = session.request.call_args
    assert kwargs["headers"]["Authorization"] == "Bearer token"
    assert kwargs["timeout"] == 7.0
    assert session.request.call_args[0][1] == "https://api.spotify.com/v1/me"


def test_error_status_raises_mapped_error():
    session = Mock()
    session.request.return_value = fake_response(401, "expired")
    with pytest.raises(AuthError):
        _adapter(session)._get("/me")


@pytest.mark.parametrize("exc", [requests.ConnectionError("reset"), requests.Timeout("slow")])
def test_transport_failures_are_transient(exc):
    session = Mock()
    session.request.side_effect = exc
    with pytest.raises(TransientError):
        _adapter(session)._get("/me")


def test_expired_credential_rejected_before_request():
    session = Mock()
    with pytest.raises(AuthError):
        _adapter(session, expires_at=1.0)._get("/me")
    session.request.assert_not_called()


def test_empty_body_decodes_to_empty_dict():
    session = Mock()
    session.request.return_value = fake_response(201)
    assert _adapter(session)._post("/playlists/x/tracks", json={}) == {}


@pytest.mark.parametrize("ms,expected", [(185000, "3:05"), (59999, "0:59"), (None, None), (0, None)])
def test_format_duration_ms(ms, expected):
    assert format_duration_ms(ms) == expected
