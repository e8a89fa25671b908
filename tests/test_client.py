"""Tests for the request context and the HTTP client."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from ipctl.client.context import RequestContext
from ipctl.client.http import HttpClient, Response
from ipctl.client.service import check_response, request_json
from ipctl.config.profile import Profile
from ipctl.errors import AuthenticationError, DeadlineError, FormattingError, ServerError, TransportError


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _http_response(status: int = 200, content: bytes = b"", reason: str = "OK"):
    resp = MagicMock()
    resp.status_code = status
    resp.reason = reason
    resp.content = content
    resp.headers = {"Content-Type": "application/json"}
    return resp


def _client(profile: Profile, *responses, ctx=None):
    session = MagicMock()
    session.headers = {}
    session.request.side_effect = list(responses)
    return HttpClient(ctx or RequestContext.background(), profile, session=session), session


class TestRequestContext:
    """Deadline and cancellation."""

    def test_no_deadline_without_timeout(self):
        ctx = RequestContext.background()
        assert not ctx.has_deadline
        assert ctx.remaining() is None
        ctx.check()

    def test_deadline_is_start_plus_timeout(self):
        clock = FakeClock(50.0)
        ctx = RequestContext(30, clock=clock)
        assert ctx.deadline == 80.0
        clock.now = 70.0
        assert ctx.remaining() == 10.0
        ctx.check()

    def test_expired(self):
        clock = FakeClock(0.0)
        ctx = RequestContext(5, clock=clock)
        clock.now = 5.0
        assert ctx.expired
        with pytest.raises(DeadlineError, match="deadline exceeded"):
            ctx.check()
        assert ctx.remaining() == 0.0

    def test_cancel_runs_callbacks_once(self):
        ctx = RequestContext.background()
        calls = []
        ctx.on_cancel(lambda: calls.append(1))
        ctx.cancel()
        ctx.cancel()
        assert calls == [1]
        assert ctx.done
        with pytest.raises(DeadlineError, match="canceled"):
            ctx.check()


class TestHttpClient:
    """Transport, authentication and error mapping."""

    def test_base_url_without_port(self):
        client, _ = _client(Profile(host="p.example"))
        assert client.base_url == "https://p.example"

    def test_base_url_with_port(self):
        client, _ = _client(Profile(host="p.example", port=3000, use_tls=False))
        assert client.base_url == "http://p.example:3000"

    def test_url_params(self):
        client, _ = _client(Profile(host="p.example"))
        assert client.url_for("health", {"a": "1"}) == "https://p.example/health?a=1"

    def test_login_happens_once(self):
        client, session = _client(
            Profile(host="p.example", username="admin", password="secret"),
            _http_response(200),
            _http_response(200, b'{"a": 1}'),
            _http_response(200, b'{"b": 2}'),
        )
        assert client.call("/one").json() == {"a": 1}
        assert client.call("/two").json() == {"b": 2}

        urls = [c.args[1] for c in session.request.call_args_list]
        assert urls == ["https://p.example/login", "https://p.example/one", "https://p.example/two"]

    def test_login_rejected(self):
        client, _ = _client(Profile(), _http_response(401, reason="Unauthorized"))
        with pytest.raises(AuthenticationError, match="401 Unauthorized"):
            client.call("/x")

    def test_client_credentials(self):
        client, session = _client(
            Profile(host="p.example", client_id="id", client_secret="sec"),
            _http_response(200, b'{"access_token": "tok"}'),
            _http_response(200, b"[]"),
        )
        client.call("/items")
        assert session.headers["Authorization"] == "Bearer tok"
        first = session.request.call_args_list[0]
        assert first.args[1] == "https://p.example/oauth/token"
        assert first.kwargs["data"]["grant_type"] == "client_credentials"

    def test_token_missing(self):
        client, _ = _client(
            Profile(client_id="id", client_secret="sec"),
            _http_response(200, b"{}"),
        )
        with pytest.raises(AuthenticationError, match="access token"):
            client.call("/items")

    def test_timeout_maps_to_deadline(self):
        client, _ = _client(Profile(), _http_response(200), requests.exceptions.Timeout("slow"))
        with pytest.raises(DeadlineError):
            client.call("/slow")

    def test_connection_error(self):
        client, _ = _client(Profile(host="p.example"), requests.exceptions.ConnectionError("refused"))
        with pytest.raises(TransportError, match="failed to connect to p.example"):
            client.call("/x")

    def test_cancelled_context_sends_nothing(self):
        ctx = RequestContext.background()
        client, session = _client(Profile(), ctx=ctx)
        ctx.cancel()
        with pytest.raises(DeadlineError):
            client.call("/x")
        session.request.assert_not_called()
        session.close.assert_called_once()

    def test_timeout_passed_to_session(self):
        clock = FakeClock(0.0)
        ctx = RequestContext(30, clock=clock)
        client, session = _client(Profile(), _http_response(200), _http_response(200), ctx=ctx)
        client.call("/x")
        assert session.request.call_args.kwargs["timeout"] == 30.0

    def test_body_is_json_encoded(self):
        client, session = _client(Profile(), _http_response(200), _http_response(201, b"{}"))
        client.call("/items", "post", {"name": "a"})
        last = session.request.call_args
        assert last.args[0] == "POST"
        assert last.kwargs["data"] == b'{"name": "a"}'

    def test_verify_disabled(self):
        client, session = _client(Profile(verify=False))
        assert session.verify is False


def _response(status: int, body: bytes = b"") -> Response:
    return Response(method="GET", url="https://p.example/x", body=body,
                    status_code=status, status=str(status))


class TestCheckResponse:
    """Status validation."""

    def test_any_2xx_by_default(self):
        assert check_response(_response(204)).status_code == 204

    def test_expected_status(self):
        with pytest.raises(ServerError) as info:
            check_response(_response(200, b"nope"), expected_status=201)
        assert info.value.status_code == 200
        assert info.value.message == "nope"

    def test_empty_body_message(self):
        with pytest.raises(ServerError, match="expected status code 2xx, got 500"):
            check_response(_response(500))

    def test_request_json_decode_error(self):
        client = MagicMock()
        client.call.return_value = _response(200, b"<html>")
        with pytest.raises(FormattingError, match="unable to decode"):
            request_json(client, "GET", "/x")

    def test_request_json_empty(self):
        client = MagicMock()
        client.call.return_value = _response(200)
        assert request_json(client, "GET", "/x") is None
