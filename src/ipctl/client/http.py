"""
HTTP client bound to one connection profile and one request context.

Transport settings and the authentication mode are fixed when the
client is built. Authentication happens lazily before the first call:
client credentials (OAuth token endpoint) when both ``client_id`` and
``client_secret`` are set, otherwise a JSON login with username and
password.
"""

from __future__ import annotations

import json
import logging
import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests
from urllib3.exceptions import InsecureRequestWarning

from ..config.profile import Profile
from ..errors import AuthenticationError, DeadlineError, TransportError
from .context import RequestContext

logger = logging.getLogger("ipctl.client.http")

TOKEN_PATH = "/oauth/token"
LOGIN_PATH = "/login"


@dataclass
class Response:
    """A fully read HTTP response."""
    method: str
    url: str
    body: bytes
    status_code: int
    status: str
    headers: Dict[str, str] = field(default_factory=dict)

    def text(self) -> str:
        """The body decoded as UTF-8."""
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """The decoded JSON body, or ``None`` when the body is blank.

        Raises:
            ValueError: If the body is not valid JSON.
        """
        if not self.body.strip():
            return None
        return json.loads(self.body)

    @property
    def ok(self) -> bool:
        """True for any 2xx status."""
        return 200 <= self.status_code < 300


def _encode_body(body: Any) -> bytes:
    """Encode *body* as JSON bytes; bytes and str pass through."""
    if body is None:
        return b""
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return json.dumps(body).encode("utf-8")


class HttpClient:
    """Talks to the platform API for the duration of one invocation."""

    def __init__(
        self,
        ctx: RequestContext,
        profile: Profile,
        session: Optional[requests.Session] = None,
    ):
        """Create a client; nothing is sent until the first call.

        Args:
            ctx: Deadline and cancellation for every request.
            profile: Host, TLS and credentials to use.
            session: Session to send through; a new one when omitted.
        """
        self.ctx = ctx
        self.profile = profile
        self.scheme = "https" if profile.use_tls else "http"
        self.netloc = profile.host if not profile.port else f"{profile.host}:{profile.port}"
        self.use_client_credentials = profile.uses_client_credentials
        self._authenticated = False

        self.session = session or requests.Session()
        self.session.headers.update(
            {"Content-Type": "application/json", "Accept": "application/json"}
        )
        if profile.use_tls and not profile.verify:
            logger.debug("Disabling client certificate verification")
            warnings.filterwarnings("ignore", category=InsecureRequestWarning)
            self.session.verify = False

        ctx.on_cancel(self.close)
        logger.info("Creating new http client")

    @property
    def base_url(self) -> str:
        """Scheme and host of the platform."""
        return f"{self.scheme}://{self.netloc}"

    def url_for(self, path: str, params: Optional[Dict[str, str]] = None) -> str:
        """Build an absolute URL for *path*.

        Args:
            path: API path; a leading ``/`` is added when missing.
            params: Query parameters.

        Returns:
            str: The URL.
        """
        if not path.startswith("/"):
            path = "/" + path
        url = self.base_url + path
        if params:
            sep = "&" if "?" in path else "?"
            url = f"{url}{sep}{urlencode(params)}"
        return url

    def close(self) -> None:
        """Release the underlying session."""
        self.session.close()

    # -- authentication ------------------------------------------------------

    def authenticate(self) -> None:
        """Log in once per client, by token or by username and password.

        Raises:
            AuthenticationError: The server rejected the credentials.
        """
        if self._authenticated:
            return
        if self.use_client_credentials:
            self._fetch_token()
        else:
            self._login()
        self._authenticated = True

    def _fetch_token(self) -> None:
        """OAuth client-credentials grant; the token becomes the bearer header."""
        logger.debug("attempting to authenticate using client id")
        res = self._send(
            "POST",
            self.base_url + TOKEN_PATH,
            data={
                "grant_type": "client_credentials",
                "client_id": self.profile.client_id,
                "client_secret": self.profile.client_secret,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        if res.status_code != 200:
            raise AuthenticationError(f"failed to obtain access token: {res.status}")
        try:
            token = res.json()["access_token"]
        except (ValueError, KeyError, TypeError) as exc:
            raise AuthenticationError("token response did not include an access token", cause=exc)
        self.session.headers["Authorization"] = f"Bearer {token}"

    def _login(self) -> None:
        """Username and password login; the session keeps the cookie."""
        body = {"user": {"username": self.profile.username, "password": self.profile.password}}
        res = self._send("POST", self.url_for(LOGIN_PATH), data=_encode_body(body))
        if res.status_code != 200:
            raise AuthenticationError(f"login failed: {res.status}")

    # -- requests ------------------------------------------------------------

    def _send(self, method: str, url: str, **kwargs) -> Response:
        """Send one request bounded by the context deadline."""
        self.ctx.check()
        logger.info("%s %s", method, url)

        try:
            resp = self.session.request(method, url, timeout=self.ctx.remaining(), **kwargs)
        except requests.exceptions.Timeout as exc:
            raise DeadlineError("context deadline exceeded", cause=exc)
        except requests.exceptions.SSLError as exc:
            raise TransportError(f"TLS failure talking to {self.netloc}", cause=exc)
        except requests.exceptions.ConnectionError as exc:
            if self.ctx.cancelled:
                raise DeadlineError("context canceled", cause=exc)
            raise TransportError(f"failed to connect to {self.netloc}", cause=exc)
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"{method} {url} failed", cause=exc)

        status = f"{resp.status_code} {resp.reason or ''}".strip()
        logger.info("HTTP response is %s", status)

        return Response(
            method=method,
            url=url,
            body=resp.content or b"",
            status_code=resp.status_code,
            status=status,
            headers={k: v for k, v in resp.headers.items()},
        )

    def call(
        self,
        path: str,
        method: str = "GET",
        body: Any = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Response:
        """Send one request to *path* and return the raw response.

        Raises:
            DeadlineError: The context expired or was cancelled.
            AuthenticationError: The server rejected the credentials.
            TransportError: The request could not be delivered.
        """
        method = method.upper()
        self.authenticate()

        data = _encode_body(body)
        if data:
            logger.debug("%s", data.decode("utf-8", errors="replace"))
        else:
            logger.debug("Request body is empty")

        return self._send(method, self.url_for(path, params), data=data or None)

    def get(self, path: str, params: Optional[Dict[str, str]] = None) -> Response:
        """GET *path*."""
        return self.call(path, "GET", params=params)

    def delete(self, path: str, params: Optional[Dict[str, str]] = None) -> Response:
        """DELETE *path*."""
        return self.call(path, "DELETE", params=params)

    def post(self, path: str, body: Any = None, params: Optional[Dict[str, str]] = None) -> Response:
        """POST *body* to *path*."""
        return self.call(path, "POST", body, params)

    def put(self, path: str, body: Any = None, params: Optional[Dict[str, str]] = None) -> Response:
        """PUT *body* to *path*."""
        return self.call(path, "PUT", body, params)

    def patch(self, path: str, body: Any = None, params: Optional[Dict[str, str]] = None) -> Response:
        """PATCH *body* to *path*."""
        return self.call(path, "PATCH", body, params)
