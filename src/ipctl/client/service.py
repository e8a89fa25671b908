"""Status checking and JSON decoding on top of ``HttpClient.call``."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..errors import FormattingError, ServerError
from .http import HttpClient, Response

logger = logging.getLogger("ipctl.client.service")

DEFAULT_EXPECTED_STATUS = {
    "GET": 200,
    "POST": 201,
    "PUT": 200,
    "PATCH": 200,
    "DELETE": 200,
}


def check_response(res: Response, expected_status: int = 0) -> Response:
    """Raise ``ServerError`` when *res* is not what the caller expected.

    With no explicit *expected_status* any 2xx response is accepted.
    The error message is the response body, which is what the server
    uses to explain the failure.
    """
    if expected_status:
        good = res.status_code == expected_status
    else:
        good = res.ok
    if good:
        return res

    logger.error(
        "status code = %s, expected status code = %s",
        res.status_code,
        expected_status or "2xx",
    )
    message = res.text().strip() or f"expected status code {expected_status or '2xx'}, got {res.status_code}"
    raise ServerError(message, status_code=res.status_code, body=res.body)


def request(
    client: HttpClient,
    method: str,
    path: str,
    body: Any = None,
    params: Optional[Dict[str, str]] = None,
    expected_status: int = 0,
) -> Response:
    """Send a request and check its status.

    Args:
        client: Client for the active profile.
        method: HTTP method.
        path: API path.
        body: Payload, encoded as JSON unless already bytes.
        params: Query parameters.
        expected_status: Exact status required; 0 accepts any 2xx.

    Returns:
        Response: The checked response.

    Raises:
        ServerError: The status did not match.
    """
    res = client.call(path, method, body, params)
    return check_response(res, expected_status)


def request_json(
    client: HttpClient,
    method: str,
    path: str,
    body: Any = None,
    params: Optional[Dict[str, str]] = None,
    expected_status: int = 0,
) -> Any:
    """Like ``request`` but returns the decoded JSON body (``None`` if empty)."""
    res = request(client, method, path, body, params, expected_status)
    try:
        return res.json()
    except ValueError as exc:
        raise FormattingError(f"unable to decode response from {res.url}", cause=exc)
