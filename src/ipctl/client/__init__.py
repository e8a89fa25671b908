"""HTTP transport: request context, client and response checks."""

from .context import RequestContext
from .http import HttpClient, Response
from .service import DEFAULT_EXPECTED_STATUS, check_response, request, request_json

__all__ = [
    "DEFAULT_EXPECTED_STATUS",
    "HttpClient",
    "RequestContext",
    "Response",
    "check_response",
    "request",
    "request_json",
]
