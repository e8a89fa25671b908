"""``ipctl api <method> <path>``: raw requests against the platform API."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

import click

from ..client.service import DEFAULT_EXPECTED_STATUS, request
from ..errors import FormattingError, ValidationError
from ..terminal.terminal import to_json
from .command import Request
from .options import data_option, options_for
from .registry import ResourceHandler, Verb
from .response import Response

API_METHODS = ("get", "delete", "put", "post", "patch")
_BODY_METHODS = ("put", "post", "patch")


def parse_params(values: Iterable[str]) -> Dict[str, str]:
    """Turn repeated ``key=value`` strings into a query mapping.

    Raises:
        ValidationError: A value has no ``=`` or an empty key.
    """
    params: Dict[str, str] = {}
    for value in values:
        key, sep, val = value.partition("=")
        if not sep:
            raise ValidationError(f'invalid param format "{value}": expected key=value')
        key = key.strip()
        if not key:
            raise ValidationError("key cannot be empty")
        params[key] = val
    return params


def read_data(data: str) -> Any:
    """Decode ``--data``: inline JSON, or ``@<file>`` holding JSON."""
    if not data:
        return None
    source = "--data"
    if data.startswith("@"):
        source = data[1:]
        try:
            data = Path(source).read_text(encoding="utf-8")
        except OSError as exc:
            raise ValidationError(f"unable to read data file `{source}`", cause=exc)
    try:
        return json.loads(data)
    except ValueError as exc:
        raise ValidationError(f"{source} does not contain valid JSON", cause=exc)


class ApiMethodHandler(ResourceHandler):
    """One HTTP method under the ``api`` verb."""

    descriptor = "api"
    group = ""
    capabilities = frozenset({Verb.API})

    def __init__(self, runtime, method: str):
        """Create the handler for one HTTP *method*."""
        super().__init__(runtime)
        self.name = method
        self.method = method.upper()

    def descriptor_key(self, verb: Verb) -> Tuple[str, str]:
        return self.descriptor, self.name

    def options(self, verb: Verb) -> List[click.Option]:
        opts = options_for(verb)
        if self.name in _BODY_METHODS:
            opts.insert(0, data_option())
        return opts

    def api(self, req: Request) -> Response:
        """Send ``args[0]`` with this method and print the JSON response.

        Raises:
            ValidationError: ``--params`` or ``--data`` is malformed.
            ServerError: The status differs from ``--expected-status-code``.
        """
        path = req.args[0]
        params = parse_params(req.option("params", ()))
        body = read_data(req.option("data", "")) if self.name in _BODY_METHODS else None
        expected = req.option("expected_status_code", 0) or DEFAULT_EXPECTED_STATUS[self.method]

        res = request(self.runtime.client, self.method, path, body, params or None, expected)
        try:
            obj = res.json()
        except ValueError as exc:
            raise FormattingError(f"unable to decode response from {res.url}", cause=exc)

        if obj is None:
            return Response(text=res.status)
        return Response(text=to_json(obj), object=obj)


def api_handlers(runtime) -> List[ApiMethodHandler]:
    """One handler per supported HTTP method."""
    return [ApiMethodHandler(runtime, method) for method in API_METHODS]
