"""Shared test fixtures for ipctl."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import pytest

from ipctl import log
from ipctl.client.context import RequestContext
from ipctl.client.http import Response
from ipctl.config import ConfigLoader
from ipctl.handlers.runtime import Runtime
from ipctl.terminal.config import TerminalConfig


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Drop IPCTL_* variables and undo logging setup around every test."""
    for key in list(os.environ):
        if key.startswith("IPCTL_"):
            monkeypatch.delenv(key, raising=False)
    log.reset()
    yield
    log.reset()


class FakeClient:
    """Stands in for ``HttpClient``: answers from a route table and records calls."""

    def __init__(self, routes: Optional[Dict[Tuple[str, str], Tuple[int, Any]]] = None):
        self.routes = dict(routes or {})
        self.calls = []

    def route(self, method: str, path: str, status: int = 200, payload: Any = None) -> None:
        self.routes[(method.upper(), path)] = (status, payload)

    def call(self, path, method="GET", body=None, params=None):
        method = method.upper()
        self.calls.append((method, path, body, params))
        status, payload = self.routes.get((method, path), (404, {"message": "not found"}))
        raw = b"" if payload is None else json.dumps(payload).encode("utf-8")
        return Response(
            method=method,
            url=f"https://platform.test{path}",
            body=raw,
            status_code=status,
            status=str(status),
        )

    def paths(self, method: str):
        return [path for m, path, _, _ in self.calls if m == method.upper()]


def load_config(tmp_path: Path, text: str = "", environ: Optional[Dict[str, str]] = None, args=()):
    """Write *text* as a config file and load it in isolation."""
    path = tmp_path / "config"
    path.write_text(text)
    return (
        ConfigLoader()
        .with_config_file(str(path))
        .with_args(list(args))
        .with_environ(environ or {})
        .load()
    )


def make_runtime(config, client=None, output: str = "", factory=None) -> Runtime:
    runtime = Runtime(
        client=client or FakeClient(),
        config=config,
        terminal=TerminalConfig(no_color=True),
        context=RequestContext.background(),
        output=output,
    )
    if factory is not None:
        runtime.client_factory = factory
    return runtime


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def config(tmp_path: Path):
    return load_config(tmp_path, "[profile default]\nhost = platform.test\n")


@pytest.fixture
def runtime(config, fake_client) -> Runtime:
    return make_runtime(config, fake_client)
