"""Resource handlers, the registry they live in and the leaf runner."""

from __future__ import annotations

from typing import Optional

from .api import ApiMethodHandler, api_handlers
from .assets import AssetHandler, AssetSpec, ServerHandler
from .command import CommandRunner, Invocation, InvocationState, Request
from .localaaa import AccountsHandler, GroupsHandler, LocalAAAService, local_aaa_handlers
from .localclient import LocalClientHandler
from .registry import HandlerRegistry, ResourceHandler, Verb
from .repository import RepositoryHandler
from .resources import ASSETS
from .response import Response, render
from .runtime import Runtime


def default_registry(runtime: Runtime) -> HandlerRegistry:
    """Every handler that hangs directly off a root verb."""
    registry = HandlerRegistry()
    registry.register_all(AssetHandler(runtime, spec) for spec in ASSETS)
    registry.register(ServerHandler(runtime))
    registry.register_all(api_handlers(runtime))
    registry.register(RepositoryHandler(runtime))
    registry.register(LocalClientHandler(runtime))
    return registry


def local_aaa_registry(runtime: Runtime, service_factory=None) -> Optional[HandlerRegistry]:
    """Handlers under ``local-aaa``; None when the profile has no ``mongo_url``."""
    if not runtime.config.active_profile().mongo_url and service_factory is None:
        return None
    registry = HandlerRegistry()
    registry.register_all(local_aaa_handlers(runtime, service_factory))
    return registry


__all__ = [
    "ASSETS",
    "AccountsHandler",
    "ApiMethodHandler",
    "AssetHandler",
    "AssetSpec",
    "CommandRunner",
    "GroupsHandler",
    "HandlerRegistry",
    "Invocation",
    "InvocationState",
    "LocalAAAService",
    "LocalClientHandler",
    "RepositoryHandler",
    "Request",
    "ResourceHandler",
    "Response",
    "Runtime",
    "ServerHandler",
    "Verb",
    "default_registry",
    "local_aaa_registry",
    "render",
]
