"""
Handler registry.

A resource handler advertises the verbs it implements as a capability
set. The registry is the table (verb -> resources) the command tree is
folded from: a resource appears under a verb only when its handler
advertises that verb.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, FrozenSet, Iterable, List, Tuple

import click

from ..errors import InternalError

logger = logging.getLogger("ipctl.handlers.registry")


class Verb(str, Enum):
    """Top-level command verbs; each value is the command name."""

    GET = "get"
    DESCRIBE = "describe"
    CREATE = "create"
    DELETE = "delete"
    COPY = "copy"
    CLEAR = "clear"
    EDIT = "edit"
    IMPORT = "import"
    EXPORT = "export"
    START = "start"
    STOP = "stop"
    RESTART = "restart"
    INSPECT = "inspect"
    DUMP = "dump"
    LOAD = "load"
    PUSH = "push"
    PULL = "pull"
    API = "api"
    CLIENT = "client"


READER = frozenset({Verb.GET, Verb.DESCRIBE})
WRITER = frozenset({Verb.CREATE, Verb.DELETE, Verb.CLEAR})
COPIER = frozenset({Verb.COPY})
EDITOR = frozenset({Verb.EDIT})
IMPORTER = frozenset({Verb.IMPORT})
EXPORTER = frozenset({Verb.EXPORT})
CONTROLLER = frozenset({Verb.START, Verb.STOP, Verb.RESTART})
INSPECTOR = frozenset({Verb.INSPECT})
DUMPER = frozenset({Verb.DUMP})
LOADER = frozenset({Verb.LOAD})
PUSHER = frozenset({Verb.PUSH})
PULLER = frozenset({Verb.PULL})

# Python keywords cannot be method names.
_METHOD_NAMES = {Verb.IMPORT: "import_"}


class ResourceHandler:
    """Base class for everything that can sit under a verb.

    Subclasses set ``name``, ``group`` and ``capabilities`` and provide
    one method per advertised verb, each taking a ``Request`` and
    returning a ``Response``.
    """

    name: str = ""
    group: str = ""
    descriptor: str = ""
    capabilities: FrozenSet[Verb] = frozenset()

    def __init__(self, runtime):
        self.runtime = runtime

    def supports(self, verb: Verb) -> bool:
        """True when *verb* is in ``capabilities``."""
        return verb in self.capabilities

    def descriptor_key(self, verb: Verb) -> Tuple[str, str]:
        """Return the (category, command) pair describing this leaf."""
        return self.descriptor or self.name, verb.value

    def action(self, verb: Verb) -> Callable:
        """Return the bound method implementing *verb*.

        Raises:
            InternalError: The handler has no such method.
        """
        method = getattr(self, _METHOD_NAMES.get(verb, verb.value), None)
        if method is None or not callable(method):
            raise InternalError(f"handler {self.name} does not implement {verb.value}")
        return method

    def options(self, verb: Verb) -> List[click.Option]:
        """Flags the leaf for *verb* accepts; the shared set by default."""
        from .options import options_for

        return options_for(verb)


class HandlerRegistry:
    """Verb-indexed table of resource handlers, in registration order."""

    def __init__(self) -> None:
        self._handlers: List[ResourceHandler] = []

    def register(self, handler: ResourceHandler) -> ResourceHandler:
        """Add *handler*, checking it implements every verb it claims.

        Raises:
            InternalError: If an advertised verb has no method.
        """
        for verb in handler.capabilities:
            handler.action(verb)
        self._handlers.append(handler)
        logger.debug(
            "registered handler %s (%s)",
            handler.name,
            ", ".join(sorted(v.value for v in handler.capabilities)),
        )
        return handler

    def register_all(self, handlers: Iterable[ResourceHandler]) -> None:
        """Register each of *handlers* in order."""
        for handler in handlers:
            self.register(handler)

    def handlers_for(self, verb: Verb) -> List[ResourceHandler]:
        """Handlers supporting *verb*, in registration order."""
        return [h for h in self._handlers if h.supports(verb)]

    def table(self) -> Dict[Verb, Dict[str, Callable]]:
        """Return the registry as verb -> {resource name: action}."""
        result: Dict[Verb, Dict[str, Callable]] = {}
        for verb in Verb:
            actions = {h.name: h.action(verb) for h in self.handlers_for(verb)}
            if actions:
                result[verb] = actions
        return result

    def __len__(self) -> int:
        return len(self._handlers)
