"""
Leaf commands.

``CommandRunner`` turns one (verb, handler) pair into a click command
described by its descriptor, and drives each invocation through the
states NEW, ARGS_VALIDATED, SENDING, RECEIVED, FORMATTING and DONE.
Any failure moves the invocation to ERROR and the error propagates to
the entry point.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import click

from ..descriptors.schema import Descriptor
from ..descriptors.store import DescriptorStore
from ..errors import ErrorKind, InternalError, ValidationError, kind_of
from ..log.config import TRACE
from .options import ROOT_OPTION_NAMES, persistent_options
from .registry import ResourceHandler, Verb
from .response import Response, render, validate_output

logger = logging.getLogger("ipctl.handlers.command")


class InvocationState(str, Enum):
    """Lifecycle of a leaf invocation; DONE and ERROR are terminal."""

    NEW = "new"
    ARGS_VALIDATED = "args_validated"
    SENDING = "sending"
    RECEIVED = "received"
    FORMATTING = "formatting"
    DONE = "done"
    ERROR = "error"


_TRANSITIONS = {
    InvocationState.NEW: {InvocationState.ARGS_VALIDATED},
    InvocationState.ARGS_VALIDATED: {InvocationState.SENDING},
    InvocationState.SENDING: {InvocationState.RECEIVED},
    InvocationState.RECEIVED: {InvocationState.FORMATTING},
    InvocationState.FORMATTING: {InvocationState.DONE},
    InvocationState.DONE: set(),
    InvocationState.ERROR: set(),
}


class Invocation:
    """State of one leaf invocation."""

    def __init__(self, name: str):
        self.name = name
        self.state = InvocationState.NEW
        self.kind: Optional[ErrorKind] = None
        self.error: Optional[BaseException] = None

    def advance(self, state: InvocationState) -> None:
        """Move to *state*.

        Raises:
            InternalError: If the transition is not allowed.
        """
        if state not in _TRANSITIONS[self.state]:
            raise InternalError(
                f"invalid invocation transition {self.state.value} -> {state.value}"
            )
        logger.log(TRACE, "%s: %s -> %s", self.name, self.state.value, state.value)
        self.state = state

    def fail(self, err: BaseException) -> None:
        """Move to ERROR from any non-terminal state, recording *err* and its kind.

        Raises:
            InternalError: If the invocation already finished.
        """
        if self.state in (InvocationState.DONE, InvocationState.ERROR):
            raise InternalError(f"invocation {self.name} already finished")
        kind = kind_of(err)
        logger.log(TRACE, "%s: %s -> error (%s)", self.name, self.state.value, kind.value)
        self.state = InvocationState.ERROR
        self.kind = kind
        self.error = err

    @property
    def finished(self) -> bool:
        """True in DONE or ERROR."""
        return self.state in (InvocationState.DONE, InvocationState.ERROR)


@dataclass
class Request:
    """Positional arguments and parsed options of one invocation."""

    args: List[str]
    options: Dict[str, Any] = field(default_factory=dict)
    runtime: Any = None

    def option(self, name: str, default: Any = None) -> Any:
        """Return option *name*, or *default* when it was not given."""
        value = self.options.get(name)
        return default if value is None else value


def apply_root_flags(runtime, options: Dict[str, Any]) -> None:
    """Pop the persistent root flags out of *options* into *runtime*."""
    values = {name: options.pop(name, None) for name in ROOT_OPTION_NAMES}
    if values["verbose"]:
        runtime.verbose = True
    if values["output"]:
        runtime.output = values["output"]


def write_examples(formatter: click.HelpFormatter, descriptor: Descriptor) -> None:
    """Append the descriptor example as an ``Examples:`` section."""
    example = descriptor.indented_example()
    if example:
        formatter.write_paragraph()
        formatter.write("Examples:\n")
        formatter.write(example + "\n")


class DescriptorCommand(click.Command):
    """A click command whose help comes from a descriptor."""

    def __init__(self, descriptor: Descriptor, **kwargs):
        self.descriptor = descriptor
        kwargs.setdefault("help", descriptor.long)
        kwargs.setdefault("short_help", descriptor.short)
        kwargs.setdefault("hidden", descriptor.hidden)
        super().__init__(descriptor.name, **kwargs)

    def format_usage(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Usage line built from the descriptor ``use`` string."""
        prefix = ctx.parent.command_path if ctx.parent else ""
        formatter.write_usage(prefix, f"{self.descriptor.use} [OPTIONS]")

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        write_examples(formatter, self.descriptor)


class CommandRunner:
    """Binds one handler's action for one verb to a leaf command."""

    def __init__(
        self,
        runtime,
        verb: Verb,
        handler: ResourceHandler,
        store: DescriptorStore,
    ):
        self.runtime = runtime
        self.verb = verb
        self.handler = handler
        self.store = store
        self._descriptor: Optional[Descriptor] = None
        self.last_invocation: Optional[Invocation] = None

    @property
    def descriptor(self) -> Optional[Descriptor]:
        """The descriptor for this verb and handler, looked up once."""
        if self._descriptor is None:
            category, key = self.handler.descriptor_key(self.verb)
            self._descriptor = self.store.get(category, key)
        return self._descriptor

    def build(self) -> Optional[DescriptorCommand]:
        """Return the leaf command, or None if it must not be attached."""
        desc = self.descriptor
        if desc is None:
            category, key = self.handler.descriptor_key(self.verb)
            logger.debug("no descriptor %s/%s, skipping", category, key)
            return None
        if desc.disabled:
            return None

        params: List[click.Parameter] = [click.Argument(["args"], nargs=-1, required=False)]
        params.extend(self.handler.options(self.verb))
        params.extend(persistent_options())
        return DescriptorCommand(desc, params=params, callback=self._callback)

    def _callback(self, args, **options) -> None:
        """click entry point for the leaf."""
        apply_root_flags(self.runtime, options)
        self.run(list(args), options)

    def validate(self, args: List[str]) -> None:
        """Check the argument count and the output format.

        Raises:
            ValidationError: Either one is wrong.
        """
        desc = self.descriptor
        if desc is not None and desc.exact_args > 0 and len(args) != desc.exact_args:
            raise ValidationError(
                f"accepts {desc.exact_args} arg(s), received {len(args)}"
            )
        validate_output(self.runtime.effective_output)

    def run(self, args: List[str], options: Optional[Dict[str, Any]] = None) -> Response:
        """Validate, call the handler and render its response."""
        invocation = Invocation(f"{self.verb.value} {self.handler.name}")
        self.last_invocation = invocation
        action = self.handler.action(self.verb)
        try:
            self.validate(args)
            invocation.advance(InvocationState.ARGS_VALIDATED)

            invocation.advance(InvocationState.SENDING)
            response = action(Request(args=args, options=dict(options or {}), runtime=self.runtime))
            invocation.advance(InvocationState.RECEIVED)

            invocation.advance(InvocationState.FORMATTING)
            render(response, self.runtime)
            invocation.advance(InvocationState.DONE)
        except (Exception, KeyboardInterrupt) as exc:
            if not invocation.finished:
                invocation.fail(exc)
            raise
        return response
