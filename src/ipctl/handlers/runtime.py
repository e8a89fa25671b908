"""Per-invocation runtime shared by every handler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from ..client.context import RequestContext
from ..client.http import HttpClient
from ..config.config import Provider
from ..config.profile import Profile
from ..terminal.config import TerminalConfig


@dataclass
class Runtime:
    """Client, config, terminal preferences and context of one run.

    ``verbose`` and ``output`` are filled in from the root flags once
    click has parsed them.
    """

    client: HttpClient
    config: Provider
    terminal: TerminalConfig
    context: RequestContext
    verbose: bool = False
    output: str = ""
    client_factory: Callable[[RequestContext, Profile], HttpClient] = field(default=HttpClient)

    @property
    def effective_output(self) -> str:
        """The ``--output`` flag, or the terminal default."""
        return self.output or self.terminal.default_output

    @property
    def no_color(self) -> bool:
        """True when colour output is disabled."""
        return self.terminal.no_color

    def client_for(self, profile_name: str) -> HttpClient:
        """Build a client for another profile, bound to the same context.

        Raises:
            ConfigError: If the profile does not exist.
        """
        profile = self.config.get_profile(profile_name)
        return self.client_factory(self.context, profile)
