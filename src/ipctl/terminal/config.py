"""Terminal preferences from ``IPCTL_TERMINAL_*`` environment variables."""

from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict

OUTPUT_FORMATS = ("human", "json", "yaml")


class TerminalConfig(BaseModel):
    """Terminal behaviour read from ``IPCTL_TERMINAL_*`` variables."""

    model_config = ConfigDict(frozen=True)

    no_color: bool = False
    default_output: str = "human"
    pager: bool = False


def load_from_env(environ: Optional[Mapping[str, str]] = None) -> TerminalConfig:
    """Build a TerminalConfig from the environment.

    Args:
        environ: Variables to read; defaults to ``os.environ``.

    Returns:
        TerminalConfig: The frozen configuration.
    """
    environ = os.environ if environ is None else environ
    return TerminalConfig(
        no_color=environ.get("IPCTL_TERMINAL_NO_COLOR", "") == "true",
        default_output=environ.get("IPCTL_TERMINAL_DEFAULT_OUTPUT", "") or "human",
        pager=environ.get("IPCTL_TERMINAL_PAGER", "") == "true",
    )
