"""Per-verb click options attached to leaf commands."""

from __future__ import annotations

from typing import Callable, Dict, List

import click

from .registry import Verb


def replace_option() -> click.Option:
    """``--replace`` flag shared by create, copy and import."""
    return click.Option(
        ["--replace"], is_flag=True, default=False,
        help="Replace the resource if it already exists.",
    )


def repository_options() -> List[click.Option]:
    """Flags selecting a git repository to read from or write to."""
    return [
        click.Option(
            ["--repository"], default="",
            help="Git repository URL, or file://@<name> for a configured repository.",
        ),
        click.Option(["--reference"], default="", help="Branch or tag to check out."),
        click.Option(
            ["--private-key-file"], default="",
            help="SSH private key used to reach the repository.",
        ),
    ]


def path_option(help_text: str = "Directory to write files to.") -> click.Option:
    """A ``--path`` option with the given help text."""
    return click.Option(["--path"], default="", help=help_text)


def message_option() -> click.Option:
    """``--message`` for commits made by export and push."""
    return click.Option(["--message", "-m"], default="", help="Commit message.")


def _create() -> List[click.Option]:
    return [replace_option()]


def _copy() -> List[click.Option]:
    return [
        click.Option(["--from", "from_profile"], required=True, help="Source profile."),
        click.Option(["--to", "to_profile"], required=True, help="Destination profile."),
        replace_option(),
    ]


def _import() -> List[click.Option]:
    return [replace_option(), *repository_options()]


def _export() -> List[click.Option]:
    return [path_option(), *repository_options(), message_option()]


def _load() -> List[click.Option]:
    return [*repository_options()]


def _api() -> List[click.Option]:
    return [
        click.Option(
            ["--params"], multiple=True,
            help="Query parameter as key=value; may be repeated.",
        ),
        click.Option(
            ["--expected-status-code"], type=int, default=0,
            help="Status code that counts as success.",
        ),
    ]


def data_option() -> click.Option:
    """``--data`` request body for the api commands."""
    return click.Option(
        ["--data", "-d"], default="",
        help="Request body as JSON, or @<file> to read it from a file.",
    )


def _push() -> List[click.Option]:
    return [path_option("Subdirectory inside the repository."), message_option()]


def _pull() -> List[click.Option]:
    return [path_option("Subdirectory inside the repository.")]


_BUILDERS: Dict[Verb, Callable[[], List[click.Option]]] = {
    Verb.CREATE: _create,
    Verb.COPY: _copy,
    Verb.IMPORT: _import,
    Verb.EXPORT: _export,
    Verb.DUMP: _export,
    Verb.LOAD: _load,
    Verb.API: _api,
    Verb.PUSH: _push,
    Verb.PULL: _pull,
}


def options_for(verb: Verb) -> List[click.Option]:
    """Return fresh option objects for *verb* (empty if it takes none)."""
    builder = _BUILDERS.get(verb)
    return builder() if builder else []


ROOT_OPTION_NAMES = ("verbose", "output", "config", "profile")


def persistent_options() -> List[click.Option]:
    """Options accepted both on the root group and on every leaf."""
    return [
        click.Option(["--verbose"], is_flag=True, default=False, help="Enable verbose output."),
        click.Option(
            ["--output", "-o"], default="",
            help="Output format: human, json or yaml.",
        ),
        click.Option(["--config"], default="", help="Path to the configuration file."),
        click.Option(["--profile"], default="", help="Connection profile to use."),
    ]
