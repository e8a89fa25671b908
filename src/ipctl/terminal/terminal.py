"""
User-facing output.

Everything a command prints goes through here: plain status lines,
tables, JSON and YAML documents, the ``Error:`` line and interactive
prompts. Log records never come through this module.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Optional, Sequence

import click
import yaml
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..log.redactor import Redactor

MAX_COLUMN_WIDTH = 50


console = Console(highlight=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, soft_wrap=True)


def display(fmt: str = "", *args: Any) -> None:
    """Print a line to stdout, applying ``%`` formatting when *args* are given."""
    click.echo(fmt % args if args else fmt)


def warning(fmt: str, *args: Any) -> None:
    """Print ``WARNING: <message>`` to stdout."""
    display("WARNING: " + fmt, *args)


def error(err: BaseException, no_color: bool = False, redact: bool = True) -> None:
    """Print ``Error: <message>`` to stderr, red unless colour is off."""
    message = str(err)
    if redact:
        message = Redactor(True).redact(message)
    line = Text.assemble(("Error:", "" if no_color else "bold red"), " ", message)
    err_console.print(line)


def to_json(obj: Any) -> str:
    """Render *obj* as indented JSON."""
    return json.dumps(obj, indent=4)


def to_yaml(obj: Any) -> str:
    """Render *obj* as YAML, keeping mapping key order."""
    return yaml.safe_dump(json.loads(json.dumps(obj)), sort_keys=False)


def display_json(obj: Any) -> None:
    """Print *obj* as JSON."""
    display(to_json(obj))


def display_yaml(obj: Any) -> None:
    """Print *obj* as YAML."""
    display(to_yaml(obj).rstrip("\n"))


def _cell(value: Any) -> str:
    """Flatten one field for a table cell."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        text = ", ".join(str(v) for v in value)
    elif isinstance(value, dict):
        text = json.dumps(value, default=str)
    else:
        text = str(value)
    if len(text) > MAX_COLUMN_WIDTH:
        text = text[: MAX_COLUMN_WIDTH - 1] + "…"
    return text


def build_table(keys: Sequence[str], rows: Iterable[Any], no_color: bool = False) -> Table:
    """Build a borderless table with one column per key.

    Args:
        keys: Field names; headers are upper-cased.
        rows: Mappings or pydantic models.
        no_color: Render headers without styling.

    Returns:
        Table: The table, ready to print.
    """
    table = Table(box=None, show_edge=False, pad_edge=False, header_style="" if no_color else "bold")
    for key in keys:
        table.add_column(key.upper(), no_wrap=True)
    for row in rows:
        if isinstance(row, dict):
            table.add_row(*[_cell(row.get(key)) for key in keys])
        else:
            table.add_row(*[_cell(getattr(row, key, None)) for key in keys])
    return table


def display_table(
    keys: Sequence[str],
    rows: Iterable[Any],
    no_color: bool = False,
    pager: bool = False,
) -> None:
    """Print *rows* as a table through the shared console."""
    table = build_table(keys, rows, no_color=no_color)
    if pager:
        with console.pager(styles=not no_color):
            console.print(table)
    else:
        console.print(table)


def page(text: str, pager: bool = False) -> None:
    """Print *text*, through the system pager when *pager* is set."""
    if pager:
        click.echo_via_pager(text)
    else:
        display(text)


def confirm(prompt: str, preamble: Optional[str] = None) -> bool:
    """Ask a yes/no question.

    Args:
        prompt: The question.
        preamble: Text printed before the question.

    Returns:
        bool: True when the user answered yes.
    """
    if preamble:
        display(preamble)
    return click.confirm(prompt, default=False)


def password(label: str = "Password") -> str:
    """Prompt twice for a hidden password."""
    return click.prompt(label, hide_input=True, confirmation_prompt=True)


def rows_from(obj: Any) -> List[Any]:
    """Normalise a response payload into a list of rows.

    Args:
        obj: A list, a ``{"data": [...]}`` envelope, a single object or None.

    Returns:
        list: The rows; empty for None.
    """
    if obj is None:
        return []
    if isinstance(obj, list):
        return obj
    return [obj]
