"""Handler results and how they are rendered for each output format."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

from .. import terminal
from ..errors import FormattingError, ValidationError
from ..terminal.config import OUTPUT_FORMATS


@dataclass
class Response:
    """What a handler hands back to be displayed.

    ``text`` is the human rendering. When ``keys`` is set, human output
    is a table of ``object`` using those keys as columns instead.
    ``object`` is what ``json`` and ``yaml`` output serialise.
    """

    text: str = ""
    keys: List[str] = field(default_factory=list)
    object: Any = None


def validate_output(fmt: str) -> str:
    """Return *fmt* if it is a known output format.

    Raises:
        ValidationError: It is not.
    """
    if fmt not in OUTPUT_FORMATS:
        raise ValidationError(
            f"invalid output format `{fmt}`, expected one of {', '.join(OUTPUT_FORMATS)}"
        )
    return fmt


def render(response: Response, runtime) -> None:
    """Write *response* to stdout in the runtime's output format.

    Raises:
        FormattingError: The response has nothing to show in that format,
            or the object cannot be serialised.
    """
    fmt = validate_output(runtime.effective_output)
    cfg = runtime.terminal
    try:
        if fmt == "json":
            if response.object is None:
                raise FormattingError("unable to display response as json")
            terminal.display_json(response.object)
        elif fmt == "yaml":
            if response.object is None:
                raise FormattingError("unable to display response as yaml")
            terminal.display_yaml(response.object)
        elif response.keys and response.object is not None:
            terminal.display_table(
                response.keys,
                terminal.rows_from(response.object),
                no_color=cfg.no_color,
                pager=cfg.pager,
            )
        elif response.text:
            terminal.page(response.text, pager=cfg.pager)
        else:
            raise FormattingError("unable to display response")
    except (TypeError, ValueError) as exc:
        raise FormattingError(f"unable to format response as {fmt}", cause=exc)
