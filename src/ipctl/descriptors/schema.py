"""Command descriptor model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Descriptor(BaseModel):
    """Help text, visibility and argument contract for one command.

    ``description`` is the long help; its first line doubles as the
    short help shown in command listings.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    use: str = ""
    group: str = ""
    description: str = ""
    example: str = ""
    include_groups: bool = False
    exact_args: int = Field(default=0, ge=0)
    disabled: bool = False
    hidden: bool = False

    @property
    def name(self) -> str:
        """The command name: the first word of ``use``."""
        parts = self.use.split()
        return parts[0] if parts else ""

    @property
    def short(self) -> str:
        """First line of the description."""
        return self.description.split("\n")[0]

    @property
    def long(self) -> str:
        """The full description."""
        return self.description

    def indented_example(self) -> str:
        """The example with every line indented by two spaces."""
        if not self.example:
            return ""
        return "\n".join(f"  {line}" for line in self.example.rstrip("\n").split("\n"))
