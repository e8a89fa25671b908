"""Named git repositories declared with ``[repository <name>]`` sections."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from ..errors import ConfigError
from ._coerce import coerce_str

REPOSITORY_FIELDS = ("url", "private_key", "private_key_file", "reference")


class Repository(BaseModel):
    """Where a named repository lives and how to authenticate to it."""

    model_config = ConfigDict(frozen=True)

    url: str = ""
    private_key: str = ""
    private_key_file: str = ""
    reference: str = ""


class RepositoryLoader:
    """Resolve one repository from its section and environment overrides."""

    def __init__(
        self,
        values: Optional[Mapping[str, Any]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ):
        self._values = dict(values or {})
        self._overrides = dict(overrides or {})

    def _value(self, key: str) -> Any:
        if key in self._overrides:
            return self._overrides[key]
        return self._values.get(key)

    def load(self) -> Repository:
        """Build the repository, expanding ``~`` in the key file path."""
        key_file = coerce_str(self._value("private_key_file"))
        if key_file:
            key_file = str(Path(key_file).expanduser())
        return Repository(
            url=coerce_str(self._value("url")),
            private_key=coerce_str(self._value("private_key")),
            private_key_file=key_file,
            reference=coerce_str(self._value("reference")),
        )


def repository_overrides(name: str, environ: Mapping[str, str]) -> Dict[str, str]:
    """Collect ``IPCTL_REPOSITORY_<NAME>_<FIELD>`` values for *name*."""
    overrides = {}
    for field in REPOSITORY_FIELDS:
        key = f"IPCTL_REPOSITORY_{name.upper()}_{field.upper()}"
        if key in environ:
            overrides[field] = environ[key]
    return overrides


class RepositoryManager:
    """Holds every configured repository by name."""

    def __init__(self) -> None:
        self._repositories: Dict[str, Repository] = {}

    def add(self, name: str, repository: Repository) -> None:
        """Register *repository* under *name*."""
        self._repositories[name] = repository

    def get(self, name: str) -> Repository:
        """Return the repository called *name*.

        Raises:
            ConfigError: If no such repository is configured.
        """
        try:
            return self._repositories[name]
        except KeyError:
            raise ConfigError(f'repository "{name}" does not exist') from None

    def names(self) -> List[str]:
        """Sorted names of the configured repositories."""
        return sorted(self._repositories)


@runtime_checkable
class RepositoryProvider(Protocol):
    """Read access to named repositories."""

    def get_repository(self, name: str) -> Repository: ...

    def repository_names(self) -> List[str]: ...
