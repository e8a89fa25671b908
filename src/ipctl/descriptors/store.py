"""
Descriptor store.

Descriptors ship as YAML documents beside this module. Each file is a
category; its stem is the category key and its top-level keys are
command names. The whole set is read once, on first lookup, and is
read-only afterwards.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, Mapping, Optional

import pydantic
import yaml

from ..errors import DescriptorError
from .. import log
from .schema import Descriptor

logger = logging.getLogger("ipctl.descriptors")

_DATA_DIR = Path(__file__).parent / "data"

DescriptorMap = Dict[str, Descriptor]


def parse_category(text: str, source: str = "<string>") -> DescriptorMap:
    """Parse one YAML category document.

    Raises:
        DescriptorError: If the document is not a mapping of descriptors.
    """
    try:
        raw = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise DescriptorError(f"failed to parse descriptor {source}", cause=exc)
    if not isinstance(raw, dict):
        raise DescriptorError(f"descriptor {source} must be a mapping")

    result: DescriptorMap = {}
    for key, value in raw.items():
        try:
            result[str(key)] = Descriptor.model_validate(value or {})
        except pydantic.ValidationError as exc:
            raise DescriptorError(f"invalid descriptor '{key}' in {source}", cause=exc)
    return result


class DescriptorStore:
    """Lazily loaded, thread-safe view over a directory of descriptor files."""

    def __init__(self, directory: Optional[Path] = None):
        """Create a store.

        Args:
            directory: Directory of ``*.yaml`` category files; the packaged
                descriptors when omitted.
        """
        self._directory = directory or _DATA_DIR
        self._lock = threading.Lock()
        self._categories: Optional[Dict[str, DescriptorMap]] = None

    @classmethod
    def from_mapping(cls, categories: Mapping[str, Mapping[str, Descriptor]]) -> "DescriptorStore":
        """A store preloaded with *categories*; nothing is read from disk."""
        store = cls()
        store._categories = {k: dict(v) for k, v in categories.items()}
        return store

    def _load(self) -> Dict[str, DescriptorMap]:
        """Parse every category file in the directory."""
        categories: Dict[str, DescriptorMap] = {}
        for path in sorted(self._directory.glob("*.yaml")):
            try:
                text = path.read_text(encoding="utf-8")
                categories[path.stem] = parse_category(text, path.name)
            except (OSError, DescriptorError) as exc:
                log.fatal(exc, "failed to read descriptor %s", path.name)
        logger.debug("loaded %d descriptor categories", len(categories))
        return categories

    def categories(self) -> Dict[str, DescriptorMap]:
        """All categories, loaded on first access."""
        if self._categories is None:
            with self._lock:
                if self._categories is None:
                    self._categories = self._load()
        return self._categories

    def lookup(self, category: str) -> DescriptorMap:
        """Return the command descriptors of *category*.

        Raises:
            DescriptorError: If the category does not exist.
        """
        try:
            return self.categories()[category]
        except KeyError:
            raise DescriptorError(f"missing descriptor '{category}'") from None

    def get(self, category: str, command: str) -> Optional[Descriptor]:
        """Return one descriptor, or ``None`` when the category or command is missing."""
        try:
            return self.lookup(category).get(command)
        except DescriptorError:
            return None


_default_store = DescriptorStore()


def default_store() -> DescriptorStore:
    """The process-wide store over the packaged descriptors."""
    return _default_store
