"""Embedded command descriptors."""

from .schema import Descriptor
from .store import DescriptorMap, DescriptorStore, default_store, parse_category

__all__ = ["Descriptor", "DescriptorMap", "DescriptorStore", "default_store", "parse_category"]
