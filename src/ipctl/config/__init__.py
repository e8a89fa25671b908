"""Layered configuration: settings, connection profiles and repositories."""

from .config import Config, Provider
from .loader import ConfigLoader, new_config, parse_config_flags
from .profile import Profile, ProfileLoader, ProfileManager, ProfileProvider
from .repository import Repository, RepositoryLoader, RepositoryManager, RepositoryProvider
from .settings import (
    DEFAULT_ENV_BINDINGS,
    DEFAULT_VALUES,
    ApplicationProvider,
    FeaturesProvider,
    GitProvider,
    Settings,
)

__all__ = [
    "ApplicationProvider",
    "Config",
    "ConfigLoader",
    "DEFAULT_ENV_BINDINGS",
    "DEFAULT_VALUES",
    "FeaturesProvider",
    "GitProvider",
    "Profile",
    "ProfileLoader",
    "ProfileManager",
    "ProfileProvider",
    "Provider",
    "Repository",
    "RepositoryLoader",
    "RepositoryManager",
    "RepositoryProvider",
    "Settings",
    "new_config",
    "parse_config_flags",
]
