"""The immutable configuration value produced by ``ConfigLoader``."""

from __future__ import annotations

from typing import List, Protocol, runtime_checkable

from .profile import Profile, ProfileManager, ProfileProvider
from .repository import Repository, RepositoryManager, RepositoryProvider
from .settings import ApplicationProvider, FeaturesProvider, GitProvider, Settings


class Config:
    """Settings plus the profile and repository managers of one load.

    Each load builds its own managers, so two ``Config`` values never
    share mutable state.
    """

    def __init__(
        self,
        settings: Settings,
        profiles: ProfileManager,
        repositories: RepositoryManager,
    ):
        self._settings = settings
        self._profiles = profiles
        self._repositories = repositories

    @property
    def settings(self) -> Settings:
        """The frozen non-entity settings."""
        return self._settings

    # application
    @property
    def working_dir(self) -> str:
        """Directory asset files are read from and written to."""
        return self._settings.application.working_dir

    @property
    def default_profile(self) -> str:
        """Profile used when ``--profile`` is not given."""
        return self._settings.application.default_profile

    @property
    def default_repository(self) -> str:
        """Repository used when none is named."""
        return self._settings.application.default_repository

    # features
    @property
    def datasets_enabled(self) -> bool:
        """True when ``dump`` and ``load`` are enabled."""
        return self._settings.features.datasets_enabled

    # git
    @property
    def git_name(self) -> str:
        """Commit author name."""
        return self._settings.git.name

    @property
    def git_email(self) -> str:
        """Commit author email."""
        return self._settings.git.email

    @property
    def git_user(self) -> str:
        """Local user recorded in commit messages."""
        return self._settings.git.user

    # profiles
    def get_profile(self, name: str) -> Profile:
        """Return the profile called *name*; see ``ProfileManager.get``."""
        return self._profiles.get(name)

    def active_profile(self) -> Profile:
        """Return the profile chosen by ``--profile`` or ``default_profile``.

        Raises:
            ConfigError: If that profile is not configured.
        """
        return self._profiles.active()

    def active_profile_name(self) -> str:
        """Name of the profile ``active_profile`` returns."""
        return self._profiles.active_name

    def profile_names(self) -> List[str]:
        """Sorted names of the configured profiles."""
        return self._profiles.names()

    # repositories
    def get_repository(self, name: str) -> Repository:
        """Return the repository called *name*.

        Raises:
            ConfigError: If no such repository is configured.
        """
        return self._repositories.get(name)

    def repository_names(self) -> List[str]:
        """Sorted names of the configured repositories."""
        return self._repositories.names()


@runtime_checkable
class Provider(
    ApplicationProvider,
    FeaturesProvider,
    GitProvider,
    ProfileProvider,
    RepositoryProvider,
    Protocol,
):
    """Everything a full ``Config`` offers; handlers prefer a narrower group."""
