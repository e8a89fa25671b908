"""
Application-wide settings: the ``application``, ``features`` and ``git``
sections of the configuration file.

Also holds the built-in defaults and the fixed table that binds each
dotted settings key to its ``IPCTL_*`` environment variable.
"""

from __future__ import annotations

from typing import Dict, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

DEFAULT_WORKING_DIR = "~/.platform.d"
DEFAULT_SYS_CONFIG_PATH = "/etc/ipctl"
DEFAULT_FILE_BASE_NAME = "config"

DEFAULT_VALUES: Dict[str, object] = {
    "application.working_dir": DEFAULT_WORKING_DIR,
    "application.default_profile": "",
    "application.default_repository": "",
    "features.datasets_enabled": False,
    "git.name": "",
    "git.email": "",
    "git.user": "git",
}

DEFAULT_ENV_BINDINGS: Dict[str, str] = {
    "application.working_dir": "IPCTL_APPLICATION_WORKING_DIR",
    "application.default_profile": "IPCTL_APPLICATION_DEFAULT_PROFILE",
    "application.default_repository": "IPCTL_APPLICATION_DEFAULT_REPOSITORY",
    "features.datasets_enabled": "IPCTL_FEATURES_DATASETS_ENABLED",
    "git.name": "IPCTL_GIT_NAME",
    "git.email": "IPCTL_GIT_EMAIL",
    "git.user": "IPCTL_GIT_USER",
}


class ApplicationSettings(BaseModel):
    """The ``[application]`` section."""

    model_config = ConfigDict(frozen=True)

    working_dir: str = DEFAULT_WORKING_DIR
    default_profile: str = ""
    default_repository: str = ""


class Features(BaseModel):
    """The ``[features]`` section; toggles optional command groups."""

    model_config = ConfigDict(frozen=True)

    datasets_enabled: bool = False


class GitSettings(BaseModel):
    """Identity used when ipctl commits to a repository."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: str = ""
    user: str = "git"


class Settings(BaseModel):
    """Every non-entity section of one loaded configuration."""

    model_config = ConfigDict(frozen=True)

    application: ApplicationSettings = ApplicationSettings()
    features: Features = Features()
    git: GitSettings = GitSettings()


# ---------------------------------------------------------------------------
# Capability groups
# ---------------------------------------------------------------------------


@runtime_checkable
class ApplicationProvider(Protocol):
    """Read access to ``[application]`` values."""

    @property
    def working_dir(self) -> str: ...

    @property
    def default_profile(self) -> str: ...

    @property
    def default_repository(self) -> str: ...


@runtime_checkable
class FeaturesProvider(Protocol):
    """Read access to feature flags."""

    @property
    def datasets_enabled(self) -> bool: ...


@runtime_checkable
class GitProvider(Protocol):
    """Read access to the commit identity."""

    @property
    def git_name(self) -> str: ...

    @property
    def git_email(self) -> str: ...

    @property
    def git_user(self) -> str: ...
