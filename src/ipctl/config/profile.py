"""
Connection profiles.

A profile names a server and the credentials used to reach it. Values
for a named profile resolve as environment override, then the
profile's own section, then the ``[profile default]`` section, then
the built-in defaults. Profiles are frozen once loaded.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from ..errors import ConfigError
from ._coerce import coerce_bool, coerce_int, coerce_str

logger = logging.getLogger("ipctl.config.profile")

DEFAULT_PROFILE_NAME = "default"

PROFILE_FIELDS = (
    "host",
    "port",
    "use_tls",
    "verify",
    "username",
    "password",
    "client_id",
    "client_secret",
    "mongo_url",
    "timeout",
)


class Profile(BaseModel):
    """Connection and authentication parameters for one server."""

    model_config = ConfigDict(frozen=True)

    host: str = "localhost"
    port: int = 0
    use_tls: bool = True
    verify: bool = True
    username: str = ""
    password: str = ""
    client_id: str = ""
    client_secret: str = ""
    mongo_url: str = ""
    timeout: int = 0

    @classmethod
    def default(cls) -> "Profile":
        """The built-in profile used when nothing is configured."""
        return cls()

    @property
    def uses_client_credentials(self) -> bool:
        """True when both ``client_id`` and ``client_secret`` are set."""
        return bool(self.client_id) and bool(self.client_secret)


class ProfileLoader:
    """Resolve one profile from its three value layers."""

    def __init__(
        self,
        values: Optional[Mapping[str, Any]] = None,
        defaults: Optional[Mapping[str, Any]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ):
        self._values = dict(values or {})
        self._defaults = dict(defaults or {})
        self._overrides = dict(overrides or {})

    def _value(self, key: str) -> Any:
        if key in self._overrides:
            return self._overrides[key]
        if key in self._values:
            return self._values[key]
        return self._defaults.get(key)

    def load(self) -> Profile:
        """Build the profile; unparsable values fall back to the built-in defaults.

        Returns:
            Profile: The resolved, frozen profile.
        """
        base = Profile.default()
        return Profile(
            host=coerce_str(self._value("host"), base.host),
            port=coerce_int(self._value("port"), base.port),
            use_tls=coerce_bool(self._value("use_tls"), base.use_tls),
            verify=coerce_bool(self._value("verify"), base.verify),
            username=coerce_str(self._value("username"), base.username),
            password=coerce_str(self._value("password"), base.password),
            client_id=coerce_str(self._value("client_id"), base.client_id),
            client_secret=coerce_str(self._value("client_secret"), base.client_secret),
            mongo_url=coerce_str(self._value("mongo_url"), base.mongo_url),
            timeout=coerce_int(self._value("timeout"), base.timeout),
        )


def profile_overrides(name: str, environ: Mapping[str, str]) -> Dict[str, str]:
    """Collect ``IPCTL_PROFILE_<NAME>_<FIELD>`` values for *name*."""
    overrides = {}
    for field in PROFILE_FIELDS:
        key = f"IPCTL_PROFILE_{name.upper()}_{field.upper()}"
        if key in environ:
            overrides[field] = environ[key]
    return overrides


class ProfileManager:
    """Holds every loaded profile and knows which one is active."""

    def __init__(self) -> None:
        self._profiles: Dict[str, Profile] = {}
        self._default = Profile.default()
        self._active = DEFAULT_PROFILE_NAME

    def add(self, name: str, profile: Profile) -> None:
        """Register *profile*; adding ``default`` replaces the fallback profile."""
        if name == DEFAULT_PROFILE_NAME:
            self._default = profile
        self._profiles[name] = profile

    def get(self, name: str = "") -> Profile:
        """Return the profile called *name*.

        An empty name means the default profile, which always exists.

        Raises:
            ConfigError: If a non-default profile is not configured.
        """
        name = name or DEFAULT_PROFILE_NAME
        if name in self._profiles:
            return self._profiles[name]
        if name == DEFAULT_PROFILE_NAME:
            return self._default
        raise ConfigError(f'profile "{name}" not found, using defaults')

    def get_or_default(self, name: str = "") -> Profile:
        """Like ``get`` but logs a warning and returns the built-in profile
        instead of raising.
        """
        try:
            return self.get(name)
        except ConfigError as exc:
            logger.warning("%s", exc)
            return Profile.default()

    def set_active(self, name: str) -> None:
        """Select the active profile by name; resolution happens in ``active``."""
        self._active = name or DEFAULT_PROFILE_NAME

    @property
    def active_name(self) -> str:
        """Name of the selected profile, even if it does not exist."""
        return self._active

    def active(self) -> Profile:
        """Return the selected profile.

        Raises:
            ConfigError: If the selected profile is not configured.
        """
        return self.get(self._active)

    def names(self) -> List[str]:
        """Sorted names of the configured profiles."""
        return sorted(self._profiles)


@runtime_checkable
class ProfileProvider(Protocol):
    """Read access to connection profiles."""

    def get_profile(self, name: str) -> Profile: ...

    def active_profile(self) -> Profile: ...

    def active_profile_name(self) -> str: ...

    def profile_names(self) -> List[str]: ...
