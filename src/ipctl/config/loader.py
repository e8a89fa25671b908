"""
Configuration loader.

Sources are layered lowest to highest: built-in defaults, the INI
configuration file, ``IPCTL_*`` environment variables and finally the
``--config`` / ``--profile`` command line flags. Every call to
``ConfigLoader.load`` parses into fresh local state, so concurrent loads
never observe each other.
"""

from __future__ import annotations

import configparser
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import click

from ..errors import ConfigError
from ._coerce import coerce_bool, coerce_str
from .config import Config
from .profile import (
    DEFAULT_PROFILE_NAME,
    ProfileLoader,
    ProfileManager,
    profile_overrides,
)
from .repository import RepositoryLoader, RepositoryManager, repository_overrides
from .settings import (
    DEFAULT_ENV_BINDINGS,
    DEFAULT_FILE_BASE_NAME,
    DEFAULT_SYS_CONFIG_PATH,
    DEFAULT_VALUES,
    DEFAULT_WORKING_DIR,
    ApplicationSettings,
    Features,
    GitSettings,
    Settings,
)

logger = logging.getLogger("ipctl.config.loader")

PROFILE_PREFIX = "profile "
REPOSITORY_PREFIX = "repository "

_DEFAULT_SECTION = "__ipctl_unsectioned__"


def _flag_parser() -> click.Command:
    """A throwaway command that only understands the two config flags."""
    return click.Command(
        "ipctl",
        params=[
            click.Option(["--config"], default=""),
            click.Option(["--profile"], default=""),
        ],
        add_help_option=False,
        context_settings={
            "ignore_unknown_options": True,
            "allow_extra_args": True,
            "allow_interspersed_args": True,
        },
    )


def parse_config_flags(args: Sequence[str]) -> Tuple[str, str]:
    """Return ``(config, profile)`` from *args*, tolerating unknown flags."""
    try:
        ctx = _flag_parser().make_context("ipctl", list(args), resilient_parsing=True)
    except click.ClickException as exc:
        raise ConfigError(f"parsing command line arguments: {exc.format_message()}") from exc
    return ctx.params.get("config") or "", ctx.params.get("profile") or ""


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _entity_name(section: str, prefix: str, kind: str) -> str:
    name = section[len(prefix):]
    if not name or any(ch.isspace() for ch in name):
        raise ConfigError(f"{kind} name cannot contain spaces: {section}")
    return name


class ConfigLoader:
    """Builds a ``Config`` from defaults, file, environment and flags.

    The loader is configured fluently::

        cfg = ConfigLoader().with_config_file(path).load()
    """

    def __init__(self) -> None:
        self._config_file = ""
        self._working_dir = DEFAULT_WORKING_DIR
        self._sys_config_path = DEFAULT_SYS_CONFIG_PATH
        self._file_base_name = DEFAULT_FILE_BASE_NAME
        self._defaults: Dict[str, Any] = dict(DEFAULT_VALUES)
        self._env_bindings: Dict[str, str] = dict(DEFAULT_ENV_BINDINGS)
        self._args: Optional[List[str]] = None
        self._environ: Optional[Dict[str, str]] = None

    # -- fluent configuration ------------------------------------------------

    def with_config_file(self, path: str) -> "ConfigLoader":
        """Read *path* unless ``--config`` or ``IPCTL_CONFIG`` names another file."""
        self._config_file = path or ""
        return self

    def with_working_dir(self, path: str) -> "ConfigLoader":
        """First directory searched for the configuration file."""
        self._working_dir = path
        return self

    def with_sys_config_path(self, path: str) -> "ConfigLoader":
        """Directory searched after the working directory."""
        self._sys_config_path = path
        return self

    def with_file_base_name(self, name: str) -> "ConfigLoader":
        """File name searched for, with and without an ``.ini`` suffix."""
        self._file_base_name = name
        return self

    def with_defaults(self, defaults: Mapping[str, Any]) -> "ConfigLoader":
        """Replace the built-in defaults, keyed by dotted setting name."""
        self._defaults = dict(defaults)
        return self

    def with_env_bindings(self, bindings: Mapping[str, str]) -> "ConfigLoader":
        """Replace the table binding dotted setting names to environment variables."""
        self._env_bindings = dict(bindings)
        return self

    def with_args(self, args: Sequence[str]) -> "ConfigLoader":
        """Parse ``--config`` and ``--profile`` from *args* instead of ``sys.argv``."""
        self._args = list(args)
        return self

    def with_environ(self, environ: Mapping[str, str]) -> "ConfigLoader":
        """Read overrides from *environ* instead of ``os.environ``."""
        self._environ = dict(environ)
        return self

    # -- loading -------------------------------------------------------------

    def load(self) -> Config:
        """Load and return the configuration.

        Raises:
            ConfigError: On an unreadable or malformed file, a missing
                explicit file, or an entity name containing whitespace.
        """
        args = self._args if self._args is not None else sys.argv[1:]
        environ = self._environ if self._environ is not None else dict(os.environ)

        config_flag, profile_flag = parse_config_flags(args)
        config_flag = self._resolve_config_flag(config_flag, environ)

        sections = self._read_file(self._select_file(config_flag, environ))

        values = dict(self._defaults)
        for key, value in self._file_settings(sections).items():
            values[key] = value
        for key, env_var in self._env_bindings.items():
            if env_var in environ:
                values[key] = environ[env_var]

        settings = self._build_settings(values)
        profiles = self._load_profiles(sections, environ)
        repositories = self._load_repositories(sections, environ)

        active = profile_flag or settings.application.default_profile
        if active:
            profiles.set_active(active)

        logger.debug("active profile is %s", profiles.active_name)
        return Config(settings, profiles, repositories)

    def _resolve_config_flag(self, value: str, environ: Mapping[str, str]) -> str:
        value = environ.get("IPCTL_CONFIG_FILE") or value
        if not value:
            return ""
        expanded = Path(value).expanduser()
        if not expanded.exists():
            raise ConfigError(f"config file does not exist: {value}")
        return str(expanded)

    def _select_file(self, config_flag: str, environ: Mapping[str, str]) -> Optional[Path]:
        """Pick the file to read; ``None`` when the search finds nothing."""
        explicit = ""
        if self._config_file:
            explicit = self._config_file
        if config_flag:
            explicit = config_flag
        if environ.get("IPCTL_CONFIG"):
            explicit = environ["IPCTL_CONFIG"]

        if explicit:
            path = Path(explicit).expanduser()
            if not path.is_file():
                raise ConfigError(f"reading config file: open {path}: no such file")
            return path

        for directory in (Path(self._working_dir).expanduser(), Path(self._sys_config_path)):
            for name in (self._file_base_name, f"{self._file_base_name}.ini"):
                candidate = directory / name
                if candidate.is_file():
                    return candidate
        return None

    def _read_file(self, path: Optional[Path]) -> Dict[str, Dict[str, str]]:
        if path is None:
            logger.debug("no configuration file found, using defaults")
            return {}

        parser = configparser.ConfigParser(
            interpolation=None,
            default_section=_DEFAULT_SECTION,
            strict=False,
        )
        try:
            with path.open(encoding="utf-8") as fh:
                parser.read_file(fh, source=str(path))
        except (OSError, configparser.Error) as exc:
            raise ConfigError(f"reading config file: {exc}") from exc

        logger.debug("loaded configuration file %s", path)
        return {
            section.lower(): {k: _unquote(v) for k, v in parser.items(section)}
            for section in parser.sections()
        }

    def _file_settings(self, sections: Mapping[str, Mapping[str, str]]) -> Dict[str, str]:
        flat = {}
        for key in self._defaults:
            section, _, option = key.partition(".")
            if option in sections.get(section, {}):
                flat[key] = sections[section][option]
        return flat

    def _build_settings(self, values: Mapping[str, Any]) -> Settings:
        working_dir = coerce_str(values.get("application.working_dir"), DEFAULT_WORKING_DIR)
        return Settings(
            application=ApplicationSettings(
                working_dir=str(Path(working_dir).expanduser()),
                default_profile=coerce_str(values.get("application.default_profile")),
                default_repository=coerce_str(values.get("application.default_repository")),
            ),
            features=Features(
                datasets_enabled=coerce_bool(values.get("features.datasets_enabled"), False),
            ),
            git=GitSettings(
                name=coerce_str(values.get("git.name")),
                email=coerce_str(values.get("git.email")),
                user=coerce_str(values.get("git.user"), "git"),
            ),
        )

    def _load_profiles(
        self,
        sections: Mapping[str, Mapping[str, str]],
        environ: Mapping[str, str],
    ) -> ProfileManager:
        manager = ProfileManager()
        defaults = dict(sections.get(PROFILE_PREFIX + DEFAULT_PROFILE_NAME, {}))

        manager.add(
            DEFAULT_PROFILE_NAME,
            ProfileLoader(
                defaults, defaults, profile_overrides(DEFAULT_PROFILE_NAME, environ)
            ).load(),
        )

        for section, values in sections.items():
            if not section.startswith(PROFILE_PREFIX):
                continue
            name = _entity_name(section, PROFILE_PREFIX, "profile")
            if name == DEFAULT_PROFILE_NAME:
                continue
            loader = ProfileLoader(values, defaults, profile_overrides(name, environ))
            manager.add(name, loader.load())
        return manager

    def _load_repositories(
        self,
        sections: Mapping[str, Mapping[str, str]],
        environ: Mapping[str, str],
    ) -> RepositoryManager:
        manager = RepositoryManager()
        for section, values in sections.items():
            if not section.startswith(REPOSITORY_PREFIX):
                continue
            name = _entity_name(section, REPOSITORY_PREFIX, "repository")
            loader = RepositoryLoader(values, repository_overrides(name, environ))
            manager.add(name, loader.load())
        return manager


def new_config(
    defaults: Optional[Mapping[str, Any]] = None,
    env_bindings: Optional[Mapping[str, str]] = None,
    config_file: str = "",
    working_dir: str = "",
    sys_config_path: str = "",
) -> Config:
    """Load configuration or terminate the process.

    Kept for callers that cannot handle a ``ConfigError`` themselves;
    prefer ``ConfigLoader.load``.
    """
    loader = ConfigLoader()
    if defaults is not None:
        loader.with_defaults(defaults)
    if env_bindings is not None:
        loader.with_env_bindings(env_bindings)
    if config_file:
        loader.with_config_file(config_file)
    if working_dir:
        loader.with_working_dir(working_dir)
    if sys_config_path:
        loader.with_sys_config_path(sys_config_path)

    try:
        return loader.load()
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
