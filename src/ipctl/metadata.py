"""Build identification for the startup banner and ``ipctl version``."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass

from . import APP_NAME, BUILD, __version__


@dataclass(frozen=True)
class Info:
    """Name, version and build hash of this binary."""

    name: str
    version: str
    build: str

    def is_release(self) -> bool:
        """True when both a version and a build hash were stamped in."""
        return bool(self.version) and bool(self.build)

    def short_version(self) -> str:
        """The version, or ``development`` for unstamped builds."""
        return self.version or "development"

    def full_version(self) -> str:
        """Name and version, with the build hash for releases."""
        if self.is_release():
            return f"{self.name} {self.version} ({self.build})"
        return f"{self.name} {self.short_version()}"

    def __str__(self) -> str:
        return self.full_version()


def get_info() -> Info:
    """Return the build identification of the running package."""
    return Info(name=APP_NAME, version=__version__, build=BUILD)


def current_sha() -> str:
    """Return the HEAD commit of the git checkout in the working directory.

    Raises:
        RuntimeError: If git is unavailable or the directory is not a checkout.
    """
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            check=False,
            timeout=5,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise RuntimeError(f"failed to run git: {exc}") from exc

    if result.returncode != 0:
        raise RuntimeError(f"failed to open git repository: {result.stderr.strip()}")
    return result.stdout.strip()
