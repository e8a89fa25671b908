"""
Git working copies for import, export, dump, load, push and pull.

Everything goes through the ``git`` executable. A repository is cloned
into a temporary directory, used, and removed again when the context
manager exits.
"""

from __future__ import annotations

import getpass
import logging
import os
import re
import shlex
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import urlparse

from ..errors import TransportError, ValidationError

logger = logging.getLogger("ipctl.handlers.gitrepo")

VALID_SCHEMES = ("file", "git", "https", "ssh", "git+ssh")
NAMED_PREFIX = "file://@"

_SCP_LIKE = re.compile(r"^[A-Za-z0-9._-]+@[A-Za-z0-9._-]+:(?!//)")


def url_scheme(url: str) -> str:
    """Return the scheme of *url*; scp-style ``user@host:path`` is ssh."""
    if _SCP_LIKE.match(url):
        return "ssh"
    return urlparse(url).scheme.lower()


def validate_repository_url(url: str) -> str:
    """Raise ``ValidationError`` unless *url* uses a supported scheme."""
    if not url:
        raise ValidationError("repository url cannot be empty")
    scheme = url_scheme(url)
    if scheme not in VALID_SCHEMES:
        raise ValidationError(
            f"invalid repository url `{url}`, scheme must be one of {', '.join(VALID_SCHEMES)}"
        )
    return url


def default_user() -> str:
    """Login name of the current user, or ``ipctl`` when it cannot be determined."""
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "ipctl"


class GitRepository:
    """A remote repository and, once cloned, its local working copy.

    Usable as a context manager: entering clones, exiting removes the
    working copy and any temporary key file.
    """

    def __init__(
        self,
        url: str,
        reference: str = "",
        private_key: str = "",
        private_key_file: str = "",
        name: str = "",
        email: str = "",
        user: str = "",
    ):
        """Create a repository handle; nothing is cloned yet.

        Args:
            url: Remote url; see ``VALID_SCHEMES``.
            reference: Branch or tag to check out; the remote default when empty.
            private_key: Inline SSH key, written to the clone directory.
            private_key_file: Path to an SSH key; wins over *private_key*.
            name: Commit author name.
            email: Commit author email.
            user: Local user recorded in commit messages.

        Raises:
            ValidationError: The url scheme is not supported.
        """
        self.url = validate_repository_url(url)
        self.reference = reference
        self.private_key = private_key
        self.private_key_file = private_key_file
        self.user = user or default_user()
        self.name = name or self.user
        self.email = email or f"{self.user}@users.ipctl"
        self.path: Optional[Path] = None
        self._tempdir: Optional[str] = None

    # -- process -------------------------------------------------------------

    def _env(self) -> Dict[str, str]:
        """Process environment for git, with ``GIT_SSH_COMMAND`` when a key is set."""
        env = os.environ.copy()
        key_file = self._key_file()
        if key_file:
            env["GIT_SSH_COMMAND"] = (
                f"ssh -i {shlex.quote(key_file)} -o IdentitiesOnly=yes "
                "-o StrictHostKeyChecking=accept-new"
            )
        return env

    def _key_file(self) -> str:
        """Path of the SSH key to use, writing an inline key out on first use."""
        if self.private_key_file:
            return self.private_key_file
        if self.private_key and self._tempdir:
            path = Path(self._tempdir) / "id_key"
            if not path.exists():
                path.write_text(self.private_key.rstrip("\n") + "\n", encoding="utf-8")
                path.chmod(0o600)
            return str(path)
        return ""

    def _git(self, *args: str, cwd: Optional[Path] = None) -> str:
        """Run one git command and return its stdout.

        Raises:
            TransportError: git is missing or exited non-zero.
        """
        cmd: List[str] = ["git", *args]
        logger.debug("running git %s", args[0])
        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd) if cwd else None,
                env=self._env(),
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise TransportError("unable to run git", cause=exc)
        if result.returncode != 0:
            raise TransportError(f"git {args[0]} failed: {result.stderr.strip()}")
        return result.stdout

    # -- working copy --------------------------------------------------------

    def clone(self) -> Path:
        """Clone into a fresh temporary directory and return its path."""
        self._tempdir = tempfile.mkdtemp(prefix="ipctl-")
        target = Path(self._tempdir) / "repo"
        args = ["clone"]
        if self.reference:
            args += ["--branch", self.reference]
        args += [self.url, str(target)]
        self._git(*args)
        self.path = target
        logger.info("cloned repository into %s", target)
        return target

    def is_dirty(self) -> bool:
        """True when the working copy has uncommitted changes."""
        return bool(self._git("status", "--porcelain", cwd=self._require_path()).strip())

    def commit_and_push(self, message: str = "") -> bool:
        """Stage everything, commit and push if the worktree changed.

        Returns:
            bool: False when there was nothing to commit.
        """
        path = self._require_path()
        self._git("add", "--all", cwd=path)
        if not self.is_dirty():
            logger.info("no changes to commit")
            return False
        self._git(
            "-c", f"user.name={self.name}",
            "-c", f"user.email={self.email}",
            "commit", "-m", message or "Updated by ipctl",
            cwd=path,
        )
        self._git("push", "origin", "HEAD", cwd=path)
        logger.info("pushed changes to %s", self.url)
        return True

    def cleanup(self) -> None:
        """Remove the working copy and its temporary directory."""
        if self._tempdir:
            shutil.rmtree(self._tempdir, ignore_errors=True)
        self._tempdir = None
        self.path = None

    def _require_path(self) -> Path:
        if self.path is None:
            raise TransportError("repository has not been cloned")
        return self.path

    def __enter__(self) -> "GitRepository":
        try:
            self.clone()
        except BaseException:
            self.cleanup()
            raise
        return self

    def __exit__(self, *exc_info) -> None:
        self.cleanup()


def open_repository(
    config,
    url: str,
    reference: str = "",
    private_key_file: str = "",
) -> GitRepository:
    """Build a ``GitRepository`` from command flags and the config.

    ``file://@<name>`` refers to the configured repository ``<name>``;
    its reference and key fill in whatever the flags leave empty.

    Raises:
        ConfigError: The named repository does not exist.
        ValidationError: The URL scheme is not supported.
    """
    private_key = ""
    if url.startswith(NAMED_PREFIX):
        repo = config.get_repository(url[len(NAMED_PREFIX):])
        url = repo.url
        reference = reference or repo.reference
        private_key_file = private_key_file or repo.private_key_file
        private_key = repo.private_key
    return GitRepository(
        url,
        reference=reference,
        private_key=private_key,
        private_key_file=str(Path(private_key_file).expanduser()) if private_key_file else "",
        name=config.git_name,
        email=config.git_email,
        user=config.git_user,
    )
