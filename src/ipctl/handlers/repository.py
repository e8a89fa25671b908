"""``push repository`` and ``pull repository``."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from ..errors import ValidationError
from .command import Request
from .gitrepo import NAMED_PREFIX, open_repository
from .registry import PULLER, PUSHER, ResourceHandler
from .response import Response

logger = logging.getLogger("ipctl.handlers.repository")

_IGNORE = shutil.ignore_patterns(".git")


def mirror(source: Path, target: Path) -> None:
    """Make *target* hold exactly the files of *source*.

    Anything already in *target* is removed first, except a top-level
    ``.git`` directory.
    """
    target.mkdir(parents=True, exist_ok=True)
    for entry in target.iterdir():
        if entry.name == ".git":
            continue
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
    shutil.copytree(source, target, dirs_exist_ok=True, ignore=_IGNORE)


class RepositoryHandler(ResourceHandler):
    """Moves a local directory to and from a configured repository."""

    name = "repository"
    capabilities = PUSHER | PULLER

    def _open(self, name: str):
        """Open the configured repository *name*."""
        return open_repository(self.runtime.config, NAMED_PREFIX + name)

    def push(self, req: Request) -> Response:
        """Mirror a local directory into a repository, then commit and push.

        Raises:
            ValidationError: The source is not a directory.
        """
        name, directory = req.args
        source = Path(directory)
        if not source.is_dir():
            raise ValidationError(f"`{directory}` is not a directory")

        with self._open(name) as repo:
            subdir = req.option("path", "")
            target = repo.path / subdir if subdir else repo.path
            mirror(source, target)
            changed = repo.commit_and_push(req.option("message", ""))

        if not changed:
            text = f"Repository `{name}` is already up to date"
        else:
            text = f"Successfully pushed `{directory}` to repository `{name}`"
        return Response(text=text, object={"repository": name, "changed": changed})

    def pull(self, req: Request) -> Response:
        """Copy a repository, or a subdirectory of it, into a local directory.

        Raises:
            ValidationError: The subdirectory does not exist in the repository.
        """
        name, directory = req.args
        with self._open(name) as repo:
            subdir = req.option("path", "")
            source = repo.path / subdir if subdir else repo.path
            if not source.is_dir():
                raise ValidationError(f"`{subdir}` does not exist in repository `{name}`")
            shutil.copytree(source, Path(directory), dirs_exist_ok=True, ignore=_IGNORE)
        logger.info("copied repository %s into %s", name, directory)
        return Response(
            text=f"Successfully pulled repository `{name}` into `{directory}`",
            object={"repository": name, "path": directory},
        )
