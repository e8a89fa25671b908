"""Reading and writing asset documents on disk or in a git working copy."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..errors import ValidationError
from .gitrepo import GitRepository, open_repository

logger = logging.getLogger("ipctl.handlers.assetio")


def asset_filename(name: str, singular: str) -> str:
    """File name for an exported asset; path separators in *name* become ``_``."""
    safe = str(name).replace("/", "_").replace("\\", "_")
    return f"{safe}.{singular}.json"


def write_asset(directory: Path, name: str, singular: str, document: Any) -> Path:
    """Write *document* as indented JSON under *directory*.

    Args:
        directory: Target directory, created when missing.
        name: Asset name used for the file name.
        singular: Asset kind, the second suffix of the file name.
        document: The JSON document.

    Returns:
        Path: The written file.
    """
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / asset_filename(name, singular)
    path.write_text(json.dumps(document, indent=4) + "\n", encoding="utf-8")
    logger.debug("wrote %s", path)
    return path


def read_asset(path: Path) -> Dict[str, Any]:
    """Load one JSON asset document.

    Raises:
        ValidationError: The file is missing or is not a JSON object.
    """
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ValidationError(f"unable to read file `{path}`", cause=exc)
    except ValueError as exc:
        raise ValidationError(f"file `{path}` is not valid JSON", cause=exc)
    if not isinstance(document, dict):
        raise ValidationError(f"file `{path}` must contain a JSON object")
    return document


def asset_files(directory: Path) -> List[Path]:
    """Sorted ``*.json`` files directly inside *directory*.

    Raises:
        ValidationError: If *directory* is not a directory.
    """
    if not directory.is_dir():
        raise ValidationError(f"`{directory}` is not a directory")
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix == ".json")


def _repository(request) -> Optional[GitRepository]:
    """Open the repository named by ``--repository``, if any."""
    url = request.option("repository", "")
    if not url:
        return None
    return open_repository(
        request.runtime.config,
        url,
        reference=request.option("reference", ""),
        private_key_file=request.option("private_key_file", ""),
    )


@contextmanager
def source_root(request) -> Iterator[Path]:
    """Yield the directory relative paths are read from.

    That is the current directory, or a fresh clone when ``--repository``
    is given.
    """
    repo = _repository(request)
    if repo is None:
        yield Path(".")
        return
    with repo:
        yield repo.path


def write_assets(request, documents: List[Tuple[str, Any]], singular: str) -> Tuple[int, str]:
    """Write *documents* to ``--path``, committing them when a repository is set.

    Returns:
        The number of files written and a description of where they went.
    """
    subdir = request.option("path", "")
    repo = _repository(request)
    if repo is None:
        directory = Path(subdir or ".")
        for name, document in documents:
            write_asset(directory, name, singular, document)
        return len(documents), str(directory)

    with repo:
        directory = repo.path / subdir if subdir else repo.path
        for name, document in documents:
            write_asset(directory, name, singular, document)
        repo.commit_and_push(request.option("message", ""))
    return len(documents), repo.url
