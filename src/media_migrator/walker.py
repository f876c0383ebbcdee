import os
from pathlib import Path
from typing import Iterator

import structlog

from media_migrator.exceptions import TraversalError

logger = structlog.get_logger(__name__)


def iter_files(root: Path) -> Iterator[Path]:
    """
    Yield every regular file under ``root``, depth first, in lexical order of
    entry names. Directories themselves are never yielded.

    Raises TraversalError if ``root`` cannot be walked at all. Subdirectories
    that become unreadable later are logged and skipped.
    """
    root = Path(root)
    if not root.is_dir():
        raise TraversalError(f"Cannot walk {root}: not a directory")
    try:
        entries = _sorted_entries(root)
    except OSError as e:
        raise TraversalError(f"Cannot walk {root}: {e}") from e

    yield from _walk(entries)


def _sorted_entries(directory: Path):
    with os.scandir(directory) as it:
        return sorted(it, key=lambda entry: entry.name)


def _walk(entries) -> Iterator[Path]:
    for entry in entries:
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
            is_file = entry.is_file()
        except OSError as e:
            logger.warning("Error accessing entry", path=entry.path, error=str(e))
            continue

        if is_dir:
            try:
                children = _sorted_entries(Path(entry.path))
            except OSError as e:
                logger.warning("Error accessing directory", path=entry.path, error=str(e))
                continue
            yield from _walk(children)
        elif is_file:
            yield Path(entry.path)
