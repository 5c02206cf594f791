"""Path normalization utilities used as memoization keys."""

from pathlib import Path
from typing import Iterator, Union


def canonical_path(path: Union[Path, str]) -> Path:
    """Return the absolute, symlink-resolved form of ``path``.

    Two installed copies linked to the same store directory map to the
    same key, so their manifests and files are loaded only once.
    """
    return Path(path).resolve()


def iter_ancestors(directory: Path) -> Iterator[Path]:
    """Yield ``directory`` and each of its parents up to the filesystem root.

    Examples:
        >>> [str(p) for p in iter_ancestors(Path("/a/b"))]
        ['/a/b', '/a', '/']
    """
    current = directory
    while True:
        yield current
        parent = current.parent
        if parent == current:
            return
        current = parent


def is_file(path: Path) -> bool:
    """``Path.is_file`` that treats unreadable paths as missing."""
    try:
        return path.is_file()
    except OSError:
        return False


def is_dir(path: Path) -> bool:
    try:
        return path.is_dir()
    except OSError:
        return False
