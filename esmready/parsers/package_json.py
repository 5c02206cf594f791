"""Package metadata cache.

Loads the module-mode relevant fields of package.json files and memoizes
them per canonical directory for the lifetime of one report generation.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from esmready.errors import ManifestError
from esmready.models import PackageDescriptor
from esmready.runtime.cache import OnceCache
from esmready.utils.path_utils import canonical_path, is_file, iter_ancestors

logger = logging.getLogger("esmready.parsers.package_json")

PACKAGE_JSON = "package.json"
NODE_MODULES = "node_modules"


def read_manifest_file(path: Path) -> Dict[str, Any]:
    """Read and decode a package.json file.

    Raises:
        ManifestError: If the file cannot be read, is not valid JSON, or
            does not contain a JSON object.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(path, f"Cannot read manifest ({e})") from e
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ManifestError(path, f"Invalid JSON in manifest ({e})") from e
    if not isinstance(data, dict):
        raise ManifestError(path, "Manifest is not a JSON object")
    return data


def _string_field(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if isinstance(value, str) and value:
        return value
    return None


def _dependency_names(data: Dict[str, Any], key: str) -> Tuple[str, ...]:
    deps = data.get(key)
    if not isinstance(deps, dict):
        return ()
    return tuple(str(name) for name in deps)


def parse_manifest(data: Dict[str, Any], root: Path) -> PackageDescriptor:
    """Build a PackageDescriptor from decoded package.json content.

    Args:
        data: Decoded package.json object.
        root: Directory containing the manifest.

    Returns:
        PackageDescriptor for the package.
    """
    peer_meta = data.get("peerDependenciesMeta")
    optional_peers = frozenset()
    if isinstance(peer_meta, dict):
        optional_peers = frozenset(
            name
            for name, meta in peer_meta.items()
            if isinstance(meta, dict) and meta.get("optional") is True
        )

    exports = data.get("exports")
    if isinstance(exports, bool):
        exports = None

    return PackageDescriptor(
        root=root,
        name=_string_field(data, "name"),
        version=_string_field(data, "version"),
        module_type=_string_field(data, "type"),
        main=_string_field(data, "main"),
        module=_string_field(data, "module"),
        exports=exports,
        dependencies=_dependency_names(data, "dependencies"),
        dev_dependencies=_dependency_names(data, "devDependencies"),
        peer_dependencies=_dependency_names(data, "peerDependencies"),
        optional_peers=optional_peers,
    )


class PackageJsonCache:
    """Memoized package.json loader.

    ``load`` looks at exactly one directory. ``find_nearest`` walks upward
    to the closest manifest governing a file's module mode, independent
    of package boundaries. Both are keyed by canonical directory and are
    safe to call from several worker threads.
    """

    def __init__(self) -> None:
        self._manifests: OnceCache[Path, Optional[PackageDescriptor]] = OnceCache(
            "package.json"
        )
        self._nearest: OnceCache[Path, Optional[PackageDescriptor]] = OnceCache(
            "nearest package.json"
        )

    def load(self, directory: Path) -> Optional[PackageDescriptor]:
        """Load the manifest in ``directory``.

        Returns:
            The descriptor, or None when the directory has no package.json.

        Raises:
            ManifestError: If the manifest exists but is malformed.
        """
        key = canonical_path(directory)
        return self._manifests.get_or_compute(key, lambda: self._read(key))

    def find_nearest(self, directory: Path) -> Optional[PackageDescriptor]:
        """Return the closest manifest at or above ``directory``."""
        key = canonical_path(directory)
        return self._nearest.get_or_compute(key, lambda: self._find_nearest(key))

    def _find_nearest(self, directory: Path) -> Optional[PackageDescriptor]:
        for ancestor in iter_ancestors(directory):
            descriptor = self.load(ancestor)
            if descriptor is not None:
                return descriptor
        return None

    def _read(self, directory: Path) -> Optional[PackageDescriptor]:
        manifest_path = directory / PACKAGE_JSON
        if not is_file(manifest_path):
            return None
        descriptor = parse_manifest(read_manifest_file(manifest_path), directory)
        logger.debug(
            "Loaded manifest %s (name=%s, version=%s, type=%s)",
            manifest_path,
            descriptor.name,
            descriptor.version,
            descriptor.module_type,
        )
        return descriptor

    @property
    def loaded(self) -> int:
        """Number of directories actually read from disk."""
        return self._manifests.computed


__all__ = [
    "PACKAGE_JSON",
    "NODE_MODULES",
    "PackageJsonCache",
    "parse_manifest",
    "read_manifest_file",
]
