"""Module resolver reproducing the runtime's two resolution algorithms.

ESM resolution is strict for relative specifiers: only the exact path
resolves. A relative specifier that only lenient inference could satisfy
is reported as ``MISSING_FILE_EXTENSION`` together with the inferred
file. CJS resolution applies the lenient rules (extensions, directory
``main``, ``index`` files). Bare specifiers go through the nested
``node_modules`` search and the package's conditional export map.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from esmready.config.schema import CheckerConfig
from esmready.errors import ManifestError
from esmready.models import (
    ModuleKind,
    PackageDescriptor,
    Resolution,
    ResolveFailure,
    ResolveFailureKind,
    SourceFile,
    SpecifierKind,
)
from esmready.parsers.package_json import NODE_MODULES, PackageJsonCache
from esmready.resolver.builtins import is_builtin
from esmready.resolver.exports import (
    InvalidExportsError,
    export_entry_targets,
    resolve_export,
    subpath_key,
)
from esmready.resolver.specifiers import (
    classify_specifier,
    is_directory_request,
    is_valid_package_name,
    split_package_name,
)
from esmready.runtime.cache import OnceCache
from esmready.utils.path_utils import canonical_path, is_dir, is_file, iter_ancestors

logger = logging.getLogger("esmready.resolver.resolver")

LENIENT_EXTENSIONS: Tuple[str, ...] = (".js", ".json", ".node")
INDEX_FILES: Tuple[str, ...] = ("index.js", "index.json", "index.node")

_KIND_BY_SUFFIX = {
    ".mjs": ModuleKind.ESM,
    ".mts": ModuleKind.ESM,
    ".cjs": ModuleKind.CJS,
    ".cts": ModuleKind.CJS,
    ".json": ModuleKind.JSON,
    ".node": ModuleKind.ADDON,
}

ResolveResult = Union[Resolution, ResolveFailure]


class ResolveMode(str, Enum):
    """Which resolution algorithm applies to a specifier occurrence."""

    ESM = "esm"
    CJS = "cjs"


class ModuleResolver:
    """Resolves specifiers to SourceFiles or typed ResolveFailures.

    Memoizes SourceFile cells and node_modules lookups; safe to share
    between worker threads of one report generation.
    """

    def __init__(
        self,
        manifests: PackageJsonCache,
        config: Optional[CheckerConfig] = None,
    ) -> None:
        config = config or CheckerConfig()
        self.manifests = manifests
        self.esm_conditions: Tuple[str, ...] = tuple(config.esm_conditions)
        self.cjs_conditions: Tuple[str, ...] = tuple(config.cjs_conditions)
        self.use_module_field = config.use_module_field
        self._extra_builtins = frozenset(config.extra_builtins)
        self._files: OnceCache[Path, SourceFile] = OnceCache("source files")
        self._package_roots: OnceCache[Tuple[str, Path], Optional[Path]] = OnceCache(
            "package roots"
        )

    # ------------------------------------------------------------------
    # Source files
    # ------------------------------------------------------------------

    def source_file(self, path: Path) -> SourceFile:
        """Return the memoized SourceFile cell for ``path``.

        Raises:
            ManifestError: If the manifest governing the file is malformed.
        """
        key = canonical_path(path)
        return self._files.get_or_compute(
            key, lambda: SourceFile(path=key, kind=self.module_kind(key))
        )

    def module_kind(self, path: Path) -> ModuleKind:
        """Effective kind from the extension, else the nearest manifest's type."""
        kind = _KIND_BY_SUFFIX.get(path.suffix.lower())
        if kind is not None:
            return kind
        descriptor = self.manifests.find_nearest(path.parent)
        if descriptor is None:
            return ModuleKind.CJS
        return descriptor.default_kind

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def entry_points(
        self, package: PackageDescriptor
    ) -> Tuple[List[SourceFile], List[ResolveFailure]]:
        """Compute the files a consumer can reach by importing ``package``.

        With an export map: every non-pattern subpath target under the ESM
        conditions (CJS conditions when the map offers nothing to ESM).
        Without one: the main entry.
        """
        label = package.display_name
        anchor = package.root / "package.json"
        failures: List[ResolveFailure] = []
        try:
            if package.has_exports:
                targets = export_entry_targets(package.exports, self.esm_conditions)
                if not targets:
                    targets = export_entry_targets(package.exports, self.cjs_conditions)
                files: List[SourceFile] = []
                for target in targets:
                    path = package.root / target
                    if is_file(path):
                        files.append(self.source_file(path))
                    else:
                        failures.append(
                            ResolveFailure(
                                ResolveFailureKind.FILE_NOT_FOUND,
                                label,
                                anchor,
                                f"export target {target} does not exist",
                            )
                        )
                if files or failures:
                    return files, failures
            else:
                entry = self.main_entry(package)
                if entry is not None:
                    return [self.source_file(entry)], failures
        except (ManifestError, InvalidExportsError) as e:
            return [], [
                ResolveFailure(ResolveFailureKind.INVALID_MANIFEST, label, anchor, str(e))
            ]
        return [], [
            ResolveFailure(
                ResolveFailureKind.NO_ENTRY_POINT,
                label,
                anchor,
                "package has no resolvable entry point",
            )
        ]

    def main_entry(self, package: PackageDescriptor) -> Optional[Path]:
        """Legacy main resolution: ``module`` (opt-in), ``main``, then ``index``."""
        fields: List[str] = []
        if self.use_module_field and package.module:
            fields.append(package.module)
        if package.main:
            fields.append(package.main)
        for field in fields:
            path = package.root / field
            found = self._with_extensions(path) or self._index_of(path)
            if found is not None:
                return found
            logger.debug("%s: %s entry %s does not exist", package.display_name, field, path)
        return self._index_of(package.root)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, specifier: str, from_file: Path, mode: ResolveMode) -> ResolveResult:
        """Resolve ``specifier`` as written in ``from_file``.

        Args:
            specifier: Raw specifier text.
            from_file: Canonical path of the importing file.
            mode: ESM or CJS resolution rules.

        Returns:
            A Resolution on success, otherwise a ResolveFailure.
        """
        kind = classify_specifier(specifier)
        try:
            if kind is SpecifierKind.RELATIVE:
                return self._resolve_relative(specifier, from_file, mode)
            if kind is SpecifierKind.ABSOLUTE:
                return ResolveFailure(
                    ResolveFailureKind.FILE_NOT_FOUND,
                    specifier,
                    from_file,
                    "absolute specifiers are not resolved",
                )
            return self._resolve_bare(specifier, from_file, mode)
        except (ManifestError, InvalidExportsError) as e:
            return ResolveFailure(
                ResolveFailureKind.INVALID_MANIFEST, specifier, from_file, str(e)
            )

    def _resolve_relative(
        self, specifier: str, from_file: Path, mode: ResolveMode
    ) -> ResolveResult:
        path = from_file.parent / specifier
        if is_directory_request(specifier):
            inferred = self._directory_entry(path)
        elif is_file(path):
            return Resolution(specifier, file=self.source_file(path))
        else:
            inferred = self._with_extensions(path) or self._directory_entry(path)
        if inferred is None:
            return ResolveFailure(
                ResolveFailureKind.FILE_NOT_FOUND,
                specifier,
                from_file,
                f"{path} does not exist",
            )
        if mode is ResolveMode.ESM:
            return ResolveFailure(
                ResolveFailureKind.MISSING_FILE_EXTENSION,
                specifier,
                from_file,
                f"ES module resolution needs the full path, found {inferred.name}",
                inferred=self.source_file(inferred).path,
            )
        return Resolution(specifier, file=self.source_file(inferred))

    def _resolve_bare(self, specifier: str, from_file: Path, mode: ResolveMode) -> ResolveResult:
        if is_builtin(specifier, self._extra_builtins):
            return Resolution(specifier, builtin=True)

        name, subpath = split_package_name(specifier)
        if not is_valid_package_name(name):
            return ResolveFailure(
                ResolveFailureKind.PACKAGE_NOT_FOUND,
                specifier,
                from_file,
                f"{name!r} is not a valid package name",
            )

        package = self._self_reference(name, from_file)
        if package is None:
            root = self.find_package_root(name, from_file.parent)
            if root is None:
                if self._is_optional_peer(name, from_file):
                    return ResolveFailure(
                        ResolveFailureKind.OPTIONAL_PEER_NOT_INSTALLED,
                        specifier,
                        from_file,
                        f"optional peer dependency {name} is not installed",
                    )
                return ResolveFailure(
                    ResolveFailureKind.PACKAGE_NOT_FOUND,
                    specifier,
                    from_file,
                    f"package {name} is not installed",
                )
            package = self.manifests.load(root) or PackageDescriptor(
                root=canonical_path(root), name=name
            )

        target = self._resolve_package_subpath(package, name, subpath, specifier, from_file, mode)
        if isinstance(target, ResolveFailure):
            return target
        return Resolution(specifier, file=self.source_file(target), package=package)

    def _resolve_package_subpath(
        self,
        package: PackageDescriptor,
        name: str,
        subpath: str,
        specifier: str,
        from_file: Path,
        mode: ResolveMode,
    ) -> Union[Path, ResolveFailure]:
        if package.has_exports:
            target = resolve_export(package.exports, subpath, self.conditions_for(mode))
            if target is None:
                return ResolveFailure(
                    ResolveFailureKind.PACKAGE_PATH_NOT_EXPORTED,
                    specifier,
                    from_file,
                    f"subpath {subpath_key(subpath)} is not exported by {name}",
                )
            path = package.root / target
            if is_file(path):
                return path
            return ResolveFailure(
                ResolveFailureKind.FILE_NOT_FOUND,
                specifier,
                from_file,
                f"export target {target} of {name} does not exist",
            )

        if not subpath:
            entry = self.main_entry(package)
            if entry is None:
                return ResolveFailure(
                    ResolveFailureKind.NO_ENTRY_POINT,
                    specifier,
                    from_file,
                    f"package {name} has no main entry or index file",
                )
            return entry

        path = package.root / subpath
        found = path if is_file(path) else None
        found = found or self._with_extensions(path) or self._directory_entry(path)
        if found is None:
            return ResolveFailure(
                ResolveFailureKind.FILE_NOT_FOUND,
                specifier,
                from_file,
                f"{path} does not exist",
            )
        return found

    def conditions_for(self, mode: ResolveMode) -> Sequence[str]:
        return self.esm_conditions if mode is ResolveMode.ESM else self.cjs_conditions

    # ------------------------------------------------------------------
    # Package lookup
    # ------------------------------------------------------------------

    def find_package_root(self, name: str, directory: Path) -> Optional[Path]:
        """Nested node_modules search from ``directory`` up to the root."""
        key = (name, directory)
        return self._package_roots.get_or_compute(
            key, lambda: self._find_package_root(name, directory)
        )

    @staticmethod
    def _find_package_root(name: str, directory: Path) -> Optional[Path]:
        for ancestor in iter_ancestors(directory):
            if ancestor.name == NODE_MODULES:
                continue
            candidate = ancestor / NODE_MODULES / name
            if is_dir(candidate):
                return canonical_path(candidate)
        return None

    def _self_reference(self, name: str, from_file: Path) -> Optional[PackageDescriptor]:
        """A package may import itself by name when it declares an export map."""
        scope = self.manifests.find_nearest(from_file.parent)
        if scope is not None and scope.name == name and scope.has_exports:
            return scope
        return None

    def _is_optional_peer(self, name: str, from_file: Path) -> bool:
        scope = self.manifests.find_nearest(from_file.parent)
        return (
            scope is not None
            and name in scope.peer_dependencies
            and name in scope.optional_peers
        )

    # ------------------------------------------------------------------
    # Lenient file inference
    # ------------------------------------------------------------------

    @staticmethod
    def _with_extensions(path: Path) -> Optional[Path]:
        if is_file(path):
            return path
        for extension in LENIENT_EXTENSIONS:
            candidate = path.with_name(path.name + extension)
            if is_file(candidate):
                return candidate
        return None

    @staticmethod
    def _index_of(directory: Path) -> Optional[Path]:
        for index in INDEX_FILES:
            candidate = directory / index
            if is_file(candidate):
                return candidate
        return None

    def _directory_entry(self, directory: Path) -> Optional[Path]:
        """Directory import: the directory manifest's ``main``, then ``index``."""
        if not is_dir(directory):
            return None
        descriptor = self.manifests.load(directory)
        if descriptor is not None and descriptor.main:
            main = directory / descriptor.main
            found = self._with_extensions(main) or self._index_of(main)
            if found is not None:
                return found
        return self._index_of(directory)


__all__ = [
    "ModuleResolver",
    "ResolveMode",
    "ResolveResult",
    "LENIENT_EXTENSIONS",
    "INDEX_FILES",
]
