"""Core data model shared by the extractor, resolver, walker and classifier."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

import networkx as nx


class ModuleKind(str, Enum):
    """Effective module kind of a file on disk."""

    ESM = "esm"
    CJS = "cjs"
    JSON = "json"
    ADDON = "addon"

    @property
    def is_scannable(self) -> bool:
        """Whether files of this kind contain import forms worth scanning."""
        return self in (ModuleKind.ESM, ModuleKind.CJS)


class ImportForm(str, Enum):
    """Syntax form that produced a specifier occurrence."""

    STATIC_IMPORT = "static_import"
    DYNAMIC_IMPORT = "dynamic_import"
    REQUIRE = "require"


class SpecifierKind(str, Enum):
    """Shape of a specifier string."""

    RELATIVE = "relative"
    BARE = "bare"
    ABSOLUTE = "absolute"


class ResolveFailureKind(str, Enum):
    """Typed reasons a specifier failed to resolve."""

    FILE_NOT_FOUND = "file_not_found"
    MISSING_FILE_EXTENSION = "missing_file_extension"
    PACKAGE_NOT_FOUND = "package_not_found"
    PACKAGE_PATH_NOT_EXPORTED = "package_path_not_exported"
    NO_ENTRY_POINT = "no_entry_point"
    INVALID_MANIFEST = "invalid_manifest"
    OPTIONAL_PEER_NOT_INSTALLED = "optional_peer_not_installed"


class Classification(str, Enum):
    """The four possible outcomes for a classified package."""

    ESM = "esm"
    CJS = "cjs"
    FAUX_ESM_WITH_COMMONJS_DEPENDENCIES = "faux_esm_with_commonjs_dependencies"
    FAUX_ESM_WITH_MISSING_FILE_EXTENSIONS = "faux_esm_with_missing_file_extensions"

    @property
    def is_commonjs_tainted(self) -> bool:
        """True when consuming the package pulls CommonJS into an ESM graph."""
        return self in (
            Classification.CJS,
            Classification.FAUX_ESM_WITH_COMMONJS_DEPENDENCIES,
        )


@dataclass(frozen=True, eq=False)
class PackageDescriptor:
    """Module-mode relevant fields of one package.json.

    Loaded once per canonical directory and shared read-only by every
    traversal that touches the package.
    """

    root: Path
    name: Optional[str] = None
    version: Optional[str] = None
    module_type: Optional[str] = None
    main: Optional[str] = None
    module: Optional[str] = None
    exports: Any = None
    dependencies: Tuple[str, ...] = ()
    dev_dependencies: Tuple[str, ...] = ()
    peer_dependencies: Tuple[str, ...] = ()
    optional_peers: FrozenSet[str] = frozenset()

    @property
    def is_esm(self) -> bool:
        return self.module_type == "module"

    @property
    def has_exports(self) -> bool:
        return self.exports is not None

    @property
    def display_name(self) -> str:
        return self.name or self.root.name

    @property
    def default_kind(self) -> ModuleKind:
        """Kind inherited by ``.js`` and extensionless files below this manifest."""
        return ModuleKind.ESM if self.is_esm else ModuleKind.CJS


@dataclass(frozen=True)
class SourceFile:
    """An absolute, canonical file path plus its effective module kind."""

    path: Path
    kind: ModuleKind


@dataclass(frozen=True)
class ResolveFailure:
    """A specifier that could not be mapped to a file.

    ``inferred`` is set for ``MISSING_FILE_EXTENSION`` failures: it is the
    file lenient resolution would have picked, so the walk can continue.
    """

    kind: ResolveFailureKind
    specifier: str
    from_path: Path
    detail: str = ""
    inferred: Optional[Path] = None

    @property
    def message(self) -> str:
        text = f"Failed to resolve {self.specifier!r} from {self.from_path}"
        if self.detail:
            text = f"{text}: {self.detail}"
        return text


@dataclass(frozen=True)
class Resolution:
    """A successful resolution.

    ``package`` is set when the specifier was bare and names the package
    the target belongs to. ``builtin`` marks platform modules, which carry
    no file and are never walked.
    """

    specifier: str
    file: Optional[SourceFile] = None
    package: Optional[PackageDescriptor] = None
    builtin: bool = False


@dataclass(frozen=True)
class ImportReference:
    """One specifier occurrence inside a source file."""

    specifier: str
    form: ImportForm
    specifier_kind: SpecifierKind
    line: int = 0
    resolution: Optional[Resolution] = None
    failure: Optional[ResolveFailure] = None


@dataclass(frozen=True)
class ScannedFile:
    """Result of scanning one file; memoized per canonical path."""

    source: SourceFile
    references: Tuple[ImportReference, ...] = ()
    error: Optional[str] = None

    @property
    def parsed(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ParseFailure:
    path: Path
    message: str


@dataclass
class PackageClosure:
    """Everything one walk reached from a package's entry points.

    Owned by the walk that built it and consumed read-only afterwards.
    ``graph`` holds file nodes and resolved import edges; every node is
    reachable from one of ``entry_points``.
    """

    package: PackageDescriptor
    entry_points: List[Path] = field(default_factory=list)
    graph: nx.DiGraph = field(default_factory=nx.DiGraph)
    files: Dict[Path, SourceFile] = field(default_factory=dict)
    dependencies: Dict[Path, PackageDescriptor] = field(default_factory=dict)
    references: List[ImportReference] = field(default_factory=list)
    resolve_failures: List[ResolveFailure] = field(default_factory=list)
    parse_failures: List[ParseFailure] = field(default_factory=list)

    @property
    def dependency_names(self) -> List[str]:
        return sorted({pkg.display_name for pkg in self.dependencies.values()})

    def has_esm_entry(self) -> bool:
        return any(
            self.files[path].kind is ModuleKind.ESM
            for path in self.entry_points
            if path in self.files
        )

    def missing_extension_failures(self) -> List[ResolveFailure]:
        return [
            ref.failure
            for ref in self.references
            if ref.failure is not None
            and ref.failure.kind is ResolveFailureKind.MISSING_FILE_EXTENSION
            and ref.specifier_kind is SpecifierKind.RELATIVE
        ]


@dataclass(frozen=True)
class ClassificationResult:
    """Classification of one package, with the names or specifiers behind it."""

    package: str
    classification: Classification
    reasons: Tuple[str, ...] = ()


__all__ = [
    "ModuleKind",
    "ImportForm",
    "SpecifierKind",
    "ResolveFailureKind",
    "Classification",
    "PackageDescriptor",
    "SourceFile",
    "ResolveFailure",
    "Resolution",
    "ImportReference",
    "ScannedFile",
    "ParseFailure",
    "PackageClosure",
    "ClassificationResult",
]
