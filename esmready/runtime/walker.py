"""Dependency graph walker.

Builds a package's closure: every file transitively reachable from its
entry points through resolved import edges. Bare imports into other
packages are recorded as dependencies and not followed; those packages
get their own walk.
"""

import logging
from collections import deque
from dataclasses import replace
from pathlib import Path
from typing import Deque, Optional, Set

from esmready.models import (
    ImportForm,
    ImportReference,
    ModuleKind,
    PackageClosure,
    PackageDescriptor,
    ParseFailure,
    ResolveFailure,
    ResolveFailureKind,
    ScannedFile,
    SourceFile,
    SpecifierKind,
)
from esmready.parsers.imports import ImportExtractor
from esmready.resolver.resolver import ModuleResolver, ResolveMode
from esmready.runtime.cache import OnceCache

logger = logging.getLogger("esmready.runtime.walker")


def resolve_mode_for(source: SourceFile, form: ImportForm) -> ResolveMode:
    """Resolution rules that apply to one import occurrence.

    ``require`` is always CJS and ``import()`` always ESM. Static
    declarations follow the kind of the file that contains them.
    """
    if form is ImportForm.REQUIRE:
        return ResolveMode.CJS
    if form is ImportForm.DYNAMIC_IMPORT:
        return ResolveMode.ESM
    return ResolveMode.ESM if source.kind is ModuleKind.ESM else ResolveMode.CJS


class DependencyWalker:
    """Walks the import graph of one package at a time.

    The scan cache is shared between walks so a file reached from several
    packages is read and scanned once.
    """

    def __init__(
        self,
        resolver: ModuleResolver,
        extractor: Optional[ImportExtractor] = None,
        scans: Optional[OnceCache[Path, ScannedFile]] = None,
    ) -> None:
        self.resolver = resolver
        self.extractor = extractor or ImportExtractor()
        self._scans: OnceCache[Path, ScannedFile] = (
            scans if scans is not None else OnceCache("scanned files")
        )

    def scan(self, source: SourceFile) -> ScannedFile:
        return self._scans.get_or_compute(
            source.path, lambda: self.extractor.scan_file(source)
        )

    def walk(self, package: PackageDescriptor) -> PackageClosure:
        """Compute the closure of ``package``.

        Never raises for problems in the install tree: resolve and parse
        failures are recorded on the closure and the walk goes on.
        """
        closure = PackageClosure(package=package)
        entries, failures = self.resolver.entry_points(package)
        closure.resolve_failures.extend(failures)

        visited: Set[Path] = set()
        queue: Deque[SourceFile] = deque()
        for entry in entries:
            if entry.path not in closure.entry_points:
                closure.entry_points.append(entry.path)
            self._visit(closure, entry, visited, queue)

        while queue:
            source = queue.popleft()
            if not source.kind.is_scannable:
                continue
            scanned = self.scan(source)
            if not scanned.parsed:
                closure.parse_failures.append(ParseFailure(source.path, scanned.error or ""))
            for reference in scanned.references:
                self._follow(closure, source, reference, visited, queue)

        logger.debug(
            "Walked %s: %d file(s), %d dependency package(s), %d resolve failure(s)",
            package.display_name,
            len(closure.files),
            len(closure.dependencies),
            len(closure.resolve_failures),
        )
        return closure

    @staticmethod
    def _visit(
        closure: PackageClosure,
        source: SourceFile,
        visited: Set[Path],
        queue: Deque[SourceFile],
    ) -> None:
        if source.path in visited:
            return
        visited.add(source.path)
        closure.files[source.path] = source
        closure.graph.add_node(source.path, kind=source.kind.value)
        queue.append(source)

    def _follow(
        self,
        closure: PackageClosure,
        source: SourceFile,
        reference: ImportReference,
        visited: Set[Path],
        queue: Deque[SourceFile],
    ) -> None:
        if reference.specifier_kind is SpecifierKind.ABSOLUTE:
            logger.debug("%s: ignoring absolute specifier %r", source.path, reference.specifier)
            return

        mode = resolve_mode_for(source, reference.form)
        outcome = self.resolver.resolve(reference.specifier, source.path, mode)

        if isinstance(outcome, ResolveFailure):
            closure.references.append(replace(reference, failure=outcome))
            self._record_failure(closure, source, outcome, visited, queue)
            return

        closure.references.append(replace(reference, resolution=outcome))
        if outcome.builtin or outcome.file is None:
            return
        if outcome.package is not None and outcome.package.root != closure.package.root:
            closure.dependencies.setdefault(outcome.package.root, outcome.package)
            return
        self._add_edge(closure, source, outcome.file, reference)
        self._visit(closure, outcome.file, visited, queue)

    def _record_failure(
        self,
        closure: PackageClosure,
        source: SourceFile,
        failure: ResolveFailure,
        visited: Set[Path],
        queue: Deque[SourceFile],
    ) -> None:
        if failure.kind is ResolveFailureKind.OPTIONAL_PEER_NOT_INSTALLED:
            logger.warning(
                "%s: skipping %r, optional peer dependency is not installed",
                closure.package.display_name,
                failure.specifier,
            )
            return
        if failure.kind is ResolveFailureKind.MISSING_FILE_EXTENSION:
            # Not a hard error: keep walking through the file a lenient resolver picks.
            if failure.inferred is not None:
                target = self.resolver.source_file(failure.inferred)
                closure.graph.add_node(target.path, kind=target.kind.value)
                closure.graph.add_edge(
                    source.path,
                    target.path,
                    specifier=failure.specifier,
                    inferred=True,
                )
                self._visit(closure, target, visited, queue)
            return
        logger.debug("%s", failure.message)
        closure.resolve_failures.append(failure)

    @staticmethod
    def _add_edge(
        closure: PackageClosure,
        source: SourceFile,
        target: SourceFile,
        reference: ImportReference,
    ) -> None:
        closure.graph.add_node(target.path, kind=target.kind.value)
        closure.graph.add_edge(
            source.path,
            target.path,
            specifier=reference.specifier,
            form=reference.form.value,
        )


__all__ = ["DependencyWalker", "resolve_mode_for"]
