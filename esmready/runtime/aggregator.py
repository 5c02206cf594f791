"""Report aggregator.

Runs in two phases:

1. Walk: every package reachable from the candidates is walked once on a
   thread pool. Walks are memoized per canonical package root and newly
   discovered dependency packages are scheduled as walks finish.
2. Classify: the package graph is condensed into strongly connected
   components and classified dependencies-first in a single pass.

All caches belong to one ``ReportAggregator`` and are dropped with it.
"""

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

import networkx as nx

from esmready.config.loader import ConfigSource, load_config
from esmready.errors import ManifestError, RootManifestError
from esmready.models import (
    ClassificationResult,
    PackageClosure,
    PackageDescriptor,
    ResolveFailure,
    ResolveFailureKind,
)
from esmready.parsers.imports import ImportExtractor
from esmready.parsers.package_json import (
    PACKAGE_JSON,
    PackageJsonCache,
    parse_manifest,
    read_manifest_file,
)
from esmready.report import Report
from esmready.resolver.resolver import ModuleResolver
from esmready.runtime.cache import OnceCache
from esmready.runtime.classifier import classify
from esmready.runtime.walker import DependencyWalker
from esmready.utils.path_utils import canonical_path, is_dir, is_file

logger = logging.getLogger("esmready.runtime.aggregator")

TYPES_SCOPE = "@types/"


def load_root_manifest(manifest_path: Union[str, Path]) -> PackageDescriptor:
    """Load the root project's manifest.

    ``manifest_path`` may also name the directory holding package.json.

    Raises:
        RootManifestError: If the manifest is missing, unreadable or malformed.
    """
    path = Path(manifest_path)
    if is_dir(path):
        path = path / PACKAGE_JSON
    if not is_file(path):
        raise RootManifestError(path, "Root manifest not found")
    try:
        data = read_manifest_file(path)
    except ManifestError as e:
        raise RootManifestError(path, e.reason) from e
    return parse_manifest(data, canonical_path(path.parent))


class ReportAggregator:
    """Generates one Report; holds every cache scoped to that generation."""

    def __init__(self, config: ConfigSource = None) -> None:
        self.config = load_config(config)
        self.manifests = PackageJsonCache()
        self.resolver = ModuleResolver(self.manifests, self.config)
        self.walker = DependencyWalker(self.resolver, ImportExtractor())
        self._closures: OnceCache[Path, PackageClosure] = OnceCache("package closures")
        self._classifications: Dict[Path, ClassificationResult] = {}
        self._package_graph = nx.DiGraph()

    # ------------------------------------------------------------------
    # Candidates
    # ------------------------------------------------------------------

    def candidates(
        self, root: PackageDescriptor, names: Optional[Sequence[str]] = None
    ) -> List[str]:
        """Top-level names to classify, in first-seen order without duplicates.

        A name filter is taken as given. Otherwise the root's dependencies
        (plus dev/peer dependencies when configured) are used.
        """
        if names is not None:
            return list(dict.fromkeys(name for name in names if name))

        declared: List[str] = list(root.dependencies)
        if self.config.include_dev_dependencies:
            declared.extend(root.dev_dependencies)
        if self.config.include_peer_dependencies:
            declared.extend(root.peer_dependencies)
        if self.config.skip_type_packages:
            declared = [name for name in declared if not name.startswith(TYPES_SCOPE)]
        return list(dict.fromkeys(declared))

    def locate(
        self, name: str, root: PackageDescriptor
    ) -> Union[PackageDescriptor, ResolveFailure]:
        """Find an installed top-level candidate from the root directory."""
        anchor = root.root / PACKAGE_JSON
        package_root = self.resolver.find_package_root(name, root.root)
        if package_root is None:
            return ResolveFailure(
                ResolveFailureKind.PACKAGE_NOT_FOUND,
                name,
                anchor,
                f"package {name} is not installed",
            )
        try:
            descriptor = self.manifests.load(package_root)
        except ManifestError as e:
            return ResolveFailure(ResolveFailureKind.INVALID_MANIFEST, name, anchor, str(e))
        if descriptor is None:
            logger.warning("%s has no %s, using defaults", package_root, PACKAGE_JSON)
            descriptor = PackageDescriptor(root=package_root, name=name)
        return descriptor

    # ------------------------------------------------------------------
    # Phase 1: walks
    # ------------------------------------------------------------------

    def closure(self, package: PackageDescriptor) -> PackageClosure:
        """Walk ``package`` once; concurrent callers share the same walk."""
        return self._closures.get_or_compute(package.root, lambda: self.walker.walk(package))

    def walk_all(self, seeds: Iterable[PackageDescriptor]) -> None:
        """Walk the seeds and every package they transitively bare-import."""
        scheduled: Set[Path] = set()
        with ThreadPoolExecutor(
            max_workers=self.config.max_workers, thread_name_prefix="esmready-walk"
        ) as executor:
            futures: Dict[Future, PackageDescriptor] = {}

            def schedule(package: PackageDescriptor) -> None:
                if package.root in scheduled:
                    return
                scheduled.add(package.root)
                futures[executor.submit(self.closure, package)] = package

            for seed in seeds:
                schedule(seed)

            while futures:
                done, _ = wait(futures.keys(), return_when=FIRST_COMPLETED)
                for future in done:
                    futures.pop(future)
                    closure = future.result()
                    for dependency in closure.dependencies.values():
                        schedule(dependency)

        logger.info(
            "Walked %d package(s), %d manifest(s) loaded",
            len(scheduled),
            self.manifests.loaded,
        )

    # ------------------------------------------------------------------
    # Phase 2: classification
    # ------------------------------------------------------------------

    def classify_all(self) -> None:
        """Classify every walked package, dependencies before dependents.

        Members of a dependency cycle are classified in sorted root order;
        a member not yet classified counts as CJS for the others.
        """
        closures = dict(self._closures.items())
        graph = self._package_graph
        for root, closure in closures.items():
            graph.add_node(root)
            for dependency_root in closure.dependencies:
                graph.add_edge(root, dependency_root)

        condensed = nx.condensation(graph)
        for component in reversed(list(nx.topological_sort(condensed))):
            members = sorted(condensed.nodes[component]["members"], key=str)
            if len(members) > 1:
                logger.debug("Dependency cycle between %d packages: %s", len(members), members)
            for root in members:
                if root in self._classifications:
                    continue
                closure = closures[root]
                known = {
                    dependency_root: self._classifications[dependency_root].classification
                    for dependency_root in closure.dependencies
                    if dependency_root in self._classifications
                }
                result = classify(closure.package, closure, known)
                self._classifications[root] = result
                logger.debug(
                    "Classified %s as %s%s",
                    result.package,
                    result.classification.value,
                    f" ({', '.join(result.reasons)})" if result.reasons else "",
                )

    def classification(self, package: PackageDescriptor) -> ClassificationResult:
        return self._classifications[package.root]

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def errors_for(self, package: PackageDescriptor) -> Tuple[List[str], List[str]]:
        """Resolve and parse error messages from everything ``package`` reaches."""
        reached = {package.root}
        if package.root in self._package_graph:
            reached |= nx.descendants(self._package_graph, package.root)
        resolve_messages: Set[str] = set()
        parse_messages: Set[str] = set()
        for root in reached:
            found, closure = self._closures.peek(root)
            if not found:
                continue
            resolve_messages.update(failure.message for failure in closure.resolve_failures)
            parse_messages.update(
                f"Failed to parse file {failure.path}: {failure.message}"
                for failure in closure.parse_failures
            )
        return sorted(resolve_messages), sorted(parse_messages)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def generate(
        self,
        manifest_path: Union[str, Path],
        names: Optional[Sequence[str]] = None,
    ) -> Report:
        """Build the report for the project at ``manifest_path``.

        Raises:
            RootManifestError: If the root manifest cannot be loaded.
        """
        root = load_root_manifest(manifest_path)
        candidates = self.candidates(root, names)
        logger.info(
            "Checking %d candidate(s) of %s", len(candidates), root.display_name
        )

        report = Report()
        located: List[Tuple[str, Union[PackageDescriptor, ResolveFailure]]] = [
            (name, self.locate(name, root)) for name in candidates
        ]
        self.walk_all(
            outcome for _, outcome in located if isinstance(outcome, PackageDescriptor)
        )
        self.classify_all()

        for name, outcome in located:
            if isinstance(outcome, ResolveFailure):
                logger.warning("%s", outcome.message)
                report.add_resolve_error(name, outcome.message)
                continue
            report.add_classification(name, self.classification(outcome))
            resolve_messages, parse_messages = self.errors_for(outcome)
            for message in resolve_messages:
                report.add_resolve_error(name, message)
            for message in parse_messages:
                report.add_parse_error(name, message)

        logger.info(
            "Classified %d package(s): %d esm, %d cjs, %d faux esm",
            report.total,
            len(report.esm),
            len(report.cjs),
            len(report.faux_esm.with_commonjs_dependencies)
            + len(report.faux_esm.with_missing_js_file_extensions),
        )
        return report


def generate_report(
    manifest_path: Union[str, Path],
    names: Optional[Sequence[str]] = None,
    config: ConfigSource = None,
) -> Report:
    """Generate the readiness report for a project.

    Args:
        manifest_path: Path to the root package.json (or its directory).
        names: Optional dependency-name filter; when given it is exactly
            the candidate set.
        config: Optional checker configuration (see ``load_config``).

    Returns:
        The Report.

    Raises:
        RootManifestError: If the root manifest is missing or unusable.
    """
    return ReportAggregator(config).generate(manifest_path, names)


__all__ = ["ReportAggregator", "generate_report", "load_root_manifest"]
