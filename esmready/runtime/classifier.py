"""Package classification.

Rules, first match wins:

1. The package does not declare ``"type": "module"`` and none of its entry
   points is an ES module file -> ``CJS``.
2. A bare-imported dependency is CommonJS-tainted (``CJS``, or itself
   faux ESM because of CommonJS dependencies) -> faux ESM with CommonJS
   dependencies.
3. A relative import in the closure resolves only with extension
   inference -> faux ESM with missing file extensions.
4. Otherwise -> ``ESM``.
"""

import logging
from pathlib import Path
from typing import Mapping

from esmready.models import (
    Classification,
    ClassificationResult,
    PackageClosure,
    PackageDescriptor,
)

logger = logging.getLogger("esmready.runtime.classifier")


def classify(
    package: PackageDescriptor,
    closure: PackageClosure,
    dependency_classifications: Mapping[Path, Classification],
) -> ClassificationResult:
    """Classify one package from its closure.

    Args:
        package: The package being classified.
        closure: Result of walking ``package``.
        dependency_classifications: Classifications already computed,
            keyed by canonical package root. A dependency missing from the
            mapping counts as ``CJS``.

    Returns:
        ClassificationResult with the reasons behind a non-ESM outcome.
    """
    name = package.display_name

    if not package.is_esm and not closure.has_esm_entry():
        return ClassificationResult(name, Classification.CJS)

    tainted = sorted(
        {
            dependency.display_name
            for root, dependency in closure.dependencies.items()
            if dependency_classifications.get(root, Classification.CJS).is_commonjs_tainted
        }
    )
    if tainted:
        return ClassificationResult(
            name, Classification.FAUX_ESM_WITH_COMMONJS_DEPENDENCIES, tuple(tainted)
        )

    missing = sorted({failure.specifier for failure in closure.missing_extension_failures()})
    if missing:
        return ClassificationResult(
            name, Classification.FAUX_ESM_WITH_MISSING_FILE_EXTENSIONS, tuple(missing)
        )

    return ClassificationResult(name, Classification.ESM)


__all__ = ["classify"]
