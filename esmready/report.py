"""Report model and JSON serialization.

Field names follow the published JSON document (``fauxEsm``,
``resolveErrors``...); Python attributes use snake_case aliases.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from esmready.models import Classification, ClassificationResult


class ErrorEntry(BaseModel):
    """One resolve or parse error attributed to a top-level package."""

    package: str
    message: str


class FauxEsm(BaseModel):
    with_commonjs_dependencies: List[str] = Field(
        default_factory=list, alias="withCommonjsDependencies"
    )
    with_missing_js_file_extensions: List[str] = Field(
        default_factory=list, alias="withMissingJsFileExtensions"
    )

    model_config = {"populate_by_name": True}


class Report(BaseModel):
    """Final aggregate of one report generation.

    Invariant: ``total`` equals the combined length of the four buckets.
    Error-only candidates appear in the error lists and not in ``total``.
    """

    total: int = 0
    esm: List[str] = Field(default_factory=list)
    cjs: List[str] = Field(default_factory=list)
    faux_esm: FauxEsm = Field(default_factory=FauxEsm, alias="fauxEsm")
    resolve_errors: List[ErrorEntry] = Field(default_factory=list, alias="resolveErrors")
    parse_errors: List[ErrorEntry] = Field(default_factory=list, alias="parseErrors")

    model_config = {"populate_by_name": True}

    def bucket_for(self, classification: Classification) -> List[str]:
        if classification is Classification.ESM:
            return self.esm
        if classification is Classification.CJS:
            return self.cjs
        if classification is Classification.FAUX_ESM_WITH_COMMONJS_DEPENDENCIES:
            return self.faux_esm.with_commonjs_dependencies
        return self.faux_esm.with_missing_js_file_extensions

    def add_classification(self, package: str, result: ClassificationResult) -> None:
        """Append ``package`` to the bucket of ``result`` and count it."""
        self.bucket_for(result.classification).append(package)
        self.total += 1

    def add_resolve_error(self, package: str, message: str) -> None:
        self.resolve_errors.append(ErrorEntry(package=package, message=message))

    def add_parse_error(self, package: str, message: str) -> None:
        self.parse_errors.append(ErrorEntry(package=package, message=message))

    def counts(self) -> Dict[str, int]:
        """Bucket sizes keyed by display label, in report order."""
        return {
            "esm": len(self.esm),
            "cjs": len(self.cjs),
            "faux esm (commonjs dependencies)": len(self.faux_esm.with_commonjs_dependencies),
            "faux esm (missing file extensions)": len(
                self.faux_esm.with_missing_js_file_extensions
            ),
            "resolve errors": len(self.resolve_errors),
            "parse errors": len(self.parse_errors),
        }

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)


__all__ = ["ErrorEntry", "FauxEsm", "Report"]
