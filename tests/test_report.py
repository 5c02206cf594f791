"""Tests for the report model."""

import json

from esmready.models import Classification, ClassificationResult
from esmready.report import Report


def test_buckets_and_total():
    report = Report()
    report.add_classification("a", ClassificationResult("a", Classification.ESM))
    report.add_classification("b", ClassificationResult("b", Classification.CJS))
    report.add_classification(
        "c", ClassificationResult("c", Classification.FAUX_ESM_WITH_COMMONJS_DEPENDENCIES)
    )
    report.add_classification(
        "d", ClassificationResult("d", Classification.FAUX_ESM_WITH_MISSING_FILE_EXTENSIONS)
    )
    report.add_resolve_error("e", "Failed to resolve 'e'")

    assert report.total == 4
    assert report.counts()["resolve errors"] == 1
    assert report.faux_esm.with_missing_js_file_extensions == ["d"]


def test_json_uses_published_field_names():
    report = Report()
    report.add_parse_error("p", "Failed to parse file x.js: bad")

    data = json.loads(report.to_json())

    assert list(data) == ["total", "esm", "cjs", "fauxEsm", "resolveErrors", "parseErrors"]
    assert list(data["fauxEsm"]) == ["withCommonjsDependencies", "withMissingJsFileExtensions"]
    assert data["parseErrors"] == [{"package": "p", "message": "Failed to parse file x.js: bad"}]
