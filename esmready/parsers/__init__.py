"""Parsers package.

Source scanning for import forms and package.json loading.
"""

from esmready.parsers.imports import Dialect, ImportExtractor, ImportScan, dialect_for
from esmready.parsers.package_json import (
    NODE_MODULES,
    PACKAGE_JSON,
    PackageJsonCache,
    parse_manifest,
    read_manifest_file,
)

__all__ = [
    "Dialect",
    "ImportExtractor",
    "ImportScan",
    "dialect_for",
    "NODE_MODULES",
    "PACKAGE_JSON",
    "PackageJsonCache",
    "parse_manifest",
    "read_manifest_file",
]
