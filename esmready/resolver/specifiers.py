"""Specifier shape helpers."""

import re
from typing import Tuple

from esmready.models import SpecifierKind

_URL_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z\d+.\-]*:")


def classify_specifier(specifier: str) -> SpecifierKind:
    """Classify a specifier as relative, bare or absolute.

    Examples:
        >>> classify_specifier("./util.js")
        <SpecifierKind.RELATIVE: 'relative'>
        >>> classify_specifier("@scope/pkg/sub")
        <SpecifierKind.BARE: 'bare'>
        >>> classify_specifier("node:fs")
        <SpecifierKind.BARE: 'bare'>
        >>> classify_specifier("/abs/file.js")
        <SpecifierKind.ABSOLUTE: 'absolute'>
    """
    if specifier in (".", "..") or specifier.startswith(("./", "../")):
        return SpecifierKind.RELATIVE
    if specifier.startswith("node:"):
        return SpecifierKind.BARE
    if specifier.startswith("/") or _URL_SCHEME.match(specifier):
        return SpecifierKind.ABSOLUTE
    return SpecifierKind.BARE


def split_package_name(specifier: str) -> Tuple[str, str]:
    """Split a bare specifier into package name and subpath.

    Scoped packages keep their scope: ``@foo/bar/baz`` -> ``("@foo/bar", "baz")``.
    The subpath is returned without a leading slash, empty for the package root.
    """
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) >= 2:
        name = "/".join(parts[:2])
        rest = parts[2:]
    else:
        name = parts[0]
        rest = parts[1:]
    return name, "/".join(rest)


def is_directory_request(specifier: str) -> bool:
    """Relative specifiers such as ``.`` or ``../`` that only name a directory."""
    return specifier in (".", "..") or specifier.endswith(("/", "/.", "/.."))


def is_valid_package_name(name: str) -> bool:
    """Reject names that can never match an installed package directory."""
    if not name or name.startswith(".") or "\\" in name or "%" in name:
        return False
    if name.startswith("@"):
        scope, _, base = name.partition("/")
        return len(scope) > 1 and bool(base)
    return True


__all__ = [
    "classify_specifier",
    "split_package_name",
    "is_directory_request",
    "is_valid_package_name",
]
