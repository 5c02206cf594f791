"""Module resolution: specifier shapes, built-ins, export maps and the resolver."""

from esmready.resolver.builtins import NODE_BUILTINS, is_builtin
from esmready.resolver.exports import (
    InvalidExportsError,
    export_entry_targets,
    resolve_export,
)
from esmready.resolver.resolver import ModuleResolver, ResolveMode, ResolveResult
from esmready.resolver.specifiers import (
    classify_specifier,
    is_directory_request,
    is_valid_package_name,
    split_package_name,
)

__all__ = [
    "NODE_BUILTINS",
    "is_builtin",
    "InvalidExportsError",
    "export_entry_targets",
    "resolve_export",
    "ModuleResolver",
    "ResolveMode",
    "ResolveResult",
    "classify_specifier",
    "is_valid_package_name",
    "is_directory_request",
    "split_package_name",
]
