"""Conditional export map matching.

Implements the subset of the ``exports`` field semantics needed to map a
package subpath to a concrete target: sugar normalization, exact and
``*`` pattern keys, nested condition objects, arrays and ``null``
exclusions.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger("esmready.resolver.exports")

_UNMATCHED = object()


class InvalidExportsError(ValueError):
    """The exports field mixes subpath keys and condition keys."""

    pass


def normalize_exports(exports: Any) -> Dict[str, Any]:
    """Return the exports field as a subpath -> target mapping.

    ``"./index.js"``, arrays, and top-level condition objects are sugar for
    ``{".": <value>}``.

    Raises:
        InvalidExportsError: If an object mixes ``.``-prefixed and condition keys.
    """
    if isinstance(exports, dict):
        keys = list(exports)
        dotted = [key.startswith(".") for key in keys]
        if keys and all(dotted):
            return dict(exports)
        if any(dotted):
            raise InvalidExportsError(
                "exports cannot mix subpath keys and condition keys"
            )
        return {".": exports}
    return {".": exports}


def subpath_key(subpath: str) -> str:
    """``""`` -> ``"."``, ``"sub/x.js"`` -> ``"./sub/x.js"``."""
    return "./" + subpath if subpath else "."


def _match_key(exports_map: Dict[str, Any], key: str) -> Tuple[Any, Optional[str]]:
    """Find the entry for ``key``: exact keys win, then the most specific pattern."""
    if key in exports_map and "*" not in key:
        return exports_map[key], None

    best_key: Optional[str] = None
    best_capture: Optional[str] = None
    for candidate in exports_map:
        if candidate.count("*") != 1:
            continue
        prefix, suffix = candidate.split("*")
        if not key.startswith(prefix) or key == prefix:
            continue
        if suffix and (not key.endswith(suffix) or len(key) < len(candidate)):
            continue
        if best_key is None or _pattern_more_specific(candidate, best_key):
            best_key = candidate
            best_capture = key[len(prefix) : len(key) - len(suffix)]
    if best_key is None:
        return _UNMATCHED, None
    return exports_map[best_key], best_capture


def _pattern_more_specific(a: str, b: str) -> bool:
    """Longer prefix before the ``*`` wins, then the longer key."""
    prefix_a = a.index("*")
    prefix_b = b.index("*")
    if prefix_a != prefix_b:
        return prefix_a > prefix_b
    return len(a) > len(b)


def _select(target: Any, capture: Optional[str], conditions: Sequence[str]) -> Any:
    if target is None:
        return None
    if isinstance(target, str):
        if not target.startswith("./"):
            logger.debug("Ignoring invalid export target %r", target)
            return _UNMATCHED
        if capture is not None:
            return target.replace("*", capture)
        return target
    if isinstance(target, list):
        for item in target:
            selected = _select(item, capture, conditions)
            if selected is not _UNMATCHED:
                return selected
        return _UNMATCHED
    if isinstance(target, dict):
        for condition in conditions:
            if condition not in target:
                continue
            selected = _select(target[condition], capture, conditions)
            if selected is not _UNMATCHED:
                return selected
        return _UNMATCHED
    return _UNMATCHED


def resolve_export(
    exports: Any,
    subpath: str,
    conditions: Sequence[str],
) -> Optional[str]:
    """Map a package subpath to its target through the exports field.

    Args:
        exports: Raw ``exports`` value from package.json.
        subpath: Subpath below the package name, ``""`` for the root.
        conditions: Condition names in preference order.

    Returns:
        The package-relative target (``./dist/x.js``), or None when the
        subpath is not exported under these conditions.

    Raises:
        InvalidExportsError: If the exports field is malformed.
    """
    exports_map = normalize_exports(exports)
    entry, capture = _match_key(exports_map, subpath_key(subpath))
    if entry is _UNMATCHED:
        return None
    selected = _select(entry, capture, conditions)
    if selected is _UNMATCHED:
        return None
    return selected


def export_entry_targets(exports: Any, conditions: Sequence[str]) -> List[str]:
    """All non-pattern targets of the exports field, root subpath first."""
    exports_map = normalize_exports(exports)
    keys = sorted(exports_map, key=lambda key: key != ".")
    targets: List[str] = []
    for key in keys:
        if "*" in key:
            continue
        selected = _select(exports_map[key], None, conditions)
        if isinstance(selected, str) and "*" not in selected and selected not in targets:
            targets.append(selected)
    return targets


__all__ = [
    "InvalidExportsError",
    "normalize_exports",
    "resolve_export",
    "export_entry_targets",
    "subpath_key",
]
