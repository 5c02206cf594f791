"""Exception hierarchy for esmready.

Per-file and per-specifier problems are collected as report data by the
walker. Exceptions only travel as far as the component that turns them
into data, except for ``RootManifestError`` which aborts report
generation.
"""


class EsmReadyError(Exception):
    """Base class for all esmready errors."""

    pass


class RecoverableError(EsmReadyError):
    """Base class for errors that skip the current item and continue.

    These errors indicate expected failure conditions caused by the
    analyzed install tree, not by esmready itself.
    """

    pass


class ManifestError(RecoverableError):
    """A package.json could not be read or is malformed."""

    def __init__(self, path, message: str) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path
        self.reason = message


class RootManifestError(ManifestError):
    """The root project's package.json is missing or unusable.

    This is the one fatal condition: without a root manifest there is no
    candidate set to analyze.
    """

    pass


class ParseError(RecoverableError):
    """A source file could not be scanned for import forms at all."""

    def __init__(self, path, message: str) -> None:
        super().__init__(f"Failed to parse file {path}: {message}")
        self.path = path
        self.original_error_message = message


class ConfigurationError(EsmReadyError):
    """The checker configuration could not be loaded or validated."""

    pass


__all__ = [
    "EsmReadyError",
    "RecoverableError",
    "ManifestError",
    "RootManifestError",
    "ParseError",
    "ConfigurationError",
]
