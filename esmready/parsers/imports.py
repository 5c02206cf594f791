"""Import extractor for JavaScript/TypeScript source text.

Uses tree-sitter to find static imports, re-exports, dynamic ``import()``
expressions and ``require()`` calls with a literal argument. When the
grammar reports syntax errors (Flow annotations, proposals, dialect
mismatches) the extractor falls back to a lexical scan for the same
forms.
"""

import bisect
import logging
import re
import threading
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import tree_sitter_javascript as ts_javascript
import tree_sitter_typescript as ts_typescript
from tree_sitter import Language, Node, Parser

from esmready.errors import ParseError
from esmready.models import ImportForm, ImportReference, ModuleKind, ScannedFile, SourceFile
from esmready.resolver.specifiers import classify_specifier

logger = logging.getLogger("esmready.parsers.imports")

JS_LANGUAGE = Language(ts_javascript.language())
TS_LANGUAGE = Language(ts_typescript.language_typescript())
TSX_LANGUAGE = Language(ts_typescript.language_tsx())


class Dialect(str, Enum):
    """Syntax dialect hint for a source file."""

    SCRIPT = "script"
    MODULE = "module"
    TYPESCRIPT = "typescript"
    TSX = "tsx"


def dialect_for(source: SourceFile) -> Dialect:
    """Pick the dialect for a file from its extension and module kind."""
    suffix = source.path.suffix.lower()
    if suffix == ".tsx":
        return Dialect.TSX
    if suffix in (".ts", ".mts", ".cts"):
        return Dialect.TYPESCRIPT
    if source.kind is ModuleKind.ESM:
        return Dialect.MODULE
    return Dialect.SCRIPT


class _ThreadParsers(threading.local):
    """tree-sitter parsers are not thread-safe; keep one set per thread."""

    def __init__(self) -> None:
        self.javascript = Parser(JS_LANGUAGE)
        self.typescript = Parser(TS_LANGUAGE)
        self.tsx = Parser(TSX_LANGUAGE)

    def for_dialect(self, dialect: Dialect) -> Parser:
        if dialect is Dialect.TSX:
            return self.tsx
        if dialect is Dialect.TYPESCRIPT:
            return self.typescript
        return self.javascript


# ---------------------------------------------------------------------------
# Lexical fallback
# ---------------------------------------------------------------------------

_COMMENT_OR_STRING = re.compile(
    r"""(?P<comment>//[^\n]*|/\*.*?\*/)"""
    r"""|(?P<string>"(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*'|`(?:\\.|[^`\\])*`)""",
    re.DOTALL,
)

_LEXICAL_FORMS = re.compile(
    r"""
    (?<![\w$.])(?:
        (?:(?:import|export)\b(?P<clause>[\w$*{},\s]*?)\bfrom\s*|import\s*)
            (?P<sq>['"])(?P<static>[^'"\n]+)(?P=sq)
      | import\s*\(\s*(?P<dq>['"`])(?P<dynamic>(?:(?!\$\{)[^'"`\n])+)(?P=dq)\s*[,)]
      | require\s*\(\s*(?P<rq>['"`])(?P<require>(?:(?!\$\{)[^'"`\n])+)(?P=rq)\s*\)
    )
    """,
    re.VERBOSE,
)

_TYPE_ONLY_CLAUSE = re.compile(r"type[\s{*]")


def _blank(text: str) -> str:
    """Replace text with spaces, keeping newlines so offsets and lines hold."""
    return re.sub(r"[^\n]", " ", text)


def _lexical_scan(source: str) -> Iterator[Tuple[str, ImportForm, int]]:
    """Best-effort scan for import forms in text the grammar rejected."""
    pieces: List[str] = []
    string_starts: List[int] = []
    string_ends: List[int] = []
    last = 0
    for match in _COMMENT_OR_STRING.finditer(source):
        if match.group("comment") is not None:
            pieces.append(source[last : match.start()])
            pieces.append(_blank(match.group(0)))
            last = match.end()
        else:
            string_starts.append(match.start())
            string_ends.append(match.end())
    pieces.append(source[last:])
    cleaned = "".join(pieces)

    for match in _LEXICAL_FORMS.finditer(cleaned):
        # Matches that begin inside a string literal are text, not code.
        index = bisect.bisect_right(string_starts, match.start()) - 1
        if index >= 0 and match.start() < string_ends[index]:
            continue
        line = cleaned.count("\n", 0, match.start()) + 1
        if match.group("static") is not None:
            clause = (match.group("clause") or "").strip()
            if _TYPE_ONLY_CLAUSE.match(clause):
                continue
            yield match.group("static"), ImportForm.STATIC_IMPORT, line
        elif match.group("dynamic") is not None:
            yield match.group("dynamic"), ImportForm.DYNAMIC_IMPORT, line
        else:
            yield match.group("require"), ImportForm.REQUIRE, line


# ---------------------------------------------------------------------------
# tree-sitter extraction
# ---------------------------------------------------------------------------


def _literal_value(node: Optional[Node]) -> Optional[str]:
    """Return the value of a string literal node, None for anything computed."""
    if node is None:
        return None
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.children):
            return None
    elif node.type != "string":
        return None
    text = node.text.decode("utf-8", errors="replace")
    if len(text) < 2:
        return None
    return text[1:-1] or None


def _is_type_only(node: Node) -> bool:
    """``import type ...`` / ``export type ... from`` are erased at runtime."""
    return any(child.type == "type" for child in node.children)


def _first_argument(call: Node) -> Optional[Node]:
    args = call.child_by_field_name("arguments")
    if args is None:
        return None
    for child in args.named_children:
        if child.type != "comment":
            return child
    return None


def _tree_scan(root: Node) -> Iterator[Tuple[str, ImportForm, int]]:
    stack = [root]
    while stack:
        node = stack.pop()
        node_type = node.type
        descend = True

        if node_type == "import_statement":
            descend = False
            if not _is_type_only(node):
                source = _literal_value(node.child_by_field_name("source"))
                if source is not None:
                    yield source, ImportForm.STATIC_IMPORT, node.start_point[0] + 1
                else:
                    for child in node.named_children:
                        if child.type != "import_require_clause":
                            continue
                        clause_source = child.child_by_field_name("source")
                        if clause_source is None:
                            clause_source = next(
                                (c for c in child.named_children if c.type == "string"),
                                None,
                            )
                        value = _literal_value(clause_source)
                        if value is not None:
                            yield value, ImportForm.REQUIRE, child.start_point[0] + 1

        elif node_type == "export_statement":
            source_node = node.child_by_field_name("source")
            if source_node is not None:
                descend = False
                value = _literal_value(source_node)
                if value is not None and not _is_type_only(node):
                    yield value, ImportForm.STATIC_IMPORT, node.start_point[0] + 1

        elif node_type == "call_expression":
            function = node.child_by_field_name("function")
            form = None
            if function is not None:
                if function.type == "import":
                    form = ImportForm.DYNAMIC_IMPORT
                elif function.type == "identifier" and function.text == b"require":
                    form = ImportForm.REQUIRE
            if form is not None:
                value = _literal_value(_first_argument(node))
                if value is not None:
                    yield value, form, node.start_point[0] + 1

        if descend:
            stack.extend(reversed(node.children))


class ImportScan:
    """Lazy, restartable sequence of the specifiers in one source text.

    Each iteration re-runs the scan from the start, so the sequence can be
    consumed more than once without holding the references in memory.
    """

    def __init__(self, extractor: "ImportExtractor", source: str, dialect: Dialect) -> None:
        self._extractor = extractor
        self._source = source
        self._dialect = dialect

    def __iter__(self) -> Iterator[ImportReference]:
        for specifier, form, line in self._extractor.iter_forms(self._source, self._dialect):
            yield ImportReference(
                specifier=specifier,
                form=form,
                specifier_kind=classify_specifier(specifier),
                line=line,
            )


class ImportExtractor:
    """Extracts ImportReferences from JS/TS source files."""

    def __init__(self) -> None:
        self._parsers = _ThreadParsers()

    def extract(self, source: str, dialect: Dialect = Dialect.MODULE) -> ImportScan:
        """Return the restartable sequence of references in ``source``."""
        return ImportScan(self, source, dialect)

    def iter_forms(self, source: str, dialect: Dialect) -> Iterator[Tuple[str, ImportForm, int]]:
        """Yield ``(specifier, form, line)`` triples in source order."""
        parser = self._parsers.for_dialect(dialect)
        tree = parser.parse(source.encode("utf-8"))
        if tree.root_node.has_error:
            logger.debug("Grammar rejected %s source, using lexical scan", dialect.value)
            yield from _lexical_scan(source)
            return
        yield from _tree_scan(tree.root_node)

    def scan_file(self, source: SourceFile) -> ScannedFile:
        """Read and scan one file.

        Files that cannot be read or decoded as text produce a ScannedFile
        carrying the error and no references.
        """
        try:
            text = self.read_source(source.path)
        except ParseError as e:
            logger.debug("%s", e)
            return ScannedFile(source=source, error=e.original_error_message)
        references = tuple(self.extract(text, dialect_for(source)))
        logger.debug("Scanned %s: %d reference(s)", source.path, len(references))
        return ScannedFile(source=source, references=references)

    @staticmethod
    def read_source(path: Path) -> str:
        """Read source text.

        Raises:
            ParseError: If the file is unreadable, binary, or not UTF-8.
        """
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ParseError(path, f"Cannot read file: {e}") from e
        if b"\x00" in data:
            raise ParseError(path, "File contains binary data")
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(path, f"File is not valid UTF-8: {e}") from e


__all__ = ["Dialect", "ImportExtractor", "ImportScan", "dialect_for"]
