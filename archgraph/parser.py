"""Source file parser: language detection, import/export extraction, and
per-file heuristics (type, complexity, patterns, lines of code).

JavaScript and TypeScript are parsed with Tree-sitter.  A parse that cannot
produce a clean tree (grammar missing, or syntax errors in the source) comes
back as a :class:`ParseError` and the regex extractor runs instead, so a
single odd file only loses fidelity, never the whole run.  Python is handled
with regexes alone.
"""

from __future__ import annotations

import importlib
import logging
import math
import posixpath
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from tree_sitter import Language as TSLanguage, Parser as TSParser

from .config import (
    GENERIC_DIRS,
    IMPORTANT_FILES,
    IRRELEVANT_PATTERNS,
    LANGUAGE_EXTENSIONS,
    MAX_FILE_SIZE,
    RELEVANT_EXTENSIONS,
)
from .models import FileEntry, GraphNode, Language, NodeMetadata, NodeType

logger = logging.getLogger(__name__)

_JS_LANGUAGES = (Language.JAVASCRIPT, Language.TYPESCRIPT)


# ===================================================================
# Parse results
# ===================================================================

@dataclass
class Extraction:
    """Everything a language extractor pulls out of one file."""

    imports: List[str] = field(default_factory=list)
    exports: List[str] = field(default_factory=list)
    is_entry: bool = False
    is_async: bool = False
    has_error_handling: bool = False


@dataclass
class ParseOk:
    extraction: Extraction


@dataclass
class ParseError:
    reason: str


ParseResult = Union[ParseOk, ParseError]


# ===================================================================
# Path helpers
# ===================================================================

def normalize_path(path: str) -> str:
    """Return *path* as a clean, relative, forward-slash path."""
    path = path.replace("\\", "/").strip()
    if not path:
        return ""
    path = posixpath.normpath(path).lstrip("/")
    return "" if path == "." else path


def node_id_for(path: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", normalize_path(path))


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def detect_language(filename: str) -> Language:
    return Language(LANGUAGE_EXTENSIONS.get(file_extension(filename), "unknown"))


def is_relevant_file(filename: str, path: str = "") -> bool:
    """Apply the default relevance filter to a file name and its path."""
    wanted = filename.endswith(RELEVANT_EXTENSIONS) or filename in IMPORTANT_FILES
    haystack = path or filename
    return wanted and not any(p in haystack for p in IRRELEVANT_PATTERNS)


def component_name(filename: str, path: str) -> str:
    name = filename.split(".")[0]
    parts = normalize_path(path).split("/")
    parent = parts[-2] if len(parts) >= 2 else ""
    if parent and parent not in GENERIC_DIRS:
        return f"{parent}/{name}"
    return name


# ===================================================================
# Heuristics
# ===================================================================

def infer_node_type(path: str, content: str, language: Language) -> NodeType:
    p = path.lower()

    if "component" in p or ".jsx" in p or ".tsx" in p:
        return NodeType.COMPONENT
    if "service" in p or "api" in p:
        return NodeType.SERVICE
    if "util" in p or "helper" in p:
        return NodeType.UTILITY
    if "config" in p or "setting" in p:
        return NodeType.CONFIG
    if "hook" in p and language in _JS_LANGUAGES:
        return NodeType.HOOK
    if "test" in p or "spec" in p:
        return NodeType.TEST
    if "database" in p or "db" in p or "model" in p:
        return NodeType.DATABASE

    if "export default" in content or "ReactDOM.render" in content:
        return NodeType.COMPONENT
    if "export function" in content or "module.exports" in content:
        return NodeType.SERVICE

    return NodeType.MODULE


def count_lines_of_code(content: str) -> int:
    count = 0
    for line in content.split("\n"):
        stripped = line.strip()
        if stripped and not stripped.startswith(("//", "*")):
            count += 1
    return count


_DECISION_PATTERNS = [
    re.compile(p)
    for p in (
        r"\bif\b", r"\belse if\b", r"\belse\b",
        r"\bfor\b", r"\bwhile\b", r"\bdo\b",
        r"\bswitch\b", r"\bcase\b",
        r"\btry\b", r"\bcatch\b",
        r"\?\s*[^:]*\s*:",  # ternary
        r"&&", r"\|\|",
    )
]
_ASYNC_PATTERNS = [re.compile(p) for p in (r"async", r"await", r"Promise", r"=>\s*\{")]


def calculate_complexity(content: str, language: Language) -> int:
    """Token-count complexity: 1 plus one per branching token.

    JS/TS files also add half a point per async/promise/arrow-block token.
    """
    complexity = 1.0
    for pattern in _DECISION_PATTERNS:
        complexity += len(pattern.findall(content))
    if language in _JS_LANGUAGES:
        for pattern in _ASYNC_PATTERNS:
            complexity += len(pattern.findall(content)) * 0.5
    return max(1, int(math.floor(complexity + 0.5)))


def detect_patterns(content: str) -> List[str]:
    patterns: List[str] = []

    if "class" in content and "extends" in content:
        patterns.append("inheritance")
    if "singleton" in content or "getInstance" in content:
        patterns.append("singleton")
    if "observer" in content or "subscribe" in content or "emit" in content:
        patterns.append("observer")
    if "factory" in content or "create" in content:
        patterns.append("factory")

    if "middleware" in content or "use(" in content:
        patterns.append("middleware")
    if "router" in content or "route" in content:
        patterns.append("routing")
    if "controller" in content or "Controller" in content:
        patterns.append("mvc")

    if "Promise" in content or "async" in content or "await" in content:
        patterns.append("async")
    if "callback" in content or "=>" in content:
        patterns.append("callback")

    return patterns


# ===================================================================
# Regex extractors
# ===================================================================

_JS_IMPORT_RE = re.compile(r"import\s+.*?\s+from\s+['\"]([^'\"]+)['\"]")
_JS_EXPORT_RE = re.compile(r"export\s+(?:default\s+)?(?:function|const|let|var|class)\s+(\w+)")

_PY_IMPORT_RE = re.compile(r"^[ \t]*(?:from\s+(\S+)\s+)?import\s+(.+)$", re.MULTILINE)
_PY_EXPORT_RE = re.compile(r"^(?:(?:async\s+)?def\s+(\w+)\s*\(|class\s+(\w+))", re.MULTILINE)


def extract_javascript_regex(content: str) -> Extraction:
    """Line-level fallback for JS/TS sources the AST parser rejected."""
    ex = Extraction()
    ex.imports.extend(m.group(1) for m in _JS_IMPORT_RE.finditer(content))
    ex.exports.extend(m.group(1) for m in _JS_EXPORT_RE.finditer(content))
    ex.is_async = "async " in content
    ex.has_error_handling = "try" in content and "catch" in content
    return ex


def extract_python(content: str, extension: str = "py") -> Extraction:
    ex = Extraction()
    for match in _PY_IMPORT_RE.finditer(content):
        from_module, imported = match.group(1), match.group(2)
        if from_module:
            ex.imports.append(from_module)
            continue
        for part in imported.strip("() \t").split(","):
            tokens = part.split()
            if tokens:
                ex.imports.append(tokens[0])

    for match in _PY_EXPORT_RE.finditer(content):
        ex.exports.append(match.group(1) or match.group(2))

    ex.is_async = "async def" in content
    ex.has_error_handling = "try:" in content and "except" in content
    return ex


def extract_nothing(content: str, extension: str = "") -> Extraction:
    return Extraction()


# ===================================================================
# Tree-sitter walk (JavaScript / TypeScript)
# ===================================================================

_FUNCTION_NODES = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "arrow_function",
    "method_definition",
})
_VARIABLE_DECLARATIONS = frozenset({"lexical_declaration", "variable_declaration"})


def _text(ts_node: Any) -> str:
    return ts_node.text.decode("utf-8", errors="ignore")


def _string_value(ts_node: Any) -> str:
    raw = _text(ts_node)
    if len(raw) >= 2 and raw[0] in "'\"`" and raw[-1] == raw[0]:
        return raw[1:-1]
    return raw


def _collect_exports(export_node: Any, ex: Extraction) -> None:
    if any(child.type == "default" for child in export_node.children):
        ex.exports.append("default")
        ex.is_entry = True
        return

    decl = export_node.child_by_field_name("declaration")
    if decl is not None:
        if decl.type in _VARIABLE_DECLARATIONS:
            for declarator in decl.named_children:
                if declarator.type != "variable_declarator":
                    continue
                name = declarator.child_by_field_name("name")
                if name is not None and name.type == "identifier":
                    ex.exports.append(_text(name))
            return
        name = decl.child_by_field_name("name")
        if name is not None:
            ex.exports.append(_text(name))
        elif decl.type in _FUNCTION_NODES:
            ex.exports.append("anonymous")
        return

    for clause in export_node.named_children:
        if clause.type != "export_clause":
            continue
        for spec in clause.named_children:
            if spec.type != "export_specifier":
                continue
            name = spec.child_by_field_name("alias")
            if name is None:
                name = spec.child_by_field_name("name")
            if name is not None:
                ex.exports.append(_string_value(name))


def walk_javascript_tree(root: Any) -> Extraction:
    """Collect imports, exports, and async / try flags from a syntax tree."""
    ex = Extraction()
    stack = [root]
    while stack:
        ts_node = stack.pop()
        kind = ts_node.type

        if kind == "import_statement":
            source = ts_node.child_by_field_name("source")
            if source is not None:
                ex.imports.append(_string_value(source))
            continue

        if kind == "export_statement":
            _collect_exports(ts_node, ex)
        elif kind == "try_statement":
            ex.has_error_handling = True
        elif kind in _FUNCTION_NODES:
            if any(child.type == "async" for child in ts_node.children):
                ex.is_async = True

        # Reversed so the pop order follows source order.
        stack.extend(reversed(ts_node.children))
    return ex


# ===================================================================
# SourceParser
# ===================================================================

class SourceParser:
    """Turns one file-tree entry into a :class:`GraphNode`.

    Tree-sitter grammars are loaded per instance; an analysis run owns its
    parser, so parser objects are never shared between threads.
    """

    # grammar name -> (module, factory function)
    _GRAMMAR_MODULES: Dict[str, tuple] = {
        "javascript": ("tree_sitter_javascript", "language"),
        "typescript": ("tree_sitter_typescript", "language_typescript"),
        "tsx": ("tree_sitter_typescript", "language_tsx"),
    }

    _GRAMMAR_BY_EXTENSION: Dict[str, str] = {
        "js": "javascript",
        "jsx": "javascript",
        "ts": "typescript",
        "tsx": "tsx",
    }

    def __init__(self, max_file_size: int = MAX_FILE_SIZE) -> None:
        self.max_file_size = max_file_size
        self._parsers: Dict[str, Any] = {}
        self._init_parsers()
        self._extractors: Dict[Language, Callable[[str, str], Extraction]] = {
            Language.TYPESCRIPT: self._extract_javascript,
            Language.JAVASCRIPT: self._extract_javascript,
            Language.PYTHON: extract_python,
            Language.JAVA: extract_nothing,
            Language.GO: extract_nothing,
            Language.RUST: extract_nothing,
            Language.UNKNOWN: extract_nothing,
        }

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    def _init_parsers(self) -> None:
        for grammar, (mod_name, factory) in self._GRAMMAR_MODULES.items():
            try:
                mod = importlib.import_module(mod_name)
                self._parsers[grammar] = TSParser(TSLanguage(getattr(mod, factory)()))
                logger.debug("Loaded tree-sitter grammar for %s", grammar)
            except ImportError:
                logger.warning(
                    "Grammar package '%s' not installed; %s files will use regex extraction. "
                    "Install with: pip install %s",
                    mod_name, grammar, mod_name.replace("_", "-"),
                )
            except Exception as exc:
                logger.warning("Could not load tree-sitter grammar for %s: %s", grammar, exc)

    def supports_grammar(self, grammar: str) -> bool:
        return grammar in self._parsers

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def should_parse(self, entry: FileEntry) -> bool:
        """The caller's ``relevant`` flag wins over the default filter."""
        if entry.relevant is not None:
            return entry.relevant
        return is_relevant_file(entry.name, entry.path)

    # ------------------------------------------------------------------
    # JavaScript / TypeScript
    # ------------------------------------------------------------------

    def parse_javascript(self, content: str, grammar: str = "javascript") -> ParseResult:
        if not self.supports_grammar(grammar):
            return ParseError(f"no tree-sitter grammar for {grammar}")
        try:
            tree = self._parsers[grammar].parse(content.encode("utf-8"))
        except Exception as exc:
            return ParseError(f"tree-sitter failed: {exc}")
        if tree.root_node.has_error:
            return ParseError("source contains syntax errors")
        return ParseOk(walk_javascript_tree(tree.root_node))

    def _extract_javascript(self, content: str, extension: str) -> Extraction:
        grammar = self._GRAMMAR_BY_EXTENSION.get(extension, "javascript")
        result = self.parse_javascript(content, grammar)
        if isinstance(result, ParseOk):
            return result.extraction
        logger.debug("Regex fallback (%s)", result.reason)
        return extract_javascript_regex(content)

    # ------------------------------------------------------------------
    # File-level parsing
    # ------------------------------------------------------------------

    def parse_file(self, entry: FileEntry) -> Optional[GraphNode]:
        """Build a node for *entry*, or None when it has no usable content."""
        content = entry.content
        if not content:
            logger.debug("Skipping %s: no content", entry.path)
            return None
        size = entry.size if entry.size is not None else len(content.encode("utf-8"))
        if size > self.max_file_size:
            logger.debug("Skipping %s: too large (%d bytes)", entry.path, size)
            return None

        path = normalize_path(entry.path)
        filename = entry.name or posixpath.basename(path)
        language = detect_language(filename)
        ex = self._extractors[language](content, file_extension(filename))

        node = GraphNode(
            id=node_id_for(path),
            name=component_name(filename, path),
            type=infer_node_type(path, content, language),
            file_path=path,
            language=language,
            lines_of_code=count_lines_of_code(content),
            complexity=calculate_complexity(content, language),
            start_line=1,
            end_line=len(content.split("\n")),
            imports=ex.imports,
            exports=ex.exports,
            metadata=NodeMetadata(
                is_entry=ex.is_entry,
                is_async=ex.is_async,
                has_error_handling=ex.has_error_handling,
                patterns=detect_patterns(content),
            ),
        )
        logger.debug(
            "Parsed %s as %s (%s, %d imports)",
            path, node.id, language.value, len(node.imports),
        )
        return node
