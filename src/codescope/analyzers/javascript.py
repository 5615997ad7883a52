"""JavaScript/TypeScript extraction via tree-sitter.

TypeScript sources first have type-only syntax stripped so the JavaScript
grammar can read them; if that still leaves syntax errors the native
TypeScript grammar gets a second try. A tree with ERROR nodes is treated as
a failed parse and the caller falls back to regular expressions.
"""

import logging
import re
from typing import Any

from codescope.analyzers.base import (
    CallInfo,
    ExtractedSymbols,
    StructuredParseError,
    extract_snippet,
)
from codescope.analyzers.regex_fallback import JavaScriptRegexStrategy
from codescope.models.analysis import FunctionDef, VariableDef

logger = logging.getLogger(__name__)

TYPESCRIPT_EXTENSIONS = (".ts", ".tsx")

# Nodes that open a new function scope
FUNCTION_SCOPE_TYPES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
        "method_definition",
    }
)

# Function nodes that can appear as a declarator's value
FUNCTION_VALUE_TYPES = frozenset({"function_expression", "function", "generator_function", "arrow_function"})

NAMED_FUNCTION_TYPES = frozenset({"function_declaration", "generator_function_declaration"})

DECLARATION_TYPES = frozenset({"lexical_declaration", "variable_declaration"})

VALUE_TYPES: dict[str, str] = {
    "string": "string",
    "template_string": "string",
    "number": "number",
    "true": "boolean",
    "false": "boolean",
    "null": "object",
    "regex": "object",
    "array": "array",
    "object": "object",
    "arrow_function": "function",
    "function_expression": "function",
    "function": "function",
    "generator_function": "function",
    "call_expression": "call",
    "new_expression": "instance",
}

# =============================================================================
# TypeScript stripping
# =============================================================================


def _blank(match: re.Match[str]) -> str:
    """Drop matched text but keep its line breaks so line numbers survive."""
    return "\n" * match.group(0).count("\n")


_TS_INTERFACE = re.compile(
    r"^[ \t]*(?:export\s+)?(?:declare\s+)?interface\s+[A-Za-z_$][\w$]*"
    r"(?:\s*<[^>{]*>)?(?:\s+extends\s+[^{]+)?\s*\{[^}]*\}",
    re.MULTILINE,
)
_TS_TYPE_ALIAS = re.compile(
    r"^[ \t]*(?:export\s+)?(?:declare\s+)?type\s+[A-Za-z_$][\w$]*(?:\s*<[^>=]*>)?\s*=\s*[^;]+;",
    re.MULTILINE,
)
_TS_TYPE_IMPORT_EXPORT = re.compile(r"^[ \t]*(?:import|export)\s+type\s+.*$", re.MULTILINE)
_TS_MODIFIERS = re.compile(r"\b(?:public|private|protected|readonly)\s+(?=[A-Za-z_$#])")
_TS_OPTIONAL_MARKER = re.compile(r"([\w$])\?(?=\s*:)")
_TS_RETURN_TYPE = re.compile(r"\)\s*:\s*[A-Za-z_$][\w$<>,\s|&\[\].]*?(?=\s*\{)")
_TS_ANNOTATION = re.compile(r":\s*[A-Za-z_$][\w$<>,\s|&\[\]]*(?=\s*[=,)}\];])")
_TS_AS_CAST = re.compile(r"\bas\s+[A-Za-z_$][\w$<>,\s|&\[\]]*(?=\s*[,)}\];])")
_TS_GENERIC_CALL = re.compile(r"<[A-Za-z_$][\w$<>,\s|&\[\]]*>(?=\s*\()")


def strip_typescript(content: str) -> str:
    """Best-effort removal of type-only syntax.

    Removes interface blocks, type aliases, ``import type``/``export type``
    lines, access modifiers, optional markers, return types, annotations,
    ``as`` casts and generic call arguments. Line breaks inside removed
    text are kept.
    """
    content = _TS_INTERFACE.sub(_blank, content)
    content = _TS_TYPE_ALIAS.sub(_blank, content)
    content = _TS_TYPE_IMPORT_EXPORT.sub(_blank, content)
    content = _TS_MODIFIERS.sub("", content)
    content = _TS_OPTIONAL_MARKER.sub(r"\1", content)
    content = _TS_RETURN_TYPE.sub(lambda m: ")" + _blank(m), content)
    content = _TS_ANNOTATION.sub(_blank, content)
    content = _TS_AS_CAST.sub(_blank, content)
    content = _TS_GENERIC_CALL.sub(_blank, content)
    return content


# =============================================================================
# Node helpers
# =============================================================================


def _text(node: Any, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _line(node: Any) -> int:
    return node.start_point[0] + 1


def _end_line(node: Any) -> int:
    return node.end_point[0] + 1


def param_to_string(node: Any, source: bytes) -> str:
    """Render one formal parameter.

    Defaults become ``name=?``, rest parameters ``...name`` and
    destructuring patterns ``{...}`` / ``[...]``.
    """
    if node is None:
        return "unknown"
    node_type = node.type
    if node_type == "identifier":
        return _text(node, source)
    if node_type == "assignment_pattern":
        return f"{param_to_string(node.child_by_field_name('left'), source)}=?"
    if node_type == "rest_pattern":
        inner = node.named_children[0] if node.named_children else None
        return f"...{param_to_string(inner, source)}"
    if node_type == "object_pattern":
        return "{...}"
    if node_type == "array_pattern":
        return "[...]"
    if node_type in ("required_parameter", "optional_parameter"):
        rendered = param_to_string(node.child_by_field_name("pattern"), source)
        if node.child_by_field_name("value") is not None:
            rendered += "=?"
        return rendered
    return "param"


def function_params(fn_node: Any, source: bytes) -> list[str]:
    params_node = fn_node.child_by_field_name("parameters")
    if params_node is None:
        single = fn_node.child_by_field_name("parameter")
        return [param_to_string(single, source)] if single is not None else []
    return [param_to_string(p, source) for p in params_node.named_children if p.type != "comment"]


def function_returns_value(fn_node: Any) -> bool:
    """Whether any return statement in the function's own body yields a value.

    Expression-bodied arrow functions always return a value. Nested
    functions and classes are not searched.
    """
    body = fn_node.child_by_field_name("body")
    if body is None:
        return False
    if fn_node.type == "arrow_function" and body.type != "statement_block":
        return True

    stack = list(body.named_children)
    while stack:
        node = stack.pop()
        if node.type == "return_statement":
            if any(child.type != "comment" for child in node.named_children):
                return True
            continue
        if node.type in FUNCTION_SCOPE_TYPES or node.type in ("class_declaration", "class"):
            continue
        stack.extend(node.named_children)
    return False


def _declaration_kind(node: Any) -> str:
    if node.type == "variable_declaration":
        return "var"
    first = node.children[0].type if node.children else ""
    return first if first in ("const", "let") else "unknown"


def _callee_name(callee: Any, source: bytes) -> str | None:
    if callee is None:
        return None
    if callee.type == "identifier":
        return _text(callee, source)
    if callee.type == "member_expression":
        prop = callee.child_by_field_name("property")
        if prop is not None:
            return _text(prop, source).lstrip("#")
        return None
    if callee.type == "subscript_expression":
        index = callee.child_by_field_name("index")
        if index is not None and index.type == "string":
            return _text(index, source)[1:-1]
    return None


class TreeSitterUnavailableError(Exception):
    """Raised when tree-sitter or its language pack cannot be loaded."""

    def __init__(self, message: str | None = None) -> None:
        self.message = message or "tree-sitter is not available"
        super().__init__(self.message)


class GrammarUnavailableError(Exception):
    """Raised when one grammar cannot be loaded from the language pack."""

    def __init__(self, grammar: str, message: str) -> None:
        self.grammar = grammar
        self.message = message
        super().__init__(message)


class JavaScriptStrategy(JavaScriptRegexStrategy):
    """Structured JavaScript/TypeScript extraction with regex fallback."""

    def __init__(self) -> None:
        self._parsers: dict[str, Any] = {}
        self._init_error: str | None = None
        self._grammar_errors: dict[str, str] = {}

    def _get_parser(self, grammar: str) -> Any:
        """Return a cached tree-sitter parser for ``grammar``.

        Raises:
            TreeSitterUnavailableError: If the language pack cannot be imported
            GrammarUnavailableError: If this grammar failed to load, now or earlier
        """
        if grammar in self._parsers:
            return self._parsers[grammar]
        if self._init_error:
            raise TreeSitterUnavailableError(self._init_error)
        if grammar in self._grammar_errors:
            raise GrammarUnavailableError(grammar, self._grammar_errors[grammar])

        try:
            from tree_sitter_language_pack import get_parser
        except ImportError as e:
            self._init_error = f"tree-sitter-language-pack not installed: {e}"
            logger.warning("%s; falling back to regex extraction", self._init_error)
            raise TreeSitterUnavailableError(self._init_error) from e

        try:
            parser = get_parser(grammar)
        except Exception as e:
            self._grammar_errors[grammar] = f"grammar {grammar} unavailable: {e}"
            logger.warning("%s; it will not be retried", self._grammar_errors[grammar])
            raise GrammarUnavailableError(grammar, self._grammar_errors[grammar]) from e
        self._parsers[grammar] = parser
        logger.debug("Initialized tree-sitter parser for %s", grammar)
        return parser

    def check_available(self) -> bool:
        """Check that the JavaScript grammar can be loaded."""
        try:
            self._get_parser("javascript")
            return True
        except (TreeSitterUnavailableError, GrammarUnavailableError):
            return False

    def _parse(self, content: str, path: str) -> tuple[bytes, Any]:
        """Parse ``content`` into (source bytes, root node).

        Raises:
            StructuredParseError: If no grammar yields an error-free tree
        """
        lowered = path.lower()
        if lowered.endswith(TYPESCRIPT_EXTENSIONS):
            native = "tsx" if lowered.endswith(".tsx") else "typescript"
            candidates = [("javascript", strip_typescript(content)), (native, content)]
        else:
            candidates = [("javascript", content)]

        last_error = "no grammar attempted"
        for grammar, text in candidates:
            try:
                parser = self._get_parser(grammar)
            except TreeSitterUnavailableError as e:
                raise StructuredParseError(path, e.message) from e
            except GrammarUnavailableError as e:
                last_error = e.message
                continue

            source = text.encode("utf-8")
            tree = parser.parse(source)
            if tree.root_node.has_error:
                last_error = f"syntax errors with {grammar} grammar"
                continue
            return source, tree.root_node

        raise StructuredParseError(path, last_error)

    def try_structured(self, content: str, path: str) -> ExtractedSymbols:
        source, root = self._parse(content, path)
        lines = content.split("\n")
        functions: list[FunctionDef] = []
        variables: list[VariableDef] = []

        def visit(node: Any, scope: int) -> None:
            node_type = node.type

            if node_type in NAMED_FUNCTION_TYPES:
                name_node = node.child_by_field_name("name")
                if name_node is not None:
                    functions.append(
                        FunctionDef(
                            name=_text(name_node, source),
                            file=path,
                            line=_line(node),
                            code=extract_snippet(lines, _line(node), _end_line(node)),
                            type="function",
                            is_top_level=scope == 0,
                            params=function_params(node, source),
                            returns_value=function_returns_value(node),
                        )
                    )

            elif node_type in DECLARATION_TYPES:
                kind = _declaration_kind(node)
                for declarator in node.named_children:
                    if declarator.type != "variable_declarator":
                        continue
                    name_node = declarator.child_by_field_name("name")
                    if name_node is None or name_node.type != "identifier":
                        continue
                    name = _text(name_node, source)
                    value = declarator.child_by_field_name("value")

                    if value is not None and value.type in FUNCTION_VALUE_TYPES:
                        functions.append(
                            FunctionDef(
                                name=name,
                                file=path,
                                line=_line(declarator),
                                code=extract_snippet(lines, _line(declarator), _end_line(declarator)),
                                type="arrow" if value.type == "arrow_function" else "function",
                                is_top_level=scope == 0,
                                params=function_params(value, source),
                                returns_value=function_returns_value(value),
                            )
                        )

                    variables.append(
                        VariableDef(
                            name=name,
                            file=path,
                            line=_line(declarator),
                            kind=kind,
                            value_type=VALUE_TYPES.get(value.type) if value is not None else None,
                            is_top_level=scope == 0,
                        )
                    )

            elif node_type == "method_definition":
                name_node = node.child_by_field_name("name")
                if name_node is not None and name_node.type in (
                    "property_identifier",
                    "private_property_identifier",
                ):
                    functions.append(
                        FunctionDef(
                            name=_text(name_node, source).lstrip("#"),
                            file=path,
                            line=_line(node),
                            code=extract_snippet(lines, _line(node), _end_line(node)),
                            type="method",
                            is_top_level=False,
                            is_class_method=node.parent is not None and node.parent.type == "class_body",
                            params=function_params(node, source),
                            returns_value=function_returns_value(node),
                        )
                    )

            child_scope = scope + 1 if node_type in FUNCTION_SCOPE_TYPES else scope
            for child in node.named_children:
                visit(child, child_scope)

        try:
            visit(root, 0)
        except RecursionError as e:
            raise StructuredParseError(path, "syntax tree too deep") from e
        return ExtractedSymbols(functions=functions, variables=variables)

    def find_calls_structured(
        self, content: str, path: str, known_names: frozenset[str] | set[str]
    ) -> dict[str, CallInfo]:
        source, root = self._parse(content, path)
        calls: dict[str, CallInfo] = {}

        def visit(node: Any, context: str | None) -> None:
            node_type = node.type

            if node_type in NAMED_FUNCTION_TYPES or node_type == "method_definition":
                name_node = node.child_by_field_name("name")
                if name_node is not None:
                    context = _text(name_node, source).lstrip("#")
            elif node_type == "variable_declarator":
                name_node = node.child_by_field_name("name")
                value = node.child_by_field_name("value")
                if (
                    name_node is not None
                    and name_node.type == "identifier"
                    and value is not None
                    and value.type in FUNCTION_VALUE_TYPES
                ):
                    context = _text(name_node, source)
            elif node_type == "call_expression":
                name = _callee_name(node.child_by_field_name("function"), source)
                if name is not None and name in known_names:
                    calls.setdefault(name, CallInfo()).add(_line(node), context)

            for child in node.named_children:
                visit(child, context)

        try:
            visit(root, None)
        except RecursionError as e:
            raise StructuredParseError(path, "syntax tree too deep") from e
        return calls
