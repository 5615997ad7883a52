"""Regular-expression extraction for languages without a structured path.

Also used as the fallback for JavaScript/TypeScript when the syntax tree
cannot be built. Results are approximate: no parameter lists, no return
analysis, and top-level detection is based on indentation of the
declaration line.
"""

import re

from codescope.analyzers.base import (
    ExtractedSymbols,
    LanguageStrategy,
    extract_snippet,
    line_of_offset,
)
from codescope.models.analysis import FunctionDef, VariableDef

# Names that the looser patterns pick up from control-flow statements
NON_FUNCTION_NAMES = frozenset({"if", "for", "while", "switch", "catch", "return"})

_JS_IMPORT = re.compile(r"(?:import|from)\s+['\"]([^'\"]+)['\"]")
_JS_REQUIRE = re.compile(r"require\(\s*['\"]([^'\"]+)['\"]\s*\)")
_PY_IMPORT = re.compile(r"^[ \t]*(?:from|import)\s+([a-zA-Z0-9_.]+)", re.MULTILINE)
_PY_ASSIGNMENT = re.compile(r"^([A-Za-z_]\w*)[ \t]*(?::[^=\n]+)?=(?!=)[ \t]*(.*)$", re.MULTILINE)
_GO_IMPORT = re.compile(r"^[ \t]*import\s+(?:[\w.]+\s+)?[\"`]([^\"`]+)[\"`]", re.MULTILINE)
_GO_IMPORT_BLOCK = re.compile(r"^[ \t]*import\s*\(([^)]*)\)", re.MULTILINE)
_GO_QUOTED = re.compile(r"[\"`]([^\"`]+)[\"`]")


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


class RegexStrategy(LanguageStrategy):
    """Function extraction driven by a single declaration pattern.

    The pattern's first non-empty group is the function name.

    Attributes:
        pattern: Compiled declaration regex
        function_type: Type recorded for every match (function or method)
        always_top_level: Treat every match as top level (Go, C)
    """

    pattern: re.Pattern[str] | None = None
    function_type: str = "function"
    always_top_level: bool = False

    def fallback_regex(self, content: str, path: str) -> ExtractedSymbols:
        return ExtractedSymbols(
            functions=self.extract_functions_regex(content, path),
            variables=self.extract_variables_regex(content, path),
        )

    def extract_functions_regex(self, content: str, path: str) -> list[FunctionDef]:
        if self.pattern is None:
            return []

        lines = content.split("\n")
        functions: list[FunctionDef] = []
        for match in self.pattern.finditer(content):
            group_index = next((i for i, g in enumerate(match.groups(), 1) if g), None)
            if group_index is None:
                continue
            name = match.group(group_index)
            if name in NON_FUNCTION_NAMES:
                continue

            line = line_of_offset(content, match.start(group_index))
            declaration = lines[line - 1] if line <= len(lines) else ""
            is_top_level = self.always_top_level or not declaration[:1].isspace()

            functions.append(
                FunctionDef(
                    name=name,
                    file=path,
                    line=line,
                    code=extract_snippet(lines, line),
                    type=self.function_type_for(match.group(0)),
                    is_top_level=is_top_level,
                )
            )
        return functions

    def function_type_for(self, matched: str) -> str:
        return self.function_type


class PythonStrategy(RegexStrategy):
    name = "python"
    extensions = (".py",)
    pattern = re.compile(r"^[ \t]*(?:async[ \t]+)?def\s+([a-zA-Z_]\w*)\s*\(", re.MULTILINE)

    def extract_imports(self, content: str) -> list[str]:
        return _unique(_PY_IMPORT.findall(content))

    def extract_variables_regex(self, content: str, path: str) -> list[VariableDef]:
        """Module-level ``NAME = value`` assignments."""
        variables: list[VariableDef] = []
        for match in _PY_ASSIGNMENT.finditer(content):
            variables.append(
                VariableDef(
                    name=match.group(1),
                    file=path,
                    line=line_of_offset(content, match.start()),
                    kind="unknown",
                    value_type=infer_python_value_type(match.group(2)),
                    is_top_level=True,
                )
            )
        return variables


def infer_python_value_type(initializer: str) -> str | None:
    """Guess a value type from the text of a Python initializer."""
    text = initializer.strip()
    if not text:
        return None
    if text[0] in "\"'" or text[:2].lower() in ("f\"", "f'", "r\"", "r'", "b\"", "b'"):
        return "string"
    if text in ("True", "False"):
        return "boolean"
    if text == "None":
        return "undefined"
    if re.match(r"^-?\d", text):
        return "number"
    if text[0] in "[(":
        return "array"
    if text[0] == "{":
        return "object"
    if text.startswith("lambda"):
        return "function"
    call = re.match(r"^([A-Za-z_][\w.]*)\s*\(", text)
    if call:
        return "instance" if call.group(1).rsplit(".", 1)[-1][:1].isupper() else "call"
    return None


class GoStrategy(RegexStrategy):
    name = "go"
    extensions = (".go",)
    pattern = re.compile(r"^func\s+(?:\([^)]+\)\s*)?([a-zA-Z_]\w*)\s*\(", re.MULTILINE)
    always_top_level = True

    def extract_imports(self, content: str) -> list[str]:
        imports = _GO_IMPORT.findall(content)
        for block in _GO_IMPORT_BLOCK.findall(content):
            imports.extend(_GO_QUOTED.findall(block))
        return _unique(imports)


class JavaStrategy(RegexStrategy):
    """Java and C# share the modifier + return type + name declaration shape."""

    name = "java"
    extensions = (".java", ".cs")
    pattern = re.compile(
        r"(?:public|private|protected|static|\s)\s+[\w<>\[\]]+\s+([a-zA-Z_]\w*)\s*\([^)]*\)\s*\{"
    )
    function_type = "method"


class RustStrategy(RegexStrategy):
    name = "rust"
    extensions = (".rs",)
    pattern = re.compile(
        r"^[ \t]*(?:pub(?:\([^)]*\))?\s+)?(?:async\s+)?(?:unsafe\s+)?fn\s+([a-zA-Z_]\w*)",
        re.MULTILINE,
    )


class RubyStrategy(RegexStrategy):
    name = "ruby"
    extensions = (".rb",)
    pattern = re.compile(r"^[ \t]*def\s+(?:self\.)?([a-zA-Z_]\w*[?!]?)", re.MULTILINE)


class PhpStrategy(RegexStrategy):
    name = "php"
    extensions = (".php",)
    pattern = re.compile(
        r"^[ \t]*(?:(?:public|private|protected|static|abstract|final)\s+)*function\s+([a-zA-Z_]\w*)",
        re.MULTILINE,
    )


class CStrategy(RegexStrategy):
    name = "c"
    extensions = (".c", ".cc", ".cpp", ".h", ".hpp")
    pattern = re.compile(r"^[a-zA-Z_][\w:<>]*[ \t]+\**([a-zA-Z_]\w*)\s*\(", re.MULTILINE)
    function_type = "method"
    always_top_level = True


class JavaScriptRegexStrategy(RegexStrategy):
    """Heuristic JavaScript/TypeScript extraction used when tree parsing fails."""

    name = "javascript"
    extensions = (".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx")
    pattern = re.compile(
        r"(?:\bfunction\b\s*\*?\s*([a-zA-Z_$][\w$]*)\s*\("
        r"|\b(?:const|let|var)\s+([a-zA-Z_$][\w$]*)\s*=\s*(?:async\s*)?"
        r"(?:function\b|\([^)]*\)\s*=>|[a-zA-Z_$][\w$]*\s*=>))"
    )

    def function_type_for(self, matched: str) -> str:
        return "arrow" if "=>" in matched else "function"

    def extract_imports(self, content: str) -> list[str]:
        return _unique(_JS_IMPORT.findall(content) + _JS_REQUIRE.findall(content))


class GenericStrategy(RegexStrategy):
    """Any other file: only const/let/var style variables are recognized."""

    name = "generic"
    extensions = ()
