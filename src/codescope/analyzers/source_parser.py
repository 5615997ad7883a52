"""Per-file fact extraction.

Selects a language strategy by extension, runs the structured path with a
regex fallback, and adds the language-independent facts (complexity,
security findings, variable usages). Pure: no I/O, never raises.
"""

import logging
import re
from dataclasses import dataclass, field

from codescope.analyzers.base import LanguageStrategy, StructuredParseError
from codescope.analyzers.javascript import JavaScriptStrategy
from codescope.analyzers.regex_fallback import (
    CStrategy,
    GenericStrategy,
    GoStrategy,
    JavaStrategy,
    PhpStrategy,
    PythonStrategy,
    RubyStrategy,
    RustStrategy,
)
from codescope.models.analysis import Complexity, FunctionDef, SecurityIssue, VariableDef

logger = logging.getLogger(__name__)

CODE_EXTENSIONS: tuple[str, ...] = (
    ".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs",
    ".py", ".java", ".go", ".rb", ".php",
    ".vue", ".svelte", ".rs", ".c", ".cpp", ".cc", ".h", ".hpp",
    ".cs", ".swift", ".kt", ".kts", ".scala", ".clj",
    ".ex", ".exs", ".erl", ".hs", ".lua", ".r",
    ".jl", ".dart", ".elm", ".fs", ".fsx", ".ml",
    ".pl", ".pm", ".sh", ".bash", ".zsh", ".fish",
    ".ps1", ".psm1", ".groovy", ".gradle",
)  # fmt: skip

BINARY_EXTENSIONS: tuple[str, ...] = (
    ".png", ".jpg", ".jpeg", ".gif", ".ico", ".webp", ".bmp",
    ".woff", ".woff2", ".ttf", ".eot", ".otf",
    ".pdf", ".zip", ".tar", ".gz", ".rar", ".7z",
    ".exe", ".dll", ".so", ".dylib", ".bin", ".dat",
    ".db", ".sqlite", ".mp3", ".mp4", ".wav", ".avi", ".mov", ".webm",
)  # fmt: skip


def is_code(name: str) -> bool:
    """Extension-based source file classification."""
    return name.lower().endswith(CODE_EXTENSIONS)


def is_binary(name: str) -> bool:
    return name.lower().endswith(BINARY_EXTENSIONS)


# =============================================================================
# Complexity
# =============================================================================

COMPLEXITY_PATTERNS = (
    re.compile(r"\bif\s*\("),
    re.compile(r"\belse\s+if\s*\("),
    re.compile(r"\bwhile\s*\("),
    re.compile(r"\bfor\s*\("),
    re.compile(r"\bcase\s+"),
    re.compile(r"\bcatch\s*\("),
    re.compile(r"\?\s*[^:]+\s*:"),
    re.compile(r"&&"),
    re.compile(r"\|\|"),
)


def calc_complexity(content: str) -> int:
    """Cyclomatic-style score: 1 plus every branch token found.

    ``else if (`` is counted by both the ``if`` and ``else if`` patterns.
    Empty content scores 0.
    """
    if not content:
        return 0
    return 1 + sum(len(pattern.findall(content)) for pattern in COMPLEXITY_PATTERNS)


# =============================================================================
# Security heuristics
# =============================================================================


@dataclass(frozen=True)
class SecurityRule:
    title: str
    severity: str
    pattern: re.Pattern[str]
    desc: str
    exempt_markers: tuple[str, ...] = ()

    def matches(self, line: str) -> bool:
        if not self.pattern.search(line):
            return False
        return not any(marker in line for marker in self.exempt_markers)


SECURITY_RULES: tuple[SecurityRule, ...] = (
    SecurityRule(
        title="Hardcoded Secret",
        severity="high",
        pattern=re.compile(
            r"(?:password|passwd|pwd|secret|api_key|apikey|token|auth)\s*[=:]\s*['\"][^'\"]{8,}['\"]",
            re.IGNORECASE,
        ),
        desc="Potential hardcoded credential detected.",
        exempt_markers=("process.env", "os.environ", "os.getenv", "config."),
    ),
    SecurityRule(
        title="SQL Injection Risk",
        severity="high",
        pattern=re.compile(r".*(query|execute|SELECT|INSERT|UPDATE|DELETE).*(\+|\$\{).*", re.IGNORECASE),
        desc="Potential SQL injection via string concatenation.",
    ),
    SecurityRule(
        title="XSS Risk",
        severity="medium",
        pattern=re.compile(r"dangerouslySetInnerHTML"),
        desc="Usage of dangerouslySetInnerHTML can lead to XSS.",
    ),
    SecurityRule(
        title="Dynamic Code Execution",
        severity="high",
        pattern=re.compile(r"eval\(|new Function\("),
        desc="Use of eval() or new Function() is dangerous.",
    ),
)


def detect_security(content: str, path: str) -> list[SecurityIssue]:
    """Run every rule against every line; one issue per rule and line."""
    issues: list[SecurityIssue] = []
    for index, line in enumerate(content.split("\n"), 1):
        for rule in SECURITY_RULES:
            if rule.matches(line):
                issues.append(
                    SecurityIssue(
                        severity=rule.severity,
                        title=rule.title,
                        file=path,
                        line=index,
                        desc=rule.desc,
                        code=line.strip(),
                    )
                )
    return issues


# =============================================================================
# Variable usages
# =============================================================================


def find_variable_usages(content: str, variable: VariableDef) -> tuple[int, list[int]]:
    """Count ``\\bname\\b`` occurrences outside the declaration.

    Skips the declaration line and any line that re-declares the name with
    const/let/var. Not scope aware, so shadowed names over-count.

    Returns:
        (total occurrences, lines with at least one occurrence)
    """
    if not variable.name:
        return 0, []

    escaped = re.escape(variable.name)
    usage = re.compile(rf"(?<![\w$]){escaped}(?![\w$])")
    redeclaration = re.compile(rf"\b(?:const|let|var)\s+{escaped}(?![\w$])")

    total = 0
    lines: list[int] = []
    for index, line in enumerate(content.split("\n"), 1):
        if index == variable.line or redeclaration.search(line):
            continue
        count = len(usage.findall(line))
        if count:
            total += count
            lines.append(index)
    return total, lines


def apply_variable_usages(content: str, variables: list[VariableDef]) -> None:
    for variable in variables:
        variable.total_usages, variable.usage_lines = find_variable_usages(content, variable)


# =============================================================================
# Parser
# =============================================================================


@dataclass
class ParsedSource:
    """Facts extracted from one file.

    Attributes:
        language: Strategy family that handled the file
        strategy: "structured", "regex", or "none" when extraction failed
        success: False when both paths failed; all facts are then empty
        error: Failure description when success is False
    """

    functions: list[FunctionDef] = field(default_factory=list)
    variables: list[VariableDef] = field(default_factory=list)
    complexity: Complexity | None = None
    imports: list[str] = field(default_factory=list)
    security_issues: list[SecurityIssue] = field(default_factory=list)
    language: str = "generic"
    strategy: str = "none"
    success: bool = True
    error: str | None = None


def default_strategies() -> list[LanguageStrategy]:
    return [
        JavaScriptStrategy(),
        PythonStrategy(),
        GoStrategy(),
        JavaStrategy(),
        RustStrategy(),
        RubyStrategy(),
        PhpStrategy(),
        CStrategy(),
    ]


class SourceParser:
    """Language-dispatching fact extractor.

    Strategies are tried in registration order; the first that handles the
    file's extension wins, and ``GenericStrategy`` covers everything else.
    """

    def __init__(self, strategies: list[LanguageStrategy] | None = None) -> None:
        self.strategies = strategies if strategies is not None else default_strategies()
        self.generic = GenericStrategy()

    def strategy_for(self, path: str) -> LanguageStrategy:
        for strategy in self.strategies:
            if strategy.handles(path):
                return strategy
        return self.generic

    def structured_available(self) -> bool:
        """Whether a tree parser could be loaded for any strategy."""
        for strategy in self.strategies:
            check = getattr(strategy, "check_available", None)
            if check is not None and check():
                return True
        return False

    def parse(self, content: str, path: str) -> ParsedSource:
        """Extract all per-file facts.

        Args:
            content: Decoded file text
            path: Repository-relative path, used for language detection

        Returns:
            ParsedSource; ``success`` is False if extraction failed outright
        """
        strategy = self.strategy_for(path)
        try:
            try:
                symbols = strategy.try_structured(content, path)
                mode = "structured"
            except Exception as e:
                reason = e.message if isinstance(e, StructuredParseError) else f"Structured extraction failed: {e!r}"
                logger.debug(f"{reason} ({path}); using regex fallback")
                symbols = strategy.fallback_regex(content, path)
                mode = "regex"

            apply_variable_usages(content, symbols.variables)
            return ParsedSource(
                functions=symbols.functions,
                variables=symbols.variables,
                complexity=Complexity.from_score(calc_complexity(content)),
                imports=strategy.extract_imports(content),
                security_issues=detect_security(content, path),
                language=strategy.name,
                strategy=mode,
            )
        except Exception as e:
            logger.warning(f"Failed to parse {path}: {e}")
            return ParsedSource(
                language=strategy.name,
                strategy="none",
                success=False,
                error=str(e),
            )
