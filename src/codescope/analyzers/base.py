"""Language strategy interface for source extraction.

Each language family provides one strategy, selected by file extension:
1. ``try_structured`` walks a real syntax tree and raises
   StructuredParseError when that is not possible for the input
2. ``fallback_regex`` extracts the same facts line by line and is used
   whenever the structured path fails
3. ``find_calls_structured`` / ``extract_imports`` cover call sites and
   literal import targets for the family

Adding a language MUST NOT require changes outside its strategy and the
registry in ``source_parser``.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from codescope.models.analysis import CallSite, FunctionDef, VariableDef

SNIPPET_FALLBACK_LINES = 10

_REGEX_VARIABLE = re.compile(r"^[ \t]*(const|let|var)\s+([A-Za-z_$][\w$]*)", re.MULTILINE)


class StructuredParseError(Exception):
    """Raised when the structured (syntax tree) path cannot handle a file."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"Structured parse failed for {path}: {message}")


@dataclass
class CallInfo:
    """Calls to one function name found in one file."""

    total_calls: int = 0
    call_sites: list[CallSite] = field(default_factory=list)

    def add(self, line: int, caller: str | None = None) -> None:
        self.total_calls += 1
        self.call_sites.append(CallSite(line=line, caller=caller))


@dataclass
class ExtractedSymbols:
    """Functions and variables extracted from a single file."""

    functions: list[FunctionDef] = field(default_factory=list)
    variables: list[VariableDef] = field(default_factory=list)


def extract_snippet(lines: list[str], start_line: int, end_line: int | None = None) -> str:
    """Return source lines from ``start_line`` through ``end_line`` (1-based).

    Without an end line the snippet runs ten lines past the declaration.
    """
    start = max(0, start_line - 1)
    end = min(len(lines), end_line if end_line is not None else start_line + SNIPPET_FALLBACK_LINES)
    return "\n".join(lines[start:end])


def line_of_offset(content: str, offset: int) -> int:
    """Convert a character offset to a 1-based line number."""
    return content.count("\n", 0, offset) + 1


class LanguageStrategy(ABC):
    """Extraction strategy for one language family.

    Attributes:
        name: Language family identifier (e.g. "javascript", "python")
        extensions: Lower-case file extensions handled by this strategy
    """

    name: str = "generic"
    extensions: tuple[str, ...] = ()

    def handles(self, path: str) -> bool:
        lowered = path.lower()
        return any(lowered.endswith(ext) for ext in self.extensions)

    def try_structured(self, content: str, path: str) -> ExtractedSymbols:
        """Extract symbols from a syntax tree.

        Raises:
            StructuredParseError: No structured parser exists or the input is invalid
        """
        raise StructuredParseError(path, f"no structured parser for {self.name}")

    @abstractmethod
    def fallback_regex(self, content: str, path: str) -> ExtractedSymbols:
        """Extract symbols with regular expressions."""

    def find_calls_structured(
        self, content: str, path: str, known_names: frozenset[str] | set[str]
    ) -> dict[str, CallInfo]:
        """Find call sites from a syntax tree.

        Raises:
            StructuredParseError: No structured parser exists or the input is invalid
        """
        raise StructuredParseError(path, f"no structured call finder for {self.name}")

    def extract_imports(self, content: str) -> list[str]:
        """Return literal import targets in first-seen order."""
        return []

    def extract_variables_regex(self, content: str, path: str) -> list[VariableDef]:
        """Line-based const/let/var declarations."""
        variables: list[VariableDef] = []
        for match in _REGEX_VARIABLE.finditer(content):
            variables.append(
                VariableDef(
                    name=match.group(2),
                    file=path,
                    line=line_of_offset(content, match.start(1)),
                    kind=match.group(1),
                    is_top_level=True,
                )
            )
        return variables
