"""codescope analyzers - static analysis over fetched repository files.

Analyzers run in dependency order:
- SourceParser: per-file functions, variables, imports, complexity and
  security findings (tree-sitter for JavaScript/TypeScript, regex elsewhere)
- CallResolver: call sites of known function names
- GraphBuilder: import and call edges between files
- MetricsEngine: dead code, patterns and summary statistics
- calc_blast_radius: transitive impact of changing one file
"""

from codescope.analyzers.base import CallInfo, LanguageStrategy, StructuredParseError
from codescope.analyzers.blast_radius import calc_blast_radius
from codescope.analyzers.call_resolver import CallResolver
from codescope.analyzers.graph_builder import GraphBuilder, ResolutionContext, SymbolTable
from codescope.analyzers.metrics import MetricsEngine, calc_health
from codescope.analyzers.source_parser import ParsedSource, SourceParser, is_code

__all__ = [
    "CallInfo",
    "CallResolver",
    "GraphBuilder",
    "LanguageStrategy",
    "MetricsEngine",
    "ParsedSource",
    "ResolutionContext",
    "SourceParser",
    "StructuredParseError",
    "SymbolTable",
    "calc_blast_radius",
    "calc_health",
    "is_code",
]
