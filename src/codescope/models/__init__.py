"""codescope data models.

This module exports the core entities used throughout the application:
- RepositoryRef: Remote repository being analyzed
- FileRecord, FunctionDef, VariableDef: Per-file facts
- Connection: Dependency graph edge
- AnalysisResult: Aggregated analysis data
- AnalysisError: Non-fatal errors encountered during analysis
"""

from codescope.models.analysis import (
    IMPORT_EDGE,
    AnalysisError,
    AnalysisResult,
    AnalysisStats,
    BlastRadius,
    CallSite,
    Complexity,
    Connection,
    FileRecord,
    FunctionDef,
    HealthScore,
    Pattern,
    PatternFile,
    SecurityIssue,
    VariableDef,
)
from codescope.models.repository import InvalidRepositoryError, RepositoryRef

__all__ = [
    "IMPORT_EDGE",
    "AnalysisError",
    "AnalysisResult",
    "AnalysisStats",
    "BlastRadius",
    "CallSite",
    "Complexity",
    "Connection",
    "FileRecord",
    "FunctionDef",
    "HealthScore",
    "InvalidRepositoryError",
    "Pattern",
    "PatternFile",
    "RepositoryRef",
    "SecurityIssue",
    "VariableDef",
]
