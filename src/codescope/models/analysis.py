"""Analysis result entities.

This module contains the entities produced by the analysis pipeline:
- FileRecord: One repository file, enriched with parse facts for code files
- FunctionDef / VariableDef: Per-file symbol facts
- Connection: Weighted edge in the dependency graph
- Pattern / SecurityIssue: Heuristic findings
- AnalysisResult: Root aggregate handed to presentation layers
- BlastRadius / HealthScore: Derived on demand from a finished result

Every entity serializes to the camelCase wire format via ``to_dict()`` and
is rebuilt by ``from_dict()``. Graph edges reference files by path only, so
results never contain object cycles.
"""

from dataclasses import dataclass, field
from typing import Any

IMPORT_EDGE = "import"


@dataclass
class CallSite:
    """A single place a function is called from.

    Attributes:
        line: 1-based line of the call
        caller: Innermost enclosing named function, None at module level
        file: File containing the call (set during graph building)
    """

    line: int
    caller: str | None = None
    file: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"line": self.line}
        if self.caller is not None:
            result["caller"] = self.caller
        if self.file is not None:
            result["file"] = self.file
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CallSite":
        return cls(line=data["line"], caller=data.get("caller"), file=data.get("file"))


@dataclass
class FunctionDef:
    """A function, method or named arrow function discovered in a file.

    Identity is ``(file, name, line)``; the same name may be defined in many
    files and each definition is tracked separately.

    Attributes:
        name: Function name
        file: Defining file path
        line: Declaration line
        code: Source snippet of the declaration
        type: function, arrow or method
        is_top_level: Declared with zero enclosing function scopes
        is_class_method: Declared as a class/object method
        params: Parameter names (destructuring shown as {...} / [...])
        returns_value: Whether a return statement yields a value
        call_sites: Filled in by the graph builder
        total_calls: Number of recorded call sites
        is_dead: Top-level and never called
    """

    name: str
    file: str
    line: int
    code: str = ""
    type: str = "function"
    is_top_level: bool = False
    is_class_method: bool = False
    params: list[str] = field(default_factory=list)
    returns_value: bool = False
    call_sites: list[CallSite] = field(default_factory=list)
    total_calls: int = 0
    is_dead: bool = False

    def reset_calls(self) -> None:
        """Clear the aggregation fields before a resolution pass."""
        self.call_sites = []
        self.total_calls = 0
        self.is_dead = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "file": self.file,
            "line": self.line,
            "code": self.code,
            "type": self.type,
            "isTopLevel": self.is_top_level,
            "isClassMethod": self.is_class_method,
            "params": list(self.params),
            "returnsValue": self.returns_value,
            "callSites": [site.to_dict() for site in self.call_sites],
            "totalCalls": self.total_calls,
            "isDead": self.is_dead,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FunctionDef":
        return cls(
            name=data["name"],
            file=data["file"],
            line=data["line"],
            code=data.get("code", ""),
            type=data.get("type", "function"),
            is_top_level=data.get("isTopLevel", False),
            is_class_method=data.get("isClassMethod", False),
            params=list(data.get("params", [])),
            returns_value=data.get("returnsValue", False),
            call_sites=[CallSite.from_dict(s) for s in data.get("callSites", [])],
            total_calls=data.get("totalCalls", 0),
            is_dead=data.get("isDead", False),
        )


@dataclass
class VariableDef:
    """A const/let/var (or equivalent) declaration.

    Usage counts are raw identifier matches within the file and over-count
    names that are shadowed in unrelated scopes.
    """

    name: str
    file: str
    line: int
    kind: str = "unknown"
    value_type: str | None = None
    is_top_level: bool = True
    usage_lines: list[int] = field(default_factory=list)
    total_usages: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "file": self.file,
            "line": self.line,
            "kind": self.kind,
            "valueType": self.value_type,
            "isTopLevel": self.is_top_level,
            "usageLines": list(self.usage_lines),
            "totalUsages": self.total_usages,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VariableDef":
        return cls(
            name=data["name"],
            file=data["file"],
            line=data["line"],
            kind=data.get("kind", "unknown"),
            value_type=data.get("valueType"),
            is_top_level=data.get("isTopLevel", True),
            usage_lines=list(data.get("usageLines", [])),
            total_usages=data.get("totalUsages", 0),
        )


@dataclass
class Complexity:
    """Cyclomatic-style complexity score with its level bucket."""

    score: int
    level: str = "low"

    @classmethod
    def from_score(cls, score: int) -> "Complexity":
        if score > 30:
            level = "high"
        elif score > 15:
            level = "medium"
        else:
            level = "low"
        return cls(score=score, level=level)

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score, "level": self.level}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Complexity":
        return cls(score=data["score"], level=data.get("level", "low"))


@dataclass
class SecurityIssue:
    """One heuristic security finding on a single line."""

    severity: str
    title: str
    file: str
    line: int
    desc: str
    code: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity,
            "title": self.title,
            "file": self.file,
            "line": self.line,
            "desc": self.desc,
            "code": self.code,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SecurityIssue":
        return cls(
            severity=data["severity"],
            title=data["title"],
            file=data["file"],
            line=data["line"],
            desc=data.get("desc", ""),
            code=data.get("code", ""),
        )


@dataclass
class FileRecord:
    """One repository file.

    Created with metadata only during tree listing. Code files that are
    fetched and parsed get the optional fields populated.

    Attributes:
        path: POSIX relative path (unique key)
        name: Base name
        folder: Parent folder, "root" for top-level files
        size: Size in bytes as reported by the tree listing
        is_code: Extension-based classification
    """

    path: str
    name: str
    folder: str
    size: int = 0
    is_code: bool = False
    content: str | None = None
    line_count: int | None = None
    functions: list[FunctionDef] | None = None
    variables: list[VariableDef] | None = None
    complexity: Complexity | None = None
    raw_imports: list[str] | None = None
    security_issues: list[SecurityIssue] | None = None

    @classmethod
    def from_path(cls, path: str, size: int = 0, is_code: bool = False) -> "FileRecord":
        """Build a metadata-only record from a repository path."""
        name = path.rsplit("/", 1)[-1]
        folder = path.rsplit("/", 1)[0] if "/" in path else "root"
        return cls(path=path, name=name, folder=folder, size=size, is_code=is_code)

    @property
    def is_analyzed(self) -> bool:
        return self.content is not None

    def clear_analysis(self) -> None:
        """Drop everything but the metadata."""
        self.content = None
        self.line_count = None
        self.functions = None
        self.variables = None
        self.complexity = None
        self.raw_imports = None
        self.security_issues = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "path": self.path,
            "name": self.name,
            "folder": self.folder,
            "size": self.size,
            "isCode": self.is_code,
        }
        if self.content is not None:
            result["content"] = self.content
        if self.line_count is not None:
            result["lineCount"] = self.line_count
        if self.functions is not None:
            result["functions"] = [fn.to_dict() for fn in self.functions]
        if self.variables is not None:
            result["variables"] = [var.to_dict() for var in self.variables]
        if self.complexity is not None:
            result["complexity"] = self.complexity.to_dict()
        if self.raw_imports is not None:
            result["rawImports"] = list(self.raw_imports)
        if self.security_issues is not None:
            result["securityIssues"] = [issue.to_dict() for issue in self.security_issues]
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileRecord":
        functions = data.get("functions")
        variables = data.get("variables")
        complexity = data.get("complexity")
        issues = data.get("securityIssues")
        raw_imports = data.get("rawImports")
        return cls(
            path=data["path"],
            name=data["name"],
            folder=data["folder"],
            size=data.get("size", 0),
            is_code=data.get("isCode", False),
            content=data.get("content"),
            line_count=data.get("lineCount"),
            functions=[FunctionDef.from_dict(f) for f in functions] if functions is not None else None,
            variables=[VariableDef.from_dict(v) for v in variables] if variables is not None else None,
            complexity=Complexity.from_dict(complexity) if complexity is not None else None,
            raw_imports=list(raw_imports) if raw_imports is not None else None,
            security_issues=[SecurityIssue.from_dict(i) for i in issues] if issues is not None else None,
        )


@dataclass
class Connection:
    """Directed, weighted dependency graph edge.

    ``fn == "import"`` is an import edge pointing from the importing file
    (source) to the imported file (target). Any other ``fn`` is a call edge
    pointing from the file that DEFINES ``fn`` (source) to the file that
    CALLS it (target), i.e. from definer to caller.
    """

    source: str
    target: str
    fn: str
    count: int = 1
    lines: list[int] = field(default_factory=list)

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.source, self.target, self.fn)

    @property
    def is_import(self) -> bool:
        return self.fn == IMPORT_EDGE

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "fn": self.fn,
            "count": self.count,
            "lines": list(self.lines),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Connection":
        return cls(
            source=data["source"],
            target=data["target"],
            fn=data["fn"],
            count=data.get("count", 1),
            lines=list(data.get("lines", [])),
        )


@dataclass
class PatternFile:
    """A file matched by a pattern, with a few size hints."""

    name: str
    path: str
    fns: int = 0
    lines: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "path": self.path, "fns": self.fns, "lines": self.lines}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PatternFile":
        return cls(
            name=data["name"],
            path=data["path"],
            fns=data.get("fns", 0),
            lines=data.get("lines", 0),
        )


@dataclass
class Pattern:
    """Structural classification bucket (Singleton, Factory, ...)."""

    name: str
    icon: str
    desc: str
    severity: str = "info"
    files: list[PatternFile] = field(default_factory=list)
    metrics: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "icon": self.icon,
            "desc": self.desc,
            "severity": self.severity,
            "files": [f.to_dict() for f in self.files],
            "metrics": dict(self.metrics),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Pattern":
        return cls(
            name=data["name"],
            icon=data.get("icon", ""),
            desc=data.get("desc", ""),
            severity=data.get("severity", "info"),
            files=[PatternFile.from_dict(f) for f in data.get("files", [])],
            metrics=dict(data.get("metrics", {})),
        )


@dataclass
class AnalysisStats:
    """Summary statistics over a finished analysis."""

    files: int = 0
    code_files: int = 0
    functions: int = 0
    dead: int = 0
    connections: int = 0
    avg_complexity: int = 0
    total_lines: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "files": self.files,
            "codeFiles": self.code_files,
            "functions": self.functions,
            "dead": self.dead,
            "connections": self.connections,
            "avgComplexity": self.avg_complexity,
            "totalLines": self.total_lines,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisStats":
        return cls(
            files=data.get("files", 0),
            code_files=data.get("codeFiles", 0),
            functions=data.get("functions", 0),
            dead=data.get("dead", 0),
            connections=data.get("connections", 0),
            avg_complexity=data.get("avgComplexity", 0),
            total_lines=data.get("totalLines", 0),
        )


@dataclass
class AnalysisError:
    """Non-fatal error encountered during analysis.

    Attributes:
        component: Component that failed (fetch, parser, pipeline)
        message: Error description
        file_path: File that caused the error (if applicable)
        recoverable: Whether analysis continued after this error
    """

    component: str
    message: str
    file_path: str | None = None
    recoverable: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "component": self.component,
            "message": self.message,
            "filePath": self.file_path,
            "recoverable": self.recoverable,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisError":
        return cls(
            component=data["component"],
            message=data["message"],
            file_path=data.get("filePath"),
            recoverable=data.get("recoverable", True),
        )


@dataclass
class AnalysisResult:
    """Root aggregate of one repository analysis.

    This is the only artifact handed to presentation layers.
    """

    files: list[FileRecord] = field(default_factory=list)
    connections: list[Connection] = field(default_factory=list)
    stats: AnalysisStats = field(default_factory=AnalysisStats)
    patterns: list[Pattern] = field(default_factory=list)
    security_issues: list[SecurityIssue] = field(default_factory=list)
    errors: list[AnalysisError] = field(default_factory=list)
    repository: str | None = None

    def add_error(self, error: AnalysisError) -> None:
        self.errors.append(error)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def get_file(self, path: str) -> FileRecord | None:
        for record in self.files:
            if record.path == path:
                return record
        return None

    def all_functions(self) -> list[FunctionDef]:
        return [fn for record in self.files for fn in (record.functions or [])]

    def dead_functions(self) -> list[FunctionDef]:
        return [fn for fn in self.all_functions() if fn.is_dead]

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "files": [f.to_dict() for f in self.files],
            "connections": [c.to_dict() for c in self.connections],
            "stats": self.stats.to_dict(),
            "patterns": [p.to_dict() for p in self.patterns],
            "securityIssues": [i.to_dict() for i in self.security_issues],
            "errors": [e.to_dict() for e in self.errors],
        }
        if self.repository is not None:
            result["repository"] = self.repository
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisResult":
        return cls(
            files=[FileRecord.from_dict(f) for f in data["files"]],
            connections=[Connection.from_dict(c) for c in data["connections"]],
            stats=AnalysisStats.from_dict(data["stats"]),
            patterns=[Pattern.from_dict(p) for p in data["patterns"]],
            security_issues=[SecurityIssue.from_dict(i) for i in data["securityIssues"]],
            errors=[AnalysisError.from_dict(e) for e in data.get("errors", [])],
            repository=data.get("repository"),
        )


@dataclass
class BlastRadius:
    """Transitive impact of changing one file.

    Attributes:
        affected: Direct dependents (depth 1)
        transitive: Every reached file, direct dependents included
        count: Number of direct dependents
        transitive_count: Number of reached files
        percent: Direct dependents as a share of connected files
        level: low, medium, high or critical
        depth: Deepest level reached
        fns_used: Distinct functions other files use from this file
        total_calls: Summed edge counts leaving this file
        dependencies: Files this file receives edges from
        impact_score: Direct count plus 1/depth for deeper files
        centrality: Dependents + dependencies + functions used
        depths: Shallowest depth for each reached file
    """

    affected: list[str] = field(default_factory=list)
    transitive: list[str] = field(default_factory=list)
    count: int = 0
    transitive_count: int = 0
    percent: int = 0
    level: str = "low"
    depth: int = 0
    fns_used: int = 0
    total_calls: int = 0
    dependencies: list[str] = field(default_factory=list)
    impact_score: float = 0.0
    centrality: int = 0
    depths: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "affected": list(self.affected),
            "transitive": list(self.transitive),
            "count": self.count,
            "transitiveCount": self.transitive_count,
            "percent": self.percent,
            "level": self.level,
            "depth": self.depth,
            "fnsUsed": self.fns_used,
            "totalCalls": self.total_calls,
            "dependencies": list(self.dependencies),
            "impactScore": self.impact_score,
            "centrality": self.centrality,
            "depths": dict(self.depths),
        }


@dataclass
class HealthScore:
    """Overall repository health on a 0-100 scale with a letter grade."""

    score: int
    grade: str

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score, "grade": self.grade}
