"""Dependency graph construction.

Two passes over the parsed files:
1. ``SymbolTable.from_files`` registers every function definition by name
2. ``GraphBuilder.build`` resolves imports and calls against that table,
   accumulating edges in a ``ResolutionContext``

Files are always visited in sorted path order and every edge update is
lookup-or-insert on ``(source, target, fn)``, so the output does not depend
on the order files were fetched in.
"""

import logging
import posixpath
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from codescope.analyzers.base import CallInfo
from codescope.analyzers.call_resolver import CallResolver
from codescope.models.analysis import IMPORT_EDGE, CallSite, Connection, FileRecord, FunctionDef

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, str | None], None]

# Module aliases that point at the repository (or src/) root
ALIAS_PREFIXES = ("@/", "~/")

INDEX_STEMS = ("index", "__init__")


@dataclass(frozen=True)
class SymbolTable:
    """Global function registry built in the first pass.

    Attributes:
        definitions: Function name to every definition with that name
        known_names: All defined names, for call discovery
    """

    definitions: dict[str, tuple[FunctionDef, ...]]
    known_names: frozenset[str]

    @classmethod
    def from_files(cls, files: Iterable[FileRecord]) -> "SymbolTable":
        collected: dict[str, list[FunctionDef]] = {}
        for record in sorted(files, key=lambda f: f.path):
            for fn in record.functions or []:
                collected.setdefault(fn.name, []).append(fn)
        definitions = {name: tuple(defs) for name, defs in collected.items()}
        return cls(definitions=definitions, known_names=frozenset(definitions))

    def lookup(self, name: str) -> tuple[FunctionDef, ...]:
        return self.definitions.get(name, ())


@dataclass
class ResolutionContext:
    """Edge index for one build, keyed by ``(source, target, fn)``."""

    edges: dict[tuple[str, str, str], Connection] = field(default_factory=dict)

    def add_import(self, source: str, target: str) -> None:
        key = (source, target, IMPORT_EDGE)
        if key not in self.edges:
            self.edges[key] = Connection(source=source, target=target, fn=IMPORT_EDGE, count=1)

    def add_calls(self, definer: str, caller: str, fn: str, info: CallInfo) -> None:
        lines = [site.line for site in info.call_sites]
        key = (definer, caller, fn)
        existing = self.edges.get(key)
        if existing is None:
            self.edges[key] = Connection(
                source=definer, target=caller, fn=fn, count=info.total_calls, lines=lines
            )
        else:
            existing.count += info.total_calls
            existing.lines.extend(lines)

    def connections(self) -> list[Connection]:
        return list(self.edges.values())


def _strip_extension(path: str) -> str:
    return posixpath.splitext(path)[0]


class PathIndex:
    """Resolves raw import strings to repository paths.

    Candidates are scanned in sorted path order and the first match wins.
    """

    def __init__(self, paths: Iterable[str]) -> None:
        self.paths = sorted(paths)
        self.stems = [_strip_extension(p) for p in self.paths]

    def resolve(self, raw_import: str, importer: str) -> str | None:
        imp = raw_import.strip()
        if not imp:
            return None

        folder = posixpath.dirname(importer)

        if imp.startswith(("./", "../")):
            joined = posixpath.normpath(posixpath.join(folder, imp))
            return None if joined.startswith("..") else self._find_exact(joined)

        if imp.startswith("."):
            # Python relative module: one dot is the importer's package
            dots = len(imp) - len(imp.lstrip("."))
            base = folder
            for _ in range(dots - 1):
                base = posixpath.dirname(base)
            rest = imp[dots:].replace(".", "/")
            return self._find_exact(posixpath.join(base, rest) if rest else base)

        for prefix in ALIAS_PREFIXES:
            if imp.startswith(prefix):
                imp = imp[len(prefix) :]
                break

        candidates = [imp]
        if "/" not in imp and "." in imp:
            candidates.append(imp.replace(".", "/"))

        for path, stem in zip(self.paths, self.stems, strict=True):
            if any(self._suffix_match(path, stem, c) for c in candidates):
                return path
        return None

    def _find_exact(self, target: str) -> str | None:
        wanted = {target} | {f"{target}/{index}" for index in INDEX_STEMS}
        for path, stem in zip(self.paths, self.stems, strict=True):
            if path == target or stem in wanted:
                return path
        return None

    @staticmethod
    def _suffix_match(path: str, stem: str, imp: str) -> bool:
        for candidate in (path, stem):
            if candidate == imp or candidate.endswith("/" + imp):
                return True
        return any(stem == f"{imp}/{index}" or stem.endswith(f"/{imp}/{index}") for index in INDEX_STEMS)


class GraphBuilder:
    """Builds import and call edges across all analyzed files."""

    def __init__(self, resolver: CallResolver | None = None) -> None:
        self.resolver = resolver or CallResolver()

    def build(
        self,
        files: list[FileRecord],
        on_progress: ProgressCallback | None = None,
    ) -> list[Connection]:
        """Resolve every analyzed file's imports and calls into connections.

        Resets each function's call aggregation first, then backfills
        ``call_sites`` and ``total_calls`` for every matched definition.
        Same-file calls update the definition but create no edge.

        Args:
            files: All file records; only analyzed ones contribute edges
            on_progress: Optional (phase, path) callback

        Returns:
            Connections in deterministic order
        """
        analyzed = sorted((f for f in files if f.is_analyzed), key=lambda f: f.path)
        for record in analyzed:
            for fn in record.functions or []:
                fn.reset_calls()

        symbols = SymbolTable.from_files(analyzed)
        index = PathIndex(f.path for f in files)
        context = ResolutionContext()

        for record in analyzed:
            if on_progress:
                on_progress("building", record.path)

            for raw_import in record.raw_imports or []:
                target = index.resolve(raw_import, record.path)
                if target is not None and target != record.path:
                    context.add_import(record.path, target)

            calls = self.resolver.find_calls(record.content or "", record.path, symbols.known_names)
            for name in sorted(calls):
                info = calls[name]
                for definition in symbols.lookup(name):
                    definition.call_sites.extend(
                        CallSite(line=site.line, caller=site.caller, file=record.path)
                        for site in info.call_sites
                    )
                    definition.total_calls += info.total_calls
                    if definition.file != record.path:
                        context.add_calls(definition.file, record.path, name, info)

        connections = context.connections()
        logger.info(f"Built dependency graph with {len(connections)} connections across {len(analyzed)} files")
        return connections
