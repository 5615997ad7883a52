"""Aggregate metrics over a built dependency graph.

Dead code, structural pattern buckets, summary statistics and the overall
health score.
"""

import logging
from collections.abc import Callable

from codescope.models.analysis import (
    AnalysisResult,
    AnalysisStats,
    Connection,
    FileRecord,
    HealthScore,
    Pattern,
    PatternFile,
)
from codescope.utils.numbers import round_half_up

logger = logging.getLogger(__name__)

PATTERN_ORDER = ("Singleton", "Factory", "Observer", "Provider", "Hook", "Component")

PATTERN_ICONS = {"Component": "🧩", "Hook": "🪝"}
DEFAULT_PATTERN_ICON = "🏗️"


def _is_singleton(record: FileRecord, lowered: str) -> bool:
    return "static getinstance" in lowered or "static instance" in lowered


def _is_factory(record: FileRecord, lowered: str) -> bool:
    return "createinstance" in lowered or "factory." in lowered


def _is_observer(record: FileRecord, lowered: str) -> bool:
    return "subscribe(" in lowered or "notify(" in lowered


def _is_provider(record: FileRecord, lowered: str) -> bool:
    return "provider" in lowered and ("context" in lowered or "state" in lowered)


def _is_hook(record: FileRecord, lowered: str) -> bool:
    rooted = "/" + record.path
    return record.name.startswith("use") and ("/hooks/" in rooted or "/use-" in rooted)


def _is_component(record: FileRecord, lowered: str) -> bool:
    directories = record.path.split("/")[:-1]
    exported = "export function" in lowered or "export const" in lowered
    if "components" not in directories and not exported:
        return False
    return "return (" in lowered or "return <" in lowered


PATTERN_CHECKS: dict[str, Callable[[FileRecord, str], bool]] = {
    "Singleton": _is_singleton,
    "Factory": _is_factory,
    "Observer": _is_observer,
    "Provider": _is_provider,
    "Hook": _is_hook,
    "Component": _is_component,
}


def _line_count(record: FileRecord) -> int:
    if record.content is None:
        return 0
    return record.content.count("\n") + 1


class MetricsEngine:
    """Derives dead code, patterns and statistics from analyzed files."""

    def mark_dead(self, files: list[FileRecord]) -> int:
        """Flag top-level functions with no recorded calls.

        Nested functions are never dead.

        Returns:
            Number of dead functions
        """
        dead = 0
        for record in files:
            for fn in record.functions or []:
                fn.is_dead = fn.is_top_level and fn.total_calls == 0
                if fn.is_dead:
                    dead += 1
        return dead

    def detect_patterns(self, files: list[FileRecord]) -> list[Pattern]:
        """Classify files into the fixed pattern buckets.

        A file can land in several buckets. Empty buckets are left out and
        the rest keep the fixed bucket order.
        """
        buckets: dict[str, list[FileRecord]] = {name: [] for name in PATTERN_ORDER}
        for record in files:
            if not record.content:
                continue
            lowered = record.content.lower()
            for name in PATTERN_ORDER:
                if PATTERN_CHECKS[name](record, lowered):
                    buckets[name].append(record)

        patterns: list[Pattern] = []
        for name in PATTERN_ORDER:
            matched = buckets[name]
            if not matched:
                continue
            patterns.append(
                Pattern(
                    name=name,
                    icon=PATTERN_ICONS.get(name, DEFAULT_PATTERN_ICON),
                    desc=f"Detected {len(matched)} instances of the {name} pattern.",
                    files=[
                        PatternFile(
                            name=record.name,
                            path=record.path,
                            fns=len(record.functions or []),
                            lines=_line_count(record),
                        )
                        for record in matched
                    ],
                )
            )
        return patterns

    def compute_stats(
        self,
        files: list[FileRecord],
        connections: list[Connection],
        dead: int,
    ) -> AnalysisStats:
        code_files = sum(1 for f in files if f.is_code)
        complexity_total = sum(f.complexity.score for f in files if f.complexity is not None)
        return AnalysisStats(
            files=len(files),
            code_files=code_files,
            functions=sum(len(f.functions or []) for f in files),
            dead=dead,
            connections=len(connections),
            avg_complexity=int(round_half_up(complexity_total / max(code_files, 1))),
            total_lines=sum(_line_count(f) for f in files),
        )


def calc_health(result: AnalysisResult | None) -> HealthScore:
    """Score repository health from 0 to 100.

    Penalties: dead-code share (up to 20), average connections per file
    above 3 (up to 15), high-severity security findings (5 each, up to 20).
    """
    if result is None:
        return HealthScore(score=0, grade="F")

    stats = result.stats
    score = 100.0

    dead_pct = (stats.dead / stats.functions) * 100 if stats.functions > 0 else 0.0
    score -= min(20.0, dead_pct)

    coupling = stats.connections / stats.files if stats.files > 0 else 0.0
    score -= min(15.0, max(0.0, coupling - 3) * 2)

    high = sum(1 for issue in result.security_issues if issue.severity == "high")
    score -= min(20, high * 5)

    final = max(0, int(round_half_up(score)))

    if final >= 90:
        grade = "A"
    elif final >= 80:
        grade = "B"
    elif final >= 70:
        grade = "C"
    elif final >= 60:
        grade = "D"
    else:
        grade = "F"
    return HealthScore(score=final, grade=grade)
