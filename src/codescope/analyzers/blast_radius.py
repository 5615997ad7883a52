"""Blast radius: which files are affected when one file changes.

The dependents of a file are the targets of its outgoing edges: files that
call functions it defines, and files it imports.
"""

from collections import deque

from codescope.models.analysis import BlastRadius, Connection, FileRecord
from codescope.utils.numbers import round_half_up

DEFAULT_MAX_DEPTH = 3


def _level(direct: int, fns_used: int) -> str:
    if direct >= 8 or fns_used >= 5:
        return "critical"
    if direct >= 4 or fns_used >= 3:
        return "high"
    if direct >= 2 or fns_used >= 1:
        return "medium"
    return "low"


def calc_blast_radius(
    file_id: str,
    connections: list[Connection],
    files: list[FileRecord],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> BlastRadius:
    """Compute direct and transitive dependents of ``file_id``.

    Breadth-first over outgoing edges up to ``max_depth`` levels. Each file
    is recorded once, at the shallowest depth it was reached. The origin is
    never part of the result, even when a cycle leads back to it.

    Args:
        file_id: Path of the changed file
        connections: Graph edges from a finished analysis
        files: All file records, for the connected-files percentage
        max_depth: Deepest level to report

    Returns:
        BlastRadius for the file (all zero for an unknown or isolated file)
    """
    exported_to: dict[str, list[str]] = {}
    imported_from: dict[str, list[str]] = {}
    exported_fns: dict[str, dict[str, int]] = {}

    for conn in connections:
        targets = exported_to.setdefault(conn.source, [])
        if conn.target not in targets:
            targets.append(conn.target)
        sources = imported_from.setdefault(conn.target, [])
        if conn.source not in sources:
            sources.append(conn.source)
        fn_counts = exported_fns.setdefault(conn.source, {})
        fn_counts[conn.fn] = fn_counts.get(conn.fn, 0) + (conn.count or 1)

    direct = [f for f in exported_to.get(file_id, []) if f != file_id]

    depths: dict[str, int] = {}
    visited = {file_id, *direct}
    queue = deque((path, 1) for path in direct)
    while queue:
        path, depth = queue.popleft()
        if depth > max_depth:
            continue
        depths[path] = depth
        for nxt in exported_to.get(path, []):
            if nxt not in visited:
                visited.add(nxt)
                queue.append((nxt, depth + 1))

    fn_usage = exported_fns.get(file_id, {})
    fns_used = len(fn_usage)
    dependencies = [f for f in imported_from.get(file_id, []) if f != file_id]

    impact = len(direct) + sum(1 / d for d in depths.values() if d > 1)

    connected = sum(1 for f in files if f.path in exported_to or f.path in imported_from)
    percent = int(round_half_up(len(direct) / connected * 100)) if connected > 0 else 0

    return BlastRadius(
        affected=direct,
        transitive=list(depths),
        count=len(direct),
        transitive_count=len(depths),
        percent=percent,
        level=_level(len(direct), fns_used),
        depth=max(depths.values(), default=0),
        fns_used=fns_used,
        total_calls=sum(fn_usage.values()),
        dependencies=dependencies,
        impact_score=float(round_half_up(impact, 1)),
        centrality=len(direct) + len(dependencies) + fns_used,
        depths=depths,
    )
