"""Call site discovery for known function names.

Name-based and not scope aware: a call to ``render`` is attributed to every
definition named ``render`` by the graph builder.
"""

import logging
import re

from codescope.analyzers.base import CallInfo, StructuredParseError
from codescope.analyzers.source_parser import SourceParser

logger = logging.getLogger(__name__)


class CallResolver:
    """Finds calls to known function names in one file."""

    def __init__(self, parser: SourceParser | None = None) -> None:
        self.parser = parser or SourceParser()

    def find_calls(
        self, content: str, path: str, known_names: frozenset[str] | set[str]
    ) -> dict[str, CallInfo]:
        """Map each called known name to its call sites in ``content``.

        Uses the language's tree walk when it has one, otherwise a per-name
        line scan.
        """
        if not content or not known_names:
            return {}

        strategy = self.parser.strategy_for(path)
        try:
            return strategy.find_calls_structured(content, path, known_names)
        except Exception as e:
            reason = e.message if isinstance(e, StructuredParseError) else f"Structured call walk failed: {e!r}"
            logger.debug(f"{reason} ({path}); scanning calls line by line")
        return find_calls_regex(content, known_names)


def find_calls_regex(content: str, known_names: frozenset[str] | set[str]) -> dict[str, CallInfo]:
    """Line-scoped ``name(`` matches; the name's own declaration lines are skipped.

    No caller context is recorded on this path.
    """
    lines = content.split("\n")
    calls: dict[str, CallInfo] = {}

    for name in sorted(known_names):
        if name not in content:
            continue
        escaped = re.escape(name)
        call = re.compile(rf"\b{escaped}\s*\(")
        declaration = re.compile(
            rf"(?:function|def|fn|func)\s+{escaped}\s*\(|(?:const|let|var)\s+{escaped}\s*="
        )

        for index, line in enumerate(lines, 1):
            hits = len(call.findall(line))
            if not hits or declaration.search(line):
                continue
            info = calls.setdefault(name, CallInfo())
            for _ in range(hits):
                info.add(index)
    return calls
