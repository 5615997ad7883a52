"""codescope - static dependency analysis for GitHub repositories.

Fetches a repository's source files, extracts functions, variables,
imports, complexity and security smells per file, links them into a
file-level dependency graph and derives dead code, pattern, blast radius
and health metrics. The result serializes to a JSON snapshot for
visualization front-ends.
"""

__version__ = "0.1.0"
__author__ = "codescope contributors"
