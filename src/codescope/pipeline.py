"""Analysis pipeline orchestrator.

Coordinates the repository client and the analyzers:
1. List the repository tree
2. Fetch and parse code files with bounded concurrency
3. Resolve imports and calls into the dependency graph
4. Derive dead code, patterns and statistics

Per-file failures are recorded on the result and never stop the run;
failures to list the repository propagate to the caller.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace

from codescope.analyzers.call_resolver import CallResolver
from codescope.analyzers.graph_builder import GraphBuilder
from codescope.analyzers.metrics import MetricsEngine
from codescope.analyzers.source_parser import ParsedSource, SourceParser
from codescope.config import CodescopeConfig
from codescope.github.client import GitHubClient, RepositoryClient
from codescope.models import AnalysisError, AnalysisResult, FileRecord, RepositoryRef

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, str | None], None]

PHASES = (
    "scanning",
    "fetching",
    "parsing",
    "analyzing",
    "security",
    "building",
    "patterns",
    "brushing",
    "complete",
)


@dataclass
class PipelineOptions:
    """Per-run overrides of the analysis configuration.

    Attributes:
        concurrency: Maximum in-flight file fetches
        max_file_size: Files above this many bytes are not fetched
    """

    concurrency: int | None = None
    max_file_size: int | None = None


class AnalysisPipeline:
    """Runs a full repository analysis against a RepositoryClient.

    The pipeline sequence:
    1. scanning: list files
    2. fetching / parsing / analyzing / security: per code file
    3. building: dependency graph
    4. patterns / brushing: metrics and result assembly
    """

    def __init__(
        self,
        client: RepositoryClient,
        config: CodescopeConfig | None = None,
        parser: SourceParser | None = None,
    ) -> None:
        self.client = client
        self.config = config or CodescopeConfig()
        self.parser = parser or SourceParser()
        self.graph_builder = GraphBuilder(CallResolver(self.parser))
        self.metrics = MetricsEngine()

    async def run(
        self,
        repo: str | RepositoryRef,
        options: PipelineOptions | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> AnalysisResult:
        """Analyze a repository.

        Args:
            repo: Repository identifier or parsed reference
            options: Per-run overrides
            on_progress: Optional (phase, path) callback

        Returns:
            AnalysisResult with per-file errors collected in ``errors``

        Raises:
            InvalidRepositoryError: Malformed repository identifier
            GitHubError: The repository tree could not be listed
        """
        ref = repo if isinstance(repo, RepositoryRef) else RepositoryRef.parse(repo)
        options = options or PipelineOptions()
        concurrency = options.concurrency or self.config.analysis.concurrency
        max_file_size = options.max_file_size or self.config.analysis.max_file_size

        def notify(phase: str, path: str | None = None) -> None:
            if on_progress:
                on_progress(phase, path)

        logger.info("Starting analysis of %s", ref)
        notify("scanning")
        files = await self.client.list_files(ref.owner, ref.repo)

        targets = [f for f in files if f.is_code and f.size <= max_file_size]
        skipped = sum(1 for f in files if f.is_code and f.size > max_file_size)
        if skipped:
            logger.info("Skipping %d code files larger than %d bytes", skipped, max_file_size)

        errors: list[AnalysisError] = []
        semaphore = asyncio.Semaphore(concurrency)
        await asyncio.gather(
            *(self._analyze_file(ref, record, semaphore, errors, notify) for record in targets)
        )

        result = self.build_result(files, on_progress)
        for error in sorted(errors, key=lambda e: (e.file_path or "", e.component)):
            result.add_error(error)
        result.repository = ref.full_name

        notify("complete")
        logger.info(
            "Analysis complete: %d files, %d connections (%d errors)",
            result.stats.files,
            result.stats.connections,
            len(result.errors),
        )
        return result

    async def _analyze_file(
        self,
        ref: RepositoryRef,
        record: FileRecord,
        semaphore: asyncio.Semaphore,
        errors: list[AnalysisError],
        notify: Callable[[str, str | None], None],
    ) -> None:
        async with semaphore:
            try:
                notify("fetching", record.path)
                content = await self.client.get_file_content(ref.owner, ref.repo, record.path)
                if content is None:
                    self._fail(record, errors, "fetch", "File content unavailable")
                    return

                notify("parsing", record.path)
                parsed = self.parser.parse(content, record.path)
                if not parsed.success:
                    self._fail(record, errors, "parser", parsed.error or "Parse failed")
                    return

                notify("analyzing", record.path)
                apply_parsed(record, content, parsed)
                notify("security", record.path)
            except Exception as e:
                self._fail(record, errors, "pipeline", f"Analysis failed: {e}")

    @staticmethod
    def _fail(record: FileRecord, errors: list[AnalysisError], component: str, message: str) -> None:
        record.clear_analysis()
        errors.append(AnalysisError(component=component, message=message, file_path=record.path))
        logger.warning("Failed to analyze %s: %s", record.path, message)

    def build_result(
        self,
        files: list[FileRecord],
        on_progress: ProgressCallback | None = None,
    ) -> AnalysisResult:
        """Link already-parsed files into a finished result.

        Safe to call repeatedly on the same records; call aggregation is
        reset on every build.
        """
        files = sorted(files, key=lambda f: f.path)

        if on_progress:
            on_progress("building", None)
        connections = self.graph_builder.build(files, on_progress)
        dead = self.metrics.mark_dead(files)

        if on_progress:
            on_progress("patterns", None)
        patterns = self.metrics.detect_patterns(files)
        security_issues = [issue for f in files for issue in (f.security_issues or [])]

        if on_progress:
            on_progress("brushing", None)
        return AnalysisResult(
            files=files,
            connections=connections,
            stats=self.metrics.compute_stats(files, connections, dead),
            patterns=patterns,
            security_issues=security_issues,
        )


def apply_parsed(record: FileRecord, content: str, parsed: ParsedSource) -> None:
    """Copy parse facts onto a file record."""
    record.content = content
    record.line_count = content.count("\n") + 1
    record.functions = parsed.functions
    record.variables = parsed.variables
    record.complexity = parsed.complexity
    record.raw_imports = parsed.imports
    record.security_issues = parsed.security_issues


async def analyze_repository(
    repo_url: str,
    token: str | None = None,
    on_progress: ProgressCallback | None = None,
    config: CodescopeConfig | None = None,
) -> AnalysisResult:
    """Analyze a GitHub repository with a short-lived client.

    Args:
        repo_url: ``owner/repo`` or a github.com URL
        token: Personal access token, overrides the configured one
        on_progress: Optional (phase, path) callback
        config: Configuration (defaults if None)
    """
    config = config or CodescopeConfig()
    ref = RepositoryRef.parse(repo_url)
    github_config = replace(config.github, token=token) if token else config.github

    async with GitHubClient(github_config, ignore_dirs=config.analysis.ignore_dirs) as client:
        pipeline = AnalysisPipeline(client, config)
        return await pipeline.run(ref, on_progress=on_progress)
