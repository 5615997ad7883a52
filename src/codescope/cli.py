"""codescope CLI interface.

Commands:
- analyze: Analyze a GitHub repository and write a snapshot
- blast: Blast radius of one file from a snapshot
- health: Health score from a snapshot
- check: Report parser availability and API budget
- init: Initialize codescope configuration

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log output
- --version: Show version and exit
"""

import asyncio
import json
from dataclasses import replace
from pathlib import Path
from typing import Annotated

import typer

from codescope import __version__
from codescope.config import (
    VALID_OUTPUT_FORMATS,
    CodescopeConfig,
    create_default_config,
    load_config,
)
from codescope.models import AnalysisResult
from codescope.utils.logging import configure_from_cli, get_logger

# Create Typer app
app = typer.Typer(
    name="codescope",
    help="Static dependency and complexity analysis for GitHub repositories",
    add_completion=False,
    no_args_is_help=True,
)

# Global state
_config: CodescopeConfig | None = None
_logger = get_logger()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"codescope {__version__}")
        raise typer.Exit()


def _get_config() -> CodescopeConfig:
    return _config or CodescopeConfig()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON output",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """codescope - repository dependency analysis.

    Maps functions, imports and calls across a GitHub repository and
    reports dead code, patterns, security smells and blast radius.
    """
    global _config

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except Exception as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1)


# =============================================================================
# analyze command
# =============================================================================


def _on_progress(phase: str, path: str | None) -> None:
    if path is None:
        _logger.info(f"Phase: {phase}")
    else:
        _logger.debug(f"{phase}: {path}")


@app.command()
def analyze(
    repo: Annotated[
        str,
        typer.Argument(help="Repository as owner/repo or a github.com URL"),
    ],
    token: Annotated[
        str | None,
        typer.Option(
            "--token",
            "-t",
            help="GitHub token (overrides config and GITHUB_TOKEN)",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output file path (overrides config)",
        ),
    ] = None,
    format: Annotated[
        str | None,
        typer.Option(
            "--format",
            "-f",
            help="Output format: json, csv",
        ),
    ] = None,
) -> None:
    """Analyze a GitHub repository.

    Exit codes:
        0: Analysis completed
        1: Repository could not be analyzed
        2: Completed, but some files could not be fetched or parsed
    """
    from codescope.analyzers.metrics import calc_health
    from codescope.github.client import GitHubError, RateLimitExceededError
    from codescope.models import InvalidRepositoryError
    from codescope.pipeline import analyze_repository
    from codescope.renderers import export_csv, export_snapshot

    config = _get_config()
    output_format = format or config.output.format
    if output_format not in VALID_OUTPUT_FORMATS:
        _logger.error(f"Invalid format: {output_format}. Use one of: {', '.join(sorted(VALID_OUTPUT_FORMATS))}")
        raise typer.Exit(1)

    output_path = output or Path(config.output.path)
    if output is None and output_format == "csv" and output_path.suffix == ".json":
        output_path = output_path.with_suffix(".csv")

    if token:
        config = replace(config, github=replace(config.github, token=token))

    _logger.info(f"Analyzing repository: {repo}")
    try:
        result = asyncio.run(analyze_repository(repo, on_progress=_on_progress, config=config))
    except InvalidRepositoryError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except RateLimitExceededError as e:
        _logger.error(f"GitHub rate limit exceeded: {e.message}")
        _logger.info("Set GITHUB_TOKEN or pass --token to raise the limit to 5000 requests/hour")
        raise typer.Exit(1)
    except GitHubError as e:
        _logger.error(f"GitHub request failed: {e.message}")
        raise typer.Exit(1)

    if output_format == "csv":
        written = export_csv(result, output_path)
    else:
        written = export_snapshot(result, output_path)

    stats = result.stats
    health = calc_health(result)
    typer.echo(f"\n📊 {result.repository}")
    typer.echo(f"   Files:        {stats.files} ({stats.code_files} code)")
    typer.echo(f"   Functions:    {stats.functions} ({stats.dead} dead)")
    typer.echo(f"   Connections:  {stats.connections}")
    typer.echo(f"   Complexity:   {stats.avg_complexity} avg")
    typer.echo(f"   Security:     {len(result.security_issues)} issue(s)")
    typer.echo(f"   Health:       {health.score}/100 ({health.grade})")
    typer.echo(f"\n📄 Written to: {written}")

    if result.has_errors():
        _logger.warning(f"Encountered {len(result.errors)} error(s)")
        for error in result.errors:
            _logger.warning(f"  [{error.component}] {error.file_path}: {error.message}")
        raise typer.Exit(2)
    raise typer.Exit(0)


# =============================================================================
# snapshot commands
# =============================================================================


def _load_snapshot(snapshot: Path) -> AnalysisResult:
    from codescope.renderers import SnapshotValidationError, import_snapshot

    try:
        return import_snapshot(snapshot)
    except SnapshotValidationError as e:
        _logger.error(f"Invalid snapshot {snapshot}: {e}")
        raise typer.Exit(1)


@app.command()
def blast(
    snapshot: Annotated[
        Path,
        typer.Argument(
            help="Snapshot written by 'codescope analyze'",
            exists=True,
            dir_okay=False,
        ),
    ],
    file: Annotated[
        str,
        typer.Argument(help="Repository path of the changed file"),
    ],
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results as JSON",
        ),
    ] = False,
) -> None:
    """Show which files are affected by changing FILE."""
    from codescope.analyzers.blast_radius import calc_blast_radius

    result = _load_snapshot(snapshot)
    if result.get_file(file) is None:
        _logger.error(f"File not found in snapshot: {file}")
        raise typer.Exit(1)

    radius = calc_blast_radius(
        file, result.connections, result.files, max_depth=_get_config().analysis.blast_depth
    )

    if json_output:
        typer.echo(json.dumps(radius.to_dict(), indent=2))
        raise typer.Exit(0)

    typer.echo(f"\n💥 Blast radius for {file}: {radius.level.upper()}\n")
    typer.echo(f"  Direct dependents:  {radius.count} ({radius.percent}% of connected files)")
    typer.echo(f"  Transitive reach:   {radius.transitive_count} (depth {radius.depth})")
    typer.echo(f"  Functions used:     {radius.fns_used} ({radius.total_calls} calls)")
    typer.echo(f"  Impact score:       {radius.impact_score}")
    for path in radius.transitive:
        typer.echo(f"     {'  ' * (radius.depths[path] - 1)}└─ {path}")
    raise typer.Exit(0)


@app.command()
def health(
    snapshot: Annotated[
        Path,
        typer.Argument(
            help="Snapshot written by 'codescope analyze'",
            exists=True,
            dir_okay=False,
        ),
    ],
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results as JSON",
        ),
    ] = False,
) -> None:
    """Show the health score of an analyzed repository."""
    from codescope.analyzers.metrics import calc_health

    score = calc_health(_load_snapshot(snapshot))
    if json_output:
        typer.echo(json.dumps(score.to_dict(), indent=2))
    else:
        typer.echo(f"🩺 Health: {score.score}/100 (grade {score.grade})")
    raise typer.Exit(0)


# =============================================================================
# check command
# =============================================================================


@app.command()
def check(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results as JSON",
        ),
    ] = False,
) -> None:
    """Report parser availability and the GitHub API budget.

    Exit codes:
        0: Everything available
        2: tree-sitter unavailable (regex extraction only)
    """
    from codescope.analyzers.source_parser import SourceParser
    from codescope.github.client import GitHubClient, RateLimit

    config = _get_config()
    structured = SourceParser().structured_available()

    async def fetch_budget() -> RateLimit:
        async with GitHubClient(config.github, ignore_dirs=config.analysis.ignore_dirs) as client:
            return await client.refresh_rate_limit()

    budget = asyncio.run(fetch_budget())
    has_token = bool(config.github.token)

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "tree_sitter": structured,
                    "token": has_token,
                    "rate_limit": {
                        "remaining": budget.remaining,
                        "limit": budget.limit,
                        "reset": budget.reset,
                    },
                },
                indent=2,
            )
        )
    else:
        typer.echo("\n🔍 Environment Check\n")
        typer.echo(f"  {'✅' if structured else '⚠️ '} tree-sitter JavaScript/TypeScript parser")
        if not structured:
            typer.echo("     └─ regex extraction will be used for every file")
        typer.echo(f"  {'✅' if has_token else '⚠️ '} GitHub token")
        typer.echo(f"     └─ {budget.remaining}/{budget.limit} requests remaining")
        typer.echo()

    raise typer.Exit(0 if structured else 2)


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite existing config",
        ),
    ] = False,
) -> None:
    """Initialize codescope configuration in .codescope/config.yaml."""
    config_dir = Path(".codescope")
    config_file = config_dir / "config.yaml"

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_dir.mkdir(exist_ok=True)
    config_file.write_text(create_default_config(), encoding="utf-8")
    _logger.info(f"Created config: {config_file}")

    typer.echo("\n✅ codescope configuration initialized")
    typer.echo(f"   Config: {config_file}")
    raise typer.Exit(0)


if __name__ == "__main__":
    app()
