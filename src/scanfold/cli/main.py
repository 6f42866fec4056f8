"""AsyncClick CLI for folding scanner outcomes into a report.

Provides user-facing commands:
- report: Aggregate ScanOutcome JSON files into a report
- run: Run the scanners of a manifest concurrently and report

Both commands exit 0 when the verdict passes and 1 when it fails.
"""

import json
from pathlib import Path

import asyncclick as click
import structlog
from pydantic import ValidationError

from scanfold.core.config import load_config
from scanfold.core.outcome import ScanOutcome
from scanfold.core.reporting import (
    Report,
    ReportAggregator,
    SarifRenderer,
    SummaryRenderer,
    render_html,
)
from scanfold.tools import ScannerCommand, run_scanners

logger = structlog.get_logger()

FORMATS = ["sarif", "markdown", "html"]

# Exit code for unreadable input files
EXIT_BAD_INPUT = 2


def render_report(report: Report, fmt: str) -> str:
    if fmt == "sarif":
        return SarifRenderer().to_json(report)
    summary = SummaryRenderer().render(report)
    if fmt == "html":
        return render_html(summary, title=f"Security Scan Report: {report.project_name}")
    return summary


def emit(ctx, report: Report, fmt: str, output: str | None) -> None:
    """Write or print the rendered report, then exit with the verdict."""
    rendered = render_report(report, fmt)
    if output:
        Path(output).write_text(rendered, encoding="utf-8")
        click.echo(f"[+] Report written to {output}", err=True)
    else:
        click.echo(rendered)

    verdict = "PASSED" if report.passed else "FAILED"
    click.echo(f"[*] Verdict: {verdict}", err=True)
    ctx.exit(0 if report.passed else 1)


@click.group()
@click.pass_context
async def cli(ctx):
    """scanfold - fold security scanner output into one verdict"""
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config()
    except ValidationError as e:
        click.echo(f"[-] Invalid configuration: {e}", err=True)
        ctx.exit(EXIT_BAD_INPUT)


@cli.command()
@click.argument("outcome_files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--format", "-f", "fmt", type=click.Choice(FORMATS), default=None,
              help="Output format (default: SCANFOLD_REPORT_FORMAT or sarif)")
@click.option("--output", "-o", default=None, help="Write report to file instead of stdout")
@click.option("--project", "-p", default=None, help="Project name shown in the report")
@click.pass_context
async def report(ctx, outcome_files: tuple[str, ...], fmt: str | None, output: str | None,
                 project: str | None):
    """Aggregate ScanOutcome JSON files into a report.

    Examples:
        scanfold report npm.json brakeman.json
        scanfold report outcomes/*.json -f markdown -o report.md
    """
    config = ctx.obj["config"]
    aggregator = ReportAggregator(project_name=project or config.project_name)

    for path in outcome_files:
        try:
            outcome = ScanOutcome.from_json(Path(path).read_bytes())
        except (OSError, ValidationError) as e:
            click.echo(f"[-] Could not read outcome {path}: {e}", err=True)
            ctx.exit(EXIT_BAD_INPUT)
        aggregator.add_outcome(outcome)

    emit(ctx, aggregator.build(), fmt or config.report_format, output)


@cli.command()
@click.argument("manifest", type=click.Path(exists=True, dir_okay=False))
@click.option("--format", "-f", "fmt", type=click.Choice(FORMATS), default=None,
              help="Output format (default: SCANFOLD_REPORT_FORMAT or sarif)")
@click.option("--output", "-o", default=None, help="Write report to file instead of stdout")
@click.option("--timeout", "-t", type=int, default=None, help="Per-scanner timeout in seconds")
@click.pass_context
async def run(ctx, manifest: str, fmt: str | None, output: str | None, timeout: int | None):
    """Run the scanners listed in a JSON manifest and report.

    The manifest is {"project": "...", "scanners": [ScannerCommand, ...]}.

    Examples:
        scanfold run scanners.json
        scanfold run scanners.json -f html -o report.html
    """
    config = ctx.obj["config"]
    try:
        data = json.loads(Path(manifest).read_text(encoding="utf-8"))
        scanners = [ScannerCommand.model_validate(entry) for entry in data.get("scanners") or []]
    except (OSError, ValueError, AttributeError, TypeError) as e:
        click.echo(f"[-] Could not read manifest {manifest}: {e}", err=True)
        ctx.exit(EXIT_BAD_INPUT)

    if not scanners:
        click.echo(f"[-] Manifest {manifest} lists no scanners", err=True)
        ctx.exit(EXIT_BAD_INPUT)

    click.echo(f"[*] Running {len(scanners)} scanner(s)", err=True)
    aggregator = ReportAggregator(project_name=data.get("project") or config.project_name)
    report_obj = await run_scanners(
        scanners,
        aggregator,
        timeout=timeout or config.scanner_timeout,
        max_concurrent=config.max_concurrent_scanners,
    )
    emit(ctx, report_obj, fmt or config.report_format, output)
