"""Markdown summary of a Report, rendered with Jinja2 templates.

A human-readable view over the same Report the SARIF renderer consumes:
verdict, per-scanner invocation table, findings grouped by severity, and
execution notifications. Suppressed findings are listed separately so
accepted exceptions stay visible.
"""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from scanfold.core.issue import Issue, Severity

from .models import Report

SEVERITY_ORDER = (Severity.ERROR, Severity.WARNING, Severity.NOTE)


class SummaryRenderer:
    """Render a Report as a markdown summary."""

    def __init__(self, template_dir: str | None = None):
        """Initialize with a Jinja2 template directory.

        Args:
            template_dir: Path to template directory (defaults to ./templates/)
        """
        if template_dir is None:
            template_dir = str(Path(__file__).parent / "templates")
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.globals["format_location"] = self._format_location

    def render(self, report: Report) -> str:
        findings_by_severity: dict[str, list[tuple[str, Issue]]] = {
            severity.value: [] for severity in SEVERITY_ORDER
        }
        suppressed: list[tuple[str, Issue]] = []
        for run in report.runs:
            for issue in run.issues:
                if issue.suppressed:
                    suppressed.append((run.scanner_name, issue))
                else:
                    findings_by_severity[issue.severity.value].append((run.scanner_name, issue))

        context = {
            "report": report,
            "findings_by_severity": findings_by_severity,
            "suppressed": suppressed,
            "metadata": {
                "scanners": len(report.runs),
                "failed_required": sum(
                    1 for run in report.runs
                    if run.required and not run.invocation.execution_successful
                ),
                "total_findings": sum(len(items) for items in findings_by_severity.values()),
                "suppressed_count": len(suppressed),
            },
        }
        template = self.env.get_template("summary.md.j2")
        return template.render(**context)

    def _format_location(self, issue: Issue) -> str:
        location = issue.location
        if not location.uri:
            return "-"
        if location.start_line is None:
            return f"`{location.uri}`"
        return f"`{location.uri}:{location.start_line}`"
