"""Report aggregation and rendering.

Provides:
- ReportAggregator: Fold scan outcomes into a Report with a verdict
- Report and its parts (ScanRun, Invocation, Notification, Rule, Result)
- SarifRenderer: SARIF 2.1.0 interchange document
- SummaryRenderer: Markdown summary via Jinja2 templates
- export_html / render_html: HTML export from markdown
"""

from .aggregator import AggregationError, ReportAggregator
from .models import Invocation, Notification, OutcomeState, Report, Result, Rule, ScanRun
from .sarif import SarifRenderer
from .summary import SummaryRenderer
from .export import export_html, render_html

__all__ = [
    "AggregationError",
    "ReportAggregator",
    "Invocation",
    "Notification",
    "OutcomeState",
    "Report",
    "Result",
    "Rule",
    "ScanRun",
    "SarifRenderer",
    "SummaryRenderer",
    "export_html",
    "render_html",
]
