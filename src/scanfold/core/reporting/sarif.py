"""SARIF 2.1.0 rendering of a built Report.

One SARIF run per scanner outcome. Every run lists the report-wide rule
catalog so that a result's ruleIndex (its catalog position) resolves in the
run that contains it.
"""

import json
from typing import Any

from scanfold import __version__
from scanfold.core.issue import Issue

from .models import Notification, Report, Result, Rule, ScanRun

SARIF_VERSION = "2.1.0"
SARIF_SCHEMA = "https://json.schemastore.org/sarif-2.1.0.json"


class SarifRenderer:
    """Serialize a Report into a SARIF log.

    Rendering only reads the Report, so one renderer (or many) can render the
    same report concurrently.
    """

    def render(self, report: Report) -> dict[str, Any]:
        rules = [self._rule(rule) for rule in report.rules]
        return {
            "version": SARIF_VERSION,
            "$schema": SARIF_SCHEMA,
            "runs": [self._run(run, rules) for run in report.runs],
            "properties": {
                "projectName": report.project_name,
                "passed": report.passed,
                "generator": f"scanfold {__version__}",
            },
        }

    def to_json(self, report: Report, indent: int | None = 2) -> str:
        return json.dumps(self.render(report), indent=indent)

    def _run(self, run: ScanRun, rules: list[dict]) -> dict[str, Any]:
        driver: dict[str, Any] = {
            "name": run.scanner_name,
            "version": run.scanner_version,
            "rules": rules,
        }
        if run.help_uri:
            driver["informationUri"] = run.help_uri
        return {
            "tool": {"driver": driver},
            "results": [self._result(result) for result in run.results],
            "invocations": [
                {
                    "executionSuccessful": run.invocation.execution_successful,
                    "toolExecutionNotifications": [
                        self._notification(n) for n in run.invocation.notifications
                    ],
                }
            ],
            "properties": {"required": run.required, "state": run.state.value},
        }

    def _rule(self, rule: Rule) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "id": rule.id,
            "name": rule.name,
            "fullDescription": {"text": rule.full_description},
        }
        if rule.help_uri:
            entry["helpUri"] = rule.help_uri
        return entry

    def _result(self, result: Result) -> dict[str, Any]:
        issue = result.issue
        entry: dict[str, Any] = {
            "ruleId": issue.id,
            "ruleIndex": result.rule_index,
            "level": result.level,
            "message": {"text": self._message(issue)},
            "locations": [self._location(issue)],
            "properties": {"messageFields": dict(issue.message_fields)},
        }
        if issue.suppressed:
            entry["suppressions"] = [{"kind": "external"}]
        return entry

    def _message(self, issue: Issue) -> str:
        if issue.details:
            return f"{issue.title}: {issue.details}" if issue.title else issue.details
        return issue.title or issue.id

    def _location(self, issue: Issue) -> dict[str, Any]:
        location = issue.location
        region: dict[str, Any] = {}
        if location.start_line is not None:
            region["startLine"] = location.start_line
        if location.start_column is not None:
            region["startColumn"] = location.start_column
        if location.snippet is not None:
            region["snippet"] = {"text": location.snippet}

        physical: dict[str, Any] = {"artifactLocation": {"uri": location.uri}}
        if region:
            physical["region"] = region
        return {"physicalLocation": physical}

    def _notification(self, notification: Notification) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "descriptor": {"id": notification.id},
            "level": notification.level.value,
            "message": {"text": notification.message},
        }
        if notification.suppressed:
            entry["properties"] = {"suppressed": True}
        return entry
