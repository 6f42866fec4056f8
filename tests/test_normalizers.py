"""Unit tests for per-scanner normalizers.

All tests use literal scanner output, no scanner binaries required.
"""

import json

import pytest

from scanfold.core.issue import Severity
from scanfold.core.outcome import ScanOutcome
from scanfold.normalizers import base as normalizer_base
from scanfold.normalizers import (
    MALFORMED_RECORD_ID,
    SCANNER_ERROR_ID,
    BanditNormalizer,
    BrakemanNormalizer,
    CargoAuditNormalizer,
    GosecNormalizer,
    IssueNormalizer,
    NPMAuditNormalizer,
    OutputParseError,
    get_normalizer,
    is_supported,
    register_normalizer,
    supported_scanners,
)


# Sample outputs

NPM_AUDIT_OUTPUT = {
    "advisories": {
        "1179": {
            "id": 1179,
            "title": "Prototype Pollution",
            "module_name": "minimist",
            "severity": "low",
            "overview": "Affected versions of minimist are vulnerable to prototype pollution.",
            "recommendation": "Upgrade to version 1.2.3 or later",
            "vulnerable_versions": "<0.2.1 || >=1.0.0 <1.2.3",
            "patched_versions": ">=0.2.1 <1.0.0 || >=1.2.3",
            "cwe": "CWE-471",
            "url": "https://npmjs.com/advisories/1179",
        },
        "1523": {
            "id": 1523,
            "title": "Prototype Pollution in lodash",
            "module_name": "lodash",
            "severity": "high",
            "overview": "Versions of lodash prior to 4.17.19 are vulnerable to Prototype Pollution.",
            "recommendation": "Upgrade to version 4.17.19 or later",
            "vulnerable_versions": "<4.17.19",
            "patched_versions": ">=4.17.19",
            "cwe": ["CWE-400", "CWE-1321"],
            "url": "https://npmjs.com/advisories/1523",
        },
    }
}

BRAKEMAN_WARNING = {
    "warning_type": "Dangerous Eval",
    "warning_code": 13,
    "fingerprint": "b16e1cd0d952433f80b0403b6a74aab0e98792ea015cc1b1fa5c003cbe7d56eb",
    "check_name": "Evaluation",
    "message": "User input in eval",
    "file": "app/controllers/static_controller_controller.rb",
    "line": 3,
    "link": "https://brakemanscanner.org/docs/warning_types/dangerous_eval/",
    "code": "eval(params[:evil])",
    "render_path": None,
    "location": {"type": "method", "class": "StaticControllerController", "method": "index"},
    "user_input": "params[:evil]",
    "confidence": "High",
}

BANDIT_OUTPUT = {
    "errors": [{"filename": "broken.py", "reason": "syntax error while parsing AST from file"}],
    "results": [
        {
            "code": "4 import subprocess\n",
            "col_offset": 0,
            "filename": "app/run.py",
            "issue_confidence": "HIGH",
            "issue_cwe": {"id": 78, "link": "https://cwe.mitre.org/data/definitions/78.html"},
            "issue_severity": "LOW",
            "issue_text": "Consider possible security implications associated with the subprocess module.",
            "line_number": 4,
            "more_info": "https://bandit.readthedocs.io/en/latest/blacklists/blacklist_imports.html#b404-import-subprocess",
            "test_id": "B404",
            "test_name": "blacklist",
        }
    ],
}

GOSEC_OUTPUT = {
    "Golang errors": {
        "/src/main.go": [{"line": 12, "column": 3, "error": "undeclared name: foo"}],
    },
    "Issues": [
        {
            "severity": "MEDIUM",
            "confidence": "HIGH",
            "cwe": {"id": "22", "url": "https://cwe.mitre.org/data/definitions/22.html"},
            "rule_id": "G304",
            "details": "Potential file inclusion via variable",
            "file": "/src/main.go",
            "code": "26: \n27: \tdata, err := ioutil.ReadFile(path)\n",
            "line": "27-28",
            "column": "15",
        }
    ],
}

CARGO_AUDIT_OUTPUT = {
    "vulnerabilities": {
        "found": True,
        "count": 1,
        "list": [
            {
                "advisory": {
                    "id": "RUSTSEC-2021-0078",
                    "package": "hyper",
                    "title": "Lenient hyper header parsing of Content-Length",
                    "description": "hyper's HTTP/1 server code had a flaw.",
                    "date": "2021-07-07",
                    "url": "https://github.com/hyperium/hyper/security/advisories/GHSA-f3pg-qwvg-p99c",
                    "cvss": "CVSS:3.1/AV:N/AC:L/PR:N/UI:N/S:U/C:N/I:H/A:N",
                },
                "versions": {"patched": [">=0.14.10"], "unaffected": []},
                "package": {"name": "hyper", "version": "0.14.9"},
            }
        ],
    }
}


def make_outcome(name: str, stdout, exceptions=(), passed=False, exit_status=1) -> ScanOutcome:
    if not isinstance(stdout, str):
        stdout = json.dumps(stdout)
    return ScanOutcome(
        scanner_name=name,
        scanner_version="1.0",
        passed=passed,
        raw_stdout=stdout,
        exit_status=exit_status,
        declared_exceptions=frozenset(exceptions),
    )


# Registry Tests


def test_registry_lookup_is_case_insensitive():
    """Test scanner names resolve regardless of case."""
    assert get_normalizer("npmaudit") is NPMAuditNormalizer
    assert get_normalizer("Brakeman") is BrakemanNormalizer
    assert is_supported("GOSEC")


def test_registry_unknown_scanner():
    """Test unknown scanners are reported as unsupported."""
    assert not is_supported("Trivy")
    with pytest.raises(KeyError):
        get_normalizer("Trivy")


def test_supported_scanners_lists_all_adapters():
    """Test every shipped adapter is registered."""
    assert {"Bandit", "Brakeman", "CargoAudit", "Gosec", "NPMAudit"} <= set(supported_scanners())


def test_register_rejects_non_normalizer():
    """Test registering a class that is not an IssueNormalizer fails."""
    with pytest.raises(TypeError):
        register_normalizer(dict)


# npm audit Tests


def test_npm_audit_parses_advisories():
    """Test npm advisories become issues with fixed message fields."""
    normalizer = NPMAuditNormalizer(make_outcome("NPMAudit", NPM_AUDIT_OUTPUT))
    issues = normalizer.normalize_all(normalizer.load_records())

    assert [issue.id for issue in issues] == ["1179", "1523"]
    low, high = issues
    assert low.severity == Severity.NOTE
    assert high.severity == Severity.ERROR
    assert high.title == "Prototype Pollution in lodash"
    assert high.details.startswith("Versions of lodash")
    assert high.location.uri == "package-lock.json"
    assert high.help_url == "https://npmjs.com/advisories/1523"
    assert list(high.message_fields) == [
        "package",
        "severity",
        "patched_versions",
        "cwe",
        "recommendation",
        "vulnerable_versions",
    ]
    assert high.message_fields["package"] == "lodash"
    assert high.message_fields["cwe"] == "CWE-400, CWE-1321"
    assert normalizer.results == 2


def test_npm_audit_absent_fields_become_empty_strings():
    """Test missing advisory fields are present as empty strings."""
    outcome = make_outcome("NPMAudit", {"advisories": {"7": {"id": 7, "severity": "moderate"}}})
    normalizer = NPMAuditNormalizer(outcome)
    [issue] = normalizer.normalize_all(normalizer.load_records())

    assert issue.severity == Severity.WARNING
    assert issue.title == ""
    assert issue.help_url is None
    assert issue.message_fields["package"] == ""
    assert issue.message_fields["recommendation"] == ""
    assert len(issue.message_fields) == 6


def test_npm_audit_without_advisories():
    """Test output lacking an advisories key yields no records."""
    normalizer = NPMAuditNormalizer(make_outcome("NPMAudit", {"metadata": {}}))
    assert normalizer.load_records() == []


def test_npm_audit_error_object():
    """Test an npm error object becomes a scanner error issue."""
    outcome = make_outcome("NPMAudit", {
        "error": {"code": "ENOLOCK", "summary": "This command requires an existing lockfile.",
                  "detail": "Try creating one first with: npm i --package-lock-only"},
    })
    normalizer = NPMAuditNormalizer(outcome)
    [issue] = normalizer.normalize_all(normalizer.load_records())

    assert issue.id == SCANNER_ERROR_ID
    assert issue.title == "NPMAudit Error"
    assert issue.severity == Severity.ERROR
    assert "requires an existing lockfile" in issue.details
    assert issue.location.uri == "package-lock.json"


# De-duplication and suppression Tests


def test_duplicate_ids_are_dropped():
    """Test a second record with a seen id returns None and is not counted."""
    advisory = NPM_AUDIT_OUTPUT["advisories"]["1523"]
    normalizer = NPMAuditNormalizer(make_outcome("NPMAudit", {}))

    first = normalizer.normalize(advisory)
    second = normalizer.normalize(dict(advisory, title="Changed title"))

    assert first is not None
    assert second is None
    assert normalizer.seen_ids == {"1523"}
    assert normalizer.results == 1


def test_suppressed_issue_is_flagged_and_not_counted():
    """Test declared exceptions mark issues suppressed without dropping them."""
    outcome = make_outcome("NPMAudit", NPM_AUDIT_OUTPUT, exceptions={"1523"})
    normalizer = NPMAuditNormalizer(outcome)
    issues = normalizer.normalize_all(normalizer.load_records())

    suppressed = {issue.id: issue.suppressed for issue in issues}
    assert suppressed == {"1179": False, "1523": True}
    assert normalizer.results == 1


def test_dedup_state_is_per_normalizer():
    """Test two normalization passes do not share seen ids."""
    advisory = NPM_AUDIT_OUTPUT["advisories"]["1179"]
    first_pass = NPMAuditNormalizer(make_outcome("NPMAudit", {}))
    second_pass = NPMAuditNormalizer(make_outcome("NPMAudit", {}))

    assert first_pass.normalize(advisory) is not None
    assert second_pass.normalize(advisory) is not None


def test_injected_severity_mapper():
    """Test a normalizer can be given its own severity table."""
    from scanfold.core.severity import SeverityMapper

    mapper = SeverityMapper({"LOW": Severity.ERROR})
    normalizer = NPMAuditNormalizer(make_outcome("NPMAudit", {}), severity_mapper=mapper)
    issue = normalizer.normalize(NPM_AUDIT_OUTPUT["advisories"]["1179"])

    assert issue.severity == Severity.ERROR
    assert NPMAuditNormalizer.severity_mapper.map("LOW") == Severity.NOTE


# Malformed input Tests


def test_malformed_record_becomes_issue():
    """Test a record that is not an object becomes a malformed-record issue."""
    normalizer = NPMAuditNormalizer(make_outcome("NPMAudit", {}))
    issue = normalizer.normalize(["not", "a", "record"])

    assert issue.id == MALFORMED_RECORD_ID
    assert issue.severity == Severity.ERROR
    assert issue.location.uri == "package-lock.json"
    assert set(issue.message_fields.values()) == {""}


def test_record_without_id_becomes_malformed_issue():
    """Test a finding without an identifier is reported, not raised."""
    normalizer = BrakemanNormalizer(make_outcome("Brakeman", {}))
    issue = normalizer.normalize({"warning_type": "SQL Injection"})

    assert issue.id == MALFORMED_RECORD_ID
    assert "no identifier" in issue.details


def test_nested_field_of_wrong_type_becomes_malformed_issue():
    """Test unexpected nested types are caught during extraction."""
    normalizer = CargoAuditNormalizer(make_outcome("CargoAudit", {}))
    issue = normalizer.normalize({"advisory": ["RUSTSEC-2021-0078"]})

    assert issue.id == MALFORMED_RECORD_ID


def test_unparseable_output_raises_parse_error():
    """Test output that is not JSON raises OutputParseError."""
    normalizer = BanditNormalizer(make_outcome("Bandit", "Traceback (most recent call last):"))
    with pytest.raises(OutputParseError):
        normalizer.load_records()


def test_non_object_output_raises_parse_error():
    """Test JSON output of the wrong shape raises OutputParseError."""
    normalizer = BanditNormalizer(make_outcome("Bandit", "[1, 2, 3]"))
    with pytest.raises(OutputParseError):
        normalizer.load_records()


@pytest.mark.parametrize("stdout", ["", "\n", "   \n\t"])
def test_blank_output_has_no_records(stdout):
    """Test empty and whitespace-only output yields no records."""
    normalizer = BrakemanNormalizer(make_outcome("Brakeman", stdout))
    assert normalizer.load_records() == []


def test_bytes_output_is_decoded():
    """Test raw bytes stdout is decoded before parsing."""
    outcome = ScanOutcome(
        scanner_name="NPMAudit",
        raw_stdout=json.dumps(NPM_AUDIT_OUTPUT).encode(),
    )
    assert len(NPMAuditNormalizer(outcome).load_records()) == 2


# Brakeman Tests


def test_brakeman_parses_warning():
    """Test a Brakeman warning maps every field."""
    normalizer = BrakemanNormalizer(make_outcome("Brakeman", {}))
    issue = normalizer.normalize(BRAKEMAN_WARNING)

    assert issue.id == "13"
    assert issue.title == "Evaluation/Dangerous Eval"
    assert issue.details == "User input in eval"
    assert issue.severity == Severity.ERROR
    assert issue.message_fields == {
        "confidence": "High",
        "title": "Evaluation",
        "type": "Dangerous Eval",
        "warning_code": "13",
        "fingerprint": "b16e1cd0d952433f80b0403b6a74aab0e98792ea015cc1b1fa5c003cbe7d56eb",
    }
    assert issue.location.uri == "app/controllers/static_controller_controller.rb"
    assert issue.location.start_line == 3
    assert issue.location.start_column == 1
    assert issue.location.snippet == "eval(params[:evil])"
    assert issue.help_url == "https://brakemanscanner.org/docs/warning_types/dangerous_eval/"


def test_brakeman_warning_without_code_has_no_snippet():
    """Test a null code field leaves the snippet unset."""
    normalizer = BrakemanNormalizer(make_outcome("Brakeman", {}))
    issue = normalizer.normalize({
        "warning_type": "Cross-Site Request Forgery",
        "warning_code": 116,
        "fingerprint": "ssshhhhsa",
        "check_name": "CSRFTokenForgeryCVE",
        "message": "Rails 5.0.0 has a vulnerability that may allow CSRF token forgery.",
        "file": "Gemfile",
        "line": 5,
        "link": "https://groups.google.com/g/rubyonrails-security/c/NOjKiGeXUgw",
        "code": None,
        "confidence": "Medium",
    })

    assert issue.location.snippet is None
    assert issue.location.start_line == 5
    assert issue.severity == Severity.ERROR


def test_brakeman_error_record():
    """Test a Brakeman error becomes a scanner error issue at its location."""
    normalizer = BrakemanNormalizer(make_outcome("Brakeman", {}))
    issue = normalizer.normalize({"error": "foo", "location": "fooclass"})

    assert issue.id == SCANNER_ERROR_ID
    assert issue.title == "Brakeman Error"
    assert issue.severity == Severity.ERROR
    assert issue.details == "foo"
    assert issue.location.uri == "fooclass"


def test_brakeman_reads_warnings_then_errors():
    """Test record order is warnings first, then errors."""
    outcome = make_outcome("Brakeman", {
        "warnings": [BRAKEMAN_WARNING],
        "errors": [{"error": "Unable to parse app/models/user.rb", "location": "app/models/user.rb"}],
    })
    normalizer = BrakemanNormalizer(outcome)
    issues = normalizer.normalize_all(normalizer.load_records())

    assert [issue.id for issue in issues] == ["13", SCANNER_ERROR_ID]


def test_brakeman_every_error_is_kept():
    """Test later scanner errors are folded into the single error issue."""
    outcome = make_outcome("Brakeman", {
        "warnings": [],
        "errors": [
            {"error": "parse fail", "location": "a.rb"},
            {"error": "other fail", "location": "b.rb"},
        ],
    })
    normalizer = BrakemanNormalizer(outcome)
    [issue] = normalizer.normalize_all(normalizer.load_records())

    assert issue.id == SCANNER_ERROR_ID
    assert issue.details == "parse fail\nother fail"
    assert issue.location.uri == "a.rb"
    assert normalizer.results == 1


def test_every_malformed_record_is_kept():
    """Test several malformed records collapse into one issue listing each."""
    normalizer = BanditNormalizer(make_outcome("Bandit", {}))
    [issue] = normalizer.normalize_all([42, {"test_name": "assert_used"}])

    assert issue.id == MALFORMED_RECORD_ID
    assert "got int" in issue.details
    assert "no identifier" in issue.details


# Bandit Tests


def test_bandit_parses_results_and_errors():
    """Test Bandit results and errors with 1-based columns."""
    normalizer = BanditNormalizer(make_outcome("Bandit", BANDIT_OUTPUT))
    result, error = normalizer.normalize_all(normalizer.load_records())

    assert result.id == "B404"
    assert result.severity == Severity.NOTE
    assert result.message_fields == {
        "severity": "LOW",
        "confidence": "HIGH",
        "cwe": "78",
        "test_name": "blacklist",
    }
    assert result.location.uri == "app/run.py"
    assert result.location.start_line == 4
    assert result.location.start_column == 1

    assert error.id == SCANNER_ERROR_ID
    assert error.location.uri == "broken.py"
    assert "syntax error" in error.details


# gosec Tests


def test_gosec_parses_issue_and_line_range():
    """Test gosec string line ranges use the first line."""
    normalizer = GosecNormalizer(make_outcome("Gosec", GOSEC_OUTPUT))
    issue, error = normalizer.normalize_all(normalizer.load_records())

    assert issue.id == "G304"
    assert issue.severity == Severity.WARNING
    assert issue.location.start_line == 27
    assert issue.location.start_column == 15
    assert issue.message_fields["cwe"] == "22"
    assert issue.help_url == "https://cwe.mitre.org/data/definitions/22.html"

    assert error.id == SCANNER_ERROR_ID
    assert error.location.uri == "/src/main.go"
    assert error.location.start_line == 12
    assert error.details == "undeclared name: foo"


# cargo audit Tests


def test_cargo_audit_rates_cvss_vector():
    """Test RustSec advisories are graded from their CVSS vector."""
    normalizer = CargoAuditNormalizer(make_outcome("CargoAudit", CARGO_AUDIT_OUTPUT))
    [issue] = normalizer.normalize_all(normalizer.load_records())

    assert issue.id == "RUSTSEC-2021-0078"
    assert issue.severity == Severity.ERROR
    assert issue.location.uri == "Cargo.lock"
    assert issue.message_fields["package"] == "hyper"
    assert issue.message_fields["patched_versions"] == ">=0.14.10"


def test_cargo_audit_without_cvss_is_note():
    """Test advisories without a vector fall back to NOTE."""
    normalizer = CargoAuditNormalizer(make_outcome("CargoAudit", {}))
    issue = normalizer.normalize({"advisory": {"id": "RUSTSEC-2020-0036", "title": "failure is unmaintained"}})

    assert issue.severity == Severity.NOTE
    assert issue.message_fields["cvss"] == ""


def test_custom_normalizer_registration(monkeypatch):
    """Test a new scanner kind plugs in through the registry."""
    monkeypatch.setattr(normalizer_base, "_REGISTRY", dict(normalizer_base._REGISTRY))

    @register_normalizer
    class EchoNormalizer(IssueNormalizer):
        scanner_name = "EchoScanner"
        message_keys = ("note",)

        def extract_records(self, document):
            return document.get("items", [])

        def extract(self, record):
            return {"id": record.get("id"), "title": record.get("title")}

    normalizer = get_normalizer("echoscanner")(make_outcome("EchoScanner", {"items": [{"id": "E1"}]}))
    [issue] = normalizer.normalize_all(normalizer.load_records())

    assert issue.id == "E1"
    assert issue.message_fields == {"note": ""}
