"""Canonical issue model shared by every scanner adapter.

Every scanner speaks its own finding dialect. Normalizers translate each raw
record into the types below so that aggregation and rendering only ever deal
with one shape.

Provides:
- Severity: Output level of an issue (note/warning/error)
- Location: Where in the repository an issue points
- Issue: Immutable, normalized finding
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    """Severity scale every native vocabulary is mapped onto.

    Values double as the interchange output level, so renderers can use
    ``severity.value`` directly.
    """

    NOTE = "note"
    WARNING = "warning"
    ERROR = "error"


class Location(BaseModel):
    """Artifact location of an issue.

    Attributes:
        uri: Repository-relative path of the offending artifact
        start_line: 1-based line, when the scanner reports one
        start_column: 1-based column, when the scanner reports one
        snippet: Offending source text, when the scanner reports it
    """

    model_config = ConfigDict(frozen=True)

    uri: str = ""
    start_line: int | None = None
    start_column: int | None = None
    snippet: str | None = None


class Issue(BaseModel):
    """A normalized finding produced from exactly one raw scanner record.

    Attributes:
        id: Scanner-assigned identifier (never regenerated)
        title: Short rule name
        details: Free text description, may be empty
        severity: Level on the canonical scale
        message_fields: Scanner-specific attributes, string-coerced, fixed keys per scanner
        location: Artifact location
        help_url: Link to scanner documentation for this rule
        suppressed: True when the id was declared as an accepted exception
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    details: str = ""
    severity: Severity = Severity.NOTE
    message_fields: dict[str, str] = Field(default_factory=dict)
    location: Location = Field(default_factory=Location)
    help_url: str | None = None
    suppressed: bool = False
