"""Cross-language output records.

One ``FileRecord`` per processed file. This is the contract handed to the
index store, so field names and ordering are stable: serialize with
``FileRecord.to_json()`` (camelCase keys, ``None`` fields omitted).
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from symgraph.config.constants import SCHEMA_VERSION


class _Record(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SpanRecord(_Record):
    start_byte: int = Field(..., ge=0)
    end_byte: int = Field(..., ge=0)
    start_line: int = Field(..., gt=0, description="1-indexed")
    start_col: int = Field(..., ge=0, description="0-indexed")
    end_line: int = Field(..., gt=0)
    end_col: int = Field(..., ge=0)


class _Target(_Record):
    """Exactly one of ``target_id`` and ``unresolved_name`` is set."""

    target_id: str | None = None
    unresolved_name: str | None = None

    @model_validator(mode="after")
    def validate_target(self) -> "_Target":
        if (self.target_id is None) == (self.unresolved_name is None):
            raise ValueError("exactly one of target_id and unresolved_name must be set")
        return self


class SupertypeRecord(_Target):
    kind: str = Field(..., description="extends or implements")
    span: SpanRecord


class ReferenceRecord(_Target):
    span: SpanRecord
    kind: str
    source_id: str | None = Field(None, description="Innermost enclosing callable or type")


class SignatureRecord(_Record):
    parameters: list[str] = Field(default_factory=list)
    return_type: str | None = None
    type_parameters: list[str] = Field(default_factory=list)


class SymbolRecord(_Record):
    id: str
    kind: str
    name: str
    span: SpanRecord
    modifiers: list[str] = Field(default_factory=list)
    signature: SignatureRecord | None = None
    supertypes: list[SupertypeRecord] = Field(default_factory=list)
    container: str | None = Field(None, description="Enclosing symbol ID")
    extensions: dict[str, Any] = Field(default_factory=dict, description="Language-specific detail")


class ImportRecord(_Record):
    name: str
    full_name: str
    static: bool = False
    wildcard: bool = False
    span: SpanRecord


class DiagnosticRecord(_Record):
    span: SpanRecord
    severity: str
    message: str
    code: str = "syntax"


class FileRecord(_Record):
    """Everything extracted from one file."""

    schema_version: int = SCHEMA_VERSION
    file_path: str
    language: str
    package: str | None = None
    imports: list[ImportRecord] = Field(default_factory=list)
    symbols: list[SymbolRecord] = Field(default_factory=list)
    references: list[ReferenceRecord] = Field(default_factory=list)
    diagnostics: list[DiagnosticRecord] = Field(default_factory=list)

    @property
    def aborted(self) -> bool:
        return any(d.severity == "fatal" for d in self.diagnostics)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, *, indent: int | None = None) -> str:
        """Golden-output form: identical input gives identical text."""
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)
