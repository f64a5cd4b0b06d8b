from pydantic import Field
from typing import Literal

from .base import CamelModel


Severity = Literal["error", "warning", "info"]


class ValidationIssue(CamelModel):
    """An advisory finding about a node; never blocks generation."""

    node_id: str = Field(..., description="Canvas ID of the offending node")
    field: str | None = Field(None, description="Config field the issue refers to")
    message: str
    severity: Severity


class CodeValidationResult(CamelModel):
    """Outcome of the execute-code safety gate."""

    is_valid: bool
    error: str | None = None


class GeneratedFile(CamelModel):
    """One generated source file."""

    path: str = Field(..., description="Path relative to the generated project root")
    content: str


class SkippedNode(CamelModel):
    """A node left out of generation: its configuration is incomplete or its id clashes with another."""

    node_id: str
    kind: str
    declared_id: str | None = None
    missing: list[str] = Field(default_factory=list)
    clashes_with: str | None = Field(None, description="Earlier declared id that already owns the generated name")

    def describe(self) -> str:
        label = f"{self.kind.capitalize()} node `{self.node_id}`"
        if self.declared_id:
            label += f" (id `{self.declared_id}`)"
        if self.clashes_with:
            return f"{label} (generated name clashes with `{self.clashes_with}`)"
        return f"{label} (missing: {', '.join(self.missing)})"


class GenerationResult(CamelModel):
    """Files produced for a project plus the advisory report."""

    files: list[GeneratedFile] = Field(default_factory=list)
    issues: list[ValidationIssue] = Field(default_factory=list)
    skipped: list[SkippedNode] = Field(default_factory=list)

    def file(self, path: str) -> GeneratedFile | None:
        for generated in self.files:
            if generated.path == path:
                return generated
        return None
