from pydantic import Field
from typing import Any

from .base import CamelModel


class ValidationRule(CamelModel):
    """A constraint attached to a schema field (min, max, length, regex, email, url, uuid, custom)."""

    type: str = Field(..., description="Rule kind")
    value: Any = Field(None, description="Rule argument (e.g. the bound for min/max)")
    message: str | None = Field(None, description="Custom error message")


class SchemaField(CamelModel):
    """One field of an input or output schema built in the schema editor.

    ``type`` is one of string, number, boolean, date, object, array, enum, any,
    unknown, null or undefined. Unrecognised types map to ``z.any()``.
    """

    id: str = Field("", description="Field ID in the editor")
    name: str = Field(..., description="Property name in the generated object schema")
    type: str = Field("any", description="Field type")
    optional: bool = Field(False, description="Whether the property may be omitted")
    description: str | None = Field(None, description="Human readable description")
    default_value: Any = Field(None, description="Default value for the field")
    validation: list[ValidationRule] | None = Field(None, description="Validation rules")

    def rule(self, rule_type: str) -> ValidationRule | None:
        """Return the first validation rule of the given type."""
        for rule in self.validation or []:
            if rule.type == rule_type:
                return rule
        return None
