"""Map schema-editor fields to zod builder expressions."""

import math

from ..models.schema import SchemaField
from .codegen_utils import js_key, js_literal, quote


BASE_TYPES = {
    "string": "z.string()",
    "number": "z.number()",
    "boolean": "z.boolean()",
    "date": "z.date()",
    "array": "z.array(z.any())",
    "object": "z.record(z.any())",
}


def _is_empty_default(value) -> bool:
    return value is None or value == ""


def _numeric_bound(value) -> str | None:
    # Form inputs may deliver bounds as strings
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return js_literal(value)
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
        return value.strip() if math.isfinite(number) else None
    return None


def map_field(field: SchemaField) -> str:
    """Build the zod expression for one field.

    Suffixes are appended in a fixed order (range, optional, describe,
    default) so regenerated code diffs cleanly.
    """
    expression = BASE_TYPES.get(field.type, "z.any()")

    if field.type == "number":
        for bound in ("min", "max"):
            rule = field.rule(bound)
            rendered = _numeric_bound(rule.value) if rule is not None else None
            if rendered is not None:
                expression += f".{bound}({rendered})"

    if field.optional:
        expression += ".optional()"

    if field.description:
        expression += f".describe({quote(field.description)})"

    if not _is_empty_default(field.default_value):
        expression += f".default({js_literal(field.default_value)})"

    return expression


def render_object_schema(var_name: str, fields: list[SchemaField]) -> list[str]:
    """Lines declaring ``const <var_name> = z.object({...});``."""
    lines = [f"const {var_name} = z.object({{"]
    for field in fields:
        lines.append(f"  {js_key(field.name)}: {map_field(field)},")
    lines.append("});")
    return lines
