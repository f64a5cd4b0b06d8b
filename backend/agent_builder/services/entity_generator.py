"""Shared rendering for the entities that carry schemas and an execute body."""

import logging

from ..models.schema import SchemaField
from .code_safety import sanitize_code, validate_execute_code
from .codegen_utils import comment_text, entity_var_name, indent_block, quote, schema_var_name
from .schema_mapper import render_object_schema

logger = logging.getLogger(__name__)


class EntityCodeGenerator:
    """Base for tool and step generators.

    Subclasses set the constructor to call, where to import it from and the
    suffix used for the exported variable.
    """

    constructor = ""
    module = ""
    role = ""

    def _schemas(self, declared_id: str, input_schema: list[SchemaField] | None,
                 output_schema: list[SchemaField] | None) -> tuple[list[str], dict[str, str]]:
        """Schema declarations plus the ``inputSchema``/``outputSchema`` field values."""
        lines: list[str] = []
        refs: dict[str, str] = {}
        for direction, fields in (("input", input_schema), ("output", output_schema)):
            if not fields:
                continue
            var_name = schema_var_name(declared_id, direction)
            lines.extend(render_object_schema(var_name, fields))
            lines.append("")
            refs[f"{direction}Schema"] = var_name
        return lines, refs

    def _execute(self, declared_id: str, code: str | None) -> list[str]:
        """The ``execute`` field: sanitized user code or a throwing stub."""
        if not code or not code.strip():
            return [
                "  execute: async ({ context }) => {",
                f"    throw new Error({quote(f'{self.role} not implemented')});",
                "  },",
            ]

        result = validate_execute_code(code)
        if not result.is_valid:
            logger.warning("Rejected execute code for %s %s: %s", self.role.lower(), declared_id, result.error)
            reason = f"Execute code failed validation: {result.error}"
            return [
                f"  // {comment_text(reason)}",
                "  execute: async ({ context }) => {",
                f"    throw new Error({quote(reason)});",
                "  },",
            ]

        return [f"  execute: {indent_block(sanitize_code(code), '  ')},"]

    def _render(self, declared_id: str, description: str | None, input_schema: list[SchemaField] | None,
                output_schema: list[SchemaField] | None, execute_code: str | None,
                extra: list[str] | None = None) -> str:
        schema_lines, schema_refs = self._schemas(declared_id, input_schema, output_schema)

        lines = [f"import {{ {self.constructor} }} from '{self.module}';"]
        if schema_lines:
            lines.append("import { z } from 'zod';")
        lines.append("")
        lines.extend(schema_lines)

        lines.append(f"export const {entity_var_name(declared_id, self.role)} = {self.constructor}({{")
        lines.append(f"  id: {quote(declared_id)},")
        if description:
            lines.append(f"  description: {quote(description)},")
        for key, var_name in schema_refs.items():
            lines.append(f"  {key}: {var_name},")
        lines.extend(self._execute(declared_id, execute_code))
        lines.extend(extra or [])
        lines.append("});")

        return "\n".join(lines) + "\n"
