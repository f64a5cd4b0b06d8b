"""Generate Mastra tool modules from tool node configuration."""

from ..models.entities import ToolConfig
from .entity_generator import EntityCodeGenerator


class ToolCodeGenerator(EntityCodeGenerator):
    """Lower a tool node into a ``createTool({...})`` module."""

    constructor = "createTool"
    module = "@mastra/core/tools"
    role = "Tool"

    def generate(self, config: ToolConfig) -> str:
        """Render ``tools/<id>.ts``.

        Fields are emitted as id, description, inputSchema, outputSchema,
        execute, requireApproval.
        """
        extra = ["  requireApproval: true,"] if config.require_approval else []
        return self._render(
            config.id,
            config.description,
            config.input_schema,
            config.output_schema,
            config.execute_code,
            extra,
        )


tool_generator = ToolCodeGenerator()
