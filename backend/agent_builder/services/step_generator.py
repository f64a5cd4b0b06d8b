"""Generate Mastra workflow step modules."""

from ..models.entities import StepConfig
from .entity_generator import EntityCodeGenerator


class StepCodeGenerator(EntityCodeGenerator):
    constructor = "createStep"
    module = "@mastra/core/workflows"
    role = "Step"

    def generate(self, config: StepConfig) -> str:
        """Render ``steps/<id>.ts`` (id, description, inputSchema, outputSchema, execute)."""
        return self._render(
            config.id,
            config.description,
            config.input_schema,
            config.output_schema,
            config.execute_code,
        )


step_generator = StepCodeGenerator()
