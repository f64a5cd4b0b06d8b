from pydantic import Field
from typing import Literal

from .base import CamelModel
from .schema import SchemaField


ModelProvider = Literal["openai", "anthropic", "google", "mistral", "groq", "cohere", "custom"]


class ModelConfig(CamelModel):
    """LLM selection and sampling settings for an agent."""

    provider: ModelProvider = Field("openai", description="Model provider")
    name: str = Field("", description="Model name (e.g. gpt-4o)")
    temperature: float | None = None
    top_p: float | None = None
    max_tokens: int | None = None
    stop_sequences: list[str] | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None

    def has_settings(self) -> bool:
        """Whether any sampling setting is set."""
        return any(
            value is not None
            for value in (
                self.temperature,
                self.top_p,
                self.max_tokens,
                self.frequency_penalty,
                self.presence_penalty,
            )
        ) or bool(self.stop_sequences)


class MemoryConfig(CamelModel):
    """Conversation memory attached to an agent."""

    type: Literal["none", "buffer", "summary", "token", "vector", "custom"] = "none"
    max_messages: int | None = Field(None, description="Number of recent messages to keep")


class AgentConfig(CamelModel):
    """Configuration of an agent node."""

    id: str = Field("", description="Declared identifier used in generated code")
    name: str = Field("", description="Agent display name")
    description: str | None = None
    instructions: str = Field("", description="System instructions")
    model: ModelConfig | None = None
    tools: list[str] = Field(default_factory=list, description="Declared ids of attached tools")
    workflows: list[str] = Field(default_factory=list, description="Declared ids of attached workflows")
    agents: list[str] = Field(default_factory=list, description="Declared ids of sub-agents")
    memory: MemoryConfig | None = None
    max_retries: int | None = None
    enable_tracing: bool | None = None


class ToolConfig(CamelModel):
    """Configuration of a tool node."""

    id: str = Field("", description="Declared identifier used in generated code")
    description: str = ""
    input_schema: list[SchemaField] | None = None
    output_schema: list[SchemaField] | None = None
    execute_code: str | None = Field(None, description="User-authored execute function")
    require_approval: bool | None = None


class StepConfig(CamelModel):
    """Configuration of a workflow step node."""

    id: str = Field("", description="Declared identifier used in generated code")
    description: str | None = None
    input_schema: list[SchemaField] | None = None
    output_schema: list[SchemaField] | None = None
    execute_code: str | None = Field(None, description="User-authored execute function")
