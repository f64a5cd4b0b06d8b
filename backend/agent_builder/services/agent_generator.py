"""Generate Mastra agent modules from agent node configuration."""

from typing import Iterable

from ..core.config import settings
from ..models.entities import AgentConfig, ModelConfig
from .codegen_utils import entity_var_name, escape_template, js_literal, module_name, quote, unique


# Provider name -> (npm package, exported factory)
PROVIDER_PACKAGES = {
    "openai": ("@ai-sdk/openai", "openai"),
    "anthropic": ("@ai-sdk/anthropic", "anthropic"),
    "google": ("@ai-sdk/google", "google"),
    "mistral": ("@ai-sdk/mistral", "mistral"),
    "groq": ("@ai-sdk/groq", "groq"),
    "cohere": ("@ai-sdk/cohere", "cohere"),
}

_GENERATE_OPTIONS = (
    ("temperature", "temperature"),
    ("top_p", "topP"),
    ("max_tokens", "maxTokens"),
    ("frequency_penalty", "frequencyPenalty"),
    ("presence_penalty", "presencePenalty"),
)


def default_model() -> ModelConfig:
    """Model used when neither the agent nor the project names one."""
    return ModelConfig(provider=settings.default_model_provider, name=settings.default_model_name)


def resolve_model(config: AgentConfig, fallback: ModelConfig | None = None) -> ModelConfig:
    """The agent's own model if complete, else the project default, else the service default."""
    for candidate in (config.model, fallback):
        if candidate is not None and candidate.name.strip():
            return candidate
    return default_model()


def provider_package(model: ModelConfig) -> str | None:
    """npm package that provides the model factory, or None for custom providers."""
    entry = PROVIDER_PACKAGES.get(model.provider)
    return entry[0] if entry else None


def _filter_refs(ids: Iterable[str], available: set[str] | None, exclude: str | None = None) -> list[str]:
    refs = [ref for ref in unique(ids) if ref and ref != exclude]
    if available is None:
        return refs
    return [ref for ref in refs if ref in available]


class AgentCodeGenerator:
    """Lower an agent node into a ``new Agent({...})`` module."""

    def __init__(self, default_model: ModelConfig | None = None):
        self.default_model = default_model

    def generate(
        self,
        config: AgentConfig,
        available_tools: set[str] | None = None,
        available_workflows: set[str] | None = None,
        available_agents: set[str] | None = None,
    ) -> str:
        """Render ``agents/<id>.ts``.

        Args:
            config: Agent node configuration
            available_tools: Declared tool ids that will be emitted; None keeps every reference
            available_workflows: Declared workflow ids that will be emitted
            available_agents: Declared agent ids that will be emitted

        Returns:
            TypeScript source text
        """
        model = resolve_model(config, self.default_model)
        tools = _filter_refs(config.tools, available_tools)
        workflows = _filter_refs(config.workflows, available_workflows)
        sub_agents = _filter_refs(config.agents, available_agents, exclude=config.id)
        has_memory = config.memory is not None and config.memory.type != "none"

        lines = ["import { Agent } from '@mastra/core/agent';"]
        package = provider_package(model)
        if package:
            factory = PROVIDER_PACKAGES[model.provider][1]
            lines.append(f"import {{ {factory} }} from '{package}';")
        if has_memory:
            lines.append("import { Memory } from '@mastra/memory';")
        if tools:
            names = ", ".join(entity_var_name(ref, "Tool") for ref in tools)
            lines.append(f"import {{ {names} }} from '../tools';")
        if workflows:
            names = ", ".join(entity_var_name(ref, "Workflow") for ref in workflows)
            lines.append(f"import {{ {names} }} from '../workflows';")
        for ref in sub_agents:
            lines.append(f"import {{ {entity_var_name(ref, 'Agent')} }} from './{module_name(ref)}';")
        lines.append("")

        lines.append(f"export const {entity_var_name(config.id, 'Agent')} = new Agent({{")
        lines.append(f"  id: {quote(config.id)},")
        lines.append(f"  name: {quote(config.name)},")
        lines.append(f"  instructions: `{escape_template(config.instructions)}`,")
        if config.description:
            lines.append(f"  description: {quote(config.description)},")
        lines.append(f"  model: {self._model_expression(model)},")
        lines.extend(self._generate_options(model))
        lines.extend(self._ref_block("tools", tools, "Tool"))
        lines.extend(self._ref_block("workflows", workflows, "Workflow"))
        lines.extend(self._ref_block("agents", sub_agents, "Agent"))
        if has_memory:
            lines.append(self._memory_expression(config))
        if config.max_retries is not None:
            lines.append(f"  maxRetries: {config.max_retries},")
        if config.enable_tracing:
            lines.append("  enableTracing: true,")
        lines.append("});")

        return "\n".join(lines) + "\n"

    def _model_expression(self, model: ModelConfig) -> str:
        if model.provider in PROVIDER_PACKAGES:
            return f"{PROVIDER_PACKAGES[model.provider][1]}({quote(model.name)})"
        return quote(model.name)

    def _generate_options(self, model: ModelConfig) -> list[str]:
        if not model.has_settings():
            return []
        lines = ["  defaultGenerateOptions: {"]
        for attr, key in _GENERATE_OPTIONS:
            value = getattr(model, attr)
            if value is not None:
                lines.append(f"    {key}: {js_literal(value)},")
        if model.stop_sequences:
            sequences = ", ".join(quote(item) for item in model.stop_sequences)
            lines.append(f"    stopSequences: [{sequences}],")
        lines.append("  },")
        return lines

    def _ref_block(self, key: str, refs: list[str], role: str) -> list[str]:
        if not refs:
            return []
        lines = [f"  {key}: {{"]
        lines.extend(f"    {entity_var_name(ref, role)}," for ref in refs)
        lines.append("  },")
        return lines

    def _memory_expression(self, config: AgentConfig) -> str:
        if config.memory.max_messages:
            return f"  memory: new Memory({{ options: {{ lastMessages: {config.memory.max_messages} }} }}),"
        return "  memory: new Memory(),"
