from pydantic import Field, TypeAdapter, field_validator
from typing import Annotated, Any, Literal, Union

from .base import CamelModel
from .entities import AgentConfig, ModelConfig, StepConfig, ToolConfig
from .control_flow import (
    ForeachConfig,
    LoopConfig,
    MapConfig,
    ParallelConfig,
    RouterConfig,
    SleepConfig,
    SleepUntilConfig,
    WaitForEventConfig,
)


# Alternate spellings written by older canvases
KIND_ALIASES = {
    "conditional": "router",
    "sleepuntil": "sleepUntil",
    "waitforevent": "waitForEvent",
}

ENTITY_KINDS = ("agent", "tool", "step")
CONTROL_FLOW_KINDS = ("loop", "foreach", "parallel", "router", "sleep", "sleepUntil", "waitForEvent", "map")
WORKFLOW_KINDS = ("step",) + CONTROL_FLOW_KINDS


class Position(CamelModel):
    x: float = 0.0
    y: float = 0.0


class _NodeBase(CamelModel):
    id: str = Field(..., description="Canvas node ID")
    position: Position = Field(default_factory=Position, description="X,Y position")

    @property
    def declared_id(self) -> str | None:
        """The user-chosen identifier from the node config, if the kind has one."""
        return getattr(self.config, "id", None) or None


class AgentNode(_NodeBase):
    kind: Literal["agent"] = "agent"
    config: AgentConfig = Field(default_factory=AgentConfig)


class ToolNode(_NodeBase):
    kind: Literal["tool"] = "tool"
    config: ToolConfig = Field(default_factory=ToolConfig)


class StepNode(_NodeBase):
    kind: Literal["step"] = "step"
    config: StepConfig = Field(default_factory=StepConfig)


class LoopNode(_NodeBase):
    kind: Literal["loop"] = "loop"
    config: LoopConfig = Field(default_factory=LoopConfig)


class ForeachNode(_NodeBase):
    kind: Literal["foreach"] = "foreach"
    config: ForeachConfig = Field(default_factory=ForeachConfig)


class ParallelNode(_NodeBase):
    kind: Literal["parallel"] = "parallel"
    config: ParallelConfig = Field(default_factory=ParallelConfig)


class RouterNode(_NodeBase):
    kind: Literal["router"] = "router"
    config: RouterConfig = Field(default_factory=RouterConfig)


class SleepNode(_NodeBase):
    kind: Literal["sleep"] = "sleep"
    config: SleepConfig = Field(default_factory=SleepConfig)


class SleepUntilNode(_NodeBase):
    kind: Literal["sleepUntil"] = "sleepUntil"
    config: SleepUntilConfig = Field(default_factory=SleepUntilConfig)


class WaitForEventNode(_NodeBase):
    kind: Literal["waitForEvent"] = "waitForEvent"
    config: WaitForEventConfig = Field(default_factory=WaitForEventConfig)


class MapNode(_NodeBase):
    kind: Literal["map"] = "map"
    config: MapConfig = Field(default_factory=MapConfig)


Node = Annotated[
    Union[
        AgentNode,
        ToolNode,
        StepNode,
        LoopNode,
        ForeachNode,
        ParallelNode,
        RouterNode,
        SleepNode,
        SleepUntilNode,
        WaitForEventNode,
        MapNode,
    ],
    Field(discriminator="kind"),
]

_node_adapter: TypeAdapter[Node] = TypeAdapter(Node)


def normalize_node(raw: Any) -> Any:
    """Convert the canvas shape ``{id, type, data: {config}}`` to ``{id, kind, config}``."""
    if not isinstance(raw, dict):
        return raw

    data = raw.get("data") or {}
    kind = raw.get("kind") or raw.get("type") or data.get("type")
    if isinstance(kind, str):
        kind = KIND_ALIASES.get(kind, kind)

    config = raw.get("config")
    if config is None:
        config = data.get("config") or {}

    return {
        "id": raw.get("id"),
        "kind": kind,
        "position": raw.get("position") or {},
        "config": config,
    }


def parse_node(raw: Any) -> Node:
    """Validate a single node in either canvas or normalized shape."""
    return _node_adapter.validate_python(normalize_node(raw))


class Edge(CamelModel):
    """A directed connection between two canvas nodes."""

    id: str = Field(..., description="Unique edge ID")
    source: str = Field(..., description="Source node ID")
    target: str = Field(..., description="Target node ID")
    source_handle: str | None = Field(None, description="Source connection point")
    target_handle: str | None = Field(None, description="Target connection point")
    label: str | None = None


class StorageSettings(CamelModel):
    type: Literal["libsql", "postgres", "redis", "memory"] = "memory"
    config: dict[str, Any] | None = None


class LoggerSettings(CamelModel):
    type: Literal["pino", "console", "custom"] = "console"
    config: dict[str, Any] | None = None


class TelemetrySettings(CamelModel):
    enabled: bool = False
    provider: str | None = None
    config: dict[str, Any] | None = None


class EntryPoints(CamelModel):
    agents: list[str] = Field(default_factory=list)
    workflows: list[str] = Field(default_factory=list)


class ProjectSettings(CamelModel):
    """Global project settings."""

    project_name: str | None = None
    description: str | None = None
    default_model: ModelConfig | None = None
    storage: StorageSettings | None = None
    logger: LoggerSettings | None = None
    telemetry: TelemetrySettings | None = None
    environment_variables: dict[str, str] | None = None
    entry_points: EntryPoints | None = None


class ProjectConfig(CamelModel):
    """Snapshot of the canvas handed to validation and code generation."""

    id: str = Field("", description="Project ID")
    name: str = Field("", description="Project name")
    description: str | None = None
    nodes: list[Node] = Field(default_factory=list, description="All nodes on the canvas")
    edges: list[Edge] = Field(default_factory=list, description="Connections between nodes")
    settings: ProjectSettings = Field(default_factory=ProjectSettings, description="Global project settings")
    viewport: dict[str, Any] | None = Field(None, description="Viewport state (zoom, pan)")

    @field_validator("nodes", mode="before")
    @classmethod
    def _normalize_nodes(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [normalize_node(item) for item in value]
        return value

    def node_by_id(self, node_id: str) -> Node | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None
