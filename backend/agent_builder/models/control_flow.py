from pydantic import AliasChoices, Field, field_validator
from typing import Any, Literal

from .base import CamelModel


class LoopConfig(CamelModel):
    loop_type: Literal["while", "until"] = Field(
        "while",
        validation_alias=AliasChoices("type", "loopType", "loop_type"),
        serialization_alias="type",
    )
    condition: str = "true"
    max_iterations: int | None = None
    description: str | None = None


class ForeachConfig(CamelModel):
    concurrency: int = Field(1, ge=1)
    description: str | None = None


class ParallelConfig(CamelModel):
    steps: list[str] = Field(default_factory=list, description="Declared ids of steps run in parallel")
    description: str | None = None


class Route(CamelModel):
    """One branch of a router node."""

    id: str | None = None
    name: str | None = None
    condition: str = "false"
    description: str | None = None
    step_id: str | None = Field(None, description="Declared id of the step the route runs")


class RouterConfig(CamelModel):
    routes: list[Route] = Field(
        default_factory=list,
        validation_alias=AliasChoices("routes", "branches"),
    )
    description: str | None = None


class SleepConfig(CamelModel):
    duration: int = Field(1000, ge=0, description="Milliseconds")
    description: str | None = None


class SleepUntilConfig(CamelModel):
    date: str | None = Field(None, description="ISO-8601 timestamp")
    description: str | None = None


class WaitForEventConfig(CamelModel):
    event: str | None = Field(None, validation_alias=AliasChoices("event", "eventName"))
    timeout: int | None = Field(None, description="Milliseconds", validation_alias=AliasChoices("timeout", "timeoutMs"))
    description: str | None = None


class FieldMapping(CamelModel):
    """Mapping of one target field for a map node."""

    id: str | None = None
    target_field: str
    source_type: Literal["step", "constant", "function"] = "step"
    source_step: str | None = None
    source_path: str | None = None
    constant_value: Any = None
    function_code: str | None = None


class MapConfig(CamelModel):
    fields: list[FieldMapping] = Field(default_factory=list)
    description: str | None = None

    @field_validator("fields", mode="before")
    @classmethod
    def _fields_from_mapping(cls, value: Any) -> Any:
        # Older canvases store {targetField: {source, value, step, path}}
        if not isinstance(value, dict):
            return value
        mappings = []
        for target, entry in value.items():
            entry = entry or {}
            is_constant = entry.get("source") == "constant"
            mappings.append({
                "targetField": target,
                "sourceType": "constant" if is_constant else "step",
                "constantValue": entry.get("value") if is_constant else None,
                "sourceStep": entry.get("step"),
                "sourcePath": entry.get("path"),
            })
        return mappings
