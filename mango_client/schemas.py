"""Pydantic schemas for every entity the client exchanges with the backend.

Wire names follow the LLMango JSON contract (camelCase, ``UID``); Python
attributes are snake_case and mapped through aliases. Always serialize with
``by_alias=True`` when sending a payload back to the backend.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """Base for models mapped onto camelCase JSON.

    Instances are frozen: cached entities are shared with callers, so any
    change goes through ``model_copy(update=...)`` and a store write.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON shape the backend expects."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# Prompt Schemas
# =============================================================================

class PromptParameters(WireModel):
    """Sampling parameters; unset values are omitted on the wire."""
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None


class Prompt(WireModel):
    """A prompt variant serving one goal."""
    uid: str = Field(..., alias="UID")
    goal_uid: str = Field(..., alias="goalUID", description="Back reference to the owning goal")
    model: str = Field(default="")
    parameters: PromptParameters = Field(default_factory=PromptParameters)
    messages: list[Any] = Field(default_factory=list, description="Opaque message objects")

    # Traffic-splitting fields, carried as opaque data
    weight: int = Field(default=0)
    is_canary: bool = Field(default=False, alias="isCanary")
    max_runs: int = Field(default=0, alias="maxRuns")
    total_runs: int = Field(default=0, alias="totalRuns")


# =============================================================================
# Goal Schemas
# =============================================================================

class Solution(WireModel):
    """Traffic allocation for one prompt inside a goal. Identified by its prompt."""
    prompt_uid: str = Field(..., alias="promptUid")
    weight: int = Field(default=0)
    is_canary: bool = Field(default=False, alias="isCanary")
    max_runs: int = Field(default=0, alias="maxRuns")
    total_runs: int = Field(default=0, alias="totalRuns")

    @property
    def id(self) -> str:
        return self.prompt_uid


class InputOutput(WireModel):
    input_example: Any = Field(default=None, alias="inputExample")
    output_example: Any = Field(default=None, alias="outputExample")


class Goal(WireModel):
    """A goal with its example pair and the prompts/solutions serving it.

    ``prompts`` may reference prompts that are not loaded yet.
    """
    uid: str = Field(..., alias="UID")
    title: str = Field(default="")
    description: str = Field(default="")
    input_output: InputOutput = Field(default_factory=InputOutput, alias="inputOutput")
    prompts: dict[str, str] = Field(default_factory=dict, description="promptUID -> promptUID")
    solutions: dict[str, Solution] = Field(default_factory=dict)


# =============================================================================
# Model Catalog Schemas
# =============================================================================

class ModelPricing(BaseModel):
    model_config = ConfigDict(extra="allow")

    prompt: str | float | None = None
    completion: str | float | None = None


class ModelArchitecture(BaseModel):
    model_config = ConfigDict(extra="allow")

    input_modalities: list[str] | None = None
    output_modalities: list[str] | None = None


class ModelCatalogEntry(BaseModel):
    """One entry of the OpenRouter model listing. Unknown fields are kept."""
    model_config = ConfigDict(extra="allow")

    id: str
    name: str = Field(default="")
    created: int = Field(default=0, description="Unix seconds")
    description: str | None = None
    context_length: int | None = None
    pricing: ModelPricing | None = None
    architecture: ModelArchitecture | None = None


class ModelCatalogBlob(BaseModel):
    """Persisted layout of the model catalog."""
    models: list[ModelCatalogEntry] = Field(default_factory=list)
    last_fetched: str | None = Field(default=None, alias="lastFetched")

    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Log Schemas
# =============================================================================

class LogFilter(WireModel):
    min_timestamp: int | None = Field(default=None, alias="minTimestamp")
    max_timestamp: int | None = Field(default=None, alias="maxTimestamp")
    goal_uid: str | None = Field(default=None, alias="goalUID")
    prompt_uid: str | None = Field(default=None, alias="promptUID")
    include_raw: bool = Field(default=False, alias="includeRaw")
    limit: int = Field(default=10, ge=0)
    offset: int = Field(default=0, ge=0)


class LogEntry(WireModel):
    """A single recorded LLM call. Read-only."""
    timestamp: int
    goal_uid: str = Field(default="", alias="goalUID")
    prompt_uid: str = Field(default="", alias="promptUID")
    raw_input: str = Field(default="", alias="rawInput")
    input_object: str = Field(default="", alias="inputObject")
    raw_output: str = Field(default="", alias="rawOutput")
    output_object: str = Field(default="", alias="outputObject")
    input_tokens: int = Field(default=0, alias="inputTokens")
    output_tokens: int = Field(default=0, alias="outputTokens")
    cost: float = Field(default=0.0)
    request_time: float = Field(default=0.0, alias="requestTime")
    generation_time: float = Field(default=0.0, alias="generationTime")
    error: str | None = None


class Pagination(WireModel):
    total: int = 0
    page: int = 1
    per_page: int = Field(default=10, alias="perPage")
    total_pages: int = Field(default=0, alias="totalPages")


class LogResponse(WireModel):
    logs: list[LogEntry] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
