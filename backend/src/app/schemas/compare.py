from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...engine.openrouter import CompletionOutcome
from ...engine.orchestrator import EndpointState
from ...engine.registry import EndpointDescriptor


class Endpoint(BaseModel):
    """One selectable model target."""

    id: str
    name: str
    provider: str
    color: str

    @classmethod
    def from_descriptor(cls, endpoint: EndpointDescriptor) -> "Endpoint":
        return cls(id=endpoint.id, name=endpoint.name, provider=endpoint.provider, color=endpoint.color)


class ModelsResponse(BaseModel):
    models: List[Endpoint]


class QueryRequest(BaseModel):
    """Prompt to send to one or all endpoints."""

    prompt: str = Field(min_length=1)

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("prompt_empty")
        return v


class Outcome(BaseModel):
    endpoint_id: str
    content: str
    latency_ms: int = Field(ge=0)
    resolved_model_id: str
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    finish_reason: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: CompletionOutcome) -> "Outcome":
        return cls(
            endpoint_id=outcome.endpoint_id,
            content=outcome.content,
            latency_ms=outcome.latency_ms,
            resolved_model_id=outcome.resolved_model_id,
            prompt_tokens=outcome.prompt_tokens,
            completion_tokens=outcome.completion_tokens,
            total_tokens=outcome.total_tokens,
            finish_reason=outcome.finish_reason,
        )


class EndpointStateOut(BaseModel):
    endpoint_id: str
    status: Literal["idle", "pending", "succeeded", "failed"]
    outcome: Optional[Outcome] = None
    error: Optional[str] = None

    @classmethod
    def from_state(cls, endpoint_id: str, state: EndpointState) -> "EndpointStateOut":
        return cls(
            endpoint_id=endpoint_id,
            status=state.status.value,
            outcome=Outcome.from_outcome(state.outcome) if state.outcome is not None else None,
            error=state.error,
        )


class StateResponse(BaseModel):
    pending: int
    states: List[EndpointStateOut]


# Stateless single-call route (camelCase wire format used by the browser client).


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model_id: str = Field(alias="modelId")
    prompt: str


class Usage(BaseModel):
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    model: Endpoint
    response: str
    response_time: int = Field(alias="responseTime")
    usage: Optional[Usage] = None
    raw_model: str = Field(alias="rawModel")


class ChatError(BaseModel):
    error: str
    details: Optional[Any] = None
