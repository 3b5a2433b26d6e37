"""Static catalog of the endpoints a prompt can be compared across."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Optional

from .. import config
from .errors import EndpointNotFound


@dataclass(frozen=True)
class EndpointDescriptor:
    id: str  # also the upstream model name
    name: str
    provider: str
    color: str  # presentation hint only


DEFAULT_ENDPOINTS: tuple[EndpointDescriptor, ...] = (
    EndpointDescriptor(
        id="anthropic/claude-sonnet-4.5",
        name="Claude Sonnet 4.5",
        provider="Anthropic",
        color="#D97706",
    ),
    EndpointDescriptor(
        id="anthropic/claude-opus-4.5",
        name="Claude Opus 4.5",
        provider="Anthropic",
        color="#7C3AED",
    ),
    EndpointDescriptor(
        id="google/gemini-3-pro-preview",
        name="Gemini 3 Pro Preview",
        provider="Google",
        color="#2563EB",
    ),
    EndpointDescriptor(
        id="openai/gpt-5.1",
        name="GPT-5.1",
        provider="OpenAI",
        color="#10B981",
    ),
)


class ModelRegistry:
    """Ordered, read-only set of endpoints. Insertion order is display order."""

    def __init__(self, endpoints: Iterable[EndpointDescriptor]):
        self._endpoints = tuple(endpoints)
        self._by_id: dict[str, EndpointDescriptor] = {}
        for endpoint in self._endpoints:
            if endpoint.id in self._by_id:
                raise ValueError(f"Duplicate endpoint id: {endpoint.id}")
            self._by_id[endpoint.id] = endpoint

    def list(self) -> tuple[EndpointDescriptor, ...]:
        return self._endpoints

    def ids(self) -> tuple[str, ...]:
        return tuple(e.id for e in self._endpoints)

    def resolve(self, endpoint_id: str) -> EndpointDescriptor:
        try:
            return self._by_id[endpoint_id]
        except KeyError:
            raise EndpointNotFound(endpoint_id) from None

    def __contains__(self, endpoint_id: object) -> bool:
        return endpoint_id in self._by_id

    def __iter__(self) -> Iterator[EndpointDescriptor]:
        return iter(self._endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)


def _descriptor_from_dict(item: Any) -> EndpointDescriptor:
    if not isinstance(item, dict) or not item.get("id"):
        raise ValueError("COMPARE_MODELS_JSON entries need an 'id'")
    endpoint_id = str(item["id"])
    return EndpointDescriptor(
        id=endpoint_id,
        name=str(item.get("name") or endpoint_id),
        provider=str(item.get("provider") or endpoint_id.split("/", 1)[0]),
        color=str(item.get("color") or "#64748B"),
    )


def build_registry(models: Optional[list[dict[str, Any]]] = None) -> ModelRegistry:
    models = models if models is not None else config.COMPARE_MODELS
    if not models:
        return ModelRegistry(DEFAULT_ENDPOINTS)
    if not isinstance(models, list):
        raise ValueError("COMPARE_MODELS_JSON must be a JSON list of model objects")
    return ModelRegistry(_descriptor_from_dict(m) for m in models)


_DEFAULT_REGISTRY: ModelRegistry | None = None


def get_default_registry() -> ModelRegistry:
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        _DEFAULT_REGISTRY = build_registry()
    return _DEFAULT_REGISTRY
