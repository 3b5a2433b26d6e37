"""Per-endpoint query state and concurrent fan-out across the registry."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from ..utils.redact import redact_secrets
from .errors import ConfigurationError
from .openrouter import CompletionOutcome, CompletionResult
from .registry import EndpointDescriptor, ModelRegistry

logger = logging.getLogger(__name__)


class QueryStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class EndpointState:
    status: QueryStatus = QueryStatus.IDLE
    outcome: Optional[CompletionOutcome] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (QueryStatus.SUCCEEDED, QueryStatus.FAILED)


IDLE = EndpointState()
PENDING = EndpointState(status=QueryStatus.PENDING)


class CompletionGateway(Protocol):
    def ensure_configured(self) -> None: ...

    async def complete(self, endpoint_id: str, prompt: str) -> CompletionResult: ...


class QueryOrchestrator:
    """Owns the endpoint-state mapping. All mutation goes through the transitions below.

    Runs on a single event loop: transitions happen between await points, so no
    locking is needed. Upstream calls are never cancelled here; a caller that
    cancels its own task returns a still-pending slot to idle. A query in flight
    when ``clear_all`` runs writes its result into the slot once it settles, and
    overlapping queries for one endpoint resolve last-write-wins.
    """

    def __init__(self, registry: ModelRegistry, gateway: CompletionGateway):
        self._registry = registry
        self._gateway = gateway
        self._states: dict[str, EndpointState] = {endpoint_id: IDLE for endpoint_id in registry.ids()}

    @property
    def registry(self) -> ModelRegistry:
        return self._registry

    def list_endpoints(self) -> tuple[EndpointDescriptor, ...]:
        return self._registry.list()

    def state(self, endpoint_id: str) -> EndpointState:
        self._registry.resolve(endpoint_id)
        return self._states[endpoint_id]

    def snapshot(self) -> dict[str, EndpointState]:
        return {endpoint_id: self._states[endpoint_id] for endpoint_id in self._registry.ids()}

    def pending_count(self) -> int:
        return sum(1 for s in self._states.values() if s.status is QueryStatus.PENDING)

    @property
    def is_busy(self) -> bool:
        return self.pending_count() > 0

    def _check_prompt(self, prompt: str) -> None:
        if not prompt or not prompt.strip():
            raise ValueError("prompt must not be empty")

    async def query_one(self, endpoint_id: str, prompt: str) -> EndpointState:
        self._registry.resolve(endpoint_id)
        self._check_prompt(prompt)
        self._gateway.ensure_configured()
        return await self._run(endpoint_id, prompt)

    async def _run(self, endpoint_id: str, prompt: str) -> EndpointState:
        self._states[endpoint_id] = PENDING
        logger.info("query_start endpoint=%s", endpoint_id)
        try:
            result = await self._gateway.complete(endpoint_id, prompt)
        except asyncio.CancelledError:
            # Unsettled slot goes back to idle unless a newer query already owns it.
            if self._states[endpoint_id] is PENDING:
                self._states[endpoint_id] = IDLE
            raise
        except ConfigurationError:
            # Not a per-endpoint failure; surfaced to the caller instead.
            self._states[endpoint_id] = IDLE
            raise
        except Exception as e:
            logger.exception("query_failed endpoint=%s kind=unexpected", endpoint_id)
            final = EndpointState(status=QueryStatus.FAILED, error=redact_secrets(str(e)) or "Unknown error")
        else:
            if result.ok and result.outcome is not None:
                final = EndpointState(status=QueryStatus.SUCCEEDED, outcome=result.outcome)
                logger.info("query_done endpoint=%s latency_ms=%s", endpoint_id, result.outcome.latency_ms)
            else:
                message = result.error_text or "Request failed"
                final = EndpointState(status=QueryStatus.FAILED, error=message)
                logger.info("query_failed endpoint=%s error=%s", endpoint_id, message)

        self._states[endpoint_id] = final
        return final

    async def query_all(self, prompt: str) -> dict[str, EndpointState]:
        self._check_prompt(prompt)
        self._gateway.ensure_configured()
        endpoint_ids = self._registry.ids()
        results = await asyncio.gather(*(self._run(endpoint_id, prompt) for endpoint_id in endpoint_ids))
        # This round's terminal states; the live mapping may already differ (clear_all, overlapping queries).
        return dict(zip(endpoint_ids, results))

    def clear_all(self) -> None:
        for endpoint_id in self._registry.ids():
            self._states[endpoint_id] = IDLE
