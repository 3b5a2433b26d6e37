from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import httpx

from backend.src import config
from backend.src.engine.errors import ConfigurationError
from backend.src.engine.openrouter import OpenRouterGateway
from backend.src.engine.orchestrator import EndpointState, QueryOrchestrator, QueryStatus
from backend.src.engine.registry import EndpointDescriptor, ModelRegistry, get_default_registry


def render_state(endpoint: EndpointDescriptor, state: EndpointState) -> str:
    lines = [f"== {endpoint.name} ({endpoint.provider})  [{endpoint.id}]"]
    if state.status is QueryStatus.FAILED:
        lines.append(f"Error: {state.error}")
    elif state.status is QueryStatus.SUCCEEDED and state.outcome is not None:
        outcome = state.outcome
        stats = [f"{outcome.latency_ms}ms"]
        if outcome.prompt_tokens is not None:
            stats.append(f"{outcome.prompt_tokens} tokens in")
        if outcome.completion_tokens is not None:
            stats.append(f"{outcome.completion_tokens} tokens out")
        lines.append(" | ".join(stats))
        if outcome.resolved_model_id != endpoint.id:
            lines.append(f"Actual model: {outcome.resolved_model_id}")
        lines.append("")
        lines.append(outcome.content)
    elif state.status is QueryStatus.PENDING:
        lines.append("Waiting for response...")
    else:
        lines.append("(not queried)")
    return "\n".join(lines)


def _select(registry: ModelRegistry, model_ids: list[str] | None) -> ModelRegistry:
    if not model_ids:
        return registry
    return ModelRegistry(registry.resolve(m) for m in model_ids)


async def _run(prompt: str, registry: ModelRegistry) -> int:
    async with httpx.AsyncClient(timeout=httpx.Timeout(config.OPENROUTER_TIMEOUT_SECONDS)) as client:
        orchestrator = QueryOrchestrator(registry, OpenRouterGateway(registry, client=client))
        try:
            states = await orchestrator.query_all(prompt)
        except ConfigurationError as e:
            print(f"Configuration error: {e.message}", file=sys.stderr)
            return 2

    print("\n\n".join(render_state(endpoint, states[endpoint.id]) for endpoint in registry.list()))
    return 0 if all(s.status is QueryStatus.SUCCEEDED for s in states.values()) else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="Send one prompt to several models and print the responses side by side.")
    parser.add_argument("prompt")
    parser.add_argument("--model", action="append", dest="models", help="Endpoint id to query (repeatable; default: all).")
    args = parser.parse_args()

    if not args.prompt.strip():
        parser.error("prompt must not be empty")

    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    try:
        registry = _select(get_default_registry(), args.models)
    except (KeyError, ValueError) as e:
        parser.error(str(e))
    sys.exit(asyncio.run(_run(args.prompt, registry)))


if __name__ == "__main__":
    main()
