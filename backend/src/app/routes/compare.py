from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..schemas.compare import (
    ChatError,
    ChatRequest,
    ChatResponse,
    Endpoint,
    EndpointStateOut,
    ModelsResponse,
    QueryRequest,
    StateResponse,
    Usage,
)
from ...engine.errors import UpstreamError
from ...engine.openrouter import OpenRouterGateway
from ...engine.orchestrator import QueryOrchestrator


router = APIRouter()


def get_orchestrator(request: Request) -> QueryOrchestrator:
    return request.app.state.orchestrator


def get_gateway(request: Request) -> OpenRouterGateway:
    return request.app.state.gateway


def _state_response(orchestrator: QueryOrchestrator) -> StateResponse:
    return StateResponse(
        pending=orchestrator.pending_count(),
        states=[EndpointStateOut.from_state(endpoint_id, s) for endpoint_id, s in orchestrator.snapshot().items()],
    )


@router.get("/api/chat", response_model=ModelsResponse)
async def list_chat_models(orchestrator: QueryOrchestrator = Depends(get_orchestrator)):
    """List the queryable models."""
    return ModelsResponse(models=[Endpoint.from_descriptor(e) for e in orchestrator.list_endpoints()])


@router.post("/api/chat", response_model=ChatResponse, responses={400: {"model": ChatError}})
async def chat(
    request: ChatRequest,
    gateway: OpenRouterGateway = Depends(get_gateway),
):
    """
    Query a single model once, without touching the comparison state.
    Upstream failures are returned with the upstream status code.
    """
    gateway.ensure_configured()
    endpoint = gateway.registry.resolve(request.model_id)
    result = await gateway.complete(endpoint.id, request.prompt)

    if not result.ok or result.outcome is None:
        error = result.error
        status_code = error.status_code if isinstance(error, UpstreamError) else 500
        details = error.details if isinstance(error, UpstreamError) else None
        body = ChatError(error=result.error_text or "Request failed", details=details)
        return JSONResponse(status_code=status_code, content=body.model_dump())

    outcome = result.outcome
    usage = None
    if outcome.total_tokens is not None or outcome.prompt_tokens is not None or outcome.completion_tokens is not None:
        usage = Usage(
            prompt_tokens=outcome.prompt_tokens,
            completion_tokens=outcome.completion_tokens,
            total_tokens=outcome.total_tokens,
        )
    return ChatResponse(
        model=Endpoint.from_descriptor(endpoint),
        response=outcome.content,
        response_time=outcome.latency_ms,
        usage=usage,
        raw_model=outcome.resolved_model_id,
    )


@router.get("/api/models", response_model=list[Endpoint])
async def list_models(orchestrator: QueryOrchestrator = Depends(get_orchestrator)):
    """List endpoints in display order."""
    return [Endpoint.from_descriptor(e) for e in orchestrator.list_endpoints()]


@router.get("/api/state", response_model=StateResponse)
async def get_state(orchestrator: QueryOrchestrator = Depends(get_orchestrator)):
    """Current state of every endpoint."""
    return _state_response(orchestrator)


@router.post("/api/query", response_model=StateResponse)
async def query_all(
    request: QueryRequest,
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    """Query every endpoint concurrently; returns once all have settled."""
    await orchestrator.query_all(request.prompt)
    return _state_response(orchestrator)


@router.post("/api/query/{endpoint_id:path}", response_model=EndpointStateOut)
async def query_one(
    endpoint_id: str,
    request: QueryRequest,
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    """Query one endpoint and return its settled state."""
    final = await orchestrator.query_one(endpoint_id, request.prompt)
    return EndpointStateOut.from_state(endpoint_id, final)


@router.post("/api/clear", response_model=StateResponse)
async def clear_all(orchestrator: QueryOrchestrator = Depends(get_orchestrator)):
    """Reset every endpoint to idle. In-flight queries keep running."""
    orchestrator.clear_all()
    return _state_response(orchestrator)
