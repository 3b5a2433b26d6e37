import sys

import pytest

from backend.src.engine.openrouter import CompletionOutcome
from backend.src.engine.orchestrator import EndpointState, QueryStatus
from backend.src.engine.registry import DEFAULT_ENDPOINTS, EndpointDescriptor, ModelRegistry
from backend.src.scripts import compare
from backend.src.scripts.compare import render_state


_ENDPOINT = EndpointDescriptor(id="openai/gpt-5.1", name="GPT-5.1", provider="OpenAI", color="#10B981")


def test_render_success_shows_stats_and_actual_model():
    outcome = CompletionOutcome(
        endpoint_id=_ENDPOINT.id,
        content="Love is...",
        latency_ms=840,
        resolved_model_id="openai/gpt-5.1-2025-11-13",
        prompt_tokens=11,
        completion_tokens=42,
        total_tokens=53,
    )
    text = render_state(_ENDPOINT, EndpointState(status=QueryStatus.SUCCEEDED, outcome=outcome))
    assert "GPT-5.1 (OpenAI)" in text
    assert "840ms | 11 tokens in | 42 tokens out" in text
    assert "Actual model: openai/gpt-5.1-2025-11-13" in text
    assert text.endswith("Love is...")


def test_render_failure_and_idle():
    assert "Error: Rate limited" in render_state(_ENDPOINT, EndpointState(status=QueryStatus.FAILED, error="Rate limited"))
    assert "(not queried)" in render_state(_ENDPOINT, EndpointState())


def test_main_exits_2_on_missing_api_key(monkeypatch, capsys):
    import backend.src.config as config

    monkeypatch.setattr(config, "OPENROUTER_API_KEY", None)
    monkeypatch.setattr(sys, "argv", ["compare", "hello"])

    with pytest.raises(SystemExit) as exc:
        compare.main()

    assert exc.value.code == 2
    assert "Configuration error: OPENROUTER_API_KEY is not set" in capsys.readouterr().err


def test_main_rejects_unknown_model(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["compare", "hello", "--model", "nope/model"])

    with pytest.raises(SystemExit) as exc:
        compare.main()

    assert exc.value.code == 2
    assert "Unknown endpoint: nope/model" in capsys.readouterr().err


def test_main_rejects_duplicate_model(monkeypatch, capsys):
    monkeypatch.setattr(
        sys, "argv", ["compare", "hello", "--model", "openai/gpt-5.1", "--model", "openai/gpt-5.1"]
    )
    monkeypatch.setattr(compare, "get_default_registry", lambda: ModelRegistry(DEFAULT_ENDPOINTS))

    with pytest.raises(SystemExit) as exc:
        compare.main()

    assert exc.value.code == 2
    assert "Duplicate endpoint id" in capsys.readouterr().err
