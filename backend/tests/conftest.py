import os

# Ensure config reads these during import in tests.
os.environ.setdefault("OPENROUTER_API_KEY", "sk-or-v1-test-key-0000000000")
os.environ.setdefault("ENV", "test")

import pytest

from backend.tests.fakes import FakeGateway


@pytest.fixture
def fake_gateway():
    return FakeGateway()
