"""Shared fixtures."""

import tempfile
from pathlib import Path

import pytest

from medgenius.providers import ChatProvider, CompletionRequest, CompletionResponse
from medgenius.storage.database import Database


@pytest.fixture
async def db():
    """Create a temporary database for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        database = Database(db_path)
        await database.connect()
        yield database
        await database.disconnect()


class ScriptedProvider(ChatProvider):
    """Returns queued outputs in order and records every request."""

    def __init__(self, *outputs: str | Exception):
        self.outputs = list(outputs)
        self.requests: list[CompletionRequest] = []

    @property
    def name(self) -> str:
        return "scripted"

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        self.requests.append(request)
        output = self.outputs.pop(0)
        if isinstance(output, Exception):
            raise output
        return CompletionResponse(content=output, model=request.model, provider=self.name)
