"""Shared fixtures: fake model clients and an in-process app."""

from __future__ import annotations

import asyncio

import pytest

from formulagen.config import Settings
from formulagen.llm_helper import RawCompletion

SUMIF_COMPLETION = (
    'FORMULA:\n=SUMIF(B:B,"yes",A:A)\n\n'
    'EXPLANATION:\n1. Checks each row in column B.\n'
    '2. Sums corresponding A values where B is yes.'
)


class FakeClient:
    """Returns canned completions (or raises canned errors) in order."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts = []

    async def complete(self, prompt):
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return RawCompletion(text=reply)


class GatedClient:
    """Blocks every call until ``release`` is called."""

    def __init__(self, reply=SUMIF_COMPLETION):
        self.reply = reply
        self.calls = 0
        self.gate = asyncio.Event()

    def release(self):
        self.gate.set()

    async def complete(self, prompt):
        self.calls += 1
        await self.gate.wait()
        return RawCompletion(text=self.reply)


@pytest.fixture()
def settings():
    return Settings(gemini_api_key='test-key', copy_reset_seconds=0.05, max_sessions=3)


@pytest.fixture()
def fake_client():
    return FakeClient(SUMIF_COMPLETION)


@pytest.fixture()
def client(settings, fake_client):
    """FastAPI TestClient bound to a fake model client."""
    from fastapi.testclient import TestClient

    from formulagen.main import create_app

    with TestClient(create_app(settings, client=fake_client)) as test_client:
        yield test_client
