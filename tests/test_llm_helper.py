"""Gemini client tests, with a fake SDK client injected (no network)."""

import asyncio
from types import SimpleNamespace

import httpx
import pytest
from google.genai import errors, types

from formulagen.config import Settings
from formulagen.llm_helper import (
    ConfigurationError,
    GeminiClient,
    MissingCredentialClient,
    ProviderError,
    RawCompletion,
    create_model_client,
)


class FakeModels:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []

    async def generate_content(self, *, model, contents, config=None):
        self.calls.append({'model': model, 'contents': contents})
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def fake_sdk(outcome):
    return SimpleNamespace(aio=SimpleNamespace(models=FakeModels(outcome)))


def gemini_reply(*parts):
    return types.GenerateContentResponse(candidates=[
        types.Candidate(content=types.Content(role='model', parts=list(parts)))
    ])


def complete_with(outcome, **kwargs):
    client = GeminiClient(api_key='secret-key', client=fake_sdk(outcome), **kwargs)
    return asyncio.run(client.complete('the prompt'))


def test_complete_returns_text_unmodified():
    sdk = fake_sdk(gemini_reply(
        types.Part(text='FORMULA:\n=A1\n'),
        types.Part(text='EXPLANATION:\n1. x  '),
    ))
    client = GeminiClient(api_key='secret-key', model='gemini-test', client=sdk)

    completion = asyncio.run(client.complete('the prompt'))

    assert completion == RawCompletion(text='FORMULA:\n=A1\nEXPLANATION:\n1. x  ')
    assert sdk.aio.models.calls == [{'model': 'gemini-test', 'contents': 'the prompt'}]


def test_thought_parts_are_skipped():
    reply = gemini_reply(
        types.Part(text='let me think', thought=True),
        types.Part(text='FORMULA:\n=A1'),
    )
    assert complete_with(reply).text == 'FORMULA:\n=A1'


def test_api_error_message_is_forwarded():
    error = errors.ClientError(400, {'error': {
        'code': 400, 'message': 'API key not valid.', 'status': 'INVALID_ARGUMENT',
    }})
    with pytest.raises(ProviderError, match='API key not valid.'):
        complete_with(error)


def test_server_error_is_provider_error():
    error = errors.ServerError(503, {'error': {
        'code': 503, 'message': 'The model is overloaded.', 'status': 'UNAVAILABLE',
    }})
    with pytest.raises(ProviderError, match='overloaded'):
        complete_with(error)


def test_timeout_is_provider_error():
    with pytest.raises(ProviderError, match='timed out'):
        complete_with(httpx.ReadTimeout('read timed out'))


def test_connection_error_is_provider_error():
    with pytest.raises(ProviderError, match='connection refused'):
        complete_with(httpx.ConnectError('connection refused'))


def test_blocked_prompt_is_provider_error():
    reply = types.GenerateContentResponse(
        prompt_feedback=types.GenerateContentResponsePromptFeedback(
            block_reason=types.BlockedReason.SAFETY,
        ),
    )
    with pytest.raises(ProviderError, match='SAFETY'):
        complete_with(reply)


@pytest.mark.parametrize('reply', [
    gemini_reply(types.Part(text=None)),
    gemini_reply(),
    types.GenerateContentResponse(candidates=[types.Candidate()]),
    SimpleNamespace(candidates=['not a candidate']),
    SimpleNamespace(candidates=[SimpleNamespace(content='not content')]),
    SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[SimpleNamespace(text=7)]))]),
    SimpleNamespace(candidates='garbage'),
    None,
])
def test_unusable_payload_is_provider_error(reply):
    with pytest.raises(ProviderError, match='no text'):
        complete_with(reply)


def test_blank_key_rejected_by_client():
    with pytest.raises(ConfigurationError):
        GeminiClient(api_key='   ')


def test_missing_credential_client_fails_without_network():
    with pytest.raises(ConfigurationError):
        asyncio.run(MissingCredentialClient().complete('p'))


def test_factory_without_key_returns_missing_credential_client():
    client = create_model_client(Settings(gemini_api_key=None))
    assert isinstance(client, MissingCredentialClient)

    client = create_model_client(Settings(gemini_api_key='  '))
    assert isinstance(client, MissingCredentialClient)


def test_factory_with_key_uses_settings():
    settings = Settings(gemini_api_key=' k ', gemini_model='gemini-x', request_timeout=5,
                        gemini_base_url='http://proxy.local/')
    sdk = fake_sdk(gemini_reply(types.Part(text='ok')))
    client = create_model_client(settings, client=sdk)

    assert isinstance(client, GeminiClient)
    assert client.api_key == 'k'
    assert client.model == 'gemini-x'
    assert client.timeout == 5
    assert client.base_url == 'http://proxy.local/'
    assert client.client is sdk


def test_settings_from_env():
    settings = Settings.from_env({
        'VITE_GEMINI_API_KEY': 'legacy-key',
        'GEMINI_TIMEOUT': '12.5',
        'COPY_RESET_SECONDS': '1',
        'CORS_ORIGINS': 'http://a.test, http://b.test',
    })
    assert settings.gemini_api_key == 'legacy-key'
    assert settings.request_timeout == 12.5
    assert settings.copy_reset_seconds == 1.0
    assert settings.cors_origins == ['http://a.test', 'http://b.test']
    assert settings.gemini_base_url is None

    assert Settings.from_env({}).has_credential is False
