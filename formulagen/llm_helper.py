# formulagen/llm_helper.py
# Thin adapter over the Gemini SDK (google-genai).
# The credential is checked once, when the client is built at startup.

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from .config import DEFAULT_GEMINI_MODEL, Settings

logger = logging.getLogger(__name__)


class ModelClientError(Exception):
    """Base class for failures of the model call."""


class ConfigurationError(ModelClientError):
    """No usable API credential was configured."""


class ProviderError(ModelClientError):
    """The upstream model call failed; the message is the provider's own."""


@dataclass(frozen=True)
class RawCompletion:
    text: str


class ModelClient(Protocol):
    async def complete(self, prompt: str) -> RawCompletion:
        ...


class MissingCredentialClient:
    """Stands in for the real client when no API key is configured."""

    def __init__(self, message: str = 'GEMINI_API_KEY is not set'):
        self.message = message

    async def complete(self, prompt: str) -> RawCompletion:
        raise ConfigurationError(self.message)


class GeminiClient:
    """
    Sends a single text prompt to a Gemini model and returns its completion.

    Args:
        api_key: Gemini API key; must be non-blank.
        model: Model name, e.g. "gemini-2.0-flash".
        timeout: Request timeout in seconds.
        base_url: Optional API root, for proxies.
        client: Optional prebuilt ``genai.Client`` (used by tests).
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_GEMINI_MODEL,
        timeout: float = 30.0,
        base_url: Optional[str] = None,
        client: Optional[Any] = None,
    ):
        if not api_key or not api_key.strip():
            raise ConfigurationError('GEMINI_API_KEY is not set')
        self.api_key = api_key.strip()
        self.model = model
        self.timeout = timeout
        self.base_url = base_url
        self._client = client

    @property
    def client(self):
        if self._client is None:
            # the SDK takes its timeout in milliseconds
            options = {'timeout': int(self.timeout * 1000)}
            if self.base_url:
                options['base_url'] = self.base_url
            self._client = genai.Client(api_key=self.api_key, http_options=types.HttpOptions(**options))
        return self._client

    async def complete(self, prompt: str) -> RawCompletion:
        logger.info("Requesting completion from %s", self.model)
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
            )
        except genai_errors.APIError as e:
            message = e.message or str(e)
            logger.warning("Model call failed with status %s: %s", e.code, message)
            raise ProviderError(message) from e
        except httpx.TimeoutException as e:
            raise ProviderError(f'Request to {self.model} timed out') from e
        except httpx.HTTPError as e:
            raise ProviderError(str(e) or type(e).__name__) from e

        text = extract_text(response)
        if text is None:
            reason = block_reason(response)
            raise ProviderError(f'Model returned no text (blocked: {reason})' if reason
                                else 'Model returned no text')

        logger.info("Received completion of %d chars", len(text))
        return RawCompletion(text=text)


def extract_text(response) -> Optional[str]:
    """Join the text parts of the first candidate, or None if there are none."""
    candidates = getattr(response, 'candidates', None)
    if not isinstance(candidates, (list, tuple)) or not candidates:
        return None
    content = getattr(candidates[0], 'content', None)
    parts = getattr(content, 'parts', None)
    if not isinstance(parts, (list, tuple)):
        return None
    # thought parts are model reasoning, not the answer
    texts = [
        part.text for part in parts
        if isinstance(getattr(part, 'text', None), str) and not getattr(part, 'thought', False)
    ]
    if not texts:
        return None
    return ''.join(texts)


def block_reason(response) -> Optional[str]:
    feedback = getattr(response, 'prompt_feedback', None)
    reason = getattr(feedback, 'block_reason', None)
    if reason is None:
        return None
    return getattr(reason, 'value', None) or str(reason)


def create_model_client(settings: Settings, client: Optional[Any] = None):
    """
    Build the model client for the app.

    A missing credential does not stop startup; every request then fails
    with ConfigurationError instead.
    """
    if not settings.has_credential:
        logger.warning("GEMINI_API_KEY is not configured; formula requests will fail")
        return MissingCredentialClient()

    return GeminiClient(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        timeout=settings.request_timeout,
        base_url=settings.gemini_base_url,
        client=client,
    )
