# formulagen/runner.py
import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .handlers import MalformedResponse, ParsedResult, interpret
from .llm_helper import ConfigurationError, ModelClient, ProviderError
from .prompts import build_prompt

logger = logging.getLogger(__name__)

CONFIGURATION_ERROR_MESSAGE = 'API key not configured. Please add your Gemini API key to continue.'
PARSE_ERROR_MESSAGE = 'Failed to parse AI response correctly'
GENERIC_ERROR_MESSAGE = 'An error occurred while generating the Google Sheets formula'


class UIStatus(str, Enum):
    IDLE = 'idle'
    LOADING = 'loading'
    SUCCESS = 'success'
    FAILURE = 'failure'


class CopyUnavailable(RuntimeError):
    """Copy was requested while there is no formula to copy."""


def provider_error_message(err: ProviderError) -> str:
    return f'Failed to generate formula: {err}'


class FormulaSession:
    """
    Interaction state for one browser session.

    Owns the idle/loading/success/failure state, the current result and the
    ``copied`` flag. At most one model call is in flight at a time; a submit
    while loading is ignored.

    Args:
        client: Model client used for every submit.
        copy_reset_seconds: How long ``copied`` stays true after a copy.
        clipboard: Optional write-only sink that receives the copied formula.
    """

    def __init__(
        self,
        client: ModelClient,
        copy_reset_seconds: float = 2.0,
        clipboard: Optional[Callable[[str], Any]] = None,
    ):
        self.client = client
        self.copy_reset_seconds = copy_reset_seconds
        self.clipboard = clipboard

        self.status = UIStatus.IDLE
        self.result: Optional[ParsedResult] = None
        self.error: Optional[str] = None
        self.copied = False
        self._copy_reset: Optional[asyncio.TimerHandle] = None

    @property
    def loading(self) -> bool:
        return self.status is UIStatus.LOADING

    async def submit(self, description: str) -> bool:
        """
        Generate a formula for ``description``.

        Returns False without doing anything when the description is blank or
        a request is already in flight; otherwise returns True once the
        session has settled in SUCCESS or FAILURE.
        """
        if not description or not description.strip():
            logger.debug("Ignoring blank description")
            return False
        if self.loading:
            logger.info("Ignoring submit while a request is in flight")
            return False

        self.status = UIStatus.LOADING
        self.result = None
        self.error = None
        self._cancel_copy_reset()
        self.copied = False

        try:
            completion = await self.client.complete(build_prompt(description))
            result = interpret(completion)
        except ConfigurationError as e:
            logger.warning("Model client is not configured: %s", e)
            self._fail(CONFIGURATION_ERROR_MESSAGE)
        except ProviderError as e:
            logger.warning("Model call failed: %s", e)
            self._fail(provider_error_message(e))
        except MalformedResponse as e:
            logger.warning("Could not parse model response: %s", e)
            self._fail(PARSE_ERROR_MESSAGE)
        except Exception:
            logger.exception("Unexpected error while generating formula")
            self._fail(GENERIC_ERROR_MESSAGE)
        else:
            self.result = result
            self.status = UIStatus.SUCCESS
            logger.info("Generated formula with %d explanation steps", len(result.steps))

        return True

    def _fail(self, message: str) -> None:
        self.result = None
        self.error = message
        self.status = UIStatus.FAILURE

    def copy(self) -> str:
        """
        Copy the current formula and raise the ``copied`` flag.

        Must be called from the event loop. A second copy before the reset
        fires restarts the delay.
        """
        if self.status is not UIStatus.SUCCESS or self.result is None:
            raise CopyUnavailable('There is no formula to copy')

        formula = self.result.formula
        if self.clipboard is not None:
            self.clipboard(formula)

        self.copied = True
        self._cancel_copy_reset()
        loop = asyncio.get_running_loop()
        self._copy_reset = loop.call_later(self.copy_reset_seconds, self._reset_copied)
        return formula

    def _reset_copied(self) -> None:
        self.copied = False
        self._copy_reset = None

    def _cancel_copy_reset(self) -> None:
        if self._copy_reset is not None:
            self._copy_reset.cancel()
            self._copy_reset = None

    def close(self) -> None:
        """Drop any pending reset; the session is going away."""
        self._cancel_copy_reset()

    def snapshot(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'formula': self.result.formula if self.result else None,
            'explanation': self.result.explanation if self.result else None,
            'steps': self.result.steps if self.result else [],
            'error': self.error,
            'copied': self.copied,
        }
