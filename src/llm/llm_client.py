import json
import logging
import os
from typing import Any, Optional

import httpx

from llm.providers.base import LLMProvider
from remember_me.errors import AssistantError, ErrorKind

logger = logging.getLogger(__name__)

LLM_PROVIDER = os.getenv("LLM_PROVIDER", "openai").strip().lower()


def build_provider(name: Optional[str] = None) -> LLMProvider:
    """Instantiate the provider named by ``name`` / LLM_PROVIDER."""
    name = (name or LLM_PROVIDER).lower()
    if name == "mock":
        from llm.providers.mock_provider import MockProvider

        return MockProvider()
    if name == "openai":
        from llm.providers.openai_provider import OpenAIProvider

        return OpenAIProvider()
    raise RuntimeError(f"Unknown LLM_PROVIDER {name!r}")


def parse_json_object(text: str) -> dict[str, Any]:
    """Parse the model answer as one JSON object, tolerating chatter around it."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        data = None
        if isinstance(text, str):
            start, end = text.find("{"), text.rfind("}")
            if start != -1 and end > start:
                try:
                    data = json.loads(text[start:end + 1])
                except ValueError:
                    data = None

    if not isinstance(data, dict):
        raise AssistantError(ErrorKind.MALFORMED_RESPONSE, "answer is not a JSON object")
    return data


class LLMClient:
    """Calls the configured provider and translates its failures.

    Every failure leaves this class as an AssistantError with a distinct kind,
    so callers never see raw httpx exceptions.
    """

    def __init__(self, provider: Optional[LLMProvider] = None):
        self._provider = provider

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            try:
                self._provider = build_provider()
            except RuntimeError as e:
                logger.error(f"LLM provider unavailable: {e}")
                raise AssistantError(ErrorKind.SERVICE_UNAVAILABLE, str(e)) from e
        return self._provider

    def complete(self, *, system: str, user: str) -> str:
        provider = self.provider
        try:
            text = provider.generate(system=system, user=user)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"LLM request to {getattr(provider, 'name', '?')} failed with HTTP {status}")
            if status in (401, 403):
                raise AssistantError(ErrorKind.AUTH_FAILURE, f"HTTP {status}") from e
            if status == 429:
                raise AssistantError(ErrorKind.RATE_LIMITED, f"HTTP {status}") from e
            raise AssistantError(ErrorKind.UPSTREAM_ERROR, f"HTTP {status}") from e
        except httpx.TransportError as e:
            logger.error(f"LLM request could not be sent: {e}")
            raise AssistantError(ErrorKind.NETWORK_ERROR, str(e)) from e
        except httpx.HTTPError as e:
            # undecodable body, redirect loop
            logger.error(f"LLM request failed: {e!r}")
            raise AssistantError(ErrorKind.UPSTREAM_ERROR, str(e)) from e
        except httpx.InvalidURL as e:
            logger.error(f"LLM endpoint misconfigured: {e}")
            raise AssistantError(ErrorKind.SERVICE_UNAVAILABLE, f"invalid endpoint URL: {e}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"LLM answer had an unexpected shape: {e}")
            raise AssistantError(ErrorKind.MALFORMED_RESPONSE, str(e)) from e

        if not text:
            raise AssistantError(ErrorKind.MALFORMED_RESPONSE, "empty answer")
        return text

    def complete_json(self, *, system: str, user: str) -> dict[str, Any]:
        text = self.complete(system=system, user=user)
        try:
            return parse_json_object(text)
        except AssistantError:
            logger.error(f"Unparsable LLM answer: {text[:200]!r}")
            raise
