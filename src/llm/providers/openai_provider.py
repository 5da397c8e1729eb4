from __future__ import annotations
import os
from typing import Optional

import httpx
from .base import LLMProvider

LLM_TIMEOUT_S = float(os.getenv("LLM_TIMEOUT_S", "30"))
MAX_ANSWER_TOKENS = 800


class OpenAIProvider(LLMProvider):
    """Chat-completions endpoint in JSON mode (OpenAI or any compatible server)."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = (api_key or os.getenv("OPENAI_API_KEY", "")).strip()
        self.model = (model or os.getenv("OPENAI_MODEL", "gpt-4o")).strip()
        self.base_url = (base_url or os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")).strip().rstrip("/")
        self._transport = transport

        if not self.api_key:
            raise RuntimeError("OPENAI_API_KEY is missing")

    def generate(self, *, system: str, user: str) -> str:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "response_format": {"type": "json_object"},
            "temperature": 0.4,
            "max_tokens": MAX_ANSWER_TOKENS,
        }

        with httpx.Client(timeout=LLM_TIMEOUT_S, transport=self._transport) as client:
            r = client.post(f"{self.base_url}/chat/completions", headers=headers, json=payload)
            r.raise_for_status()
            data = r.json()

        # a missing choice or message surfaces as KeyError/IndexError (malformed answer)
        return data["choices"][0]["message"]["content"] or ""
