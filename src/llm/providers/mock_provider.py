from __future__ import annotations
import json
from datetime import datetime, timezone

from llm.prompts import REFERENCE_MARKER
from llm.providers.base import LLMProvider
from remember_me.lexicon import get_lexicon


def _reference_time(system: str) -> datetime:
    for line in system.splitlines():
        if line.startswith(REFERENCE_MARKER):
            try:
                return datetime.fromisoformat(line[len(REFERENCE_MARKER):].strip())
            except ValueError:
                break
    return datetime.now(timezone.utc)


class MockProvider(LLMProvider):
    name = "mock"

    def generate(self, *, system: str, user: str) -> str:
        """
        Offline stand-in: answers with what the local heuristics understand,
        in the same JSON shape the hosted model returns.
        """
        from extraction.attribute_extractor import parse_locally

        candidate = parse_locally(user, _reference_time(system), get_lexicon())
        payload = candidate.model_dump(mode="json", exclude_none=True)
        payload.setdefault("date", None)
        payload["keywords"] = [w for w in user.lower().split() if len(w) > 3][:5]
        return json.dumps(payload)
