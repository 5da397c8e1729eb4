from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime, tzinfo
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from extraction.attribute_extractor import parse_locally
from llm.llm_client import LLMClient
from llm.prompts import build_system_prompt
from llm.schemas import (
    CATEGORY_ALIASES,
    INTENT_ALIASES,
    PRIORITY_ALIASES,
    SENTIMENT_ALIASES,
    ExtractionResponse,
)
from remember_me.errors import AssistantError, ErrorKind
from remember_me.lexicon import Lexicon, get_lexicon
from remember_me.models import INTENTS, PRIORITIES, SENTIMENTS, ExtractedCandidate

logger = logging.getLogger(__name__)

LOCAL_FALLBACK_ENABLED = os.getenv("LOCAL_FALLBACK_ENABLED", "true").lower() in {"1", "true", "yes"}

# Failures that mean "the service is not there", as opposed to "it answered badly"
FALLBACK_KINDS = frozenset({ErrorKind.SERVICE_UNAVAILABLE, ErrorKind.NETWORK_ERROR})


def parse_model_date(raw: Optional[str], tz: Optional[tzinfo]) -> Optional[datetime]:
    """ISO-8601 string to datetime; None when absent or unparsable.

    Naive values are read in ``tz`` (the reference instant's zone).
    """
    if not raw:
        return None
    value = raw.strip()
    if value[-1:] in ("Z", "z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        logger.warning(f"Discarding unparsable date from model: {raw!r}")
        return None
    if parsed.tzinfo is None and tz is not None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def _vocab(value: Optional[str], aliases: Dict[str, str], allowed: Tuple[str, ...], field: str):
    if value is None:
        return None
    key = value.strip().lower()
    key = aliases.get(key, key)
    if key in allowed:
        return key
    logger.warning(f"Dropping unknown {field} {value!r} from model answer")
    return None


def normalize_response(payload: Dict[str, Any], now: datetime) -> ExtractedCandidate:
    """Validate and normalize the model's JSON into an ExtractedCandidate."""
    try:
        raw = ExtractionResponse.model_validate(payload)
    except ValidationError as e:
        raise AssistantError(ErrorKind.MALFORMED_RESPONSE, str(e)) from e

    if not raw.title:
        raise AssistantError(ErrorKind.MISSING_TITLE, "model answer has no title")

    category = None
    if raw.category:
        category = raw.category.lower()
        category = CATEGORY_ALIASES.get(category, category)

    return ExtractedCandidate(
        title=raw.title,
        date=parse_model_date(raw.date, now.tzinfo),
        description=raw.description,
        category=category,
        priority=_vocab(raw.priority, PRIORITY_ALIASES, PRIORITIES, "priority"),
        location=raw.location,
        participants=raw.participants,
        entities=raw.entities,
        keywords=raw.keywords,
        intent=_vocab(raw.intent, INTENT_ALIASES, INTENTS, "intent"),
        sentiment=_vocab(raw.sentiment, SENTIMENT_ALIASES, SENTIMENTS, "sentiment"),
    )


class EventExtractor:
    """Remote extraction through the language model, with a local fallback path."""

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        lexicon: Optional[Lexicon] = None,
        local_fallback: bool = LOCAL_FALLBACK_ENABLED,
    ):
        self.llm = llm_client or LLMClient()
        self.lexicon = lexicon or get_lexicon()
        self.local_fallback = local_fallback

    def extract(self, text: str, now: datetime) -> ExtractedCandidate:
        if not isinstance(text, str) or not text.strip():
            raise AssistantError(ErrorKind.INVALID_INPUT, "empty message")

        payload = self.llm.complete_json(system=build_system_prompt(now), user=text.strip())
        candidate = normalize_response(payload, now)
        logger.info(f"Model extracted {candidate.title!r} (intent={candidate.intent})")
        return candidate

    def extract_with_fallback(self, text: str, now: datetime) -> Tuple[ExtractedCandidate, str]:
        """Returns the candidate and the path that produced it ("remote" or "local")."""
        try:
            return self.extract(text, now), "remote"
        except AssistantError as e:
            if not self.local_fallback or e.kind not in FALLBACK_KINDS:
                raise
            logger.warning(f"Extraction service unavailable ({e.kind.value}), parsing locally")
            return parse_locally(text.strip(), now, self.lexicon), "local"

    async def extract_async(
        self, text: str, now: datetime, cancel: Optional[asyncio.Event] = None
    ) -> Tuple[ExtractedCandidate, str]:
        """Run the blocking extraction in a worker thread.

        When ``cancel`` is set before the answer arrives, raises CANCELLED; the
        late answer is discarded.
        """
        work = asyncio.ensure_future(asyncio.to_thread(self.extract_with_fallback, text, now))
        if cancel is None:
            return await work

        waiter = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()

        if work in done:
            return work.result()

        work.cancel()
        logger.info("Extraction cancelled by caller")
        raise AssistantError(ErrorKind.CANCELLED, "extraction cancelled")
