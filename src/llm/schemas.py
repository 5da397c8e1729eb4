from __future__ import annotations
from typing import Any, Optional, List
from pydantic import BaseModel, ConfigDict, field_validator

# Localized or loose labels the model sometimes answers with
INTENT_ALIASES = {
    "criar_evento": "create_event",
    "event": "create_event",
    "lembrete": "reminder",
    "tarefa": "task",
    "fazer_pergunta": "ask_question",
    "question": "ask_question",
    "pergunta": "ask_question",
    "comando": "command",
    "conversa": "chat",
    "conversation": "chat",
}

SENTIMENT_ALIASES = {
    "positivo": "positive",
    "negativo": "negative",
    "neutro": "neutral",
}

PRIORITY_ALIASES = {
    "alta": "high",
    "média": "medium",
    "media": "medium",
    "baixa": "low",
}

CATEGORY_ALIASES = {
    "saúde": "health",
    "saude": "health",
    "trabalho": "work",
    "pessoal": "personal",
    "estudo": "study",
    "compras": "shopping",
    "geral": "general",
}


class ExtractionResponse(BaseModel):
    """The model's JSON answer, loosely typed; normalization happens afterwards."""

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    date: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    location: Optional[str] = None
    participants: Optional[List[str]] = None
    entities: Optional[List[str]] = None
    keywords: Optional[List[str]] = None
    intent: Optional[str] = None
    sentiment: Optional[str] = None

    @field_validator("participants", "entities", "keywords", mode="before")
    @classmethod
    def as_string_list(cls, v: Any) -> Optional[List[str]]:
        if v is None:
            return None
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, list):
            return None
        items = [str(x).strip() for x in v if x is not None and str(x).strip()]
        return items or None

    @field_validator(
        "title", "date", "description", "category", "priority", "location", "intent",
        "sentiment", mode="before",
    )
    @classmethod
    def as_optional_text(cls, v: Any) -> Optional[str]:
        if v is None or isinstance(v, (dict, list)):
            return None
        text = str(v).strip()
        return text or None
