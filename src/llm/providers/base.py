from __future__ import annotations
from abc import ABC, abstractmethod

class LLMProvider(ABC):
    name = "base"

    @abstractmethod
    def generate(self, *, system: str, user: str) -> str:
        """
        Return the raw answer to one extraction request as TEXT.

        Transport failures propagate as httpx exceptions; LLMClient maps them
        onto AssistantError kinds.
        """
        raise NotImplementedError
