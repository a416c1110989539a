from __future__ import annotations

from abc import ABC, abstractmethod


class LLMProvider(ABC):
    @abstractmethod
    async def generate(self, prompt: str, temperature: float | None = None) -> str:
        """Return the completion text for *prompt*.

        Implementations raise ``GenerationError`` subclasses; they never
        retry.
        """

    @abstractmethod
    def name(self) -> str:
        ...
