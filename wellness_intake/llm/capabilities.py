# wellness_intake/llm/capabilities.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from wellness_intake.llm.client import LLMClient


class ExtractionCapability(ABC):
    """
    Text-in / text-out extraction. No session awareness: the caller
    assembles the instruction and parses whatever comes back.
    """

    @abstractmethod
    def invoke(self, system_instruction: str, user_text: str) -> str:
        ...


class TextGenerationCapability(ABC):
    """
    Text generation primed with a system instruction and prior turns.

    turns: ordered list of {"role": "user"|"assistant", "content": "..."}
    """

    @abstractmethod
    def invoke(self, system_instruction: str, turns: Sequence[Dict[str, str]]) -> str:
        ...


class LLMExtractionCapability(ExtractionCapability):
    def __init__(
        self,
        llm_client: LLMClient,
        temperature: float = 0.1,
        max_tokens: Optional[int] = 1000,
    ):
        self.llm_client = llm_client
        self.temperature = temperature
        self.max_tokens = max_tokens

    def invoke(self, system_instruction: str, user_text: str) -> str:
        messages = [
            {"role": "system", "content": system_instruction},
            {"role": "user", "content": user_text},
        ]
        return self.llm_client.chat(
            messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )


class LLMTextGenerationCapability(TextGenerationCapability):
    def __init__(
        self,
        llm_client: LLMClient,
        temperature: float = 0.7,
        max_tokens: Optional[int] = 300,
    ):
        self.llm_client = llm_client
        self.temperature = temperature
        self.max_tokens = max_tokens

    def invoke(self, system_instruction: str, turns: Sequence[Dict[str, str]]) -> str:
        messages: List[Dict[str, str]] = [{"role": "system", "content": system_instruction}]
        for turn in turns:
            role = "user" if turn["role"] == "user" else "assistant"
            messages.append({"role": role, "content": turn["content"]})

        return self.llm_client.chat(
            messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
