from .client import LLMClient, OpenAILLMClient
from .capabilities import (
    ExtractionCapability,
    TextGenerationCapability,
    LLMExtractionCapability,
    LLMTextGenerationCapability,
)

__all__ = [
    "LLMClient",
    "OpenAILLMClient",
    "ExtractionCapability",
    "TextGenerationCapability",
    "LLMExtractionCapability",
    "LLMTextGenerationCapability",
]
