"""
Gemini Sign Recognition Adapter

Slow-path recognizer that asks a vision-capable Gemini model which sign
a frame shows.
"""
import logging
from typing import List, Optional, Union

from shared.genai_client import GeminiClient
from ..shared.base import BaseRemoteRecognizer
from ..dataset.builtin import COMMON_SIGNS

logger = logging.getLogger(__name__)


def build_sign_prompt(vocabulary: Optional[List[str]] = None) -> str:
    """Instructional prompt enumerating the recognizable vocabulary."""
    signs = ", ".join(vocabulary or COMMON_SIGNS)
    return f"""Analyze this image and identify the American Sign Language (ASL) gesture being performed.

You are an expert in ASL recognition. Look carefully at:
1. Hand position and shape
2. Finger placement and orientation
3. Movement direction (if visible)
4. Overall gesture formation

Common ASL signs to recognize: {signs}.

Provide ONLY the most likely word or phrase that this sign represents. Be confident and specific. Return just the word/phrase without any explanations or uncertainty."""


def build_text_prompt(description: str, vocabulary: Optional[List[str]] = None) -> str:
    """Prompt for recognizing a sign from a written description."""
    signs = ", ".join(vocabulary or COMMON_SIGNS)
    return f"""A user describes an American Sign Language (ASL) gesture: "{description}"

Common ASL signs to recognize: {signs}.

Provide ONLY the most likely word or phrase that this sign represents. Return just the word/phrase without any explanations."""


class GeminiRemoteRecognizer(BaseRemoteRecognizer):
    """Gemini-backed remote recognizer."""

    name = "gemini"

    def __init__(self, client: GeminiClient, model: Optional[str] = None):
        self.client = client
        self.model = model or client.settings.flash_model
        logger.info(f"GeminiRemoteRecognizer initialized with model {self.model}")

    async def recognize_image(self, image_bytes: bytes, prompt: str) -> str:
        logger.info(f"Sending {len(image_bytes)} image bytes to {self.model}")
        return await self.client.generate_with_image(self.model, prompt, image_bytes)

    async def recognize_text(self, text: str, prompt: str) -> str:
        # The text prompt already embeds the description
        return await self.client.generate(self.model, prompt or build_text_prompt(text))


class MockRemoteRecognizer(BaseRemoteRecognizer):
    """
    Scripted recognizer for development and testing.

    Each call pops the next scripted response; exceptions in the script are
    raised instead of returned. When the script runs out the default reply
    is used.
    """

    name = "mock"

    def __init__(self, responses: Optional[List[Union[str, Exception]]] = None, default: str = "hello"):
        self.responses = list(responses or [])
        self.default = default
        self.calls: List[dict] = []

    async def _next(self, kind: str, payload, prompt: str) -> str:
        self.calls.append({"kind": kind, "payload": payload, "prompt": prompt})
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        return response

    async def recognize_image(self, image_bytes: bytes, prompt: str) -> str:
        return await self._next("image", image_bytes, prompt)

    async def recognize_text(self, text: str, prompt: str) -> str:
        return await self._next("text", text, prompt)
