"""
Google Gemini client holder shared by the recognizer and the assistant.

The underlying google-genai client is created lazily, exactly once, under
an asyncio lock. Replacing the API key tests the new key before swapping
the client in.
"""
import asyncio
import logging
from typing import Any, List, Optional, Union

from google import genai
from google.genai import types

from recognition.shared.config import GeminiSettings
from recognition.shared.errors import RecognizerNotConfiguredError

logger = logging.getLogger(__name__)

CONNECTION_TEST_PROMPT = "Test connection"


class GeminiClient:
    """Lazily initialized Gemini client with a swappable API key."""

    def __init__(self, settings: Optional[GeminiSettings] = None, api_key: Optional[str] = None):
        self.settings = settings or GeminiSettings()
        self._api_key = api_key or self.settings.gemini_api_key
        self._client: Optional[genai.Client] = None
        self._lock: Optional[asyncio.Lock] = None

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key

    def is_initialized(self) -> bool:
        return self._client is not None

    def _get_lock(self) -> asyncio.Lock:
        # Created on first use so it belongs to the serving event loop
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def get(self) -> genai.Client:
        """Return the client, creating it on first use."""
        if self._client is not None:
            return self._client

        async with self._get_lock():
            if self._client is None:
                if not self._api_key:
                    raise RecognizerNotConfiguredError("Gemini API key is not configured")
                self._client = genai.Client(api_key=self._api_key)
                logger.info("Gemini API initialized successfully")
        return self._client

    async def generate(self, model: str, contents: Union[str, List[Any]]) -> str:
        """
        Run one generate_content call and return the response text.

        Args:
            model: Gemini model name
            contents: Prompt text or a list of parts

        Returns:
            Response text, stripped ("" when the model returned no text)
        """
        client = await self.get()
        response = await client.aio.models.generate_content(
            model=model,
            contents=contents,
            config=types.GenerateContentConfig(
                temperature=self.settings.temperature,
                max_output_tokens=self.settings.max_output_tokens,
            )
        )
        return (response.text or "").strip()

    async def generate_with_image(self, model: str, prompt: str, image_bytes: bytes,
                                  mime_type: str = "image/jpeg") -> str:
        """Run a multimodal call with one inline image followed by the prompt."""
        contents = [
            types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
            prompt,
        ]
        return await self.generate(model, contents)

    def configure(self, api_key: str):
        """Use a trusted key (e.g. a stored override); the client is rebuilt on next use."""
        if api_key and api_key != self._api_key:
            self._api_key = api_key
            self._client = None

    async def update_api_key(self, api_key: str) -> bool:
        """
        Swap in a new API key after a successful test call.

        Args:
            api_key: Candidate API key

        Returns:
            True if the key works and is now active
        """
        try:
            candidate = genai.Client(api_key=api_key)
            await candidate.aio.models.generate_content(
                model=self.settings.flash_model,
                contents=CONNECTION_TEST_PROMPT,
            )
        except Exception as e:
            logger.error(f"Failed to update API key: {e}")
            return False

        async with self._get_lock():
            self._api_key = api_key
            self._client = candidate
        logger.info("Gemini API key updated")
        return True
