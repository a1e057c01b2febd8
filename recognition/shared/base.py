"""
Base classes for remote recognition adapters.
"""
from abc import ABC, abstractmethod


class BaseRemoteRecognizer(ABC):
    """Abstract base class for the slow-path sign recognizers."""

    name: str = "remote"

    @abstractmethod
    async def recognize_image(self, image_bytes: bytes, prompt: str) -> str:
        """
        Ask the remote model which sign an image shows.

        Args:
            image_bytes: Raw JPEG/PNG image data
            prompt: Instructional prompt listing the vocabulary

        Returns:
            Raw, unsanitized model text
        """
        pass

    @abstractmethod
    async def recognize_text(self, text: str, prompt: str) -> str:
        """
        Ask the remote model which sign a text description refers to.

        Args:
            text: Free-form description of the gesture
            prompt: Instructional prompt listing the vocabulary

        Returns:
            Raw, unsanitized model text
        """
        pass

    async def recognize(self, payload, prompt: str) -> str:
        """Dispatch on payload type: bytes go to the vision call, text to the text call."""
        if isinstance(payload, (bytes, bytearray)):
            return await self.recognize_image(bytes(payload), prompt)
        if isinstance(payload, str):
            return await self.recognize_text(payload, prompt)
        raise TypeError(f"Unsupported payload type: {type(payload).__name__}")
