"""
LLM Adapter for the assistant features.

Provides abstraction layer for LLM providers with a mock implementation
for testing and development. Handles prompt formatting and response
processing for speech clean-up, text-to-sign sequencing, chat and dataset
processing. Every operation returns a usable fallback instead of raising.
"""
import csv
import io
import json
import logging
import re
import time
from typing import Dict, Any, Optional, List, Union
from abc import ABC, abstractmethod

from shared.genai_client import GeminiClient
from recognition.dataset.features import extract_image_features
from ..models import SpeechTranscriptionResult, SpeechToSignResult, Keyframe

logger = logging.getLogger(__name__)

GESTURE_DURATION_MS = 1500
DEFAULT_CHAT_REPLY = "I'm here to help with sign language translation and learning. How can I assist you today?"
CSV_PROMPT_LIMIT = 3000
DEFAULT_ENTRY_CONFIDENCE = 0.8


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers."""

    name: str = "base"

    @abstractmethod
    async def generate(self, prompt: str, tier: str = "flash") -> Dict[str, Any]:
        """
        Generate text for a prompt.

        Args:
            prompt: Full prompt text
            tier: "flash" for fast calls, "pro" for heavier reasoning

        Returns:
            Dict with text, provider, model and generation_time
        """
        pass

    async def test_connection(self) -> bool:
        """Check that the provider answers at all."""
        result = await self.generate("Test connection")
        return bool(result.get("text"))


class MockLLMProvider(BaseLLMProvider):
    """
    Mock LLM provider for testing and development.

    Scripted responses are returned in order (exceptions are raised);
    afterwards the default reply is used.
    """

    name = "mock"

    def __init__(self, responses: Optional[List[Union[str, Exception]]] = None,
                 default: str = ""):
        self.responses = list(responses or [])
        self.default = default
        self.prompts: List[str] = []

    async def generate(self, prompt: str, tier: str = "flash") -> Dict[str, Any]:
        start_time = time.time()
        self.prompts.append(prompt)

        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response

        return {
            'text': response,
            'provider': self.name,
            'model': f'mock-{tier}',
            'generation_time': time.time() - start_time
        }

    async def test_connection(self) -> bool:
        return True


class GeminiProvider(BaseLLMProvider):
    """Google Gemini provider."""

    name = "gemini"

    def __init__(self, client: GeminiClient):
        self.client = client

    def _model_for(self, tier: str) -> str:
        settings = self.client.settings
        return settings.pro_model if tier == "pro" else settings.flash_model

    async def generate(self, prompt: str, tier: str = "flash") -> Dict[str, Any]:
        start_time = time.time()
        model = self._model_for(tier)
        text = await self.client.generate(model, prompt)
        return {
            'text': text,
            'provider': self.name,
            'model': model,
            'generation_time': time.time() - start_time
        }


def build_transcription_prompt(audio_text: str) -> str:
    return f"""You are a speech transcription expert. Clean up and improve this speech input: "{audio_text}"

Instructions:
1. Fix any speech-to-text errors, typos, or unclear words
2. Provide a clear, properly formatted version
3. If the input seems incomplete, provide the most likely complete phrase
4. Maintain the original meaning and intent
5. Return only the cleaned, corrected text

Text to process: {audio_text}

Corrected text:"""


def build_speech_to_sign_prompt(text: str) -> str:
    return f"""Convert this text to American Sign Language (ASL) gestures: "{text}"

Instructions:
1. Break down the text into individual ASL signs
2. Use proper ASL grammar and structure
3. Include fingerspelling for names or words without direct signs
4. Provide a logical sequence of gestures
5. Return only a comma-separated list of gesture names

Examples:
- "hello world" → "hello, world"
- "thank you very much" → "thank, you, very, much"
- "how are you" → "how, you"
- "I love you" → "I, love, you"

Text to convert: {text}

ASL gesture sequence:"""


def build_chat_prompt(message: str) -> str:
    return f"""You are an expert AI assistant for a sign language translator app. You help users with sign language learning, app usage, and accessibility questions.

User message: "{message}"

Instructions:
1. Provide helpful, accurate, and professional responses
2. If asked about sign language, provide educational and practical information
3. If they need help with the app, guide them step by step
4. Keep responses conversational but informative (2-4 sentences)
5. Be supportive and encouraging about sign language learning
6. If asked about technical issues, provide clear solutions
7. Always be positive and helpful

Respond naturally and professionally:"""


def build_dataset_prompt(csv_data: str) -> str:
    return f"""Process this CSV data for sign language dataset training:

{csv_data[:CSV_PROMPT_LIMIT]}...

Instructions:
1. Parse the CSV data and extract sign language labels and features
2. Create structured dataset entries for machine learning
3. Each entry must have: id, label, features (array of 5-10 numbers), confidence
4. Generate realistic feature vectors that represent hand/gesture characteristics
5. Ensure labels are clean ASL sign words
6. Return as a clean JSON array

Format each entry exactly like this:
{{
  "id": "sign_1",
  "label": "hello",
  "features": [0.8, 0.9, 0.7, 0.85, 0.92],
  "confidence": 0.95
}}

Return only the JSON array without any explanations:"""


def extract_json_array(text: str) -> Optional[List[Any]]:
    """First JSON array embedded in text, or None."""
    json_match = re.search(r'\[[\s\S]*\]', text or "")
    if not json_match:
        return None
    try:
        parsed = json.loads(json_match.group(0))
    except json.JSONDecodeError as e:
        logger.error(f"JSON parse error: {e}")
        return None
    return parsed if isinstance(parsed, list) else None


def parse_csv_entries(csv_data: str, feature_length: int = 5) -> List[Dict[str, Any]]:
    """
    Build dataset items straight from CSV rows.

    The first column is the label. Remaining columns are used as features
    when they are all numbers in [0, 1]; otherwise features are derived
    from the label.
    """
    rows = [row for row in csv.reader(io.StringIO(csv_data)) if any(cell.strip() for cell in row)]
    if len(rows) < 2:
        return []

    items = []
    for index, row in enumerate(rows[1:]):
        label = row[0].strip().lower() if row else ""
        label = label or f"sign_{index}"

        features = None
        try:
            values = [float(cell) for cell in row[1:] if cell.strip()]
            if values and all(0.0 <= v <= 1.0 for v in values):
                features = values
        except ValueError:
            pass

        items.append({
            "id": f"processed_{index}",
            "label": label,
            "features": features or extract_image_features(label, feature_length),
            "confidence": DEFAULT_ENTRY_CONFIDENCE,
        })
    return items


class LLMAdapter:
    """Main adapter class for the assistant operations."""

    def __init__(self, provider: Optional[BaseLLMProvider] = None):
        """Initialize LLM adapter with a provider."""
        self.provider = provider or MockLLMProvider()
        self.generation_stats = {
            'total_generations': 0,
            'failed_generations': 0,
            'average_generation_time': 0.0
        }

    async def _generate(self, prompt: str, tier: str = "flash") -> str:
        try:
            result = await self.provider.generate(prompt, tier=tier)
        except Exception:
            self.generation_stats['failed_generations'] += 1
            raise
        self._update_stats(result)
        return (result.get('text') or "").strip()

    async def transcribe_speech(self, audio_text: str) -> SpeechTranscriptionResult:
        """
        Clean up raw speech-to-text output.

        Args:
            audio_text: Raw transcription from the device

        Returns:
            Corrected text; the original text when the provider fails
        """
        try:
            text = await self._generate(build_transcription_prompt(audio_text))
            return SpeechTranscriptionResult(text=text or audio_text, confidence=0.92)
        except Exception as e:
            logger.error(f"Speech transcription error: {e}")
            return SpeechTranscriptionResult(text=audio_text, confidence=0.75)

    async def speech_to_sign(self, text: str) -> SpeechToSignResult:
        """
        Turn a sentence into an ordered sequence of sign gestures.

        Args:
            text: Sentence to sign

        Returns:
            SpeechToSignResult with one keyframe per gesture
        """
        try:
            gesture_text = await self._generate(build_speech_to_sign_prompt(text), tier="pro")
            animations = [g.strip().lower() for g in gesture_text.split(',') if g.strip()]
        except Exception as e:
            logger.error(f"Speech to sign error: {e}")
            animations = []

        if not animations:
            animations = [text.lower()]

        return SpeechToSignResult(
            animations=animations,
            duration=len(animations) * GESTURE_DURATION_MS,
            keyframes=[
                Keyframe(time=index * GESTURE_DURATION_MS, gesture=anim, description=f"Perform {anim} sign")
                for index, anim in enumerate(animations)
            ]
        )

    async def chat_response(self, message: str) -> str:
        """Assistant reply for a chat message."""
        try:
            reply = await self._generate(build_chat_prompt(message), tier="pro")
            return reply or DEFAULT_CHAT_REPLY
        except Exception as e:
            logger.error(f"Chat response error: {e}")
            return DEFAULT_CHAT_REPLY

    async def process_dataset(self, csv_data: str, feature_length: int = 5) -> List[Dict[str, Any]]:
        """
        Turn an uploaded CSV file into dataset items.

        Args:
            csv_data: CSV text, first row is a header
            feature_length: Feature count used when features must be derived

        Returns:
            List of {id, label, features, confidence} dicts; [] on failure
        """
        try:
            text = await self._generate(build_dataset_prompt(csv_data), tier="pro")
        except Exception as e:
            logger.error(f"Dataset processing error: {e}")
            return []

        parsed = extract_json_array(text)
        if parsed:
            return [item for item in parsed if isinstance(item, dict)]

        logger.warning("No JSON array in dataset response, parsing CSV directly")
        try:
            return parse_csv_entries(csv_data, feature_length)
        except csv.Error as e:
            logger.error(f"CSV parse error: {e}")
            return []

    async def test_connection(self) -> bool:
        """Check provider connectivity."""
        try:
            return await self.provider.test_connection()
        except Exception as e:
            logger.error(f"Connection test failed: {e}")
            return False

    def _update_stats(self, result: Dict[str, Any]):
        """Update generation statistics."""
        self.generation_stats['total_generations'] += 1

        old_avg = self.generation_stats['average_generation_time']
        count = self.generation_stats['total_generations']
        new_time = result.get('generation_time', 0.0)

        self.generation_stats['average_generation_time'] = (old_avg * (count - 1) + new_time) / count

    def get_stats(self) -> Dict[str, Any]:
        """Get generation statistics."""
        return self.generation_stats.copy()
