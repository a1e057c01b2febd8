"""
Sign recognition pipeline.

Runs the local feature matcher first and falls back to the remote
recognizer when no confident local match exists. Callers always receive a
usable RecognitionResult: remote failures, empty answers and sentinel
answers are converted into a degraded result carrying the fallback label.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from .shared.base import BaseRemoteRecognizer
from .shared.config import RecognitionSettings
from .shared.schemas import RecognitionResult, MatchResult, sanitize_label, is_sentinel
from .dataset.features import extract_image_features
from .dataset.matcher import match
from .dataset.reference_set import ReferenceSet
from .remote.recognizer import build_sign_prompt, build_text_prompt

logger = logging.getLogger(__name__)

Payload = Union[bytes, str]


@dataclass
class PipelineContext:
    """Everything the pipeline needs, passed in explicitly."""
    recognizer: BaseRemoteRecognizer
    reference_set: ReferenceSet = field(default_factory=ReferenceSet)
    settings: RecognitionSettings = field(default_factory=RecognitionSettings)


class RecognitionPipeline:
    """Local-match-then-remote-fallback recognizer."""

    def __init__(self, context: PipelineContext):
        self.context = context
        self.settings = context.settings

    async def recognize(self, query_features: Optional[Sequence[float]], payload: Payload) -> RecognitionResult:
        """
        Recognize a sign.

        Args:
            query_features: Feature vector for the local match; derived from
                the payload when None
            payload: Image bytes or a text description for the remote call

        Returns:
            RecognitionResult; never raises for remote failures
        """
        if query_features is None:
            query_features = extract_image_features(payload, self.settings.feature_length)

        candidate = self.match_locally(query_features)
        if candidate is not None:
            return self._local_result(candidate)

        logger.info("Dataset match not confident enough, using remote recognizer...")
        return await self._remote_result(payload)

    def match_locally(self, query_features: Sequence[float]) -> Optional[MatchResult]:
        """Best local match if it clears the acceptance threshold, else None."""
        candidate = match(query_features, self.context.reference_set.snapshot())
        if candidate is None:
            return None

        if candidate.combined_confidence <= self.settings.acceptance_threshold:
            logger.debug(
                f"Best local match '{candidate.entry.label}' below threshold "
                f"({candidate.combined_confidence:.3f} <= {self.settings.acceptance_threshold})"
            )
            return None

        if is_sentinel(candidate.entry.label, self.settings.sentinel_labels):
            logger.debug(f"Local match '{candidate.entry.label}' is a sentinel label, deferring to remote")
            return None

        return candidate

    def _local_result(self, candidate: MatchResult) -> RecognitionResult:
        label = candidate.entry.label
        logger.info(f"Local match: {label} (confidence={candidate.combined_confidence:.3f})")
        return RecognitionResult(
            text=label,
            confidence=candidate.combined_confidence,
            source="local",
            gestures=[label],
        )

    async def _remote_result(self, payload: Payload) -> RecognitionResult:
        try:
            raw_text = await self.context.recognizer.recognize(payload, self._prompt_for(payload))
        except Exception as e:
            logger.error(f"Remote sign recognition error: {e}")
            return self._degraded_result()

        label = sanitize_label(raw_text)
        if is_sentinel(label, self.settings.sentinel_labels):
            logger.warning(f"Remote recognizer returned no usable label ({raw_text!r}), using fallback")
            return self._degraded_result()

        logger.info(f"Remote match: {label}")
        return RecognitionResult(
            text=label,
            confidence=self.settings.remote_confidence,
            source="remote",
            gestures=[label],
        )

    def _degraded_result(self) -> RecognitionResult:
        label = self.settings.fallback_label
        return RecognitionResult(
            text=label,
            confidence=self.settings.degraded_confidence,
            source="remote-degraded",
            gestures=[label],
            low_confidence=True,
        )

    @staticmethod
    def _prompt_for(payload: Payload) -> str:
        if isinstance(payload, str):
            return build_text_prompt(payload)
        return build_sign_prompt()
