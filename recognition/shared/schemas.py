"""
Shared schemas and utilities for sign recognition.
"""

from datetime import datetime, timezone
from typing import List, Optional, Literal, Iterable
from pydantic import BaseModel, Field, field_validator
import re


RecognitionSource = Literal["local", "remote", "remote-degraded"]


class ReferenceEntry(BaseModel):
    """One labeled feature vector in the matchable set."""
    id: str = Field(..., description="Stable identifier, unique per entry")
    label: str = Field(..., min_length=1, description="Sign/word this entry represents")
    features: List[float] = Field(..., description="Feature vector (values in 0-1)")
    confidence: float = Field(0.8, ge=0.0, le=1.0, description="Static reliability weight")

    model_config = {"frozen": True}

    @field_validator("features")
    @classmethod
    def validate_features(cls, v):
        """Every feature value must be normalized."""
        for value in v:
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"Feature values must be within [0, 1], got {value}")
        return v


class MatchResult(BaseModel):
    """Best local candidate for a query vector."""
    entry: ReferenceEntry
    similarity: float = Field(..., ge=0.0, le=1.0)
    combined_confidence: float = Field(..., ge=0.0, le=1.0)


class RecognitionResult(BaseModel):
    """Normalized answer of the recognition pipeline."""
    text: str = Field(..., min_length=1, description="Resolved sign label")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Combined confidence score")
    source: RecognitionSource = Field(..., description="Path that produced the result")
    timestamp: str = Field(default_factory=lambda: utc_timestamp(), description="ISO 8601 timestamp")
    gestures: List[str] = Field(default_factory=list, description="Recognized gesture labels")
    low_confidence: bool = Field(False, description="True if the label was forced by the fallback policy")


class DatasetUploadResult(BaseModel):
    """Outcome of a dataset upload."""
    success: bool
    dataset_id: Optional[str] = None
    entries: int = 0
    error: Optional[str] = None


class DatasetStats(BaseModel):
    """Summary of the current reference snapshot."""
    total_signs: int
    unique_labels: int
    average_confidence: float


def utc_timestamp() -> str:
    """Current UTC time in ISO 8601 format with a Z suffix."""
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z"


def sanitize_label(text: Optional[str]) -> str:
    """
    Clean free-form model output into a candidate label.

    Args:
        text: Raw text returned by the remote recognizer

    Returns:
        Lower-cased text without punctuation and with single spaces
        (e.g., "UNKNOWN!!" -> "unknown")
    """
    if not text:
        return ""
    clean = re.sub(r'[^\w\s]', '', text.lower())
    clean = re.sub(r'\s+', ' ', clean)
    return clean.strip()


def is_sentinel(label: str, sentinels: Iterable[str]) -> bool:
    """Check whether a sanitized label is empty or a reserved non-answer."""
    if not label:
        return True
    return label in {s.strip().lower() for s in sentinels}
