"""
Assistant Models - Pydantic schemas for the assistant operations.
"""
from typing import List
from pydantic import BaseModel, Field


class SpeechTranscriptionResult(BaseModel):
    """Cleaned-up speech transcription."""
    text: str = Field(..., description="Corrected transcription")
    confidence: float = Field(..., ge=0.0, le=1.0)


class Keyframe(BaseModel):
    """One gesture in a sign animation timeline."""
    time: int = Field(..., ge=0, description="Offset in milliseconds")
    gesture: str = Field(..., description="Gesture name")
    description: str = Field("", description="Human readable instruction")


class SpeechToSignResult(BaseModel):
    """Gesture sequence for a spoken or typed sentence."""
    animations: List[str] = Field(..., description="Ordered gesture names")
    duration: int = Field(..., ge=0, description="Total duration in milliseconds")
    keyframes: List[Keyframe] = Field(default_factory=list)


class ChatReply(BaseModel):
    """Assistant chat reply."""
    reply: str
