from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Inbound webhook: telephony provider -> gateway ---

class RecordingEvent(BaseModel):
    """Form fields posted by Twilio when a recording finishes."""

    model_config = ConfigDict(populate_by_name=True)

    from_number: str = Field("Unknown", alias="From")
    to_number: Optional[str] = Field(None, alias="To")
    call_sid: Optional[str] = Field(None, alias="CallSid")
    recording_url: Optional[str] = Field(None, alias="RecordingUrl")
    recording_sid: Optional[str] = Field(None, alias="RecordingSid")
    duration_seconds: str = Field("0", alias="RecordingDuration")


# --- Speech-to-text provider response (Deepgram pre-recorded shape) ---

class Word(BaseModel):
    word: str = ""
    start: float = 0.0
    end: float = 0.0
    confidence: Optional[float] = None
    speaker: Optional[int] = None
    punctuated_word: Optional[str] = None


class Sentence(BaseModel):
    text: str = ""
    start: float = 0.0
    end: float = 0.0


class Paragraph(BaseModel):
    sentences: list[Sentence] = []
    speaker: Optional[int] = None
    start: float = 0.0
    end: float = 0.0


class Paragraphs(BaseModel):
    transcript: str = ""
    paragraphs: list[Paragraph] = []


class Alternative(BaseModel):
    transcript: str = ""
    confidence: Optional[float] = None
    words: list[Word] = []
    paragraphs: Optional[Paragraphs] = None


class Channel(BaseModel):
    alternatives: list[Alternative] = []
    detected_language: Optional[str] = None


class Results(BaseModel):
    channels: list[Channel] = []


class RawTranscription(BaseModel):
    metadata: dict = {}
    results: Results = Results()


# --- Assembled output ---

class AssembledTranscript(BaseModel):
    text: str = ""
    html: str = ""
    average_word_confidence: float = 0.0
    uncertain_word_fraction: float = 0.0
    speaker_count: int = 0


class TranscriptRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    from_number: str
    duration_seconds: str
    transcript: str


# --- Pipeline bookkeeping ---

class PipelineState(str, Enum):
    received = "received"
    polled = "polled"
    transcribed = "transcribed"
    persisted = "persisted"
    deleted = "deleted"
    acknowledged = "acknowledged"
    aborted = "aborted"


class PipelineOutcome(str, Enum):
    completed = "completed"
    missing_recording_url = "missing_recording_url"
    recording_unavailable = "recording_unavailable"
    transcription_failed = "transcription_failed"
    persistence_failed = "persistence_failed"
    notification_failed = "notification_failed"
    unexpected_error = "unexpected_error"
