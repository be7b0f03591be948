"""Runs one recording-complete event through the pipeline.

Received -> Polled -> Transcribed -> Persisted -> Deleted -> Acknowledged,
with Aborted reachable from every state after Received. ``process`` never
raises: failures are reported on the returned ``PipelineResult`` and the
gateway acknowledges the webhook either way.

Deletion of the source recording runs once the run reaches Persisted and
only when the event carries a recording SID. A failed deletion is logged and
leaves the outcome unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from common.config import AppConfig
from common.errors import (
    MissingRecordingUrl,
    PersistenceFailure,
    PipelineError,
    TranscriptionFailed,
)
from common.schemas import AssembledTranscript, PipelineOutcome, PipelineState, RecordingEvent
from recording_service.assembler import assemble
from recording_service.deletion import RecordingDeleter
from recording_service.notifier import TranscriptMailer
from recording_service.poller import RecordingPoller
from recording_service.store import TranscriptStore
from recording_service.transcriber import DeepgramTranscriber

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    outcome: PipelineOutcome = PipelineOutcome.completed
    states: list[PipelineState] = field(default_factory=lambda: [PipelineState.received])
    error: Optional[Exception] = None
    transcript: Optional[AssembledTranscript] = None
    recording_deleted: Optional[bool] = None

    @property
    def state(self) -> PipelineState:
        return self.states[-1]

    def advance(self, state: PipelineState) -> None:
        self.states.append(state)


class RecordingPipeline:
    def __init__(
        self,
        poller: RecordingPoller,
        transcriber: DeepgramTranscriber,
        deleter: RecordingDeleter,
        store: TranscriptStore | None = None,
        mailer: TranscriptMailer | None = None,
        label_with_caller: bool = True,
    ) -> None:
        self._poller = poller
        self._transcriber = transcriber
        self._deleter = deleter
        self._store = store
        self._mailer = mailer
        self._label_with_caller = label_with_caller

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        client: httpx.AsyncClient,
        store: TranscriptStore | None = None,
    ) -> RecordingPipeline:
        gateway = config.gateway
        return cls(
            poller=RecordingPoller(config.twilio, client),
            transcriber=DeepgramTranscriber(config.deepgram, client),
            deleter=RecordingDeleter(config.twilio, client),
            store=store if gateway.persist_transcripts else None,
            mailer=TranscriptMailer(config.sendgrid, client) if gateway.email_transcripts else None,
            label_with_caller=gateway.label_with_caller,
        )

    async def process(self, event: RecordingEvent) -> PipelineResult:
        result = PipelineResult()
        try:
            await self._run(event, result)
            result.advance(PipelineState.acknowledged)
            logger.info("Processing complete for call %s", event.call_sid or event.from_number)
        except PipelineError as exc:
            result.outcome = exc.outcome
            result.error = exc
            result.advance(PipelineState.aborted)
            logger.error("Pipeline aborted (%s) for call %s: %s", exc.outcome.value, event.call_sid, exc)
        except Exception as exc:
            result.outcome = PipelineOutcome.unexpected_error
            result.error = exc
            result.advance(PipelineState.aborted)
            logger.exception("Unexpected error processing call %s", event.call_sid)
        return result

    async def _run(self, event: RecordingEvent, result: PipelineResult) -> None:
        if not event.recording_url:
            raise MissingRecordingUrl()

        logger.info("Processing recording %s from %s", event.recording_url, event.from_number)
        await self._poller.wait_until_available(event.recording_url)
        result.advance(PipelineState.polled)

        raw = await self._transcriber.transcribe(event.recording_url)
        if raw is None:
            raise TranscriptionFailed("No transcription returned")
        label = event.from_number if self._label_with_caller else None
        transcript = assemble(raw, speaker_label=label)
        if not transcript.text:
            raise TranscriptionFailed("Transcription contained no sentences")
        result.transcript = transcript
        result.advance(PipelineState.transcribed)
        logger.info(
            "Transcript assembled: %d speakers, confidence %.3f",
            transcript.speaker_count,
            transcript.average_word_confidence,
        )

        if self._store is not None:
            try:
                await self._store.add(event.from_number, event.duration_seconds, transcript.text)
            except Exception as exc:
                raise PersistenceFailure(f"Could not store transcript: {exc}") from exc
        if self._mailer is not None:
            await self._mailer.send(transcript, event.from_number, event.duration_seconds)
        result.advance(PipelineState.persisted)

        if event.recording_sid:
            result.recording_deleted = await self._deleter.delete_source_recording(event.recording_sid)
            if result.recording_deleted:
                result.advance(PipelineState.deleted)
