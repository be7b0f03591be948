"""Error taxonomy for the recording pipeline.

Pipeline errors never leave the orchestrator: each one is recorded on the
``PipelineResult`` under the outcome it maps to. ``MissingConfiguration`` is
the exception, it is raised at startup or on the management surface and is
allowed to surface as a 5xx.
"""

from __future__ import annotations

from common.schemas import PipelineOutcome


class PipelineError(Exception):
    outcome: PipelineOutcome = PipelineOutcome.unexpected_error


class MissingRecordingUrl(PipelineError):
    outcome = PipelineOutcome.missing_recording_url

    def __init__(self) -> None:
        super().__init__("No recording URL provided")


class RecordingUnavailable(PipelineError):
    outcome = PipelineOutcome.recording_unavailable

    def __init__(self, url: str, attempts: int) -> None:
        super().__init__(f"Recording not available after {attempts} attempts: {url}")
        self.url = url
        self.attempts = attempts


class TranscriptionFailed(PipelineError):
    outcome = PipelineOutcome.transcription_failed


class PersistenceFailure(PipelineError):
    outcome = PipelineOutcome.persistence_failed


class NotificationFailure(PipelineError):
    outcome = PipelineOutcome.notification_failed


class DeletionFailure(PipelineError):
    # Logged only; never changes the outcome of a run.
    outcome = PipelineOutcome.completed


class MissingConfiguration(RuntimeError):
    def __init__(self, names: list[str]) -> None:
        super().__init__(f"Missing required configuration: {', '.join(names)}")
        self.names = names
