from __future__ import annotations

import html
import logging

import httpx

from common.config import SendGridSettings
from common.errors import NotificationFailure
from common.schemas import AssembledTranscript

logger = logging.getLogger(__name__)

FOOTER = "Original recording has been deleted for privacy"


def build_subject(from_number: str) -> str:
    return f"Call recording from {from_number}"


def build_text_body(transcript: AssembledTranscript, from_number: str, duration_seconds: str) -> str:
    return f"""\
Call Recording

From: {from_number}
Duration: {duration_seconds} seconds
Speakers: {transcript.speaker_count or 1}
Confidence: {transcript.average_word_confidence * 100:.1f}%

Transcript:
{transcript.text or "No transcript available"}

---
{FOOTER}"""


def build_html_body(transcript: AssembledTranscript, from_number: str, duration_seconds: str) -> str:
    from_number = html.escape(from_number)
    duration_seconds = html.escape(duration_seconds)
    subject = build_subject(from_number)
    return f"""\
<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>{subject}</title>
</head>
<body>
  <h1>Call Recording</h1>
  <h2>Call Details</h2>
  <ul>
    <li><strong>From:</strong> {from_number}</li>
    <li><strong>Duration:</strong> {duration_seconds} seconds</li>
    <li><strong>Speakers:</strong> {transcript.speaker_count or 1}</li>
    <li><strong>Confidence:</strong> {transcript.average_word_confidence * 100:.1f}%</li>
  </ul>
  <h2>Transcript</h2>
  <div>
    {transcript.html or "<p>No transcript available</p>"}
  </div>
  <hr>
  <p><small>{FOOTER}</small></p>
</body>
</html>"""


class TranscriptMailer:
    def __init__(self, settings: SendGridSettings, client: httpx.AsyncClient) -> None:
        self._settings = settings
        self._client = client

    def build_message(self, transcript: AssembledTranscript, from_number: str, duration_seconds: str) -> dict:
        return {
            "personalizations": [{"to": [{"email": self._settings.to_email}]}],
            "from": {"email": self._settings.from_email, "name": self._settings.from_name},
            "subject": build_subject(from_number),
            "content": [
                {"type": "text/plain", "value": build_text_body(transcript, from_number, duration_seconds)},
                {"type": "text/html", "value": build_html_body(transcript, from_number, duration_seconds)},
            ],
        }

    async def send(self, transcript: AssembledTranscript, from_number: str, duration_seconds: str) -> None:
        message = self.build_message(transcript, from_number, duration_seconds)
        headers = {"Authorization": f"Bearer {self._settings.api_key}"}
        try:
            resp = await self._client.post(
                self._settings.send_url,
                json=message,
                headers=headers,
                timeout=self._settings.timeout_s,
            )
        except httpx.HTTPError as exc:
            raise NotificationFailure(f"SendGrid request failed: {exc}") from exc

        if not resp.is_success:
            logger.error("SendGrid error (%d): %s", resp.status_code, resp.text)
            raise NotificationFailure(f"SendGrid returned {resp.status_code}")
        logger.info("Transcript email sent for call from %s", from_number)
