from __future__ import annotations

import logging

import httpx

from common.config import DeepgramSettings
from common.schemas import RawTranscription

logger = logging.getLogger(__name__)

TRANSCRIBE_OPTIONS = {
    "diarize": True,
    "detect_language": True,
    "smart_format": True,
    "punctuate": True,
    "utterances": True,
}


class DeepgramTranscriber:
    def __init__(self, settings: DeepgramSettings, client: httpx.AsyncClient) -> None:
        self._settings = settings
        self._client = client

    async def transcribe(self, recording_url: str) -> RawTranscription | None:
        """Submit a recording URL for diarized transcription.

        Returns None instead of raising when the provider rejects the request
        or the response cannot be read; callers treat that as "no transcript".
        """
        payload = {"url": recording_url, "model": self._settings.stt_model, **TRANSCRIBE_OPTIONS}
        headers = {"Authorization": f"Token {self._settings.api_key}"}

        try:
            resp = await self._client.post(
                self._settings.listen_url,
                json=payload,
                headers=headers,
                timeout=self._settings.timeout_s,
            )
        except httpx.HTTPError:
            logger.exception("Deepgram request failed for %s", recording_url)
            return None

        if not resp.is_success:
            logger.error("Deepgram API error (%d): %s", resp.status_code, resp.text)
            return None

        try:
            return RawTranscription.model_validate(resp.json())
        except ValueError:
            logger.exception("Deepgram returned an unreadable response")
            return None
