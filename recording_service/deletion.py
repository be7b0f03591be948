from __future__ import annotations

import logging

import httpx

from common.config import TwilioSettings
from common.errors import DeletionFailure

logger = logging.getLogger(__name__)


class RecordingDeleter:
    """Best-effort removal of the source audio at Twilio."""

    def __init__(self, settings: TwilioSettings, client: httpx.AsyncClient) -> None:
        self._settings = settings
        self._client = client

    def recording_url(self, recording_sid: str) -> str:
        return (
            f"{self._settings.api_base_url}/Accounts/{self._settings.account_sid}"
            f"/Recordings/{recording_sid}.json"
        )

    async def delete_source_recording(self, recording_sid: str) -> bool:
        """Delete the recording; log and return False on any failure, never raise."""
        try:
            resp = await self._client.delete(
                self.recording_url(recording_sid),
                auth=(self._settings.account_sid, self._settings.auth_token),
                timeout=self._settings.timeout_s,
            )
            if not resp.is_success:
                raise DeletionFailure(f"Twilio returned {resp.status_code}: {resp.text}")
        except (httpx.HTTPError, DeletionFailure) as exc:
            logger.error("Failed to delete recording %s: %s", recording_sid, exc)
            return False

        logger.info("Recording %s deleted", recording_sid)
        return True
