from __future__ import annotations

from xml.sax.saxutils import escape, quoteattr

from common.config import GatewaySettings

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
MEDIA_TYPE = "text/xml"


def empty_response() -> str:
    return f"{XML_DECLARATION}<Response></Response>"


def record_response(callback_url: str, settings: GatewaySettings) -> str:
    """TwiML that greets the caller, records with a beep, and posts the result to callback_url."""
    return f"""\
{XML_DECLARATION}
<Response>
  <Say>{escape(settings.greeting)}</Say>
  <Record
    timeout="{settings.silence_timeout_s}"
    maxLength="{settings.max_recording_s}"
    playBeep="true"
    recordingStatusCallback={quoteattr(callback_url)}
    recordingStatusCallbackMethod="POST"
    transcribe="false"
  />
  <Say>{escape(settings.farewell)}</Say>
</Response>"""
