from __future__ import annotations

from dataclasses import dataclass, field

from pydantic_settings import BaseSettings

from common.errors import MissingConfiguration


class TwilioSettings(BaseSettings):
    account_sid: str = ""
    auth_token: str = ""
    api_base_url: str = "https://api.twilio.com/2010-04-01"
    poll_max_attempts: int = 10
    poll_interval_s: float = 1.0
    timeout_s: float = 15.0

    model_config = {"env_prefix": "TWILIO_"}


class DeepgramSettings(BaseSettings):
    api_key: str = ""
    listen_url: str = "https://api.deepgram.com/v1/listen"
    stt_model: str = "nova-2-general"
    timeout_s: float = 120.0

    model_config = {"env_prefix": "DEEPGRAM_"}


class SendGridSettings(BaseSettings):
    api_key: str = ""
    send_url: str = "https://api.sendgrid.com/v3/mail/send"
    from_email: str = ""
    from_name: str = "Call Transcriber"
    to_email: str = ""
    timeout_s: float = 15.0

    model_config = {"env_prefix": "SENDGRID_"}


class GatewaySettings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8000
    public_base_url: str = ""
    database_url: str = "sqlite:///./transcripts.db"
    admin_token: str = ""
    persist_transcripts: bool = True
    email_transcripts: bool = False
    label_with_caller: bool = True
    greeting: str = "Your call is being recorded. Please leave your message after the beep."
    farewell: str = "Thank you for your message. Goodbye."
    max_recording_s: int = 600
    silence_timeout_s: int = 10

    model_config = {"env_prefix": "GATEWAY_"}


def require(settings: BaseSettings, *fields: str) -> None:
    """Raise MissingConfiguration naming every unset field as its env var."""
    prefix = settings.model_config.get("env_prefix", "")
    missing = [f"{prefix}{name}".upper() for name in fields if not getattr(settings, name)]
    if missing:
        raise MissingConfiguration(missing)


@dataclass
class AppConfig:
    gateway: GatewaySettings = field(default_factory=GatewaySettings)
    twilio: TwilioSettings = field(default_factory=TwilioSettings)
    deepgram: DeepgramSettings = field(default_factory=DeepgramSettings)
    sendgrid: SendGridSettings = field(default_factory=SendGridSettings)

    @classmethod
    def from_env(cls) -> AppConfig:
        return cls()

    def check_pipeline(self) -> None:
        missing: list[str] = []
        checks = [
            (self.twilio, ("account_sid", "auth_token")),
            (self.deepgram, ("api_key",)),
        ]
        if self.gateway.email_transcripts:
            checks.append((self.sendgrid, ("api_key", "from_email", "to_email")))
        for settings, fields in checks:
            try:
                require(settings, *fields)
            except MissingConfiguration as exc:
                missing.extend(exc.names)
        if missing:
            raise MissingConfiguration(missing)
