import httpx
import pytest

from common.config import AppConfig, DeepgramSettings, GatewaySettings, SendGridSettings, TwilioSettings
from recording_service.store import TranscriptStore
from fakes import FakeProviders


@pytest.fixture
def providers():
    return FakeProviders()


@pytest.fixture
def http_client(providers):
    return httpx.AsyncClient(transport=httpx.MockTransport(providers))


@pytest.fixture
def app_config():
    return AppConfig(
        gateway=GatewaySettings(
            admin_token="admin-secret",
            persist_transcripts=True,
            email_transcripts=False,
            label_with_caller=False,
            public_base_url="",
        ),
        twilio=TwilioSettings(
            account_sid="AC123",
            auth_token="twilio-token",
            poll_max_attempts=3,
            poll_interval_s=0,
        ),
        deepgram=DeepgramSettings(api_key="dg-key"),
        sendgrid=SendGridSettings(
            api_key="sg-key",
            from_email="recorder@example.com",
            to_email="me@example.com",
        ),
    )


@pytest.fixture
def store(tmp_path):
    store = TranscriptStore(f"sqlite:///{tmp_path / 'transcripts.db'}")
    store.create_schema()
    yield store
    store.dispose()
