from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager
from typing import Callable

import httpx
from fastapi import Depends, FastAPI, Header, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from common.config import AppConfig, require
from common.errors import MissingConfiguration
from common.schemas import PipelineOutcome, RecordingEvent, TranscriptRecord
from gateway.twiml import MEDIA_TYPE, empty_response, record_response
from recording_service.orchestrator import RecordingPipeline
from recording_service.store import TranscriptStore

logger = logging.getLogger(__name__)

# Every pipeline outcome maps to the same empty acknowledgment.
ACKNOWLEDGEMENTS: dict[PipelineOutcome, Callable[[], str]] = {
    PipelineOutcome.completed: empty_response,
    PipelineOutcome.missing_recording_url: empty_response,
    PipelineOutcome.recording_unavailable: empty_response,
    PipelineOutcome.transcription_failed: empty_response,
    PipelineOutcome.persistence_failed: empty_response,
    PipelineOutcome.notification_failed: empty_response,
    PipelineOutcome.unexpected_error: empty_response,
}


def _xml(body: str) -> Response:
    return Response(content=body, media_type=MEDIA_TYPE)


def create_app(
    config: AppConfig | None = None,
    http_client: httpx.AsyncClient | None = None,
    store: TranscriptStore | None = None,
    pipeline: RecordingPipeline | None = None,
) -> FastAPI:
    config = config or AppConfig.from_env()
    store = store or TranscriptStore(config.gateway.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config.check_pipeline()
        store.create_schema()
        owned_client = None
        if app.state.pipeline is None:
            client = http_client
            if client is None:
                client = owned_client = httpx.AsyncClient()
            app.state.pipeline = RecordingPipeline.from_config(config, client, store)
        try:
            yield
        finally:
            if owned_client is not None:
                await owned_client.aclose()
            app.state.pipeline = pipeline
            store.dispose()

    app = FastAPI(title="Call Transcriber", lifespan=lifespan)
    app.state.config = config
    app.state.store = store
    app.state.pipeline = pipeline

    def require_admin(authorization: str | None = Header(None)) -> None:
        require(config.gateway, "admin_token")
        token = config.gateway.admin_token
        scheme, _, supplied = (authorization or "").partition(" ")
        if scheme.lower() != "bearer" or not secrets.compare_digest(supplied.encode(), token.encode()):
            raise HTTPException(status_code=401, detail="Unauthorized")

    @app.exception_handler(MissingConfiguration)
    async def missing_configuration(request: Request, exc: MissingConfiguration):
        logger.error("%s", exc)
        return JSONResponse(status_code=500, content={"detail": "Server misconfigured"})

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post("/record")
    async def record(request: Request):
        form = await request.form()
        logger.info("Incoming call from %s to %s", form.get("From", "Unknown"), form.get("To", "Unknown"))
        base = config.gateway.public_base_url.rstrip("/")
        callback_url = f"{base}/recording-complete" if base else str(request.url_for("recording_complete"))
        return _xml(record_response(callback_url, config.gateway))

    @app.post("/recording-complete", name="recording_complete")
    async def recording_complete(request: Request):
        outcome = PipelineOutcome.unexpected_error
        try:
            form = await request.form()
            event = RecordingEvent.model_validate(dict(form))
            result = await app.state.pipeline.process(event)
            outcome = result.outcome
        except Exception:
            logger.exception("Could not process recording callback")
        return _xml(ACKNOWLEDGEMENTS[outcome]())

    @app.get("/transcripts", response_model=list[TranscriptRecord], dependencies=[Depends(require_admin)])
    async def list_transcripts():
        return await store.list_all()

    @app.delete("/transcripts/{record_id}", dependencies=[Depends(require_admin)])
    async def delete_transcript(record_id: int):
        await store.delete(record_id)
        return {"status": "deleted", "id": record_id}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = app.state.config.gateway
    uvicorn.run(app, host=settings.host, port=settings.port)
