from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from common.schemas import TranscriptRecord
from recording_service.sql_models import Base, TranscriptModel

logger = logging.getLogger(__name__)


def _engine_for(database_url: str):
    if not database_url.startswith("sqlite"):
        return create_engine(database_url)
    kwargs = {"connect_args": {"check_same_thread": False}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise each thread sees its own empty database.
        kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


def _new_executor() -> ThreadPoolExecutor:
    return ThreadPoolExecutor(max_workers=1, thread_name_prefix="transcript-store")


class TranscriptStore:
    """Single-writer repository for persisted transcripts.

    All session work runs on one dedicated worker thread, in submission
    order, so an insert, a listing and a delete never interleave on one
    store instance. A caller that is cancelled mid-operation stops waiting,
    but its operation still finishes before the next one starts.
    """

    def __init__(self, database_url: str) -> None:
        self.engine = _engine_for(database_url)
        self._session_factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        self._executor = _new_executor()

    def create_schema(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self._executor.shutdown(wait=True)
        # Usable again afterwards, like a disposed engine.
        self._executor = _new_executor()
        self.engine.dispose()

    async def _submit(self, fn, *args):
        return await asyncio.get_running_loop().run_in_executor(self._executor, fn, *args)

    async def add(self, from_number: str, duration_seconds: str, transcript: str) -> None:
        record_id = await self._submit(self._add, from_number, duration_seconds, transcript)
        logger.info("Transcript %d stored for %s", record_id, from_number)

    async def list_all(self) -> list[TranscriptRecord]:
        return await self._submit(self._list_all)

    async def delete(self, record_id: int) -> None:
        deleted = await self._submit(self._delete, record_id)
        if deleted:
            logger.info("Transcript %d deleted", record_id)

    def _add(self, from_number: str, duration_seconds: str, transcript: str) -> int:
        with self._session_factory() as db:
            try:
                row = TranscriptModel(
                    from_number=from_number,
                    duration_seconds=duration_seconds,
                    transcript=transcript,
                )
                db.add(row)
                db.commit()
                return row.id
            except Exception:
                db.rollback()
                raise

    def _list_all(self) -> list[TranscriptRecord]:
        with self._session_factory() as db:
            rows = db.scalars(
                select(TranscriptModel).order_by(
                    TranscriptModel.created_at.desc(), TranscriptModel.id.desc()
                )
            ).all()
            return [TranscriptRecord.model_validate(row) for row in rows]

    def _delete(self, record_id: int) -> bool:
        with self._session_factory() as db:
            row = db.get(TranscriptModel, record_id)
            if row is None:
                return False
            db.delete(row)
            db.commit()
            return True
