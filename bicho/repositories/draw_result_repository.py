"""Repository layer for draw result persistence (the Draw Store).

Both backends key records by ``(lottery_id, draw_date)`` and replace the whole
prize list on every write. Reads always return plain ``DrawRecord`` values.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime, timezone

from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from bicho.db import get_db_backend, get_mongo_db, get_session_factory
from bicho.errors import StoreUnavailableError
from bicho.lotteries import LotteryId, lottery_key
from bicho.models.draw_result import PRIZE_COLUMNS, DrawResult
from bicho.services.normalizer import DrawRecord

logger = logging.getLogger(__name__)

COLLECTION = "draw_results"


def _row_to_record(row: DrawResult) -> DrawRecord:
    return DrawRecord(
        lottery_id=row.lottery_id,
        draw_date=row.draw_date,
        prizes=row.prizes(),
        source_url=row.source_url or "",
    )


def _doc_to_record(doc: dict) -> DrawRecord:
    return DrawRecord(
        lottery_id=str(doc.get("lottery_id")),
        draw_date=date.fromisoformat(str(doc.get("draw_date"))),
        prizes=tuple(doc.get("prizes") or ()),
        source_url=str(doc.get("source_url") or ""),
    )


class DrawResultRepository:
    """Upsert and history queries for draw results.

    Outside a Flask request, pass ``session_factory`` (SQL) or ``mongo_db``
    explicitly; inside one the app's configured backend is used.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        *,
        backend: str | None = None,
        mongo_db=None,
    ) -> None:
        self._session_factory = session_factory
        self._backend = backend
        self._mongo_db = mongo_db
        self._mongo_indexed = False

    @property
    def backend(self) -> str:
        if self._backend:
            return self._backend
        if self._mongo_db is not None:
            return "mongo"
        if self._session_factory is not None:
            return "sql"
        return get_db_backend()

    # --- plumbing -------------------------------------------------------

    @contextmanager
    def _session_scope(self, session: Session | None) -> Iterator[Session]:
        if session is not None:
            # Caller owns the transaction (e.g. the per-request session).
            yield session
            return

        factory = self._session_factory or get_session_factory()
        if factory is None:
            raise RuntimeError("SQLAlchemy session required for sql backend")
        with factory() as own:
            try:
                yield own
                own.commit()
            except Exception:
                own.rollback()
                raise

    def _collection(self):
        db = self._mongo_db if self._mongo_db is not None else get_mongo_db()
        coll = db[COLLECTION]
        if not self._mongo_indexed:
            coll.create_index(
                [("lottery_id", ASCENDING), ("draw_date", ASCENDING)],
                unique=True,
                name="uq_draw_results_lottery_date",
            )
            self._mongo_indexed = True
        return coll

    # --- writes ---------------------------------------------------------

    def upsert(self, record: DrawRecord, session: Session | None = None) -> bool:
        """Insert or fully replace the draw for ``(lottery_id, draw_date)``.

        Returns True when a new record was created.
        """

        if len(record.prizes) > len(PRIZE_COLUMNS):
            raise ValueError(f"at most {len(PRIZE_COLUMNS)} prizes per draw")

        if self.backend == "mongo":
            return self._upsert_mongo(record)

        try:
            with self._session_scope(session) as s:
                return self._write_row(s, record)
        except IntegrityError:
            # Lost the race for the first insert of this key; the other
            # writer's row exists now, so apply ours as an update.
            logger.info("Concurrent insert for %s %s, retrying as update", record.lottery_id, record.draw_date)
            if session is not None:
                session.rollback()
            try:
                with self._session_scope(session) as s:
                    self._write_row(s, record)
                    return False
            except SQLAlchemyError as exc:
                raise StoreUnavailableError(details=str(exc)) from exc
        except SQLAlchemyError as exc:
            logger.error("Draw store write failed for %s: %s", record.lottery_id, exc)
            raise StoreUnavailableError(details=str(exc)) from exc

    @staticmethod
    def _write_row(session: Session, record: DrawRecord) -> bool:
        stmt = select(DrawResult).where(
            DrawResult.lottery_id == record.lottery_id,
            DrawResult.draw_date == record.draw_date,
        )
        row = session.scalars(stmt).first()
        created = row is None
        if row is None:
            row = DrawResult(lottery_id=record.lottery_id, draw_date=record.draw_date)
            session.add(row)

        padded = list(record.prizes) + [None] * (len(PRIZE_COLUMNS) - len(record.prizes))
        for column, value in zip(PRIZE_COLUMNS, padded):
            setattr(row, column, value)
        row.source_url = record.source_url or ""

        session.flush()
        return created

    def _upsert_mongo(self, record: DrawRecord, *, retry: bool = True) -> bool:
        key = {"lottery_id": record.lottery_id, "draw_date": record.draw_date.isoformat()}
        doc = {
            **key,
            "prizes": list(record.prizes),
            "source_url": record.source_url or "",
            "updated_at": datetime.now(timezone.utc),
        }
        try:
            result = self._collection().replace_one(key, doc, upsert=True)
        except DuplicateKeyError:
            if not retry:
                raise StoreUnavailableError(details="duplicate key on retry")
            return self._upsert_mongo(record, retry=False)
        except PyMongoError as exc:
            logger.error("Draw store write failed for %s: %s", record.lottery_id, exc)
            raise StoreUnavailableError(details=str(exc)) from exc
        return result.upserted_id is not None

    # --- reads ----------------------------------------------------------

    def list_history(self, lottery_id: LotteryId | str, session: Session | None = None) -> list[DrawRecord]:
        """Every stored draw for one lottery, oldest first."""

        key = lottery_key(lottery_id)
        if self.backend == "mongo":
            try:
                cur = self._collection().find({"lottery_id": key}, {"_id": 0}).sort("draw_date", ASCENDING)
                return [_doc_to_record(d) for d in cur]
            except PyMongoError as exc:
                raise StoreUnavailableError(details=str(exc)) from exc

        stmt = select(DrawResult).where(DrawResult.lottery_id == key).order_by(DrawResult.draw_date.asc())
        try:
            with self._session_scope(session) as s:
                return [_row_to_record(r) for r in s.scalars(stmt).all()]
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(details=str(exc)) from exc

    def get(self, lottery_id: LotteryId | str, draw_date: date, session: Session | None = None) -> DrawRecord | None:
        key = lottery_key(lottery_id)
        if self.backend == "mongo":
            try:
                d = self._collection().find_one({"lottery_id": key, "draw_date": draw_date.isoformat()}, {"_id": 0})
            except PyMongoError as exc:
                raise StoreUnavailableError(details=str(exc)) from exc
            return _doc_to_record(d) if d else None

        stmt = select(DrawResult).where(DrawResult.lottery_id == key, DrawResult.draw_date == draw_date)
        try:
            with self._session_scope(session) as s:
                row = s.scalars(stmt).first()
                return _row_to_record(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(details=str(exc)) from exc

    def list_recent(
        self,
        lottery_id: LotteryId | str | None = None,
        limit: int = 20,
        session: Session | None = None,
    ) -> list[DrawRecord]:
        """Newest draws first, optionally for one lottery."""

        limit = max(1, int(limit))
        if self.backend == "mongo":
            query = {"lottery_id": lottery_key(lottery_id)} if lottery_id else {}
            try:
                cur = (
                    self._collection()
                    .find(query, {"_id": 0})
                    .sort([("draw_date", DESCENDING), ("lottery_id", ASCENDING)])
                    .limit(limit)
                )
                return [_doc_to_record(d) for d in cur]
            except PyMongoError as exc:
                raise StoreUnavailableError(details=str(exc)) from exc

        stmt = select(DrawResult)
        if lottery_id:
            stmt = stmt.where(DrawResult.lottery_id == lottery_key(lottery_id))
        stmt = stmt.order_by(DrawResult.draw_date.desc(), DrawResult.lottery_id.asc()).limit(limit)
        try:
            with self._session_scope(session) as s:
                return [_row_to_record(r) for r in s.scalars(stmt).all()]
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(details=str(exc)) from exc

    def count(self, lottery_id: LotteryId | str | None = None, session: Session | None = None) -> int:
        if self.backend == "mongo":
            query = {"lottery_id": lottery_key(lottery_id)} if lottery_id else {}
            try:
                return int(self._collection().count_documents(query))
            except PyMongoError as exc:
                raise StoreUnavailableError(details=str(exc)) from exc

        stmt = select(func.count()).select_from(DrawResult)
        if lottery_id:
            stmt = stmt.where(DrawResult.lottery_id == lottery_key(lottery_id))
        try:
            with self._session_scope(session) as s:
                return int(s.scalar(stmt) or 0)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(details=str(exc)) from exc


def repository_for_app() -> DrawResultRepository:
    """Repository bound to the current app's backend, usable from worker threads."""

    if get_db_backend() == "mongo":
        return DrawResultRepository(backend="mongo", mongo_db=get_mongo_db())
    factory = get_session_factory()
    if factory is None:
        raise RuntimeError("SQL backend not initialized")
    return DrawResultRepository(factory, backend="sql")
