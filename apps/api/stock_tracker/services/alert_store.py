from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stock_tracker.core.errors import StoreError
from stock_tracker.models.alert import Alert
from stock_tracker.schemas.alert import AlertRecord, CreateAlertRequest

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AlertStore:
    """Persistence for alert rules.

    SQLAlchemy sessions are blocking, so every operation runs in a worker
    thread. Database failures are rolled back and raised as StoreError.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    async def _run(self, operation: str, work: Callable[[Session], T]) -> T:
        def _in_session() -> T:
            with self._session_factory() as db:
                try:
                    return work(db)
                except SQLAlchemyError:
                    db.rollback()
                    raise

        try:
            return await asyncio.to_thread(_in_session)
        except SQLAlchemyError as exc:
            logger.error("Alert store %s failed: %s", operation, exc)
            raise StoreError(f"Alert store {operation} failed: {exc}") from exc

    async def list_all(self) -> list[tuple[str, AlertRecord]]:
        def work(db: Session) -> list[tuple[str, AlertRecord]]:
            rows = db.scalars(select(Alert)).all()
            return [(row.id, AlertRecord.model_validate(row)) for row in rows]

        return await self._run("list", work)

    async def list_for_user(self, user_id: str) -> list[AlertRecord]:
        def work(db: Session) -> list[AlertRecord]:
            rows = db.scalars(select(Alert).where(Alert.user_id == user_id).order_by(Alert.created_at)).all()
            return [AlertRecord.model_validate(row) for row in rows]

        return await self._run("list", work)

    async def create(self, request: CreateAlertRequest) -> str:
        def work(db: Session) -> str:
            item = Alert(
                user_id=request.user_id,
                email=str(request.email),
                index_symbol=request.index_symbol,
                threshold=float(request.threshold),
                condition=request.condition.value,
                is_triggered=False,
            )
            db.add(item)
            db.commit()
            return item.id

        alert_id = await self._run("create", work)
        logger.info("Created alert %s on %s (%s %s)", alert_id, request.index_symbol, request.condition.value, request.threshold)
        return alert_id

    async def delete(self, alert_id: str) -> bool:
        def work(db: Session) -> bool:
            item = db.get(Alert, alert_id)
            if item is None:
                return False
            db.delete(item)
            db.commit()
            return True

        return await self._run("delete", work)

    async def mark_triggered(self, alert_id: str, at: datetime | None = None) -> None:
        triggered_at = at or datetime.now(timezone.utc)

        def work(db: Session) -> None:
            item = db.get(Alert, alert_id)
            if item is None:
                return
            item.is_triggered = True
            item.last_triggered = triggered_at
            db.commit()

        await self._run("mark_triggered", work)

    async def rearm(self, alert_id: str) -> None:
        def work(db: Session) -> None:
            item = db.get(Alert, alert_id)
            if item is None:
                return
            item.is_triggered = False
            db.commit()

        await self._run("rearm", work)
