from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sports_sync.db.models.ingestion.raw_payload import RawPayload
from sports_sync.ingestion.providers.base.errors import format_failure_reason

logger = logging.getLogger(__name__)

# Sub-collections providers wrap their rows in, in lookup order.
RECORD_COUNT_KEYS: tuple[str, ...] = (
    "players",
    "rankings",
    "schedule",
    "field",
    "data",
    "baseline",
    "projections",
    "live_stats",
    "competitors",
    "events",
    "rows",
)

DEFAULT_RETENTION_DAYS = 90


def record_count(payload: Any) -> int | None:
    if isinstance(payload, list):
        return len(payload)
    if isinstance(payload, dict):
        for key in RECORD_COUNT_KEYS:
            value = payload.get(key)
            if isinstance(value, list):
                return len(value)
    return None


def _jsonable(payload: Any) -> Any:
    # Dates and decimals from normalized records are stored as strings.
    return json.loads(json.dumps(payload, default=str))


class RawStagingStore:
    """
    Append-only record of provider payloads.

    Staging is a side channel: every failure is logged and swallowed, and each write
    runs in its own SAVEPOINT so the caller's transaction is never affected.
    """

    def __init__(
        self,
        session: Session,
        *,
        enabled: bool = True,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.session = session
        self.enabled = enabled
        self._clock = clock or (lambda: datetime.now(UTC))

    def stage(
        self,
        provider: str,
        data_type: str,
        event_ref: str | None,
        payload: Any,
    ) -> int | None:
        if not self.enabled or payload is None:
            return None
        try:
            with self.session.begin_nested():
                row = RawPayload(
                    provider=provider,
                    data_type=data_type,
                    event_ref=event_ref,
                    payload=_jsonable(payload),
                    record_count=record_count(payload),
                    ingested_at=self._clock(),
                )
                self.session.add(row)
                self.session.flush()
                return row.id
        except (SQLAlchemyError, TypeError, ValueError) as e:
            logger.warning(
                "staging %s/%s failed: %s", provider, data_type, format_failure_reason(e)
            )
            return None

    def mark_processed(self, record_id: int | None) -> None:
        if record_id is None or not self.enabled:
            return
        try:
            with self.session.begin_nested():
                self.session.execute(
                    update(RawPayload)
                    .where(RawPayload.id == record_id)
                    .values(processed_at=self._clock())
                )
        except SQLAlchemyError as e:
            logger.warning(
                "marking raw payload %s processed failed: %s",
                record_id,
                format_failure_reason(e),
            )

    def cleanup(self, retention_days: int = DEFAULT_RETENTION_DAYS) -> int:
        """Delete payloads ingested more than `retention_days` ago; returns rows removed."""
        cutoff = self._clock() - timedelta(days=retention_days)
        result = self.session.execute(delete(RawPayload).where(RawPayload.ingested_at < cutoff))
        deleted = result.rowcount or 0
        logger.info("staging cleanup removed %d payloads older than %s", deleted, cutoff.date())
        return deleted
