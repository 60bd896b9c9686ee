from __future__ import annotations

from sqlalchemy.orm import Session

from sports_sync.db.models.core.performance import Performance
from sports_sync.db.repos.base import BaseRepository


class PerformanceRepository(BaseRepository[Performance]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=Performance)

    def list_for_event(self, event_id: int) -> list[Performance]:
        return self.all_where(Performance.event_id == event_id)
