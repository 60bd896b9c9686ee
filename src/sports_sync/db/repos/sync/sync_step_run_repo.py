from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from sports_sync.db.models.sync.sync_step_run import SyncStepRun
from sports_sync.db.repos.base import BaseRepository


class SyncStepRunRepository(BaseRepository[SyncStepRun]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=SyncStepRun)

    def list_for_run(self, run_id: str) -> list[SyncStepRun]:
        stmt = select(SyncStepRun).where(SyncStepRun.run_id == run_id).order_by(SyncStepRun.id)
        return list(self.session.execute(stmt).scalars().all())

    def latest_for_step(self, step: str) -> SyncStepRun | None:
        stmt = (
            select(SyncStepRun)
            .where(SyncStepRun.step == step)
            .order_by(SyncStepRun.started_at.desc(), SyncStepRun.id.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()
