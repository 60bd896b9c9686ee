from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from sports_sync.core.config import Settings
from sports_sync.db.enums import StepStatusEnum
from sports_sync.db.models.sync.sync_step_run import SyncStepRun
from sports_sync.db.repos.sync.sync_step_run_repo import SyncStepRunRepository
from sports_sync.ingestion.providers.base.errors import format_failure_reason
from sports_sync.ingestion.providers.registry import ProviderBundle
from sports_sync.sync.lifecycle import LifecyclePolicy
from sports_sync.sync.staging import RawStagingStore
from sports_sync.sync.upsert import CanonicalUpsertEngine, UpsertResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepResult:
    created: int = 0
    updated: int = 0
    skipped: int = 0
    total: int = 0
    errors: list[str] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_upsert(
        cls, result: UpsertResult, *, total: int, details: dict[str, Any] | None = None
    ) -> StepResult:
        return cls(
            created=result.created,
            updated=result.updated,
            skipped=result.skipped,
            total=total,
            errors=list(result.errors),
            details=details or {},
        )

    @classmethod
    def failed(cls, error: str, **details: Any) -> StepResult:
        return cls(errors=[error], details=details)

    def combine(self, other: StepResult) -> StepResult:
        return StepResult(
            created=self.created + other.created,
            updated=self.updated + other.updated,
            skipped=self.skipped + other.skipped,
            total=self.total + other.total,
            errors=[*self.errors, *other.errors],
            details={**self.details, **other.details},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "total": self.total,
            "errors": list(self.errors),
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class StepOutcome:
    step: str
    status: StepStatusEnum
    result: StepResult

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step, "status": self.status.value, **self.result.to_dict()}


@dataclass(frozen=True)
class RunSummary:
    run_id: str
    pipeline: str
    started_at: datetime
    finished_at: datetime
    steps: list[StepOutcome]

    @property
    def ok(self) -> bool:
        return all(s.status is StepStatusEnum.SUCCEEDED for s in self.steps)

    @property
    def failed_steps(self) -> list[str]:
        return [s.step for s in self.steps if s.status is StepStatusEnum.FAILED]

    def step(self, name: str) -> StepOutcome | None:
        return next((s for s in self.steps if s.step == name), None)

    def to_dict(self) -> dict[str, Any]:
        totals = StepResult()
        for s in self.steps:
            totals = totals.combine(
                StepResult(s.result.created, s.result.updated, s.result.skipped, s.result.total)
            )
        return {
            "run_id": self.run_id,
            "pipeline": self.pipeline,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "ok": self.ok,
            "created": totals.created,
            "updated": totals.updated,
            "skipped": totals.skipped,
            "total": totals.total,
            "steps": [s.to_dict() for s in self.steps],
        }


@dataclass
class SyncContext:
    """Everything a step needs for one run; built fresh per step."""

    session: Session
    providers: ProviderBundle
    settings: Settings
    now: datetime
    staging: RawStagingStore
    upserts: CanonicalUpsertEngine
    run_id: str
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def lifecycle_policy(self) -> LifecyclePolicy:
        return LifecyclePolicy(
            default_duration_days=self.settings.event_default_duration_days,
            end_buffer_hours=self.settings.event_end_buffer_hours,
            max_rounds=self.settings.max_rounds,
        )

    def param(self, name: str, default: Any = None) -> Any:
        value = self.params.get(name)
        return default if value is None else value


Step = Callable[[SyncContext], StepResult]


@dataclass(frozen=True)
class Pipeline:
    name: str
    steps: tuple[tuple[str, Step], ...]

    @property
    def step_names(self) -> list[str]:
        return [name for name, _ in self.steps]

    def only(self, names: Iterable[str]) -> Pipeline:
        wanted = set(names)
        unknown = wanted - set(self.step_names)
        if unknown:
            raise ValueError(f"unknown steps for {self.name}: {sorted(unknown)}")
        return Pipeline(self.name, tuple(s for s in self.steps if s[0] in wanted))


class SyncStatusStore:
    """Persists step status to sync_step_runs, each write in its own short transaction."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def start(self, *, run_id: str, pipeline: str, step: str, started_at: datetime) -> int:
        with self.session_factory() as session:
            row = SyncStepRunRepository(session).add(
                SyncStepRun(
                    run_id=run_id,
                    pipeline=pipeline,
                    step=step,
                    status=StepStatusEnum.RUNNING,
                    started_at=started_at,
                )
            )
            session.commit()
            return row.id

    def finish(
        self,
        record_id: int,
        *,
        status: StepStatusEnum,
        result: StepResult,
        finished_at: datetime,
    ) -> None:
        with self.session_factory() as session:
            repo = SyncStepRunRepository(session)
            row = repo.get(record_id)
            if row is None:
                return
            row.status = status
            row.finished_at = finished_at
            row.created = result.created
            row.updated = result.updated
            row.skipped = result.skipped
            row.errors = list(result.errors) or None
            row.details = dict(result.details) or None
            session.commit()

    def latest(self, step: str) -> SyncStepRun | None:
        with self.session_factory() as session:
            return SyncStepRunRepository(session).latest_for_step(step)

    def for_run(self, run_id: str) -> list[SyncStepRun]:
        with self.session_factory() as session:
            return SyncStepRunRepository(session).list_for_run(run_id)


class SyncOrchestrator:
    """
    Runs a pipeline's steps in order.

    Each step gets its own session and transaction. A step that raises is rolled back,
    recorded as FAILED, and the remaining steps still run. Nothing is kept between runs.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        providers: ProviderBundle,
        status_store: SyncStatusStore,
        settings: Settings,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.providers = providers
        self.status_store = status_store
        self.settings = settings
        self._clock = clock or (lambda: datetime.now(UTC))

    def _context(self, session: Session, run_id: str, params: dict[str, Any]) -> SyncContext:
        dialect = session.get_bind().dialect.name
        max_params = (
            self.settings.upsert_max_params_sqlite
            if dialect == "sqlite"
            else self.settings.upsert_max_params
        )
        return SyncContext(
            session=session,
            providers=self.providers,
            settings=self.settings,
            now=self._clock(),
            staging=RawStagingStore(
                session, enabled=self.settings.store_raw_payloads, clock=self._clock
            ),
            upserts=CanonicalUpsertEngine(
                session,
                max_chunk_rows=self.settings.upsert_max_chunk_rows,
                max_params=max_params,
                clock=self._clock,
            ),
            run_id=run_id,
            params=dict(params),
        )

    def run_step(
        self, pipeline: str, name: str, step: Step, *, run_id: str, params: dict[str, Any]
    ) -> StepOutcome:
        record_id = self.status_store.start(
            run_id=run_id, pipeline=pipeline, step=name, started_at=self._clock()
        )
        logger.info("[%s] %s: starting", pipeline, name)

        session = self.session_factory()
        try:
            result = step(self._context(session, run_id, params))
            session.commit()
            status = StepStatusEnum.SUCCEEDED
            logger.info(
                "[%s] %s: created=%d updated=%d skipped=%d total=%d",
                pipeline,
                name,
                result.created,
                result.updated,
                result.skipped,
                result.total,
            )
        except Exception as e:
            session.rollback()
            logger.exception("[%s] %s: failed", pipeline, name)
            result = StepResult.failed(format_failure_reason(e))
            status = StepStatusEnum.FAILED
        finally:
            session.close()

        self.status_store.finish(
            record_id, status=status, result=result, finished_at=self._clock()
        )
        return StepOutcome(step=name, status=status, result=result)

    def run(self, pipeline: Pipeline, **params: Any) -> RunSummary:
        run_id = str(uuid.uuid4())
        started_at = self._clock()
        outcomes: list[StepOutcome] = []
        for name, step in pipeline.steps:
            outcomes.append(
                self.run_step(pipeline.name, name, step, run_id=run_id, params=params)
            )

        summary = RunSummary(
            run_id=run_id,
            pipeline=pipeline.name,
            started_at=started_at,
            finished_at=self._clock(),
            steps=outcomes,
        )
        if summary.failed_steps:
            logger.warning(
                "[%s] finished with failed steps: %s", pipeline.name, summary.failed_steps
            )
        return summary
