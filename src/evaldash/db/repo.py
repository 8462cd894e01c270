"""Repository pattern for database operations.

Encapsulates all SQLAlchemy queries. Returns domain entities (not
SQLAlchemy rows) to external callers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlalchemy.orm import Session

from evaldash.db.schema import ReportRecord, ReportRun
from evaldash.models.domain import ReportRecordEntity, ReportRunEntity

if TYPE_CHECKING:
    from sqlalchemy.orm import Session as DbSession
else:
    DbSession = Session

__all__ = ["DbSession"]


# ============================================================================
# Converters: SQLAlchemy -> Domain
# ============================================================================


def _run_to_entity(run: ReportRun) -> ReportRunEntity:
    return ReportRunEntity(
        run_id=run.run_id,
        experiment_id=run.experiment_id,
        status=run.status,
        model_count=run.model_count,
        started_at=run.started_at,
        ended_at=run.ended_at,
        error_code=run.error_code,
        error_detail=run.error_detail,
    )


def _record_to_entity(record: ReportRecord) -> ReportRecordEntity:
    return ReportRecordEntity(
        record_id=record.record_id,
        run_id=record.run_id,
        experiment_id=record.experiment_id,
        kind=record.kind,
        name=record.name,
        value_json=record.value_json,
        sha256=record.sha256,
    )


# ============================================================================
# Run Repository
# ============================================================================


def create_run(session: DbSession, entity: ReportRunEntity) -> ReportRunEntity:
    """Insert a new report run."""
    run = ReportRun(
        run_id=entity.run_id,
        experiment_id=entity.experiment_id,
        status=entity.status,
        model_count=entity.model_count,
        started_at=entity.started_at or datetime.now(timezone.utc),
    )
    session.add(run)
    session.flush()
    return _run_to_entity(run)


def get_run(session: DbSession, run_id: str) -> ReportRunEntity | None:
    run = session.query(ReportRun).filter(ReportRun.run_id == run_id).first()
    return _run_to_entity(run) if run else None


def get_latest_run(session: DbSession, experiment_id: str) -> ReportRunEntity | None:
    """Most recently started run of an experiment, whatever its status."""
    run = (
        session.query(ReportRun)
        .filter(ReportRun.experiment_id == experiment_id)
        .order_by(ReportRun.started_at.desc())
        .first()
    )
    return _run_to_entity(run) if run else None


def update_run_status(
    session: DbSession,
    run_id: str,
    status: str,
    *,
    model_count: int | None = None,
    error_code: str | None = None,
    error_detail: str | None = None,
) -> None:
    """Update run status and optional fields, stamping ended_at."""
    run = session.query(ReportRun).filter(ReportRun.run_id == run_id).first()
    if run:
        run.status = status
        run.ended_at = datetime.now(timezone.utc)
        if model_count is not None:
            run.model_count = model_count
        if error_code is not None:
            run.error_code = error_code
        if error_detail is not None:
            run.error_detail = error_detail


# ============================================================================
# Record Repository
# ============================================================================


def replace_records(
    session: DbSession, experiment_id: str, entities: list[ReportRecordEntity]
) -> int:
    """Replace every record of an experiment with a new set.

    Deletion and insertion happen in the caller's transaction, so readers
    never see a mix of old and new records once it commits.

    Returns:
        Number of records deleted.
    """
    deleted = (
        session.query(ReportRecord)
        .filter(ReportRecord.experiment_id == experiment_id)
        .delete(synchronize_session="fetch")
    )
    for entity in entities:
        session.add(
            ReportRecord(
                record_id=entity.record_id,
                run_id=entity.run_id,
                experiment_id=entity.experiment_id,
                kind=entity.kind,
                name=entity.name,
                value_json=entity.value_json,
                sha256=entity.sha256,
            )
        )
    session.flush()
    return deleted


def get_dashboard_record(session: DbSession, experiment_id: str) -> ReportRecordEntity | None:
    record = (
        session.query(ReportRecord)
        .filter(ReportRecord.experiment_id == experiment_id, ReportRecord.kind == "dashboard")
        .first()
    )
    return _record_to_entity(record) if record else None


def list_model_records(session: DbSession, experiment_id: str) -> list[ReportRecordEntity]:
    """Model records of an experiment, ordered by name."""
    records = (
        session.query(ReportRecord)
        .filter(ReportRecord.experiment_id == experiment_id, ReportRecord.kind == "model")
        .order_by(ReportRecord.name)
        .all()
    )
    return [_record_to_entity(r) for r in records]


def get_model_record(
    session: DbSession, experiment_id: str, name: str
) -> ReportRecordEntity | None:
    """Model record by identifier, matched case-insensitively."""
    record = (
        session.query(ReportRecord)
        .filter(
            ReportRecord.experiment_id == experiment_id,
            ReportRecord.kind == "model",
            func.lower(ReportRecord.name) == name.lower(),
        )
        .first()
    )
    return _record_to_entity(record) if record else None


# ============================================================================
# Transaction
# ============================================================================


def commit(session: DbSession) -> None:
    """Commit the current transaction."""
    session.commit()
