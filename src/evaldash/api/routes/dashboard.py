"""Dashboard API endpoints.

GET /api/dashboard - Stored dashboard record of the configured experiment
GET /api/runs/latest - Status of the latest report run
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from evaldash.api.app import get_config, get_db_session
from evaldash.config import ExperimentConfig
from evaldash.db import repo
from evaldash.db.repo import DbSession
from evaldash.models.types import DashboardData, ReportRunStatusResponse

router = APIRouter()


@router.get("/dashboard", response_model=DashboardData)
def get_dashboard(
    session: DbSession = Depends(get_db_session),
    config: ExperimentConfig = Depends(get_config),
) -> DashboardData:
    """Get the dashboard record.

    Raises:
        HTTPException: 404 if no run has stored records yet.
    """
    record = repo.get_dashboard_record(session, config.experiment_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Dashboard not found")
    return DashboardData.model_validate_json(record.value_json)


@router.get("/runs/latest", response_model=ReportRunStatusResponse)
def get_latest_run(
    session: DbSession = Depends(get_db_session),
    config: ExperimentConfig = Depends(get_config),
) -> ReportRunStatusResponse:
    """Get the status of the most recent report run."""
    run = repo.get_latest_run(session, config.experiment_id)
    if run is None:
        raise HTTPException(status_code=404, detail="No report run found")
    return ReportRunStatusResponse(
        run_id=run.run_id,
        experiment_id=run.experiment_id,
        status=run.status,
        model_count=run.model_count,
        error_code=run.error_code,
        error_detail=run.error_detail,
    )
