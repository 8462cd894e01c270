"""Model record API endpoints.

GET /api/models - List stored model records
GET /api/models/{name} - Get one model record
GET /api/models/{name}/export - Download one model record as JSON
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from evaldash.api.app import get_config, get_db_session
from evaldash.config import ExperimentConfig
from evaldash.db import repo
from evaldash.db.repo import DbSession
from evaldash.models.domain import ReportRecordEntity
from evaldash.models.types import ModelData, ModelRecordSummary

router = APIRouter()


def _require_model(session: DbSession, experiment_id: str, name: str) -> ReportRecordEntity:
    record = repo.get_model_record(session, experiment_id, name)
    if record is None:
        raise HTTPException(status_code=404, detail="Model not found")
    return record


@router.get("/models", response_model=list[ModelRecordSummary])
def list_models(
    session: DbSession = Depends(get_db_session),
    config: ExperimentConfig = Depends(get_config),
) -> list[ModelRecordSummary]:
    """List stored model records, ordered by name."""
    return [
        ModelRecordSummary(name=r.name, record_id=r.record_id, sha256=r.sha256)
        for r in repo.list_model_records(session, config.experiment_id)
    ]


@router.get("/models/{name}", response_model=ModelData)
def get_model(
    name: str,
    session: DbSession = Depends(get_db_session),
    config: ExperimentConfig = Depends(get_config),
) -> ModelData:
    """Get one model record; the name is matched case-insensitively.

    Raises:
        HTTPException: 404 if the model has no stored record.
    """
    record = _require_model(session, config.experiment_id, name)
    return ModelData.model_validate_json(record.value_json)


@router.get("/models/{name}/export")
def export_model(
    name: str,
    session: DbSession = Depends(get_db_session),
    config: ExperimentConfig = Depends(get_config),
) -> JSONResponse:
    """Export a model record as downloadable JSON.

    Returns:
        JSON response with Content-Disposition header for download.
    """
    record = _require_model(session, config.experiment_id, name)
    model = ModelData.model_validate_json(record.value_json)
    return JSONResponse(
        content=model.model_dump(mode="json"),
        headers={
            "Content-Disposition": f'attachment; filename="{config.experiment_id}_{record.name}.json"'
        },
    )
