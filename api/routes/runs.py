"""
Job run and checkpoint endpoints
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from api.dependencies import get_db
from models.base import JobStatus
from models.job_checkpoint import JobCheckpoint
from models.job_run import JobRun
from schemas.api import CheckpointResponse, JobRunListResponse, JobRunResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Runs"])


@router.get("/runs", response_model=JobRunListResponse)
def list_runs(
    request: Request,
    job_name: Optional[str] = Query(None, description="Filter by job name"),
    status: Optional[JobStatus] = Query(None, description="Filter by run status"),
    limit: int = Query(50, ge=1, le=500, description="Maximum number of runs"),
    db: Session = Depends(get_db)
):
    """Most recent job runs first"""
    request_id = getattr(request.state, "request_id", "-")
    logger.info(f"[{request_id}] GET /runs - job_name={job_name}, status={status}, limit={limit}")

    filters = []
    if job_name:
        filters.append(JobRun.job_name == job_name)
    if status:
        filters.append(JobRun.status == status)

    total = db.execute(select(func.count()).select_from(JobRun).where(*filters)).scalar()
    runs = db.execute(
        select(JobRun).where(*filters).order_by(JobRun.id.desc()).limit(limit)
    ).scalars().all()

    return JobRunListResponse(
        runs=[JobRunResponse.model_validate(run) for run in runs],
        total=total,
    )


@router.get("/runs/{run_id}", response_model=JobRunResponse)
def get_run(run_id: int, db: Session = Depends(get_db)):
    run = db.get(JobRun, run_id)
    if run is None:
        raise HTTPException(status_code=404, detail=f"Run {run_id} not found")
    return JobRunResponse.model_validate(run)


@router.get("/checkpoints", response_model=List[CheckpointResponse])
def list_checkpoints(
    job_name: Optional[str] = Query(None, description="Filter by job name"),
    db: Session = Depends(get_db)
):
    """Step checkpoints of every job instance"""
    query = select(JobCheckpoint).order_by(JobCheckpoint.job_name, JobCheckpoint.id)
    if job_name:
        query = query.where(JobCheckpoint.job_name == job_name)
    checkpoints = db.execute(query).scalars().all()
    return [CheckpointResponse.model_validate(checkpoint) for checkpoint in checkpoints]
