"""
Health check endpoint with database and job status
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.dependencies import get_db
from models.base import JobStatus
from models.job_run import JobRun
from schemas.api import HealthCheckResponse, JobHealth

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint.

    Returns:
    - Database connectivity status
    - Latest run status of every job
    """
    db_connected = False
    try:
        db.execute(text("SELECT 1"))
        db_connected = True
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {str(e)}")

    jobs = []
    if db_connected:
        try:
            latest = {}
            for run in db.execute(select(JobRun).order_by(JobRun.id.desc())).scalars():
                latest.setdefault(run.job_name, run)
            jobs = [
                JobHealth(
                    job_name=run.job_name,
                    status=run.status,
                    last_run_at=run.started_at,
                    error_message=run.error_message,
                )
                for run in sorted(latest.values(), key=lambda r: r.job_name)
            ]
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch job runs: {str(e)}")

    return HealthCheckResponse(
        database_connected=db_connected,
        jobs=jobs,
        total_jobs=len(jobs),
        failed_jobs=sum(1 for job in jobs if job.status == JobStatus.FAILED.value),
    )
