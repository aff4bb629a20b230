"""
Pydantic schemas for API response models
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from models.base import JobStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Job Run Schemas
# ============================================================================

class JobRunResponse(BaseModel):
    """One execution of a job instance"""
    id: int
    job_name: str
    instance_key: str
    run_number: int
    resumed: bool
    status: JobStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    read_count: Optional[int] = 0
    write_count: Optional[int] = 0
    error_message: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "id": 12,
                "job_name": "file2filesynchro-job",
                "instance_key": "9f2c...e1",
                "run_number": 3,
                "resumed": False,
                "status": "completed",
                "started_at": "2024-01-15T10:00:00Z",
                "completed_at": "2024-01-15T10:00:02Z",
                "duration_seconds": 2.1,
                "read_count": 120,
                "write_count": 120,
                "parameters": {
                    "customer-file": "data/customer.csv",
                    "transaction-file": "data/transaction.csv",
                    "output-file": "out/balance.csv"
                }
            }
        }


class JobRunListResponse(BaseModel):
    runs: List[JobRunResponse] = Field(default_factory=list)
    total: int = 0


class CheckpointResponse(BaseModel):
    """Committed progress of one step of a job instance"""
    job_name: str
    instance_key: str
    step_name: str
    status: JobStatus
    read_count: int
    write_count: int
    chunk_count: int
    error_message: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        use_enum_values = True


# ============================================================================
# Health Check Schemas
# ============================================================================

class JobHealth(BaseModel):
    """Latest run of a job"""
    job_name: str
    status: JobStatus
    last_run_at: datetime
    error_message: Optional[str] = None

    class Config:
        use_enum_values = True


class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field("healthy", description="Overall system status: healthy, degraded, unhealthy")
    timestamp: datetime = Field(default_factory=_utcnow)
    database_connected: bool
    jobs: List[JobHealth] = Field(default_factory=list)
    total_jobs: int = 0
    failed_jobs: int = 0

    @model_validator(mode="after")
    def determine_status(self):
        """Determine overall health status"""
        if not self.database_connected:
            self.status = "unhealthy"
        elif self.total_jobs == 0 or self.failed_jobs == 0:
            self.status = "healthy"
        elif self.failed_jobs < self.total_jobs:
            self.status = "degraded"
        else:
            self.status = "unhealthy"
        return self


# ============================================================================
# Error Response Schema
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response"""
    error: str
    detail: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)
