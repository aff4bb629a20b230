"""
API endpoint tests
"""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from models.base import JobStatus
from models.job_checkpoint import JobCheckpoint
from models.job_run import JobRun


@pytest.fixture
def client(session_factory, settings):
    """Create test client bound to the test database"""
    app = create_app(session_factory=session_factory, settings=settings)

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def recorded_runs(db_session):
    started = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    db_session.add_all([
        JobRun(
            job_name="groupingrecord-job", instance_key="a" * 64, run_number=1,
            status=JobStatus.COMPLETED, started_at=started, read_count=3, write_count=3,
            parameters={"output-file": "sums.csv"},
        ),
        JobRun(
            job_name="file2filesynchro-job", instance_key="b" * 64, run_number=1,
            status=JobStatus.FAILED, started_at=started, error_message="ParseError: bad amount",
        ),
        JobCheckpoint(
            job_name="file2filesynchro-job", instance_key="b" * 64, step_name="file2filesynchro-step",
            status=JobStatus.FAILED, read_count=4, write_count=4, chunk_count=2,
            writer_state={"position": 80},
        ),
    ])
    db_session.commit()


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["endpoints"]["runs"] == "/runs"
    assert "X-Request-ID" in response.headers
    assert "X-API-Latency-ms" in response.headers


def test_request_id_is_propagated(client):
    response = client.get("/", headers={"X-Request-ID": "req-42"})

    assert response.headers["X-Request-ID"] == "req-42"


def test_health_without_runs(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["database_connected"] is True
    assert data["status"] == "healthy"
    assert data["jobs"] == []


def test_health_reports_failed_job(client, recorded_runs):
    data = client.get("/health").json()

    assert data["status"] == "degraded"
    assert data["total_jobs"] == 2
    assert data["failed_jobs"] == 1
    assert {job["job_name"]: job["status"] for job in data["jobs"]} == {
        "file2filesynchro-job": "failed",
        "groupingrecord-job": "completed",
    }


def test_list_runs(client, recorded_runs):
    data = client.get("/runs").json()

    assert data["total"] == 2
    assert [run["job_name"] for run in data["runs"]] == ["file2filesynchro-job", "groupingrecord-job"]


def test_filter_runs(client, recorded_runs):
    data = client.get("/runs", params={"status": "failed"}).json()

    assert data["total"] == 1
    assert data["runs"][0]["error_message"] == "ParseError: bad amount"

    data = client.get("/runs", params={"job_name": "groupingrecord-job"}).json()
    assert data["runs"][0]["parameters"] == {"output-file": "sums.csv"}


def test_get_run(client, recorded_runs):
    run_id = client.get("/runs").json()["runs"][0]["id"]

    response = client.get(f"/runs/{run_id}")

    assert response.status_code == 200
    assert response.json()["id"] == run_id


def test_get_missing_run(client):
    assert client.get("/runs/999").status_code == 404


def test_checkpoints(client, recorded_runs):
    data = client.get("/checkpoints", params={"job_name": "file2filesynchro-job"}).json()

    assert len(data) == 1
    assert data[0]["chunk_count"] == 2
    assert data[0]["status"] == "failed"
