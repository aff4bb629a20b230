"""
Command line entry point (``batch-run``).

Usage:
    batch-run init-db
    batch-run list
    batch-run run file2filesynchro-job customer-file=in/customer.csv \
        transaction-file=in/transaction.csv output-file=out/balance.csv

Exit codes: 0 when the job completed, 1 when it failed (or is unknown),
2 when its parameters are missing or invalid.
"""

import logging
import signal
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

import typer

from batch.jobs import JOB_REGISTRY
from batch.launcher import JobLauncher
from batch.repository import SqlJobRepository
from core.config import get_settings
from core.database import create_db_engine, create_session_factory, init_db
from core.exceptions import CheckpointError, JobNotFoundError, JobParametersError
from core.logging import setup_logging

logger = logging.getLogger(__name__)

EXIT_FAILED = 1
EXIT_BAD_PARAMETERS = 2

app = typer.Typer(
    name="batch-run",
    help="Run restartable batch jobs.",
    no_args_is_help=True,
)


def parse_parameters(values: List[str]) -> Dict[str, str]:
    """Turn ``key=value`` arguments into a parameter mapping"""
    parameters = {}
    malformed = []
    for value in values:
        key, separator, raw = value.partition("=")
        if not separator or not key:
            malformed.append(value)
            continue
        parameters[key.strip()] = raw
    if malformed:
        raise JobParametersError(
            "Parameters must be given as key=value",
            context={"invalid": malformed}
        )
    return parameters


@contextmanager
def cancel_on_signal(event: threading.Event) -> Iterator[threading.Event]:
    """Set ``event`` on SIGINT/SIGTERM; the job stops at its next chunk boundary"""

    def request_cancel(signum, frame):
        logger.warning(f"Received signal {signum}, stopping after the current chunk")
        event.set()

    previous = {}
    if threading.current_thread() is threading.main_thread():
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, request_cancel)
    try:
        yield event
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


@app.command("run")
def run_job(
    job_name: str = typer.Argument(..., help="Registered job name"),
    parameters: Optional[List[str]] = typer.Argument(None, help="Job parameters as key=value"),
    database_url: Optional[str] = typer.Option(None, "--database-url", help="Overrides DATABASE_URL"),
) -> None:
    """Launch a job, or resume its last failed run with the same parameters."""
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    try:
        raw = parse_parameters(parameters or [])
    except JobParametersError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(EXIT_BAD_PARAMETERS)

    engine = create_db_engine(database_url or settings.DATABASE_URL)
    try:
        session_factory = create_session_factory(engine)
        with cancel_on_signal(threading.Event()) as cancel_event:
            launcher = JobLauncher(
                SqlJobRepository(session_factory),
                session_factory,
                settings,
                cancel_event=cancel_event,
            )
            try:
                result = launcher.run(job_name, raw)
            except (JobNotFoundError, CheckpointError) as e:
                typer.echo(str(e), err=True)
                raise typer.Exit(EXIT_FAILED)
            except JobParametersError as e:
                typer.echo(str(e), err=True)
                raise typer.Exit(EXIT_BAD_PARAMETERS)
    finally:
        engine.dispose()

    typer.echo(
        f"{result.job_name} run {result.run_id}: {result.status.value} "
        f"(read={result.read_count}, written={result.write_count})"
    )
    if not result.completed:
        typer.echo(str(result.cause), err=True)
        raise typer.Exit(EXIT_FAILED)


@app.command("list")
def list_jobs() -> None:
    """List registered jobs."""
    for name in sorted(JOB_REGISTRY):
        typer.echo(f"{name}\t{JOB_REGISTRY[name].description}")


@app.command("init-db")
def init_database(
    database_url: Optional[str] = typer.Option(None, "--database-url", help="Overrides DATABASE_URL"),
) -> None:
    """Create the business and job tracking tables."""
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    engine = create_db_engine(database_url or settings.DATABASE_URL)
    try:
        init_db(engine)
    finally:
        engine.dispose()
    typer.echo("Tables created")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
