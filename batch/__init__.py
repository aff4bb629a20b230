"""
Chunk-oriented batch framework.

Modules:
    item: Reader and writer contracts
    readers: Peekable, accumulating, master/detail and control-break readers,
        plus flat-file, table and staging sources
    writers: Flat-file, table and staging sinks
    processors: Item transforms (balance computation, grouping sums)
    checkpoint: Checkpoint key/state and store contract
    repository: Job run tracking and checkpoint persistence
    pipeline: ChunkedPipeline (read -> process -> write, checkpoint per chunk)
    job: Job and step definitions, parameter validation
    jobs: Registered jobs
    launcher: JobLauncher (start or resume a job run)
    cli: ``batch-run`` command line

Usage:
    from batch.launcher import JobLauncher
    from batch.repository import SqlJobRepository

    launcher = JobLauncher(SqlJobRepository(session_factory), session_factory, settings)
    result = launcher.run("groupingrecord-job", {
        "transaction-file": "data/transaction.csv",
        "output-file": "out/sums.csv",
    })
"""
