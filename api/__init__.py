"""
Read-only monitoring API over job runs and checkpoints.

Modules:
    main: Application factory
    middleware: Request id and latency headers
    dependencies: Per-request database session
    routes: health, runs
"""
