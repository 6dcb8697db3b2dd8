"""
FastAPI application entry point.

Exposes the deduplicating scheduler over HTTP.
Optional API key authentication (API_AUTH_ENABLED / API_KEY).
"""

from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI

from src import __version__
from src.infra.data_paths import (
    ensure_data_directories,
    get_db_path,
    get_log_dir,
    get_log_level,
    log_to_file_enabled,
)
from src.infra.logging_config import setup_logging
from .routers import tasks
from ._scheduler_state import init_dedup_scheduler, shutdown_dedup_scheduler
from .dependencies.auth import verify_api_key, API_AUTH_ENABLED


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup: configure logging, open the job store, build the scheduler.
    Shutdown: drop the scheduler singleton.
    """
    setup_logging(
        get_log_level(),
        log_dir=str(get_log_dir()) if log_to_file_enabled() else None,
    )
    ensure_data_directories()
    init_dedup_scheduler(get_db_path())

    yield

    shutdown_dedup_scheduler()


tags_metadata = [
    {
        "name": "tasks",
        "description": "Schedule one-shot and recurring tasks with optional duplicate detection, "
                       "and query or cancel scheduled tasks",
    },
]

app = FastAPI(
    title="Task Scheduler API",
    lifespan=lifespan,
    description="""
## Task Scheduler API

Schedules named tasks on a persistent job store. A request can ask for
duplicate detection (`unique`): if an equivalent live task already exists,
its id is returned and nothing new is scheduled.

### Uniqueness scopes
- `none`: always schedule
- `hook`: same task name
- `group`: same name and group
- `args`: same name, group and payload

### Authentication
When `API_AUTH_ENABLED=true`, all endpoints except `/health` require
an `X-API-Key` header matching the `API_KEY` environment variable.

### Usage
```bash
uvicorn src.api.main:app --host 127.0.0.1 --port 8000

curl -X POST http://localhost:8000/tasks \\
  -H "Content-Type: application/json" \\
  -d '{"name": "sync", "payload": {"id": 1}, "unique": "args"}'
```
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=tags_metadata,
)


@app.get("/health")
async def health_check():
    """Health check endpoint. Not authenticated."""
    return {"status": "ok", "version": __version__}


auth_dependency = [Depends(verify_api_key)] if API_AUTH_ENABLED else []

app.include_router(
    tasks.router, prefix="/tasks", tags=["tasks"], dependencies=auth_dependency
)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
