"""
FastAPI application entry point.

Serves the job management API under /api/v1.0. The scheduling engine is
created and started in the lifespan and shut down with the app.
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from jobkeeper import __version__
from jobkeeper.infra.logging_config import setup_logging
from jobkeeper.infra.settings import get_settings
from .routers import jobs
from ._service_state import init_job_service, shutdown_job_service
from .dependencies.auth import verify_api_key, API_AUTH_ENABLED


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup: configure logging, create and start the job service.
    Shutdown: stop the engine.
    """
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir)
    init_job_service(
        timezone=settings.scheduler_timezone,
        max_workers=settings.scheduler_max_workers,
    )

    yield

    shutdown_job_service()


tags_metadata = [
    {
        "name": "jobs",
        "description": "Scheduled job management - create, query, update, delete, pause and resume jobs by group and name",
    },
]

app = FastAPI(
    title="jobkeeper",
    lifespan=lifespan,
    description="""
## jobkeeper

Group/name addressed management of scheduled jobs.

### Authentication
When `API_AUTH_ENABLED=true`, all endpoints except `/health` require
an `X-API-Key` header matching the `API_KEY` environment variable.

### Usage
```bash
uvicorn jobkeeper.api.main:app --host 127.0.0.1 --port 8000

curl -X POST http://localhost:8000/api/v1.0/groups/reports/jobs \\
  -H "Content-Type: application/json" \\
  -d '{"name": "weekly", "job_type": "email",
       "data": {"subject": "Weekly", "to": ["ops@example.com"]},
       "triggers": [{"cron": "0 9 * * MON"}]}'
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
    jobs.router, prefix="/api/v1.0", tags=["jobs"], dependencies=auth_dependency
)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
