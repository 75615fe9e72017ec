from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from fairplay.app.import_jobs import ImportJobRegistry
from fairplay.app.wiring import ImportServices, build_import_services
from fairplay.config import Settings, get_settings
from fairplay.errors import ValidationError
from fairplay.models import ImportTarget, Platform
from fairplay.request_auth import require_api_token
from fairplay.utils import get_logger

logger = get_logger(__name__)

ServicesFactory = Callable[[Settings], ImportServices]


class ImportRequest(BaseModel):
    platform: str = ""
    username: str = ""
    limit: int = 100


class BatchImportRequest(BaseModel):
    targets: list[ImportTarget] = Field(default_factory=list)
    limit: int = 100
    concurrent: bool = False


router = APIRouter(prefix="/api")


def _services(request: Request) -> ImportServices:
    return request.app.state.services


def _jobs(request: Request) -> ImportJobRegistry:
    return request.app.state.jobs


def _check_limit(services: ImportServices, limit: int) -> None:
    max_limit = services.settings.max_import_limit
    if not 1 <= limit <= max_limit:
        raise ValidationError(f"limit must be between 1 and {max_limit}, got {limit}")


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/import")
def import_games(
    payload: ImportRequest,
    services: ImportServices = Depends(_services),
) -> dict[str, object]:
    result = services.orchestrator.import_one(payload.platform, payload.username, payload.limit)
    return {"success": True, **result.model_dump(mode="json")}


@router.post("/import/batch")
def import_games_batch(
    payload: BatchImportRequest,
    services: ImportServices = Depends(_services),
) -> dict[str, object]:
    _check_limit(services, payload.limit)
    batch = services.orchestrator.import_batch(
        payload.targets, payload.limit, concurrent=payload.concurrent
    )
    return batch.model_dump(mode="json")


@router.post("/jobs", status_code=status.HTTP_202_ACCEPTED)
def submit_import_job(
    payload: BatchImportRequest,
    services: ImportServices = Depends(_services),
    jobs: ImportJobRegistry = Depends(_jobs),
) -> dict[str, object]:
    _check_limit(services, payload.limit)
    job_id = jobs.submit(payload.targets, payload.limit)
    job = jobs.get(job_id)
    return {"job_id": job_id, "status": str(job.status) if job else "queued"}


@router.get("/jobs/{job_id}")
def get_import_job(job_id: str, jobs: ImportJobRegistry = Depends(_jobs)) -> dict[str, object]:
    job = jobs.get(job_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return job.to_dict()


@router.get("/jobs")
def list_import_jobs(jobs: ImportJobRegistry = Depends(_jobs)) -> dict[str, object]:
    return {"jobs": [job.to_dict() for job in jobs.list()]}


@router.get("/import/status")
def import_status(
    platform: str | None = Query(None),
    services: ImportServices = Depends(_services),
) -> dict[str, object]:
    resolved = Platform.parse(platform) if platform else None
    cursors = services.persistence.list_cursors(resolved)
    return {"cursors": [cursor.model_dump(mode="json") for cursor in cursors]}


@router.get("/rate-limits")
def rate_limits(services: ImportServices = Depends(_services)) -> dict[str, object]:
    return {
        "limiters": [asdict(limiter.status()) for limiter in services.limiters.values()],
    }


async def _validation_error_handler(_: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


async def _request_validation_handler(_: Request, exc: Exception) -> JSONResponse:
    errors = exc.errors() if isinstance(exc, RequestValidationError) else str(exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(errors)},
    )


def create_app(
    settings: Settings | None = None,
    services_factory: ServicesFactory = build_import_services,
) -> FastAPI:
    """Build the HTTP app; services and the job registry live for the app lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        active_settings = settings or get_settings()
        services = services_factory(active_settings)
        jobs = ImportJobRegistry(
            lambda targets, limit: services.orchestrator.import_batch(targets, limit),
            max_workers=active_settings.max_concurrent_jobs,
        )
        app.state.settings = active_settings
        app.state.services = services
        app.state.jobs = jobs
        logger.info("FairPlay import API ready (db=%s)", active_settings.duckdb_path)
        try:
            yield
        finally:
            jobs.shutdown(wait=True)
            services.close()

    app = FastAPI(
        title="FairPlay Scout",
        version="0.1.0",
        dependencies=[Depends(require_api_token)],
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.include_router(router)
    return app


app = create_app()
