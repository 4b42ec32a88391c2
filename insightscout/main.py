# main.py

"""
InsightScout Research API - Main Entry Point
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from insightscout.core.config import Settings, settings as default_settings
from insightscout.routers import research_router
from insightscout.services import (
    ContactFinderService,
    JobRunner,
    JobStore,
    PollRateLimiter,
    ResearchService
)
from insightscout.services.job_runner import EnrichmentProvider

logger = logging.getLogger(__name__)


async def run_retention_sweep(store: JobStore, limiter: PollRateLimiter, interval: float):
    """Periodically drop expired terminal jobs"""
    while True:
        await asyncio.sleep(interval)
        try:
            store.sweep_expired()
            limiter.prune(lambda job_id: job_id in store)
        except Exception as e:
            logger.error(f"Retention sweep failed: {e}", exc_info=True)


def create_app(
        settings: Optional[Settings] = None,
        provider: Optional[EnrichmentProvider] = None
) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    research_service = None
    if provider is None:
        research_service = ResearchService.from_settings(settings)
        provider = research_service
        contact_finder = research_service.contact_finder
    else:
        contact_finder = ContactFinderService(
            api_key=settings.prospeo_api_key,
            base_url=settings.prospeo_base_url,
            timeout=settings.http_timeout_seconds
        )

    store = JobStore(retention_seconds=settings.retention_seconds)
    runner = JobRunner(
        store,
        provider,
        provider_timeout=settings.provider_timeout_seconds,
        item_delay=settings.item_delay_seconds
    )
    limiter = PollRateLimiter(min_interval=settings.status_poll_min_interval_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweep = asyncio.create_task(
            run_retention_sweep(store, limiter, settings.sweep_interval_seconds)
        )
        logger.info(f"{settings.app_name} v{settings.app_version} started")
        try:
            yield
        finally:
            sweep.cancel()
            await asyncio.gather(sweep, return_exceptions=True)
            await runner.shutdown()
            if research_service is not None:
                await research_service.close()
            else:
                await contact_finder.close()
            logger.info(f"{settings.app_name} stopped")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.job_store = store
    app.state.job_runner = runner
    app.state.poll_limiter = limiter
    app.state.contact_finder = contact_finder

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info(f"Rejected invalid request to {request.url.path}")
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    app.include_router(research_router.router)

    @app.get("/")
    async def root():
        """API root endpoint"""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "active_jobs": store.active_count(),
            "endpoints": {
                "start": "/api/research/start",
                "status": "/api/research/status/{job_id}",
                "cancel": "/api/research/cancel/{job_id}",
                "cleanup": "/api/research/cleanup/{job_id}",
                "load": "/api/research/load",
                "upload": "/api/research/upload",
                "export": "/api/research/export/{job_id}",
                "health": "/api/health",
                "docs": "/docs"
            }
        }

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "insightscout.main:create_app",
        factory=True,
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug
    )
