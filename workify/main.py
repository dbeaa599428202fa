import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from workify.api.v1.admin import router as admin_router
from workify.api.v1.applications import router as applications_router
from workify.api.v1.feedback import router as feedback_router
from workify.api.v1.health import router as health_router
from workify.api.v1.jobs import router as jobs_router
from workify.api.v1.profile import router as profile_router
from workify.core.cors import cors_allowed_origins
from workify.core.rate_limit import limiter
from workify.core.config import settings
from workify.core.lifespan import lifespan
from workify.core.security import check_api_key
from workify.services.container import AppServices

logging.basicConfig(level=settings.log_level, format="%(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)


def create_app(services: AppServices | None = None) -> FastAPI:
    app = FastAPI(title="Workify API", version="0.1.0", lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_allowed_origins(),
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    protected = [Depends(check_api_key)]
    app.include_router(health_router, prefix="/v1", tags=["Health"])
    app.include_router(profile_router, prefix="/v1", tags=["Profile"], dependencies=protected)
    app.include_router(jobs_router, prefix="/v1", tags=["Jobs"], dependencies=protected)
    app.include_router(applications_router, prefix="/v1", tags=["Applications"], dependencies=protected)
    app.include_router(feedback_router, prefix="/v1", tags=["Feedback"], dependencies=protected)
    app.include_router(admin_router, prefix="/v1", tags=["Admin"])
    return app


app = create_app()
