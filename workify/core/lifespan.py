import logging
from contextlib import asynccontextmanager

from workify.core.config import settings
from workify.services.container import build_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    services = getattr(app.state, "services", None)
    if services is None:
        services = build_services(settings)
        app.state.services = services

    services.start()
    try:
        yield
    finally:
        await services.stop()
