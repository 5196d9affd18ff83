import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from mangum import Mangum
from starlette.middleware.cors import CORSMiddleware

from lifecurve import containers
from lifecurve.config import settings
from lifecurve.core.exception_handlers import register_exception_handlers
from lifecurve.core.logging_middleware import LoggingMiddleware
from lifecurve.routers import (
    admin_code_router,
    admin_consultation_router,
    admin_master_router,
    admin_router,
    config_router,
    consultation_router,
    health_router,
    master_router,
    pay_router,
    point_router,
    redeem_router,
    result_cache_router,
    stats_router,
    usage_router,
)
from lifecurve.utils.config import init_logging

load_dotenv("lifecurve/.env")
init_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.container.services.redis_service().close()  # type: ignore


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG, lifespan=lifespan)
    app.container = containers.Container()  # type: ignore

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.SITE_URL] if settings.is_production else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    for module in (
        health_router,
        usage_router,
        redeem_router,
        result_cache_router,
        pay_router,
        master_router,
        consultation_router,
        config_router,
        stats_router,
        point_router,
        admin_router,
        admin_code_router,
        admin_master_router,
        admin_consultation_router,
    ):
        app.include_router(module.router, prefix=settings.API_PREFIX)

    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")
    return app


app = create_app()

handler = Mangum(app)
