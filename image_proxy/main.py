import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from image_proxy.api.router import api_router
from image_proxy.config import settings
from image_proxy.infrastructure.http_client import close_http_client, init_http_client
from image_proxy.infrastructure.redis_client import close_redis, init_redis
from image_proxy.services.domain_validator import normalize_domains

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    if not normalize_domains(settings.proxy_config().allowed_domains):
        logger.warning("ALLOWED_DOMAINS is empty, every source host is allowed")
    await init_redis()
    await init_http_client()

    yield

    # Shutdown
    await close_http_client()
    await close_redis()


app = FastAPI(title="image-proxy", version=os.getenv("GIT_SHA", "dev"), lifespan=lifespan)

# Catch-all routes, must be registered last
app.include_router(api_router)
