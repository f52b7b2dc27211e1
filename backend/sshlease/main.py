# sshlease/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sshlease import __version__
from sshlease.api import (
    auth_router,
    keys_router,
    creds_router,
    leases_router,
    config_router,
    health_router,
)
from sshlease.config import LOG_LEVEL, ALLOWED_ORIGINS
from sshlease.expiration.manager import LeaseManager
from sshlease.expiration.scheduler import start_expiration, stop_expiration
from sshlease.services.dynamic_key import DynamicKeySecret
from sshlease.storage import local_db
from sshlease.storage.pg_storage import PgStorage

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    pool = await local_db.init_pool()
    storage = PgStorage(pool)
    app.state.storage = storage
    app.state.lease_manager = LeaseManager(storage, [DynamicKeySecret()])
    tasks = await start_expiration(app.state.lease_manager)
    logger.info(f"sshlease {__version__} запущен")
    try:
        yield
    finally:
        await stop_expiration(tasks)
        await local_db.close_pool()
        logger.info("sshlease остановлен")


app = FastAPI(title="sshlease", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(keys_router)
app.include_router(creds_router)
app.include_router(leases_router)
app.include_router(config_router)
app.include_router(health_router)
