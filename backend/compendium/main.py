import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from compendium.core.config import settings
from compendium.core.database import async_session, engine
from compendium.api.routes.index import router as index_router
from compendium.api.routes.jobs import router as jobs_router
from compendium.api.routes.settings import router as settings_router
from compendium.services.cache import CacheService
from compendium.services.search import use_collation_locale

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s : %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: string sorting follows the configured collation
    use_collation_locale(settings.COLLATION_LOCALE)
    yield
    # Shutdown: release pooled connections
    await CacheService.close()
    await engine.dispose()


app = FastAPI(title=settings.PROJECT_NAME, debug=settings.DEBUG, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(index_router, prefix="/api/v1")
app.include_router(jobs_router, prefix="/api/v1")
app.include_router(settings_router, prefix="/api/v1")


@app.get("/health")
async def health():
    try:
        async with async_session() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {e}"

    redis_ok = await CacheService.health_check()

    return {
        "status": "ok" if db_status == "connected" else "degraded",
        "db": db_status,
        "redis": "connected" if redis_ok else "unavailable",
    }
