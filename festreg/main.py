import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from festreg.config import settings
from festreg.database import init_db, close_db
from festreg.middleware.error_handler import register_error_handlers
from festreg.realtime.notifier import Notifier, get_notifier, set_notifier
from festreg.realtime.redis_adapter import create_broadcast_adapter
from festreg.routes import router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")
    try:
        await init_db()
        logger.info("Database connected successfully")
    except Exception as e:
        logger.error(f"Failed to connect to database: {str(e)}")
        raise

    adapter = await create_broadcast_adapter(
        use_redis=settings.USE_REDIS_BROADCAST,
        redis_url=settings.REDIS_URL,
    )
    set_notifier(Notifier(adapter))
    logger.info(f"Notifier ready ({type(adapter).__name__})")

    yield

    logger.info("Shutting down application...")
    try:
        await get_notifier().close()
        await close_db()
    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Festreg API",
        description="Fest registration, team formation and round progression backend",
        version="1.0.0",
        docs_url="/docs" if settings.is_development() else None,
        redoc_url="/redoc" if settings.is_development() else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["*"],
    )
    register_error_handlers(app, debug=settings.is_development())
    app.include_router(router, prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "ok", "environment": settings.ENVIRONMENT}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("festreg.main:app", host="0.0.0.0", port=8000, reload=settings.is_development())
