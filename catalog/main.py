from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from catalog.api.api import api_router
from catalog.config.database import SessionLocal
from catalog.config.logging import get_logger, setup_logging
from catalog.config.otel import instrument_fastapi_app, setup_telemetry
from catalog.core.config import settings
from catalog.core.init_db import create_tables, initialize_categories

# --- 1. 로깅 설정 (가장 먼저) ---
setup_logging()
logger = get_logger("catalog.main")

# --- 2. 트레이싱 설정 ---
setup_telemetry()
tracer = trace.get_tracer("catalog.main")


@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    """애플리케이션 생명주기 관리"""
    with tracer.start_as_current_span("app.lifespan.startup") as startup_span:
        try:
            create_tables()

            if settings.SEED_CATEGORIES:
                with SessionLocal() as db:
                    initialize_categories(db)

            startup_span.set_status(Status(StatusCode.OK))
            logger.info("Application startup sequence completed.", extra={"seed_categories": settings.SEED_CATEGORIES})
        except Exception as e:
            logger.error("Critical error during application startup", extra={"error": str(e)}, exc_info=True)
            startup_span.record_exception(e)
            startup_span.set_status(Status(StatusCode.ERROR, "Critical startup failure"))
            raise

    yield

    logger.info("Application shutdown sequence completed.")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_PREFIX)

instrument_fastapi_app(app)


@app.get("/")
def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}", "version": settings.VERSION}


@app.get("/health")
def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("catalog.main:app", host="0.0.0.0", port=8000, reload=False)
