"""FastAPI entrypoint for the test-attempt engine."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from attempt_engine.config import LOG_LEVEL
from attempt_engine.database import create_db_and_tables
from attempt_engine.errors import AttemptEngineError
from attempt_engine.routers import attempts as attempts_router_module
from attempt_engine.routers import catalog as catalog_router_module
from attempt_engine.routers import grading as grading_router_module

logging.basicConfig(
    level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Test Attempt Engine")


@app.exception_handler(AttemptEngineError)
async def attempt_engine_exception_handler(request: Request, exc: AttemptEngineError):
    """Map typed engine failures to a JSON body the UI can show as-is."""
    logger.info(
        "%s %s rejected: %s (%s)", request.method, request.url.path, exc.code, exc.message
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message},
    )


# Routers
app.include_router(catalog_router_module.router, tags=["catalog"])
app.include_router(attempts_router_module.router, tags=["attempts"])
app.include_router(grading_router_module.router, tags=["grading"])


@app.get("/health")
def health():
    return {"status": "ok"}


@app.on_event("startup")
def on_startup():
    """Initialize database schema."""
    create_db_and_tables()
