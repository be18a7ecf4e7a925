import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.app.api.v1.router import api_router
from backend.app.config import get_settings
from backend.app.database import create_tables
from backend.app.exceptions import AppError

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=get_settings().log_level)
    logger.info("Starting up application...")
    await create_tables()
    yield
    logger.info("Shutting down application...")

async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    """Render domain errors as {"detail": message} with the error's status code."""
    if exc.status_code >= 500:
        logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    else:
        logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

app = FastAPI(lifespan=lifespan)
app.add_exception_handler(AppError, handle_app_error)

# Include all API routes
app.include_router(api_router, prefix="/api/v1")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("backend.app.main:app", host="0.0.0.0", port=8000, reload=True)
