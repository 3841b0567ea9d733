import logging
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from .assignment_routes import router as assignment_router
from .config import get_settings
from .errors import TrailmarkError
from .logging_config import configure_logging


configure_logging()
logger = logging.getLogger(__name__)
app = FastAPI(title="Trailmark Assignments API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

settings_snapshot = get_settings()
logger.info("Database configured: %s", bool(settings_snapshot.database_url))
logger.info("Curriculum source: %s", settings_snapshot.curriculum_path or "built-in")


@app.exception_handler(TrailmarkError)
async def trailmark_error_handler(request: Request, exc: TrailmarkError) -> JSONResponse:
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.get("/healthz")
def health() -> Dict[str, str]:
    return {"status": "ok"}


app.include_router(assignment_router)
