import logging
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cardmatch.api import cards_router, health_router, vision_router
from cardmatch.config import settings
from cardmatch.models.failure import KnownError, create_unknown_failure

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    version=pkg_version("cardmatch"),
)

app.include_router(cards_router)
app.include_router(health_router)
app.include_router(vision_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Classified failures leave through the response envelope, never as raw 500s."""
    logger.info("KNOWN_FAILURE", extra={"kind": exc.kind.value, "detail": exc.detail})
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(mode="json"),
    )


@app.exception_handler(Exception)
async def unknown_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.error("UNKNOWN_FAILURE", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=create_unknown_failure(exc).model_dump(mode="json"),
    )
