from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.errors import AnalysisError, InputError
from app.core.logging import configure_logging
from app.middleware.request_context import RequestContextMiddleware
from app.services.oracle import OpenAIOracle
from app.services.store_links import build_store_link_builder

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Style Scout API", version="0.1.0")
app.add_middleware(RequestContextMiddleware)
cors_origins = {
    settings.base_dashboard_url.rstrip("/"),
    "http://localhost:3000",
    "http://127.0.0.1:3000",
}
extra_origins = [
    origin.strip().rstrip("/")
    for origin in settings.cors_extra_origins.split(",")
    if origin.strip()
]
cors_origins.update(extra_origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=sorted(cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(api_router)


@app.exception_handler(InputError)
async def input_error_handler(request: Request, exc: InputError) -> JSONResponse:
    logger.info("request_rejected: %s", exc.message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("request_body_invalid errors=%d", len(exc.errors()))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid request body"})


@app.exception_handler(AnalysisError)
async def analysis_error_handler(request: Request, exc: AnalysisError) -> JSONResponse:
    logger.error("style_analysis_failed reason=%s: %s", exc.reason, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": exc.public_message},
    )


@app.on_event("startup")
def startup() -> None:
    stores = build_store_link_builder(settings).store_names
    app.state.oracle = OpenAIOracle.from_settings(settings)
    if not app.state.oracle.configured:
        logger.warning("openai_key_missing_analysis_will_fail")
    logger.info("startup_complete stores=%s", ",".join(stores))


@app.on_event("shutdown")
async def shutdown() -> None:
    oracle = getattr(app.state, "oracle", None)
    if isinstance(oracle, OpenAIOracle):
        await oracle.aclose()


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


@app.get("/readyz")
def readyz() -> dict:
    oracle = getattr(app.state, "oracle", None)
    configured = bool(getattr(oracle, "configured", False))
    return {
        "ready": configured,
        "oracle_configured": configured,
    }
