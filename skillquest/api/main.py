"""
FastAPI application - Main entry point for the reference SkillQuest API.

Usage:
    uvicorn skillquest.api.main:app --reload

Tests and the in-process client build their own isolated app with
`create_app(storage=..., grader=...)`.
"""

from dotenv import load_dotenv

load_dotenv()

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from skillquest.database.storage import InMemoryStorage, seed_demo_data
from skillquest.error_handler import ErrorHandler
from skillquest.grading import Grader, PatternGrader
from skillquest.utils.config_loader import PlatformConfig, load_platform_config

from .endpoints import router

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

error_handler = ErrorHandler()


def _validation_body(exc: RequestValidationError) -> dict:
    errors = exc.errors()
    if not errors:
        return {"message": "Invalid request"}
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    body = {"message": first.get("msg", "Invalid request")}
    if loc:
        body["field"] = ".".join(loc)
    return body


def create_app(
    storage: Optional[InMemoryStorage] = None,
    grader: Optional[Grader] = None,
    config: Optional[PlatformConfig] = None,
) -> FastAPI:
    config = config or load_platform_config()
    server_cfg = config.server

    if storage is None:
        storage = InMemoryStorage(
            xp_per_level=server_cfg.xp_per_level,
            default_daily_bonus_xp=server_cfg.default_daily_bonus_xp,
        )
        if server_cfg.seed_demo_data:
            seed_demo_data(storage)

    app = FastAPI(
        title=server_cfg.title,
        description="Reference server for the SkillQuest typed API contract",
        version="1.0.0",
    )
    app.state.storage = storage
    app.state.grader = grader or PatternGrader()
    app.state.server_config = server_cfg

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------ #
    # Error bodies: always {"message": ...} plus declared extras
    # ------------------------------------------------------------------ #
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if isinstance(exc.detail, dict):
            content = dict(exc.detail)
        else:
            content = {"message": str(exc.detail)}
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_validation_body(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        body = error_handler.to_response_body(exc, {"path": request.url.path, "method": request.method})
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)

    app.include_router(router)
    logger.info("SkillQuest API ready with %d routes", len(router.routes))
    return app


app = create_app()
