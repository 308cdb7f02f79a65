# backend/crewtech/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from crewtech.config import FRONTEND_ORIGIN, LOG_LEVEL
from crewtech.db import healthcheck
from crewtech.services.errors import MissionError, ValidationError

from crewtech.routers.missions import router as missions_router
from crewtech.routers.costing import router as costing_router
from crewtech.routers.notifications import router as notifications_router

logger = logging.getLogger("crewtech")


def build_app() -> FastAPI:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title="Crew Mission Orders API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[FRONTEND_ORIGIN],
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1|0\.0\.0\.0)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    @app.exception_handler(MissionError)
    def mission_error_handler(request: Request, exc: MissionError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    def request_validation_handler(request: Request, exc: RequestValidationError):
        err = ValidationError.from_errors(exc.errors())
        logger.info("%s %s -> 400: %s", request.method, request.url.path, err.fields)
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.exception_handler(StarletteHTTPException)
    def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    # Health
    @app.get("/health")
    def health():
        return {"ok": True, "db": healthcheck()["status"]}

    app.include_router(missions_router)
    app.include_router(costing_router)
    app.include_router(notifications_router)

    return app


app = build_app()
