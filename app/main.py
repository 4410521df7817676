import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.middleware import RateLimitMiddleware, SecurityHeadersMiddleware
from app.api.routes import api_router
from app.api.v1 import v1_router
from app.api.v1.envelope import error
from app.config.settings import settings
from app.core.db import close_client
from app.core.logging_config import setup_logging

setup_logging()
logger = logging.getLogger("main")

app = FastAPI(title="MongoDB GST Explorer", debug=settings.DEBUG)

app.add_middleware(
    RateLimitMiddleware,
    limit=settings.RATE_LIMIT_MAX_REQUESTS,
    window=settings.RATE_LIMIT_WINDOW_SECONDS,
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    logger.warning("HTTP %s on %s: %s", exc.status_code, request.url.path, exc.detail)
    return JSONResponse(error(str(exc.detail)), status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]
    return JSONResponse(error("Validation failed", errors=details), status_code=422)


@app.exception_handler(Exception)
async def general_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(error("Internal Server Error"), status_code=500)


@app.on_event("startup")
async def startup():
    logger.info("%s starting (environment=%s)", settings.APP_NAME, settings.ENVIRONMENT)


@app.on_event("shutdown")
async def shutdown():
    close_client()


app.include_router(api_router)
app.include_router(v1_router)
