# app/accounts/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlmodel import text

from app.accounts.core.config import get_settings
from app.accounts.core.errors import AccountError, ErrorKind, InternalError
from app.accounts.core.logging_config import setup_logging
from app.accounts.routers.user import user_router
from app.accounts.schemas.user import api_error
from app.db.session import engine

# 모델 모듈 임포트(테이블 등록 보장용)
from app.db import base as _db_base  # noqa: F401

settings = get_settings()
setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Accounts Service",
    version=settings.app_version,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# public/ 정적 파일 (로컬 미디어 포함)
app.mount("/static", StaticFiles(directory="public", check_dir=False), name="static")


# ──────────────────────────────────────────────────────────────────────────────
# 에러 → HTTP 매핑 (여기서만 렌더링)
# ──────────────────────────────────────────────────────────────────────────────
@app.exception_handler(AccountError)
async def account_error_handler(request: Request, exc: AccountError):
    if exc.kind is ErrorKind.INTERNAL:
        logger.error("internal error on %s %s: %s", request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.kind is ErrorKind.UNAUTHORIZED else None
    return JSONResponse(
        status_code=exc.status_code,
        content=api_error(exc.status_code, exc.message, exc.errors),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": [str(p) for p in err.get("loc", ())], "msg": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=api_error(400, "Invalid request", errors))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=api_error(500, "Something went wrong"))


# 라우터 등록
app.include_router(user_router)


@app.get("/health")
def health_app():
    return {"ok": True}


@app.get("/health/db")
def health_db():
    # Migration is a deployment concern. Runtime only verifies DB connectivity.
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"ok": True}
    except Exception as exc:
        raise InternalError("Database connection failed") from exc
