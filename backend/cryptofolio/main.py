# 应用入口 (Application Entry)
# 组装顺序：日志 -> 应用 -> 异常映射 -> 请求日志 -> CORS -> 路由
import time
import logging
import traceback
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from cryptofolio.core.config import settings
from cryptofolio.core import security
from cryptofolio.core.database import Base, engine
from cryptofolio.core.exceptions import AppError
from cryptofolio.core.logging import setup_logging
from cryptofolio.api.v1.api import api_router
import cryptofolio.models  # noqa: F401  注册所有表

setup_logging()
logger = logging.getLogger("cryptofolio.api")

INTERNAL_ERROR = {"code": "INTERNAL_ERROR", "message": "Internal server error", "retryable": False}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 启动时建表 (已存在的表不受影响)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready")
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="加密货币投资组合追踪后端 API：持仓、交易、自选与实时行情",
    version="1.0.0",
    lifespan=lifespan
)


# 1. 领域异常 -> HTTP 状态码 (Domain errors)
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


# 2. 未预期的异常统一返回 500，细节只进日志 (Unexpected errors)
@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}\n"
        f"{traceback.format_exc()}"
    )
    return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR})


def _request_user(request: Request) -> str:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme != "Bearer" or not token:
        return "anonymous"
    return security.decode_access_token(token) or "invalid_token"


# 3. 访问日志 (Access log): 方法、路径、状态码、用户、耗时
@app.middleware("http")
async def access_log(request: Request, call_next):
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as exc:
        logger.error(f"Request {request.method} {request.url.path} crashed: {type(exc).__name__}: {exc}")
        return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR})

    elapsed = f"{(time.perf_counter() - started) * 1000:.2f}ms"
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} "
        f"user={_request_user(request)} elapsed={elapsed}"
    )
    response.headers["X-Process-Time"] = elapsed
    return response


# 4. CORS: 本地前端开发端口 + 配置中的额外来源
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:4200", "http://127.0.0.1:4200", "http://localhost:3000"]
    + list(settings.ALLOWED_ORIGINS),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 5. 路由挂载
app.include_router(api_router, prefix="/api")


@app.get("/health", tags=["System"])
async def health():
    """存活探针"""
    return {"status": "ok", "service": settings.PROJECT_NAME}


@app.get("/", include_in_schema=False)
async def index():
    return {"message": f"{settings.PROJECT_NAME} API", "docs": "/docs"}
