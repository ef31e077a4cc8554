"""
FastAPI 应用入口
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from deepwriting.core import setup_logging, get_settings, get_logger
from deepwriting.core.database import init_db
from deepwriting.api import api_router

# 初始化日志
settings = get_settings()
setup_logging(settings.log_level)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    init_db()
    logger.info("🚀 DeepWriting API 启动中...")
    yield
    logger.info("👋 DeepWriting API 关闭")


# 创建 FastAPI 应用
app = FastAPI(
    title="DeepWriting API",
    description="AI 辅助文章写作工作台后端服务",
    version="0.1.0",
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """错误统一返回 {"error": "..."}"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# 注册 API 路由
app.include_router(api_router)


@app.get("/")
async def root():
    """健康检查"""
    return {"status": "ok", "message": "DeepWriting API 运行中"}


@app.get("/health")
async def health():
    """健康检查"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    logger.info(f"启动服务: http://{settings.api_host}:{settings.api_port}")
    uvicorn.run(
        "deepwriting.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
