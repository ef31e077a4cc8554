"""
API 路由模块
"""
from fastapi import APIRouter
from .auth import router as auth_router
from .projects import router as projects_router
from .ai import router as ai_router

# 创建主路由
api_router = APIRouter(prefix="/api")

api_router.include_router(auth_router)
api_router.include_router(projects_router)
api_router.include_router(ai_router)

__all__ = ["api_router"]
