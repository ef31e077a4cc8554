"""
AI 生成 API 路由 - 透传大模型文本流
"""
from typing import Any
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from deepwriting.api.deps import require_user
from deepwriting.core import get_logger
from deepwriting.services.generation_service import PRESET_STYLES, get_generation_service

logger = get_logger(__name__)

router = APIRouter(prefix="/ai", tags=["AI 生成"])

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


# ============ 请求模型 ============

class OutlineRequest(BaseModel):
    """大纲生成请求，style / requirements 可以是文本或工作台对象"""
    materials: Any = None
    style: Any = None
    requirements: Any = None


class ContentRequest(OutlineRequest):
    """正文生成请求"""
    outline: Any = None


class TitleRequest(BaseModel):
    """标题生成请求"""
    content: Any = None


def _text_stream(chunks) -> StreamingResponse:
    return StreamingResponse(
        chunks,
        media_type="text/plain; charset=utf-8",
        headers=STREAM_HEADERS,
    )


# ============ API 接口 ============

@router.get("/presets")
async def list_presets():
    """预设写作风格"""
    return PRESET_STYLES


@router.post("/outline")
async def generate_outline(request: OutlineRequest, user_id: str = Depends(require_user)):
    """流式生成大纲"""
    try:
        chunks = get_generation_service().stream_outline(
            request.materials, request.style, request.requirements
        )
    except Exception as e:
        logger.error(f"大纲生成失败: {e}", exc_info=True)
        raise HTTPException(status_code=503, detail="AI 服务暂不可用")
    return _text_stream(chunks)


@router.post("/content")
async def generate_content(request: ContentRequest, user_id: str = Depends(require_user)):
    """流式生成正文"""
    try:
        chunks = get_generation_service().stream_content(
            request.materials, request.style, request.requirements, request.outline
        )
    except Exception as e:
        logger.error(f"正文生成失败: {e}", exc_info=True)
        raise HTTPException(status_code=503, detail="AI 服务暂不可用")
    return _text_stream(chunks)


@router.post("/title")
async def generate_titles(request: TitleRequest, user_id: str = Depends(require_user)):
    """
    流式生成候选标题

    输出里包含 JSON 数组，由调用方提取解析。
    """
    if not isinstance(request.content, str) or not request.content.strip():
        raise HTTPException(status_code=400, detail="请先完成正文")
    try:
        chunks = get_generation_service().stream_titles(request.content)
    except Exception as e:
        logger.error(f"标题生成失败: {e}", exc_info=True)
        raise HTTPException(status_code=503, detail="AI 服务暂不可用")
    return _text_stream(chunks)
