"""
认证 API 路由
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel

from deepwriting.api.deps import SESSION_COOKIE, get_session_token, require_user
from deepwriting.core import get_settings, get_logger
from deepwriting.core.exceptions import (
    AuthenticationError,
    EmailAlreadyRegisteredError,
    ValidationError,
)
from deepwriting.services.auth_service import get_auth_service

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["认证"])


# ============ 请求/响应模型 ============

class CredentialsRequest(BaseModel):
    """注册 / 登录请求"""
    email: Optional[str] = None
    password: Optional[str] = None


class UserResponse(BaseModel):
    """用户信息"""
    id: str
    name: str
    email: str


class LoginResponse(BaseModel):
    """登录响应"""
    token: str
    user: UserResponse


# ============ API 接口 ============

@router.post("/register", response_model=UserResponse)
async def register(request: CredentialsRequest):
    """注册"""
    try:
        return get_auth_service().register(request.email, request.password)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"注册失败: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="注册失败，请重试")


@router.post("/login", response_model=LoginResponse)
async def login(request: CredentialsRequest, response: Response):
    """登录，令牌同时写入 Cookie"""
    try:
        token, user = get_auth_service().login(request.email, request.password)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))

    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=get_settings().session_ttl_hours * 3600,
        httponly=True,
        samesite="lax",
    )
    return LoginResponse(token=token, user=UserResponse(**user))


@router.post("/logout")
async def logout(request: Request, response: Response, user_id: str = Depends(require_user)):
    """注销当前会话"""
    get_auth_service().logout(get_session_token(request))
    response.delete_cookie(SESSION_COOKIE)
    return {"ok": True}


@router.get("/me", response_model=UserResponse)
async def me(user_id: str = Depends(require_user)):
    """当前登录用户"""
    user = get_auth_service().get_user(user_id)
    if not user:
        raise HTTPException(status_code=401, detail="未登录")
    return user
