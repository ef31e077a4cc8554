"""
路由依赖 - 会话解析
"""
from typing import Optional
from fastapi import HTTPException, Request

from deepwriting.services.auth_service import get_auth_service

SESSION_COOKIE = "session_token"


def get_session_token(request: Request) -> Optional[str]:
    """从 Cookie 或 Authorization: Bearer 中取会话令牌"""
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        return token
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def require_user(request: Request) -> str:
    """依赖：要求用户已登录，返回用户ID"""
    user_id = get_auth_service().resolve_session(get_session_token(request))
    if not user_id:
        raise HTTPException(status_code=401, detail="未登录")
    return user_id
