"""
认证服务 - 注册、登录、会话校验
"""
import re
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from deepwriting.core import get_settings, get_logger
from deepwriting.core.database import engine
from deepwriting.core.exceptions import (
    AuthenticationError,
    EmailAlreadyRegisteredError,
    ValidationError,
)
from deepwriting.core.security import generate_session_token, hash_password, verify_password
from deepwriting.models import User, UserSession

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


def _public_user(user: User) -> dict:
    return {"id": user.id, "name": user.name, "email": user.email}


class AuthService:
    """
    认证服务

    会话令牌存库，请求时通过令牌换取用户ID。
    """

    def __init__(self, db_engine=None):
        self.engine = db_engine if db_engine is not None else engine
        self.session_ttl = timedelta(hours=get_settings().session_ttl_hours)

    def register(self, email: Optional[str], password: Optional[str]) -> dict:
        """
        注册新用户

        Raises:
            ValidationError: 邮箱或密码不合法
            EmailAlreadyRegisteredError: 邮箱已存在
        """
        if not email or not password:
            raise ValidationError("请填写邮箱和密码")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"密码至少{MIN_PASSWORD_LENGTH}位")
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("邮箱格式不正确")

        with Session(self.engine) as session:
            existing = session.exec(select(User).where(User.email == email)).first()
            if existing:
                raise EmailAlreadyRegisteredError("该邮箱已注册")

            user = User(
                name=email.split("@")[0],
                email=email,
                password_hash=hash_password(password),
            )
            session.add(user)
            try:
                session.commit()
            except IntegrityError as e:
                # 并发注册同一邮箱
                raise EmailAlreadyRegisteredError("该邮箱已注册") from e
            session.refresh(user)

            logger.info(f"新用户注册: id={user.id}")
            return _public_user(user)

    def login(self, email: Optional[str], password: Optional[str]) -> tuple[str, dict]:
        """
        登录并签发会话令牌

        Returns:
            (令牌, 用户信息)
        """
        if not email or not password:
            raise ValidationError("请填写邮箱和密码")

        with Session(self.engine) as session:
            user = session.exec(select(User).where(User.email == email)).first()
            if not user or not verify_password(password, user.password_hash):
                raise AuthenticationError("邮箱或密码错误")

            now = datetime.now()
            token = generate_session_token()
            session.add(UserSession(
                token=token,
                user_id=user.id,
                created_at=now,
                expires_at=now + self.session_ttl,
            ))
            session.commit()
            session.refresh(user)
            return token, _public_user(user)

    def resolve_session(self, token: Optional[str]) -> Optional[str]:
        """令牌换用户ID，令牌无效或过期返回 None"""
        if not token:
            return None
        with Session(self.engine) as session:
            record = session.get(UserSession, token)
            if not record:
                return None
            if record.expires_at <= datetime.now():
                session.delete(record)
                session.commit()
                return None
            return record.user_id

    def logout(self, token: Optional[str]) -> None:
        """注销会话"""
        if not token:
            return
        with Session(self.engine) as session:
            record = session.get(UserSession, token)
            if record:
                session.delete(record)
                session.commit()

    def get_user(self, user_id: str) -> Optional[dict]:
        with Session(self.engine) as session:
            user = session.get(User, user_id)
            return _public_user(user) if user else None


# 全局单例
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """获取认证服务单例"""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
