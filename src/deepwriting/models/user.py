"""
用户与会话数据模型
"""
import uuid
from datetime import datetime
from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    用户模型

    只保存加盐后的密码哈希，不保存明文
    """
    __tablename__ = "users"

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    name: str = Field(description="显示名称（默认取邮箱前缀）")
    email: str = Field(index=True, unique=True, description="登录邮箱")
    password_hash: str = Field(description="加盐密码哈希")

    created_at: datetime = Field(default_factory=datetime.now, description="注册时间")


class UserSession(SQLModel, table=True):
    """登录会话"""
    __tablename__ = "user_sessions"

    token: str = Field(primary_key=True, description="会话令牌")
    user_id: str = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=datetime.now)
    expires_at: datetime = Field(description="过期时间")
