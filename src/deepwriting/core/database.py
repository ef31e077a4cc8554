"""
数据库连接管理 - 统一管理数据库连接
"""
from pathlib import Path

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from deepwriting.core.config import get_settings


def _build_engine(database_url: str):
    """按连接串创建引擎，SQLite 需要允许跨线程访问。"""
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=False, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    # 内存库只能共享同一个连接，否则每个连接都是一份新库
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    elif database_url.startswith("sqlite:///"):
        Path(database_url.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(database_url, echo=False, **kwargs)


# 创建全局数据库引擎
_settings = get_settings()
engine = _build_engine(_settings.database_url)


def init_db() -> None:
    """创建所有数据表"""
    # 导入模型以注册到 metadata
    import deepwriting.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


__all__ = ["engine", "init_db"]
