"""
测试配置
"""
import os
import sys
import pytest

# 添加 src 目录到 Python 路径
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

# 设置测试环境变量（必须在导入 deepwriting 之前）
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENAI_API_KEY"] = "test-key"


@pytest.fixture
def test_db():
    """独立的内存数据库引擎"""
    from sqlalchemy.pool import StaticPool
    from sqlmodel import create_engine, SQLModel
    import deepwriting.models  # noqa: F401

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def app_db():
    """应用全局引擎上的数据表，每个测试重建"""
    from sqlmodel import SQLModel
    from deepwriting.core.database import engine, init_db

    init_db()
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def owner(test_db):
    """在独立数据库中创建一个用户，返回用户ID"""
    from sqlmodel import Session
    from deepwriting.models import User

    with Session(test_db) as session:
        user = User(name="alice", email="alice@example.com", password_hash="x")
        session.add(user)
        session.commit()
        session.refresh(user)
        return user.id
