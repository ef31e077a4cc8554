"""
创建数据库表
"""
from deepwriting.core import get_settings
from deepwriting.core.database import init_db

settings = get_settings()

if __name__ == "__main__":
    init_db()
    print(f"✅ 数据库表创建完成: {settings.database_url}")
