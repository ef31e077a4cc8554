"""
写作要求数据模型
"""
from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field


class Requirement(SQLModel, table=True):
    """项目写作要求（一对一）"""
    __tablename__ = "requirements"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: str = Field(foreign_key="projects.id", unique=True, index=True)

    target_word_count: int = Field(default=1200, description="目标字数 300-5000")
    audience: str = Field(description="目标读者")
    purpose: str = Field(description="写作目标")
    custom_requirement: str = Field(default="", description="补充要求")

    updated_at: datetime = Field(default_factory=datetime.now, description="更新时间")
