"""
大纲数据模型
"""
from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field


class Outline(SQLModel, table=True):
    """项目大纲（一对一，Markdown 文本）"""
    __tablename__ = "outlines"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: str = Field(foreign_key="projects.id", unique=True, index=True)

    content: Optional[str] = Field(default=None, description="大纲内容")
    is_ai_generated: bool = Field(default=False, description="是否由 AI 生成")

    updated_at: datetime = Field(default_factory=datetime.now, description="更新时间")
