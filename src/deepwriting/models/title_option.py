"""
候选标题数据模型
"""
import uuid
from typing import Optional
from sqlmodel import SQLModel, Field


class TitleOption(SQLModel, table=True):
    """候选标题，is_selected 标记用户选中的那一个"""
    __tablename__ = "title_options"

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    project_id: str = Field(foreign_key="projects.id", index=True)

    title: str = Field(description="标题文本")
    category: Optional[str] = Field(default="emotion", description="分类")
    score: Optional[float] = Field(default=8, description="评分")
    is_selected: bool = Field(default=False, description="是否选中")
    position: int = Field(default=0, description="展示顺序")
