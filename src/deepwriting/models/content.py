"""
正文数据模型
"""
from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field


class Content(SQLModel, table=True):
    """
    项目正文（一对一）

    word_count 由服务端按非空白字符数计算，不信任客户端
    """
    __tablename__ = "contents"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: str = Field(foreign_key="projects.id", unique=True, index=True)

    body: Optional[str] = Field(default=None, description="正文")
    word_count: int = Field(default=0, description="字数（非空白字符）")
    generated_at: Optional[datetime] = Field(default=None, description="正文非空时的保存时间")

    updated_at: datetime = Field(default_factory=datetime.now, description="更新时间")
