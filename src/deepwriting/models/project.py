"""
项目数据模型
"""
import uuid
from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

DEFAULT_PROJECT_TITLE = "未命名项目"


class Project(SQLModel, table=True):
    """
    写作项目

    一个项目只有一个所有者，工作台数据分散在各个关联表中
    """
    __tablename__ = "projects"

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True, description="所有者ID")

    title: str = Field(default=DEFAULT_PROJECT_TITLE, description="项目标题")
    status: str = Field(default="draft", description="状态: draft/generating")

    # 已到达的最远流程阶段，为空表示旧数据（需要推断）
    milestone_tab: Optional[str] = Field(default=None, description="里程碑阶段")

    created_at: datetime = Field(default_factory=datetime.now, description="创建时间")
    updated_at: datetime = Field(default_factory=datetime.now, description="更新时间")

    def to_summary(self) -> dict:
        """列表/详情接口使用的项目摘要"""
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status,
            "updatedAt": self.updated_at.isoformat(),
        }
