"""
素材数据模型 - 项目工作台中的参考素材
"""
import uuid
from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field


class Material(SQLModel, table=True):
    """
    项目素材

    保存时整体替换，id 每次重新生成
    """
    __tablename__ = "materials"

    # 主键
    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    project_id: str = Field(foreign_key="projects.id", index=True)

    # 类型: text/url/file
    type: str = Field(default="text", description="素材类型")
    name: str = Field(description="素材名称")

    # 内容
    raw_content: Optional[str] = Field(default=None, description="原始内容")
    extracted_content: Optional[str] = Field(default=None, description="提取后的文本")
    file_url: Optional[str] = Field(default=None, description="文件地址")

    importance: int = Field(default=3, description="重要度 1-5")
    position: int = Field(default=0, description="同批次内的顺序")

    # 时间戳
    created_at: datetime = Field(default_factory=datetime.now, description="创建时间")

    def resolved_content(self) -> str:
        """优先使用提取文本，其次原始内容，最后文件地址"""
        for value in (self.extracted_content, self.raw_content, self.file_url):
            if value is not None:
                return value
        return ""
