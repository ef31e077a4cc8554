"""
写作风格数据模型 - 每个项目一行
"""
from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field


class Style(SQLModel, table=True):
    """
    项目写作风格

    extracted_features 是旧版本遗留的 JSON 字段（曾用来存放预设、写作要求和
    里程碑），现在只读不写
    """
    __tablename__ = "styles"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: str = Field(foreign_key="projects.id", unique=True, index=True)

    selected_preset: Optional[str] = Field(default=None, description="预设风格ID")
    sample_text: Optional[str] = Field(default=None, description="自定义风格参考文本")
    extracted_features: Optional[str] = Field(default=None, description="旧版特征 JSON")

    emotion_level: int = Field(default=5, description="情感浓度 1-10")
    professional_level: int = Field(default=5, description="专业深度 1-10")
    colloquial_level: int = Field(default=5, description="口语化程度 1-10")

    updated_at: datetime = Field(default_factory=datetime.now, description="更新时间")
