"""
工作台快照 - 前后端传输与持久化的基本单位

字段在 JSON 中使用 camelCase（与前端保持一致），Python 侧使用 snake_case。
"""
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from deepwriting.services.milestone import Stage

DEFAULT_AUDIENCE = "对该主题感兴趣的普通读者"
DEFAULT_PURPOSE = "帮助读者快速理解核心观点，并提供可执行建议"

MATERIAL_TYPES = ("text", "url", "file")
TITLE_CATEGORIES = ("numeric", "emotion", "suspense", "contrast", "breaking")


class CamelModel(BaseModel):
    """camelCase 别名基类"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        """序列化为前端使用的 JSON 结构"""
        return self.model_dump(by_alias=True, mode="json")


class MaterialItem(CamelModel):
    """素材条目"""
    id: str
    type: Literal["text", "url", "file"] = "text"
    name: str
    content: str = ""
    importance: int = 3


class StyleSettings(CamelModel):
    """风格偏好"""
    selected_preset: Optional[str] = None
    custom_style_text: str = ""
    emotion_level: int = 5
    professional_level: int = 5
    colloquial_level: int = 5


class Requirements(CamelModel):
    """写作要求"""
    target_word_count: int = 1200
    audience: str = DEFAULT_AUDIENCE
    purpose: str = DEFAULT_PURPOSE
    custom_requirement: str = ""


class TitleItem(CamelModel):
    """候选标题"""
    id: str
    title: str
    category: str = "emotion"
    score: float = 8


class WorkspaceSnapshot(CamelModel):
    """一个项目工作台的完整快照"""
    materials: list[MaterialItem] = Field(default_factory=list)
    style: StyleSettings = Field(default_factory=StyleSettings)
    requirements: Requirements = Field(default_factory=Requirements)
    milestone_tab: Stage = "materials"
    outline: str = ""
    content: str = ""
    titles: list[TitleItem] = Field(default_factory=list)
    selected_title_id: Optional[str] = None


def default_workspace() -> WorkspaceSnapshot:
    """空白工作台"""
    return WorkspaceSnapshot()
