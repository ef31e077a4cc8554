"""
里程碑 - 六阶段写作流程中"已到达的最远阶段"

里程碑只能前进：advance 是唯一的修改入口。
当前正在查看的标签页不受此约束。
"""
from typing import Literal, Optional

Stage = Literal["materials", "style", "requirements", "outline", "content", "title"]

STAGE_ORDER: tuple[str, ...] = (
    "materials",
    "style",
    "requirements",
    "outline",
    "content",
    "title",
)

DEFAULT_STAGE: Stage = "materials"


def is_stage(value: object) -> bool:
    """是否为合法的阶段标识"""
    return isinstance(value, str) and value in STAGE_ORDER


def stage_index(stage: str) -> int:
    """阶段在流程中的序号"""
    return STAGE_ORDER.index(stage)


def advance(current: str, target: str) -> str:
    """
    推进里程碑

    target 严格晚于 current 时返回 target，否则保持 current。
    """
    if not is_stage(target):
        return current
    if not is_stage(current):
        return target
    return target if stage_index(target) > stage_index(current) else current


def infer_stage(outline: Optional[str], content: Optional[str]) -> Stage:
    """
    为没有显式里程碑的旧数据推断阶段

    有正文 → content；有大纲 → outline；否则 materials
    """
    if content and content.strip():
        return "content"
    if outline and outline.strip():
        return "outline"
    return DEFAULT_STAGE
