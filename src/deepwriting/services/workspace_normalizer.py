"""
工作台规范化 - 把任意输入整理成合法的 WorkspaceSnapshot

规则:
- 永不抛异常，字段级降级为默认值，而不是拒绝整个文档
- 数值字段四舍五入后截断到合法区间，非数值 / NaN 使用默认值
- 枚举字段不在取值范围内时回退到默认成员
- 空标题被丢弃，selectedTitleId 必须指向保留下来的标题
- 素材和标题的 id 去重，重复的 id 追加序号后缀
- 缺少里程碑时按正文 / 大纲推断（兼容旧数据）

服务端（请求体校验）和 Python 客户端缓存共用这一套规则。
"""
import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from deepwriting.schemas.workspace import (
    DEFAULT_AUDIENCE,
    DEFAULT_PURPOSE,
    TITLE_CATEGORIES,
    MaterialItem,
    Requirements,
    StyleSettings,
    TitleItem,
    WorkspaceSnapshot,
)
from deepwriting.services.milestone import infer_stage, is_stage


def _as_mapping(value: Any) -> Mapping:
    """非字典输入一律视为空字典"""
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, Mapping):
        return value
    return {}


def _as_list(value: Any) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _is_number(value: Any) -> bool:
    # bool 是 int 的子类，需要排除
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def clamp_number(value: Any, minimum: int, maximum: int, fallback: int) -> int:
    """
    截断数值到 [minimum, maximum] 并取整（.5 向上取整）

    非数值或 NaN 返回 fallback，正负无穷截断到对应边界。
    """
    if not _is_number(value):
        return fallback
    if isinstance(value, int):
        return min(maximum, max(minimum, value))
    if math.isnan(value):
        return fallback
    if math.isinf(value):
        return maximum if value > 0 else minimum
    return int(min(maximum, max(minimum, math.floor(value + 0.5))))


def _finite_score(value: Any, fallback: float = 8) -> float:
    """评分只接受有限数值"""
    if not _is_number(value):
        return fallback
    try:
        score = float(value)
    except OverflowError:
        return fallback
    return score if math.isfinite(score) else fallback


def _string(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _non_blank(value: Any, default: str) -> str:
    """空白字符串也回退到默认值"""
    if isinstance(value, str) and value.strip():
        return value
    return default


def _optional_string(value: Any):
    return value if isinstance(value, str) else None


def normalize_material(raw: Any, index: int) -> MaterialItem:
    """规范化单条素材，index 从 0 开始"""
    m = _as_mapping(raw)
    material_id = m.get("id")
    material_type = m.get("type")
    name = m.get("name")

    return MaterialItem(
        id=material_id if isinstance(material_id, str) and material_id else f"material-{index + 1}",
        type=material_type if material_type in ("url", "file") else "text",
        name=name.strip() if isinstance(name, str) and name.strip() else f"素材 {index + 1}",
        content=_string(m.get("content")),
        importance=clamp_number(m.get("importance"), 1, 5, 3),
    )


def normalize_title(raw: Any, index: int) -> TitleItem:
    """规范化单个候选标题（可能得到空标题，由调用方过滤）"""
    t = _as_mapping(raw)
    title_id = t.get("id")
    title = t.get("title")
    category = t.get("category")

    return TitleItem(
        id=title_id if isinstance(title_id, str) and title_id else f"title-{index + 1}",
        title=title.strip() if isinstance(title, str) else "",
        category=category if category in TITLE_CATEGORIES else "emotion",
        score=_finite_score(t.get("score")),
    )


def _unique_ids(items: list) -> list:
    """
    保证 id 唯一: 重复出现的 id 依次改为 "{id}-2"、"{id}-3" ...

    首次出现的保留原 id，已经唯一的列表原样返回（保持幂等）。
    """
    taken = {item.id for item in items}
    seen = set()
    result = []
    for item in items:
        if item.id in seen:
            suffix = 2
            while f"{item.id}-{suffix}" in taken:
                suffix += 1
            new_id = f"{item.id}-{suffix}"
            taken.add(new_id)
            item = item.model_copy(update={"id": new_id})
        seen.add(item.id)
        result.append(item)
    return result


def normalize_style(raw: Any) -> StyleSettings:
    """规范化风格偏好"""
    s = _as_mapping(raw)
    return StyleSettings(
        selected_preset=_optional_string(s.get("selectedPreset")),
        custom_style_text=_string(s.get("customStyleText")),
        emotion_level=clamp_number(s.get("emotionLevel"), 1, 10, 5),
        professional_level=clamp_number(s.get("professionalLevel"), 1, 10, 5),
        colloquial_level=clamp_number(s.get("colloquialLevel"), 1, 10, 5),
    )


def normalize_requirements(raw: Any) -> Requirements:
    """规范化写作要求"""
    r = _as_mapping(raw)
    return Requirements(
        target_word_count=clamp_number(r.get("targetWordCount"), 300, 5000, 1200),
        audience=_non_blank(r.get("audience"), DEFAULT_AUDIENCE),
        purpose=_non_blank(r.get("purpose"), DEFAULT_PURPOSE),
        custom_requirement=_string(r.get("customRequirement")),
    )


def normalize_workspace(value: Any) -> WorkspaceSnapshot:
    """
    把任意值规范化为 WorkspaceSnapshot

    纯函数，且幂等: normalize_workspace(normalize_workspace(x)) == normalize_workspace(x)
    """
    raw = _as_mapping(value)

    materials = _unique_ids([
        normalize_material(item, index)
        for index, item in enumerate(_as_list(raw.get("materials")))
    ])
    titles = [
        title
        for title in (
            normalize_title(item, index)
            for index, item in enumerate(_as_list(raw.get("titles")))
        )
        if title.title
    ]
    titles = _unique_ids(titles)

    outline = _string(raw.get("outline"))
    content = _string(raw.get("content"))

    selected_title_id = raw.get("selectedTitleId")
    if not isinstance(selected_title_id, str) or not any(t.id == selected_title_id for t in titles):
        selected_title_id = None

    milestone_tab = raw.get("milestoneTab")
    if not is_stage(milestone_tab):
        milestone_tab = infer_stage(outline, content)

    return WorkspaceSnapshot(
        materials=materials,
        style=normalize_style(raw.get("style")),
        requirements=normalize_requirements(raw.get("requirements")),
        milestone_tab=milestone_tab,
        outline=outline,
        content=content,
        titles=titles,
        selected_title_id=selected_title_id,
    )
