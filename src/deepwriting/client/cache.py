"""
工作台本地缓存 - 单个项目快照的内存副本

所有修改都会递增修订号并发出 Mutated 事件，监听者（WorkspaceSync）据此安排防抖保存。
"""
import uuid
from typing import Any, Callable, Optional

from deepwriting.client.state import (
    Idle,
    LoadFailed,
    LoadSucceeded,
    Loading,
    Mutated,
    ProjectSelected,
    Ready,
    SyncEvent,
    SyncState,
    transition,
)
from deepwriting.models.project import DEFAULT_PROJECT_TITLE
from deepwriting.schemas.workspace import MaterialItem, TitleItem, WorkspaceSnapshot, default_workspace
from deepwriting.services.milestone import DEFAULT_STAGE, advance, is_stage
from deepwriting.services.workspace_normalizer import clamp_number, normalize_workspace


class WorkspaceCache:
    """
    工作台缓存

    显式传递给使用方，不做全局单例。
    """

    def __init__(self):
        self.project_id: Optional[str] = None
        self.project_title: str = DEFAULT_PROJECT_TITLE
        self.state: SyncState = Idle()
        self.snapshot: WorkspaceSnapshot = default_workspace()
        self.revision: int = 0
        # 每次切换项目递增，用来识别过期的加载结果
        self.load_generation: int = 0
        self.active_tab: str = DEFAULT_STAGE
        self._listeners: list[Callable[[], None]] = []

    # ============ 状态 ============

    def dispatch(self, event: SyncEvent) -> SyncState:
        self.state = transition(self.state, event)
        return self.state

    def subscribe(self, listener: Callable[[], None]) -> None:
        """注册修改监听"""
        self._listeners.append(listener)

    @property
    def is_dirty(self) -> bool:
        return isinstance(self.state, Ready) and self.state.dirty

    def select_project(self, project_id: Optional[str]) -> None:
        """切换项目: 清空本地快照并进入加载状态"""
        if project_id == self.project_id:
            return
        self.project_id = project_id
        self.snapshot = default_workspace()
        self.active_tab = DEFAULT_STAGE
        self.revision += 1
        self.load_generation += 1
        self.dispatch(ProjectSelected(project_id))

    def _is_current_load(self, project_id: str, generation: Optional[int]) -> bool:
        """只有当前这次加载（同一项目、仍在 Loading、代数一致）的结果才有效"""
        if self.state != Loading(project_id):
            return False
        return generation is None or generation == self.load_generation

    def apply_loaded(
        self,
        project_id: str,
        project: dict,
        workspace: Any,
        generation: Optional[int] = None,
    ) -> bool:
        """
        采用加载结果

        项目已切换、已经加载完成或结果属于更早一次选择（A→B→A）时丢弃，返回 False。
        加载期间的本地修改会被覆盖。
        """
        if not self._is_current_load(project_id, generation):
            return False
        self.snapshot = normalize_workspace(workspace)
        self.active_tab = self.snapshot.milestone_tab
        title = project.get("title") if isinstance(project, dict) else None
        if isinstance(title, str):
            self.project_title = title
        self.dispatch(LoadSucceeded(project_id))
        return True

    def load_failed(self, project_id: str, generation: Optional[int] = None) -> bool:
        if not self._is_current_load(project_id, generation):
            return False
        self.dispatch(LoadFailed(project_id))
        return True

    def build_payload(self) -> dict:
        """PUT 请求体"""
        return {"workspace": self.snapshot.to_payload()}

    def _touch(self) -> None:
        self.revision += 1
        self.dispatch(Mutated())
        for listener in self._listeners:
            listener()

    # ============ 素材 ============

    def add_material(self, name: str, content: str, type: str = "text", importance: int = 3) -> MaterialItem:
        item = MaterialItem(
            id=uuid.uuid4().hex,
            type=type if type in ("text", "url", "file") else "text",
            name=name,
            content=content,
            importance=clamp_number(importance, 1, 5, 3),
        )
        self.snapshot.materials = [*self.snapshot.materials, item]
        self._touch()
        return item

    def remove_material(self, material_id: str) -> None:
        self.snapshot.materials = [m for m in self.snapshot.materials if m.id != material_id]
        self._touch()

    def set_material_importance(self, material_id: str, importance: int) -> None:
        value = clamp_number(importance, 1, 5, 3)
        self.snapshot.materials = [
            m.model_copy(update={"importance": value}) if m.id == material_id else m
            for m in self.snapshot.materials
        ]
        self._touch()

    # ============ 风格 ============

    def set_selected_preset(self, preset_id: Optional[str]) -> None:
        """选择预设会清空自定义风格文本"""
        self.snapshot.style = self.snapshot.style.model_copy(
            update={"selected_preset": preset_id, "custom_style_text": ""}
        )
        self._touch()

    def set_custom_style_text(self, text: str) -> None:
        """填写自定义风格会取消预设"""
        self.snapshot.style = self.snapshot.style.model_copy(
            update={"custom_style_text": text, "selected_preset": None}
        )
        self._touch()

    def _set_style_level(self, field: str, value: int) -> None:
        self.snapshot.style = self.snapshot.style.model_copy(
            update={field: clamp_number(value, 1, 10, 5)}
        )
        self._touch()

    def set_emotion_level(self, value: int) -> None:
        self._set_style_level("emotion_level", value)

    def set_professional_level(self, value: int) -> None:
        self._set_style_level("professional_level", value)

    def set_colloquial_level(self, value: int) -> None:
        self._set_style_level("colloquial_level", value)

    # ============ 写作要求 ============

    def _set_requirement(self, field: str, value: Any) -> None:
        self.snapshot.requirements = self.snapshot.requirements.model_copy(update={field: value})
        self._touch()

    def set_target_word_count(self, value: Any) -> None:
        self._set_requirement("target_word_count", clamp_number(value or 0, 300, 5000, 300))

    def set_audience(self, text: str) -> None:
        self._set_requirement("audience", text)

    def set_purpose(self, text: str) -> None:
        self._set_requirement("purpose", text)

    def set_custom_requirement(self, text: str) -> None:
        self._set_requirement("custom_requirement", text)

    # ============ 大纲 / 正文 / 标题 ============

    def set_outline(self, text: str) -> None:
        self.snapshot.outline = text
        self._touch()

    def set_content(self, text: str) -> None:
        self.snapshot.content = text
        self._touch()

    def set_titles(self, titles: list[TitleItem]) -> None:
        """替换候选标题，原选中项不在新列表中时取消选中"""
        self.snapshot.titles = list(titles)
        if not any(t.id == self.snapshot.selected_title_id for t in titles):
            self.snapshot.selected_title_id = None
        self._touch()

    def set_selected_title(self, title_id: Optional[str]) -> None:
        self.snapshot.selected_title_id = title_id
        self._touch()

    # ============ 标签页与里程碑 ============

    def set_active_tab(self, tab: str) -> None:
        """切换当前查看的标签页，不影响里程碑，也不触发保存"""
        if is_stage(tab):
            self.active_tab = tab

    def set_milestone_tab(self, tab: str) -> None:
        """推进里程碑，只前进不后退"""
        next_milestone = advance(self.snapshot.milestone_tab, tab)
        if next_milestone == self.snapshot.milestone_tab:
            return
        self.snapshot.milestone_tab = next_milestone
        self._touch()
