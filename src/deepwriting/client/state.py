"""
工作台同步状态机

状态:
    Idle                              未选择项目
    Loading(project_id)               正在加载
    Ready(project_id, dirty)          本地快照可用，dirty 表示有未保存的修改
    Saving(project_id, revision)      保存请求进行中，revision 为发起保存时的修订号

transition 是纯函数；网络请求由 WorkspaceSync 发起，结果以事件形式回传。
事件里的 project_id 与当前状态不一致时（用户已切换项目），结果被丢弃，状态不变。
"""
from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Loading:
    project_id: str


@dataclass(frozen=True)
class Ready:
    project_id: str
    dirty: bool = False


@dataclass(frozen=True)
class Saving:
    project_id: str
    revision_at_start: int


SyncState = Union[Idle, Loading, Ready, Saving]


# ============ 事件 ============

@dataclass(frozen=True)
class ProjectSelected:
    project_id: Optional[str]


@dataclass(frozen=True)
class LoadSucceeded:
    project_id: str


@dataclass(frozen=True)
class LoadFailed:
    project_id: str


@dataclass(frozen=True)
class Mutated:
    pass


@dataclass(frozen=True)
class SaveStarted:
    project_id: str
    revision: int


@dataclass(frozen=True)
class SaveSucceeded:
    project_id: str
    revision: int  # 保存完成时的修订号


@dataclass(frozen=True)
class SaveFailed:
    project_id: str


SyncEvent = Union[
    ProjectSelected,
    LoadSucceeded,
    LoadFailed,
    Mutated,
    SaveStarted,
    SaveSucceeded,
    SaveFailed,
]


def current_project_id(state: SyncState) -> Optional[str]:
    return getattr(state, "project_id", None)


def transition(state: SyncState, event: SyncEvent) -> SyncState:
    """根据事件计算下一个状态"""
    if isinstance(event, ProjectSelected):
        if event.project_id is None:
            return Idle()
        if current_project_id(state) == event.project_id:
            return state
        return Loading(event.project_id)

    if isinstance(event, LoadSucceeded):
        if isinstance(state, Loading) and state.project_id == event.project_id:
            return Ready(event.project_id, dirty=False)
        return state

    if isinstance(event, LoadFailed):
        # 加载失败也进入可编辑状态（使用默认工作台），之后的编辑照常保存
        if isinstance(state, Loading) and state.project_id == event.project_id:
            return Ready(event.project_id, dirty=False)
        return state

    if isinstance(event, Mutated):
        # 加载中的修改会被加载结果覆盖；保存中的修改靠修订号识别
        if isinstance(state, Ready):
            return Ready(state.project_id, dirty=True)
        return state

    if isinstance(event, SaveStarted):
        if isinstance(state, Ready) and state.dirty and state.project_id == event.project_id:
            return Saving(event.project_id, event.revision)
        return state

    if isinstance(event, SaveSucceeded):
        if isinstance(state, Saving) and state.project_id == event.project_id:
            return Ready(event.project_id, dirty=event.revision != state.revision_at_start)
        return state

    if isinstance(event, SaveFailed):
        if isinstance(state, Saving) and state.project_id == event.project_id:
            return Ready(event.project_id, dirty=True)
        return state

    raise TypeError(f"unknown sync event: {event!r}")


def can_save(state: SyncState) -> bool:
    """只有就绪且有未保存修改时才能发起保存"""
    return isinstance(state, Ready) and state.dirty
