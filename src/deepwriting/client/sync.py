"""
工作台同步 - 状态机外面的命令式外壳

负责发起网络请求并把结果作为事件交给 WorkspaceCache:
- 选择项目时加载工作台
- 修改后等待一段静默期（防抖）再整体保存
- 请求返回时项目已切换，则丢弃结果（请求本身不取消）
- 保存失败保持 dirty，等下一次修改触发重试
"""
import asyncio
from typing import Optional

import httpx

from deepwriting.client.api_client import WorkspaceApiClient
from deepwriting.client.cache import WorkspaceCache
from deepwriting.client.state import (
    Loading,
    Ready,
    SaveFailed,
    SaveStarted,
    SaveSucceeded,
    can_save,
)
from deepwriting.core import get_settings, get_logger
from deepwriting.schemas.workspace import TitleItem
from deepwriting.services.generation_service import parse_title_candidates

logger = get_logger(__name__)


class WorkspaceSync:
    """工作台同步器"""

    def __init__(
        self,
        api: WorkspaceApiClient,
        cache: Optional[WorkspaceCache] = None,
        debounce_seconds: Optional[float] = None,
    ):
        self.api = api
        self.cache = cache if cache is not None else WorkspaceCache()
        self.debounce_seconds = (
            debounce_seconds
            if debounce_seconds is not None
            else get_settings().autosave_debounce_seconds
        )
        self._timer: Optional[asyncio.Task] = None
        self._in_flight: set[asyncio.Task] = set()
        self.cache.subscribe(self._schedule_save)

    # ============ 加载 ============

    async def select_project(self, project_id: Optional[str]) -> None:
        """切换项目，需要时加载工作台"""
        self.cache.select_project(project_id)
        if isinstance(self.cache.state, Loading):
            await self.load(self.cache.state.project_id)

    async def load(self, project_id: str) -> bool:
        """加载工作台，结果过期（已切换项目或已被更新的一次加载取代）时返回 False"""
        generation = self.cache.load_generation
        try:
            project, workspace = await self.api.get_workspace(project_id)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"加载工作台失败: project_id={project_id}, error={e}")
            self.cache.load_failed(project_id, generation)
            return False

        applied = self.cache.apply_loaded(project_id, project, workspace, generation)
        if not applied:
            logger.info(f"丢弃过期的加载结果: project_id={project_id}")
        return applied

    # ============ 保存 ============

    def _schedule_save(self) -> None:
        """重新开始防抖计时"""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # 没有事件循环时只标记 dirty，由调用方显式 flush
            return
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = loop.create_task(self._debounce())

    async def _debounce(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        # 保存放在独立任务里，重新计时不会取消进行中的请求
        task = asyncio.get_running_loop().create_task(self.save())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def save(self) -> bool:
        """
        立即保存当前快照

        加载中、保存中或没有修改时不发请求，返回 False。
        """
        state = self.cache.state
        if not can_save(state):
            return False

        project_id = state.project_id
        revision = self.cache.revision
        payload = self.cache.build_payload()
        self.cache.dispatch(SaveStarted(project_id, revision))

        try:
            await self.api.save_workspace(project_id, payload)
        except httpx.HTTPError as e:
            logger.warning(f"保存工作台失败: project_id={project_id}, error={e}")
            self.cache.dispatch(SaveFailed(project_id))
            return False

        self.cache.dispatch(SaveSucceeded(project_id, self.cache.revision))

        # 保存期间又有修改: 重新安排一次保存
        if isinstance(self.cache.state, Ready) and self.cache.state.dirty:
            self._schedule_save()
        return True

    async def flush(self) -> bool:
        """取消防抖计时并立即保存"""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        return await self.save()

    async def wait_idle(self) -> None:
        """等待防抖计时和进行中的保存（包括期间重新安排的保存）全部结束"""
        while True:
            pending = {t for t in self._in_flight if not t.done()}
            if self._timer is not None and not self._timer.done():
                pending.add(self._timer)
            if not pending:
                return
            await asyncio.wait(pending)

    async def aclose(self) -> None:
        """停止计时，等进行中的请求结束后关闭连接"""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)
        await self.api.aclose()

    # ============ 生成 ============

    async def generate_titles(self) -> list[TitleItem]:
        """
        根据当前正文生成候选标题并写入缓存

        Raises:
            TitleParseError: 模型没有返回可解析的标题数组
        """
        chunks = []
        async for chunk in self.api.stream_titles(self.cache.snapshot.content):
            chunks.append(chunk)
        titles = parse_title_candidates("".join(chunks))
        self.cache.set_titles(titles)
        return titles
