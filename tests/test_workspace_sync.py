"""
工作台同步与 HTTP 客户端测试

不依赖 pytest 异步插件，每个用例用 asyncio.run 驱动。
"""
import asyncio
import json

import httpx
import pytest

from deepwriting.client.api_client import WorkspaceApiClient
from deepwriting.client.state import Loading, Ready
from deepwriting.client.sync import WorkspaceSync
from deepwriting.core.exceptions import TitleParseError
from deepwriting.services.workspace_normalizer import normalize_workspace

DEBOUNCE = 0.01


class FakeApi:
    """内存版后端，可以让请求挂起或失败"""

    def __init__(self):
        self.workspaces = {}
        self.saves = []
        self.load_gates = {}
        self.save_gate = None
        self.save_error = None
        self.title_chunks = []
        self.closed = False

    async def get_workspace(self, project_id):
        gate = self.load_gates.get(project_id)
        if gate is not None:
            await gate.wait()
        return {"id": project_id, "title": f"项目 {project_id}"}, normalize_workspace(
            self.workspaces.get(project_id)
        )

    async def save_workspace(self, project_id, payload):
        self.saves.append((project_id, payload["workspace"]))
        if self.save_gate is not None:
            await self.save_gate.wait()
        if self.save_error is not None:
            raise self.save_error
        self.workspaces[project_id] = payload["workspace"]

    async def stream_titles(self, content):
        for chunk in self.title_chunks:
            yield chunk

    async def aclose(self):
        self.closed = True


def test_edits_are_debounced_into_one_save():
    async def scenario():
        api = FakeApi()
        sync = WorkspaceSync(api, debounce_seconds=DEBOUNCE)
        await sync.select_project("p1")

        sync.cache.set_outline("一")
        sync.cache.set_outline("一二")
        sync.cache.set_outline("一二三")
        await sync.wait_idle()
        await sync.aclose()
        return api, sync

    api, sync = asyncio.run(scenario())

    assert len(api.saves) == 1
    assert api.saves[0][1]["outline"] == "一二三"
    assert sync.cache.state == Ready("p1", dirty=False)
    assert api.closed


def test_edit_during_save_triggers_another_save():
    async def scenario():
        api = FakeApi()
        api.save_gate = asyncio.Event()
        sync = WorkspaceSync(api, debounce_seconds=DEBOUNCE)
        await sync.select_project("p1")

        sync.cache.set_content("第一版")
        while not api.saves:
            await asyncio.sleep(DEBOUNCE)

        sync.cache.set_content("第二版")
        await asyncio.sleep(DEBOUNCE * 3)
        # 第一次保存还没返回，不会并发发起第二次
        assert len(api.saves) == 1

        api.save_gate.set()
        await sync.wait_idle()
        return api, sync

    api, sync = asyncio.run(scenario())

    assert [saved["content"] for _, saved in api.saves] == ["第一版", "第二版"]
    assert sync.cache.state == Ready("p1", dirty=False)


def test_stale_load_is_discarded_after_switch():
    async def scenario():
        api = FakeApi()
        api.workspaces = {"p1": {"content": "项目一正文"}, "p2": {"content": "项目二正文"}}
        api.load_gates["p1"] = asyncio.Event()
        sync = WorkspaceSync(api, debounce_seconds=DEBOUNCE)

        first = asyncio.create_task(sync.select_project("p1"))
        await asyncio.sleep(0)
        await sync.select_project("p2")

        api.load_gates["p1"].set()
        await first
        return sync

    sync = asyncio.run(scenario())

    assert sync.cache.project_id == "p2"
    assert sync.cache.snapshot.content == "项目二正文"
    assert sync.cache.project_title == "项目 p2"
    assert sync.cache.state == Ready("p2", dirty=False)


def test_failed_save_stays_dirty_until_next_edit():
    async def scenario():
        api = FakeApi()
        api.save_error = httpx.ConnectError("offline")
        sync = WorkspaceSync(api, debounce_seconds=DEBOUNCE)
        await sync.select_project("p1")

        sync.cache.set_outline("大纲")
        await sync.wait_idle()
        await asyncio.sleep(DEBOUNCE * 3)
        state_after_failure = sync.cache.state
        saves_after_failure = len(api.saves)

        api.save_error = None
        sync.cache.set_outline("大纲二")
        await sync.wait_idle()
        return api, sync, state_after_failure, saves_after_failure

    api, sync, state_after_failure, saves_after_failure = asyncio.run(scenario())

    assert state_after_failure == Ready("p1", dirty=True)
    assert saves_after_failure == 1
    assert len(api.saves) == 2
    assert api.workspaces["p1"]["outline"] == "大纲二"
    assert sync.cache.state == Ready("p1", dirty=False)


def test_load_failure_leaves_editable_defaults():
    class BrokenApi(FakeApi):
        async def get_workspace(self, project_id):
            raise httpx.ConnectError("offline")

    async def scenario():
        sync = WorkspaceSync(BrokenApi(), debounce_seconds=DEBOUNCE)
        await sync.select_project("p1")
        return sync

    sync = asyncio.run(scenario())

    assert sync.cache.state == Ready("p1", dirty=False)
    assert sync.cache.snapshot.materials == []


def test_no_save_without_pending_changes():
    async def scenario():
        api = FakeApi()
        sync = WorkspaceSync(api, debounce_seconds=DEBOUNCE)
        assert await sync.save() is False
        await sync.select_project("p1")
        assert await sync.save() is False
        return api

    api = asyncio.run(scenario())
    assert api.saves == []


def test_flush_saves_immediately():
    async def scenario():
        api = FakeApi()
        sync = WorkspaceSync(api, debounce_seconds=60)
        await sync.select_project("p1")
        sync.cache.set_purpose("讲清楚")
        saved = await sync.flush()
        return api, saved

    api, saved = asyncio.run(scenario())

    assert saved is True
    assert api.saves[0][1]["requirements"]["purpose"] == "讲清楚"


def test_generate_titles_updates_cache():
    async def scenario():
        api = FakeApi()
        api.title_chunks = ['结果：[{"title": "标题', '甲", "category": "numeric", "score": 9}]']
        sync = WorkspaceSync(api, debounce_seconds=60)
        await sync.select_project("p1")
        titles = await sync.generate_titles()
        await sync.aclose()
        return sync, titles

    sync, titles = asyncio.run(scenario())

    assert [t.title for t in titles] == ["标题甲"]
    assert sync.cache.snapshot.titles == titles
    assert sync.cache.is_dirty


def test_generate_titles_without_array_raises():
    async def scenario():
        api = FakeApi()
        api.title_chunks = ["抱歉，我无法生成标题"]
        sync = WorkspaceSync(api, debounce_seconds=60)
        await sync.select_project("p1")
        try:
            await sync.generate_titles()
        finally:
            await sync.aclose()

    with pytest.raises(TitleParseError):
        asyncio.run(scenario())


# ============ HTTP 客户端 ============

def test_api_client_round_trip():
    requests_seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        if request.url.path == "/api/auth/login":
            return httpx.Response(200, json={"token": "tok", "user": {"id": "u1", "name": "a", "email": "a@b.c"}})
        if request.method == "GET" and request.url.path == "/api/projects/p1/workspace":
            return httpx.Response(200, json={
                "project": {"id": "p1", "title": "项目"},
                "workspace": {"materials": [{"name": "A", "importance": 9}]},
            })
        if request.method == "PUT":
            return httpx.Response(200, json={"ok": True})
        if request.url.path == "/api/ai/title":
            return httpx.Response(200, text='[{"title": "甲"}]')
        return httpx.Response(404, json={"error": "项目不存在"})

    async def scenario():
        client = WorkspaceApiClient("http://test", transport=httpx.MockTransport(handler))
        user = await client.login("a@b.c", "secret123")
        project, workspace = await client.get_workspace("p1")
        await client.save_workspace("p1", {"workspace": workspace.to_payload()})
        chunks = [chunk async for chunk in client.stream_titles("正文")]
        with pytest.raises(httpx.HTTPStatusError):
            await client.rename_project("missing", "x")
        await client.aclose()
        return user, project, workspace, chunks

    user, project, workspace, chunks = asyncio.run(scenario())

    assert user["id"] == "u1"
    assert project["title"] == "项目"
    assert workspace.materials[0].importance == 5
    assert "".join(chunks) == '[{"title": "甲"}]'

    assert requests_seen[1].headers["Authorization"] == "Bearer tok"
    put = next(r for r in requests_seen if r.method == "PUT")
    assert json.loads(put.content)["workspace"]["materials"][0]["importance"] == 5


class SequencedApi(FakeApi):
    """每次加载单独挂起，按调用顺序记录，测试可以任意顺序放行"""

    def __init__(self):
        super().__init__()
        self.load_calls = []

    async def get_workspace(self, project_id):
        gate = asyncio.Event()
        self.load_calls.append((project_id, gate))
        await gate.wait()
        return await super().get_workspace(project_id)


def test_late_load_from_earlier_selection_does_not_overwrite_edits():
    """A→B→A 切换后，第一次 A 的加载晚到，不能覆盖之后的编辑"""

    async def scenario():
        api = SequencedApi()
        api.workspaces = {"p1": {"outline": "server copy"}, "p2": {}}
        sync = WorkspaceSync(api, debounce_seconds=DEBOUNCE)

        first = asyncio.create_task(sync.select_project("p1"))
        await asyncio.sleep(0)
        second = asyncio.create_task(sync.select_project("p2"))
        await asyncio.sleep(0)
        third = asyncio.create_task(sync.select_project("p1"))
        await asyncio.sleep(0)
        assert [pid for pid, _ in api.load_calls] == ["p1", "p2", "p1"]

        api.load_calls[2][1].set()
        await third
        api.load_calls[1][1].set()
        await second

        sync.cache.set_outline("user edit")
        api.load_calls[0][1].set()
        await first
        outline_after_late_load = sync.cache.snapshot.outline

        await sync.wait_idle()
        return api, sync, outline_after_late_load

    api, sync, outline_after_late_load = asyncio.run(scenario())

    assert outline_after_late_load == "user edit"
    assert api.saves[-1][0] == "p1"
    assert api.saves[-1][1]["outline"] == "user edit"
    assert sync.cache.state == Ready("p1", dirty=False)


def test_late_load_failure_does_not_end_current_load():
    class FailingFirstApi(SequencedApi):
        async def get_workspace(self, project_id):
            if not self.load_calls:
                gate = asyncio.Event()
                self.load_calls.append((project_id, gate))
                await gate.wait()
                raise httpx.ConnectError("offline")
            return await super().get_workspace(project_id)

    async def scenario():
        api = FailingFirstApi()
        api.workspaces = {"p1": {"content": "正文"}}
        sync = WorkspaceSync(api, debounce_seconds=DEBOUNCE)

        first = asyncio.create_task(sync.select_project("p1"))
        await asyncio.sleep(0)
        second = asyncio.create_task(sync.select_project("p2"))
        await asyncio.sleep(0)
        api.load_calls[1][1].set()
        await second
        third = asyncio.create_task(sync.select_project("p1"))
        await asyncio.sleep(0)

        api.load_calls[0][1].set()
        await first
        state_after_stale_failure = sync.cache.state

        api.load_calls[-1][1].set()
        await third
        return sync, state_after_stale_failure

    sync, state_after_stale_failure = asyncio.run(scenario())

    assert state_after_stale_failure == Loading("p1")
    assert sync.cache.snapshot.content == "正文"
    assert sync.cache.state == Ready("p1", dirty=False)
