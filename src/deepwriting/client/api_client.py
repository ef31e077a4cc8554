"""
后端 HTTP 客户端（httpx 异步）
"""
from typing import AsyncIterator, Optional

import httpx

from deepwriting.core import get_logger
from deepwriting.schemas.workspace import WorkspaceSnapshot
from deepwriting.services.workspace_normalizer import normalize_workspace

logger = get_logger(__name__)


class WorkspaceApiClient:
    """封装项目 / 工作台 / AI 生成接口"""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        if token:
            self.set_token(token)

    def set_token(self, token: str) -> None:
        self._client.headers["Authorization"] = f"Bearer {token}"

    async def aclose(self) -> None:
        await self._client.aclose()

    # ============ 认证 ============

    async def login(self, email: str, password: str) -> dict:
        """登录并记住令牌"""
        resp = await self._client.post("/api/auth/login", json={"email": email, "password": password})
        resp.raise_for_status()
        data = resp.json()
        self.set_token(data["token"])
        return data["user"]

    # ============ 项目 ============

    async def list_projects(self) -> list[dict]:
        resp = await self._client.get("/api/projects")
        resp.raise_for_status()
        return resp.json()

    async def create_project(self, title: Optional[str] = None) -> dict:
        resp = await self._client.post("/api/projects", json={"title": title})
        resp.raise_for_status()
        return resp.json()

    async def rename_project(self, project_id: str, title: str) -> dict:
        resp = await self._client.patch(f"/api/projects/{project_id}", json={"title": title})
        resp.raise_for_status()
        return resp.json()

    # ============ 工作台 ============

    async def get_workspace(self, project_id: str) -> tuple[dict, WorkspaceSnapshot]:
        """读取工作台，返回 (项目摘要, 规范化后的快照)"""
        resp = await self._client.get(
            f"/api/projects/{project_id}/workspace",
            headers={"Cache-Control": "no-store"},
        )
        resp.raise_for_status()
        data = resp.json()
        project = data.get("project") if isinstance(data, dict) else None
        workspace = data.get("workspace") if isinstance(data, dict) else None
        return project or {}, normalize_workspace(workspace)

    async def save_workspace(self, project_id: str, payload: dict) -> None:
        resp = await self._client.put(f"/api/projects/{project_id}/workspace", json=payload)
        resp.raise_for_status()

    # ============ AI 生成 ============

    async def _stream_text(self, path: str, body: dict) -> AsyncIterator[str]:
        async with self._client.stream("POST", path, json=body, timeout=None) as resp:
            resp.raise_for_status()
            async for chunk in resp.aiter_text():
                if chunk:
                    yield chunk

    def stream_outline(self, materials: list, style, requirements) -> AsyncIterator[str]:
        return self._stream_text(
            "/api/ai/outline",
            {"materials": materials, "style": style, "requirements": requirements},
        )

    def stream_content(self, materials: list, style, requirements, outline: str) -> AsyncIterator[str]:
        return self._stream_text(
            "/api/ai/content",
            {"materials": materials, "style": style, "requirements": requirements, "outline": outline},
        )

    def stream_titles(self, content: str) -> AsyncIterator[str]:
        return self._stream_text("/api/ai/title", {"content": content})
