"""
客户端模块 - 工作台缓存与同步
"""
from .api_client import WorkspaceApiClient
from .cache import WorkspaceCache
from .sync import WorkspaceSync

__all__ = ["WorkspaceApiClient", "WorkspaceCache", "WorkspaceSync"]
