"""
数据结构模块
"""
from .workspace import (
    MaterialItem,
    StyleSettings,
    Requirements,
    TitleItem,
    WorkspaceSnapshot,
    default_workspace,
)

__all__ = [
    "MaterialItem",
    "StyleSettings",
    "Requirements",
    "TitleItem",
    "WorkspaceSnapshot",
    "default_workspace",
]
