"""
数据模型模块
"""
from .user import User, UserSession
from .project import Project, DEFAULT_PROJECT_TITLE
from .material import Material
from .style import Style
from .requirement import Requirement
from .outline import Outline
from .content import Content
from .title_option import TitleOption

__all__ = [
    "User",
    "UserSession",
    "Project",
    "DEFAULT_PROJECT_TITLE",
    "Material",
    "Style",
    "Requirement",
    "Outline",
    "Content",
    "TitleOption",
]
