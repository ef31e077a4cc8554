"""
项目服务 - 项目列表、创建、改名，以及所有权校验
"""
from datetime import datetime
from typing import Optional
from sqlmodel import Session, select

from deepwriting.core import get_logger
from deepwriting.core.database import engine
from deepwriting.core.exceptions import ProjectNotFoundError
from deepwriting.models import DEFAULT_PROJECT_TITLE, Project

logger = get_logger(__name__)


def get_owned_project(session: Session, project_id: str, user_id: str) -> Optional[Project]:
    """
    按所有者查询项目

    所有权作为查询条件，而不是查出来再比对: 项目不存在和不属于当前用户
    对调用方来说没有区别，都返回 None（对外表现为"项目不存在"）。
    """
    statement = select(Project).where(
        Project.id == project_id,
        Project.user_id == user_id,
    )
    return session.exec(statement).first()


class ProjectService:
    """项目服务"""

    def __init__(self, db_engine=None):
        self.engine = db_engine if db_engine is not None else engine

    def list_projects(self, user_id: str) -> list[dict]:
        """当前用户的项目，按更新时间倒序"""
        with Session(self.engine) as session:
            statement = (
                select(Project)
                .where(Project.user_id == user_id)
                .order_by(Project.updated_at.desc())
            )
            return [p.to_summary() for p in session.exec(statement).all()]

    def create_project(self, user_id: str, title: Optional[str] = None) -> dict:
        """新建项目，标题为空时使用默认标题"""
        with Session(self.engine) as session:
            project = Project(
                user_id=user_id,
                title=title or DEFAULT_PROJECT_TITLE,
                created_at=datetime.now(),
                updated_at=datetime.now(),
            )
            session.add(project)
            session.commit()
            session.refresh(project)
            logger.info(f"创建项目: id={project.id}, user_id={user_id}")
            return project.to_summary()

    def update_project(self, project_id: str, user_id: str, title: Optional[str] = None) -> dict:
        """
        更新项目信息

        Raises:
            ProjectNotFoundError: 项目不存在或不属于当前用户
        """
        with Session(self.engine) as session:
            project = get_owned_project(session, project_id, user_id)
            if not project:
                raise ProjectNotFoundError(project_id)

            if title is not None:
                project.title = title.strip() or DEFAULT_PROJECT_TITLE
                project.updated_at = datetime.now()
                session.add(project)
                session.commit()
                session.refresh(project)

            return project.to_summary()


# 全局单例
_project_service: Optional[ProjectService] = None


def get_project_service() -> ProjectService:
    """获取项目服务单例"""
    global _project_service
    if _project_service is None:
        _project_service = ProjectService()
    return _project_service
