"""
工作台仓储 - WorkspaceSnapshot 与多张关系表之间的转换

读取: 项目 + 素材 / 风格 / 写作要求 / 大纲 / 正文 / 候选标题 → 快照
保存: 在同一个事务里
    - 素材、候选标题整体替换（先删后插）
    - 风格、写作要求、大纲、正文按项目 upsert
    - 里程碑只前进不后退
"""
import json
import re
from datetime import datetime
from typing import Any, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from deepwriting.core import get_logger
from deepwriting.core.database import engine
from deepwriting.core.exceptions import ProjectNotFoundError, WorkspacePersistenceError
from deepwriting.models import (
    Content,
    Material,
    Outline,
    Project,
    Requirement,
    Style,
    TitleOption,
)
from deepwriting.schemas.workspace import (
    MaterialItem,
    Requirements,
    StyleSettings,
    TitleItem,
    WorkspaceSnapshot,
)
from deepwriting.services.milestone import advance, infer_stage, is_stage
from deepwriting.services.project_service import get_owned_project
from deepwriting.services.workspace_normalizer import normalize_workspace

logger = get_logger(__name__)

WHITESPACE_PATTERN = re.compile(r"\s+")


def count_words(text: Optional[str]) -> int:
    """统计非空白字符数"""
    return len(WHITESPACE_PATTERN.sub("", text or ""))


def read_legacy_features(extracted_features: Optional[str]) -> dict:
    """
    解析旧版风格表中的 JSON 字段

    旧数据把 selectedPreset / requirements / milestoneTab 塞在这里，
    解析失败时当作没有。
    """
    if not extracted_features:
        return {}
    try:
        parsed = json.loads(extracted_features)
    except (TypeError, ValueError):
        logger.warning("旧版风格特征 JSON 无法解析，已忽略")
        return {}
    return parsed if isinstance(parsed, dict) else {}


class WorkspaceRepository:
    """
    工作台仓储

    所有读写都带上所有者条件，不存在或无权访问统一抛 ProjectNotFoundError。
    """

    def __init__(self, db_engine=None):
        self.engine = db_engine if db_engine is not None else engine

    # ============ 读取 ============

    def load(self, project_id: str, owner_id: str) -> tuple[dict, WorkspaceSnapshot]:
        """
        读取项目工作台

        Returns:
            (项目摘要, 工作台快照)

        Raises:
            ProjectNotFoundError: 项目不存在或不属于 owner_id
        """
        with Session(self.engine) as session:
            project = get_owned_project(session, project_id, owner_id)
            if not project:
                raise ProjectNotFoundError(project_id)

            materials = session.exec(
                select(Material)
                .where(Material.project_id == project_id)
                .order_by(Material.created_at, Material.position)
            ).all()
            titles = session.exec(
                select(TitleOption)
                .where(TitleOption.project_id == project_id)
                .order_by(TitleOption.position)
            ).all()
            style = self._get_one(session, Style, project_id)
            requirement = self._get_one(session, Requirement, project_id)
            outline = self._get_one(session, Outline, project_id)
            content = self._get_one(session, Content, project_id)

            legacy = read_legacy_features(style.extracted_features if style else None)
            selected = next((t for t in titles if t.is_selected), None)

            raw: dict[str, Any] = {
                "materials": [
                    {
                        "id": m.id,
                        "type": m.type,
                        "name": m.name,
                        "content": m.resolved_content(),
                        "importance": m.importance,
                    }
                    for m in materials
                ],
                "style": {
                    "selectedPreset": (
                        style.selected_preset
                        if style and style.selected_preset is not None
                        else legacy.get("selectedPreset")
                    ),
                    "customStyleText": (style.sample_text if style else None) or "",
                    "emotionLevel": style.emotion_level if style else 5,
                    "professionalLevel": style.professional_level if style else 5,
                    "colloquialLevel": style.colloquial_level if style else 5,
                },
                "requirements": (
                    {
                        "targetWordCount": requirement.target_word_count,
                        "audience": requirement.audience,
                        "purpose": requirement.purpose,
                        "customRequirement": requirement.custom_requirement,
                    }
                    if requirement
                    else legacy.get("requirements")
                ),
                "outline": (outline.content if outline else None) or "",
                "content": (content.body if content else None) or "",
                "titles": [
                    {
                        "id": t.id,
                        "title": t.title,
                        "category": t.category or "emotion",
                        "score": t.score if t.score is not None else 8,
                    }
                    for t in titles
                ],
                "selectedTitleId": selected.id if selected else None,
            }

            # 显式里程碑 > 旧版 JSON 中的里程碑 > 按内容推断（交给规范化处理）
            if is_stage(project.milestone_tab):
                raw["milestoneTab"] = project.milestone_tab
            elif is_stage(legacy.get("milestoneTab")):
                raw["milestoneTab"] = legacy["milestoneTab"]

            return project.to_summary(), normalize_workspace(raw)

    # ============ 保存 ============

    def save(self, project_id: str, owner_id: str, snapshot: Any) -> None:
        """
        整体保存项目工作台（单事务）

        snapshot 可以是任意结构，保存前先规范化。
        保存后不回传数据，调用方需要重新 load 才能看到服务端派生字段。

        Raises:
            ProjectNotFoundError: 项目不存在或不属于 owner_id
            WorkspacePersistenceError: 数据库写入失败（事务已回滚）
        """
        workspace = normalize_workspace(snapshot)
        now = datetime.now()

        try:
            with Session(self.engine) as session:
                project = get_owned_project(session, project_id, owner_id)
                if not project:
                    raise ProjectNotFoundError(project_id)

                style = self._get_one(session, Style, project_id)
                legacy = read_legacy_features(style.extracted_features if style else None)
                # 没有显式里程碑的旧项目按已存的大纲 / 正文推断，和 load 的结果一致
                current = project.milestone_tab or legacy.get("milestoneTab")
                if not is_stage(current):
                    stored_outline = self._get_one(session, Outline, project_id)
                    stored_content = self._get_one(session, Content, project_id)
                    current = infer_stage(
                        stored_outline.content if stored_outline else None,
                        stored_content.body if stored_content else None,
                    )

                self._replace_materials(session, project_id, workspace.materials, now)
                self._upsert_style(session, project_id, style, workspace.style, now)
                self._upsert_requirements(session, project_id, workspace.requirements, now)
                self._upsert_outline(session, project_id, workspace.outline, now)
                self._upsert_content(session, project_id, workspace.content, now)
                self._replace_titles(
                    session, project_id, workspace.titles, workspace.selected_title_id
                )

                project.milestone_tab = advance(current, workspace.milestone_tab)
                project.updated_at = now
                session.add(project)

                session.commit()
        except SQLAlchemyError as e:
            logger.error(f"保存工作台失败: project_id={project_id}, error={e}", exc_info=True)
            raise WorkspacePersistenceError("保存失败，请重试") from e

        logger.info(
            f"工作台已保存: project_id={project_id}, materials={len(workspace.materials)}, "
            f"titles={len(workspace.titles)}, milestone={workspace.milestone_tab}"
        )

    # ============ 内部方法 ============

    @staticmethod
    def _get_one(session: Session, model, project_id: str):
        """一对一关联表按项目取一行"""
        return session.exec(select(model).where(model.project_id == project_id)).first()

    def _replace_materials(
        self,
        session: Session,
        project_id: str,
        materials: list[MaterialItem],
        now: datetime,
    ) -> None:
        for existing in session.exec(select(Material).where(Material.project_id == project_id)).all():
            session.delete(existing)

        for position, item in enumerate(materials):
            session.add(Material(
                project_id=project_id,
                type=item.type,
                name=item.name,
                raw_content=item.content,
                extracted_content=item.content,
                importance=item.importance,
                position=position,
                created_at=now,
            ))

    def _upsert_style(
        self,
        session: Session,
        project_id: str,
        style: Optional[Style],
        settings: StyleSettings,
        now: datetime,
    ) -> None:
        if style is None:
            style = Style(project_id=project_id)
        style.selected_preset = settings.selected_preset
        style.sample_text = settings.custom_style_text or None
        style.emotion_level = settings.emotion_level
        style.professional_level = settings.professional_level
        style.colloquial_level = settings.colloquial_level
        style.updated_at = now
        session.add(style)

    def _upsert_requirements(
        self,
        session: Session,
        project_id: str,
        requirements: Requirements,
        now: datetime,
    ) -> None:
        row = self._get_one(session, Requirement, project_id)
        if row is None:
            row = Requirement(
                project_id=project_id,
                audience=requirements.audience,
                purpose=requirements.purpose,
            )
        row.target_word_count = requirements.target_word_count
        row.audience = requirements.audience
        row.purpose = requirements.purpose
        row.custom_requirement = requirements.custom_requirement
        row.updated_at = now
        session.add(row)

    def _upsert_outline(self, session: Session, project_id: str, text: str, now: datetime) -> None:
        outline = self._get_one(session, Outline, project_id)
        if outline is None:
            outline = Outline(project_id=project_id, is_ai_generated=False)
        outline.content = text or None
        outline.updated_at = now
        session.add(outline)

    def _upsert_content(self, session: Session, project_id: str, body: str, now: datetime) -> None:
        content = self._get_one(session, Content, project_id)
        if content is None:
            content = Content(project_id=project_id)
        content.body = body or None
        content.word_count = count_words(body)
        content.generated_at = now if body else None
        content.updated_at = now
        session.add(content)

    def _replace_titles(
        self,
        session: Session,
        project_id: str,
        titles: list[TitleItem],
        selected_title_id: Optional[str],
    ) -> None:
        for existing in session.exec(select(TitleOption).where(TitleOption.project_id == project_id)).all():
            session.delete(existing)

        for position, item in enumerate(titles):
            session.add(TitleOption(
                project_id=project_id,
                title=item.title,
                category=item.category,
                score=item.score,
                is_selected=item.id == selected_title_id,
                position=position,
            ))


# 全局单例
_workspace_repository: Optional[WorkspaceRepository] = None


def get_workspace_repository() -> WorkspaceRepository:
    """获取工作台仓储单例"""
    global _workspace_repository
    if _workspace_repository is None:
        _workspace_repository = WorkspaceRepository()
    return _workspace_repository
