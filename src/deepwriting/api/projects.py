"""
项目与工作台 API 路由
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from deepwriting.api.deps import require_user
from deepwriting.core import get_logger
from deepwriting.core.exceptions import ProjectNotFoundError
from deepwriting.services.project_service import get_project_service
from deepwriting.services.workspace_service import get_workspace_repository

logger = get_logger(__name__)

router = APIRouter(prefix="/projects", tags=["项目管理"])

# 服务实例
project_service = get_project_service()
workspace_repository = get_workspace_repository()


# ============ 请求/响应模型 ============

class CreateProjectRequest(BaseModel):
    """新建项目请求"""
    title: Optional[str] = None


class UpdateProjectRequest(BaseModel):
    """更新项目请求"""
    title: Optional[str] = None


class ProjectResponse(BaseModel):
    """项目摘要"""
    id: str
    title: str
    status: str
    updatedAt: str


# ============ 项目接口 ============

@router.get("", response_model=list[ProjectResponse])
async def list_projects(user_id: str = Depends(require_user)):
    """当前用户的项目列表"""
    return project_service.list_projects(user_id)


@router.post("", response_model=ProjectResponse)
async def create_project(
    request: Optional[CreateProjectRequest] = None,
    user_id: str = Depends(require_user),
):
    """新建项目"""
    title = request.title if request else None
    return project_service.create_project(user_id, title)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    request: UpdateProjectRequest,
    user_id: str = Depends(require_user),
):
    """更新项目信息（目前只有标题）"""
    try:
        return project_service.update_project(project_id, user_id, title=request.title)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ============ 工作台接口 ============

@router.get("/{project_id}/workspace")
async def get_workspace(project_id: str, user_id: str = Depends(require_user)):
    """获取项目工作台完整数据"""
    try:
        project, workspace = workspace_repository.load(project_id, user_id)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return {"project": project, "workspace": workspace.to_payload()}


@router.put("/{project_id}/workspace")
async def save_workspace(project_id: str, request: Request, user_id: str = Depends(require_user)):
    """
    保存项目工作台完整数据

    请求体形状不合法时不报错，按字段降级为默认值后保存。
    """
    try:
        body = await request.json()
    except ValueError:
        body = {}
    workspace = body.get("workspace") if isinstance(body, dict) else None

    try:
        workspace_repository.save(project_id, user_id, workspace)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"保存工作台失败: project_id={project_id}, error={e}", exc_info=True)
        raise HTTPException(status_code=500, detail="保存失败，请重试")

    return {"ok": True}
