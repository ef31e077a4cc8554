"""
业务异常定义

路由层负责把这些异常映射为 HTTP 状态码。
"""


class DeepWritingError(Exception):
    """业务异常基类"""


class ValidationError(DeepWritingError, ValueError):
    """输入校验失败（400）"""


class ProjectNotFoundError(DeepWritingError):
    """项目不存在或不属于当前用户（404）"""

    def __init__(self, project_id: str):
        super().__init__("项目不存在")
        self.project_id = project_id


class EmailAlreadyRegisteredError(DeepWritingError):
    """邮箱已被注册（409）"""


class AuthenticationError(DeepWritingError):
    """登录凭证无效（401）"""


class WorkspacePersistenceError(DeepWritingError):
    """工作台保存事务失败（500）"""


class TitleParseError(DeepWritingError, ValueError):
    """模型输出中找不到有效的标题 JSON 数组"""

    def __init__(self, message: str = "AI 未返回有效的标题列表"):
        super().__init__(message)
