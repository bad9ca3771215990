"""lawdesk Client -- 远端任务服务 REST 客户端

lawdesk.client 的公开接口导出。
"""

# 核心组件
from .client import ApiClient
from .comment_service import TaskCommentService

# 配置
from .config import ApiConfig, load_api_config

# 异常
from .exceptions import ApiError, ApiUnreachableError, UnauthorizedError
from .serializers import (
    comment_from_api,
    draft_to_api,
    filter_to_params,
    patch_to_api,
    task_from_api,
)
from .task_service import TaskPage, TaskService
from .user_service import UserService

__all__ = [
    "ApiClient",
    "TaskService",
    "TaskPage",
    "UserService",
    "TaskCommentService",
    "ApiConfig",
    "load_api_config",
    "task_from_api",
    "draft_to_api",
    "patch_to_api",
    "filter_to_params",
    "comment_from_api",
    "ApiError",
    "ApiUnreachableError",
    "UnauthorizedError",
]
