"""TaskCommentService -- 任务评论串

端点：
GET/POST /tasks/{id}/comments,
PUT/DELETE /tasks/{id}/comments/{comment_id}
"""

from collections.abc import Mapping

import structlog
from lawdesk.core.models import TaskComment, TaskCommentDraft

from .client import ApiClient
from .exceptions import ApiError
from .serializers import comment_from_api

log = structlog.get_logger()


class TaskCommentService:
    """远端评论服务"""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list_comments(self, task_id: str) -> list[TaskComment]:
        """按服务端顺序返回任务下的全部评论（兼容分页包装）"""
        data = await self._client.fetch_data(
            "GET", f"/tasks/{task_id}/comments", error_message="获取评论失败"
        )
        if isinstance(data, Mapping):
            data = data.get("data") or []
        if not isinstance(data, list):
            raise ApiError("评论列表响应格式不合法")
        return [comment_from_api(item) for item in data]

    async def create_comment(self, task_id: str, comment: str) -> TaskComment:
        """发表评论

        Raises:
            pydantic.ValidationError: 评论去除首尾空白后为空（不发请求）
        """
        draft = TaskCommentDraft(comment=comment)
        data = await self._client.fetch_data(
            "POST",
            f"/tasks/{task_id}/comments",
            json=draft.model_dump(),
            error_message="发表评论失败",
        )
        created = comment_from_api(data)
        log.debug("comment_created", task_id=task_id, comment_id=created.id)
        return created

    async def update_comment(self, task_id: str, comment_id: str, comment: str) -> TaskComment:
        draft = TaskCommentDraft(comment=comment)
        data = await self._client.fetch_data(
            "PUT",
            f"/tasks/{task_id}/comments/{comment_id}",
            json=draft.model_dump(),
            error_message="更新评论失败",
        )
        return comment_from_api(data)

    async def delete_comment(self, task_id: str, comment_id: str) -> None:
        body = await self._client.request("DELETE", f"/tasks/{task_id}/comments/{comment_id}")
        if not body.get("success"):
            raise ApiError(body.get("message") or "删除评论失败")
