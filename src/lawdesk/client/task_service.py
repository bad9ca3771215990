"""TaskService -- 远端任务服务

实现 lawdesk.core.store.TaskBackend 协议，端点与后端保持一致：
GET/POST /tasks, GET/PUT/DELETE /tasks/{id},
PUT /tasks/{id}/status, /assign, /archive,
GET /tasks/my-tasks, /tasks/overdue
"""

from collections.abc import Mapping
from typing import Any

import structlog
from lawdesk.core.models import Task, TaskDraft, TaskFilter, TaskPatch, TaskStatus
from pydantic import BaseModel, Field

from .client import ApiClient
from .exceptions import ApiError
from .serializers import draft_to_api, filter_to_params, patch_to_api, task_from_api

log = structlog.get_logger()


class TaskPage(BaseModel):
    """分页响应"""

    data: list[Task] = Field(default_factory=list)
    current_page: int = 1
    last_page: int = 1
    per_page: int = 0
    total: int = 0


class TaskService:
    """远端任务服务"""

    # fetch_tasks 逐页拉取时的每页条数与最大页数
    PAGE_SIZE = 100
    MAX_PAGES = 50

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def fetch_task_page(
        self,
        task_filter: TaskFilter | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> TaskPage:
        """查询一页任务"""
        data = await self._client.fetch_data(
            "GET",
            "/tasks",
            params=filter_to_params(task_filter, page, limit),
            error_message="获取任务列表失败",
        )
        if not isinstance(data, Mapping):
            raise ApiError("任务列表响应格式不合法")
        return TaskPage(
            data=[task_from_api(item) for item in data.get("data") or []],
            current_page=data.get("current_page") or 1,
            last_page=data.get("last_page") or 1,
            per_page=data.get("per_page") or 0,
            total=data.get("total") or 0,
        )

    async def fetch_tasks(self, task_filter: TaskFilter | None = None) -> list[Task]:
        """逐页拉取满足条件的全部任务

        Raises:
            ApiError: 列表超过 MAX_PAGES 页（不返回不完整列表，避免整体替换时丢失任务）
        """
        tasks: list[Task] = []
        page = 1
        while True:
            result = await self.fetch_task_page(task_filter, page=page, limit=self.PAGE_SIZE)
            if result.last_page > self.MAX_PAGES:
                raise self._listing_too_large(result.last_page, result.total)
            tasks.extend(result.data)
            if not result.data or result.current_page >= result.last_page:
                break
            page = max(page, result.current_page) + 1
            if page > self.MAX_PAGES:
                # 服务端未按 page 参数翻页
                raise self._listing_too_large(page, result.total)
        log.debug("tasks_fetched", task_count=len(tasks), pages=page)
        return tasks

    def _listing_too_large(self, pages: int, total: int) -> ApiError:
        log.warning(
            "task_listing_too_large",
            pages=pages,
            max_pages=self.MAX_PAGES,
            total=total,
        )
        return ApiError(
            f"任务列表超过 {self.MAX_PAGES} 页上限（{pages} 页，共 {total} 条）",
            recoverable=False,
        )

    async def get_task(self, task_id: str) -> Task:
        data = await self._client.fetch_data(
            "GET", f"/tasks/{task_id}", error_message="获取任务详情失败"
        )
        return task_from_api(data)

    async def create_task(self, draft: TaskDraft) -> Task:
        data = await self._client.fetch_data(
            "POST", "/tasks", json=draft_to_api(draft), error_message="创建任务失败"
        )
        return task_from_api(data)

    async def update_task(self, task_id: str, patch: TaskPatch | Mapping[str, Any]) -> Task:
        if not isinstance(patch, TaskPatch):
            patch = TaskPatch.model_validate(dict(patch))
        data = await self._client.fetch_data(
            "PUT", f"/tasks/{task_id}", json=patch_to_api(patch), error_message="更新任务失败"
        )
        return task_from_api(data)

    async def update_task_status(self, task_id: str, status: TaskStatus) -> Task:
        data = await self._client.fetch_data(
            "PUT",
            f"/tasks/{task_id}/status",
            json={"status": TaskStatus(status).value},
            error_message="更新任务状态失败",
        )
        return task_from_api(data)

    async def assign_task(self, task_id: str, assignee_id: str) -> Task:
        data = await self._client.fetch_data(
            "PUT",
            f"/tasks/{task_id}/assign",
            json={"assigned_to": assignee_id},
            error_message="指派任务失败",
        )
        return task_from_api(data)

    async def archive_task(self, task_id: str) -> None:
        body = await self._client.request("PUT", f"/tasks/{task_id}/archive", json={})
        if not body.get("success"):
            raise ApiError(body.get("message") or "归档任务失败")

    async def delete_task(self, task_id: str) -> None:
        body = await self._client.request("DELETE", f"/tasks/{task_id}")
        if not body.get("success"):
            raise ApiError(body.get("message") or "删除任务失败")

    async def get_my_tasks(self) -> list[Task]:
        data = await self._client.fetch_data(
            "GET", "/tasks/my-tasks", error_message="获取我的任务失败"
        )
        return [task_from_api(item) for item in data]

    async def get_overdue_tasks(self) -> list[Task]:
        data = await self._client.fetch_data(
            "GET", "/tasks/overdue", error_message="获取逾期任务失败"
        )
        return [task_from_api(item) for item in data]
