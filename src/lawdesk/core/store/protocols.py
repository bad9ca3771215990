"""Store / Backend Protocol 接口定义

定义本地 TaskStore 与远端 TaskBackend 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from ..models.enums import TaskStatus
from ..models.task import Task, TaskDraft, TaskFilter, TaskPatch


class TaskStore(Protocol):
    """本地 Task 存储接口

    所有方法同步执行，不会挂起调用方。
    """

    def list_tasks(
        self,
        task_filter: TaskFilter | None = None,
        *,
        assignee_names: Mapping[str, str] | None = None,
    ) -> list[Task]:
        """返回筛选后的任务快照（副本）"""
        ...

    def get_task(self, task_id: str) -> Task:
        """返回单个任务快照"""
        ...

    def apply_optimistic(self, task_id: str, patch: TaskPatch | Mapping[str, Any]) -> Task:
        """合并补丁并返回新快照"""
        ...

    def commit(self, task_id: str, server_task: Task) -> None:
        """用服务端权威副本覆盖本地记录"""
        ...

    def rollback(self, task_id: str, previous_snapshot: Task) -> None:
        """恢复变更前快照"""
        ...

    def upsert(self, task: Task) -> None:
        """插入或替换"""
        ...

    def remove(self, task_id: str) -> None:
        """删除"""
        ...

    def replace_all(self, tasks: Iterable[Task]) -> None:
        """用一份新的服务端列表替换全部内容"""
        ...


class TaskBackend(Protocol):
    """远端任务服务接口 -- 由 lawdesk.client.TaskService 实现"""

    async def fetch_tasks(self, task_filter: TaskFilter | None = None) -> list[Task]:
        """查询任务列表"""
        ...

    async def get_task(self, task_id: str) -> Task:
        """查询单个任务"""
        ...

    async def update_task_status(self, task_id: str, status: TaskStatus) -> Task:
        """更新任务状态，返回权威记录"""
        ...

    async def assign_task(self, task_id: str, assignee_id: str) -> Task:
        """重新指派负责人，返回权威记录"""
        ...

    async def archive_task(self, task_id: str) -> None:
        """归档任务"""
        ...

    async def create_task(self, draft: TaskDraft) -> Task:
        """创建任务，返回权威记录"""
        ...

    async def delete_task(self, task_id: str) -> None:
        """删除任务"""
        ...
