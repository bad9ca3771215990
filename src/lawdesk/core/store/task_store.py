"""TaskStore 内存实现

本地任务视图的唯一可变共享资源。所有变更都必须经过
apply_optimistic / commit / rollback / upsert / remove，
其他组件只读取快照。
"""

from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import NotFoundError, StoreClosedError, ValidationError
from ..models.enums import TaskStatus
from ..models.task import Task, TaskFilter, TaskPatch

log = structlog.get_logger()

# 补丁中不允许显式置空的字段
_NON_NULLABLE_FIELDS = frozenset(
    {"title", "type", "status", "priority", "assigned_to", "tags"}
)


def utc_now() -> datetime:
    return datetime.now(UTC)


class InMemoryTaskStore:
    """TaskStore 的内存实现

    读接口返回深拷贝，调用方修改快照不会影响 store。
    """

    def __init__(
        self,
        tasks: Iterable[Task] = (),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._tasks: dict[str, Task] = {}
        self._clock = clock
        self._closed = False
        for task in tasks:
            self._tasks[task.id] = task.model_copy(deep=True)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """关闭 store，此后所有变更都会抛出 StoreClosedError"""
        self._closed = True

    def now(self) -> datetime:
        return self._clock()

    def count(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    # ---- 读接口 ----

    def list_tasks(
        self,
        task_filter: TaskFilter | None = None,
        *,
        assignee_names: Mapping[str, str] | None = None,
    ) -> list[Task]:
        """查询任务快照，按插入顺序返回

        Args:
            task_filter: 筛选条件，None 表示不筛选
            assignee_names: 用户 ID -> 显示名，用于 search 匹配负责人姓名

        Returns:
            满足全部条件的任务副本列表
        """
        names = assignee_names or {}
        return [
            task.model_copy(deep=True)
            for task in self._tasks.values()
            if task_filter is None or _matches(task, task_filter, names)
        ]

    def get_task(self, task_id: str) -> Task:
        return self._require(task_id).model_copy(deep=True)

    # ---- 变更原语 ----

    def apply_optimistic(self, task_id: str, patch: TaskPatch | Mapping[str, Any]) -> Task:
        """同步合并补丁，刷新 updated_at，返回新快照

        同时修正 completed_at 与 status 的一致性：
        流转到 completed 时补上完成时间，离开 completed 时清空。

        Raises:
            NotFoundError: task_id 不存在（store 不变）
            ValidationError: 补丁不合法（store 不变）
        """
        self._ensure_open()
        current = self._require(task_id)
        changes = _validate_patch(patch)

        now = self._clock()
        updated = current.model_copy(update={**changes, "updated_at": now}, deep=True)
        updated = _normalize_completion(updated, now)

        self._tasks[task_id] = updated
        log.debug(
            "task_optimistic_applied",
            task_id=task_id,
            fields=sorted(changes),
        )
        return updated.model_copy(deep=True)

    def commit(self, task_id: str, server_task: Task) -> None:
        """用服务端权威副本整体覆盖本地记录（不合并、不修正）"""
        self._ensure_open()
        self._require(task_id)
        if server_task.id != task_id:
            # 服务端换发了 ID：旧键作废
            del self._tasks[task_id]
        self._tasks[server_task.id] = server_task.model_copy(deep=True)
        log.debug("task_committed", task_id=task_id, server_task_id=server_task.id)

    def rollback(self, task_id: str, previous_snapshot: Task) -> None:
        """恢复变更前快照；记录若已被移除则重新插入"""
        self._ensure_open()
        self._tasks[task_id] = previous_snapshot.model_copy(deep=True)
        log.debug("task_rolled_back", task_id=task_id)

    def upsert(self, task: Task) -> None:
        self._ensure_open()
        self._tasks[task.id] = task.model_copy(deep=True)

    def remove(self, task_id: str) -> None:
        self._ensure_open()
        self._require(task_id)
        del self._tasks[task_id]

    def replace_all(self, tasks: Iterable[Task]) -> None:
        """用服务端列表替换全部本地记录"""
        self._ensure_open()
        self._tasks = {task.id: task.model_copy(deep=True) for task in tasks}
        log.debug("task_store_replaced", task_count=len(self._tasks))

    # ---- 内部 ----

    def _require(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError()


def _validate_patch(patch: TaskPatch | Mapping[str, Any]) -> dict[str, Any]:
    """把调用方补丁校验为 TaskPatch，并返回显式设置过的字段"""
    if isinstance(patch, TaskPatch):
        model = patch
    else:
        try:
            model = TaskPatch.model_validate(dict(patch))
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ())) or None
            raise ValidationError(f"补丁不合法: {first.get('msg', e)}", field=field) from e

    changes = model.changes()
    for name, value in changes.items():
        if value is None and name in _NON_NULLABLE_FIELDS:
            raise ValidationError(f"字段不可置空: {name}", field=name)
    return changes


def _normalize_completion(task: Task, now: datetime) -> Task:
    """保证 completed_at 当且仅当 status == completed 时有值"""
    if task.status == TaskStatus.COMPLETED:
        if task.completed_at is None:
            return task.model_copy(update={"completed_at": now})
    elif task.completed_at is not None:
        return task.model_copy(update={"completed_at": None})
    return task


def _matches(task: Task, task_filter: TaskFilter, names: Mapping[str, str]) -> bool:
    if task_filter.status is not None and task.status != task_filter.status:
        return False
    if task_filter.priority is not None and task.priority != task_filter.priority:
        return False
    if task_filter.type is not None and task.type != task_filter.type:
        return False
    if task_filter.assigned_to is not None and task.assigned_to != task_filter.assigned_to:
        return False
    if task_filter.case_id is not None and task.case_id != task_filter.case_id:
        return False

    needle = (task_filter.search or "").strip().lower()
    if needle:
        fields = (task.title, task.description or "", names.get(task.assigned_to, ""))
        if not any(needle in value.lower() for value in fields):
            return False
    return True
