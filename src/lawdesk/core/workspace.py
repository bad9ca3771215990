"""TaskWorkspace -- 面向 UI 的任务同步门面

组合 InMemoryTaskStore、NotificationCenter、Reconciler、NotificationTicker
与远端 TaskBackend，提供列表查询、通知操作以及
状态变更 / 重新指派 / 归档 / 新建 / 删除等乐观更新流程。
"""

import asyncio
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError
from ulid import ULID

from .config import LOCAL_ID_PREFIX
from .exceptions import SyncError, ValidationError
from .models.enums import TaskStatus
from .models.notification import Notification
from .models.task import Task, TaskDraft, TaskFilter, TaskPatch
from .notifications import NotificationCenter
from .reconcile import Reconciler, RemoteCall
from .store.protocols import TaskBackend
from .store.task_store import InMemoryTaskStore, utc_now
from .ticker import NotificationTicker

log = structlog.get_logger()


class TaskWorkspace:
    """任务工作区

    store 是显式构造、按引用传递的实例，不存在隐式单例。
    stop() 会关闭 store，之后才返回的远端结果将被丢弃。
    """

    def __init__(
        self,
        backend: TaskBackend,
        store: InMemoryTaskStore | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
        interval_s: float | None = None,
        assignee_names: Mapping[str, str] | None = None,
    ) -> None:
        self._backend = backend
        self._clock = clock
        self.store = store if store is not None else InMemoryTaskStore(clock=clock)
        self.notifications = NotificationCenter(self.store, clock=clock)
        self.reconciler = Reconciler(self.store)
        self.ticker = NotificationTicker(self.notifications, interval_s=interval_s)
        self._assignee_names: dict[str, str] = dict(assignee_names or {})

    # ---- 生命周期 ----

    def start(self) -> None:
        self.ticker.start()

    async def stop(self) -> None:
        await self.ticker.stop()
        self.store.close()

    async def __aenter__(self) -> "TaskWorkspace":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    # ---- 读接口 ----

    def set_assignee_names(self, assignee_names: Mapping[str, str]) -> None:
        """更新用户 ID -> 显示名映射（用于 search）"""
        self._assignee_names = dict(assignee_names)

    def list_tasks(self, task_filter: TaskFilter | None = None) -> list[Task]:
        return self.store.list_tasks(task_filter, assignee_names=self._assignee_names)

    def get_notifications(self) -> list[Notification]:
        return self.notifications.get_notifications()

    def unread_count(self) -> int:
        return self.notifications.unread_count()

    def mark_read(self, notification_id: str) -> bool:
        return self.notifications.mark_read(notification_id)

    def dismiss(self, notification_id: str) -> bool:
        return self.notifications.dismiss(notification_id)

    def mark_all_read(self) -> int:
        return self.notifications.mark_all_read()

    def refresh_notifications(self, now: datetime | None = None) -> list[Notification]:
        return self.notifications.refresh(now)

    # ---- 远端同步流程 ----

    async def load(self, task_filter: TaskFilter | None = None) -> list[Task]:
        """从远端拉取任务并整体替换本地视图"""
        tasks = await self._backend.fetch_tasks(task_filter)
        self.store.replace_all(tasks)
        self.notifications.refresh()
        log.info("tasks_loaded", task_count=len(tasks))
        return self.list_tasks()

    async def reconcile(
        self,
        task_id: str,
        patch: TaskPatch | Mapping[str, Any],
        remote_call: RemoteCall,
    ) -> Task:
        """乐观更新 + 远端确认；结束后（成功或失败）刷新通知"""
        try:
            return await self.reconciler.reconcile(task_id, patch, remote_call)
        finally:
            self._refresh_if_open()

    async def change_status(self, task_id: str, status: TaskStatus | str) -> Task:
        status = _coerce_status(status)

        async def remote_call() -> Task:
            return await self._backend.update_task_status(task_id, status)

        return await self.reconcile(task_id, {"status": status}, remote_call)

    async def reassign(self, task_id: str, assignee_id: str) -> Task:
        if not assignee_id:
            raise ValidationError("assignee_id 不能为空", field="assigned_to")

        async def remote_call() -> Task:
            return await self._backend.assign_task(task_id, assignee_id)

        task = await self.reconcile(task_id, {"assigned_to": assignee_id}, remote_call)
        if not self.store.closed:
            self.notifications.push_assigned(task)
        return task

    async def archive(self, task_id: str) -> Task:
        async def remote_call() -> Task:
            await self._backend.archive_task(task_id)
            return await self._backend.get_task(task_id)

        return await self.reconcile(task_id, {"status": TaskStatus.ARCHIVED}, remote_call)

    async def create_task(self, draft: TaskDraft | Mapping[str, Any]) -> Task:
        """乐观创建：先插入 LOCAL- 占位记录，远端成功后换成服务端记录

        远端失败或调用被取消时移除占位记录。

        Raises:
            ValidationError: 表单不合法（未发起远端调用）
            SyncError: 远端创建失败，占位记录已移除
        """
        draft = _coerce_draft(draft)
        now = self._clock()
        placeholder = Task(
            id=f"{LOCAL_ID_PREFIX}{ULID()}",
            title=draft.title,
            description=draft.description,
            type=draft.type,
            status=TaskStatus.TODO,
            priority=draft.priority,
            assigned_to=draft.assigned_to,
            case_id=draft.case_id,
            due_date=draft.due_date,
            estimated_hours=draft.estimated_hours,
            notes=draft.notes,
            created_at=now,
            updated_at=now,
        )
        self.store.upsert(placeholder)
        self._refresh_if_open()

        try:
            server_task = await self._backend.create_task(draft)
        except asyncio.CancelledError:
            self._drop_placeholder(placeholder.id)
            log.warning("task_create_cancelled", local_id=placeholder.id)
            raise
        except Exception as e:
            self._drop_placeholder(placeholder.id)
            log.warning("task_create_failed", local_id=placeholder.id, error=str(e))
            raise SyncError(placeholder.id, e) from e

        if not self.store.closed:
            if placeholder.id in self.store:
                self.store.remove(placeholder.id)
            self.store.upsert(server_task)
            self._refresh_if_open()
        log.info("task_created", local_id=placeholder.id, task_id=server_task.id)
        return server_task

    async def delete_task(self, task_id: str) -> None:
        """乐观删除：先移除本地记录，远端失败或调用被取消时重新插入

        Raises:
            NotFoundError: task_id 不存在
            SyncError: 远端删除失败，本地记录已恢复
        """
        previous = self.store.get_task(task_id)
        self.store.remove(task_id)
        self._refresh_if_open()

        try:
            await self._backend.delete_task(task_id)
        except asyncio.CancelledError:
            self._restore(previous)
            log.warning("task_delete_cancelled", task_id=task_id)
            raise
        except Exception as e:
            self._restore(previous)
            log.warning("task_delete_failed", task_id=task_id, error=str(e))
            raise SyncError(task_id, e) from e

        log.info("task_deleted", task_id=task_id)

    def _drop_placeholder(self, placeholder_id: str) -> None:
        if not self.store.closed and placeholder_id in self.store:
            self.store.remove(placeholder_id)
            self._refresh_if_open()

    def _restore(self, previous: Task) -> None:
        if not self.store.closed:
            self.store.upsert(previous)
            self._refresh_if_open()

    def _refresh_if_open(self) -> None:
        if not self.store.closed:
            self.notifications.refresh()


def _coerce_status(status: TaskStatus | str) -> TaskStatus:
    try:
        return TaskStatus(status)
    except ValueError as e:
        raise ValidationError(f"未知状态: {status}", field="status") from e


def _coerce_draft(draft: TaskDraft | Mapping[str, Any]) -> TaskDraft:
    if isinstance(draft, TaskDraft):
        return draft
    try:
        return TaskDraft.model_validate(dict(draft))
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or None
        raise ValidationError(f"表单不合法: {first.get('msg', e)}", field=field) from e
