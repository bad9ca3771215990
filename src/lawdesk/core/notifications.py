"""通知推导模块

从 TaskStore 的当前内容推导通知列表（只读投影），
并由 NotificationCenter 在每轮重新生成时按 id 合并本地已读/忽略状态。
"""

from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

import structlog

from .config import COMPLETED_WINDOW_HOURS, DUE_SOON_WINDOW_DAYS
from .models.enums import (
    PRIORITY_RANK,
    NotificationPriority,
    NotificationType,
    TaskStatus,
)
from .models.notification import Notification, notification_id
from .models.task import Task
from .store.protocols import TaskStore
from .store.task_store import utc_now

log = structlog.get_logger()

_ONE_DAY = timedelta(days=1)


def _plural_days(days: int) -> str:
    return f"{days} day" if days == 1 else f"{days} days"


def classify_task(task: Task, now: datetime) -> Notification | None:
    """推导单个任务在 now 时刻的通知（最多一条）

    overdue 与 due_soon 互斥；completed 只针对已完成任务，
    因此三者对同一任务天然互斥。
    """
    if task.status != TaskStatus.COMPLETED and task.due_date is not None:
        if now > task.due_date:
            days_past_due = (now - task.due_date) // _ONE_DAY
            return Notification(
                id=notification_id(NotificationType.OVERDUE, task.id),
                type=NotificationType.OVERDUE,
                task_id=task.id,
                task_title=task.title,
                message=f"Overdue by {_plural_days(days_past_due)}",
                timestamp=now,
                priority=NotificationPriority.HIGH,
            )

        # ceil((due - now) / 1 day)，用整除取反避免浮点误差
        days_until_due = -((now - task.due_date) // _ONE_DAY)
        if 0 <= days_until_due <= DUE_SOON_WINDOW_DAYS:
            return Notification(
                id=notification_id(NotificationType.DUE_SOON, task.id),
                type=NotificationType.DUE_SOON,
                task_id=task.id,
                task_title=task.title,
                message=(
                    "Due today"
                    if days_until_due == 0
                    else f"Due in {_plural_days(days_until_due)}"
                ),
                timestamp=now,
                priority=(
                    NotificationPriority.HIGH
                    if days_until_due == 0
                    else NotificationPriority.MEDIUM
                ),
            )
        return None

    if task.status == TaskStatus.COMPLETED and task.completed_at is not None:
        if now - task.completed_at <= timedelta(hours=COMPLETED_WINDOW_HOURS):
            return Notification(
                id=notification_id(NotificationType.COMPLETED, task.id),
                type=NotificationType.COMPLETED,
                task_id=task.id,
                task_title=task.title,
                message="Task completed",
                timestamp=task.completed_at,
                priority=NotificationPriority.LOW,
            )
    return None


def sort_notifications(notifications: Iterable[Notification]) -> list[Notification]:
    """按优先级降序、时间戳降序排序；相同键保持原顺序"""
    return sorted(
        notifications,
        key=lambda n: (PRIORITY_RANK[n.priority], n.timestamp),
        reverse=True,
    )


def derive_notifications(tasks: Iterable[Task], now: datetime) -> list[Notification]:
    """纯函数：从任务集合推导排好序的通知列表

    Args:
        tasks: 任务快照
        now: 推导时刻（同一 now 与同一快照多次调用结果一致）

    Returns:
        去重、排序后的通知列表
    """
    derived: dict[str, Notification] = {}
    for task in tasks:
        notification = classify_task(task, now)
        if notification is not None:
            derived[notification.id] = notification
    return sort_notifications(derived.values())


class NotificationCenter:
    """通知持有者 -- 每轮重新推导，按 id 合并本地状态

    - 条件仍成立的通知保留 is_read
    - 被忽略的通知在条件成立期间保持隐藏，条件消失后遗忘
    - push_assigned 产生的事件型通知不参与推导，直到被忽略或任务离开 store
    """

    def __init__(
        self,
        store: TaskStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._clock = clock
        self._current: dict[str, Notification] = {}
        self._dismissed: set[str] = set()
        self._pushed: dict[str, Notification] = {}

    def refresh(self, now: datetime | None = None) -> list[Notification]:
        """重新推导通知列表（upsert-by-id，而非整体替换）"""
        now = now or self._clock()
        tasks = self._store.list_tasks()
        task_ids = {task.id for task in tasks}

        self._pushed = {
            nid: n for nid, n in self._pushed.items() if n.task_id in task_ids
        }
        candidates = sort_notifications(
            [*derive_notifications(tasks, now), *self._pushed.values()]
        )

        live_ids = {n.id for n in candidates}
        self._dismissed &= live_ids

        merged: dict[str, Notification] = {}
        for notification in candidates:
            if notification.id in self._dismissed:
                continue
            previous = self._current.get(notification.id)
            if previous is not None and previous.is_read:
                notification = notification.model_copy(update={"is_read": True})
            merged[notification.id] = notification
        self._current = merged

        log.debug(
            "notifications_refreshed",
            task_count=len(tasks),
            notification_count=len(merged),
            unread_count=self.unread_count(),
        )
        return self.get_notifications()

    def get_notifications(self) -> list[Notification]:
        return [n.model_copy() for n in self._current.values()]

    def unread_count(self) -> int:
        return sum(1 for n in self._current.values() if not n.is_read)

    def mark_read(self, notification_id: str) -> bool:
        """标记已读；未知 id 返回 False"""
        notification = self._current.get(notification_id)
        if notification is None:
            return False
        self._current[notification_id] = notification.model_copy(update={"is_read": True})
        if notification_id in self._pushed:
            self._pushed[notification_id] = self._current[notification_id]
        return True

    def mark_all_read(self) -> int:
        """全部标记已读，返回本次新标记的数量"""
        changed = 0
        for notification_id, notification in list(self._current.items()):
            if not notification.is_read:
                self.mark_read(notification_id)
                changed += 1
        return changed

    def dismiss(self, notification_id: str) -> bool:
        """忽略通知；未知 id 返回 False"""
        if notification_id not in self._current:
            return False
        del self._current[notification_id]
        if self._pushed.pop(notification_id, None) is None:
            self._dismissed.add(notification_id)
        return True

    def push_assigned(self, task: Task, now: datetime | None = None) -> Notification:
        """记录一条 assigned 事件型通知，并立即出现在当前列表中"""
        notification = Notification(
            id=notification_id(NotificationType.ASSIGNED, task.id),
            type=NotificationType.ASSIGNED,
            task_id=task.id,
            task_title=task.title,
            message=f"Task assigned to {task.assigned_to}" if task.assigned_to else "Task assigned",
            timestamp=now or self._clock(),
            priority=NotificationPriority.MEDIUM,
        )
        self._pushed[notification.id] = notification
        self._current[notification.id] = notification
        self._current = {
            n.id: n for n in sort_notifications(self._current.values())
        }
        log.debug("notification_pushed", notification_id=notification.id, task_id=task.id)
        return notification.model_copy()
