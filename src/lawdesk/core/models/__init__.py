"""lawdesk Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    PRIORITY_RANK,
    MutationStatus,
    NotificationPriority,
    NotificationType,
    TaskPriority,
    TaskStatus,
    TaskType,
)
from .comment import TaskComment, TaskCommentDraft
from .mutation import PendingMutation
from .notification import Notification, notification_id
from .task import Task, TaskDraft, TaskFilter, TaskPatch

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskPriority",
    "TaskType",
    "NotificationType",
    "NotificationPriority",
    "MutationStatus",
    "PRIORITY_RANK",
    # Task
    "Task",
    "TaskPatch",
    "TaskDraft",
    "TaskFilter",
    # Notification
    "Notification",
    "notification_id",
    # Mutation
    "PendingMutation",
    # Comment
    "TaskComment",
    "TaskCommentDraft",
]
