"""枚举定义 -- Task / Notification / PendingMutation 使用的全部取值

包含 TaskStatus、TaskPriority、TaskType、NotificationType、
NotificationPriority、MutationStatus 枚举，以及通知优先级排序权重。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态

    状态之间不设状态机约束，任意状态都可以流转到任意状态；
    通知推导只看当前 status 与 due_date，不看流转历史。
    """

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    OVERDUE = "overdue"
    ARCHIVED = "archived"


class TaskPriority(StrEnum):
    """Task 自身优先级（与通知优先级无关）"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskType(StrEnum):
    """Task 类型"""

    REVIEW = "review"
    RESEARCH = "research"
    CONSULTATION = "consultation"
    COURT = "court"
    DOCUMENT = "document"
    MEETING = "meeting"
    OTHER = "other"


class NotificationType(StrEnum):
    """通知类型"""

    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    COMPLETED = "completed"
    ASSIGNED = "assigned"


class NotificationPriority(StrEnum):
    """通知优先级 -- 由紧迫程度推导，而非 Task.priority"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class MutationStatus(StrEnum):
    """乐观更新的生命周期"""

    APPLIED_LOCALLY = "applied_locally"
    CONFIRMED = "confirmed"
    FAILED = "failed"


# 通知排序权重：数值越大越靠前
PRIORITY_RANK: dict[NotificationPriority, int] = {
    NotificationPriority.HIGH: 3,
    NotificationPriority.MEDIUM: 2,
    NotificationPriority.LOW: 1,
}
