"""Notification Domain Model

通知是从 TaskStore 推导出的临时视图，id 由 type + task_id 确定，
因此每轮重新生成都是幂等的。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import NotificationPriority, NotificationType


def notification_id(type_: NotificationType, task_id: str) -> str:
    """生成确定性的通知 ID：{type}-{task_id}"""
    return f"{type_.value}-{task_id}"


class Notification(BaseModel):
    """任务通知"""

    id: str = Field(description="确定性 ID：{type}-{task_id}")
    type: NotificationType
    task_id: str
    task_title: str
    message: str = Field(description="可读文案")
    timestamp: datetime
    is_read: bool = Field(default=False, description="本地已读标记")
    priority: NotificationPriority
