"""lawdesk Core -- 本地任务视图、通知推导与乐观更新协调

lawdesk.core 的公开接口导出。
"""

# 异常
from .exceptions import (
    NotFoundError,
    StoreClosedError,
    SyncError,
    TaskStoreError,
    ValidationError,
)

# 核心组件
from .notifications import NotificationCenter, derive_notifications
from .reconcile import Reconciler
from .store import InMemoryTaskStore, TaskBackend, TaskStore
from .ticker import NotificationTicker
from .workspace import TaskWorkspace

__all__ = [
    "InMemoryTaskStore",
    "TaskStore",
    "TaskBackend",
    "NotificationCenter",
    "derive_notifications",
    "Reconciler",
    "NotificationTicker",
    "TaskWorkspace",
    "TaskStoreError",
    "NotFoundError",
    "ValidationError",
    "StoreClosedError",
    "SyncError",
]
