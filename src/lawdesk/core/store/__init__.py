"""lawdesk Core Store -- 本地任务视图

提供内存 TaskStore 实现以及 Store / Backend 协议。
"""

from .protocols import TaskBackend, TaskStore
from .task_store import InMemoryTaskStore, utc_now

__all__ = [
    "InMemoryTaskStore",
    "TaskStore",
    "TaskBackend",
    "utc_now",
]
