"""全局 pytest 配置 -- 固定时钟 + Task 工厂 fixture"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest
from lawdesk.core.models import Task, TaskPriority, TaskStatus
from lawdesk.core.store import InMemoryTaskStore

FIXED_NOW = datetime(2026, 3, 2, 9, 0, 0, tzinfo=UTC)


class FakeClock:
    """可手动推进的时钟"""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def now() -> datetime:
    """固定的当前时间"""
    return FIXED_NOW


@pytest.fixture
def clock(now: datetime) -> FakeClock:
    """固定起点的可推进时钟"""
    return FakeClock(now)


@pytest.fixture
def make_task(now: datetime) -> Callable[..., Task]:
    """Task 工厂：默认 todo / medium / 三天前创建"""

    def _make(task_id: str = "T1", **overrides) -> Task:
        fields = {
            "id": task_id,
            "title": f"Task {task_id}",
            "status": TaskStatus.TODO,
            "priority": TaskPriority.MEDIUM,
            "assigned_to": "U1",
            "created_at": now - timedelta(days=3),
            "updated_at": now - timedelta(days=3),
        }
        fields.update(overrides)
        return Task(**fields)

    return _make


@pytest.fixture
def store(clock: FakeClock) -> InMemoryTaskStore:
    """使用固定时钟的空 store"""
    return InMemoryTaskStore(clock=clock)
