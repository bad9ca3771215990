"""Core 异常体系

NotFoundError / ValidationError 同步抛出，store 不受影响；
SyncError 仅在回滚完成之后抛出，store 不会停留在中间状态。
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models.mutation import PendingMutation


class TaskStoreError(Exception):
    """Core 包基础异常"""

    def __init__(self, message: str, recoverable: bool = False) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 调用方是否可以通过重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class NotFoundError(TaskStoreError):
    """变更目标 task_id 不在 store 中"""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task 不存在: {task_id}")
        self.task_id = task_id


class ValidationError(TaskStoreError):
    """调用方提交的补丁/表单不合法"""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class StoreClosedError(TaskStoreError):
    """store 已被关闭，拒绝继续变更"""

    def __init__(self) -> None:
        super().__init__("TaskStore 已关闭")


class SyncError(TaskStoreError):
    """远端确认失败 -- 本地乐观更新已回滚

    原始异常保存在 cause 中，由调用方决定重试、提示用户或静默接受回滚。
    """

    def __init__(
        self,
        task_id: str,
        cause: BaseException,
        mutation: PendingMutation | None = None,
    ) -> None:
        """
        Args:
            task_id: 目标 Task ID
            cause: 远端调用抛出的原始异常
            mutation: 已标记为 failed 的 PendingMutation
        """
        super().__init__(f"Task {task_id} 同步失败: {cause}", recoverable=True)
        self.task_id = task_id
        self.cause = cause
        self.mutation = mutation
