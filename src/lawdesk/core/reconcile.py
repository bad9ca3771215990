"""Reconciler -- 乐观更新与远端确认的协调

流程：
1. 记录当前快照（previous_snapshot）
2. apply_optimistic：本地读者立即看到新状态
3. await remote_call()
4. 成功：commit 服务端返回的权威记录
5. 失败：rollback 到 previous_snapshot，抛出 SyncError
6. 被取消：同样回滚，然后让 CancelledError 继续传播

协议本身不做自动重试，重试由调用方显式重新调用。
"""

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import structlog
from ulid import ULID

from .exceptions import NotFoundError, SyncError
from .models.enums import MutationStatus
from .models.mutation import PendingMutation
from .models.task import Task, TaskPatch
from .store.task_store import InMemoryTaskStore

log = structlog.get_logger()

RemoteCall = Callable[[], Awaitable[Task]]


class Reconciler:
    """乐观更新协调器

    同一 task 的并发 reconcile 不排队：最后完成的 commit/rollback 生效。
    不同 task 之间互不影响，无需加锁。
    """

    def __init__(self, store: InMemoryTaskStore) -> None:
        self._store = store
        self._pending: dict[str, PendingMutation] = {}

    def pending_mutations(self) -> list[PendingMutation]:
        """当前在途的乐观更新"""
        return [m.model_copy() for m in self._pending.values()]

    async def reconcile(
        self,
        task_id: str,
        patch: TaskPatch | Mapping[str, Any],
        remote_call: RemoteCall,
    ) -> Task:
        """本地乐观应用 patch，随后以 remote_call 的结果确认或回滚

        Args:
            task_id: 目标 Task ID
            patch: 本地补丁
            remote_call: 无参异步调用，返回服务端权威 Task

        Returns:
            服务端返回的 Task

        Raises:
            NotFoundError: task_id 不存在（未发起远端调用）
            ValidationError: 补丁不合法（未发起远端调用）
            SyncError: 远端调用失败或返回非 Task，本地已回滚
            asyncio.CancelledError: 调用被取消，本地已回滚后原样向上传播
        """
        previous = self._store.get_task(task_id)
        applied = self._store.apply_optimistic(task_id, patch)

        mutation = PendingMutation(
            mutation_id=str(ULID()),
            target_id=task_id,
            previous_snapshot=previous,
            applied_snapshot=applied,
            attempted_at=applied.updated_at,
        )
        self._pending[mutation.mutation_id] = mutation

        try:
            server_task = await remote_call()
            if not isinstance(server_task, Task):
                raise TypeError(
                    f"远端调用应返回 Task，实际为 {type(server_task).__name__}"
                )
        except asyncio.CancelledError:
            self._revert(mutation)
            log.warning(
                "reconcile_cancelled",
                task_id=task_id,
                mutation_id=mutation.mutation_id,
            )
            raise
        except Exception as e:
            failed = mutation.model_copy(
                update={"status": MutationStatus.FAILED, "error": str(e)}
            )
            self._revert(mutation)
            log.warning(
                "reconcile_failed",
                task_id=task_id,
                mutation_id=mutation.mutation_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise SyncError(task_id, e, failed) from e

        self._pending.pop(mutation.mutation_id, None)
        if self._store.closed:
            log.info("reconcile_result_discarded", task_id=task_id, reason="store_closed")
            return server_task

        try:
            self._store.commit(task_id, server_task)
        except NotFoundError:
            # 远端调用期间任务已被本地删除
            log.info("reconcile_result_discarded", task_id=task_id, reason="task_removed")
            return server_task

        log.info(
            "reconcile_confirmed",
            task_id=task_id,
            mutation_id=mutation.mutation_id,
            status=server_task.status.value,
        )
        return server_task

    def _revert(self, mutation: PendingMutation) -> None:
        """移出在途列表并回滚到变更前快照；store 已关闭时只记录日志"""
        self._pending.pop(mutation.mutation_id, None)
        if self._store.closed:
            log.info(
                "reconcile_result_discarded",
                task_id=mutation.target_id,
                reason="store_closed",
            )
            return
        self._store.rollback(mutation.target_id, mutation.previous_snapshot)
