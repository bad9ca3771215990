"""Reconciler 单元测试

测试内容：
1. 成功：commit 服务端原样记录（而非本地乐观值）
2. 失败：回滚到变更前快照，抛出 SyncError 并保留原始异常
3. 远端调用期间本地读者能看到乐观值
4. 同一任务的并发 reconcile：最后完成者生效
5. store 关闭 / 任务被移除后，结果被丢弃
6. 调用被取消或远端返回非 Task 时同样回滚
"""

import asyncio
from datetime import timedelta

import pytest
from lawdesk.core.exceptions import NotFoundError, SyncError, ValidationError
from lawdesk.core.models import MutationStatus, TaskStatus
from lawdesk.core.reconcile import Reconciler


@pytest.fixture
def reconciler(store, make_task):
    store.upsert(make_task("T1"))
    return Reconciler(store)


class TestReconcileSuccess:
    """远端确认成功"""

    async def test_commits_server_record_verbatim(self, reconciler, store, make_task, now):
        server = make_task(
            "T1",
            title="Renamed by server",
            status=TaskStatus.COMPLETED,
            completed_at=now - timedelta(minutes=1),
            updated_at=now - timedelta(seconds=30),
        )

        async def remote_call():
            return server

        result = await reconciler.reconcile("T1", {"status": "completed"}, remote_call)

        assert result == server
        assert store.get_task("T1") == server
        assert reconciler.pending_mutations() == []

    async def test_optimistic_value_visible_while_in_flight(self, reconciler, store, make_task):
        release = asyncio.Event()
        seen = {}

        async def remote_call():
            seen["status"] = store.get_task("T1").status
            seen["pending"] = reconciler.pending_mutations()
            await release.wait()
            return make_task("T1", status=TaskStatus.REVIEW)

        pending = asyncio.create_task(
            reconciler.reconcile("T1", {"status": "review"}, remote_call)
        )
        await asyncio.sleep(0)
        assert store.get_task("T1").status == TaskStatus.REVIEW

        release.set()
        await pending

        assert seen["status"] == TaskStatus.REVIEW
        assert len(seen["pending"]) == 1
        mutation = seen["pending"][0]
        assert mutation.target_id == "T1"
        assert mutation.status == MutationStatus.APPLIED_LOCALLY
        assert mutation.previous_snapshot.status == TaskStatus.TODO
        assert mutation.applied_snapshot.status == TaskStatus.REVIEW


class TestReconcileFailure:
    """远端失败回滚"""

    async def test_rollback_and_sync_error(self, reconciler, store):
        before = store.get_task("T1")
        cause = ConnectionError("network down")

        async def remote_call():
            raise cause

        with pytest.raises(SyncError) as exc_info:
            await reconciler.reconcile("T1", {"status": "completed"}, remote_call)

        err = exc_info.value
        assert err.task_id == "T1"
        assert err.cause is cause
        assert err.recoverable is True
        assert err.mutation.status == MutationStatus.FAILED
        assert err.mutation.error == "network down"
        assert store.get_task("T1") == before
        assert reconciler.pending_mutations() == []

    async def test_local_errors_skip_remote_call(self, reconciler, store):
        called = False

        async def remote_call():
            nonlocal called
            called = True

        with pytest.raises(NotFoundError):
            await reconciler.reconcile("T404", {"status": "review"}, remote_call)
        with pytest.raises(ValidationError):
            await reconciler.reconcile("T1", {"status": "bogus"}, remote_call)
        assert called is False


class TestConcurrentReconcile:
    """同一任务的并发更新"""

    async def test_last_settled_wins(self, reconciler, store, make_task):
        first_release = asyncio.Event()
        second_release = asyncio.Event()

        async def first_call():
            await first_release.wait()
            return make_task("T1", status=TaskStatus.IN_PROGRESS)

        async def second_call():
            await second_release.wait()
            return make_task("T1", status=TaskStatus.REVIEW)

        first = asyncio.create_task(
            reconciler.reconcile("T1", {"status": "in_progress"}, first_call)
        )
        second = asyncio.create_task(
            reconciler.reconcile("T1", {"status": "review"}, second_call)
        )
        await asyncio.sleep(0)
        assert len(reconciler.pending_mutations()) == 2

        second_release.set()
        await second
        first_release.set()
        await first

        assert store.get_task("T1").status == TaskStatus.IN_PROGRESS

    async def test_different_tasks_do_not_interfere(self, reconciler, store, make_task):
        store.upsert(make_task("T2"))

        async def ok():
            return make_task("T1", status=TaskStatus.COMPLETED)

        async def boom():
            raise RuntimeError("500")

        results = await asyncio.gather(
            reconciler.reconcile("T1", {"status": "completed"}, ok),
            reconciler.reconcile("T2", {"status": "review"}, boom),
            return_exceptions=True,
        )

        assert results[0].status == TaskStatus.COMPLETED
        assert isinstance(results[1], SyncError)
        assert store.get_task("T1").status == TaskStatus.COMPLETED
        assert store.get_task("T2").status == TaskStatus.TODO


class TestCancelledReconcile:
    """调用被取消时同样回滚"""

    async def test_timeout_rolls_back(self, reconciler, store):
        """wait_for 超时取消在途调用：恢复快照，清空在途列表"""
        before = store.get_task("T1")

        async def slow_call():
            await asyncio.sleep(10)

        with pytest.raises(TimeoutError):
            await asyncio.wait_for(
                reconciler.reconcile("T1", {"status": "completed"}, slow_call), 0.01
            )

        assert store.get_task("T1") == before
        assert reconciler.pending_mutations() == []

    async def test_cancel_propagates(self, reconciler, store):
        """取消不会被包装成 SyncError"""
        started = asyncio.Event()

        async def slow_call():
            started.set()
            await asyncio.sleep(10)

        pending = asyncio.create_task(
            reconciler.reconcile("T1", {"status": "review"}, slow_call)
        )
        await started.wait()
        assert store.get_task("T1").status == TaskStatus.REVIEW

        pending.cancel()
        with pytest.raises(asyncio.CancelledError):
            await pending

        assert store.get_task("T1").status == TaskStatus.TODO
        assert reconciler.pending_mutations() == []


class TestInvalidServerResult:
    """远端返回值不是 Task"""

    @pytest.mark.parametrize("result", [None, {"id": "T1", "status": "completed"}])
    async def test_non_task_result_rolls_back(self, reconciler, store, result):
        """非 Task 结果按失败处理：回滚并抛出 SyncError"""
        before = store.get_task("T1")

        async def remote_call():
            return result

        with pytest.raises(SyncError) as exc_info:
            await reconciler.reconcile("T1", {"status": "completed"}, remote_call)

        assert isinstance(exc_info.value.cause, TypeError)
        assert store.get_task("T1") == before
        assert reconciler.pending_mutations() == []


class TestDiscardedResults:
    """store 已关闭或任务已移除"""

    async def test_success_after_close_is_discarded(self, reconciler, store, make_task):
        server = make_task("T1", status=TaskStatus.REVIEW)

        async def remote_call():
            store.close()
            return server

        assert await reconciler.reconcile("T1", {"status": "review"}, remote_call) == server

    async def test_failure_after_close_still_raises(self, reconciler, store):
        async def remote_call():
            store.close()
            raise RuntimeError("late failure")

        with pytest.raises(SyncError):
            await reconciler.reconcile("T1", {"status": "review"}, remote_call)

    async def test_success_after_removal_is_discarded(self, reconciler, store, make_task):
        async def remote_call():
            store.remove("T1")
            return make_task("T1", status=TaskStatus.REVIEW)

        await reconciler.reconcile("T1", {"status": "review"}, remote_call)
        assert "T1" not in store
