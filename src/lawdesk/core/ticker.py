"""NotificationTicker -- 固定间隔驱动通知重新推导

启动后立即扫描一次，之后每 interval_s 秒扫描一次；
stop() 取消后台循环并等待其退出，避免泄漏扫描周期。
"""

import asyncio

import structlog

from .config import get_notification_interval_s
from .notifications import NotificationCenter

log = structlog.get_logger()


class NotificationTicker:
    """通知扫描定时器"""

    def __init__(
        self,
        center: NotificationCenter,
        interval_s: float | None = None,
    ) -> None:
        """
        Args:
            center: 要驱动的 NotificationCenter
            interval_s: 扫描间隔（秒），None 时读取 LAWDESK_NOTIFICATION_INTERVAL_S
        """
        self._center = center
        self._interval_s = max(
            0.01,
            float(interval_s if interval_s is not None else get_notification_interval_s()),
        )
        self._task: asyncio.Task | None = None
        self._ticks = 0

    @property
    def interval_s(self) -> float:
        return self._interval_s

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def ticks(self) -> int:
        """已完成的扫描次数"""
        return self._ticks

    def start(self) -> None:
        """启动后台扫描循环（重复调用无副作用）"""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="lawdesk-notification-ticker")
        log.info("notification_ticker_started", interval_s=self._interval_s)

    async def stop(self) -> None:
        """取消后台循环并等待退出（重复调用无副作用）"""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        log.info("notification_ticker_stopped", ticks=self._ticks)

    async def _run(self) -> None:
        while True:
            try:
                self._center.refresh()
            except Exception:
                # 单轮扫描失败不终止循环
                log.exception("notification_scan_failed")
            self._ticks += 1
            await asyncio.sleep(self._interval_s)

    async def __aenter__(self) -> "NotificationTicker":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
