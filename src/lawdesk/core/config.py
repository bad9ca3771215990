"""配置常量模块 -- 可通过环境变量覆盖

包含通知扫描间隔、due_soon / completed 时间窗口等可配置常量。
"""

import os


def get_notification_interval_s() -> float:
    """获取通知重新扫描的间隔（秒）"""
    return float(os.environ.get("LAWDESK_NOTIFICATION_INTERVAL_S", "60"))


# due_soon 窗口（天），ceil(剩余天数) 落在 [0, 该值] 之间即视为即将到期
DUE_SOON_WINDOW_DAYS: int = 2

# completed 通知保留窗口（小时）
COMPLETED_WINDOW_HOURS: int = 24

# 本地乐观创建的临时 ID 前缀
LOCAL_ID_PREFIX: str = "LOCAL-"
