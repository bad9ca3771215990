"""CLI 入口模块 -- python -m lawdesk.core <command>

支持的命令：
  tasks          拉取远端任务并打印列表
  notifications  拉取远端任务并打印推导出的通知
"""

import asyncio
import sys

from .logging_config import setup_logging
from .workspace import TaskWorkspace

USAGE = """用法: python -m lawdesk.core <command>
命令:
  tasks          拉取远端任务并打印列表
  notifications  拉取远端任务并打印推导出的通知"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "tasks":
        setup_logging()
        asyncio.run(show_tasks())
    elif command == "notifications":
        setup_logging()
        asyncio.run(show_notifications())
    else:
        print(f"未知命令: {command}")
        print("可用命令: tasks, notifications")
        sys.exit(1)


async def _load_workspace() -> TaskWorkspace:
    from lawdesk.client import ApiClient, TaskService, load_api_config

    config = load_api_config()
    print(f"API 地址: {config.base_url}")

    client = ApiClient.from_config(config)
    workspace = TaskWorkspace(TaskService(client))
    try:
        await workspace.load()
    finally:
        await client.aclose()
    return workspace


async def show_tasks() -> None:
    """打印任务列表"""
    workspace = await _load_workspace()
    tasks = workspace.list_tasks()
    print(f"共 {len(tasks)} 个任务")
    for task in tasks:
        due = task.due_date.isoformat() if task.due_date else "-"
        print(f"  [{task.status.value:<11}] {task.id}  {task.title}  (due: {due})")


async def show_notifications() -> None:
    """打印推导出的通知"""
    workspace = await _load_workspace()
    notifications = workspace.get_notifications()
    print(f"共 {len(notifications)} 条通知")
    for n in notifications:
        print(f"  [{n.priority.value:<6}] {n.type.value:<9} {n.task_title} -- {n.message}")


if __name__ == "__main__":
    main()
