"""UserService -- 用户目录（负责人 ID -> 显示名）"""

from collections.abc import Mapping

from .client import ApiClient


class UserService:
    """远端用户服务"""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_user_names(self) -> dict[str, str]:
        """返回 {用户 ID: 姓名}，兼容分页与非分页两种响应"""
        data = await self._client.fetch_data("GET", "/users", error_message="获取用户列表失败")
        if isinstance(data, Mapping):
            data = data.get("data") or []
        return {
            str(user["id"]): str(user.get("name") or "")
            for user in data
            if isinstance(user, Mapping) and user.get("id") is not None
        }
