"""Client 异常体系

远端任务服务调用失败时抛出；Reconciler 会把它们包装进 SyncError。
"""


class ApiError(Exception):
    """Client 包基础异常"""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        recoverable: bool = True,
    ) -> None:
        """
        Args:
            message: 错误描述（优先取服务端返回的 message）
            status_code: HTTP 状态码，连接失败时为 None
            recoverable: 是否可通过重试恢复
        """
        super().__init__(message)
        self.status_code = status_code
        self.recoverable = recoverable


class ApiUnreachableError(ApiError):
    """后端不可达（连接失败、超时、DNS 解析失败等）"""

    def __init__(self, base_url: str, original_error: Exception) -> None:
        """
        Args:
            base_url: 尝试连接的后端地址
            original_error: 原始异常
        """
        super().__init__(f"后端不可达: {base_url} -- {original_error}", recoverable=True)
        self.base_url = base_url
        self.original_error = original_error


class UnauthorizedError(ApiError):
    """401：令牌失效，客户端已清除本地令牌"""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status_code=401, recoverable=False)
