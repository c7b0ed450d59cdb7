"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 Session 层或 API 层做统一捕获与用户提示。

恢复策略：
- ProviderError 及其子类由 ProviderGateway 捕获并回退到模拟模式。
- ToolError 及其子类由 ToolDispatcher 捕获并转换为错误内容的 ToolResult。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "FORMAT_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 provider、tool 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class AuthError(BusinessError):
    """没有可用的 Provider 配置（或缺少凭证），必须先配置才能发送消息。"""


class TurnInProgressError(BusinessError):
    """上一轮对话尚未结束时又提交了新消息。"""


class ProviderError(BusinessError):
    """Provider 调用失败的基类，kind 即错误码。"""

    @property
    def kind(self) -> str:
        return self.code


class NetworkError(ProviderError):
    """网络层错误，例如连接失败、超时等。"""


class HttpError(ProviderError):
    """第三方 API 返回非 2xx 状态码时抛出。"""


class RateLimitError(HttpError):
    """Provider 限流错误（HTTP 429）。"""


class FormatError(ProviderError):
    """响应结构无法通过校验，例如缺少文本 content 字段。"""


class ToolError(BusinessError):
    """工具执行相关错误的基类。"""


class UnknownToolError(ToolError):
    """工具名不在分发表中。"""


class ExecutionError(ToolError):
    """工具处理函数执行失败。"""
