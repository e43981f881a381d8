"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError：
- 客户端（AIStreamClient）统一捕获后转换为 GenerationFailure；
- Gateway 根据 http_status 直接映射为 HTTP 响应 {"error": message}。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "RATE_LIMIT"）。
        message: 用户可读错误信息，会直接展示为 "Error: <message>"。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 upstream_status、task_type 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、读取中断、超时等。"""


class ApiError(BusinessError):
    """对端返回非 2xx 响应，或成功响应却没有可读 body。"""


class RateLimitError(BusinessError):
    """限流错误（HTTP 429）。"""


class CreditsExhaustedError(BusinessError):
    """上游额度耗尽（HTTP 402）。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class UnknownTaskTypeError(ValidationError):
    """Gateway 收到未登记的 task type。"""


class UnauthorizedError(BusinessError):
    """Gateway 入站请求缺少或携带了错误的 Bearer 凭证。"""
