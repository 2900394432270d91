"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
便于在 service 层或 CLI 层做统一捕获与用户提示。
str(err) 始终等于 err.message。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "STORE_READ_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 trace_id、answer 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ReadError(BusinessError):
    """历史存储读取失败。"""


class WriteError(BusinessError):
    """历史存储写入失败；由 Client 抛出时 extra["answer"] 携带已得到的回答。"""


class TransportError(BusinessError):
    """网络交换失败，message 为 Transport 自身的错误文本。"""


class NetworkError(TransportError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(TransportError):
    """远端返回非 2xx/429 错误时抛出。"""


class RateLimitError(TransportError):
    """远端限流错误，重试/退避由调用方决定。"""


class EmptyResponseError(BusinessError):
    """Transport 成功返回但没有任何字节。"""


class EncodeError(BusinessError):
    """请求编码失败。"""


class DecodeError(BusinessError):
    """响应字节无法解析为预期结构。"""


class NoChoicesError(BusinessError):
    """响应解析成功但 choices 为空。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""
