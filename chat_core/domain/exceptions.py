"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
调用方按具体子类分支处理，而不是捕获通用异常。
"""

from typing import Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "TRANSPORT_ERROR"）。
        message: 用户可读错误信息。
        extra: 其他补充字段（例如 trace_id、model 等）。
    """

    def __init__(self, code: str, message: str, **extra):
        self.code = code
        self.message = message
        self.extra = extra
        super().__init__(message)


class TransportError(BusinessError):
    """网络层错误：连接被拒绝、DNS 失败、超时等。"""

    def __init__(self, message: str, cause: Optional[BaseException] = None, **extra):
        super().__init__(code="TRANSPORT_ERROR", message=message, **extra)
        self.cause = cause


class ServerError(BusinessError):
    """服务端返回非 200 状态码时抛出，保留状态码与原始响应体。"""

    def __init__(self, message: str, status_code: int, body: str, **extra):
        super().__init__(code="SERVER_ERROR", message=message, **extra)
        self.status_code = status_code
        self.body = body


class DecodeError(BusinessError):
    """非流式响应的顶层 JSON 无法解析。

    流式响应中单行 JSON 损坏不属于此类错误，会被直接跳过。
    """

    def __init__(self, message: str, body: str = "", **extra):
        super().__init__(code="DECODE_ERROR", message=message, **extra)
        self.body = body


class InvalidStateError(BusinessError):
    """违反单轮对话状态机的操作，例如上一轮尚未结束又发起新一轮。"""

    def __init__(self, message: str, **extra):
        super().__init__(code="INVALID_STATE", message=message, **extra)


class ValidationError(BusinessError):
    """参数或配置校验失败，例如空的模型名。"""

    def __init__(self, message: str, **extra):
        super().__init__(code="VALIDATION_ERROR", message=message, **extra)
