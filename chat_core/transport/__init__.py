"""网络传输层。

- base: Transport 协议，Client 只依赖这一抽象。
- http_transport: 基于 httpx 的生产实现。
"""

from chat_core.transport.base import Transport
from chat_core.transport.http_transport import HttpTransport

__all__ = ["Transport", "HttpTransport"]
