"""Transport 抽象接口。

Client 不直接依赖 HTTP 库，而是依赖此协议：

- post(target, payload, stream) 执行一次网络交换，返回原始响应字节。
- post_stream(target, payload) 执行一次流式交换，按到达顺序逐行产出响应体。
- 不做重试、不做解析；失败时抛 TransportError（或其子类）。

这样测试中可以用替身替换真实网络调用。
"""

from typing import Iterator, Protocol


class Transport(Protocol):
    """单次网络交换协议。

    实现者需要保证：要么返回非空字节，要么抛出 TransportError；
    返回空字节时 Client 会视为 "empty response"。
    """

    def post(self, target: str, payload: bytes, stream: bool) -> bytes:
        ...

    def post_stream(self, target: str, payload: bytes) -> Iterator[str]:
        """流式交换：每收到一行就产出一行（不含换行符）。"""

        ...
