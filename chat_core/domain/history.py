"""历史存储抽象。

Client 只依赖 HistoryStore 协议，具体实现（如文件存储）在构造时注入。
"""

from typing import List, Protocol

from .models import Message


class HistoryStore(Protocol):
    """对话历史存储协议。

    - read(): 返回之前持久化的有序消息序列；无历史时返回空列表。
      读取失败抛 ReadError。
    - write(messages): 用新的序列整体替换旧序列，对调用方而言是原子的。
      写入失败抛 WriteError。
    """

    def read(self) -> List[Message]:
        ...

    def write(self, messages: List[Message]) -> None:
        ...
