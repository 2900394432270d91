"""Chat Core 顶层包。

该包提供一个带持久化上下文的对话客户端：
消息组装、HTTP 传输、响应校验、历史存储与命令行入口。
"""

from chat_core.client import Client
from chat_core.domain.models import Message

__all__ = ["Client", "Message"]
