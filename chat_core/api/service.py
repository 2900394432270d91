"""对外 API 服务模块。

提供简化的函数接口供 CLI 或上层应用调用。
"""

from typing import Iterator, Optional, Union

from chat_core.client import ASSISTANT_CONTENT, Client
from chat_core.config.settings import settings
from chat_core.domain.exceptions import BusinessError
from chat_core.infrastructure.logging.logger import logger
from chat_core.infrastructure.storage.file_history import FileHistoryStore
from chat_core.transport.http_transport import HttpTransport


_store: Optional[FileHistoryStore] = None
_client: Optional[Client] = None


def get_default_store() -> FileHistoryStore:
    """获取默认的文件历史存储（单例）。"""
    global _store
    if _store is None:
        _store = FileHistoryStore(settings.history_file)
    return _store


def get_default_client(model: Optional[str] = None) -> Client:
    """获取默认的 Client 实例（单例）；指定 model 时返回新实例。"""
    global _client
    if _client is not None and model is None:
        return _client
    client = Client(
        transport=HttpTransport(settings),
        store=get_default_store(),
        model=model or settings.openai_model,
        target=settings.completions_url,
        system_prompt=settings.system_prompt or ASSISTANT_CONTENT,
        max_context_messages=settings.max_context_messages,
    )
    if model is None:
        _client = client
    return client


def run_query(text: str, stream: bool = False, model: Optional[str] = None) -> Union[str, Iterator[str]]:
    """运行一次查询。

    Args:
        text: 用户输入内容
        stream: 为 True 时返回增量文本的迭代器
        model: 覆盖配置中的模型 ID（可选）

    Returns:
        完整回答，或 stream=True 时的增量迭代器

    Raises:
        各种 domain.exceptions 中定义的异常
    """
    client = get_default_client(model)
    if stream:
        return _logged_stream(client, text)
    try:
        return client.query(text)
    except BusinessError as e:
        logger.error(f"Query failed: {e}", extra={"extra": {"code": e.code, "error": e.message}})
        raise


def _logged_stream(client: Client, text: str) -> Iterator[str]:
    try:
        yield from client.stream(text)
    except BusinessError as e:
        logger.error(f"Stream query failed: {e}", extra={"extra": {"code": e.code, "error": e.message}})
        raise


def clear_history() -> None:
    """清空默认存储中的对话历史。"""
    store = get_default_store()
    store.clear()
    logger.info("Cleared history", extra={"extra": {"path": str(store.path)}})
