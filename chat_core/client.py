"""对话客户端核心模块。

负责把一次用户查询变成与远端补全接口的有状态交换：
组装消息序列、调用 Transport、校验并解码响应、回写对话历史。
"""

import logging
import time
from typing import Any, Dict, Iterator, List, Optional, Tuple
from uuid import uuid4

from chat_core.domain.exceptions import (
    DecodeError,
    EmptyResponseError,
    EncodeError,
    NoChoicesError,
    TransportError,
    WriteError,
)
from chat_core.domain.history import HistoryStore
from chat_core.domain.models import Message, Request, Response, parse_stream_line
from chat_core.infrastructure.logging.logger import logger
from chat_core.transport.base import Transport


URL = "https://api.openai.com/v1/chat/completions"
GPT_MODEL = "gpt-3.5-turbo"
SYSTEM_ROLE = "system"
USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
ASSISTANT_CONTENT = "You are a helpful assistant."


class Client:
    def __init__(
        self,
        transport: Transport,
        store: HistoryStore,
        model: str = GPT_MODEL,
        target: str = URL,
        system_prompt: str = ASSISTANT_CONTENT,
        max_context_messages: int = 0,
    ):
        self._transport = transport
        self._store = store
        self._model = model
        self._target = target
        self._system_prompt = system_prompt
        self._max_context_messages = max_context_messages


    def query(self, text: str) -> str:
        """执行一次非流式查询并返回模型回答。

        Raises:
            ReadError / WriteError: 历史存储读写失败。
            TransportError: 网络交换失败，message 为 Transport 原文。
            EmptyResponseError / DecodeError / NoChoicesError: 响应不可用。
        """
        start_time = time.time()
        log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}", "model": self._model}
        messages, payload = self._prepare(text, stream=False, log_ctx=log_ctx)

        raw = self._post(payload, log_ctx)
        try:
            response = Response.decode(raw)
        except (ValueError, TypeError) as e:
            self._log(logging.ERROR, "Decode failed", log_ctx, error=str(e))
            raise DecodeError(code="DECODE_ERROR", message=f"failed to decode response: {e}")
        if not response.choices:
            raise NoChoicesError(code="NO_CHOICES", message="no responses returned")

        answer = response.choices[0].message.content
        self._save(messages, answer, log_ctx)
        self._log(
            logging.INFO,
            "Completed query",
            log_ctx,
            answer=answer,
            elapsed_seconds=round(time.time() - start_time, 2),
            finish_reason=response.choices[0].finish_reason,
            total_tokens=response.usage.total_tokens if response.usage else None,
        )
        return answer

    def stream(self, text: str) -> Iterator[str]:
        """流式查询：每收到一个增量就立即产出，结束后把完整回答写入历史。"""
        log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}", "model": self._model, "stream": True}
        messages, payload = self._prepare(text, stream=True, log_ctx=log_ctx)

        received = False
        parts: List[str] = []
        try:
            for line in self._transport.post_stream(self._target, payload):
                if not line.strip():
                    continue
                received = True
                for delta in parse_stream_line(line):
                    parts.append(delta)
                    yield delta
        except TransportError as e:
            self._log(logging.ERROR, "Transport failed", log_ctx, code=e.code, error=e.message)
            raise
        if not received:
            raise EmptyResponseError(code="EMPTY_RESPONSE", message="empty response")
        if not parts:
            raise NoChoicesError(code="NO_CHOICES", message="no responses returned")

        answer = "".join(parts)
        self._save(messages, answer, log_ctx)
        self._log(logging.INFO, "Completed stream query", log_ctx, answer=answer, chunks=len(parts))

    def build_messages(
        self,
        history: List[Message],
        text: str,
        log_ctx: Optional[Dict[str, Any]] = None,
    ) -> List[Message]:
        """组装发往远端的消息序列。

        空历史时先放入 system 种子；否则沿用历史原样。
        最后追加本次 user 消息，并按需做上下文裁剪。
        """
        if history:
            messages = list(history)
        else:
            messages = [Message(role=SYSTEM_ROLE, content=self._system_prompt)]
        messages.append(Message(role=USER_ROLE, content=text))
        return self._trim(messages, log_ctx or {})

    def _prepare(self, text: str, stream: bool, log_ctx: Dict[str, Any]) -> Tuple[List[Message], bytes]:
        history = self._store.read()
        messages = self.build_messages(history, text, log_ctx)
        payload = self._encode(messages, stream=stream)
        self._log(
            logging.INFO,
            "Sending query",
            log_ctx,
            query=text,
            history_len=len(history),
            messages=len(messages),
        )
        return messages, payload

    def _trim(self, messages: List[Message], log_ctx: Dict[str, Any]) -> List[Message]:
        limit = self._max_context_messages
        if limit <= 0 or len(messages) <= limit:
            return messages
        # 开头连续的 system 消息与最新的 user 消息始终保留
        head = 0
        while head < len(messages) - 1 and messages[head].role == SYSTEM_ROLE:
            head += 1
        keep = max(limit - head, 1)
        trimmed = messages[:head] + messages[head:][-keep:]
        self._log(
            logging.INFO,
            "Truncated context",
            log_ctx,
            max_context=limit,
            trimmed=len(messages) - len(trimmed),
        )
        return trimmed

    def _encode(self, messages: List[Message], stream: bool) -> bytes:
        try:
            return Request(model=self._model, messages=messages, stream=stream).encode()
        except (TypeError, ValueError) as e:
            raise EncodeError(code="ENCODE_ERROR", message=f"failed to encode request: {e}")

    def _post(self, payload: bytes, log_ctx: Dict[str, Any]) -> bytes:
        try:
            raw = self._transport.post(self._target, payload, False)
        except TransportError as e:
            self._log(logging.ERROR, "Transport failed", log_ctx, code=e.code, error=e.message)
            raise
        if not raw:
            raise EmptyResponseError(code="EMPTY_RESPONSE", message="empty response")
        return raw

    def _save(self, messages: List[Message], answer: str, log_ctx: Dict[str, Any]) -> None:
        messages.append(Message(role=ASSISTANT_ROLE, content=answer))
        try:
            self._store.write(messages)
        except WriteError as e:
            # 回答已经拿到，挂在异常上交给调用方决定如何展示
            e.extra["answer"] = answer
            self._log(logging.WARNING, "History write failed", log_ctx, error=e.message)
            raise

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
