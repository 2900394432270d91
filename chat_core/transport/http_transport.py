"""基于 httpx 的 Transport 实现。

面向 OpenAI 兼容的 chat/completions 端点：
- 认证: Authorization: Bearer <api_key>
- 请求体由 Client 编码好后原样发送，本模块不解析响应。
"""

from typing import Dict, Iterator

import httpx

from chat_core.config.settings import settings
from chat_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError


class HttpTransport:
    """HTTP Transport 客户端实现。"""

    name = "http"

    def __init__(self, cfg=settings):
        self._settings = cfg

    # ---- 非流式 ----

    def post(self, target: str, payload: bytes, stream: bool) -> bytes:
        if stream:
            return "\n".join(self.post_stream(target, payload)).encode("utf-8")
        headers = self._headers()
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(target, content=payload, headers=headers)
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))
        self._raise_for_status(resp)
        return resp.content

    # ---- 流式 ----

    def post_stream(self, target: str, payload: bytes) -> Iterator[str]:
        headers = self._headers()
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                with client.stream("POST", target, content=payload, headers=headers) as resp:
                    if resp.status_code >= 400:
                        resp.read()
                        self._raise_for_status(resp)
                    for line in resp.iter_lines():
                        yield line
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))

    # ---- 辅助方法 ----

    def _headers(self) -> Dict[str, str]:
        if not getattr(self._settings, "openai_api_key", None):
            raise ValidationError(code="MISSING_API_KEY", message="OPENAI_API_KEY not set")
        return {
            "Authorization": f"Bearer {self._settings.openai_api_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _raise_for_status(resp) -> None:
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message="rate limit exceeded", http_status=429)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
