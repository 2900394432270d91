"""统一的消息、请求与响应数据模型。

本模块定义了 Client 与远端 chat/completions 端点之间交换的标准数据结构：

- Message: 一条对话消息（system/user/assistant），创建后不可变。
- Request: 每次查询新建的请求，负责编码为线上 JSON 字节。
- Response / Choice / Usage: 从 Transport 返回的字节解码得到的响应。

编码与解码都只依赖标准 json，字段名与 OpenAI 兼容接口保持一致。
解码时字段类型不符一律抛 TypeError，角色取值非法抛 ValueError。
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional


# 消息角色类型（与 OpenAI 兼容接口的 role 字段对应）
Role = Literal["system", "user", "assistant"]
ROLES = ("system", "user", "assistant")


def _str_field(data: Dict[str, Any], key: str, where: str) -> Optional[str]:
    """读取可选字符串字段：缺失或 null 返回 None，其余非 str 抛 TypeError。"""
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise TypeError(f"{where}.{key} must be a string, got {type(value).__name__}")
    return value


def _int_field(data: Dict[str, Any], key: str, where: str, default: int = 0) -> int:
    value = data.get(key)
    if value is None:
        return default
    # bool 是 int 的子类，这里单独排除
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{where}.{key} must be an integer, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Message:
    """一条对话消息，既用于请求，也用于响应和历史持久化。"""

    role: Role
    content: str

    def to_payload(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def from_payload(cls, data: Dict[str, Any], where: str = "message") -> "Message":
        if not isinstance(data, dict):
            raise TypeError(f"{where} must be an object, got {type(data).__name__}")
        role = _str_field(data, "role", where)
        if role not in ROLES:
            raise ValueError(f"{where}.role must be one of {', '.join(ROLES)}, got {role!r}")
        content = _str_field(data, "content", where)
        return cls(role=role, content=content or "")


@dataclass
class Request:
    """一次完整的补全请求，每次查询新建，不会持久化。"""

    model: str
    messages: List[Message]
    stream: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [m.to_payload() for m in self.messages],
            "stream": self.stream,
        }

    def encode(self) -> bytes:
        # 字段顺序固定，相同输入得到逐字节相同的输出
        return json.dumps(self.to_payload(), ensure_ascii=False).encode("utf-8")


@dataclass
class Usage:
    """远端返回的 token 统计信息。"""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class Choice:
    """单个候选回答（Client 只使用第一条）。"""

    message: Message
    finish_reason: Optional[str] = None
    index: int = 0


@dataclass
class Response:
    """一次补全调用的解码结果。

    - id / object / created / model: 远端回显的元信息。
    - choices: 候选回答，可能为空（由 Client 判定为错误）。
    - usage: 可选的 token 统计。
    """

    id: str
    object: str
    created: int
    model: str
    choices: List[Choice] = field(default_factory=list)
    usage: Optional[Usage] = None

    @classmethod
    def decode(cls, raw: bytes) -> "Response":
        """把 Transport 返回的字节解析为 Response。

        非法 JSON 抛 json.JSONDecodeError（ValueError 子类），
        结构或字段类型不符抛 TypeError；缺失或为 null 的字段取默认值。
        """

        data = json.loads(raw)
        if not isinstance(data, dict):
            raise TypeError(f"response must be an object, got {type(data).__name__}")
        choices_raw = data.get("choices")
        if choices_raw is None:
            choices_raw = []
        if not isinstance(choices_raw, list):
            raise TypeError(f"response.choices must be an array, got {type(choices_raw).__name__}")
        choices: List[Choice] = []
        for i, ch in enumerate(choices_raw):
            where = f"choices[{i}]"
            if not isinstance(ch, dict):
                raise TypeError(f"{where} must be an object, got {type(ch).__name__}")
            choices.append(
                Choice(
                    message=Message.from_payload(ch.get("message"), where=f"{where}.message"),
                    finish_reason=_str_field(ch, "finish_reason", where),
                    index=_int_field(ch, "index", where, default=i),
                )
            )
        usage = None
        usage_raw = data.get("usage")
        if usage_raw is not None:
            if not isinstance(usage_raw, dict):
                raise TypeError(f"response.usage must be an object, got {type(usage_raw).__name__}")
            usage = Usage(
                prompt_tokens=_int_field(usage_raw, "prompt_tokens", "usage"),
                completion_tokens=_int_field(usage_raw, "completion_tokens", "usage"),
                total_tokens=_int_field(usage_raw, "total_tokens", "usage"),
            )
        return cls(
            id=_str_field(data, "id", "response") or "",
            object=_str_field(data, "object", "response") or "",
            created=_int_field(data, "created", "response"),
            model=_str_field(data, "model", "response") or "",
            choices=choices,
            usage=usage,
        )


def parse_stream_line(line: str) -> List[str]:
    """解析一行 SSE 数据，返回其中各 choice 的增量文本。

    - 行首的 "data:" 前缀会被去掉；
    - "[DONE]" 与空行返回空列表；
    - 无法解析的行直接忽略（部分厂商会夹带心跳或注释行）。
    """

    data_str = line.strip()
    if data_str.startswith("data:"):
        data_str = data_str[5:].strip()
    if not data_str or data_str == "[DONE]":
        return []
    try:
        chunk = json.loads(data_str)
    except json.JSONDecodeError:
        return []
    if not isinstance(chunk, dict):
        return []
    deltas: List[str] = []
    for ch in chunk.get("choices") or []:
        if not isinstance(ch, dict):
            continue
        delta = ch.get("delta")
        content = delta.get("content") if isinstance(delta, dict) else None
        if isinstance(content, str) and content:
            deltas.append(content)
    return deltas
