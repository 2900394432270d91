"""chat_core 日志配置。

所有模块共用名为 "chat_core" 的 logger，每条记录输出为一行 JSON。
结构化字段通过 extra={"extra": {...}} 传入，会合并进 JSON 对象。
开启 log_redact_content 时，消息正文与对话内容字段只保留长度信息。
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from chat_core.config.settings import settings

LOGGER_NAME = "chat_core"
# 这些字段携带用户或模型的对话文本
CONTENT_FIELDS = ("query", "answer", "content")


class JsonFormatter(logging.Formatter):
    def __init__(self, redact_content: bool = False):
        super().__init__()
        self.redact_content = redact_content

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if self.redact_content:
            msg = (msg or "")[:64]
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(self._redact(extra) if self.redact_content else extra)
        return json.dumps(payload, ensure_ascii=False, default=str)

    @staticmethod
    def _redact(fields: Dict[str, Any]) -> Dict[str, Any]:
        out = dict(fields)
        for key in CONTENT_FIELDS:
            value = out.get(key)
            if isinstance(value, str):
                out[key] = f"<redacted {len(value)} chars>"
        return out


def setup_logger(log_dir: Optional[str] = None, redact_content: Optional[bool] = None) -> logging.Logger:
    """初始化文件日志；重复调用不会叠加 handler。"""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)
    if any(getattr(h, "_chat_core_file", False) for h in logger.handlers):
        return logger
    if redact_content is None:
        redact_content = settings.log_redact_content
    path = Path(log_dir or settings.log_dir)
    path.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(path / "chat.log", encoding="utf-8")
    fh.setLevel(logging.INFO)
    fh.setFormatter(JsonFormatter(redact_content))
    fh._chat_core_file = True
    logger.addHandler(fh)
    return logger


def add_console_handler(level: int = logging.INFO) -> logging.Handler:
    """为 CLI 增加一个输出到 stderr 的 handler（已存在时只调整级别）。"""
    for h in logger.handlers:
        if getattr(h, "_chat_core_console", False):
            h.setLevel(level)
            return h
    sh = logging.StreamHandler()
    sh.setLevel(level)
    sh.setFormatter(JsonFormatter(settings.log_redact_content))
    sh._chat_core_console = True
    logger.addHandler(sh)
    return sh


logger = setup_logger()
