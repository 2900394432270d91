import json
import os
from pathlib import Path
from typing import Any, List
from uuid import uuid4

from chat_core.config.settings import settings
from chat_core.domain.exceptions import ReadError, WriteError
from chat_core.domain.history import HistoryStore
from chat_core.domain.models import Message


class FileHistoryStore(HistoryStore):
    """把整段对话历史保存为单个 JSON 数组文件。

    写入先落到同目录的临时文件，再 os.replace 覆盖目标文件。
    """

    def __init__(self, path: str | Path | None = None):
        self._path = Path(path or settings.history_file).expanduser().resolve()

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> List[Message]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ReadError(code="STORE_READ_ERROR", message=str(e), path=str(self._path))
        if not isinstance(data, list):
            raise ReadError(
                code="STORE_READ_ERROR",
                message=f"history must be an array, got {type(data).__name__}",
                path=str(self._path),
            )
        try:
            return [self._to_message(i, item) for i, item in enumerate(data)]
        except (TypeError, ValueError) as e:
            raise ReadError(code="STORE_READ_ERROR", message=str(e), path=str(self._path))

    def write(self, messages: List[Message]) -> None:
        tmp_path = self._path.parent / f"{self._path.name}.{uuid4().hex}.tmp"
        obj = [m.to_payload() for m in messages]
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(obj, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise WriteError(code="STORE_WRITE_ERROR", message=str(e), path=str(self._path))

    def clear(self) -> None:
        """删除历史文件；文件不存在时什么也不做。"""
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise WriteError(code="STORE_DELETE_ERROR", message=str(e), path=str(self._path))

    @staticmethod
    def _to_message(i: int, data: Any) -> Message:
        return Message.from_payload(data, where=f"history[{i}]")
