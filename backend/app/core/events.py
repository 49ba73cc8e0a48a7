# 结构化事件日志：每次 sync 状态流转 / 每个 metafield 操作打一条
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple


def _fmt(value: Any) -> str:
    if value is None:
        return "-"
    text = str(value)
    # 值里有空格时加引号，保持 k=v 可被日志平台切分
    return f'"{text}"' if " " in text else text


class EventLogger:
    """
    统一的事件出口，注入到各组件（sync / price update / metafields）。
    - 输出一行 "event k=v k=v"，与 shopify client 现有日志风格一致
    - 同时把 event/fields 放进 LogRecord.extra，便于 JSON formatter 直接取
    """

    def __init__(self, logger: Optional[logging.Logger] = None, **context: Any) -> None:
        self._logger = logger or logging.getLogger("variant_sync.events")
        self._context: Dict[str, Any] = dict(context)

    def bind(self, **context: Any) -> "EventLogger":
        merged = {**self._context, **context}
        return type(self)(self._logger, **merged)

    def emit(self, event: str, *, level: int = logging.INFO, **fields: Any) -> None:
        payload = {**self._context, **fields}
        line = " ".join(f"{k}={_fmt(v)}" for k, v in payload.items())
        self._logger.log(
            level,
            "%s %s", event, line,
            extra={"event": event, "fields": payload},
        )


class RecordingEventLogger(EventLogger):
    """测试/调试用：记住所有 emit 过的事件（仍然正常写日志）"""

    def __init__(self, logger: Optional[logging.Logger] = None, **context: Any) -> None:
        super().__init__(logger, **context)
        self.records: List[Tuple[str, Dict[str, Any]]] = []

    def bind(self, **context: Any) -> "RecordingEventLogger":
        child = super().bind(**context)
        # 子 logger 共用同一个 records 列表
        child.records = self.records
        return child

    def emit(self, event: str, *, level: int = logging.INFO, **fields: Any) -> None:
        self.records.append((event, {**self._context, **fields}))
        super().emit(event, level=level, **fields)

    def events(self, prefix: str = "") -> List[str]:
        return [name for name, _ in self.records if name.startswith(prefix)]
