"""领域层模型与协议。

包含：
- models: Message / Request / Response 等线上数据模型。
- history: HistoryStore 协议。
- exceptions: 业务异常类型定义。
"""
