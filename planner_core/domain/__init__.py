"""领域层模型与协议。

包含：
- models: StreamRequest / DeltaPayload / StreamState 等数据模型。
- exceptions: 业务异常类型定义。
"""
