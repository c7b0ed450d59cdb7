"""领域层模型与协议。

包含：
- models: Message / ChatRequest / ProviderReply / SessionConfig 模型。
- conversation: 只追加的 ConversationStore。
- exceptions: 业务异常类型定义。
"""
