"""领域层模型与异常。

包含：
- models: 统一的 ChatMessage / ChatRequest / StreamFragment 模型。
- conversation: 追加式的内存会话存储 ConversationStore。
- exceptions: 业务异常类型定义。
"""
