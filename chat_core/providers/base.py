"""Provider 抽象接口。

Controller 不直接依赖具体厂商的 HTTP API，而是依赖此协议：

- stream_chat(messages): 发送有序消息列表，返回拉取式字节流 ByteStream；
  建立请求失败时直接抛出 ProviderError，流中途失败时由 ByteStream.read 抛出。
- close(): 释放资源，可重复调用。

目前有两类实现：
- 请求/响应式（OpenAIChatProvider）：每次发送完整消息列表。
- 会话/历史式（GeminiChatProvider）：把之前的轮次作为历史，只发送最新一条。
"""

from typing import Protocol, Sequence

from chat_core.domain.models import Message
from chat_core.providers.stream import ByteStream


class Provider(Protocol):
    """LLM Provider 协议。"""

    name: str

    def stream_chat(self, messages: Sequence[Message]) -> ByteStream:
        ...

    def close(self) -> None:
        ...
